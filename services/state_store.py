from typing import Generic, TypeVar

T = TypeVar("T")


class UserStateStore(Generic[T]):
    """In-memory per-user state owned by one app instance; lost on restart."""

    def __init__(self) -> None:
        self._items: dict[int, T] = {}

    def get(self, user_id: int) -> T | None:
        return self._items.get(user_id)

    def put(self, user_id: int, item: T) -> T:
        self._items[user_id] = item
        return item

    def pop(self, user_id: int) -> T | None:
        return self._items.pop(user_id, None)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._items

    def __len__(self) -> int:
        return len(self._items)

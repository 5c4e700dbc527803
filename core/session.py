from dataclasses import dataclass


@dataclass(frozen=True)
class AuthSession:
    """The signed-in user, passed explicitly to every service call."""

    user_id: int
    email: str | None = None

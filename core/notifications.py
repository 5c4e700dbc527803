from dataclasses import dataclass, field
from typing import Literal

Level = Literal["success", "error", "info"]


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str


@dataclass
class Notifier:
    """Collects the user-facing messages raised while handling one request."""

    messages: list[Notification] = field(default_factory=list)

    def success(self, message: str) -> None:
        self.messages.append(Notification("success", message))

    def error(self, message: str) -> None:
        self.messages.append(Notification("error", message))

    def info(self, message: str) -> None:
        self.messages.append(Notification("info", message))

    @property
    def last_error(self) -> str | None:
        for note in reversed(self.messages):
            if note.level == "error":
                return note.message
        return None

    def drain(self) -> list[Notification]:
        drained, self.messages = self.messages, []
        return drained

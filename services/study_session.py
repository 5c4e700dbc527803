import random
from collections.abc import Sequence

from schemas.flashcard import CardOut


class StudySession:
    """Shuffle-and-flip review over one deck. Nothing here is persisted."""

    def __init__(self, deck_id: int, cards: Sequence[CardOut], rng: random.Random | None = None):
        self.deck_id = deck_id
        self._source = list(cards)
        self._rng = rng or random.Random()
        self.cards: list[CardOut] = []
        self.index = 0
        self.flipped = False
        self.shuffle()

    def shuffle(self) -> None:
        self.cards = list(self._source)
        self._rng.shuffle(self.cards)
        self.index = 0
        self.flipped = False

    def flip(self) -> None:
        self.flipped = not self.flipped

    def next(self) -> bool:
        if self.at_end:
            return False
        self.index += 1
        self.flipped = False
        return True

    def previous(self) -> bool:
        if self.at_start:
            return False
        self.index -= 1
        self.flipped = False
        return True

    @property
    def is_empty(self) -> bool:
        return not self.cards

    @property
    def at_start(self) -> bool:
        return self.index == 0

    @property
    def at_end(self) -> bool:
        return self.is_empty or self.index == len(self.cards) - 1

    @property
    def current(self) -> CardOut | None:
        if self.is_empty:
            return None
        return self.cards[self.index]

    @property
    def progress(self) -> str:
        if self.is_empty:
            return "0 / 0"
        return f"{self.index + 1} / {len(self.cards)}"

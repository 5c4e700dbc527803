from pydantic import BaseModel

from schemas.flashcard import CardOut


class StudyOut(BaseModel):
    deck_id: int
    index: int
    total: int
    progress: str
    flipped: bool
    is_empty: bool
    at_start: bool
    at_end: bool
    card: CardOut | None = None

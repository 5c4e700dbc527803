from datetime import datetime

from pydantic import BaseModel, ConfigDict, constr, field_validator

from core.config import settings


class DeckCreateIn(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=100)
    description: constr(strip_whitespace=True, max_length=500) = ""
    language: constr(strip_whitespace=True, min_length=1, max_length=50)
    translation_language: constr(strip_whitespace=True, min_length=1, max_length=50) = settings.DEFAULT_TRANSLATION_LANGUAGE

    @field_validator("description", mode="before")
    @classmethod
    def _none_description_to_empty(cls, value: str | None):
        return "" if value is None else value


class DeckUpdateIn(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=100) | None = None
    description: constr(strip_whitespace=True, max_length=500) | None = None
    language: constr(strip_whitespace=True, min_length=1, max_length=50) | None = None
    translation_language: constr(strip_whitespace=True, min_length=1, max_length=50) | None = None


class DeckOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    language: str
    translation_language: str
    user_id: int
    created_at: datetime
    updated_at: datetime
    card_count: int = 0


class CardCreateIn(BaseModel):
    front: constr(strip_whitespace=True, min_length=1, max_length=255)
    back: constr(strip_whitespace=True, min_length=1, max_length=255)


class CardsCreateIn(BaseModel):
    cards: list[CardCreateIn]


class CardUpdateIn(BaseModel):
    front: constr(strip_whitespace=True, min_length=1, max_length=255) | None = None
    back: constr(strip_whitespace=True, min_length=1, max_length=255) | None = None


class CardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    deck_id: int
    front: str
    back: str
    created_at: datetime
    updated_at: datetime
    last_reviewed: datetime | None = None
    review_count: int | None = None
    difficulty: int | None = None


class ProcessedCard(BaseModel):
    """A candidate pair from the AI step, not yet stored."""

    # models sometimes return numbers, e.g. {"front": "dos", "back": 2}
    model_config = ConfigDict(coerce_numbers_to_str=True)

    front: str
    back: str


class OCRResult(BaseModel):
    text: str
    confidence: float


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: str
    message: str


class DeckDetailOut(BaseModel):
    deck: DeckOut
    cards: list[CardOut]
    can_study: bool
    notifications: list[NotificationOut] = []

from pydantic import BaseModel

from core.config import settings
from schemas.flashcard import DeckOut, NotificationOut, ProcessedCard


class WizardStartIn(BaseModel):
    deck_id: int | None = None


class WizardDeckIn(BaseModel):
    # blank values are reported by the wizard itself, not rejected with a 422
    name: str = ""
    description: str = ""
    language: str = ""
    translation_language: str = settings.DEFAULT_TRANSLATION_LANGUAGE


class WizardCardsIn(BaseModel):
    cards: list[ProcessedCard]


class WizardOut(BaseModel):
    step: str
    deck_id: int | None = None
    existing_deck: bool = False
    language: str | None = None
    translation_language: str | None = None
    image_name: str | None = None
    ocr_text: str | None = None
    cards: list[ProcessedCard] = []
    busy: bool = False
    deck: DeckOut | None = None
    notifications: list[NotificationOut] = []

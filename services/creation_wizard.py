"""
Deck creation wizard.

    naming_deck -> uploading_image -> extracting -> editing_cards -> done

Started against an existing deck it begins at ``uploading_image``. ``submit``,
``process`` and ``save`` refuse to run twice at once for the same user.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from core.config import settings
from core.errors import FieldValidationError, WizardBusy, WizardStateError
from core.notifications import Notifier
from core.session import AuthSession
from schemas.flashcard import CardOut, DeckCreateIn, DeckOut, ProcessedCard
from schemas.wizard import WizardDeckIn
from services.ai_service import AiService
from services.flashcard_service import FlashcardService
from services.ocr_service import OcrService

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif"}


class WizardStep(str, Enum):
    NAMING_DECK = "naming_deck"
    UPLOADING_IMAGE = "uploading_image"
    EXTRACTING = "extracting"
    EDITING_CARDS = "editing_cards"
    DONE = "done"


@dataclass
class SelectedImage:
    filename: str
    content_type: str | None
    data: bytes


@dataclass
class WizardState:
    step: WizardStep = WizardStep.NAMING_DECK
    deck_id: int | None = None
    existing_deck: bool = False
    language: str | None = None
    translation_language: str | None = None
    image: SelectedImage | None = None
    ocr_text: str | None = None
    candidates: list[ProcessedCard] = field(default_factory=list)
    busy: bool = False

    @classmethod
    def for_existing_deck(cls, deck: DeckOut) -> WizardState:
        return cls(
            step=WizardStep.UPLOADING_IMAGE,
            deck_id=deck.id,
            existing_deck=True,
            language=deck.language,
            translation_language=deck.translation_language,
        )

    def require(self, *steps: WizardStep) -> None:
        if self.busy:
            raise WizardBusy()
        if self.step not in steps:
            raise WizardStateError(f"Cannot do that while the wizard is at '{self.step.value}'")

    @contextmanager
    def in_flight(self) -> Iterator[None]:
        if self.busy:
            raise WizardBusy()
        self.busy = True
        try:
            yield
        finally:
            self.busy = False

    def discard_work(self) -> None:
        self.image = None
        self.ocr_text = None
        self.candidates = []


def filter_blank_pairs(cards: Sequence[ProcessedCard]) -> list[ProcessedCard]:
    return [card for card in cards if card.front.strip() and card.back.strip()]


class CreationWizard:
    def __init__(
        self,
        state: WizardState,
        *,
        session: AuthSession | None,
        notifier: Notifier,
        flashcards: FlashcardService,
        ocr: OcrService,
        ai: AiService,
        max_image_bytes: int | None = None,
    ):
        self.state = state
        self.session = session
        self.notifier = notifier
        self.flashcards = flashcards
        self.ocr = ocr
        self.ai = ai
        self.max_image_bytes = max_image_bytes or settings.MAX_IMAGE_BYTES

    def submit(self, data: WizardDeckIn) -> DeckOut | None:
        self.state.require(WizardStep.NAMING_DECK)
        with self.state.in_flight():
            name = data.name.strip()
            language = data.language.strip()
            if not name or not language:
                self.notifier.error(FieldValidationError.default_message)
                return None

            try:
                payload = DeckCreateIn(
                    name=name,
                    description=data.description,
                    language=language,
                    translation_language=data.translation_language.strip() or settings.DEFAULT_TRANSLATION_LANGUAGE,
                )
            except ValidationError as exc:
                messages = "; ".join(err.get("msg", "Invalid data") for err in exc.errors())
                self.notifier.error(messages)
                return None

            deck = self.flashcards.create_deck(self.session, payload)
            if deck is None:
                return None

            self.state.deck_id = deck.id
            self.state.language = deck.language
            self.state.translation_language = deck.translation_language
            self.state.step = WizardStep.UPLOADING_IMAGE
            self.notifier.success("Deck created successfully!")
            return deck

    def select_image(self, filename: str | None, content_type: str | None, data: bytes) -> bool:
        self.state.require(WizardStep.UPLOADING_IMAGE)
        extension = os.path.splitext(filename or "")[1].lower()
        if extension not in ALLOWED_IMAGE_EXTENSIONS or (content_type and not content_type.startswith("image/")):
            self.notifier.error("Only PNG, JPG or GIF images can be uploaded")
            return False
        if not data:
            self.notifier.error("Uploaded image is empty")
            return False
        if len(data) > self.max_image_bytes:
            self.notifier.error("Image is too large")
            return False

        self.state.image = SelectedImage(filename=filename or "", content_type=content_type, data=data)
        return True

    async def process(self) -> list[ProcessedCard] | None:
        self.state.require(WizardStep.UPLOADING_IMAGE)
        image = self.state.image
        if image is None:
            self.notifier.error("Please upload an image first")
            return None

        with self.state.in_flight():
            self.state.step = WizardStep.EXTRACTING
            cards: list[ProcessedCard] | None = None
            try:
                cards = await self._extract(image)
            finally:
                # the upload is only needed for this one attempt
                self.state.image = None
                if not cards:
                    self.state.step = WizardStep.UPLOADING_IMAGE
                    self.state.ocr_text = None
                    self.state.candidates = []

            if not cards:
                return None

            self.state.candidates = cards
            self.state.step = WizardStep.EDITING_CARDS
            self.notifier.success(f"Extracted {len(cards)} flashcards!")
            return cards

    async def _extract(self, image: SelectedImage) -> list[ProcessedCard] | None:
        result = await run_in_threadpool(self.ocr.perform_ocr, image.data)
        if result is None:
            return None
        if not result.text.strip():
            self.notifier.error("No text found in the image")
            return None

        logger.info("OCR finished: %d characters, confidence %.1f", len(result.text), result.confidence)
        self.state.ocr_text = result.text

        cards = await self.ai.process(
            result.text,
            self.state.language or "",
            self.state.translation_language or settings.DEFAULT_TRANSLATION_LANGUAGE,
        )
        if cards is None:
            # the AI step already reported why
            return None
        if not cards:
            self.notifier.error("Could not extract any flashcards from the image")
            return None
        return cards

    def save(self, cards: Sequence[ProcessedCard]) -> list[CardOut] | None:
        self.state.require(WizardStep.EDITING_CARDS)
        with self.state.in_flight():
            # keep the user's edits if saving fails
            self.state.candidates = list(cards)
            valid = filter_blank_pairs(cards)
            if not valid:
                self.notifier.error("Please add at least one card")
                return None
            if self.state.deck_id is None:
                self.notifier.error("No deck selected")
                return None

            created = self.flashcards.create_cards(self.session, self.state.deck_id, valid)
            if created is None:
                return None

            self.state.step = WizardStep.DONE
            self.state.discard_work()
            self.notifier.success("Cards saved successfully!")
            return created

    def cancel(self) -> None:
        if self.state.busy:
            raise WizardBusy()
        self.state.step = WizardStep.DONE
        self.state.discard_work()

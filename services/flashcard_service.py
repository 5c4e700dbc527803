import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import FlashcardAppError, NotFound, StoreError, Unauthenticated
from core.notifications import Notifier
from core.session import AuthSession
from models.deck import Deck
from repositories.card_repo import CardRepository
from repositories.deck_repo import DeckRepository
from schemas.flashcard import (
    CardCreateIn,
    CardOut,
    CardUpdateIn,
    DeckCreateIn,
    DeckOut,
    DeckUpdateIn,
    ProcessedCard,
)

logger = logging.getLogger(__name__)


def flatten_card_count(value: Any) -> int:
    """
    Normalise the deck card-count aggregate.

    Accepts a bare number, a ``{"count": n}`` mapping, a list of such mappings
    (one per aggregate row) or nothing at all.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, Mapping):
        return flatten_card_count(value.get("count"))
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return sum(flatten_card_count(item) for item in value)
    return 0


def _deck_out(deck: Deck, card_count: Any) -> DeckOut:
    out = DeckOut.model_validate(deck, from_attributes=True)
    out.card_count = flatten_card_count(card_count)
    return out


class FlashcardService:
    """
    Deck and card CRUD scoped to the signed-in user.

    Failures never propagate: they are logged, reported through the notifier and
    turned into ``None``, ``[]`` or ``False``.
    """

    def __init__(self, db: Session, notifier: Notifier):
        self.db = db
        self.notifier = notifier
        self.deck_repo = DeckRepository(db)
        self.card_repo = CardRepository(db)

    def _fail(self, action: str, fallback: str, exc: Exception) -> None:
        if isinstance(exc, SQLAlchemyError):
            self.db.rollback()
            exc = StoreError(fallback)
            logger.exception("Error %s", action)
        else:
            logger.error("Error %s: %s", action, exc)
        message = exc.message if isinstance(exc, FlashcardAppError) else fallback
        self.notifier.error(message or fallback)

    @staticmethod
    def _require(session: AuthSession | None) -> AuthSession:
        if session is None:
            raise Unauthenticated()
        return session

    # Deck operations

    def create_deck(self, session: AuthSession | None, data: DeckCreateIn) -> DeckOut | None:
        try:
            user = self._require(session)
            deck = self.deck_repo.save_deck(
                user_id=user.user_id,
                name=data.name,
                description=data.description,
                language=data.language,
                translation_language=data.translation_language,
            )
            return _deck_out(deck, 0)
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("creating deck", "Failed to create deck", exc)
            return None

    def list_decks(self, session: AuthSession | None) -> list[DeckOut]:
        try:
            user = self._require(session)
            rows = self.deck_repo.list_decks(user.user_id)
            return [_deck_out(deck, count) for deck, count in rows]
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("fetching decks", "Failed to fetch decks", exc)
            return []

    def get_deck(self, session: AuthSession | None, deck_id: int) -> DeckOut | None:
        try:
            user = self._require(session)
            row = self.deck_repo.get_deck_with_count(deck_id, user.user_id)
            if row is None:
                raise NotFound("Deck not found")
            deck, count = row
            return _deck_out(deck, count)
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("fetching deck", "Failed to fetch deck", exc)
            return None

    def update_deck(self, session: AuthSession | None, deck_id: int, data: DeckUpdateIn) -> DeckOut | None:
        try:
            user = self._require(session)
            deck = self.deck_repo.update_deck(
                deck_id=deck_id,
                user_id=user.user_id,
                updates=data.model_dump(exclude_unset=True, exclude_none=True),
            )
            if deck is None:
                raise NotFound("Deck not found")
            return _deck_out(deck, len(deck.cards))
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("updating deck", "Failed to update deck", exc)
            return None

    def delete_deck(self, session: AuthSession | None, deck_id: int) -> bool:
        # cards go with the deck through the foreign-key cascade
        try:
            user = self._require(session)
            if not self.deck_repo.delete_deck(deck_id=deck_id, user_id=user.user_id):
                raise NotFound("Deck not found")
            return True
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("deleting deck", "Failed to delete deck", exc)
            return False

    # Card operations

    def _owned_deck(self, user: AuthSession, deck_id: int) -> Deck:
        deck = self.deck_repo.get_deck(deck_id, user.user_id)
        if deck is None:
            raise NotFound("Deck not found")
        return deck

    def create_card(self, session: AuthSession | None, deck_id: int, data: CardCreateIn) -> CardOut | None:
        try:
            user = self._require(session)
            self._owned_deck(user, deck_id)
            card = self.card_repo.save_card(deck_id=deck_id, front=data.front, back=data.back)
            return CardOut.model_validate(card, from_attributes=True)
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("creating card", "Failed to create card", exc)
            return None

    def create_cards(
        self,
        session: AuthSession | None,
        deck_id: int,
        items: Sequence[CardCreateIn | ProcessedCard],
    ) -> list[CardOut] | None:
        try:
            user = self._require(session)
            self._owned_deck(user, deck_id)
            cards = self.card_repo.save_cards(
                deck_id=deck_id,
                items=[{"front": item.front, "back": item.back} for item in items],
            )
            return [CardOut.model_validate(card, from_attributes=True) for card in cards]
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("creating cards", "Failed to create cards", exc)
            return None

    def list_cards_by_deck(self, session: AuthSession | None, deck_id: int) -> list[CardOut]:
        try:
            user = self._require(session)
            self._owned_deck(user, deck_id)
            cards = self.card_repo.get_cards_by_deck_id(deck_id)
            return [CardOut.model_validate(card, from_attributes=True) for card in cards]
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("fetching cards", "Failed to fetch cards", exc)
            return []

    def update_card(self, session: AuthSession | None, card_id: int, data: CardUpdateIn) -> CardOut | None:
        try:
            user = self._require(session)
            card = self.card_repo.update_card(
                card_id=card_id,
                user_id=user.user_id,
                updates=data.model_dump(exclude_unset=True, exclude_none=True),
            )
            if card is None:
                raise NotFound("Card not found")
            return CardOut.model_validate(card, from_attributes=True)
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("updating card", "Failed to update card", exc)
            return None

    def delete_card(self, session: AuthSession | None, card_id: int) -> bool:
        try:
            user = self._require(session)
            if not self.card_repo.delete_card(card_id=card_id, user_id=user.user_id):
                raise NotFound("Card not found")
            return True
        except (FlashcardAppError, SQLAlchemyError) as exc:
            self._fail("deleting card", "Failed to delete card", exc)
            return False

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from models.card import Card
from models.deck import Deck

DECK_FIELDS = {"name", "description", "language", "translation_language"}


class DeckRepository:
    def __init__(self, db: Session):
        self.db = db

    def _with_card_count(self):
        card_count = (
            select(func.count(Card.id))
            .where(Card.deck_id == Deck.id)
            .correlate(Deck)
            .scalar_subquery()
            .label("card_count")
        )
        return select(Deck, card_count)

    def save_deck(
        self,
        *,
        user_id: int,
        name: str,
        description: str,
        language: str,
        translation_language: str,
    ) -> Deck:
        entity = Deck(
            user_id=user_id,
            name=name,
            description=description,
            language=language,
            translation_language=translation_language,
        )
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def list_decks(self, user_id: int) -> list[tuple[Deck, Any]]:
        stmt = (
            self._with_card_count()
            .where(Deck.user_id == user_id)
            .order_by(Deck.created_at.desc(), Deck.id.desc())
        )
        return [(row.Deck, row.card_count) for row in self.db.execute(stmt)]

    def get_deck_with_count(self, deck_id: int, user_id: int) -> tuple[Deck, Any] | None:
        stmt = self._with_card_count().where(
            Deck.id == deck_id,
            Deck.user_id == user_id,
        )
        row = self.db.execute(stmt).one_or_none()
        if row is None:
            return None
        return row.Deck, row.card_count

    def get_deck(self, deck_id: int, user_id: int) -> Deck | None:
        stmt = select(Deck).where(
            Deck.id == deck_id,
            Deck.user_id == user_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def update_deck(self, *, deck_id: int, user_id: int, updates: dict[str, Any]) -> Deck | None:
        deck = self.get_deck(deck_id, user_id)
        if deck is None:
            return None
        for key, value in updates.items():
            if key in DECK_FIELDS:
                setattr(deck, key, value)
        self.db.commit()
        self.db.refresh(deck)
        return deck

    def delete_deck(self, *, deck_id: int, user_id: int) -> bool:
        deck = self.get_deck(deck_id, user_id)
        if deck is None:
            return False
        self.db.delete(deck)
        self.db.commit()
        return True

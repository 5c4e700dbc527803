from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.card import Card
from models.deck import Deck

CARD_FIELDS = {"front", "back"}


class CardRepository:
    def __init__(self, db: Session):
        self.db = db

    def save_card(self, *, deck_id: int, front: str, back: str) -> Card:
        entity = Card(deck_id=deck_id, front=front, back=back)
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def save_cards(self, *, deck_id: int, items: list[dict[str, str]]) -> list[Card]:
        entities = [Card(deck_id=deck_id, front=item["front"], back=item["back"]) for item in items]
        self.db.add_all(entities)
        self.db.commit()
        for entity in entities:
            self.db.refresh(entity)
        return entities

    def get_cards_by_deck_id(self, deck_id: int) -> list[Card]:
        stmt = (
            select(Card)
            .where(Card.deck_id == deck_id)
            .order_by(Card.created_at.desc(), Card.id.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def get_card(self, card_id: int, user_id: int) -> Card | None:
        stmt = (
            select(Card)
            .join(Deck, Deck.id == Card.deck_id)
            .where(Card.id == card_id, Deck.user_id == user_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def update_card(self, *, card_id: int, user_id: int, updates: dict[str, Any]) -> Card | None:
        entity = self.get_card(card_id, user_id)
        if entity is None:
            return None
        for key, value in updates.items():
            if key in CARD_FIELDS:
                setattr(entity, key, value)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete_card(self, *, card_id: int, user_id: int) -> bool:
        entity = self.get_card(card_id, user_id)
        if entity is None:
            return False
        self.db.delete(entity)
        self.db.commit()
        return True

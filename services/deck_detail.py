from __future__ import annotations

from dataclasses import dataclass

from core.session import AuthSession
from schemas.flashcard import CardOut, DeckOut
from services.flashcard_service import FlashcardService


@dataclass
class DeckDetail:
    deck: DeckOut
    cards: list[CardOut]

    @classmethod
    def load(cls, flashcards: FlashcardService, session: AuthSession | None, deck_id: int) -> DeckDetail | None:
        deck = flashcards.get_deck(session, deck_id)
        if deck is None:
            return None
        return cls(deck=deck, cards=flashcards.list_cards_by_deck(session, deck_id))

    @property
    def can_study(self) -> bool:
        return bool(self.cards)

    def delete_card(self, flashcards: FlashcardService, session: AuthSession | None, card_id: int) -> bool:
        if not any(card.id == card_id for card in self.cards):
            flashcards.notifier.error("Card not found")
            return False
        if not flashcards.delete_card(session, card_id):
            return False
        self.cards = [card for card in self.cards if card.id != card_id]
        self.deck.card_count = len(self.cards)
        flashcards.notifier.success("Card deleted successfully")
        return True

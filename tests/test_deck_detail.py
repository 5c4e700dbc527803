from schemas.flashcard import CardCreateIn, DeckCreateIn
from services.deck_detail import DeckDetail


def _loaded(flashcards, session, fronts):
    deck = flashcards.create_deck(session, DeckCreateIn(name="Verbs", language="German"))
    flashcards.create_cards(session, deck.id, [CardCreateIn(front=f, back=f.upper()) for f in fronts])
    return DeckDetail.load(flashcards, session, deck.id)


def test_load_missing_deck(flashcards, session, notifier):
    assert DeckDetail.load(flashcards, session, 404) is None
    assert notifier.last_error == "Deck not found"


def test_can_study_needs_cards(flashcards, session):
    deck = flashcards.create_deck(session, DeckCreateIn(name="Empty", language="German"))

    detail = DeckDetail.load(flashcards, session, deck.id)

    assert detail.cards == []
    assert detail.can_study is False


def test_delete_keeps_sibling_order(flashcards, session, notifier):
    detail = _loaded(flashcards, session, ["gehen", "sehen", "stehen"])
    before = [c.id for c in detail.cards]
    target = before[1]

    assert detail.delete_card(flashcards, session, target) is True

    assert [c.id for c in detail.cards] == [before[0], before[2]]
    assert detail.deck.card_count == 2
    assert notifier.messages[-1].message == "Card deleted successfully"
    assert [c.id for c in flashcards.list_cards_by_deck(session, detail.deck.id)] == [before[0], before[2]]


def test_delete_unknown_card_leaves_list_alone(flashcards, session, notifier):
    detail = _loaded(flashcards, session, ["gehen"])

    assert detail.delete_card(flashcards, session, 12345) is False
    assert len(detail.cards) == 1
    assert notifier.last_error == "Card not found"

from fastapi import APIRouter, Depends, HTTPException, Response

from core.notifications import Notifier
from core.session import AuthSession
from schemas.flashcard import (
    CardCreateIn,
    CardOut,
    CardsCreateIn,
    CardUpdateIn,
    DeckCreateIn,
    DeckDetailOut,
    DeckOut,
    DeckUpdateIn,
    NotificationOut,
)
from services.deck_detail import DeckDetail
from services.flashcard_service import FlashcardService
from .deps import get_auth_session, get_flashcard_service, get_notifier

router = APIRouter(prefix="/flashcard", tags=["Flashcard"])


def _failed(notifier: Notifier, status_code: int, fallback: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=notifier.last_error or fallback)


@router.post(
    "/decks",
    response_model=DeckOut,
    status_code=201,
)
async def create_deck(
    data: DeckCreateIn,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    deck = svc.create_deck(session, data)
    if deck is None:
        raise _failed(notifier, 400, "Failed to create deck")
    return deck


@router.get(
    "/decks",
    response_model=list[DeckOut],
)
async def list_decks(
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    decks = svc.list_decks(session)
    if notifier.last_error:
        raise _failed(notifier, 503, "Failed to fetch decks")
    return decks


@router.get(
    "/decks/{deck_id}",
    response_model=DeckOut,
)
async def get_deck(
    deck_id: int,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    deck = svc.get_deck(session, deck_id)
    if deck is None:
        raise _failed(notifier, 404, "Deck not found")
    return deck


@router.patch(
    "/decks/{deck_id}",
    response_model=DeckOut,
)
async def update_deck(
    deck_id: int,
    data: DeckUpdateIn,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    deck = svc.update_deck(session, deck_id, data)
    if deck is None:
        raise _failed(notifier, 404, "Deck not found")
    return deck


@router.delete(
    "/decks/{deck_id}",
    status_code=204,
)
async def delete_deck(
    deck_id: int,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    if not svc.delete_deck(session, deck_id):
        raise _failed(notifier, 404, "Deck not found")
    return Response(status_code=204)


@router.get(
    "/decks/{deck_id}/cards",
    response_model=list[CardOut],
)
async def list_cards(
    deck_id: int,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    cards = svc.list_cards_by_deck(session, deck_id)
    if notifier.last_error:
        raise _failed(notifier, 404, "Deck not found")
    return cards


@router.post(
    "/decks/{deck_id}/cards",
    response_model=CardOut,
    status_code=201,
)
async def add_card(
    deck_id: int,
    data: CardCreateIn,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    card = svc.create_card(session, deck_id, data)
    if card is None:
        raise _failed(notifier, 404, "Deck not found")
    return card


@router.post(
    "/decks/{deck_id}/cards/batch",
    response_model=list[CardOut],
    status_code=201,
)
async def add_cards(
    deck_id: int,
    data: CardsCreateIn,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    if not data.cards:
        raise HTTPException(status_code=400, detail="Please add at least one card")
    cards = svc.create_cards(session, deck_id, data.cards)
    if cards is None:
        raise _failed(notifier, 404, "Deck not found")
    return cards


@router.delete(
    "/decks/{deck_id}/cards/{card_id}",
    response_model=DeckDetailOut,
)
async def delete_card_from_deck(
    deck_id: int,
    card_id: int,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    detail = DeckDetail.load(svc, session, deck_id)
    if detail is None:
        raise _failed(notifier, 404, "Deck not found")
    if not detail.delete_card(svc, session, card_id):
        raise _failed(notifier, 404, "Card not found")
    return DeckDetailOut(
        deck=detail.deck,
        cards=detail.cards,
        can_study=detail.can_study,
        notifications=[NotificationOut.model_validate(n, from_attributes=True) for n in notifier.drain()],
    )


@router.patch(
    "/cards/{card_id}",
    response_model=CardOut,
)
async def update_card(
    card_id: int,
    data: CardUpdateIn,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    card = svc.update_card(session, card_id, data)
    if card is None:
        raise _failed(notifier, 404, "Card not found")
    return card


@router.delete(
    "/cards/{card_id}",
    status_code=204,
)
async def delete_card(
    card_id: int,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
):
    if not svc.delete_card(session, card_id):
        raise _failed(notifier, 404, "Card not found")
    return Response(status_code=204)

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from core.errors import WizardBusy
from core.notifications import Notifier
from core.session import AuthSession
from schemas.flashcard import DeckOut, NotificationOut
from schemas.wizard import WizardCardsIn, WizardDeckIn, WizardOut, WizardStartIn
from services.creation_wizard import CreationWizard, WizardState
from services.flashcard_service import FlashcardService
from services.state_store import UserStateStore
from .deps import (
    get_auth_session,
    get_flashcard_service,
    get_notifier,
    get_wizard,
    get_wizard_store,
)

router = APIRouter(prefix="/wizard", tags=["Wizard"])


def wizard_out(state: WizardState, notifier: Notifier, deck: DeckOut | None = None) -> WizardOut:
    return WizardOut(
        step=state.step.value,
        deck_id=state.deck_id,
        existing_deck=state.existing_deck,
        language=state.language,
        translation_language=state.translation_language,
        image_name=state.image.filename if state.image else None,
        ocr_text=state.ocr_text,
        cards=state.candidates,
        busy=state.busy,
        deck=deck,
        notifications=[NotificationOut.model_validate(n, from_attributes=True) for n in notifier.drain()],
    )


def _failed(notifier: Notifier, status_code: int, fallback: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=notifier.last_error or fallback)


@router.get("", response_model=WizardOut)
async def get_state(
    wizard: CreationWizard = Depends(get_wizard),
    notifier: Notifier = Depends(get_notifier),
):
    return wizard_out(wizard.state, notifier)


@router.post("/start", response_model=WizardOut)
async def start(
    data: WizardStartIn,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
    store: UserStateStore[WizardState] = Depends(get_wizard_store),
):
    current = store.get(session.user_id)
    if current is not None and current.busy:
        raise WizardBusy()

    deck = None
    if data.deck_id is None:
        state = WizardState()
    else:
        deck = svc.get_deck(session, data.deck_id)
        if deck is None:
            raise _failed(notifier, 404, "Deck not found")
        state = WizardState.for_existing_deck(deck)
    store.put(session.user_id, state)
    return wizard_out(state, notifier, deck)


@router.post("/deck", response_model=WizardOut)
async def submit_deck(
    data: WizardDeckIn,
    wizard: CreationWizard = Depends(get_wizard),
    notifier: Notifier = Depends(get_notifier),
):
    deck = wizard.submit(data)
    if deck is None:
        raise _failed(notifier, 400, "Failed to create deck")
    return wizard_out(wizard.state, notifier, deck)


@router.post("/image", response_model=WizardOut)
async def select_image(
    file: UploadFile = File(...),
    wizard: CreationWizard = Depends(get_wizard),
    notifier: Notifier = Depends(get_notifier),
):
    data = await file.read()
    if not wizard.select_image(file.filename, file.content_type, data):
        raise _failed(notifier, 400, "Invalid image")
    return wizard_out(wizard.state, notifier)


@router.post("/process", response_model=WizardOut)
async def process_image(
    wizard: CreationWizard = Depends(get_wizard),
    notifier: Notifier = Depends(get_notifier),
):
    has_image = wizard.state.image is not None
    cards = await wizard.process()
    if cards is None:
        raise _failed(notifier, 502 if has_image else 400, "Failed to process image")
    return wizard_out(wizard.state, notifier)


@router.post("/cards", response_model=WizardOut)
async def save_cards(
    data: WizardCardsIn,
    wizard: CreationWizard = Depends(get_wizard),
    notifier: Notifier = Depends(get_notifier),
):
    created = wizard.save(data.cards)
    if created is None:
        raise _failed(notifier, 400, "Failed to save cards")
    return wizard_out(wizard.state, notifier)


@router.post("/cancel", response_model=WizardOut)
async def cancel(
    wizard: CreationWizard = Depends(get_wizard),
    notifier: Notifier = Depends(get_notifier),
):
    wizard.cancel()
    return wizard_out(wizard.state, notifier)

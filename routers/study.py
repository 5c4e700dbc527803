from fastapi import APIRouter, Depends, HTTPException, Response

from core.notifications import Notifier
from core.session import AuthSession
from schemas.study import StudyOut
from services.deck_detail import DeckDetail
from services.flashcard_service import FlashcardService
from services.state_store import UserStateStore
from services.study_session import StudySession
from .deps import get_auth_session, get_flashcard_service, get_notifier, get_study_store

router = APIRouter(prefix="/study", tags=["Study"])


def study_out(study: StudySession) -> StudyOut:
    return StudyOut(
        deck_id=study.deck_id,
        index=study.index,
        total=len(study.cards),
        progress=study.progress,
        flipped=study.flipped,
        is_empty=study.is_empty,
        at_start=study.at_start,
        at_end=study.at_end,
        card=study.current,
    )


def _current(store: UserStateStore[StudySession], session: AuthSession) -> StudySession:
    study = store.get(session.user_id)
    if study is None:
        raise HTTPException(status_code=404, detail="No study session in progress")
    return study


@router.get("", response_model=StudyOut)
async def get_current(
    session: AuthSession = Depends(get_auth_session),
    store: UserStateStore[StudySession] = Depends(get_study_store),
):
    return study_out(_current(store, session))


@router.post("/flip", response_model=StudyOut)
async def flip(
    session: AuthSession = Depends(get_auth_session),
    store: UserStateStore[StudySession] = Depends(get_study_store),
):
    study = _current(store, session)
    if not study.is_empty:
        study.flip()
    return study_out(study)


@router.post("/next", response_model=StudyOut)
async def next_card(
    session: AuthSession = Depends(get_auth_session),
    store: UserStateStore[StudySession] = Depends(get_study_store),
):
    study = _current(store, session)
    study.next()
    return study_out(study)


@router.post("/previous", response_model=StudyOut)
async def previous_card(
    session: AuthSession = Depends(get_auth_session),
    store: UserStateStore[StudySession] = Depends(get_study_store),
):
    study = _current(store, session)
    study.previous()
    return study_out(study)


@router.post("/shuffle", response_model=StudyOut)
async def shuffle(
    session: AuthSession = Depends(get_auth_session),
    store: UserStateStore[StudySession] = Depends(get_study_store),
):
    study = _current(store, session)
    study.shuffle()
    return study_out(study)


# kept below the fixed paths so they match first
@router.post("/{deck_id}", response_model=StudyOut)
async def start(
    deck_id: int,
    session: AuthSession = Depends(get_auth_session),
    svc: FlashcardService = Depends(get_flashcard_service),
    notifier: Notifier = Depends(get_notifier),
    store: UserStateStore[StudySession] = Depends(get_study_store),
):
    detail = DeckDetail.load(svc, session, deck_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=notifier.last_error or "Deck not found")
    study = store.put(session.user_id, StudySession(deck_id, detail.cards))
    return study_out(study)


@router.delete("", status_code=204)
async def finish(
    session: AuthSession = Depends(get_auth_session),
    store: UserStateStore[StudySession] = Depends(get_study_store),
):
    store.pop(session.user_id)
    return Response(status_code=204)

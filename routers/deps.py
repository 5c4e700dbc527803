from authx import TokenPayload
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from core.database import get_db
from core.notifications import Notifier
from core.session import AuthSession
from services.ai_service import AiService
from services.creation_wizard import CreationWizard, WizardState
from services.flashcard_service import FlashcardService
from services.ocr_service import OcrEngine, OcrService
from services.state_store import UserStateStore
from services.study_session import StudySession
from .auth import decode_token, security


def get_notifier() -> Notifier:
    return Notifier()


def get_auth_session(payload: TokenPayload = Depends(security.access_token_required)) -> AuthSession:
    try:
        user_id = int(payload.sub)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid subject in token") from exc
    return AuthSession(user_id=user_id)


def get_optional_auth_session(request: Request) -> AuthSession | None:
    """Session for page routes, which redirect to /login instead of failing."""
    token = request.cookies.get(security.config.JWT_ACCESS_COOKIE_NAME)
    if not token:
        return None
    try:
        payload = decode_token(token)
        user_id = int(payload.sub)
    except Exception:
        return None
    if payload.type != "access":
        return None
    return AuthSession(user_id=user_id)


def get_flashcard_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> FlashcardService:
    return FlashcardService(db, notifier)


def get_ocr_engine(request: Request) -> OcrEngine:
    return request.app.state.ocr_engine


def get_ocr_service(
    notifier: Notifier = Depends(get_notifier),
    engine: OcrEngine = Depends(get_ocr_engine),
) -> OcrService:
    return OcrService(notifier, engine)


def get_ai_service(notifier: Notifier = Depends(get_notifier)) -> AiService:
    return AiService(notifier)


def get_wizard_store(request: Request) -> UserStateStore[WizardState]:
    return request.app.state.wizards


def get_study_store(request: Request) -> UserStateStore[StudySession]:
    return request.app.state.study_sessions


def get_wizard(
    session: AuthSession = Depends(get_auth_session),
    notifier: Notifier = Depends(get_notifier),
    flashcards: FlashcardService = Depends(get_flashcard_service),
    ocr: OcrService = Depends(get_ocr_service),
    ai: AiService = Depends(get_ai_service),
    store: UserStateStore[WizardState] = Depends(get_wizard_store),
) -> CreationWizard:
    state = store.get(session.user_id) or store.put(session.user_id, WizardState())
    return CreationWizard(
        state,
        session=session,
        notifier=notifier,
        flashcards=flashcards,
        ocr=ocr,
        ai=ai,
    )

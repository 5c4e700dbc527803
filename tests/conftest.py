import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["JWT_COOKIE_CSRF_PROTECT"] = "false"
os.environ.pop("OPENROUTER_API_KEY", None)

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from core.database import Base, SessionLocal, enable_sqlite_foreign_keys
from core.notifications import Notifier
from core.security import hash_password
from core.session import AuthSession
import models.card  # noqa: F401  registers the tables
import models.deck  # noqa: F401
import models.refresh_token  # noqa: F401
from models.user import User
from routers.deps import get_ai_service, get_auth_session, get_notifier, get_ocr_engine
from schemas.flashcard import ProcessedCard
from services.flashcard_service import FlashcardService
from services.state_store import UserStateStore

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
enable_sqlite_foreign_keys(engine)
# routers and the token blocklist open sessions through SessionLocal
SessionLocal.configure(bind=engine)


class FakeOcrEngine:
    def __init__(self, detections=None, error: Exception | None = None):
        self.detections = detections or []
        self.error = error
        self.calls = 0

    def recognize(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.detections


class FakeAiService:
    def __init__(self, cards=None, message: str = "Failed to process with AI"):
        self.cards = cards
        self.message = message
        self.notifier = None
        self.calls = []

    async def process(self, ocr_text, language, translation_language):
        self.calls.append((ocr_text, language, translation_language))
        if not self.cards and self.notifier is not None:
            self.notifier.error(self.message)
        return self.cards


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db():
    Base.metadata.create_all(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


def make_user(db, email="learner@example.com", username="learner") -> User:
    entity = User(email=email, username=username, password_hash=hash_password("Password123!"))
    db.add(entity)
    db.commit()
    db.refresh(entity)
    return entity


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def other_user(db):
    return make_user(db, email="someone@example.com", username="someone")


@pytest.fixture
def session(user):
    return AuthSession(user_id=user.id, email=user.email)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def flashcards(db, notifier):
    return FlashcardService(db, notifier)


@pytest.fixture
def app():
    from main import app as fastapi_app

    fastapi_app.state.wizards = UserStateStore()
    fastapi_app.state.study_sessions = UserStateStore()
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def fake_ocr():
    return FakeOcrEngine(detections=[(None, "el perro", 0.9), (None, "the dog", 0.8)])


@pytest.fixture
def fake_ai():
    return FakeAiService(cards=[ProcessedCard(front="el perro", back="the dog")])


@pytest.fixture
def client(app, db, session, fake_ocr, fake_ai):
    def _ai_service(notifier: Notifier = Depends(get_notifier)):
        fake_ai.notifier = notifier
        return fake_ai

    app.dependency_overrides[get_auth_session] = lambda: session
    app.dependency_overrides[get_ocr_engine] = lambda: fake_ocr
    app.dependency_overrides[get_ai_service] = _ai_service
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def anonymous_client(app, db):
    with TestClient(app) as test_client:
        yield test_client

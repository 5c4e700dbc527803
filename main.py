import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from core.config import settings
from core.database import init_db
from core.errors import WizardBusy, WizardStateError
from core.logging_config import setup_logging
from core.session import AuthSession
from routers import (
    auth as auth_router,
    decks as decks_router,
    study as study_router,
    wizard as wizard_router,
)
from routers.auth import security
from routers.deps import get_optional_auth_session
from services.ocr_service import EasyOcrEngine
from services.state_store import UserStateStore

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    if settings.AUTO_CREATE_TABLES:
        init_db()
    logger.info("DuoCards started")
    yield
    logger.info("DuoCards stopped")


app = FastAPI(title="DuoCards", lifespan=lifespan)
app.state.wizards = UserStateStore()
app.state.study_sessions = UserStateStore()
app.state.ocr_engine = EasyOcrEngine(settings.ocr_langs)

security.handle_errors(app)
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router)
app.include_router(decks_router.router)
app.include_router(wizard_router.router)
app.include_router(study_router.router)


@app.exception_handler(WizardBusy)
@app.exception_handler(WizardStateError)
async def wizard_conflict(request: Request, exc: WizardBusy | WizardStateError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


def _login_redirect() -> RedirectResponse:
    return RedirectResponse(url="/login", status_code=303)


@app.get("/", response_class=HTMLResponse, name="home_page")
async def home_page(request: Request, session: AuthSession | None = Depends(get_optional_auth_session)):
    return templates.TemplateResponse(request, "home.html", {"signed_in": session is not None})


@app.get("/login", response_class=HTMLResponse, name="login_page")
async def login_page(request: Request):
    return templates.TemplateResponse(request, "auth.html", {"mode": "login"})


@app.get("/register", response_class=HTMLResponse, name="register_page")
async def register_page(request: Request):
    return templates.TemplateResponse(request, "auth.html", {"mode": "register"})


@app.get("/decks", response_class=HTMLResponse, name="decks_page")
async def decks_page(request: Request, session: AuthSession | None = Depends(get_optional_auth_session)):
    if session is None:
        return _login_redirect()
    return templates.TemplateResponse(request, "decks.html", {"signed_in": True})


@app.get("/decks/{deck_id}", response_class=HTMLResponse, name="deck_detail_page")
async def deck_detail_page(
    request: Request,
    deck_id: int,
    session: AuthSession | None = Depends(get_optional_auth_session),
):
    if session is None:
        return _login_redirect()
    return templates.TemplateResponse(request, "deck_detail.html", {"signed_in": True, "deck_id": deck_id})


@app.get("/create", response_class=HTMLResponse, name="create_page")
async def create_page(
    request: Request,
    deck_id: int | None = None,
    session: AuthSession | None = Depends(get_optional_auth_session),
):
    if session is None:
        return _login_redirect()
    return templates.TemplateResponse(request, "create.html", {"signed_in": True, "deck_id": deck_id})


@app.get("/status")
async def status():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("main:app", reload=True, host="127.0.0.1", port=8000)

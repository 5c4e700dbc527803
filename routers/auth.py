import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from authx import AuthX, AuthXConfig, TokenPayload
from core.config import settings
from core.database import SessionLocal, get_db
from schemas.auth import LoginIn, MeOut, RegisterIn, UserOut
from repositories.refresh_token_repo import RefreshTokenRepository
from repositories.user_repo import UserRepository
from services.auth_services import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])

_cookie_samesite = settings.JWT_COOKIE_SAMESITE.lower() if settings.JWT_COOKIE_SAMESITE else None
_cookie_domain = settings.JWT_COOKIE_DOMAIN or None

config = AuthXConfig(
    JWT_SECRET_KEY=settings.SECRET_KEY,
    JWT_ALGORITHM=settings.JWT_ALG,
    JWT_ACCESS_TOKEN_EXPIRES=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    JWT_REFRESH_TOKEN_EXPIRES=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    JWT_TOKEN_LOCATION=["cookies"],
    JWT_ACCESS_COOKIE_NAME=settings.JWT_ACCESS_COOKIE_NAME,
    JWT_REFRESH_COOKIE_NAME=settings.JWT_REFRESH_COOKIE_NAME,
    JWT_COOKIE_SAMESITE=_cookie_samesite or "lax",
    JWT_COOKIE_SECURE=settings.JWT_COOKIE_SECURE,
    JWT_COOKIE_DOMAIN=_cookie_domain,
    JWT_COOKIE_CSRF_PROTECT=settings.JWT_COOKIE_CSRF_PROTECT,
)

security = AuthX(config=config)


def decode_token(token: str) -> TokenPayload:
    return TokenPayload.decode(
        token=token,
        key=security.config.public_key,
        algorithms=[security.config.JWT_ALGORITHM],
    )


def _exp_to_datetime(exp_value: float | int | datetime) -> datetime:
    if isinstance(exp_value, datetime):
        return exp_value if exp_value.tzinfo else exp_value.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(exp_value, tz=timezone.utc)


def _ensure_refresh_metadata(payload: TokenPayload) -> tuple[str, datetime]:
    if payload.jti is None:
        raise ValueError("Refresh token does not contain jti")
    if payload.exp is None:
        raise ValueError("Refresh token missing expiry")
    return payload.jti, _exp_to_datetime(payload.exp)


def _is_token_revoked(token: str, **_: Any) -> bool:
    try:
        payload = decode_token(token)
    except Exception:
        return True

    if payload.type != "refresh" or payload.jti is None:
        return False

    db = SessionLocal()
    try:
        return not RefreshTokenRepository(db).is_active(payload.jti)
    finally:
        db.close()


security.set_token_blocklist(_is_token_revoked)


def _issue_tokens(response: Response, repo: RefreshTokenRepository, user_id: int, *, rotate: bool) -> None:
    access_token = security.create_access_token(uid=str(user_id))
    refresh_token = security.create_refresh_token(uid=str(user_id))

    jti, expires_at = _ensure_refresh_metadata(decode_token(refresh_token))
    if rotate:
        repo.add(user_id=user_id, jti=jti, expires_at=expires_at)
    else:
        repo.replace_for_user(user_id=user_id, jti=jti, expires_at=expires_at)

    security.set_access_cookies(access_token, response)
    security.set_refresh_cookies(refresh_token, response)


def _teardown_user_state(request: Request, user_id: int) -> None:
    # wizard and study progress belong to the signed-in session
    request.app.state.wizards.pop(user_id)
    request.app.state.study_sessions.pop(user_id)


@router.post("/register", response_model=UserOut)
async def post_reg(data: RegisterIn, db: Session = Depends(get_db)):
    svc = AuthService(db)
    user = svc.register(email=data.email, username=data.username, password=data.password)
    return UserOut(id=user.id, email=user.email, username=user.username)


@router.post("/login")
async def post_login(response: Response, data: LoginIn, db: Session = Depends(get_db)):
    svc = AuthService(db)
    user = svc.login(email=data.email, password=data.password)
    _issue_tokens(response, RefreshTokenRepository(db), user.id, rotate=False)
    logger.info("User %s signed in", user.id)
    return {"status": "ok"}


@router.get("/me", response_model=MeOut)
async def me(
    payload: TokenPayload = Depends(security.access_token_required),
    db: Session = Depends(get_db),
):
    try:
        user_id = int(payload.sub)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid subject in token") from exc
    user = UserRepository(db).get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User no longer exists")
    return MeOut(user_id=user.id, email=user.email, username=user.username)


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    payload: TokenPayload = Depends(security.refresh_token_required),
    db: Session = Depends(get_db),
):
    repo = RefreshTokenRepository(db)
    try:
        user_id = int(payload.sub)
    except (TypeError, ValueError):
        user_id = None

    if user_id is not None:
        repo.revoke_all_for_user(user_id)
        _teardown_user_state(request, user_id)
    elif payload.jti:
        repo.revoke(payload.jti)

    security.unset_cookies(response)
    cookie_kwargs = {
        "path": "/",
        "domain": _cookie_domain,
        "httponly": True,
        "samesite": _cookie_samesite or "lax",
        "secure": settings.JWT_COOKIE_SECURE,
    }
    csrf_kwargs = {**cookie_kwargs, "httponly": False}

    for name in {settings.JWT_ACCESS_COOKIE_NAME, settings.JWT_REFRESH_COOKIE_NAME}:
        response.delete_cookie(name, **cookie_kwargs)
    for name in {security.config.JWT_ACCESS_CSRF_COOKIE_NAME, security.config.JWT_REFRESH_CSRF_COOKIE_NAME}:
        response.delete_cookie(name, **csrf_kwargs)
    return {"ok": True}


@router.post("/refresh")
async def refresh(
    response: Response,
    payload: TokenPayload = Depends(security.refresh_token_required),
    db: Session = Depends(get_db),
):
    try:
        user_id = int(payload.sub)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid subject in token") from exc

    if payload.jti is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token missing identifier")

    repo = RefreshTokenRepository(db)
    try:
        repo.assert_active(jti=payload.jti, user_id=user_id)
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    repo.revoke(payload.jti)
    _issue_tokens(response, repo, user_id, rotate=True)
    return {"status": "ok"}

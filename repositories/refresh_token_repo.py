from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from models.refresh_token import RefreshToken, utcnow


class RefreshTokenRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, *, user_id: int, jti: str, expires_at: datetime) -> RefreshToken:
        token = RefreshToken(user_id=user_id, jti=jti, expires_at=expires_at)
        self.db.add(token)
        self.db.commit()
        self.db.refresh(token)
        return token

    def replace_for_user(self, *, user_id: int, jti: str, expires_at: datetime) -> RefreshToken:
        self.db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        self.db.commit()
        return self.add(user_id=user_id, jti=jti, expires_at=expires_at)

    def get_by_jti(self, jti: str) -> RefreshToken | None:
        return self.db.execute(select(RefreshToken).where(RefreshToken.jti == jti)).scalar_one_or_none()

    def revoke(self, jti: str) -> None:
        token = self.get_by_jti(jti)
        if token:
            token.mark_revoked()
            self.db.commit()

    def revoke_all_for_user(self, user_id: int) -> None:
        self.db.execute(
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True, revoked_at=utcnow())
        )
        self.db.commit()

    def is_active(self, jti: str) -> bool:
        token = self.get_by_jti(jti)
        if token is None or token.revoked:
            return False
        if token.is_expired():
            token.mark_revoked()
            self.db.commit()
            return False
        return True

    def assert_active(self, *, jti: str, user_id: int) -> RefreshToken:
        token = self.get_by_jti(jti)
        if not token or token.user_id != user_id:
            raise PermissionError("Refresh token is not registered")
        if token.revoked:
            raise PermissionError("Refresh token has been revoked")
        if token.is_expired():
            token.mark_revoked()
            self.db.commit()
            raise PermissionError("Refresh token has expired")
        return token

"""Password hashing and signed session tokens."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict

import jwt
from passlib.context import CryptContext

from .access import ROLE_LEVELS
from .errors import InvalidToken

ALGORITHM = "HS256"

# Use PBKDF2-SHA256 instead of bcrypt to avoid bcrypt backend issues
password_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return password_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against the stored hash."""
    return password_context.verify(password, password_hash)


@dataclass(frozen=True)
class Principal:
    """The identity and role carried by a verified token."""

    user_id: int
    role: str


class TokenService:
    """Issues and verifies HS256 session tokens.

    Tokens carry the user id in ``sub`` and the role in ``role``. They expire
    after ``expires_minutes`` and cannot be refreshed.
    """

    def __init__(self, secret_key: str, expires_minutes: int = 60 * 24) -> None:
        self.secret_key = secret_key
        self.expires_minutes = expires_minutes

    def issue(self, user_id: int, role: str) -> tuple[str, datetime]:
        """Return a signed token and its expiry for the given identity."""

        issued_at = datetime.utcnow()
        expires_at = issued_at + timedelta(minutes=self.expires_minutes)
        payload: Dict[str, Any] = {
            "sub": str(user_id),
            "role": role,
            "iat": int(_epoch(issued_at)),
            "exp": int(_epoch(expires_at)),
        }
        return jwt.encode(payload, self.secret_key, algorithm=ALGORITHM), expires_at

    def verify(self, token: str) -> Principal:
        """Decode a token, raising InvalidToken for anything unusable."""

        try:
            payload: Dict[str, Any] = jwt.decode(
                token,
                self.secret_key,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidToken() from exc

        role = payload.get("role")
        if role not in ROLE_LEVELS:
            raise InvalidToken()
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidToken() from exc
        return Principal(user_id=user_id, role=role)


def _epoch(moment: datetime) -> float:
    # Naive UTC datetimes throughout; `timestamp()` would assume local time.
    return (moment - datetime(1970, 1, 1)).total_seconds()

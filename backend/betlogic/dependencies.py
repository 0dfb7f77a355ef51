"""Reusable FastAPI dependencies."""
from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .access import authorize, may_access_owned
from .config import Settings
from .errors import AuthError, ForbiddenError
from .mailer import Mailer
from .models import User
from .models.user import ROLE_ADMIN, ROLE_SUPERADMIN, STATUS_DEACTIVATED
from .security import Principal, TokenService

# Use simple Bearer auth instead of OAuth2 password flow
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an AsyncSession from the app's database."""
    async for session in request.app.state.db.session():
        yield session


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
    session: AsyncSession = Depends(get_db_session),
) -> Principal:
    """
    Return the identity and role of the user behind the JWT access token
    taken from the Authorization: Bearer <token> header.

    The role is read from the stored user so that demotions and
    deactivations apply to tokens that are already issued.
    """

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("No token provided")

    claims = tokens.verify(credentials.credentials)
    user = await session.get(User, claims.user_id)
    if user is None or user.status == STATUS_DEACTIVATED:
        raise AuthError("Inactive or missing user")

    return Principal(user_id=user.id, role=user.role)


def require_level(principal: Principal, level: str) -> None:
    """Raise if the principal's role is below `level`."""

    if not authorize(principal.role, level):
        if level == ROLE_SUPERADMIN:
            raise ForbiddenError("Forbidden: Superadmin only")
        raise ForbiddenError("Forbidden: Admins only")


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Ensure the current user has at least the admin role."""

    require_level(principal, ROLE_ADMIN)
    return principal


async def require_superadmin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    require_level(principal, ROLE_SUPERADMIN)
    return principal


def ensure_owner_or_admin(principal: Principal, owner_id: int, what: str = "resource") -> None:
    """Raise unless the principal owns the row or is an admin."""

    if not may_access_owned(principal, owner_id):
        raise ForbiddenError(f"Not your {what}")

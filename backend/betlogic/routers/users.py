"""Profile endpoints for the signed-in user."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_current_principal, get_db_session
from ..errors import NotFoundError
from ..models import User
from ..schemas import ProfilePatch, UserDetail, UserEnvelope
from ..security import Principal

router = APIRouter(prefix="/users", tags=["users"])


async def load_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/me", response_model=UserDetail)
async def read_me(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """Return the profile of the authenticated user."""

    return await load_user(session, principal.user_id)


@router.patch("/me", response_model=UserEnvelope)
async def update_me(
    patch: ProfilePatch,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    """Update name, phone or address of the authenticated user."""

    user = await load_user(session, principal.user_id)
    changes = patch.changes()
    if not changes:
        return UserEnvelope(message="No changes", user=UserDetail.model_validate(user))

    for field, value in changes.items():
        setattr(user, field, value)
    await session.commit()
    await session.refresh(user)
    return UserEnvelope(message="Profile updated", user=UserDetail.model_validate(user))

"""Bet tracking endpoints with the same ownership rules as tasks."""
import datetime as dt
from decimal import Decimal
from typing import Sequence

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..access import is_admin
from ..dependencies import ensure_owner_or_admin, get_current_principal, get_db_session
from ..errors import NotFoundError, ValidationError
from ..models import Bet, User
from ..schemas import BetCreate, BetEnvelope, BetPatch, BetRead
from ..security import Principal

router = APIRouter(prefix="/bets", tags=["bets"])


async def select_bets(session: AsyncSession, user_id: int | None = None) -> Sequence[Bet]:
    stmt = select(Bet).order_by(Bet.id.desc())
    if user_id is not None:
        stmt = stmt.where(Bet.user_id == user_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def insert_bet(session: AsyncSession, owner_id: int, payload: BetCreate) -> Bet:
    if await session.get(User, owner_id) is None:
        raise NotFoundError("User not found")

    bet = Bet(
        user_id=owner_id,
        date=payload.date or dt.date.today(),
        matchup=payload.matchup or "",
        amount=payload.amount or Decimal("0.00"),
        result=payload.result or "Open",
        profit=payload.profit or Decimal("0.00"),
    )
    session.add(bet)
    await session.commit()
    await session.refresh(bet)
    return bet


@router.get("", response_model=list[BetRead])
async def list_bets(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[Bet]:
    if is_admin(principal.role):
        return await select_bets(session)
    return await select_bets(session, principal.user_id)


@router.post("", response_model=BetEnvelope)
async def create_bet(
    payload: BetCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> BetEnvelope:
    """Log a bet for yourself, or for `user_id` when you are an admin."""

    owner_id = principal.user_id
    if is_admin(principal.role) and payload.user_id:
        owner_id = payload.user_id
    bet = await insert_bet(session, owner_id, payload)
    return BetEnvelope(message="Bet created", bet=BetRead.model_validate(bet))


@router.patch("/{bet_id}", response_model=BetEnvelope)
async def update_bet(
    bet_id: int,
    patch: BetPatch,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> BetEnvelope:
    bet = await session.get(Bet, bet_id)
    if bet is None:
        raise NotFoundError("Bet not found")
    ensure_owner_or_admin(principal, bet.user_id, "bet")

    changes = patch.changes()
    if not changes:
        return BetEnvelope(message="No changes", bet=BetRead.model_validate(bet))

    for field, value in changes.items():
        if value is None:
            if field not in ("amount", "profit"):
                raise ValidationError(f"{field} may not be empty")
            value = Decimal("0.00")
        setattr(bet, field, value)
    await session.commit()
    await session.refresh(bet)
    return BetEnvelope(message="Bet updated", bet=BetRead.model_validate(bet))

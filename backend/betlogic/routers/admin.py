"""Administrative endpoints: users, finances, promotions, tasks and bets."""
import logging
from typing import Sequence

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..access import ROLE_LEVELS
from ..dependencies import get_db_session, require_admin, require_superadmin
from ..errors import ValidationError
from ..models import Bet, Promotion, Task, Transaction, User
from ..models.user import STATUS_DEACTIVATED
from ..schemas import (
    AdminUserPatch,
    BetCreate,
    BetEnvelope,
    BetRead,
    DeactivateRequest,
    PromotionCreate,
    PromotionEnvelope,
    PromotionPatch,
    PromotionRead,
    RoleChangeRequest,
    TaskCreate,
    TaskEnvelope,
    TaskRead,
    TransactionCreate,
    TransactionEnvelope,
    TransactionPatch,
    TransactionRead,
    UserDetail,
    UserEnvelope,
)
from ..security import Principal
from ..services import LedgerEngine, PromotionCatalog
from .bets import insert_bet, select_bets
from .tasks import insert_task, select_tasks
from .users import load_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@router.get("/users", response_model=list[UserDetail])
async def list_users(
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[User]:
    result = await session.execute(select(User).order_by(User.id))
    return list(result.scalars().all())


@router.post("/users/promote", response_model=UserEnvelope)
async def change_role(
    payload: RoleChangeRequest,
    principal: Principal = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    """Change a user's role (superadmin only)."""

    if not payload.user_id or not payload.new_role:
        raise ValidationError("Missing userId or newRole")
    if payload.new_role not in ROLE_LEVELS:
        raise ValidationError(f"Unknown role: {payload.new_role}")

    user = await load_user(session, payload.user_id)
    user.role = payload.new_role
    await session.commit()
    await session.refresh(user)
    logger.info("User %s set role of user %s to %s", principal.user_id, user.id, user.role)
    return UserEnvelope(message="User promoted/role changed", user=UserDetail.model_validate(user))


@router.post("/users/deactivate", response_model=UserEnvelope)
async def deactivate_user(
    payload: DeactivateRequest,
    principal: Principal = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    if not payload.user_id:
        raise ValidationError("Missing userId")

    user = await load_user(session, payload.user_id)
    user.status = STATUS_DEACTIVATED
    await session.commit()
    await session.refresh(user)
    logger.info("User %s deactivated user %s", principal.user_id, user.id)
    return UserEnvelope(message="User deactivated", user=UserDetail.model_validate(user))


@router.patch("/users/{user_id}", response_model=UserEnvelope)
async def edit_user(
    user_id: int,
    patch: AdminUserPatch,
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    """Edit a user's contact and payout details."""

    user = await load_user(session, user_id)
    changes = patch.changes()
    if not changes:
        return UserEnvelope(message="No changes", user=UserDetail.model_validate(user))

    for field, value in changes.items():
        setattr(user, field, value)
    await session.commit()
    await session.refresh(user)
    return UserEnvelope(message="User updated", user=UserDetail.model_validate(user))


# ---------------------------------------------------------------------------
# Finances
# ---------------------------------------------------------------------------
@router.get("/finances", response_model=list[TransactionRead])
async def list_all_transactions(
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[Transaction]:
    return await LedgerEngine(session).list_transactions(principal)


@router.post("/finances", response_model=TransactionEnvelope)
async def create_transaction_for_user(
    payload: TransactionCreate,
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> TransactionEnvelope:
    """Record a transaction on behalf of any user."""

    if not payload.user_id:
        raise ValidationError("Missing user_id")
    await load_user(session, payload.user_id)

    transaction = await LedgerEngine(session).create_transaction(
        owner_id=payload.user_id,
        from_account=payload.from_account,
        to_account=payload.to_account,
        amount=payload.amount,
        type=payload.type,
        description=payload.description,
        status=payload.status,
        restrict_to_owner=False,
    )
    return TransactionEnvelope(
        message="Transaction created by admin",
        transaction=TransactionRead.model_validate(transaction),
    )


@router.patch("/finances/{transaction_id}", response_model=TransactionEnvelope)
async def amend_transaction(
    transaction_id: int,
    patch: TransactionPatch,
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> TransactionEnvelope:
    """Override or confirm a transaction."""

    transaction, changed = await LedgerEngine(session).update_transaction(transaction_id, patch)
    return TransactionEnvelope(
        message="Transaction updated by admin" if changed else "No changes",
        transaction=TransactionRead.model_validate(transaction),
    )


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------
@router.get("/promotions", response_model=list[PromotionRead])
async def list_all_promotions(
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[Promotion]:
    return await PromotionCatalog(session).list_promotions(principal, include_archived=True)


@router.post("/promotions", response_model=PromotionEnvelope)
async def create_promotion(
    payload: PromotionCreate,
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> PromotionEnvelope:
    promotion = await PromotionCatalog(session).create_promotion(payload)
    return PromotionEnvelope(
        message="Promotion created by admin", promotion=PromotionRead.model_validate(promotion)
    )


@router.patch("/promotions/{promotion_id}", response_model=PromotionEnvelope)
async def edit_promotion(
    promotion_id: int,
    patch: PromotionPatch,
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> PromotionEnvelope:
    promotion, changed = await PromotionCatalog(session).update_promotion(promotion_id, patch)
    return PromotionEnvelope(
        message="Promotion updated by admin" if changed else "No changes",
        promotion=PromotionRead.model_validate(promotion),
    )


# ---------------------------------------------------------------------------
# Tasks and bets
# ---------------------------------------------------------------------------
@router.get("/tasks", response_model=list[TaskRead])
async def list_all_tasks(
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[Task]:
    return await select_tasks(session)


@router.post("/tasks", response_model=TaskEnvelope)
async def create_task_for_user(
    payload: TaskCreate,
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> TaskEnvelope:
    if not payload.user_id or not payload.title:
        raise ValidationError("Missing user_id or title")
    task = await insert_task(session, payload.user_id, principal.user_id, payload)
    return TaskEnvelope(message="Task created by admin", task=TaskRead.model_validate(task))


@router.get("/bets", response_model=list[BetRead])
async def list_all_bets(
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[Bet]:
    return await select_bets(session)


@router.post("/bets", response_model=BetEnvelope)
async def create_bet_for_user(
    payload: BetCreate,
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> BetEnvelope:
    if not payload.user_id or payload.amount is None:
        raise ValidationError("Missing user_id or amount")
    bet = await insert_bet(session, payload.user_id, payload)
    return BetEnvelope(message="Bet created by admin", bet=BetRead.model_validate(bet))

"""Owner-scoped account and transaction endpoints."""
from typing import Sequence

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..access import is_admin
from ..dependencies import (
    ensure_owner_or_admin,
    get_current_principal,
    get_db_session,
    require_admin,
)
from ..models import Account, Transaction
from ..schemas import (
    AccountCreate,
    AccountEnvelope,
    AccountRead,
    FinanceOverview,
    TransactionCreate,
    TransactionEnvelope,
    TransactionRead,
    UserRead,
    UserTransactions,
)
from ..security import Principal
from ..services import LedgerEngine
from .users import load_user

router = APIRouter(prefix="/finances", tags=["finances"])


@router.get("/accounts", response_model=list[AccountRead])
async def list_accounts(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[Account]:
    """Return the caller's accounts (every account for admins)."""

    return await LedgerEngine(session).list_accounts(principal)


@router.post("/accounts", response_model=AccountEnvelope)
async def create_account(
    payload: AccountCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> AccountEnvelope:
    """Open a new zero-balance account for the caller."""

    account = await LedgerEngine(session).create_account(principal.user_id, payload.name)
    return AccountEnvelope(message="Account created", account=AccountRead.model_validate(account))


@router.get("/transactions", response_model=list[TransactionRead])
async def list_transactions(
    user_id: int | None = None,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> Sequence[Transaction]:
    return await LedgerEngine(session).list_transactions(principal, user_id)


@router.post("/transactions", response_model=TransactionEnvelope)
async def create_transaction(
    payload: TransactionCreate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> TransactionEnvelope:
    """Record a transfer between two of the caller's accounts.

    Admins may move money between any accounts; the transaction then belongs
    to `user_id` or, when that is omitted, to the source account's owner.
    """

    admin = is_admin(principal.role)
    if admin and payload.user_id:
        await load_user(session, payload.user_id)
    transaction = await LedgerEngine(session).create_transaction(
        owner_id=(payload.user_id if admin else principal.user_id),
        from_account=payload.from_account,
        to_account=payload.to_account,
        amount=payload.amount,
        type=payload.type,
        description=payload.description,
        status=payload.status,
        restrict_to_owner=not admin,
    )
    return TransactionEnvelope(
        message="Transaction created",
        transaction=TransactionRead.model_validate(transaction),
    )


@router.get("/user/{user_id}", response_model=UserTransactions)
async def user_transactions(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> UserTransactions:
    ensure_owner_or_admin(principal, user_id, "transactions")
    user = await load_user(session, user_id)
    transactions = await LedgerEngine(session).list_transactions(principal, user_id)
    return UserTransactions(
        user=UserRead.model_validate(user),
        transactions=[TransactionRead.model_validate(t) for t in transactions],
    )


@router.get("/overview", response_model=FinanceOverview)
async def overview(
    _: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
) -> FinanceOverview:
    """Company-wide confirmed deposits, withdrawals and net balance."""

    totals = await LedgerEngine(session).overview()
    return FinanceOverview(**totals)

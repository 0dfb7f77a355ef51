"""
Ledger engine: accounts, transactions and balance mutation.

Balances only move when a transaction is (or becomes) Confirmed. The debit,
the credit and the transaction record are written in one database
transaction with both account rows locked, so no reader can observe a
Confirmed transaction whose balances are not applied, or the reverse.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..access import is_admin
from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models import Account, Transaction
from ..models.ledger import DEFAULT_TRANSACTION_TYPE, STATUS_CONFIRMED, STATUS_PENDING
from ..schemas import TransactionPatch
from ..security import Principal
from .unit_of_work import atomic

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def parse_amount(value: Any) -> Decimal:
    """Return `value` as a positive two-place Decimal or raise ValidationError."""

    if value is None or value == "":
        raise ValidationError("Missing amount")
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError("Amount must be a decimal number") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    if amount.as_tuple().exponent < -2:
        raise ValidationError("Amount may have at most 2 decimal places")
    return amount.quantize(CENT)


class LedgerEngine:
    """Account and transaction operations bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    async def create_account(self, owner_id: int, name: str | None) -> Account:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Missing account name")

        account = Account(user_id=owner_id, name=name, balance=Decimal("0.00"))
        async with atomic(self.session, "Account creation"):
            self.session.add(account)
        await self.session.refresh(account)
        logger.info("Account %s (%r) created for user %s", account.id, name, owner_id)
        return account

    async def list_accounts(self, principal: Principal) -> Sequence[Account]:
        """Accounts owned by the caller, or every account for admins."""

        stmt = select(Account).order_by(Account.id)
        if not is_admin(principal.role):
            stmt = stmt.where(Account.user_id == principal.user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_account(self, account_id: int) -> Account:
        account = await self.session.get(Account, account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    async def _lock_accounts(self, *account_ids: int) -> dict[int, Account]:
        # Ascending id order so two transfers over the same pair never deadlock.
        result = await self.session.execute(
            select(Account)
            .where(Account.id.in_(account_ids))
            .order_by(Account.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        accounts = {account.id: account for account in result.scalars()}
        for account_id in account_ids:
            if account_id not in accounts:
                raise NotFoundError(f"Account {account_id} not found")
        return accounts

    async def _apply_transfer(self, transaction: Transaction) -> None:
        """Debit the source and credit the destination of `transaction`."""

        amount = transaction.amount
        await self.session.execute(
            update(Account)
            .where(Account.id == transaction.from_account)
            .values(balance=Account.balance - amount)
        )
        await self.session.execute(
            update(Account)
            .where(Account.id == transaction.to_account)
            .values(balance=Account.balance + amount)
        )
        logger.info(
            "Applied %s from account %s to account %s",
            amount,
            transaction.from_account,
            transaction.to_account,
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    async def create_transaction(
        self,
        owner_id: int | None,
        from_account: int | None,
        to_account: int | None,
        amount: Any,
        type: str | None = None,
        description: str | None = None,
        status: str | None = None,
        restrict_to_owner: bool = True,
    ) -> Transaction:
        """Record a transfer, applying balances when it is Confirmed.

        With `restrict_to_owner` the owner must hold both accounts. Without an
        `owner_id` the transaction belongs to the owner of the source account.
        """

        if from_account is None or to_account is None:
            raise ValidationError("Missing from_account or to_account")
        value = parse_amount(amount)
        if from_account == to_account:
            raise ValidationError("from_account and to_account must differ")

        async with atomic(self.session, "Transaction"):
            accounts = await self._lock_accounts(from_account, to_account)
            if restrict_to_owner and any(a.user_id != owner_id for a in accounts.values()):
                raise ForbiddenError("Not your account")
            if owner_id is None:
                owner_id = accounts[from_account].user_id

            transaction = Transaction(
                user_id=owner_id,
                from_account=from_account,
                to_account=to_account,
                amount=value,
                type=type or DEFAULT_TRANSACTION_TYPE,
                description=description,
                status=status or STATUS_PENDING,
            )
            self.session.add(transaction)
            await self.session.flush()
            if transaction.is_confirmed:
                await self._apply_transfer(transaction)

        await self.session.refresh(transaction)
        logger.info(
            "Transaction %s recorded for user %s with status %s",
            transaction.id,
            owner_id,
            transaction.status,
        )
        return transaction

    async def update_transaction(
        self, transaction_id: int, patch: TransactionPatch
    ) -> tuple[Transaction, bool]:
        """Amend a transaction; returns it and whether anything changed.

        Moving into Confirmed applies the balances exactly once. A Confirmed
        transaction keeps its amount and status.
        """

        changes = patch.changes()
        async with atomic(self.session, "Transaction update"):
            result = await self.session.execute(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            transaction = result.scalar_one_or_none()
            if transaction is None:
                raise NotFoundError("Transaction not found")
            if not changes:
                return transaction, False

            if "amount" in changes:
                changes["amount"] = parse_amount(changes["amount"])
            for field in ("type", "status"):
                if field in changes and not changes[field]:
                    raise ValidationError(f"{field} may not be empty")

            was_confirmed = transaction.is_confirmed
            if was_confirmed:
                if changes.get("status", STATUS_CONFIRMED) != STATUS_CONFIRMED:
                    raise ValidationError("A confirmed transaction cannot change status")
                if changes.get("amount", transaction.amount) != transaction.amount:
                    raise ValidationError("A confirmed transaction cannot change amount")

            for field, value in changes.items():
                setattr(transaction, field, value)

            if not was_confirmed and transaction.is_confirmed:
                await self._lock_accounts(transaction.from_account, transaction.to_account)
                await self._apply_transfer(transaction)
            await self.session.flush()

        await self.session.refresh(transaction)
        logger.info("Transaction %s updated: %s", transaction_id, sorted(changes))
        return transaction, True

    async def list_transactions(
        self, principal: Principal, user_id: int | None = None
    ) -> Sequence[Transaction]:
        """Newest first; admins may filter by user, others only see their own."""

        stmt = select(Transaction).order_by(Transaction.id.desc())
        if is_admin(principal.role):
            if user_id is not None:
                stmt = stmt.where(Transaction.user_id == user_id)
        else:
            if user_id is not None and user_id != principal.user_id:
                raise ForbiddenError("Not your transactions")
            stmt = stmt.where(Transaction.user_id == principal.user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def overview(self) -> dict[str, Decimal]:
        """Totals of confirmed deposits and withdrawals."""

        async def total(kind: str) -> Decimal:
            result = await self.session.execute(
                select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                    func.lower(Transaction.type) == kind,
                    Transaction.status == STATUS_CONFIRMED,
                )
            )
            return Decimal(str(result.scalar_one())).quantize(CENT)

        deposits = await total("deposit")
        withdrawals = await total("withdrawal")
        return {
            "total_deposits": deposits,
            "total_withdrawals": withdrawals,
            "net_balance": deposits - withdrawals,
        }

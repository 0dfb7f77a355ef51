"""Accounts and the transactions that move money between them."""
import datetime as dt
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, OwnedMixin, TimestampMixin

STATUS_PENDING = "Pending"
STATUS_CONFIRMED = "Confirmed"

DEFAULT_TRANSACTION_TYPE = "Deposit"


class Account(OwnedMixin, TimestampMixin, Base):
    """A named balance belonging to one user.

    The balance only ever moves through confirmed transactions.
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))


class Transaction(OwnedMixin, TimestampMixin, Base):
    """A transfer of `amount` from one account to another."""

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    from_account: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=False, index=True
    )
    to_account: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, default=dt.date.today)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    type: Mapped[str] = mapped_column(String(50), default=DEFAULT_TRANSACTION_TYPE)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default=STATUS_PENDING)

    @property
    def is_confirmed(self) -> bool:
        return self.status == STATUS_CONFIRMED

"""Tasks and bets tracked per user."""
import datetime as dt
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, OwnedMixin, TimestampMixin


class Task(OwnedMixin, TimestampMixin, Base):
    """A to-do item assigned to `user_id` by `created_by`."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="todo")
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


class Bet(OwnedMixin, TimestampMixin, Base):
    """A wager and its outcome."""

    __tablename__ = "bets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, default=dt.date.today)
    matchup: Mapped[str] = mapped_column(String(255), default="")
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))
    result: Mapped[str] = mapped_column(String(50), default="Open")
    profit: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))

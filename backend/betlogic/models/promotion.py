"""Promotions, their steps, assignments and per-user progress."""
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, OwnedMixin, TimestampMixin

STATUS_ACTIVE = "active"
STATUS_ARCHIVED = "archived"


class Promotion(TimestampMixin, Base):
    """A sportsbook offer made of numbered steps."""

    __tablename__ = "promotions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    sportsbook_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(50), default=STATUS_ACTIVE)

    steps: Mapped[list["PromotionStep"]] = relationship(
        back_populates="promotion",
        order_by="PromotionStep.step_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class PromotionStep(Base):
    __tablename__ = "promotion_steps"

    __table_args__ = (
        UniqueConstraint("promotion_id", "step_number", name="uq_promotion_steps_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    promotion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("promotions.id", ondelete="CASCADE"), index=True
    )
    step_number: Mapped[int] = mapped_column(Integer)
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    promotion: Mapped[Promotion] = relationship(back_populates="steps")


class PromotionAssignment(OwnedMixin, Base):
    """Grants a user access to view and progress a promotion."""

    __tablename__ = "promotion_assignments"

    __table_args__ = (
        UniqueConstraint("user_id", "promotion_id", name="uq_promotion_assignments_user_promo"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    promotion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("promotions.id", ondelete="CASCADE"), index=True
    )
    assigned_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class UserPromotionProgress(OwnedMixin, Base):
    """One row per (user, promotion) holding the completed step numbers."""

    __tablename__ = "user_promotion_progress"

    __table_args__ = (
        UniqueConstraint("user_id", "promotion_id", name="uq_user_promotion_progress_user_promo"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    promotion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("promotions.id", ondelete="CASCADE"), index=True
    )
    completed_steps: Mapped[list[int]] = mapped_column(JSON, default=list)
    progress_pct: Mapped[int] = mapped_column(Integer, default=0)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

"""User accounts, credentials and one-time tokens."""
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_SUPERADMIN = "superadmin"

STATUS_PENDING = "pendingVerification"
STATUS_ACTIVE = "active"
STATUS_DEACTIVATED = "deactivated"


class User(TimestampMixin, Base):
    """Application user identified by a unique email address."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    paypal_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(String(50), default=ROLE_USER)
    status: Mapped[str] = mapped_column(String(50), default=STATUS_PENDING)
    verification_token: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    reset_token: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

"""Pydantic schemas used across the backend API."""
import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, EmailStr, Field

# Request bodies accept both the camelCase names the web client sends and
# the snake_case column names.
REQUEST_CONFIG = {"populate_by_name": True, "extra": "ignore"}
READ_CONFIG = {"from_attributes": True}


class PatchModel(BaseModel):
    """Base for partial updates: only explicitly supplied fields count."""

    model_config = REQUEST_CONFIG

    def changes(self) -> dict[str, Any]:
        """Return the supplied fields keyed by attribute name."""

        return self.model_dump(exclude_unset=True)


class Message(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Auth and users
# ---------------------------------------------------------------------------
class RegisterRequest(BaseModel):
    """Payload for user registration."""

    model_config = REQUEST_CONFIG

    email: EmailStr | None = None
    password: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")


class LoginRequest(BaseModel):
    """Credentials supplied during login."""

    model_config = REQUEST_CONFIG

    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(BaseModel):
    model_config = REQUEST_CONFIG

    email: str | None = None


class ResetPasswordRequest(BaseModel):
    model_config = REQUEST_CONFIG

    token: str | None = None
    new_password: str | None = Field(default=None, alias="newPassword")


class LoginResponse(BaseModel):
    """JWT response payload."""

    model_config = {"populate_by_name": True}

    message: str
    token: str
    token_type: str = "bearer"
    role: str
    user_id: int = Field(alias="userId")
    expires_at: dt.datetime


class UserRead(BaseModel):
    """Public representation of a user."""

    model_config = READ_CONFIG

    id: int
    email: str
    role: str
    status: str
    first_name: str | None = None
    last_name: str | None = None


class UserDetail(UserRead):
    phone: str | None = None
    address: str | None = None
    paypal_email: str | None = None
    bank_name: str | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class UserEnvelope(BaseModel):
    message: str
    user: UserDetail


class ProfilePatch(PatchModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    address: str | None = None


class AdminUserPatch(PatchModel):
    first_name: str | None = None
    last_name: str | None = None
    paypal_email: str | None = None
    bank_name: str | None = None


class RoleChangeRequest(BaseModel):
    model_config = REQUEST_CONFIG

    user_id: int | None = Field(default=None, alias="userId")
    new_role: str | None = Field(default=None, alias="newRole")


class DeactivateRequest(BaseModel):
    model_config = REQUEST_CONFIG

    user_id: int | None = Field(default=None, alias="userId")


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
class AccountCreate(BaseModel):
    model_config = REQUEST_CONFIG

    name: str | None = None


class AccountRead(BaseModel):
    model_config = READ_CONFIG

    id: int
    user_id: int
    name: str
    balance: Decimal
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class AccountEnvelope(BaseModel):
    message: str
    account: AccountRead


class TransactionCreate(BaseModel):
    """New transfer between two accounts.

    `user_id` is only honoured on the admin route.
    """

    model_config = REQUEST_CONFIG

    user_id: int | None = None
    from_account: int | None = None
    to_account: int | None = None
    amount: Decimal | None = None
    type: str | None = None
    description: str | None = None
    status: str | None = None


class TransactionPatch(PatchModel):
    amount: Decimal | None = None
    type: str | None = None
    description: str | None = None
    status: str | None = None


class TransactionRead(BaseModel):
    model_config = READ_CONFIG

    id: int
    user_id: int
    from_account: int
    to_account: int
    date: dt.date | None = None
    amount: Decimal
    type: str
    description: str | None = None
    status: str
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class TransactionEnvelope(BaseModel):
    message: str
    transaction: TransactionRead


class UserTransactions(BaseModel):
    """A user's contact details with their transactions, newest first."""

    user: UserRead
    transactions: list[TransactionRead]


class FinanceOverview(BaseModel):
    model_config = {"populate_by_name": True}

    total_deposits: Decimal = Field(alias="totalDeposits")
    total_withdrawals: Decimal = Field(alias="totalWithdrawals")
    net_balance: Decimal = Field(alias="netBalance")


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------
class PromotionStepIn(BaseModel):
    model_config = REQUEST_CONFIG

    step_number: int = Field(ge=1)
    title: str | None = None
    description: str | None = None


class PromotionStepRead(BaseModel):
    model_config = READ_CONFIG

    id: int
    promotion_id: int
    step_number: int
    title: str | None = None
    description: str | None = None


class PromotionCreate(BaseModel):
    model_config = REQUEST_CONFIG

    title: str | None = None
    description: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    start_date: dt.date | None = Field(default=None, alias="startDate")
    end_date: dt.date | None = Field(default=None, alias="endDate")
    sportsbook_name: str | None = Field(default=None, alias="sportsbookName")
    status: str | None = None
    steps: list[PromotionStepIn] | None = None


class PromotionPatch(PatchModel):
    title: str | None = None
    description: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    start_date: dt.date | None = Field(default=None, alias="startDate")
    end_date: dt.date | None = Field(default=None, alias="endDate")
    sportsbook_name: str | None = Field(default=None, alias="sportsbookName")
    status: str | None = None


class PromotionRead(BaseModel):
    model_config = READ_CONFIG

    id: int
    title: str
    description: str | None = None
    image_url: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    sportsbook_name: str | None = None
    status: str


class PromotionEnvelope(BaseModel):
    message: str
    promotion: PromotionRead


class PromotionDetail(BaseModel):
    promotion: PromotionRead
    steps: list[PromotionStepRead]


class AssignmentRequest(BaseModel):
    model_config = REQUEST_CONFIG

    user_id: int | None = Field(default=None, alias="userId")
    promotion_id: int | None = Field(default=None, alias="promotionId")


class AssignmentRead(BaseModel):
    model_config = READ_CONFIG

    id: int
    user_id: int
    promotion_id: int
    assigned_at: dt.datetime | None = None


class AssignmentEnvelope(BaseModel):
    message: str
    assignment: AssignmentRead


class ProgressUpdate(BaseModel):
    """Steps the user has completed; the percentage is derived server side."""

    model_config = REQUEST_CONFIG

    completed_steps: list[int] | None = Field(default=None, alias="completedSteps")


class ProgressRead(BaseModel):
    model_config = READ_CONFIG

    id: int
    user_id: int
    promotion_id: int
    completed_steps: list[int]
    progress_pct: int
    started_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None


class ProgressEnvelope(BaseModel):
    message: str
    progress: ProgressRead


# ---------------------------------------------------------------------------
# Tasks and bets
# ---------------------------------------------------------------------------
class TaskCreate(BaseModel):
    model_config = REQUEST_CONFIG

    user_id: int | None = None
    title: str | None = None
    description: str | None = None
    status: str | None = None


class TaskPatch(PatchModel):
    title: str | None = None
    description: str | None = None
    status: str | None = None


class TaskRead(BaseModel):
    model_config = READ_CONFIG

    id: int
    user_id: int
    title: str
    description: str | None = None
    status: str
    created_by: int | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class TaskEnvelope(BaseModel):
    message: str
    task: TaskRead


class BetCreate(BaseModel):
    model_config = REQUEST_CONFIG

    user_id: int | None = None
    date: dt.date | None = None
    matchup: str | None = None
    amount: Decimal | None = None
    result: str | None = None
    profit: Decimal | None = None


class BetPatch(PatchModel):
    date: dt.date | None = None
    matchup: str | None = None
    amount: Decimal | None = None
    result: str | None = None
    profit: Decimal | None = None


class BetRead(BaseModel):
    model_config = READ_CONFIG

    id: int
    user_id: int
    date: dt.date
    matchup: str
    amount: Decimal
    result: str
    profit: Decimal
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class BetEnvelope(BaseModel):
    message: str
    bet: BetRead

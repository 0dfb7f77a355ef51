"""Authentication routes: registration, verification, login and password reset."""
import logging
import secrets

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .dependencies import get_db_session, get_mailer, get_token_service
from .errors import AuthError, ForbiddenError, ValidationError
from .mailer import Mailer
from .models import User
from .models.user import ROLE_USER, STATUS_ACTIVE, STATUS_DEACTIVATED, STATUS_PENDING
from .schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    Message,
    RegisterRequest,
    ResetPasswordRequest,
    UserDetail,
    UserEnvelope,
)
from .security import TokenService, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def normalize_email(email: str) -> str:
    return email.strip().lower()


def new_one_time_token() -> str:
    return secrets.token_hex(20)


async def find_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


@router.post("/register", response_model=UserEnvelope)
async def register_user(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
) -> UserEnvelope:
    """Create a user pending email verification and send the verification link."""

    if not payload.email or not payload.password:
        raise ValidationError("Missing email or password")

    # Email addresses are unique across the whole system
    if await find_user_by_email(session, payload.email) is not None:
        raise ValidationError("User already exists")

    user = User(
        email=normalize_email(payload.email),
        password_hash=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=ROLE_USER,
        status=STATUS_PENDING,
        verification_token=new_one_time_token(),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ValidationError("User already exists") from exc
    await session.refresh(user)
    logger.info("Registered user %s", user.id)

    await mailer.send_verification(user.email, user.verification_token)
    return UserEnvelope(
        message="User registered. Check your email for verification link.",
        user=UserDetail.model_validate(user),
    )


@router.get("/verify/{token}", response_model=Message)
async def verify_email(token: str, session: AsyncSession = Depends(get_db_session)) -> Message:
    """Activate the account holding `token`; repeating the link is harmless."""

    result = await session.execute(select(User).where(User.verification_token == token))
    user = result.scalar_one_or_none()
    if user is None:
        raise ValidationError("Invalid or expired token")
    if user.status == STATUS_ACTIVE:
        return Message(message="Account already verified.")
    if user.status == STATUS_DEACTIVATED:
        raise ForbiddenError("Account deactivated")

    user.status = STATUS_ACTIVE
    await session.commit()
    logger.info("User %s verified their email", user.id)
    return Message(message="Email verified successfully. You can now log in.")


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> LoginResponse:
    """Authenticate a user and return a JWT access token."""

    if not payload.email or not payload.password:
        raise ValidationError("Missing email or password")

    user = await find_user_by_email(session, payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login attempt")
        raise AuthError("Invalid credentials")
    if user.status == STATUS_DEACTIVATED:
        raise ForbiddenError("Account deactivated")
    if user.status != STATUS_ACTIVE:
        raise ForbiddenError("Please verify your email first.")

    token, expires_at = tokens.issue(user.id, user.role)
    return LoginResponse(
        message="Login successful",
        token=token,
        role=user.role,
        user_id=user.id,
        expires_at=expires_at,
    )


@router.post("/forgot", response_model=Message)
async def forgot_password(
    payload: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
) -> Message:
    """Mail a reset link; the response never reveals whether the email exists."""

    response = Message(message="If that email is registered, a reset link has been sent.")
    if not payload.email:
        return response

    user = await find_user_by_email(session, payload.email)
    if user is None:
        return response

    user.reset_token = new_one_time_token()
    await session.commit()
    await mailer.send_password_reset(user.email, user.reset_token)
    return response


@router.post("/reset", response_model=Message)
async def reset_password(
    payload: ResetPasswordRequest, session: AsyncSession = Depends(get_db_session)
) -> Message:
    if not payload.token or not payload.new_password:
        raise ValidationError("Missing token or newPassword")

    result = await session.execute(select(User).where(User.reset_token == payload.token))
    user = result.scalar_one_or_none()
    if user is None:
        raise ValidationError("Invalid or expired token")

    user.password_hash = hash_password(payload.new_password)
    user.reset_token = None
    await session.commit()
    logger.info("User %s reset their password", user.id)
    return Message(message="Password has been reset. You can now log in.")

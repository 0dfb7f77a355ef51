"""Test fixtures for the backend."""
import itertools
import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("SECRET_KEY", "test-secret")

from betlogic.config import Settings  # noqa: E402
from betlogic.main import create_app  # noqa: E402
from betlogic.models import User  # noqa: E402
from betlogic.models.user import STATUS_ACTIVE  # noqa: E402
from betlogic.security import hash_password  # noqa: E402

TEST_PASSWORD = "secret123"


class RecordingMailer:
    """Stands in for the SMTP mailer and remembers what would have been sent."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send_verification(self, to: str, token: str) -> bool:
        self.sent.append(("verify", to, token))
        return True

    async def send_password_reset(self, to: str, token: str) -> bool:
        self.sent.append(("reset", to, token))
        return True

    def last_token(self, kind: str, to: str) -> str:
        for sent_kind, sent_to, token in reversed(self.sent):
            if sent_kind == kind and sent_to == to:
                return token
        raise AssertionError(f"no {kind} email sent to {to}")


@pytest_asyncio.fixture
async def app(tmp_path):
    """A fresh application backed by its own SQLite file."""

    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test_backend.db'}",
        secret_key="test-secret",
    )
    application = create_app(settings)
    application.state.mailer = RecordingMailer()
    await application.state.db.create_all()
    yield application
    await application.state.db.dispose()


@pytest.fixture
def mailer(app) -> RecordingMailer:
    return app.state.mailer


@pytest_asyncio.fixture
async def client(app) -> AsyncClient:
    """Provide an HTTP client for integration tests."""

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def session(app):
    async with app.state.db.sessionmaker() as session:
        yield session


@pytest.fixture
def make_user(app):
    """Insert an active user directly and return it with bearer headers."""

    counter = itertools.count(1)

    async def _make(role: str = "user", status: str = STATUS_ACTIVE, email: str | None = None):
        async with app.state.db.sessionmaker() as session:
            user = User(
                email=email or f"{role}{next(counter)}@example.com",
                password_hash=hash_password(TEST_PASSWORD),
                role=role,
                status=status,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
        token, _ = app.state.tokens.issue(user.id, user.role)
        return user, {"Authorization": f"Bearer {token}"}

    return _make

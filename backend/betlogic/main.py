"""FastAPI application entry point."""
import logging
from datetime import datetime

from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import router as auth_router
from .config import Settings, configure_logging, get_settings
from .database import Database
from .dependencies import get_db_session
from .errors import register_exception_handlers
from .mailer import Mailer
from .routers.admin import router as admin_router
from .routers.bets import router as bets_router
from .routers.finances import router as finances_router
from .routers.promotions import router as promotions_router
from .routers.tasks import router as tasks_router
from .routers.users import router as users_router
from .security import TokenService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its own database, mailer and token service."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title="BetLogic Backend", version="0.1.0")
    app.state.settings = settings
    app.state.db = Database.from_settings(settings)
    app.state.mailer = Mailer(settings)
    app.state.tokens = TokenService(settings.secret_key, settings.access_token_expires_minutes)

    register_exception_handlers(app)
    for router in (
        auth_router,
        users_router,
        finances_router,
        promotions_router,
        tasks_router,
        bets_router,
        admin_router,
    ):
        app.include_router(router)

    @app.on_event("startup")
    async def on_startup() -> None:
        """Ensure database tables exist."""

        await app.state.db.create_all()
        logger.info("BetLogic backend started")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.db.dispose()

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        """Simple readiness probe for uptime checks."""

        return {"status": "ok"}

    @app.get("/api/ping", tags=["system"])
    async def ping(session: AsyncSession = Depends(get_db_session)) -> dict[str, str]:
        """Round-trip to the database."""

        await session.execute(text("SELECT 1"))
        return {"message": "pong", "currentTime": datetime.utcnow().isoformat()}

    return app


app = create_app()

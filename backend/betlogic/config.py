"""Application settings and configuration helpers."""
from functools import lru_cache
import logging
import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./betlogic.db", alias="DATABASE_URL"
    )
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    # Sessions are valid for 24 hours; there is no refresh flow.
    access_token_expires_minutes: int = Field(default=60 * 24)
    server_url: str = Field(default="http://localhost:8000", alias="SERVER_URL")

    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, alias="SMTP_USER")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    mail_from: str = Field(default="no-reply@betlogic.local", alias="MAIL_FROM")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    values = {
        name: os.environ[field.alias]
        for name, field in Settings.model_fields.items()
        if field.alias and field.alias in os.environ
    }
    return Settings(**values)


def configure_logging(settings: Settings) -> None:
    """Set up root logging once for the process."""

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

# trainer_portal/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv, find_dotenv

_TRUTHY = ("1", "true", "yes", "on")


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_flag(name: str, default: str = "false") -> bool:
    return _env(name, default).lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    try:
        return int(_env(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(_env(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration.

    Built once at the entry point (ASGI app factory or the reminder job)
    and handed down explicitly. Nothing below reads os.environ on its own.
    """

    database_url: str = "sqlite:///./trainer_portal.db"

    secret_key: str = "CHANGE_ME_TO_SOMETHING_RANDOM_AND_LONG"
    access_token_expire_minutes: int = 1440

    email_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_from_name: str = "Trainer Portal"
    smtp_from_email: str = ""

    admin_notify_email: Optional[str] = None
    app_base_url: str = "http://127.0.0.1:8000"

    reminder_spacing_seconds: float = 0.5

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_username and self.smtp_password and self.from_email)

    @property
    def from_email(self) -> str:
        return self.smtp_from_email or self.smtp_username


def load_settings(dotenv: bool = True) -> Settings:
    """
    Read .env (if present) and the environment into a Settings object.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    return Settings(
        database_url=_env("DATABASE_URL", Settings.database_url),
        secret_key=_env("SECRET_KEY", Settings.secret_key),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 1440),
        email_enabled=_env_flag("EMAIL_ENABLED"),
        smtp_host=_env("SMTP_HOST"),
        smtp_port=_env_int("SMTP_PORT", 587),
        smtp_username=_env("SMTP_USERNAME"),
        smtp_password=_env("SMTP_PASSWORD"),
        smtp_from_name=_env("SMTP_FROM_NAME", Settings.smtp_from_name),
        smtp_from_email=_env("SMTP_FROM_EMAIL"),
        admin_notify_email=_env("ADMIN_NOTIFY_EMAIL") or None,
        app_base_url=_env("APP_BASE_URL").rstrip("/") or Settings.app_base_url,
        reminder_spacing_seconds=_env_float("REMINDER_SPACING_SECONDS", 0.5),
    )

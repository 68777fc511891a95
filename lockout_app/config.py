"""Configuration helpers."""
from __future__ import annotations

import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Default configuration that can be overridden per environment."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", "sqlite:///lockout.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # bcrypt work factor for stored password hashes.
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", 12))

    # Failed-login lockout policy (seconds). Parsed by LockoutPolicy.from_config.
    LOCKOUT_THRESHOLD = int(os.environ.get("LOCKOUT_THRESHOLD", 5))
    LOCKOUT_WINDOW_SECONDS = int(os.environ.get("LOCKOUT_WINDOW_SECONDS", 15 * 60))
    LOCKOUT_BASE_SECONDS = int(os.environ.get("LOCKOUT_BASE_SECONDS", 60))
    LOCKOUT_MAX_SECONDS = int(os.environ.get("LOCKOUT_MAX_SECONDS", 60 * 60))
    LOCKOUT_RETENTION_SECONDS = int(os.environ.get("LOCKOUT_RETENTION_SECONDS", 60 * 60))

    # Exposes POST /auth/dev/clear-lockouts. Never enable in production.
    LOCKOUT_DEV_RESET_ENABLED = _env_flag("LOCKOUT_DEV_RESET_ENABLED")


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BCRYPT_ROUNDS = 4
    LOCKOUT_DEV_RESET_ENABLED = True

"""Application factory for the account lockout service."""
from __future__ import annotations

import logging

from flask import Flask

from .config import BaseConfig
from .extensions import db, login_manager
from .auth import auth_bp
from .lockout import LockoutPolicy, LockoutTracker


def create_app(
    config_object: type[BaseConfig] | None = None,
    lockout_tracker: LockoutTracker | None = None,
) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object or BaseConfig)
    app.logger.setLevel(
        getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO)
    )

    # Initialize extensions.
    db.init_app(app)
    login_manager.init_app(app)

    # Attempt counts live in process memory only; they reset on restart and
    # are not shared between workers.
    if lockout_tracker is None:
        lockout_tracker = LockoutTracker(LockoutPolicy.from_config(app.config))
    app.lockout_tracker = lockout_tracker

    # Register blueprints.
    app.register_blueprint(auth_bp, url_prefix="/auth")

    @app.cli.command("create-db")
    def create_db_command() -> None:
        """Create tables using SQLAlchemy metadata for quick testing."""
        with app.app_context():
            db.create_all()
            print("Database tables created.")

    return app

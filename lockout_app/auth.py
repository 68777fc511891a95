"""Authentication blueprint."""
from __future__ import annotations

from flask import Blueprint, abort, current_app, request
from flask_login import login_required, login_user, logout_user

from .extensions import db
from .lockout import LockInfo, mask_identifier
from .models import User


auth_bp = Blueprint("auth", __name__)


def _read_credentials() -> tuple[str, str]:
    payload = request.get_json(silent=True) or {}
    email = str(payload.get("email") or "").strip().lower()
    password = str(payload.get("password") or "")
    return email, password


def _locked_response(info: LockInfo) -> tuple[dict, int, dict]:
    body = {
        "error": "Too many failed login attempts. Try again later.",
        **info.to_dict(),
    }
    return body, 429, {"Retry-After": str(info.retry_after_seconds)}


@auth_bp.route("/signup", methods=["POST"])
def signup() -> tuple[dict, int]:
    email, password = _read_credentials()
    if not email or not password:
        abort(400, description="Email and password required")

    if User.query.filter_by(email=email).first():
        abort(409, description="Email already registered")

    user = User(email=email)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    return {"message": "Account created"}, 201


@auth_bp.route("/login", methods=["POST"])
def login():
    email, password = _read_credentials()
    if not email or not password:
        abort(400, description="Email and password required")

    tracker = current_app.lockout_tracker
    info = tracker.get_lock_info(email)
    if info is not None:
        current_app.logger.info(
            "Rejected login for locked account %s (%ss left)",
            mask_identifier(email),
            info.retry_after_seconds,
        )
        return _locked_response(info)

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        # Unknown emails count too so lockouts do not reveal registration status.
        record = tracker.record_failure(email)
        abort(401, description=f"Invalid credentials. Attempt #{record.count}")

    tracker.reset_on_success(email)
    login_user(user)
    return {"message": "Logged in"}, 200


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout() -> tuple[dict, int]:
    logout_user()
    return {"message": "Logged out"}, 200


@auth_bp.route("/lock-status", methods=["GET"])
def lock_status() -> tuple[dict, int]:
    email = request.args.get("email", "")
    info = current_app.lockout_tracker.get_lock_info(email)
    if info is None:
        return {"locked": False}, 200
    return info.to_dict(), 200


@auth_bp.route("/dev/clear-lockouts", methods=["POST"])
def clear_lockouts() -> tuple[dict, int]:
    if not current_app.config.get("LOCKOUT_DEV_RESET_ENABLED"):
        abort(404)
    cleared = current_app.lockout_tracker.clear()
    current_app.logger.warning("Development reset cleared %d lockout records", cleared)
    return {"cleared": cleared}, 200

# Overview: Service-layer operations for bearer sessions; opens, checks and revokes login sessions.

"""
Bearer sessions for attendants, managers, admins and drivers.

The client holds a random 32-byte hex token; only its SHA-256 digest is
stored. A session dies at SESSION_ABSOLUTE_HOURS after login, after
SESSION_IDLE_MINUTES without use, on logout, or when its user is
soft-deleted.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from fuelpass.time_utils import utcnow


@dataclass
class SessionContext:
    user: User
    session: SessionToken


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _find_live(token: str) -> SessionToken | None:
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.is_revoked.is_(False))
        .first()
    )


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Open a session for an active user and commit it.

    Returns (record, plaintext). The plaintext is handed to the client once
    and cannot be recovered later. Raises ValueError for an unknown or
    soft-deleted user.
    """
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        raise ValueError("User not found or deactivated")

    plaintext = generate_token()
    now = utcnow()
    lifetime = timedelta(hours=current_app.config["SESSION_ABSOLUTE_HOURS"])

    record = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext),
        created_at=now,
        last_used_at=now,
        expires_at=now + lifetime,
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(record)
    db.session.commit()
    return record, plaintext


def _revoke(record: SessionToken, reason: str) -> None:
    record.is_revoked = True
    record.revoked_at = utcnow()
    record.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """Resolve a bearer token to its user, touching last_used_at. None if dead."""
    record = _find_live(token)
    if record is None:
        return None

    now = utcnow()
    if record.expires_at < now:
        return None

    idle_limit = timedelta(minutes=current_app.config["SESSION_IDLE_MINUTES"])
    if now - record.last_used_at > idle_limit:
        _revoke(record, "Idle timeout")
        return None

    if record.user is None or not record.user.is_active:
        _revoke(record, "User account deactivated")
        return None

    record.last_used_at = now
    db.session.commit()
    return SessionContext(user=record.user, session=record)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    record = _find_live(token)
    if record is None:
        return False
    _revoke(record, reason)
    return True

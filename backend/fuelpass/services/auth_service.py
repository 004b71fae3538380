# Overview: Service-layer operations for auth; password hashing and credential checks.

"""
Authentication Service

Every redemption must be attributable to an attendant, so HTTP callers log
in with email + password and receive a session token (see
session_service.py). Account creation is done by provisioning tooling
(the seed command and tests), not by a public endpoint.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Soft-deleted users cannot authenticate
"""

import bcrypt
from ..extensions import db
from ..models import Role, User
from fuelpass.time_utils import utcnow


class AuthenticationError(Exception):
    """Raised when credentials are rejected."""
    pass


def hash_password(password: str, *, rounds: int = 12) -> str:
    """Hash password using bcrypt."""
    if not password:
        raise ValueError("Password is required")
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash
        return False


def create_user(
    *,
    email: str,
    password: str,
    role: Role,
    name: str | None = None,
    station_id: int | None = None,
    omc_id: int | None = None,
    password_rounds: int = 12,
    **profile,
) -> User:
    """
    Create a user with a bcrypt-hashed password. Does not commit.

    Attendants and station managers must be bound to a station.
    """
    email = email.strip().lower()
    if db.session.query(User).filter_by(email=email).first():
        raise ValueError(f"User {email} already exists")

    if role in (Role.PUMP_ATTENDANT, Role.STATION_MANAGER) and station_id is None:
        raise ValueError(f"{role.value} must be assigned to a station")

    user = User(
        email=email,
        password_hash=hash_password(password, rounds=password_rounds),
        role=role,
        name=name,
        station_id=station_id,
        omc_id=omc_id,
        **profile,
    )
    db.session.add(user)
    db.session.flush()
    return user


def authenticate(email: str, password: str) -> User:
    """Return the active user for these credentials or raise AuthenticationError."""
    if not email or not password:
        raise AuthenticationError("email and password required")

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")

    user.last_login_at = utcnow()
    db.session.commit()
    return user

from __future__ import annotations

import enum

from ..extensions import db
from fuelpass.time_utils import to_utc_z


class Role(str, enum.Enum):
    """Closed set of account roles."""
    OMC_ADMIN = "OMC_ADMIN"
    STATION_MANAGER = "STATION_MANAGER"
    PUMP_ATTENDANT = "PUMP_ATTENDANT"
    DRIVER = "DRIVER"


class User(db.Model):
    """
    User accounts for authentication and attribution.

    One table serves every role. Which optional columns are meaningful
    depends on the role:
    - OMC_ADMIN: omc_id
    - STATION_MANAGER, PUMP_ATTENDANT: station_id (exactly one station)
    - DRIVER: national_id, company_name, vehicle_count

    Soft-deleted users (deleted_at set) cannot log in and are invisible to
    the attendant directory.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role_station", "role", "station_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(
        db.Enum(Role, name="user_role", native_enum=False, length=32, validate_strings=True),
        nullable=False,
    )

    name = db.Column(db.String(255), nullable=True)
    contact = db.Column(db.String(64), nullable=True)
    gender = db.Column(db.String(16), nullable=True)
    national_id = db.Column(db.String(64), nullable=True)
    company_name = db.Column(db.String(255), nullable=True)
    vehicle_count = db.Column(db.Integer, nullable=True)

    omc_id = db.Column(db.Integer, db.ForeignKey("omcs.id"), nullable=True, index=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    omc = db.relationship("Omc", backref=db.backref("users", lazy=True))
    station = db.relationship("Station", backref=db.backref("users", lazy=True))

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role.value if self.role else None}>"

    def to_contact(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "contact": self.contact,
        }

    def to_driver_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "national_id": self.national_id,
            "vehicle_count": self.vehicle_count,
            "company_name": self.company_name,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "contact": self.contact,
            "role": self.role.value,
            "omc_id": self.omc_id,
            "station_id": self.station_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Opaque bearer session for an authenticated user.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - Absolute and idle timeouts come from config
    - Revocable on logout
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship("User", backref=db.backref("session_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }

from __future__ import annotations

import enum

from ..extensions import db
from fuelpass.money import format_decimal
from fuelpass.time_utils import to_utc_z


class TokenStatus(str, enum.Enum):
    """Redemption state of a fuel token. USED is terminal."""
    UNUSED = "UNUSED"
    USED = "USED"


class Transaction(db.Model):
    """
    A prepaid fuel token and, once redeemed, the sale it became.

    LIFECYCLE:
    - Purchase creates the row with token, amount and driver (UNUSED).
    - Redemption flips status to USED exactly once and stamps station,
      product, attendant, optional dispenser/pump, liters and amount in the
      same UPDATE. The UPDATE is conditional on status = UNUSED so two
      concurrent redemptions cannot both succeed.
    - Rows are never deleted and never reopened.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_status_created", "status", "created_at"),
        db.Index("ix_transactions_attendant_status", "pump_attendant_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(64), nullable=False, unique=True, index=True)

    amount = db.Column(db.Numeric(14, 2), nullable=True)
    liters = db.Column(db.Numeric(14, 3), nullable=True)

    status = db.Column(
        db.Enum(TokenStatus, name="token_status", native_enum=False, length=16, validate_strings=True),
        nullable=False,
        default=TokenStatus.UNUSED,
    )
    redeemed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    driver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    pump_attendant_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=True, index=True)
    dispenser_id = db.Column(db.Integer, db.ForeignKey("dispensers.id"), nullable=True)
    pump_id = db.Column(db.Integer, db.ForeignKey("pumps.id"), nullable=True)
    product_catalog_id = db.Column(db.Integer, db.ForeignKey("product_catalogs.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    driver = db.relationship("User", foreign_keys=[driver_id])
    pump_attendant = db.relationship("User", foreign_keys=[pump_attendant_id])
    station = db.relationship("Station")
    dispenser = db.relationship("Dispenser")
    pump = db.relationship("Pump")
    product_catalog = db.relationship("ProductCatalog")

    @property
    def is_used(self) -> bool:
        return self.status == TokenStatus.USED

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} token={self.token!r} status={self.status.value if self.status else None}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "token": self.token,
            "amount": format_decimal(self.amount),
            "liters": format_decimal(self.liters),
            "status": self.status.value,
            "redeemed_at": to_utc_z(self.redeemed_at),
            "driver_id": self.driver_id,
            "pump_attendant_id": self.pump_attendant_id,
            "station_id": self.station_id,
            "dispenser_id": self.dispenser_id,
            "pump_id": self.pump_id,
            "product_catalog_id": self.product_catalog_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_detail(self) -> dict:
        """Transaction with its related records expanded."""
        data = self.to_dict()
        data.update({
            "product_catalog": self.product_catalog.to_summary() if self.product_catalog else None,
            "station": self.station.to_summary() if self.station else None,
            "dispenser": (
                {"id": self.dispenser.id, "dispenser_number": self.dispenser.dispenser_number}
                if self.dispenser else None
            ),
            "pump": {"id": self.pump.id, "pump_number": self.pump.pump_number} if self.pump else None,
            "pump_attendant": self.pump_attendant.to_contact() if self.pump_attendant else None,
            "driver": self.driver.to_driver_summary() if self.driver else None,
        })
        return data

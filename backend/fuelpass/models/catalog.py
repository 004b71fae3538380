from __future__ import annotations

from ..extensions import db
from fuelpass.money import format_decimal
from fuelpass.time_utils import to_utc_z


class ProductCatalog(db.Model):
    """
    A product an OMC sells (Diesel, Gasoline, ...) with its default price.

    default_price is currency per liter. Stations may override it through
    StationProductPrice; the override always wins when present.
    """
    __tablename__ = "product_catalogs"
    __table_args__ = (
        db.UniqueConstraint("omc_id", "name", name="uq_product_catalogs_omc_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    omc_id = db.Column(db.Integer, db.ForeignKey("omcs.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    default_price = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    omc = db.relationship("Omc", backref=db.backref("products", lazy=True))

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None

    def __repr__(self) -> str:
        return f"<ProductCatalog id={self.id} name={self.name!r} omc_id={self.omc_id}>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "default_price": format_decimal(self.default_price),
        }

    def to_dict(self) -> dict:
        data = self.to_summary()
        data.update({
            "omc_id": self.omc_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        })
        return data


class StationProductPrice(db.Model):
    """
    Station-specific override of a catalog entry's default price.

    At most one row per (station, catalog) pair. effective_from is stamped
    when the override is written and is informational only: resolution does
    not filter on it.
    """
    __tablename__ = "station_product_prices"
    __table_args__ = (
        db.UniqueConstraint("catalog_id", "station_id", name="uq_station_product_prices_catalog_station"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    catalog_id = db.Column(db.Integer, db.ForeignKey("product_catalogs.id"), nullable=False, index=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    effective_from = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    catalog = db.relationship("ProductCatalog", backref=db.backref("station_prices", lazy=True))
    station = db.relationship("Station", backref=db.backref("product_prices", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<StationProductPrice catalog_id={self.catalog_id} station_id={self.station_id} price={self.price}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "catalog_id": self.catalog_id,
            "station_id": self.station_id,
            "price": format_decimal(self.price),
            "effective_from": to_utc_z(self.effective_from),
            "version_id": self.version_id,
        }

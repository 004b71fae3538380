from __future__ import annotations

from ..extensions import db
from fuelpass.time_utils import to_utc_z


# Attendants assigned to a pump (many-to-many).
pump_attendants = db.Table(
    "pump_attendants",
    db.Column("pump_id", db.Integer, db.ForeignKey("pumps.id"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True),
)


class Omc(db.Model):
    """
    Oil Marketing Company: the root owner of stations and a product catalog.

    Soft-deleted via deleted_at; soft-deleted OMCs disappear from filters but
    their historical transactions keep pointing at them.
    """
    __tablename__ = "omcs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    location = db.Column(db.String(255), nullable=True)
    contact_person = db.Column(db.String(255), nullable=True)
    contact = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<Omc id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "contact_person": self.contact_person,
            "contact": self.contact,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }


class Station(db.Model):
    """
    Fuel station owned by an OMC.

    A station owns its dispensers (and through them its pumps) and its
    per-product price overrides. Station names are unique within an OMC.
    """
    __tablename__ = "stations"
    __table_args__ = (
        db.UniqueConstraint("omc_id", "name", name="uq_stations_omc_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    omc_id = db.Column(db.Integer, db.ForeignKey("omcs.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    region = db.Column(db.String(120), nullable=True)
    district = db.Column(db.String(120), nullable=True)
    town = db.Column(db.String(120), nullable=True)
    manager_name = db.Column(db.String(255), nullable=True)
    manager_contact = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    omc = db.relationship("Omc", backref=db.backref("stations", lazy=True))

    def __repr__(self) -> str:
        return f"<Station id={self.id} name={self.name!r} omc_id={self.omc_id}>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "region": self.region,
            "district": self.district,
            "town": self.town,
        }

    def to_dict(self) -> dict:
        data = self.to_summary()
        data.update({
            "omc_id": self.omc_id,
            "manager_name": self.manager_name,
            "manager_contact": self.manager_contact,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        })
        return data


class Dispenser(db.Model):
    __tablename__ = "dispensers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    station_id = db.Column(db.Integer, db.ForeignKey("stations.id"), nullable=False, index=True)
    dispenser_number = db.Column(db.String(64), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    station = db.relationship("Station", backref=db.backref("dispensers", lazy=True))

    def __repr__(self) -> str:
        return f"<Dispenser id={self.id} number={self.dispenser_number!r} station_id={self.station_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "dispenser_number": self.dispenser_number,
        }


class Pump(db.Model):
    """
    A nozzle on a dispenser. Each pump dispenses exactly one catalog product.
    """
    __tablename__ = "pumps"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    dispenser_id = db.Column(db.Integer, db.ForeignKey("dispensers.id"), nullable=False, index=True)
    product_catalog_id = db.Column(db.Integer, db.ForeignKey("product_catalogs.id"), nullable=False, index=True)
    pump_number = db.Column(db.String(64), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    dispenser = db.relationship("Dispenser", backref=db.backref("pumps", lazy=True))
    product_catalog = db.relationship("ProductCatalog")
    attendants = db.relationship(
        "User",
        secondary=pump_attendants,
        backref=db.backref("assigned_pumps", lazy=True),
        lazy=True,
    )

    @property
    def station_id(self) -> int | None:
        return self.dispenser.station_id if self.dispenser else None

    def __repr__(self) -> str:
        return f"<Pump id={self.id} number={self.pump_number!r} dispenser_id={self.dispenser_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "dispenser_id": self.dispenser_id,
            "station_id": self.station_id,
            "product_catalog_id": self.product_catalog_id,
            "pump_number": self.pump_number,
        }

from __future__ import annotations

from ..extensions import db
from .base import SerializableMixin


class Item(SerializableMixin, db.Model):
    """
    Inventory SKU.

    current_stock is adjusted imperatively by bill/invoice side effects and
    manual adjustments. Bin-level stock is derived separately from the
    allocation ledger (see stock_service); the two are not reconciled.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.Index("ix_items_org_name", "organization_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    unit_of_measurement = db.Column(db.String(32), nullable=False, default="pcs")

    category = db.Column(db.String(128), nullable=True)
    subcategory = db.Column(db.String(128), nullable=True)
    brand = db.Column(db.String(128), nullable=True)
    manufacturer = db.Column(db.String(128), nullable=True)
    hsn_code = db.Column(db.String(32), nullable=True)

    selling_price = db.Column(db.Float, nullable=False, default=0)
    cost_price = db.Column(db.Float, nullable=False, default=0)

    current_stock = db.Column(db.Float, nullable=False, default=0)
    reorder_point = db.Column(db.Float, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Item id={self.id} sku={self.sku!r} name={self.name!r}>"


class Brand(SerializableMixin, db.Model):
    __tablename__ = "brands"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class Manufacturer(SerializableMixin, db.Model):
    __tablename__ = "manufacturers"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

from __future__ import annotations

from ..extensions import db
from .base import SerializableMixin


class BinLocation(SerializableMixin, db.Model):
    """
    Physical storage bin inside a warehouse.

    A bin never stores a quantity: net stock is always recomputed from the
    purchase/sale allocation ledgers at read time.
    """
    __tablename__ = "bin_locations"
    __table_args__ = (
        db.Index("ix_bin_locations_warehouse", "warehouse"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bin_code = db.Column(db.String(64), nullable=False, unique=True)
    warehouse = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")  # active, inactive

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<BinLocation id={self.id} bin_code={self.bin_code!r} warehouse={self.warehouse!r}>"


class BillItemBinAllocation(SerializableMixin, db.Model):
    """Purchase-side ledger entry: quantity of a bill line put away into a bin. Append-only."""
    __tablename__ = "bill_item_bin_allocations"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    bill_item_id = db.Column(db.Integer, db.ForeignKey("bill_items.id"), nullable=False, index=True)
    bin_location_id = db.Column(db.Integer, db.ForeignKey("bin_locations.id"), nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    bin_location = db.relationship("BinLocation")


class InvoiceItemBinAllocation(SerializableMixin, db.Model):
    """Sale-side ledger entry: quantity of an invoice line picked from a bin. Append-only."""
    __tablename__ = "invoice_item_bin_allocations"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    invoice_item_id = db.Column(db.Integer, db.ForeignKey("invoice_items.id"), nullable=False, index=True)
    bin_location_id = db.Column(db.Integer, db.ForeignKey("bin_locations.id"), nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    bin_location = db.relationship("BinLocation")


class TransferOrderAllocation(SerializableMixin, db.Model):
    """Stock moved from one bin to another when a transfer order is initiated."""
    __tablename__ = "transfer_order_allocations"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    transfer_order_id = db.Column(db.Integer, db.ForeignKey("transfer_orders.id"), nullable=False, index=True)
    transfer_order_item_id = db.Column(db.Integer, db.ForeignKey("transfer_order_items.id"), nullable=True)
    item_id = db.Column(db.Integer, nullable=False, index=True)
    source_bin_location_id = db.Column(db.Integer, db.ForeignKey("bin_locations.id"), nullable=False)
    destination_bin_location_id = db.Column(db.Integer, db.ForeignKey("bin_locations.id"), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

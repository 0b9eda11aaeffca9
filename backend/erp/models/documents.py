from __future__ import annotations

from ..extensions import db
from .base import SerializableMixin


class DocumentSequence(SerializableMixin, db.Model):
    """
    Per-organization counter backing document number allocation.

    The row for (organization_id, document_type) is locked and bumped inside
    the transaction that creates the document. next_number is the numeric
    suffix the next allocation will hand out.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "document_type", name="uq_document_sequences_org_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    document_type = db.Column(db.String(64), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class TransferOrder(SerializableMixin, db.Model):
    """
    Stock transfer between two warehouses (TO-0001).

    LIFECYCLE:
    1. draft: editable, no stock effect
    2. initiated: bin-to-bin allocations recorded
    3. in_transit
    4. received
    5. cancelled: allocations removed
    """
    __tablename__ = "transfer_orders"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "transfer_order_number", name="uq_transfer_orders_org_number"),
        db.Index("ix_transfer_orders_org_status", "organization_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    transfer_order_number = db.Column(db.String(64), nullable=False)

    transfer_date = db.Column(db.Date, nullable=False)
    source_location = db.Column(db.String(128), nullable=False)
    destination_location = db.Column(db.String(128), nullable=False)
    reason = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="draft")

    total_items = db.Column(db.Integer, nullable=False, default=0)
    total_quantity = db.Column(db.Float, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class TransferOrderItem(SerializableMixin, db.Model):
    __tablename__ = "transfer_order_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    transfer_order_id = db.Column(db.Integer, db.ForeignKey("transfer_orders.id"), nullable=False, index=True)

    item_id = db.Column(db.Integer, nullable=True, index=True)
    item_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    source_availability = db.Column(db.Float, nullable=True)
    destination_availability = db.Column(db.Float, nullable=True)
    transfer_quantity = db.Column(db.Float, nullable=False)
    unit_of_measurement = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

from __future__ import annotations

from ..extensions import db
from .base import SerializableMixin


class PurchaseOrder(SerializableMixin, db.Model):
    """
    Purchase order raised against a vendor (PO-00001).

    LIFECYCLE: draft -> issued -> partially_received -> received | cancelled
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "purchase_order_number", name="uq_purchase_orders_org_number"),
        db.Index("ix_purchase_orders_org_status", "organization_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    purchase_order_number = db.Column(db.String(64), nullable=False)

    vendor_id = db.Column(db.Integer, nullable=True, index=True)
    vendor_name = db.Column(db.String(255), nullable=False)
    vendor_email = db.Column(db.String(255), nullable=True)

    order_date = db.Column(db.Date, nullable=False)
    expected_delivery_date = db.Column(db.Date, nullable=True)
    reference_number = db.Column(db.String(64), nullable=True)
    delivery_address = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(32), nullable=False, default="draft", index=True)

    subtotal = db.Column(db.Float, nullable=False, default=0)
    discount_amount = db.Column(db.Float, nullable=False, default=0)
    tax_amount = db.Column(db.Float, nullable=False, default=0)
    adjustment = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    terms_and_conditions = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class PurchaseOrderItem(SerializableMixin, db.Model):
    __tablename__ = "purchase_order_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)

    item_id = db.Column(db.Integer, nullable=True, index=True)
    item_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Float, nullable=False, default=0)
    unit_of_measurement = db.Column(db.String(32), nullable=False, default="pcs")
    rate = db.Column(db.Float, nullable=False, default=0)
    amount = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class Bill(SerializableMixin, db.Model):
    """
    Vendor bill (BILL-0001).

    Totals are persisted exactly as supplied by the caller; they are never
    recomputed from the lines. balance_due starts equal to total_amount.
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "bill_number", name="uq_bills_org_number"),
        db.Index("ix_bills_org_status", "organization_id", "status"),
        db.Index("ix_bills_bill_date", "bill_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    bill_number = db.Column(db.String(64), nullable=False)

    vendor_id = db.Column(db.Integer, nullable=True, index=True)
    vendor_name = db.Column(db.String(255), nullable=False)
    vendor_email = db.Column(db.String(255), nullable=True)
    vendor_phone = db.Column(db.String(32), nullable=True)

    bill_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=True)

    status = db.Column(db.String(32), nullable=False, default="draft")  # draft, open, paid, overdue, void
    payment_status = db.Column(db.String(32), nullable=False, default="unpaid")

    subtotal = db.Column(db.Float, nullable=False, default=0)
    tax_amount = db.Column(db.Float, nullable=False, default=0)
    discount_amount = db.Column(db.Float, nullable=False, default=0)
    adjustment = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)
    amount_paid = db.Column(db.Float, nullable=False, default=0)
    balance_due = db.Column(db.Float, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    terms_and_conditions = db.Column(db.Text, nullable=True)
    reference_number = db.Column(db.String(64), nullable=True)
    purchase_order_id = db.Column(db.Integer, nullable=True, index=True)
    attachment_urls = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<Bill id={self.id} number={self.bill_number!r} status={self.status!r}>"


class BillItem(SerializableMixin, db.Model):
    __tablename__ = "bill_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)

    item_id = db.Column(db.Integer, nullable=True, index=True)
    item_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Float, nullable=False, default=0)
    unit_of_measurement = db.Column(db.String(32), nullable=True)
    unit_price = db.Column(db.Float, nullable=False, default=0)
    tax_rate = db.Column(db.Float, nullable=False, default=0)
    discount = db.Column(db.Float, nullable=False, default=0)
    total = db.Column(db.Float, nullable=False, default=0)
    account = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    bill = db.relationship("Bill")
    bin_allocations = db.relationship(
        "BillItemBinAllocation",
        backref="bill_item",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["bin_allocations"] = [a.to_dict() for a in self.bin_allocations]
        return data


class PaymentMade(SerializableMixin, db.Model):
    """Payment made to a vendor (PAY-0001); allocations spread it across bills."""
    __tablename__ = "payments_made"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "payment_number", name="uq_payments_made_org_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    payment_number = db.Column(db.String(64), nullable=False)

    vendor_id = db.Column(db.Integer, nullable=True, index=True)
    vendor_name = db.Column(db.String(255), nullable=False)

    payment_date = db.Column(db.Date, nullable=False)
    payment_mode = db.Column(db.String(32), nullable=False)
    reference_number = db.Column(db.String(64), nullable=True)

    amount = db.Column(db.Float, nullable=False, default=0)
    bank_charges = db.Column(db.Float, nullable=False, default=0)
    currency = db.Column(db.String(8), nullable=False, default="INR")
    exchange_rate = db.Column(db.Float, nullable=False, default=1)

    payment_account = db.Column(db.String(128), nullable=True)
    deposit_to = db.Column(db.String(128), nullable=True)
    bill_id = db.Column(db.Integer, nullable=True)
    bill_number = db.Column(db.String(64), nullable=True)

    status = db.Column(db.String(32), nullable=False, default="completed")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class PaymentAllocation(SerializableMixin, db.Model):
    __tablename__ = "payment_allocations"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    payment_id = db.Column(db.Integer, db.ForeignKey("payments_made.id"), nullable=False, index=True)
    bill_id = db.Column(db.Integer, nullable=True, index=True)
    bill_number = db.Column(db.String(64), nullable=True)
    amount_allocated = db.Column(db.Float, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class VendorCredit(SerializableMixin, db.Model):
    """Credit note received from a vendor (VC-0001)."""
    __tablename__ = "vendor_credits"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "credit_note_number", name="uq_vendor_credits_org_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    credit_note_number = db.Column(db.String(64), nullable=False)

    vendor_id = db.Column(db.Integer, nullable=True, index=True)
    vendor_name = db.Column(db.String(255), nullable=False)

    credit_date = db.Column(db.Date, nullable=False)
    reference_number = db.Column(db.String(64), nullable=True)
    bill_id = db.Column(db.Integer, nullable=True)

    status = db.Column(db.String(32), nullable=False, default="draft")  # draft, open, closed

    subtotal = db.Column(db.Float, nullable=False, default=0)
    tax_amount = db.Column(db.Float, nullable=False, default=0)
    discount_amount = db.Column(db.Float, nullable=False, default=0)
    adjustment = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)
    balance = db.Column(db.Float, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class VendorCreditItem(SerializableMixin, db.Model):
    __tablename__ = "vendor_credit_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    vendor_credit_id = db.Column(db.Integer, db.ForeignKey("vendor_credits.id"), nullable=False, index=True)

    item_id = db.Column(db.Integer, nullable=True)
    item_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Float, nullable=False, default=0)
    unit_of_measurement = db.Column(db.String(32), nullable=False, default="pcs")
    rate = db.Column(db.Float, nullable=False, default=0)
    tax_rate = db.Column(db.Float, nullable=False, default=0)
    amount = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

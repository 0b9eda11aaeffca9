from __future__ import annotations

from ..extensions import db
from .base import SerializableMixin


class SalesOrder(SerializableMixin, db.Model):
    """
    Customer sales order (SO-00001).

    Carries GST split columns (cgst/sgst/igst) as supplied by the caller.
    LIFECYCLE: draft -> confirmed -> processing -> shipped -> delivered | cancelled
    """
    __tablename__ = "sales_orders"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "sales_order_number", name="uq_sales_orders_org_number"),
        db.Index("ix_sales_orders_org_status", "organization_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    sales_order_number = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(db.Integer, nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)

    order_date = db.Column(db.Date, nullable=False)
    expected_shipment_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(32), nullable=False, default="draft")
    payment_status = db.Column(db.String(32), nullable=False, default="unpaid")

    subtotal = db.Column(db.Float, nullable=False, default=0)
    discount_type = db.Column(db.String(16), nullable=False, default="percentage")  # percentage, amount
    discount_value = db.Column(db.Float, nullable=False, default=0)
    discount_amount = db.Column(db.Float, nullable=False, default=0)
    cgst_rate = db.Column(db.Float, nullable=False, default=0)
    cgst_amount = db.Column(db.Float, nullable=False, default=0)
    sgst_rate = db.Column(db.Float, nullable=False, default=0)
    sgst_amount = db.Column(db.Float, nullable=False, default=0)
    igst_rate = db.Column(db.Float, nullable=False, default=0)
    igst_amount = db.Column(db.Float, nullable=False, default=0)
    tax_amount = db.Column(db.Float, nullable=False, default=0)
    shipping_charges = db.Column(db.Float, nullable=False, default=0)
    adjustment = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)
    amount_paid = db.Column(db.Float, nullable=False, default=0)
    balance_due = db.Column(db.Float, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    terms_and_conditions = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class SalesOrderItem(SerializableMixin, db.Model):
    __tablename__ = "sales_order_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=False, index=True)

    item_id = db.Column(db.Integer, nullable=True, index=True)
    item_name = db.Column(db.String(255), nullable=False, default="")
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Float, nullable=False, default=0)
    unit_of_measurement = db.Column(db.String(32), nullable=False, default="pcs")
    rate = db.Column(db.Float, nullable=False, default=0)
    amount = db.Column(db.Float, nullable=False, default=0)
    stock_on_hand = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class Invoice(SerializableMixin, db.Model):
    """Customer invoice (INV-0001). Payments received update amount_paid/balance_due."""
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "invoice_number", name="uq_invoices_org_number"),
        db.Index("ix_invoices_org_status", "organization_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    invoice_number = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(db.Integer, nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)
    sales_order_id = db.Column(db.Integer, nullable=True)
    salesperson_name = db.Column(db.String(255), nullable=True)

    invoice_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=True)
    payment_terms = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(32), nullable=False, default="draft")  # draft, sent, partial, paid, overdue, void

    subtotal = db.Column(db.Float, nullable=False, default=0)
    discount_amount = db.Column(db.Float, nullable=False, default=0)
    tax_amount = db.Column(db.Float, nullable=False, default=0)
    shipping_charges = db.Column(db.Float, nullable=False, default=0)
    adjustment = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)
    amount_paid = db.Column(db.Float, nullable=False, default=0)
    balance_due = db.Column(db.Float, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    terms_and_conditions = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class InvoiceItem(SerializableMixin, db.Model):
    __tablename__ = "invoice_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)

    item_id = db.Column(db.Integer, nullable=True, index=True)
    item_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Float, nullable=False, default=0)
    unit_of_measurement = db.Column(db.String(32), nullable=True)
    rate = db.Column(db.Float, nullable=False, default=0)
    discount = db.Column(db.Float, nullable=False, default=0)
    tax_rate = db.Column(db.Float, nullable=False, default=0)
    amount = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    invoice = db.relationship("Invoice")
    bin_allocations = db.relationship(
        "InvoiceItemBinAllocation",
        backref="invoice_item",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["bin_allocations"] = [a.to_dict() for a in self.bin_allocations]
        return data


class DeliveryChallan(SerializableMixin, db.Model):
    """Goods dispatched without (or ahead of) an invoice (DC-00001)."""
    __tablename__ = "delivery_challans"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "challan_number", name="uq_delivery_challans_org_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    challan_number = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(db.Integer, nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    reference_number = db.Column(db.String(64), nullable=True)

    challan_date = db.Column(db.Date, nullable=False)
    challan_type = db.Column(db.String(64), nullable=False, default="Supply on Approval")
    location = db.Column(db.String(128), nullable=True)
    status = db.Column(db.String(32), nullable=False, default="draft")

    subtotal = db.Column(db.Float, nullable=False, default=0)
    adjustment = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)

    invoice_id = db.Column(db.Integer, nullable=True)
    invoice_number = db.Column(db.String(64), nullable=True)
    alternate_phone = db.Column(db.String(32), nullable=True)
    delivery_location_type = db.Column(db.String(64), nullable=True)
    delivery_address = db.Column(db.Text, nullable=True)
    pincode = db.Column(db.String(16), nullable=True)
    salesperson_id = db.Column(db.Integer, nullable=True)
    salesperson_name = db.Column(db.String(255), nullable=True)
    estimated_delivery_day = db.Column(db.String(64), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class DeliveryChallanItem(SerializableMixin, db.Model):
    __tablename__ = "delivery_challan_items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    delivery_challan_id = db.Column(db.Integer, db.ForeignKey("delivery_challans.id"), nullable=False, index=True)

    item_id = db.Column(db.Integer, nullable=True)
    item_name = db.Column(db.String(255), nullable=False, default="")
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Float, nullable=False, default=0)
    unit_of_measurement = db.Column(db.String(32), nullable=False, default="pcs")
    rate = db.Column(db.Float, nullable=False, default=0)
    amount = db.Column(db.Float, nullable=False, default=0)
    stock_on_hand = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class PaymentReceived(SerializableMixin, db.Model):
    """Customer payment (PAY-00001), optionally applied to one invoice."""
    __tablename__ = "payments_received"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "payment_number", name="uq_payments_received_org_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    payment_number = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(db.Integer, nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    reference_number = db.Column(db.String(64), nullable=True)

    payment_date = db.Column(db.Date, nullable=False)
    payment_mode = db.Column(db.String(32), nullable=False, default="Cash")
    amount_received = db.Column(db.Float, nullable=False, default=0)
    bank_charges = db.Column(db.Float, nullable=False, default=0)
    deposit_to = db.Column(db.String(128), nullable=True)
    location = db.Column(db.String(128), nullable=True)

    invoice_id = db.Column(db.Integer, nullable=True, index=True)
    invoice_number = db.Column(db.String(64), nullable=True)
    amount_used = db.Column(db.Float, nullable=False, default=0)
    amount_excess = db.Column(db.Float, nullable=False, default=0)

    status = db.Column(db.String(32), nullable=False, default="recorded")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class PosSession(SerializableMixin, db.Model):
    """
    Point-of-sale register session (SE1-001).

    At most one session is In-Progress at a time.
    """
    __tablename__ = "pos_sessions"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "session_number", name="uq_pos_sessions_org_number"),
        db.Index("ix_pos_sessions_status_opened", "status", "opened_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    session_number = db.Column(db.String(32), nullable=False)

    register = db.Column(db.String(64), nullable=False)
    opened_by = db.Column(db.String(255), nullable=False)
    opened_at = db.Column(db.DateTime(timezone=True), nullable=False)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="In-Progress")  # In-Progress, Closed

    opening_balance = db.Column(db.Float, nullable=False, default=0)
    closing_balance = db.Column(db.Float, nullable=True)
    cash_in = db.Column(db.Float, nullable=False, default=0)
    cash_out = db.Column(db.Float, nullable=False, default=0)
    total_sales = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

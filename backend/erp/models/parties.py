from __future__ import annotations

from ..extensions import db
from .base import SerializableMixin


class _Counterparty:
    """Contact and tax-compliance columns shared by vendors and customers."""
    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)

    display_name = db.Column(db.String(255), nullable=False)
    company_name = db.Column(db.String(255), nullable=True)
    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    mobile = db.Column(db.String(32), nullable=True)

    gst_treatment = db.Column(db.String(64), nullable=True)
    gstin = db.Column(db.String(32), nullable=True)
    pan = db.Column(db.String(16), nullable=True)
    place_of_supply = db.Column(db.String(64), nullable=True)

    billing_address = db.Column(db.Text, nullable=True)
    shipping_address = db.Column(db.Text, nullable=True)
    payment_terms = db.Column(db.String(64), nullable=True)
    currency = db.Column(db.String(8), nullable=False, default="INR")
    opening_balance = db.Column(db.Float, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )


class Vendor(_Counterparty, SerializableMixin, db.Model):
    __tablename__ = "vendors"
    __table_args__ = (
        db.Index("ix_vendors_org_name", "organization_id", "display_name"),
        {"sqlite_autoincrement": True},
    )


class Customer(_Counterparty, SerializableMixin, db.Model):
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_org_name", "organization_id", "display_name"),
        {"sqlite_autoincrement": True},
    )

    customer_type = db.Column(db.String(32), nullable=False, default="business")  # business, individual

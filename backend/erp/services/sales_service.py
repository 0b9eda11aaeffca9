# Overview: Sales-side document kinds: sales orders, invoices, delivery challans, payments received.

"""
Sales documents

INVOICE LIFECYCLE: draft -> sent -> partial -> paid | overdue | void
- balance_due = total_amount - amount_paid on create
- creating an invoice issues its line quantities from Item.current_stock
- invoice lines may carry bin_allocations [{bin_location_id, quantity}]
  (the sale side of the bin ledger)

PAYMENT RECEIVED: a payment linked to an invoice moves that invoice's
amount_paid/balance_due/status once the payment is committed. That update
is best-effort: a failure leaves the payment recorded and is only logged.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import (
    DeliveryChallan,
    DeliveryChallanItem,
    Invoice,
    InvoiceItem,
    InvoiceItemBinAllocation,
    PaymentReceived,
    SalesOrder,
    SalesOrderItem,
)
from ..validation import ValidationError, optional_text, to_number, to_optional_id
from .concurrency import lock_for_update
from .crud_service import apply_line_stock
from .document_writer import DocumentKind, check_required, header_fields
from .stock_service import parse_bin_allocations

logger = logging.getLogger(__name__)


def _require_items(payload: dict, partial: bool, message: str) -> None:
    if not partial and not payload.get("items"):
        raise ValidationError(message)


def _sales_line(item: dict) -> dict:
    """Sales order / delivery challan line: item_name defaults to "", unit to pcs."""
    return {
        "item_id": to_optional_id(item.get("item_id")),
        "item_name": optional_text(item.get("item_name")) or "",
        "description": optional_text(item.get("description")),
        "quantity": to_number(item.get("quantity")),
        "unit_of_measurement": optional_text(item.get("unit_of_measurement")) or "pcs",
        "rate": to_number(item.get("rate")),
        "amount": to_number(item.get("amount")),
        "stock_on_hand": to_number(item.get("stock_on_hand")),
    }


# ---------------------------------------------------------- sales orders

def _validate_sales_order(payload: dict, partial: bool) -> None:
    check_required(
        payload, partial,
        text={"customer_name": "Customer name is required"},
        dates={"order_date": "Order date is required"},
    )
    _require_items(payload, partial, "At least one sales order item is required")


_SALES_ORDER_AMOUNTS = (
    "subtotal", "discount_value", "discount_amount",
    "cgst_rate", "cgst_amount", "sgst_rate", "sgst_amount", "igst_rate", "igst_amount",
    "tax_amount", "shipping_charges", "adjustment", "total_amount", "amount_paid", "balance_due",
)


def _sales_order_header(payload: dict, partial: bool) -> dict:
    header = header_fields(
        payload, partial,
        text=(
            "customer_name", "customer_email", "status", "payment_status", "discount_type",
            "notes", "terms_and_conditions",
        ),
        numbers=_SALES_ORDER_AMOUNTS,
        ids=("customer_id",),
        dates=("order_date", "expected_shipment_date"),
        defaults={"status": "draft", "payment_status": "unpaid", "discount_type": "percentage"},
    )
    if not partial and "balance_due" not in payload:
        header["balance_due"] = header.get("total_amount", 0.0) - header.get("amount_paid", 0.0)
    return header


SALES_ORDERS = DocumentKind(
    key="sales_orders",
    label="sales order",
    model=SalesOrder,
    number_field="sales_order_number",
    prefix="SO-",
    pad=5,
    line_model=SalesOrderItem,
    line_fk="sales_order_id",
    date_field="order_date",
    filter_fields=("status", "payment_status", "customer_id"),
    search_fields=("sales_order_number", "customer_name"),
    validate=_validate_sales_order,
    normalize_header=_sales_order_header,
    normalize_line=_sales_line,
)


# -------------------------------------------------------------- invoices

def _validate_invoice(payload: dict, partial: bool) -> None:
    check_required(
        payload, partial,
        text={"customer_name": "Customer name is required"},
        dates={"invoice_date": "Invoice date is required"},
    )
    _require_items(payload, partial, "At least one invoice item is required")


def _invoice_header(payload: dict, partial: bool) -> dict:
    header = header_fields(
        payload, partial,
        text=("customer_name", "customer_email", "salesperson_name", "payment_terms", "status",
              "notes", "terms_and_conditions"),
        numbers=("subtotal", "discount_amount", "tax_amount", "shipping_charges", "adjustment",
                 "total_amount", "amount_paid"),
        ids=("customer_id", "sales_order_id"),
        dates=("invoice_date", "due_date"),
        defaults={"status": "draft"},
    )
    if not partial:
        header["balance_due"] = header.get("total_amount", 0.0) - header.get("amount_paid", 0.0)
    return header


def _invoice_line(item: dict) -> dict:
    return {
        "item_id": to_optional_id(item.get("item_id")),
        "item_name": optional_text(item.get("item_name")),
        "description": optional_text(item.get("description")),
        "quantity": to_number(item.get("quantity")),
        "unit_of_measurement": optional_text(item.get("unit_of_measurement")),
        "rate": to_number(item.get("rate")),
        "discount": to_number(item.get("discount")),
        "tax_rate": to_number(item.get("tax_rate")),
        "amount": to_number(item.get("amount")),
    }


def _attach_invoice_bins(lines: list, items: list) -> None:
    for line, raw in zip(lines, items):
        for bin_id, quantity in parse_bin_allocations(raw):
            line.bin_allocations.append(
                InvoiceItemBinAllocation(bin_location_id=bin_id, quantity=quantity)
            )


def _issue_invoice_stock(invoice, lines: list) -> None:
    apply_line_stock(lines, sign=-1, organization_id=invoice.organization_id)


INVOICES = DocumentKind(
    key="invoices",
    label="invoice",
    model=Invoice,
    number_field="invoice_number",
    prefix="INV-",
    pad=4,
    line_model=InvoiceItem,
    line_fk="invoice_id",
    date_field="invoice_date",
    filter_fields=("status", "customer_id"),
    search_fields=("invoice_number", "customer_name"),
    validate=_validate_invoice,
    normalize_header=_invoice_header,
    normalize_line=_invoice_line,
    attach_lines=_attach_invoice_bins,
    after_create=_issue_invoice_stock,
)


# ------------------------------------------------------ delivery challans

def _validate_delivery_challan(payload: dict, partial: bool) -> None:
    check_required(
        payload, partial,
        text={"customer_name": "Customer name is required"},
        dates={"challan_date": "Challan date is required"},
    )


def _delivery_challan_header(payload: dict, partial: bool) -> dict:
    return header_fields(
        payload, partial,
        text=(
            "customer_name", "reference_number", "challan_type", "location", "status",
            "invoice_number", "alternate_phone", "delivery_location_type", "delivery_address",
            "pincode", "salesperson_name", "estimated_delivery_day", "notes",
        ),
        numbers=("subtotal", "adjustment", "total_amount"),
        ids=("customer_id", "invoice_id", "salesperson_id"),
        dates=("challan_date",),
        defaults={"status": "draft", "challan_type": "Supply on Approval"},
    )


DELIVERY_CHALLANS = DocumentKind(
    key="delivery_challans",
    label="delivery challan",
    model=DeliveryChallan,
    number_field="challan_number",
    prefix="DC-",
    pad=5,
    line_model=DeliveryChallanItem,
    line_fk="delivery_challan_id",
    date_field="challan_date",
    filter_fields=("status", "customer_id", "challan_type"),
    search_fields=("challan_number", "customer_name", "reference_number"),
    validate=_validate_delivery_challan,
    normalize_header=_delivery_challan_header,
    normalize_line=_sales_line,
)


# ------------------------------------------------------ payments received

def _validate_payment_received(payload: dict, partial: bool) -> None:
    check_required(
        payload, partial,
        text={"customer_name": "Customer name is required"},
        dates={"payment_date": "Payment date is required"},
    )
    if (not partial or "amount_received" in payload) and to_number(payload.get("amount_received")) <= 0:
        raise ValidationError("Amount received must be greater than zero")


def _payment_received_header(payload: dict, partial: bool) -> dict:
    return header_fields(
        payload, partial,
        text=("customer_name", "reference_number", "payment_mode", "deposit_to", "location",
              "invoice_number", "status", "notes"),
        numbers=("amount_received", "bank_charges", "amount_used", "amount_excess"),
        ids=("customer_id", "invoice_id"),
        dates=("payment_date",),
        defaults={"payment_mode": "Cash", "status": "recorded"},
    )


def apply_payment_to_invoice(payment, lines: list | None = None) -> None:
    """
    Move the linked invoice by amount_used (or amount_received when no
    amount_used was given). Does not commit.
    """
    if not payment.invoice_id:
        return
    invoice = lock_for_update(
        db.session.query(Invoice).filter_by(id=payment.invoice_id, organization_id=payment.organization_id)
    ).first()
    if invoice is None:
        logger.warning("Payment %s references missing invoice %s", payment.payment_number, payment.invoice_id)
        return

    applied = payment.amount_used if (payment.amount_used or 0) > 0 else (payment.amount_received or 0)
    paid = (invoice.amount_paid or 0) + applied
    balance = max(0.0, (invoice.total_amount or 0) - paid)

    invoice.amount_paid = paid
    invoice.balance_due = balance
    invoice.status = "paid" if balance <= 0 else "partial"
    db.session.flush()
    logger.info("Invoice %s now %s, balance %.2f", invoice.invoice_number, invoice.status, balance)


PAYMENTS_RECEIVED = DocumentKind(
    key="payments_received",
    label="payment",
    model=PaymentReceived,
    number_field="payment_number",
    prefix="PAY-",
    pad=5,
    date_field="payment_date",
    filter_fields=("customer_id", "payment_mode", "status", "invoice_id"),
    search_fields=("payment_number", "customer_name", "reference_number", "invoice_number"),
    validate=_validate_payment_received,
    normalize_header=_payment_received_header,
    after_create=apply_payment_to_invoice,
)

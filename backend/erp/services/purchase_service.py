# Overview: Purchase-side document kinds: bills, purchase orders, payments made, vendor credits.

"""
Purchase documents

BILL LIFECYCLE: draft -> open -> paid | overdue | void
- amount_paid starts at 0 and balance_due at total_amount
- creating a bill receives its line quantities into Item.current_stock
  (best-effort, after the bill itself is committed)
- each bill line may carry bin_allocations [{bin_location_id, quantity}],
  written in the same transaction as the line
"""

from __future__ import annotations

from flask import current_app

from ..models import (
    Bill,
    BillItem,
    BillItemBinAllocation,
    PaymentAllocation,
    PaymentMade,
    PurchaseOrder,
    PurchaseOrderItem,
    VendorCredit,
    VendorCreditItem,
)
from ..validation import ValidationError, optional_text, to_number, to_optional_id
from .crud_service import apply_line_stock
from .document_writer import DocumentKind, check_required, header_fields
from .stock_service import parse_bin_allocations

_AMOUNTS = ("subtotal", "tax_amount", "discount_amount", "adjustment", "total_amount")


# ---------------------------------------------------------------- bills

def _validate_bill(payload: dict, partial: bool) -> None:
    check_required(
        payload, partial,
        text={"vendor_name": "Vendor name is required"},
        dates={"bill_date": "Bill date is required"},
    )


def _bill_header(payload: dict, partial: bool) -> dict:
    header = header_fields(
        payload, partial,
        text=(
            "vendor_name", "vendor_email", "vendor_phone", "status", "payment_status",
            "notes", "terms_and_conditions", "reference_number",
        ),
        numbers=_AMOUNTS,
        ids=("vendor_id", "purchase_order_id"),
        dates=("bill_date", "due_date"),
        raw=("attachment_urls",),
        defaults={"status": "draft", "payment_status": "unpaid"},
    )
    if not partial:
        header["amount_paid"] = 0.0
        header["balance_due"] = header.get("total_amount", 0.0)
    elif "total_amount" in header:
        header["balance_due"] = header["total_amount"]
    return header


def _bill_line(item: dict) -> dict:
    return {
        "item_id": to_optional_id(item.get("item_id")),
        "item_name": optional_text(item.get("item_name")),
        "description": optional_text(item.get("description")),
        "quantity": to_number(item.get("quantity")),
        "unit_of_measurement": optional_text(item.get("unit_of_measurement")),
        "unit_price": to_number(item.get("unit_price")),
        "tax_rate": to_number(item.get("tax_rate")),
        "discount": to_number(item.get("discount")),
        "total": to_number(item.get("total")),
        "account": optional_text(item.get("account")),
    }


def _attach_bill_bins(lines: list, items: list) -> None:
    for line, raw in zip(lines, items):
        for bin_id, quantity in parse_bin_allocations(raw):
            line.bin_allocations.append(
                BillItemBinAllocation(bin_location_id=bin_id, quantity=quantity)
            )


def _receive_bill_stock(bill, lines: list) -> None:
    apply_line_stock(lines, sign=1, organization_id=bill.organization_id)


BILLS = DocumentKind(
    key="bills",
    label="bill",
    model=Bill,
    number_field="bill_number",
    prefix="BILL-",
    pad=4,
    line_model=BillItem,
    line_fk="bill_id",
    date_field="bill_date",
    filter_fields=("status", "payment_status", "vendor_id"),
    search_fields=("bill_number", "vendor_name", "reference_number"),
    validate=_validate_bill,
    normalize_header=_bill_header,
    normalize_line=_bill_line,
    attach_lines=_attach_bill_bins,
    after_create=_receive_bill_stock,
)


# ------------------------------------------------------- purchase orders

def _validate_purchase_order(payload: dict, partial: bool) -> None:
    check_required(
        payload, partial,
        text={"vendor_name": "Vendor name is required"},
        dates={"order_date": "Order date is required"},
    )
    if not partial and not payload.get("items"):
        raise ValidationError("At least one item is required")


def _purchase_order_header(payload: dict, partial: bool) -> dict:
    return header_fields(
        payload, partial,
        text=(
            "vendor_name", "vendor_email", "reference_number", "delivery_address",
            "status", "notes", "terms_and_conditions",
        ),
        numbers=_AMOUNTS,
        ids=("vendor_id",),
        dates=("order_date", "expected_delivery_date"),
        defaults={"status": "draft"},
    )


def _purchase_order_line(item: dict) -> dict:
    return {
        "item_id": to_optional_id(item.get("item_id")),
        "item_name": optional_text(item.get("item_name")),
        "description": optional_text(item.get("description")),
        "quantity": to_number(item.get("quantity")),
        "unit_of_measurement": optional_text(item.get("unit_of_measurement")) or "pcs",
        "rate": to_number(item.get("rate")),
        "amount": to_number(item.get("amount")),
    }


PURCHASE_ORDERS = DocumentKind(
    key="purchase_orders",
    label="purchase order",
    model=PurchaseOrder,
    number_field="purchase_order_number",
    prefix="PO-",
    pad=5,
    line_model=PurchaseOrderItem,
    line_fk="purchase_order_id",
    date_field="order_date",
    filter_fields=("status", "vendor_id"),
    search_fields=("purchase_order_number", "vendor_name", "reference_number"),
    validate=_validate_purchase_order,
    normalize_header=_purchase_order_header,
    normalize_line=_purchase_order_line,
)


# ---------------------------------------------------------- payments made

def _validate_payment_made(payload: dict, partial: bool) -> None:
    check_required(
        payload, partial,
        text={
            "vendor_name": "Vendor name is required",
            "payment_mode": "Payment mode is required",
        },
        dates={"payment_date": "Payment date is required"},
    )


def _payment_made_header(payload: dict, partial: bool) -> dict:
    header = header_fields(
        payload, partial,
        text=(
            "vendor_name", "payment_mode", "reference_number", "currency", "payment_account",
            "deposit_to", "bill_number", "status", "notes",
        ),
        numbers=("amount", "bank_charges", "exchange_rate"),
        ids=("vendor_id", "bill_id"),
        dates=("payment_date",),
        defaults={"status": "completed", "currency": current_app.config.get("DEFAULT_CURRENCY", "INR")},
    )
    if not partial and not header.get("exchange_rate"):
        header["exchange_rate"] = 1.0
    return header


def _payment_allocation_line(item: dict) -> dict:
    return {
        "bill_id": to_optional_id(item.get("bill_id")),
        "bill_number": optional_text(item.get("bill_number")),
        "amount_allocated": to_number(item.get("amount_allocated")),
    }


PAYMENTS_MADE = DocumentKind(
    key="payments_made",
    label="payment",
    model=PaymentMade,
    number_field="payment_number",
    prefix="PAY-",
    pad=4,
    line_model=PaymentAllocation,
    line_fk="payment_id",
    lines_key="allocations",
    date_field="payment_date",
    filter_fields=("vendor_id", "payment_mode", "status"),
    search_fields=("payment_number", "vendor_name", "reference_number"),
    validate=_validate_payment_made,
    normalize_header=_payment_made_header,
    normalize_line=_payment_allocation_line,
)


# ---------------------------------------------------------- vendor credits

def _validate_vendor_credit(payload: dict, partial: bool) -> None:
    check_required(
        payload, partial,
        text={"vendor_name": "Vendor name is required"},
        dates={"credit_date": "Credit date is required"},
    )


def _vendor_credit_header(payload: dict, partial: bool) -> dict:
    header = header_fields(
        payload, partial,
        text=("vendor_name", "reference_number", "status", "notes"),
        numbers=_AMOUNTS + ("balance",),
        ids=("vendor_id", "bill_id"),
        dates=("credit_date",),
        defaults={"status": "draft"},
    )
    if not partial and "balance" not in payload:
        header["balance"] = header.get("total_amount", 0.0)
    return header


def _vendor_credit_line(item: dict) -> dict:
    return {
        "item_id": to_optional_id(item.get("item_id")),
        "item_name": optional_text(item.get("item_name")),
        "description": optional_text(item.get("description")),
        "quantity": to_number(item.get("quantity")),
        "unit_of_measurement": optional_text(item.get("unit_of_measurement")) or "pcs",
        "rate": to_number(item.get("rate")),
        "tax_rate": to_number(item.get("tax_rate")),
        "amount": to_number(item.get("amount")),
    }


VENDOR_CREDITS = DocumentKind(
    key="vendor_credits",
    label="vendor credit",
    model=VendorCredit,
    number_field="credit_note_number",
    prefix="VC-",
    pad=4,
    line_model=VendorCreditItem,
    line_fk="vendor_credit_id",
    date_field="credit_date",
    filter_fields=("status", "vendor_id"),
    search_fields=("credit_note_number", "vendor_name", "reference_number"),
    validate=_validate_vendor_credit,
    normalize_header=_vendor_credit_header,
    normalize_line=_vendor_credit_line,
)

# Overview: Bin locations and bin-level stock derived from the allocation ledgers.

"""
Stock/Bin Aggregator

Bins never store a quantity. Net stock in a bin is recomputed on every
read from two append-only ledgers:

    purchases (bill line allocations)   +quantity
    sales (invoice line allocations)    -quantity

Items are keyed by item_id, or by the line's item_name when the line was
entered free-text (item_id NULL). Only positive net quantities are shown.

Transfer order allocations only feed bin_item_balances(), which transfer
initiation uses to choose a source bin.
"""

from __future__ import annotations

from collections import defaultdict

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    Bill,
    BillItem,
    BillItemBinAllocation,
    BinLocation,
    Invoice,
    InvoiceItem,
    InvoiceItemBinAllocation,
    TransferOrder,
    TransferOrderAllocation,
)
from ..time_utils import to_utc_z
from ..validation import ConflictError, NotFoundError, ValidationError, optional_text, to_number, to_optional_id


def parse_bin_allocations(raw: dict) -> list[tuple[int, float]]:
    """(bin_location_id, quantity) pairs from a document line; zero/negative quantities are dropped."""
    allocations = raw.get("bin_allocations") or []
    if not isinstance(allocations, list):
        raise ValidationError("bin_allocations must be a list")
    out = []
    for alloc in allocations:
        if not isinstance(alloc, dict):
            raise ValidationError("Each bin allocation must be an object")
        bin_id = to_optional_id(alloc.get("bin_location_id"))
        quantity = to_number(alloc.get("quantity"))
        if bin_id is None or quantity <= 0:
            continue
        out.append((bin_id, quantity))
    return out


# ----------------------------------------------------------- bin CRUD

def list_bin_locations(*, warehouse: str | None = None, status: str | None = None,
                       search: str | None = None) -> list[dict]:
    query = db.session.query(BinLocation)
    if warehouse:
        query = query.filter(BinLocation.warehouse == warehouse)
    if status:
        query = query.filter(BinLocation.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            BinLocation.bin_code.ilike(pattern),
            BinLocation.warehouse.ilike(pattern),
            BinLocation.description.ilike(pattern),
        ))
    return [b.to_dict() for b in query.order_by(BinLocation.bin_code).all()]


def _get_bin(bin_id: int) -> BinLocation:
    bin_location = db.session.get(BinLocation, bin_id)
    if bin_location is None:
        raise NotFoundError("Bin location not found")
    return bin_location


def get_bin_location(bin_id: int) -> dict:
    return _get_bin(bin_id).to_dict()


def _ensure_code_free(bin_code: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(BinLocation.id).filter(BinLocation.bin_code == bin_code)
    if exclude_id is not None:
        query = query.filter(BinLocation.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Bin code '{bin_code}' already exists")


def _commit_bin(bin_location: BinLocation) -> dict:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(f"Bin code '{bin_location.bin_code}' already exists") from exc
    return bin_location.to_dict()


def create_bin_location(payload: dict) -> dict:
    bin_code = optional_text(payload.get("bin_code"))
    warehouse = optional_text(payload.get("warehouse"))
    if not bin_code:
        raise ValidationError("Bin code is required")
    if not warehouse:
        raise ValidationError("Warehouse is required")
    _ensure_code_free(bin_code)

    bin_location = BinLocation(
        bin_code=bin_code,
        warehouse=warehouse,
        description=optional_text(payload.get("description")),
        status=optional_text(payload.get("status")) or "active",
    )
    db.session.add(bin_location)
    return _commit_bin(bin_location)


def update_bin_location(bin_id: int, payload: dict) -> dict:
    bin_location = _get_bin(bin_id)

    if "bin_code" in payload:
        bin_code = optional_text(payload.get("bin_code"))
        if not bin_code:
            raise ValidationError("Bin code is required")
        _ensure_code_free(bin_code, exclude_id=bin_id)
        bin_location.bin_code = bin_code
    if "warehouse" in payload:
        warehouse = optional_text(payload.get("warehouse"))
        if not warehouse:
            raise ValidationError("Warehouse is required")
        bin_location.warehouse = warehouse
    if "description" in payload:
        bin_location.description = optional_text(payload.get("description"))
    if "status" in payload:
        bin_location.status = optional_text(payload.get("status")) or "active"

    return _commit_bin(bin_location)


def _has_stock_history(bin_id: int) -> bool:
    ledgers = (
        db.session.query(BillItemBinAllocation.id).filter_by(bin_location_id=bin_id),
        db.session.query(InvoiceItemBinAllocation.id).filter_by(bin_location_id=bin_id),
        db.session.query(TransferOrderAllocation.id).filter(or_(
            TransferOrderAllocation.source_bin_location_id == bin_id,
            TransferOrderAllocation.destination_bin_location_id == bin_id,
        )),
    )
    return any(query.first() is not None for query in ledgers)


def delete_bin_location(bin_id: int) -> bool:
    """Idempotent for missing bins. A bin referenced by any allocation cannot be deleted."""
    bin_location = db.session.get(BinLocation, bin_id)
    if bin_location is None:
        return False
    if _has_stock_history(bin_id):
        raise ConflictError("Bin location has stock history")
    db.session.delete(bin_location)
    db.session.commit()
    return True


# ------------------------------------------------------ ledger reads

def _purchase_rows(*, organization_id: str, item_id: int | None = None):
    query = (
        db.session.query(BillItemBinAllocation, BillItem, Bill)
        .join(BillItem, BillItemBinAllocation.bill_item_id == BillItem.id)
        .join(Bill, BillItem.bill_id == Bill.id)
        .filter(Bill.organization_id == organization_id)
    )
    if item_id is not None:
        query = query.filter(BillItem.item_id == item_id)
    return query.order_by(BillItemBinAllocation.created_at.desc(), BillItemBinAllocation.id.desc()).all()


def _sale_rows(*, organization_id: str, item_id: int | None = None):
    query = (
        db.session.query(InvoiceItemBinAllocation, InvoiceItem, Invoice)
        .join(InvoiceItem, InvoiceItemBinAllocation.invoice_item_id == InvoiceItem.id)
        .join(Invoice, InvoiceItem.invoice_id == Invoice.id)
        .filter(Invoice.organization_id == organization_id)
    )
    if item_id is not None:
        query = query.filter(InvoiceItem.item_id == item_id)
    return query.order_by(InvoiceItemBinAllocation.created_at.desc(), InvoiceItemBinAllocation.id.desc()).all()


def _item_key(line) -> int | str:
    if line.item_id is not None:
        return line.item_id
    return f"name:{line.item_name}"


def _entry(bucket: dict, line) -> dict:
    key = _item_key(line)
    if key not in bucket:
        bucket[key] = {
            "item_id": line.item_id,
            "item_name": line.item_name or "Unknown Item",
            "quantity": 0.0,
            "unit_of_measurement": line.unit_of_measurement or "pcs",
            "transactions": [],
        }
    return bucket[key]


def get_bin_locations_with_stock(*, organization_id: str) -> list[dict]:
    """Every bin (ordered by bin_code) with its positive net item quantities."""
    bins = db.session.query(BinLocation).order_by(BinLocation.bin_code).all()
    stock: dict[int, dict] = defaultdict(dict)

    for alloc, line, bill in _purchase_rows(organization_id=organization_id):
        entry = _entry(stock[alloc.bin_location_id], line)
        entry["quantity"] += alloc.quantity
        entry["transactions"].append({
            "type": "purchase",
            "reference": bill.bill_number,
            "date": bill.bill_date.isoformat() if bill.bill_date else None,
            "quantity": alloc.quantity,
            "created_at": to_utc_z(alloc.created_at),
        })

    for alloc, line, invoice in _sale_rows(organization_id=organization_id):
        entry = _entry(stock[alloc.bin_location_id], line)
        entry["quantity"] -= alloc.quantity
        entry["transactions"].append({
            "type": "sale",
            "reference": invoice.invoice_number,
            "date": invoice.invoice_date.isoformat() if invoice.invoice_date else None,
            "quantity": -alloc.quantity,
            "created_at": to_utc_z(alloc.created_at),
        })

    result = []
    for bin_location in bins:
        items = [e for e in stock.get(bin_location.id, {}).values() if e["quantity"] > 0]
        data = bin_location.to_dict()
        data["items"] = items
        data["total_items"] = len(items)
        data["total_quantity"] = sum(e["quantity"] for e in items)
        result.append(data)
    return result


def get_bin_locations_for_item(item_id: int, *, organization_id: str) -> list[dict]:
    """Bins currently holding item_id, largest quantity first."""
    rows: dict[int, dict] = {}

    def _row(bin_location: BinLocation, line) -> dict:
        if bin_location.id not in rows:
            rows[bin_location.id] = {
                "bin_id": bin_location.id,
                "bin_code": bin_location.bin_code,
                "warehouse": bin_location.warehouse,
                "description": bin_location.description,
                "status": bin_location.status,
                "quantity": 0.0,
                "unit_of_measurement": line.unit_of_measurement or "pcs",
                "transactions": [],
            }
        return rows[bin_location.id]

    for alloc, line, bill in _purchase_rows(organization_id=organization_id, item_id=item_id):
        if alloc.bin_location is None:
            continue
        row = _row(alloc.bin_location, line)
        row["quantity"] += alloc.quantity
        row["transactions"].append({
            "type": "purchase",
            "bill_number": bill.bill_number,
            "bill_date": bill.bill_date.isoformat() if bill.bill_date else None,
            "quantity": alloc.quantity,
            "created_at": to_utc_z(alloc.created_at),
        })

    for alloc, line, invoice in _sale_rows(organization_id=organization_id, item_id=item_id):
        if alloc.bin_location is None:
            continue
        row = _row(alloc.bin_location, line)
        row["quantity"] -= alloc.quantity
        row["transactions"].append({
            "type": "sale",
            "invoice_number": invoice.invoice_number,
            "invoice_date": invoice.invoice_date.isoformat() if invoice.invoice_date else None,
            "quantity": -alloc.quantity,
            "created_at": to_utc_z(alloc.created_at),
        })

    positive = [r for r in rows.values() if r["quantity"] > 0]
    return sorted(positive, key=lambda r: r["quantity"], reverse=True)


def bin_item_balances(item_id: int, *, organization_id: str) -> dict[int, float]:
    """
    bin_id -> net quantity of item_id, including transfers:
    purchases - sales - transferred out + transferred in.
    """
    balances: dict[int, float] = defaultdict(float)
    for alloc, _line, _bill in _purchase_rows(organization_id=organization_id, item_id=item_id):
        balances[alloc.bin_location_id] += alloc.quantity
    for alloc, _line, _invoice in _sale_rows(organization_id=organization_id, item_id=item_id):
        balances[alloc.bin_location_id] -= alloc.quantity

    transfers = (
        db.session.query(TransferOrderAllocation)
        .join(TransferOrder, TransferOrderAllocation.transfer_order_id == TransferOrder.id)
        .filter(TransferOrder.organization_id == organization_id, TransferOrderAllocation.item_id == item_id)
        .all()
    )
    for move in transfers:
        balances[move.source_bin_location_id] -= move.quantity
        balances[move.destination_bin_location_id] += move.quantity
    return dict(balances)

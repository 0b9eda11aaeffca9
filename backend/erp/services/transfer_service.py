# Overview: Transfer orders between warehouses and the bin-to-bin allocations they create.

"""
Transfer Orders

LIFECYCLE:
1. draft: lines editable, no stock effect
2. initiated: one TransferOrderAllocation per line (source bin -> destination bin)
3. in_transit
4. received
5. cancelled: allocations deleted

Warehouses are identified by name: source_location/destination_location
match BinLocation.warehouse.

SOURCE BIN CHOICE: for each line, the active source-warehouse bin with the
highest net stock of the item (purchases - sales - transferred out +
transferred in). When no bin holds any, the first active bin is used.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import BinLocation, TransferOrder, TransferOrderAllocation, TransferOrderItem
from ..validation import NotFoundError, ValidationError, optional_text, to_number, to_optional_id
from .document_writer import (
    DocumentKind,
    DocumentWriteError,
    check_required,
    create_document,
    delete_document,
    get_document,
    header_fields,
    update_document,
)
from .stock_service import bin_item_balances

logger = logging.getLogger(__name__)

TRANSFER_STATUSES = ("draft", "initiated", "in_transit", "received", "cancelled")

SAME_LOCATION_MESSAGE = "Transfers cannot be made within the same location. Please choose a different one and proceed."
NO_ITEMS_MESSAGE = "Transfer order must contain at least one item."
ZERO_QUANTITY_MESSAGE = "Transactions cannot be proceed with Zero Quantity."
STATUS_VIA_PATCH_MESSAGE = "Use PATCH /api/transfer-orders/<id>/status to change a transfer order's status."
DRAFT_ONLY_ITEMS_MESSAGE = "Items can only be changed while the transfer order is a draft."


def _validate_transfer(payload: dict, partial: bool) -> None:
    check_required(
        payload, partial,
        text={
            "source_location": "Source location is required",
            "destination_location": "Destination location is required",
        },
        dates={"transfer_date": "Transfer date is required"},
    )

    source = optional_text(payload.get("source_location"))
    destination = optional_text(payload.get("destination_location"))
    if source and destination and source == destination:
        raise ValidationError(SAME_LOCATION_MESSAGE)

    status = payload.get("status")
    if partial and "status" in payload:
        raise ValidationError(STATUS_VIA_PATCH_MESSAGE)
    if status is not None and status not in TRANSFER_STATUSES:
        raise ValidationError(f"Invalid status: {status}")

    items = payload.get("items")
    if items is None:
        if not partial:
            raise ValidationError(NO_ITEMS_MESSAGE)
        return
    if not partial and not items:
        raise ValidationError(NO_ITEMS_MESSAGE)
    if isinstance(items, list) and any(
        isinstance(item, dict) and to_number(item.get("transfer_quantity")) <= 0 for item in items
    ):
        raise ValidationError(ZERO_QUANTITY_MESSAGE)


def _transfer_header(payload: dict, partial: bool) -> dict:
    header = header_fields(
        payload, partial,
        text=("source_location", "destination_location", "reason", "status", "notes"),
        dates=("transfer_date",),
        defaults={"status": "draft"},
    )
    items = payload.get("items")
    if isinstance(items, list):
        header["total_items"] = len(items)
        header["total_quantity"] = sum(to_number(i.get("transfer_quantity")) for i in items if isinstance(i, dict))
    return header


def _transfer_line(item: dict) -> dict:
    return {
        "item_id": to_optional_id(item.get("item_id")),
        "item_name": optional_text(item.get("item_name")),
        "description": optional_text(item.get("description")),
        "source_availability": to_number(item.get("source_availability")),
        "destination_availability": to_number(item.get("destination_availability")),
        "transfer_quantity": to_number(item.get("transfer_quantity")),
        "unit_of_measurement": optional_text(item.get("unit_of_measurement")),
    }


TRANSFER_ORDERS = DocumentKind(
    key="transfer_orders",
    label="transfer order",
    model=TransferOrder,
    number_field="transfer_order_number",
    prefix="TO-",
    pad=4,
    line_model=TransferOrderItem,
    line_fk="transfer_order_id",
    date_field="transfer_date",
    filter_fields=("status", "source_location", "destination_location"),
    search_fields=("transfer_order_number", "source_location", "destination_location", "reason"),
    validate=_validate_transfer,
    normalize_header=_transfer_header,
    normalize_line=_transfer_line,
)


def create_transfer_order(payload: dict, *, organization_id: str) -> dict:
    """
    Create a transfer order. A payload asking for status `initiated` is
    created as draft and then initiated, so the allocations and the status
    change land together; if initiation fails the order stays a draft.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    initiate = payload.get("status") == "initiated"
    destination_bin_id = payload.get("destination_bin_id")
    data = {k: v for k, v in payload.items() if k != "destination_bin_id"}
    if initiate:
        data["status"] = "draft"

    order = create_document(TRANSFER_ORDERS, data, organization_id=organization_id)
    if initiate:
        return update_transfer_status(
            order["id"], "initiated",
            organization_id=organization_id, destination_bin_id=destination_bin_id,
        )
    return order


def update_transfer_order(order_id: int, payload: dict, *, organization_id: str) -> dict:
    """Header edits. Status moves go through update_transfer_status; lines are frozen once allocated."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    order = db.session.query(TransferOrder).filter_by(id=order_id, organization_id=organization_id).first()
    if order is None:
        raise NotFoundError("Transfer order not found")
    if payload.get("items") is not None and order.status != "draft":
        raise ValidationError(DRAFT_ONLY_ITEMS_MESSAGE)
    return update_document(TRANSFER_ORDERS, order_id, payload, organization_id=organization_id)


def delete_transfer_order(order_id: int, *, organization_id: str) -> bool:
    order = db.session.query(TransferOrder).filter_by(id=order_id, organization_id=organization_id).first()
    if order is not None:
        db.session.query(TransferOrderAllocation).filter_by(transfer_order_id=order_id).delete()
    return delete_document(TRANSFER_ORDERS, order_id, organization_id=organization_id)


def _active_bins(warehouse: str) -> list[BinLocation]:
    return (
        db.session.query(BinLocation)
        .filter(BinLocation.warehouse == warehouse, BinLocation.status == "active")
        .order_by(BinLocation.id)
        .all()
    )


def _allocate_stock(order: TransferOrder, destination_bin_id=None) -> None:
    items = (
        db.session.query(TransferOrderItem)
        .filter_by(transfer_order_id=order.id)
        .order_by(TransferOrderItem.id)
        .all()
    )
    if not items:
        raise ValidationError("Transfer order has no items")

    source_bins = _active_bins(order.source_location)
    if not source_bins:
        raise ValidationError(f"No active bins at source location '{order.source_location}'")
    dest_bins = _active_bins(order.destination_location)
    if not dest_bins:
        raise ValidationError(f"No active bins at destination location '{order.destination_location}'")

    dest_bin_id = dest_bins[0].id
    requested = to_optional_id(destination_bin_id)
    if requested is not None and any(b.id == requested for b in dest_bins):
        dest_bin_id = requested

    for item in items:
        if not item.item_id or not item.transfer_quantity:
            continue

        balances = bin_item_balances(item.item_id, organization_id=order.organization_id)
        best_bin_id, best_stock = source_bins[0].id, 0.0
        for bin_location in source_bins:
            net = balances.get(bin_location.id, 0.0)
            if net > best_stock:
                best_bin_id, best_stock = bin_location.id, net

        db.session.add(TransferOrderAllocation(
            transfer_order_id=order.id,
            transfer_order_item_id=item.id,
            item_id=item.item_id,
            source_bin_location_id=best_bin_id,
            destination_bin_location_id=dest_bin_id,
            quantity=item.transfer_quantity,
        ))
        db.session.flush()


def update_transfer_status(
    order_id: int,
    status: str,
    *,
    organization_id: str,
    destination_bin_id=None,
) -> dict:
    if status not in TRANSFER_STATUSES:
        raise ValidationError(f"Invalid status: {status}")

    order = db.session.query(TransferOrder).filter_by(id=order_id, organization_id=organization_id).first()
    if order is None:
        raise NotFoundError("Transfer order not found")

    try:
        if status in ("initiated", "cancelled"):
            # Re-initiating replaces earlier allocations instead of doubling them
            db.session.query(TransferOrderAllocation).filter_by(transfer_order_id=order_id).delete()
            db.session.flush()
        if status == "initiated":
            _allocate_stock(order, destination_bin_id)
        order.status = status
        db.session.commit()
    except ValidationError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise DocumentWriteError(f"Failed to update transfer order status: {exc}") from exc

    logger.info("Transfer order %s -> %s", order.transfer_order_number, status)
    return get_document(TRANSFER_ORDERS, order_id, organization_id=organization_id)


def list_transfer_allocations(order_id: int, *, organization_id: str) -> list[dict]:
    rows = (
        db.session.query(TransferOrderAllocation)
        .join(TransferOrder, TransferOrderAllocation.transfer_order_id == TransferOrder.id)
        .filter(TransferOrder.organization_id == organization_id, TransferOrder.id == order_id)
        .order_by(TransferOrderAllocation.id)
        .all()
    )
    return [r.to_dict() for r in rows]


def get_item_stock_by_location(item_id: int, *, organization_id: str) -> list[dict]:
    """Net stock of item_id per warehouse, positive rows only, largest first."""
    balances = bin_item_balances(item_id, organization_id=organization_id)
    if not balances:
        return []

    bins = db.session.query(BinLocation).filter(BinLocation.id.in_(list(balances))).all()
    warehouse_of = {b.id: b.warehouse for b in bins}

    totals: dict[str, float] = defaultdict(float)
    for bin_id, quantity in balances.items():
        totals[warehouse_of.get(bin_id, "Unknown")] += quantity

    rows = [
        {"location_name": name, "available_quantity": quantity}
        for name, quantity in totals.items()
        if quantity > 0
    ]
    return sorted(rows, key=lambda r: r["available_quantity"], reverse=True)

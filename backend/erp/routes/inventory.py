# Overview: Flask API routes for items, brands, manufacturers, bin locations and transfer orders.

"""
Inventory routes

Bin stock is never stored: /api/bin-locations/stock/all and
/api/bin-locations/item/<id> derive it from bill and invoice bin
allocations on every call. /api/transfer-orders/item-stock/<id> also
counts transfer allocations.
"""

from flask import Blueprint, request

from ..decorators import handle_service_errors, require_auth, success
from ..services import crud_service, reporting_service, stock_service, transfer_service
from ..services.transfer_service import TRANSFER_ORDERS
from ..validation import ValidationError
from .common import json_body, organization_id, register_crud_routes, register_document_routes

items_bp = Blueprint("items", __name__, url_prefix="/api/items")
brands_bp = Blueprint("brands", __name__, url_prefix="/api/brands")
manufacturers_bp = Blueprint("manufacturers", __name__, url_prefix="/api/manufacturers")
bin_locations_bp = Blueprint("bin_locations", __name__, url_prefix="/api/bin-locations")
transfer_orders_bp = Blueprint("transfer_orders", __name__, url_prefix="/api/transfer-orders")


# ---------------------------------------------------------------- items

@items_bp.get("/summary")
@handle_service_errors
def items_summary_route():
    return success(reporting_service.items_summary(organization_id=organization_id()))


@items_bp.get("/top-selling")
@handle_service_errors
def top_selling_route():
    limit = request.args.get("limit", 10, type=int)
    return success(reporting_service.top_selling_items(organization_id=organization_id(), limit=limit))


@items_bp.post("/<int:item_id>/adjust-stock")
@require_auth
@handle_service_errors
def adjust_stock_route(item_id: int):
    """Body: {"quantity": <signed delta>}"""
    data = json_body()
    delta = data.get("quantity")
    if isinstance(delta, bool) or not isinstance(delta, (int, float)):
        raise ValidationError("quantity must be a number")
    item = crud_service.adjust_item_stock(item_id, delta, organization_id=organization_id())
    return success(item, message="Stock adjusted successfully")


register_crud_routes(items_bp, crud_service.items)
register_crud_routes(brands_bp, crud_service.brands)
register_crud_routes(manufacturers_bp, crud_service.manufacturers)


# --------------------------------------------------------- bin locations

@bin_locations_bp.get("")
@handle_service_errors
def list_bins_route():
    rows = stock_service.list_bin_locations(
        warehouse=request.args.get("warehouse"),
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return success(rows, count=len(rows))


@bin_locations_bp.get("/stock/all")
@handle_service_errors
def bins_with_stock_route():
    return success(stock_service.get_bin_locations_with_stock(organization_id=organization_id()))


@bin_locations_bp.get("/item/<int:item_id>")
@handle_service_errors
def bins_for_item_route(item_id: int):
    return success(stock_service.get_bin_locations_for_item(item_id, organization_id=organization_id()))


@bin_locations_bp.get("/<int:bin_id>")
@handle_service_errors
def get_bin_route(bin_id: int):
    return success(stock_service.get_bin_location(bin_id))


@bin_locations_bp.post("")
@require_auth
@handle_service_errors
def create_bin_route():
    row = stock_service.create_bin_location(json_body())
    return success(row, message="Bin location created successfully", status=201)


@bin_locations_bp.put("/<int:bin_id>")
@require_auth
@handle_service_errors
def update_bin_route(bin_id: int):
    row = stock_service.update_bin_location(bin_id, json_body())
    return success(row, message="Bin location updated successfully")


@bin_locations_bp.delete("/<int:bin_id>")
@require_auth
@handle_service_errors
def delete_bin_route(bin_id: int):
    deleted = stock_service.delete_bin_location(bin_id)
    return success({"deleted": deleted}, message="Bin location deleted successfully")


# ------------------------------------------------------- transfer orders

@transfer_orders_bp.get("/summary")
@handle_service_errors
def transfer_summary_route():
    return success(reporting_service.transfer_orders_summary(organization_id=organization_id()))


@transfer_orders_bp.get("/item-stock/<int:item_id>")
@handle_service_errors
def item_stock_route(item_id: int):
    return success(transfer_service.get_item_stock_by_location(item_id, organization_id=organization_id()))


@transfer_orders_bp.get("/<int:order_id>/allocations")
@handle_service_errors
def allocations_route(order_id: int):
    return success(transfer_service.list_transfer_allocations(order_id, organization_id=organization_id()))


@transfer_orders_bp.patch("/<int:order_id>/status")
@require_auth
@handle_service_errors
def transfer_status_route(order_id: int):
    """Body: {"status": "...", "destination_bin_id": optional}"""
    data = json_body()
    order = transfer_service.update_transfer_status(
        order_id,
        data.get("status"),
        organization_id=organization_id(),
        destination_bin_id=data.get("destination_bin_id"),
    )
    return success(order, message="Transfer order status updated successfully")


register_document_routes(
    transfer_orders_bp,
    TRANSFER_ORDERS,
    number_path="/generate-transfer-order-number",
    create=transfer_service.create_transfer_order,
    update=transfer_service.update_transfer_order,
    delete=transfer_service.delete_transfer_order,
)

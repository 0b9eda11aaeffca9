# Overview: Flask API routes for sales documents and the sales dashboard.

from flask import Blueprint, request

from ..decorators import handle_service_errors, success
from ..services import reporting_service
from ..services.sales_service import DELIVERY_CHALLANS, INVOICES, PAYMENTS_RECEIVED, SALES_ORDERS
from .common import date_args, organization_id, register_document_routes

sales_orders_bp = Blueprint("sales_orders", __name__, url_prefix="/api/sales-orders")
invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")
delivery_challans_bp = Blueprint("delivery_challans", __name__, url_prefix="/api/delivery-challans")
payments_received_bp = Blueprint("payments_received", __name__, url_prefix="/api/payments-received")
sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

register_document_routes(sales_orders_bp, SALES_ORDERS)
register_document_routes(invoices_bp, INVOICES)
register_document_routes(delivery_challans_bp, DELIVERY_CHALLANS)
register_document_routes(payments_received_bp, PAYMENTS_RECEIVED)


@sales_bp.get("/summary")
@handle_service_errors
def sales_summary_route():
    return success(reporting_service.sales_summary(organization_id=organization_id(), **date_args()))


@sales_bp.get("/by-status")
@handle_service_errors
def sales_by_status_route():
    return success(reporting_service.sales_by_status(organization_id=organization_id(), **date_args()))


@sales_bp.get("/top-customers")
@handle_service_errors
def top_customers_route():
    limit = request.args.get("limit", 10, type=int)
    return success(reporting_service.top_customers(organization_id=organization_id(), limit=limit, **date_args()))

# Overview: Flask API routes for purchase documents: bills, purchase orders, payments made, vendor credits.

from flask import Blueprint

from ..decorators import handle_service_errors, success
from ..services import reporting_service
from ..services.purchase_service import BILLS, PAYMENTS_MADE, PURCHASE_ORDERS, VENDOR_CREDITS
from .common import date_args, organization_id, register_document_routes

bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")
purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")
payments_made_bp = Blueprint("payments_made", __name__, url_prefix="/api/payments")
vendor_credits_bp = Blueprint("vendor_credits", __name__, url_prefix="/api/vendor-credits")


@bills_bp.get("/summary")
@handle_service_errors
def bills_summary_route():
    return success(reporting_service.bills_summary(organization_id=organization_id(), **date_args()))


@purchase_orders_bp.get("/summary")
@handle_service_errors
def purchases_summary_route():
    return success(reporting_service.purchases_summary(organization_id=organization_id(), **date_args()))


@payments_made_bp.get("/summary")
@handle_service_errors
def payments_summary_route():
    return success(reporting_service.payments_summary(organization_id=organization_id(), **date_args()))


register_document_routes(bills_bp, BILLS, number_path="/generate-bill-number")
register_document_routes(purchase_orders_bp, PURCHASE_ORDERS, number_path="/generate-po-number")
register_document_routes(payments_made_bp, PAYMENTS_MADE, number_path="/generate-payment-number")
register_document_routes(vendor_credits_bp, VENDOR_CREDITS)

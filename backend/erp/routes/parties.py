# Overview: Flask API routes for customers and vendors.

from flask import Blueprint

from ..services import crud_service
from .common import register_crud_routes

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")
vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")

register_crud_routes(customers_bp, crud_service.customers)
register_crud_routes(vendors_bp, crud_service.vendors)

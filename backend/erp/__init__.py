# backend/erp/__init__.py
from flask import Flask, request

from .config import Config
from .decorators import failure
from .extensions import db, migrate

# Writes that stay open in read-only mode so users can still sign in
READ_ONLY_EXEMPT_PATHS = {"/api/auth/login", "/api/auth/verify"}
SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.purchases import bills_bp, purchase_orders_bp, payments_made_bp, vendor_credits_bp
    from .routes.sales import sales_orders_bp, invoices_bp, delivery_challans_bp, payments_received_bp, sales_bp
    from .routes.inventory import items_bp, brands_bp, manufacturers_bp, bin_locations_bp, transfer_orders_bp
    from .routes.parties import customers_bp, vendors_bp
    from .routes.operations import (
        expenses_bp, expense_categories_bp, tasks_bp, reports_bp, report_templates_bp, ai_bp, ai_insights_bp,
    )
    from .routes.pos import pos_sessions_bp

    for bp in (
        system_bp, auth_bp,
        bills_bp, purchase_orders_bp, payments_made_bp, vendor_credits_bp,
        sales_orders_bp, invoices_bp, delivery_challans_bp, payments_received_bp, sales_bp,
        items_bp, brands_bp, manufacturers_bp, bin_locations_bp, transfer_orders_bp,
        customers_bp, vendors_bp,
        expenses_bp, expense_categories_bp, tasks_bp, reports_bp, report_templates_bp, ai_bp, ai_insights_bp,
        pos_sessions_bp,
    ):
        app.register_blueprint(bp)

    @app.before_request
    def read_only_guard():
        if not app.config.get("READ_ONLY_MODE"):
            return None
        if request.method in SAFE_METHODS or request.path in READ_ONLY_EXEMPT_PATHS:
            return None
        return failure(
            "Read-only mode is enabled. Write operations are not permitted.",
            403,
            readOnlyMode=True,
        )

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    @app.errorhandler(404)
    def not_found(_error):
        return failure("Route not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return failure("Method not allowed", 405)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error("Unhandled server error: %s", error)
        return failure("Internal server error", 500)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app

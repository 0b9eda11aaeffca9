# Overview: Flask API routes for expenses, tasks, reports and AI insights.

from flask import Blueprint, request

from ..decorators import handle_service_errors, success
from ..services import crud_service, reporting_service
from .common import date_args, organization_id, register_crud_routes

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")
expense_categories_bp = Blueprint("expense_categories", __name__, url_prefix="/api/expenses/categories")
tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")
reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")
report_templates_bp = Blueprint("report_templates", __name__, url_prefix="/api/reports/templates")
ai_bp = Blueprint("ai", __name__, url_prefix="/api/ai")
ai_insights_bp = Blueprint("ai_insights", __name__, url_prefix="/api/ai/insights")


# ------------------------------------------------------------- expenses

@expenses_bp.get("/summary")
@handle_service_errors
def expenses_summary_route():
    return success(reporting_service.expenses_summary(organization_id=organization_id(), **date_args()))


@expenses_bp.get("/by-category")
@handle_service_errors
def expenses_by_category_route():
    limit = request.args.get("limit", type=int)
    return success(reporting_service.expenses_by_category(
        organization_id=organization_id(), limit=limit, **date_args()
    ))


register_crud_routes(expenses_bp, crud_service.expenses)
register_crud_routes(expense_categories_bp, crud_service.expense_categories)


# ---------------------------------------------------------------- tasks

@tasks_bp.get("/summary")
@handle_service_errors
def tasks_summary_route():
    return success(reporting_service.tasks_summary(organization_id=organization_id()))


@tasks_bp.get("/by-status")
@handle_service_errors
def tasks_by_status_route():
    return success(reporting_service.tasks_by_status(organization_id=organization_id()))


register_crud_routes(tasks_bp, crud_service.tasks)


# -------------------------------------------------------------- reports

@reports_bp.get("/summary")
@handle_service_errors
def reports_summary_route():
    return success(reporting_service.reports_summary(organization_id=organization_id()))


@reports_bp.get("/by-type")
@handle_service_errors
def reports_by_type_route():
    return success(reporting_service.reports_by_type(organization_id=organization_id()))


@reports_bp.get("/generated")
@handle_service_errors
def generated_reports_route():
    limit = request.args.get("limit", 10, type=int)
    return success(reporting_service.recent_generated_reports(organization_id=organization_id(), limit=limit))


register_crud_routes(report_templates_bp, crud_service.report_templates)


# ---------------------------------------------------------- ai insights

@ai_bp.get("/summary")
@handle_service_errors
def insights_summary_route():
    return success(reporting_service.insights_summary(organization_id=organization_id()))


@ai_bp.get("/predictions")
@handle_service_errors
def predictions_route():
    return success(reporting_service.predictions(
        organization_id=organization_id(),
        module=request.args.get("module"),
        limit=request.args.get("limit", 10, type=int),
    ))


@ai_bp.get("/predictions/by-module")
@handle_service_errors
def predictions_by_module_route():
    return success(reporting_service.predictions_by_module(organization_id=organization_id()))


@ai_bp.get("/health-score")
def health_score_route():
    return success(reporting_service.business_health_score())


register_crud_routes(ai_insights_bp, crud_service.ai_insights)

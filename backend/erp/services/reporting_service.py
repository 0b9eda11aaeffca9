# Overview: Dashboard summaries folded in-process from filtered row sets.

"""
Summary/Report Aggregators

Each summary reads the (date-filtered) rows it needs once and folds them
in Python: counts by status, sums of amounts, top-N rankings. Nothing is
cached; every call reflects the current rows.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Callable, Iterable

from flask import current_app

from ..extensions import db
from ..models import (
    AIInsight,
    AIPrediction,
    Bill,
    Expense,
    ExpenseCategory,
    GeneratedReport,
    Invoice,
    InvoiceItem,
    Item,
    PaymentMade,
    PurchaseOrder,
    ReportTemplate,
    SalesOrder,
    Task,
    TransferOrder,
)
from ..time_utils import today, utcnow
from ..validation import coerce_date


def _currency() -> str:
    return current_app.config.get("DEFAULT_CURRENCY", "INR")


def _date_range(query, column, from_date, to_date):
    start = coerce_date("from_date", from_date)
    end = coerce_date("to_date", to_date)
    if start:
        query = query.filter(column >= start)
    if end:
        query = query.filter(column <= end)
    return query


def fold_by(
    rows: Iterable,
    key: Callable,
    amount: Callable | None = None,
    *,
    default_key: str = "Unknown",
    sort_by_total: bool = False,
    limit: int | None = None,
) -> list[dict]:
    """
    Group rows into [{name, total, count}] in one pass.

    key(row) names the group (falsy -> default_key); amount(row) is summed
    into total. Groups keep first-seen order unless sort_by_total.
    """
    groups: dict[str, dict] = {}
    for row in rows:
        name = key(row) or default_key
        group = groups.get(name)
        if group is None:
            group = groups[name] = {"name": name, "total": 0.0, "count": 0}
        group["count"] += 1
        if amount is not None:
            group["total"] += amount(row) or 0
    result = list(groups.values())
    if sort_by_total:
        result.sort(key=lambda g: g["total"], reverse=True)
    if limit is not None:
        result = result[:limit]
    return result


# ------------------------------------------------------------ purchases

def bills_summary(*, organization_id: str, from_date=None, to_date=None) -> dict:
    query = db.session.query(Bill).filter(Bill.organization_id == organization_id)
    bills = _date_range(query, Bill.bill_date, from_date, to_date).all()

    def count(status: str) -> int:
        return sum(1 for b in bills if b.status == status)

    return {
        "total_bills": len(bills),
        "draft_count": count("draft"),
        "open_count": count("open"),
        "paid_count": count("paid"),
        "overdue_count": count("overdue"),
        "total_amount": sum(b.total_amount or 0 for b in bills),
        "amount_paid": sum(b.amount_paid or 0 for b in bills),
        "balance_due": sum(b.balance_due or 0 for b in bills),
    }


def payments_summary(*, organization_id: str, from_date=None, to_date=None) -> dict:
    query = db.session.query(PaymentMade).filter(PaymentMade.organization_id == organization_id)
    payments = _date_range(query, PaymentMade.payment_date, from_date, to_date).all()
    return {
        "total_paid": sum(p.amount or 0 for p in payments),
        "payment_count": len(payments),
        "by_payment_mode": fold_by(payments, lambda p: p.payment_mode, lambda p: p.amount),
    }


def purchases_summary(*, organization_id: str, from_date=None, to_date=None) -> dict:
    po_query = db.session.query(PurchaseOrder).filter(PurchaseOrder.organization_id == organization_id)
    orders = _date_range(po_query, PurchaseOrder.order_date, from_date, to_date).all()
    bill_query = db.session.query(Bill).filter(Bill.organization_id == organization_id)
    bills = _date_range(bill_query, Bill.bill_date, from_date, to_date).all()
    return {
        "purchase_order_count": len(orders),
        "purchase_order_value": sum(o.total_amount or 0 for o in orders),
        "bill_count": len(bills),
        "bill_value": sum(b.total_amount or 0 for b in bills),
        "outstanding_balance": sum(b.balance_due or 0 for b in bills),
        "currency": _currency(),
    }


# ------------------------------------------------------------- expenses

def _expenses(organization_id: str, from_date, to_date) -> list[Expense]:
    query = db.session.query(Expense).filter(Expense.organization_id == organization_id)
    return _date_range(query, Expense.expense_date, from_date, to_date).all()


def expenses_summary(*, organization_id: str, from_date=None, to_date=None) -> dict:
    expenses = _expenses(organization_id, from_date, to_date)
    return {
        "totalExpenses": sum(e.total_amount or 0 for e in expenses),
        "expenseCount": len(expenses),
        "pendingCount": sum(1 for e in expenses if e.approval_status == "pending"),
        "approvedCount": sum(1 for e in expenses if e.approval_status == "approved"),
        "billableAmount": sum(e.total_amount or 0 for e in expenses if e.is_billable),
        "currency": _currency(),
    }


def expenses_by_category(*, organization_id: str, from_date=None, to_date=None, limit: int | None = None) -> list[dict]:
    expenses = _expenses(organization_id, from_date, to_date)
    return fold_by(
        expenses,
        lambda e: e.category.category_name if e.category else None,
        lambda e: e.total_amount,
        default_key="Uncategorized",
        sort_by_total=True,
        limit=limit,
    )


# ---------------------------------------------------------------- sales

def _sales_orders(organization_id: str, from_date, to_date) -> list[SalesOrder]:
    query = db.session.query(SalesOrder).filter(SalesOrder.organization_id == organization_id)
    return _date_range(query, SalesOrder.order_date, from_date, to_date).all()


def sales_summary(*, organization_id: str, from_date=None, to_date=None) -> dict:
    orders = _sales_orders(organization_id, from_date, to_date)
    return {
        "totalOrders": len(orders),
        "totalSales": sum(o.total_amount or 0 for o in orders),
        "totalPaid": sum(o.amount_paid or 0 for o in orders),
        "totalDue": sum(o.balance_due or 0 for o in orders),
        "confirmedOrders": sum(1 for o in orders if o.status in ("confirmed", "processing")),
        "currency": _currency(),
    }


def sales_by_status(*, organization_id: str, from_date=None, to_date=None) -> list[dict]:
    orders = _sales_orders(organization_id, from_date, to_date)
    return [
        {"status": g["name"], "count": g["count"], "total": g["total"]}
        for g in fold_by(orders, lambda o: o.status, lambda o: o.total_amount)
    ]


def top_customers(*, organization_id: str, limit: int = 10, from_date=None, to_date=None) -> list[dict]:
    orders = _sales_orders(organization_id, from_date, to_date)
    return fold_by(
        orders,
        lambda o: o.customer_name,
        lambda o: o.total_amount,
        sort_by_total=True,
        limit=limit,
    )


# ---------------------------------------------------------------- tasks

def tasks_summary(*, organization_id: str) -> dict:
    tasks = db.session.query(Task).filter(Task.organization_id == organization_id).all()
    now = today()
    total = len(tasks)
    progress = sum(t.progress or 0 for t in tasks)
    return {
        "totalTasks": total,
        "todoTasks": sum(1 for t in tasks if t.status == "todo"),
        "inProgressTasks": sum(1 for t in tasks if t.status == "in_progress"),
        "completedTasks": sum(1 for t in tasks if t.status == "completed"),
        "overdueTasks": sum(1 for t in tasks if t.status != "completed" and t.due_date and t.due_date < now),
        "averageProgress": round(progress / total) if total else 0,
    }


def tasks_by_status(*, organization_id: str) -> list[dict]:
    tasks = db.session.query(Task).filter(Task.organization_id == organization_id).all()
    return [{"status": g["name"], "count": g["count"]} for g in fold_by(tasks, lambda t: t.status)]


# ---------------------------------------------------------------- items

def items_summary(*, organization_id: str) -> dict:
    items = db.session.query(Item).filter(Item.organization_id == organization_id).all()
    return {
        "totalItems": len(items),
        "activeItems": sum(1 for i in items if i.is_active),
        "lowStockItems": sum(1 for i in items if (i.current_stock or 0) <= (i.reorder_point or 0)),
        "totalValue": sum((i.current_stock or 0) * (i.selling_price or 0) for i in items),
        "currency": _currency(),
    }


def top_selling_items(*, organization_id: str, limit: int = 10) -> list[dict]:
    """Invoice lines folded per item: quantity sold and revenue, highest quantity first."""
    lines = (
        db.session.query(InvoiceItem)
        .join(Invoice, InvoiceItem.invoice_id == Invoice.id)
        .filter(Invoice.organization_id == organization_id)
        .all()
    )
    totals: dict = {}
    for line in lines:
        key = line.item_id if line.item_id is not None else line.item_name
        entry = totals.get(key)
        if entry is None:
            entry = totals[key] = {
                "item_id": line.item_id,
                "item_name": line.item_name,
                "quantity_sold": 0.0,
                "revenue": 0.0,
            }
        entry["quantity_sold"] += line.quantity or 0
        entry["revenue"] += line.amount or 0
    ranked = sorted(totals.values(), key=lambda e: e["quantity_sold"], reverse=True)
    return ranked[:limit]


# ------------------------------------------------------------- insights

def insights_summary(*, organization_id: str) -> dict:
    insights = db.session.query(AIInsight).filter(AIInsight.organization_id == organization_id).all()
    active = [i for i in insights if i.status == "active"]
    return {
        "totalInsights": len(insights),
        "activeInsights": len(active),
        "criticalInsights": sum(1 for i in active if i.severity == "critical"),
        "actionableInsights": sum(1 for i in active if i.is_actionable),
        "opportunities": sum(1 for i in active if i.severity == "opportunity"),
    }


def predictions(*, organization_id: str, module: str | None = None, limit: int = 10) -> list[dict]:
    query = db.session.query(AIPrediction).filter(AIPrediction.organization_id == organization_id)
    if module:
        query = query.filter(AIPrediction.module == module)
    rows = query.order_by(AIPrediction.prediction_date.asc(), AIPrediction.id.asc()).limit(limit).all()
    return [r.to_dict() for r in rows]


def predictions_by_module(*, organization_id: str) -> list[dict]:
    rows = (
        db.session.query(AIPrediction)
        .filter(AIPrediction.organization_id == organization_id)
        .order_by(AIPrediction.id)
        .all()
    )
    modules: dict[str, dict] = {}
    for row in rows:
        entry = modules.setdefault(row.module, {"module": row.module, "predictions": []})
        entry["predictions"].append({"metric": row.metric, "value": row.predicted_value})
    return list(modules.values())


def business_health_score() -> dict:
    # Static until a scoring model exists
    return {
        "overallScore": 78,
        "categories": [
            {"name": "Sales Performance", "score": 85, "trend": "up"},
            {"name": "Inventory Health", "score": 72, "trend": "stable"},
            {"name": "Cash Flow", "score": 68, "trend": "down"},
            {"name": "Customer Satisfaction", "score": 88, "trend": "up"},
            {"name": "Operational Efficiency", "score": 75, "trend": "up"},
        ],
        "recommendations": [
            "Focus on improving cash flow management",
            "Consider reordering low-stock items",
            "Excellent sales trend - maintain momentum",
        ],
    }


# -------------------------------------------------------------- reports

def reports_summary(*, organization_id: str) -> dict:
    templates = db.session.query(ReportTemplate).filter(ReportTemplate.organization_id == organization_id).all()
    generated = db.session.query(GeneratedReport).filter(GeneratedReport.organization_id == organization_id).all()
    week_ago = utcnow() - timedelta(days=7)
    return {
        "totalTemplates": len(templates),
        "activeTemplates": sum(1 for t in templates if t.is_active),
        "totalGenerated": len(generated),
        "recentReports": sum(1 for r in generated if r.generated_at and r.generated_at >= week_ago),
    }


def reports_by_type(*, organization_id: str) -> list[dict]:
    templates = db.session.query(ReportTemplate).filter(ReportTemplate.organization_id == organization_id).all()
    return [{"report_type": g["name"], "count": g["count"]} for g in fold_by(templates, lambda t: t.report_type)]


def recent_generated_reports(*, organization_id: str, limit: int = 10) -> list[dict]:
    rows = (
        db.session.query(GeneratedReport)
        .filter(GeneratedReport.organization_id == organization_id)
        .order_by(GeneratedReport.generated_at.desc(), GeneratedReport.id.desc())
        .limit(limit)
        .all()
    )
    return [r.to_dict() for r in rows]


# ------------------------------------------------------------ transfers

def transfer_orders_summary(*, organization_id: str) -> dict:
    orders = db.session.query(TransferOrder).filter(TransferOrder.organization_id == organization_id).all()

    def count(status: str) -> int:
        return sum(1 for o in orders if o.status == status)

    return {
        "total_orders": len(orders),
        "draft_count": count("draft"),
        "initiated_count": count("initiated"),
        "in_transit_count": count("in_transit"),
        "received_count": count("received"),
        "cancelled_count": count("cancelled"),
        "total_items": sum(o.total_items or 0 for o in orders),
        "total_quantity": sum(o.total_quantity or 0 for o in orders),
    }

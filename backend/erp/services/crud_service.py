# Overview: Plain list/get/create/update/delete over master-data tables (customers, items, expenses...).

"""
Thin CRUD Services

One CrudService instance per table that needs nothing beyond
filter + search listing and single-row writes. Payloads go through
validate_payload so only the table's writable columns are ever set.

Organization scoping: tables with an organization_id column are always
filtered on (and stamped with) the caller's organization. Brands and
manufacturers are global lookup lists.
"""

from __future__ import annotations

import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    AIInsight,
    Brand,
    Customer,
    Expense,
    ExpenseCategory,
    Item,
    Manufacturer,
    ReportTemplate,
    Task,
    Vendor,
)
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    coerce_date,
    coerce_filter_value,
    optional_text,
    validate_payload,
)
from .concurrency import lock_for_update
from .document_service import allocate_number

logger = logging.getLogger(__name__)

_SYSTEM_COLUMNS = {"id", "organization_id", "created_at", "updated_at"}


def _writable_columns(model, exclude: set[str] = frozenset()) -> set[str]:
    return {c.key for c in model.__mapper__.columns} - _SYSTEM_COLUMNS - set(exclude)


class CrudService:
    def __init__(
        self,
        model,
        *,
        label: str,
        required: set[str],
        search_fields: tuple[str, ...] = (),
        filter_fields: tuple[str, ...] = (),
        date_field: str | None = None,
        order_by: tuple = (),
        number: tuple[str, str, int] | None = None,
    ):
        self.model = model
        self.label = label
        self.search_fields = search_fields
        self.filter_fields = filter_fields
        self.date_field = date_field
        self.order_by = order_by or (model.created_at.desc(), model.id.desc())
        self.number = number
        self.scoped = "organization_id" in model.__table__.columns
        # Clients round-trip whole rows (id, timestamps, joined names); extra keys are dropped
        self.policy = ModelValidationPolicy(
            writable_fields=_writable_columns(model),
            required_on_create=set(required),
        )

    def _query(self, organization_id: str | None):
        query = db.session.query(self.model)
        if self.scoped:
            query = query.filter(self.model.organization_id == organization_id)
        return query

    def _get_row(self, record_id: int, organization_id: str | None):
        row = self._query(organization_id).filter(self.model.id == record_id).first()
        if row is None:
            raise NotFoundError(f"{self.label} not found")
        return row

    def list(
        self,
        *,
        organization_id: str | None = None,
        filters: dict | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[dict], int]:
        filters = filters or {}
        query = self._query(organization_id)

        for field in self.filter_fields:
            value = filters.get(field)
            if value in (None, ""):
                continue
            column = getattr(self.model, field)
            query = query.filter(column == coerce_filter_value(column.property.columns[0], value))

        if self.date_field:
            date_col = getattr(self.model, self.date_field)
            from_date = coerce_date("from_date", filters.get("from_date"))
            to_date = coerce_date("to_date", filters.get("to_date"))
            if from_date:
                query = query.filter(date_col >= from_date)
            if to_date:
                query = query.filter(date_col <= to_date)

        search = optional_text(filters.get("search"))
        if search and self.search_fields:
            pattern = f"%{search}%"
            query = query.filter(or_(*[getattr(self.model, f).ilike(pattern) for f in self.search_fields]))

        total = query.count()
        query = query.order_by(*self.order_by)
        if limit is not None:
            query = query.limit(limit).offset(offset)
        return [row.to_dict() for row in query.all()], total

    def get(self, record_id: int, *, organization_id: str | None = None) -> dict:
        return self._get_row(record_id, organization_id).to_dict()

    def create(self, payload: dict, *, organization_id: str | None = None) -> dict:
        patch = validate_payload(model=self.model, payload=payload, policy=self.policy, partial=False)

        if self.number:
            column, prefix, pad = self.number
            if not patch.get(column):
                patch[column] = allocate_number(
                    self.model.__tablename__, self.model, column, prefix, pad,
                    organization_id=organization_id,
                )

        row = self.model(**patch)
        if self.scoped:
            row.organization_id = organization_id
        db.session.add(row)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError(f"{self.label} already exists") from exc
        return row.to_dict()

    def update(self, record_id: int, payload: dict, *, organization_id: str | None = None) -> dict:
        row = self._get_row(record_id, organization_id)
        patch = validate_payload(model=self.model, payload=payload, policy=self.policy, partial=True)
        for key, value in patch.items():
            setattr(row, key, value)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError(f"{self.label} already exists") from exc
        return row.to_dict()

    def delete(self, record_id: int, *, organization_id: str | None = None) -> bool:
        """Idempotent: deleting a missing row is not an error."""
        row = self._query(organization_id).filter(self.model.id == record_id).first()
        if row is None:
            return False
        db.session.delete(row)
        db.session.commit()
        return True


customers = CrudService(
    Customer,
    label="Customer",
    required={"display_name"},
    search_fields=("display_name", "company_name", "email", "phone"),
    filter_fields=("customer_type", "is_active"),
    order_by=(Customer.display_name.asc(),),
)

vendors = CrudService(
    Vendor,
    label="Vendor",
    required={"display_name"},
    search_fields=("display_name", "company_name", "email", "phone"),
    filter_fields=("is_active",),
    order_by=(Vendor.display_name.asc(),),
)

items = CrudService(
    Item,
    label="Item",
    required={"name"},
    search_fields=("name", "sku", "category", "brand"),
    filter_fields=("category", "subcategory", "brand", "manufacturer", "is_active"),
    order_by=(Item.name.asc(),),
)

brands = CrudService(
    Brand,
    label="Brand",
    required={"name"},
    search_fields=("name",),
    order_by=(Brand.name.asc(),),
)

manufacturers = CrudService(
    Manufacturer,
    label="Manufacturer",
    required={"name"},
    search_fields=("name",),
    order_by=(Manufacturer.name.asc(),),
)

expense_categories = CrudService(
    ExpenseCategory,
    label="Expense category",
    required={"category_name"},
    search_fields=("category_name",),
    filter_fields=("is_active",),
    order_by=(ExpenseCategory.category_name.asc(),),
)

expenses = CrudService(
    Expense,
    label="Expense",
    required={"expense_item", "expense_date"},
    search_fields=("expense_number", "expense_item", "vendor_name"),
    filter_fields=("category_id", "approval_status", "is_billable", "payment_mode"),
    date_field="expense_date",
    number=("expense_number", "EXP-", 4),
)

tasks = CrudService(
    Task,
    label="Task",
    required={"title"},
    search_fields=("title", "description"),
    filter_fields=("status", "priority", "assigned_to"),
)

ai_insights = CrudService(
    AIInsight,
    label="Insight",
    required={"module", "title"},
    search_fields=("title",),
    filter_fields=("module", "insight_type", "severity", "status", "is_actionable"),
)

report_templates = CrudService(
    ReportTemplate,
    label="Report template",
    required={"name", "report_type"},
    search_fields=("name",),
    filter_fields=("report_type", "is_active"),
)


def adjust_item_stock(item_id: int, delta: float, *, organization_id: str) -> dict:
    """Manual stock correction: current_stock += delta (delta may be negative)."""
    item = lock_for_update(
        db.session.query(Item).filter_by(id=item_id, organization_id=organization_id)
    ).first()
    if item is None:
        raise NotFoundError("Item not found")
    item.current_stock = (item.current_stock or 0) + float(delta)
    db.session.commit()
    return item.to_dict()


def apply_line_stock(lines: list, *, sign: int, organization_id: str) -> None:
    """
    Move Item.current_stock by sign * quantity for each line with an item_id.

    Lines naming an item that no longer exists are skipped. Does not commit.
    """
    for line in lines:
        quantity = line.quantity or 0
        if not line.item_id or quantity <= 0:
            continue
        item = lock_for_update(
            db.session.query(Item).filter_by(id=line.item_id, organization_id=organization_id)
        ).first()
        if item is None:
            logger.warning("Stock not adjusted: item %s not found", line.item_id)
            continue
        item.current_stock = (item.current_stock or 0) + sign * quantity
    db.session.flush()

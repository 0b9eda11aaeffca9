from __future__ import annotations

from ..extensions import db
from .base import SerializableMixin


class ExpenseCategory(SerializableMixin, db.Model):
    __tablename__ = "expense_categories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    category_name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class Expense(SerializableMixin, db.Model):
    """
    Business expense voucher (EXP-0001).

    approval_status: pending, approved, rejected
    """
    __tablename__ = "expenses"
    __table_args__ = (
        db.UniqueConstraint("organization_id", "expense_number", name="uq_expenses_org_number"),
        db.Index("ix_expenses_org_date", "organization_id", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    expense_number = db.Column(db.String(64), nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey("expense_categories.id"), nullable=True, index=True)
    expense_item = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    expense_date = db.Column(db.Date, nullable=False)

    amount = db.Column(db.Float, nullable=False, default=0)
    tax_amount = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)

    payment_mode = db.Column(db.String(32), nullable=True)
    payment_voucher_number = db.Column(db.String(64), nullable=True)
    vendor_name = db.Column(db.String(255), nullable=True)
    paid_by = db.Column(db.String(255), nullable=True)
    branch = db.Column(db.String(128), nullable=True)
    receipt_url = db.Column(db.String(512), nullable=True)

    approval_status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    is_billable = db.Column(db.Boolean, nullable=False, default=False)
    remarks = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    category = db.relationship("ExpenseCategory", lazy="joined")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["category_name"] = self.category.category_name if self.category else None
        return data


class Task(SerializableMixin, db.Model):
    __tablename__ = "tasks"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="todo", index=True)  # todo, in_progress, completed
    priority = db.Column(db.String(16), nullable=False, default="medium")
    assigned_to = db.Column(db.String(255), nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    progress = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class AIInsight(SerializableMixin, db.Model):
    __tablename__ = "ai_insights"
    __table_args__ = (
        db.Index("ix_ai_insights_module_status", "module", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)

    module = db.Column(db.String(64), nullable=False)
    insight_type = db.Column(db.String(32), nullable=False, default="observation")  # observation, opportunity, risk
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    severity = db.Column(db.String(16), nullable=False, default="info")  # info, warning, critical, opportunity
    status = db.Column(db.String(16), nullable=False, default="active")  # active, dismissed, resolved
    is_actionable = db.Column(db.Boolean, nullable=False, default=False)
    confidence = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)


class AIPrediction(SerializableMixin, db.Model):
    __tablename__ = "ai_predictions"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)

    module = db.Column(db.String(64), nullable=False, index=True)
    metric = db.Column(db.String(128), nullable=False)
    prediction_date = db.Column(db.Date, nullable=False)
    predicted_value = db.Column(db.Float, nullable=False)
    confidence = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class ReportTemplate(SerializableMixin, db.Model):
    __tablename__ = "report_templates"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    report_type = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)
    configuration = db.Column(db.JSON, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class GeneratedReport(SerializableMixin, db.Model):
    __tablename__ = "generated_reports"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.String(36), nullable=False, index=True)
    template_id = db.Column(db.Integer, db.ForeignKey("report_templates.id"), nullable=True)

    report_name = db.Column(db.String(255), nullable=False)
    report_type = db.Column(db.String(64), nullable=False)
    generated_by = db.Column(db.String(255), nullable=True)
    parameters = db.Column(db.JSON, nullable=True)
    file_url = db.Column(db.String(512), nullable=True)

    generated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

# Overview: Route builders shared by the document and master-data blueprints.

"""
Shared route plumbing.

register_document_routes() wires the standard endpoints for one DocumentKind:

    GET    ""                 list (filters, from_date/to_date, search, limit/offset)
    GET    <number_path>      next number preview (not reserved)
    POST   ""                 create (header + lines in one transaction)
    GET    /<id>              header + lines
    PUT    /<id>              partial header update; `items` replaces all lines
    DELETE /<id>              idempotent

register_crud_routes() does the same for a CrudService. Mutating endpoints
require a bearer token; reads are open.
"""

from __future__ import annotations

from flask import Blueprint, current_app, request

from ..decorators import handle_service_errors, require_auth, success
from ..services import document_writer
from ..services.crud_service import CrudService
from ..services.document_writer import DocumentKind
from ..validation import ValidationError

MAX_PAGE_SIZE = 500


def organization_id() -> str:
    return current_app.config["ORGANIZATION_ID"]


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def page_args() -> tuple[int | None, int]:
    """limit/offset from the query string; no limit means every row."""
    limit = request.args.get("limit", type=int)
    offset = request.args.get("offset", 0, type=int) or 0
    if limit is not None:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
    return limit, max(offset, 0)


def date_args() -> dict:
    return {"from_date": request.args.get("from_date"), "to_date": request.args.get("to_date")}


def query_filters() -> dict:
    return {k: v for k, v in request.args.items() if k not in ("limit", "offset")}


def register_document_routes(
    bp: Blueprint,
    kind: DocumentKind,
    *,
    number_path: str = "/generate-number",
    create=None,
    update=None,
    delete=None,
) -> None:
    """create/update/delete override the generic writer for kinds with extra steps."""
    label = kind.label[:1].upper() + kind.label[1:]
    create = create or (lambda payload, **kw: document_writer.create_document(kind, payload, **kw))
    update = update or (lambda document_id, payload, **kw: document_writer.update_document(kind, document_id, payload, **kw))
    delete = delete or (lambda document_id, **kw: document_writer.delete_document(kind, document_id, **kw))

    @bp.get("", endpoint="list")
    @handle_service_errors
    def list_route():
        limit, offset = page_args()
        rows, total = document_writer.list_documents(
            kind,
            organization_id=organization_id(),
            filters=query_filters(),
            limit=limit,
            offset=offset,
        )
        return success([r.to_dict() for r in rows], count=total)

    @bp.get(number_path, endpoint="next_number")
    @handle_service_errors
    def next_number_route():
        number = document_writer.next_number(kind, organization_id=organization_id())
        return success({kind.number_field: number})

    @bp.post("", endpoint="create")
    @require_auth
    @handle_service_errors
    def create_route():
        document = create(json_body(), organization_id=organization_id())
        return success(document, message=f"{label} created successfully", status=201)

    @bp.get("/<int:document_id>", endpoint="get")
    @handle_service_errors
    def get_route(document_id: int):
        return success(document_writer.get_document(kind, document_id, organization_id=organization_id()))

    @bp.put("/<int:document_id>", endpoint="update")
    @require_auth
    @handle_service_errors
    def update_route(document_id: int):
        document = update(document_id, json_body(), organization_id=organization_id())
        return success(document, message=f"{label} updated successfully")

    @bp.delete("/<int:document_id>", endpoint="delete")
    @require_auth
    @handle_service_errors
    def delete_route(document_id: int):
        deleted = delete(document_id, organization_id=organization_id())
        return success({"deleted": deleted}, message=f"{label} deleted successfully")


def register_crud_routes(bp: Blueprint, service: CrudService) -> None:
    def scope():
        return organization_id() if service.scoped else None

    @bp.get("", endpoint="list")
    @handle_service_errors
    def list_route():
        limit, offset = page_args()
        rows, total = service.list(organization_id=scope(), filters=query_filters(), limit=limit, offset=offset)
        return success(rows, count=total)

    @bp.post("", endpoint="create")
    @require_auth
    @handle_service_errors
    def create_route():
        row = service.create(json_body(), organization_id=scope())
        return success(row, message=f"{service.label} created successfully", status=201)

    @bp.get("/<int:record_id>", endpoint="get")
    @handle_service_errors
    def get_route(record_id: int):
        return success(service.get(record_id, organization_id=scope()))

    @bp.put("/<int:record_id>", endpoint="update")
    @require_auth
    @handle_service_errors
    def update_route(record_id: int):
        row = service.update(record_id, json_body(), organization_id=scope())
        return success(row, message=f"{service.label} updated successfully")

    @bp.delete("/<int:record_id>", endpoint="delete")
    @require_auth
    @handle_service_errors
    def delete_route(record_id: int):
        deleted = service.delete(record_id, organization_id=scope())
        return success({"deleted": deleted}, message=f"{service.label} deleted successfully")

# Overview: Health checks and static upload serving.

"""
System endpoints.

- /api/health: liveness, no dependencies touched
- /api/health/db: times a trivial query against the configured database
- /uploads/<path>: files previously written to UPLOAD_FOLDER
"""

import os
import time

from flask import Blueprint, current_app, jsonify, send_from_directory
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health():
    return jsonify({
        "status": "ok",
        "timestamp": to_utc_z(utcnow()),
        "service": current_app.config["SERVICE_NAME"],
    })


@system_bp.get("/api/health/db")
def health_db():
    """200 when the database answers, 503 otherwise."""
    database = check_database_health()
    body = {
        "status": database["status"],
        "timestamp": to_utc_z(utcnow()),
        "service": current_app.config["SERVICE_NAME"],
        "checks": {"database": database},
    }
    return jsonify(body), 200 if database["status"] == "healthy" else 503


@system_bp.get("/uploads/<path:filename>")
def uploaded_file(filename: str):
    folder = current_app.config["UPLOAD_FOLDER"]
    if not os.path.isabs(folder):
        folder = os.path.join(current_app.root_path, os.pardir, folder)
    return send_from_directory(os.path.abspath(folder), filename)

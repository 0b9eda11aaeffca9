# backend/erp/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/erp.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///erp.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Single-tenant deployments share one organization; services receive it explicitly
    ORGANIZATION_ID = os.environ.get("ORGANIZATION_ID", "00000000-0000-0000-0000-000000000000")

    # Blocks every write except login/verify when enabled
    READ_ONLY_MODE = _env_flag("READ_ONLY_MODE")

    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "uploads")

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
        ).split(",")
        if origin.strip()
    }

    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "INR")
    SERVICE_NAME = os.environ.get("SERVICE_NAME", "erp-backend")

    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "168"))
    SESSION_IDLE_TIMEOUT_HOURS = int(os.environ.get("SESSION_IDLE_TIMEOUT_HOURS", "24"))

    # Cost factor for password and PIN hashes; tests lower it
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

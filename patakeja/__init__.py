# patakeja/__init__.py
from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from typing import Any, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.middleware.proxy_fix import ProxyFix
from werkzeug.utils import import_string

from .extensions import db, jwt, mail, migrate

DEV_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:8080",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8080",
)


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, with the traceback folded in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


# --- Setup helpers -------------------------------------------------------------
def _allowed_origins(app: Flask) -> list[str]:
    origins = set(DEV_ORIGINS)
    origins.update(app.config.get("CORS_ALLOWED_ORIGINS") or [])
    if app.config.get("FRONTEND_BASE_URL"):
        origins.add(app.config["FRONTEND_BASE_URL"].rstrip("/"))
    return sorted(origins)


def _configure_logging(app: Flask) -> None:
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    root.setLevel(level)
    app.logger.setLevel(level)

    # reloader and repeated create_app() calls must not stack handlers
    if not any(isinstance(h.formatter, JsonLogFormatter) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonLogFormatter())
        root.addHandler(handler)


def _configure_http(app: Flask) -> None:
    # X-Forwarded-* from the hosting proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore
    CORS(
        app,
        resources={app.config["API_PREFIX"] + "/*": {"origins": _allowed_origins(app)}},
        supports_credentials=True,
        methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Cron-Secret"],
        max_age=86400,
    )


def _load_config(app: Flask, config_object: Optional[str | Any]) -> None:
    if config_object is None:
        config_object = os.getenv("CONFIG_CLASS", "config.Config")
    if isinstance(config_object, str):
        config_object = import_string(config_object)

    validate = getattr(config_object, "validate", None)
    if callable(validate):
        validate()
    app.config.from_object(config_object)
    app.config.setdefault("API_PREFIX", "/api")


def _register_blueprints(app: Flask) -> None:
    from .routes import admin_bp, auth_bp, notifications_bp, payments_bp, properties_bp, viewings_bp

    prefix = app.config["API_PREFIX"]
    for bp in (auth_bp, properties_bp, payments_bp, viewings_bp, notifications_bp, admin_bp):
        app.register_blueprint(bp, url_prefix=prefix)
    app.logger.debug("Registered %s blueprints under %s", len(app.blueprints), prefix)


def _database_ok() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        db.session.rollback()
        return False
    return True


# --- Application Factory ------------------------------------------------------
def create_app(config_object: Optional[str | Any] = None) -> Flask:
    """
    Build the Pata Keja API.

    `config_object` is a config class, a dotted path to one
    ("config.ProductionConfig"), or None to use CONFIG_CLASS from the
    environment (default config.Config).
    """
    app = Flask(__name__)
    _load_config(app, config_object)
    _configure_logging(app)
    _configure_http(app)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    _register_blueprints(app)

    from .cli import register_cli
    from .errors import register_error_handlers

    register_cli(app)
    register_error_handlers(app)

    @app.get(app.config["API_PREFIX"] + "/health")
    def health():
        database = _database_ok()
        return jsonify({
            "status": "ok" if database else "degraded",
            "database": "ok" if database else "unreachable",
            "time": datetime.utcnow().isoformat() + "Z",
            "service": "patakeja-backend",
        }), 200 if database else 503

    if app.config.get("SCHEDULER_ENABLED"):
        from .scheduler import start_scheduler

        app.extensions["scheduler"] = start_scheduler(app)

    return app

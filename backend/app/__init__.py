"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup
           - Alembic to import the models without starting the server

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging for the `backend` logger tree
  3. Initialise extensions (SQLAlchemy) via init_app()
  4. Create the payment sync dispatcher (app.extensions["payment_sync"])
  5. Register all route blueprints under /api/v1
  6. Register global error handlers (AppError → JSON, Exception → 500)

Note on model imports:
  All model classes are imported inside create_app() so that SQLAlchemy's
  metadata is populated before Alembic inspects it. They are not used
  directly here — the import side-effect is sufficient.
"""

from __future__ import annotations

import atexit
import logging
import traceback

from flask import Flask, jsonify, request
from flask.logging import default_handler
from marshmallow import ValidationError

from backend.config import config_by_name, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to "development".

    Returns:
        A fully configured Flask app ready to serve requests.
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from backend.app.extensions import db
    db.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    # Import all models so that SQLAlchemy's MetaData is populated.
    # The imports are intentionally unused by name; importing registers the tables.
    with app.app_context():
        from backend.app.models import (  # noqa: F401
            event,
            payment,
            practice,
            rsvp,
            settlement,
        )

    _register_payment_sync(app)

    # ── Blueprints ─────────────────────────────────────────────────────────
    _register_blueprints(app)

    # ── Error handlers ─────────────────────────────────────────────────────
    _register_error_handlers(app)
    _register_cors(app)

    return app


def _configure_logging(app: Flask) -> None:
    """
    Routes `backend.*` module loggers (services, repositories) through
    Flask's default handler at the configured level.
    """
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)
    backend_logger = logging.getLogger("backend")
    backend_logger.setLevel(level)
    if default_handler not in backend_logger.handlers:
        backend_logger.addHandler(default_handler)


def _register_payment_sync(app: Flask) -> None:
    """
    One dispatcher per app. Its worker threads are joined at interpreter
    exit so in-flight syncs are not cut off.
    """
    from backend.app.dependencies import make_payment_sync_job
    from backend.app.services.payment_sync import PaymentSyncDispatcher

    dispatcher = PaymentSyncDispatcher(
        make_payment_sync_job(app),
        max_workers=app.config["PAYMENT_SYNC_MAX_WORKERS"],
        eager=app.config["PAYMENT_SYNC_EAGER"],
    )
    app.extensions["payment_sync"] = dispatcher
    atexit.register(dispatcher.shutdown)


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    Each route file spells out full resource paths (e.g. /events/<id>/rsvp)
    because several resources nest under others (/events/<id>/settlements,
    /circles/<id>/practice-series).
    """
    from backend.app.routes.events import events_bp
    from backend.app.routes.health import health_bp
    from backend.app.routes.practices import practices_bp
    from backend.app.routes.settlements import settlements_bp

    app.register_blueprint(health_bp,      url_prefix="/api/v1")
    app.register_blueprint(events_bp,      url_prefix="/api/v1")
    app.register_blueprint(settlements_bp, url_prefix="/api/v1")
    app.register_blueprint(practices_bp,   url_prefix="/api/v1")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError    → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors formatted as MISSING_FIELD /
                        INVALID_FIELD (or a registered code) responses (400)
      HTTPException → passed through with its own status (404 for unknown URLs)
      Exception   → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server. Only
    {"error": {"code": "INTERNAL_ERROR", "message": "..."}} is returned.
    """
    from werkzeug.exceptions import HTTPException

    from backend.app.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (middleware, service, route) into the standard error envelope.

        Routes never catch AppError — they let it propagate here.
        """
        if error.http_status >= 500:
            app.logger.error("%r on %s %s", error, request.method, request.path)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Only the FIRST field error is returned. If the message is itself a
        registered ErrorCode (schemas raise e.g. INVALID_AMOUNT), that code is
        used; otherwise MISSING_FIELD or INVALID_FIELD.
        """
        field, raw_message = _first_validation_error(error.messages)
        known_codes = set(vars(ErrorCode).values())

        if raw_message in known_codes:
            code = raw_message
            message = _code_to_message(code)
        elif str(raw_message).startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({
            "error": {
                "code": error.name.upper().replace(" ", "_"),
                "message": error.description,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.
        The full traceback is logged to the application logger.
        """
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a frontend served from another
    local port can call the API with the X-User-Id header.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type, X-User-Id"

        return response


def _first_validation_error(messages) -> tuple[str | None, str]:
    """
    Walks marshmallow's nested messages to the first leaf.

    Returns (field, message). Nested list items are reported with a dotted
    path, e.g. "rsvps.0.status".
    """
    path: list[str] = []
    node = messages
    while isinstance(node, dict) and node:
        key, node = next(iter(node.items()))
        if key != "_schema":
            path.append(str(key))

    if isinstance(node, list):
        node = node[0] if node else "Invalid input."
    return (".".join(path) or None), str(node)


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself.
    """
    _messages = {
        "INVALID_AMOUNT": "Amount must be an integer of zero or greater.",
        "EMPTY_TARGET_USERS": "A settlement needs at least one target user.",
        "INVALID_MONTH": "month must be in YYYY-MM format.",
        "INVALID_FIELD": "The value is not one of the allowed choices.",
    }
    return _messages.get(code, "Invalid input.")

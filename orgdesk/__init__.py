"""
Orgdesk
Flask Application Factory.

Usage:
    from orgdesk import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import json
import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from orgdesk.config import config
from orgdesk.models import db
from orgdesk.middleware.logging_config import configure_logging
from orgdesk.middleware.rate_limiter import init_rate_limits
from orgdesk.middleware.timing import init_request_timing

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit - apply per-blueprint
    storage_uri=os.getenv("REDIS_URL") or "memory://",
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)
    # Instantiated so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    @app.before_request
    def _guard_request():
        from flask import abort
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so Alembic can detect them ─────────────────────
    from orgdesk.models import workspace as _workspace_models  # noqa: F401
    from orgdesk.models import forms as _forms_models          # noqa: F401
    from orgdesk.models import report as _report_models        # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    if app.config.get("AUTO_CREATE_TABLES", True):
        with app.app_context():
            db.create_all()

    # ── PDF converter ────────────────────────────────────────────────────
    from orgdesk.services.pdf_service import init_pdf_converter
    init_pdf_converter(app)

    # ── Blueprints ───────────────────────────────────────────────────────
    from orgdesk.blueprints.export_bp import export_bp
    from orgdesk.blueprints.report_bp import report_bp
    from orgdesk.blueprints.verify_bp import verify_bp, verify_page_bp
    from orgdesk.blueprints.public_forms_bp import public_forms_bp
    from orgdesk.blueprints.workspace_bp import workspace_bp
    from orgdesk.blueprints.health_bp import health_bp

    app.register_blueprint(export_bp)
    app.register_blueprint(report_bp)
    app.register_blueprint(verify_page_bp)
    app.register_blueprint(verify_bp)
    app.register_blueprint(public_forms_bp)
    app.register_blueprint(workspace_bp)
    app.register_blueprint(health_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("render-report")
    @click.argument("report_file", type=click.File("r", encoding="utf-8"))
    @click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
                  help="Target PDF path (default: derived from templateName).")
    @click.option("--workspace-id", type=int, default=None,
                  help="Take branding from this workspace.")
    def render_report_cmd(report_file, output, workspace_id):
        """Render a reportData JSON file to PDF without recording it."""
        from orgdesk.core.exceptions import ConversionError, ValidationError
        from orgdesk.services.pdf_service import get_pdf_converter
        from orgdesk.services.report_service import default_filename, generate_report_pdf
        from orgdesk.services.report_types import ReportRequest

        try:
            payload = json.load(report_file)
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"Invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise click.ClickException("Report file must contain a JSON object")

        report_request = ReportRequest.from_dict(payload.get("reportData", payload))
        try:
            generated = generate_report_pdf(
                report_request,
                workspace_id=workspace_id,
                base_url=app.config["PUBLIC_BASE_URL"],
                converter=get_pdf_converter(app),
                inline_assets=app.config.get("REPORT_INLINE_ASSETS", False),
                asset_hosts=app.config.get("REPORT_ASSET_HOSTS", ()),
            )
        except ValidationError as exc:
            raise click.ClickException(f"{exc}: {exc.details}") from exc
        except ConversionError as exc:
            raise click.ClickException(f"{exc}: {exc.details}") from exc

        target = output or default_filename(report_request.template_name)
        with open(target, "wb") as fh:
            fh.write(generated.pdf)
        click.echo(f"{target} ({generated.size} bytes, ref {generated.metadata.reference_number})")

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return {"error": "Request body too large"}, 413

    @app.errorhandler(415)
    def unsupported_media(e):
        return {"error": "Content-Type must be application/json"}, 415

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error"}, 500

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app

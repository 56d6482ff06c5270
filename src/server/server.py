"""
Converter Server — Flask application factory.

Wires the convert/resize/compress blueprint, plain-text error handling,
and request logging. All per-deployment state (storage root, tool
profiles, timeouts) lives in ``app.config``; nothing is module-global.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from flask import Flask, Response, g, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from ..config.loader import ServiceConfig, load_config
from ..engine.errors import ConversionError
from ..tools.loader import load_tool_profiles
from ..tools.models import ToolProfiles
from .routes_convert import convert_bp
from .routes_core import core_bp

logger = logging.getLogger(__name__)


def _plain(message: str, status: int) -> Response:
    return Response(message, status=status, mimetype="text/plain")


def create_app(
    config: Optional[ServiceConfig] = None,
    profiles: Optional[ToolProfiles] = None,
) -> Flask:
    """
    Create the Flask application.

    Args:
        config: Service settings. Defaults to load_config() (env vars).
        profiles: External tool templates. Defaults to config.tools_file
            or the built-in templates.
    """
    config = config or load_config()
    if profiles is None:
        profiles = load_tool_profiles(config.tools_file)

    app = Flask(__name__)
    app.config["CONVERTER"] = config
    app.config["TOOL_PROFILES"] = profiles
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes

    config.upload_dir.mkdir(parents=True, exist_ok=True)

    # ── Register Blueprints ───────────────────────────────────────
    app.register_blueprint(convert_bp, url_prefix="/api")   # /api/convert, /resize, /compress
    app.register_blueprint(core_bp, url_prefix="/api")      # /api/health

    # ── Error Handlers ────────────────────────────────────────────

    @app.errorhandler(ConversionError)
    def conversion_error(e: ConversionError):
        """Short public message to the client, diagnostics to the log."""
        log_fn = logger.warning if e.status_code < 500 else logger.error
        log_fn(f"{request.method} {request.path} failed ({e.status_code}): {e}")
        return _plain(e.public_message, e.status_code)

    @app.errorhandler(RequestEntityTooLarge)
    def request_entity_too_large(e):
        max_mb = config.max_upload_mb
        return _plain(f"File too large (max {max_mb} MB)", 413)

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return _plain(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def unhandled_error(e: Exception):
        """Catch-all: log the traceback, never echo it."""
        logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        return _plain("Conversion error", 500)

    # ── Request Logging ───────────────────────────────────────────

    @app.before_request
    def log_request_start():
        g.start_time = time.time()

    @app.after_request
    def log_request_end(response):
        """Log API requests with duration."""
        duration_ms = 0
        if "start_time" in g:
            duration_ms = int((time.time() - g.start_time) * 1000)
        if request.path.startswith("/api/"):
            log_fn = logger.debug if request.path == "/api/health" else logger.info
            log_fn(f"{request.method} {request.path} → {response.status_code} ({duration_ms}ms)")
        return response

    logger.info(
        f"Converter server initialized (upload_dir={config.upload_dir}, "
        f"max_upload={config.max_upload_mb} MB, tool_timeout={config.tool_timeout})"
    )
    return app


def run_server(
    config: Optional[ServiceConfig] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    debug: bool = False,
) -> None:
    """
    Run the converter server.

    Args:
        config: Service settings (default: from env vars)
        host: Bind address override
        port: Port override
        debug: Enable Flask debug mode
    """
    config = config or load_config()
    app = create_app(config)

    bind_host = host or config.host
    bind_port = port or config.port
    logger.info(f"Converter running on http://{bind_host}:{bind_port}")

    # Threaded: one request's ffmpeg/LibreOffice run must not block others.
    app.run(host=bind_host, port=bind_port, debug=debug, threaded=True, use_reloader=False)

"""Flask app factory for the paperlens reader API."""

from __future__ import annotations

import os
from typing import Any, Optional
from uuid import uuid4

from flask import Flask, g, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from paperlens.core.logging_utils import error_payload, log_event
from paperlens.web.api import api_bp

MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def _envelope_error(code: str, message: str, status: int):
    return (
        {
            "ok": False,
            "error": {"code": code, "message": message},
            "request_id": str(getattr(g, "request_id", "") or ""),
        },
        status,
    )


def create_app(runtime: Optional[Any] = None) -> Flask:
    """Create and configure the Flask app.

    ``runtime`` is a ``ReaderRuntime``; when omitted one is built from settings.
    """
    if runtime is None:
        from paperlens.services.runtime import build_reader_runtime

        runtime = build_reader_runtime()
    app = Flask(__name__)
    app.json.sort_keys = False
    app.config["MAX_CONTENT_LENGTH"] = int(os.getenv("WEB_MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES)))
    app.extensions["paperlens_runtime"] = runtime

    @app.before_request
    def attach_request_id():
        req_id = str(request.headers.get("X-Request-Id") or "").strip() or uuid4().hex
        g.request_id = req_id

    @app.after_request
    def attach_headers(response):
        response.headers["X-Request-Id"] = str(getattr(g, "request_id", "") or "")
        return response

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _envelope_error("validation_error", str(exc), 422)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        code = "not_found" if exc.code == 404 else "http_error"
        return _envelope_error(code, str(exc.description or exc.name), int(exc.code or 500))

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        log_event(
            "web_request_failed",
            error_payload(
                exc,
                request_id=getattr(g, "request_id", ""),
                path=request.path,
                method=request.method,
            ),
        )
        return _envelope_error("internal_error", "Internal server error.", 500)

    app.register_blueprint(api_bp)

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "status": "healthy"}

    return app


def main() -> None:
    """Run a local Flask dev server."""
    app = create_app()
    host = os.getenv("WEB_HOST", "0.0.0.0")
    port = int(os.getenv("WEB_PORT", "8590"))
    debug = str(os.getenv("WEB_DEBUG", "0")).strip().lower() in {"1", "true", "yes", "on"}
    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()

"""Flask API blueprint for paper ingestion, citations, and explanations."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from flask import Blueprint, current_app, g, jsonify, request
from pydantic import ValidationError

from paperlens.core.errors import InputValidationError, NotFoundError, UnreadablePdfError
from paperlens.llm.errors import LLMConfigurationError
from paperlens.web.schemas import ExplainRequest, PaperCreateRequest, parse_model

api_bp = Blueprint("api_v1", __name__, url_prefix="/api/v1")


def _request_id() -> str:
    return str(getattr(g, "request_id", "") or uuid4().hex)


def _ok(data: Any, *, status: int = 200):
    return jsonify({"ok": True, "data": data, "request_id": _request_id()}), status


def _err(code: str, message: str, *, status: int = 400):
    return jsonify({"ok": False, "error": {"code": code, "message": message}, "request_id": _request_id()}), status


def _runtime():
    return current_app.extensions["paperlens_runtime"]


def _not_found(exc: NotFoundError):
    return _err(f"{exc.resource}_not_found", str(exc), status=404)


@api_bp.route("/papers", methods=["POST"])
def create_paper():
    try:
        payload = parse_model(PaperCreateRequest, request.get_json(silent=True))
    except ValidationError as exc:
        return _err("validation_error", str(exc), status=422)
    try:
        stored = _runtime().ingest.store_paper(
            payload.text,
            title=payload.title,
            authors=payload.authors,
            year=payload.year,
        )
    except InputValidationError as exc:
        return _err("invalid_request", str(exc), status=400)
    return _ok(stored.to_dict(), status=201)


@api_bp.route("/papers/upload", methods=["POST"])
def upload_paper():
    upload = request.files.get("file")
    if upload is None:
        return _err("invalid_request", "A PDF file is required in the 'file' field.", status=400)
    data = upload.read()
    try:
        stored = _runtime().ingest.store_pdf(data, title=request.form.get("title") or None)
    except UnreadablePdfError as exc:
        return _err("unreadable_pdf", str(exc), status=422)
    except InputValidationError as exc:
        return _err("invalid_request", str(exc), status=400)
    return _ok(stored.to_dict(), status=201)


@api_bp.route("/papers/<paper_id>", methods=["GET"])
def paper_detail(paper_id: str):
    try:
        return _ok(_runtime().papers.get_paper(paper_id))
    except NotFoundError as exc:
        return _not_found(exc)


@api_bp.route("/papers/<paper_id>/text", methods=["GET"])
def paper_text(paper_id: str):
    try:
        return _ok(_runtime().papers.paper_text(paper_id))
    except NotFoundError as exc:
        return _not_found(exc)


@api_bp.route("/papers/<paper_id>/citations", methods=["GET"])
def paper_citations(paper_id: str):
    try:
        rows = _runtime().papers.list_citations(paper_id)
    except NotFoundError as exc:
        return _not_found(exc)
    return _ok({"citations": [c.to_dict() for c in rows], "count": len(rows)})


@api_bp.route("/papers/<paper_id>/citations/<path:citation_key>", methods=["GET"])
def citation_detail(paper_id: str, citation_key: str):
    try:
        citation = _runtime().papers.get_citation(paper_id, citation_key)
    except NotFoundError as exc:
        return _not_found(exc)
    return _ok(citation.to_dict())


@api_bp.route("/explain", methods=["POST"])
def explain():
    try:
        payload = parse_model(ExplainRequest, request.get_json(silent=True))
    except ValidationError as exc:
        return _err("validation_error", str(exc), status=422)
    history = [m.model_dump() for m in payload.messages]
    try:
        result = _runtime().assembler.explain(payload.paper_id, payload.selected_text, history or None)
    except NotFoundError as exc:
        return _not_found(exc)
    except InputValidationError as exc:
        return _err("invalid_request", str(exc), status=400)
    except LLMConfigurationError as exc:
        return _err("provider_unavailable", str(exc), status=503)
    return _ok(result.to_dict())

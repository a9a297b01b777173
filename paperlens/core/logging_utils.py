"""Lightweight structured logging for ingestion, enrichment, and explain events."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict


def log_event(event: str, payload: Dict[str, Any] | None = None) -> None:
    """Emit a structured JSON log line to stdout.

    Args:
        event (str): Event name, e.g. ``citation_enriched``.
        payload (Dict[str, Any] | None): Extra fields merged into the log line.
    """
    data = {
        "event": event,
        "ts": datetime.now(timezone.utc).isoformat(),
    }
    if payload:
        data.update(payload)
    print(json.dumps(data, ensure_ascii=False, default=str))


def error_payload(exc: BaseException, **extra: Any) -> Dict[str, Any]:
    """Return a log payload describing ``exc``."""
    payload: Dict[str, Any] = {"error_type": type(exc).__name__, "error": str(exc)}
    payload.update(extra)
    return payload

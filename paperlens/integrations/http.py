"""Retrying JSON GET shared by the bibliographic clients."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

import requests

from paperlens.core.errors import ExternalLookupError
from paperlens.integrations.rate_limit import RateLimiter

USER_AGENT = "paperlens/0.1"
MAX_RETRY_AFTER_SECONDS = 30.0


def _retry_after_seconds(resp: requests.Response, default: float) -> float:
    raw = str(resp.headers.get("Retry-After") or "").strip()
    try:
        value = float(raw)
    except ValueError:
        return default
    return min(max(value, 0.0), MAX_RETRY_AFTER_SECONDS)


def request_json(
    session: requests.Session,
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    limiter: Optional[RateLimiter] = None,
    timeout: float = 15.0,
    max_retries: int = 2,
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[Dict[str, Any]]:
    """GET ``url`` and return the decoded JSON object.

    Returns ``None`` on 404. Retries 429 (honouring ``Retry-After``), 5xx, and
    transport errors with linear backoff; raises ``ExternalLookupError`` once the
    retries are exhausted or on any other non-2xx status.
    """
    merged_headers = {"User-Agent": USER_AGENT}
    merged_headers.update(headers or {})
    last_error = "no attempt made"
    for attempt in range(max(0, int(max_retries)) + 1):
        backoff = 0.5 * (attempt + 1)
        if limiter is not None:
            limiter.wait()
        try:
            resp = session.get(url, params=params, headers=merged_headers, timeout=timeout)
        except requests.RequestException as exc:
            last_error = f"{type(exc).__name__}: {exc}"
        else:
            if resp.status_code == 404:
                return None
            if resp.status_code == 429:
                last_error = "rate limited (429)"
                backoff = _retry_after_seconds(resp, backoff)
            elif resp.status_code >= 500:
                last_error = f"server error ({resp.status_code})"
            elif resp.status_code >= 400:
                raise ExternalLookupError(f"GET {url} failed with status {resp.status_code}")
            else:
                try:
                    data = resp.json()
                except ValueError as exc:
                    raise ExternalLookupError(f"GET {url} returned invalid JSON") from exc
                return data if isinstance(data, dict) else None
        if attempt < max_retries:
            sleep(backoff)
    raise ExternalLookupError(f"GET {url} failed after {max_retries + 1} attempts: {last_error}")

"""OpenAlex works lookups for cited works."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import requests

from paperlens.db.models import CitedWork
from paperlens.integrations.http import request_json
from paperlens.integrations.rate_limit import RateLimiter

BASE_URL = "https://api.openalex.org/works"
DEFAULT_SELECT = "id,display_name,publication_year,doi,authorships,abstract_inverted_index"
# arXiv registers every preprint under a DataCite DOI with this prefix.
ARXIV_DOI_PREFIX = "10.48550/arXiv."


def _abstract_from_inverted_index(inv: Optional[Dict[str, Any]]) -> str:
    """Rebuild abstract text from OpenAlex's word -> positions index."""
    if not inv or not isinstance(inv, dict):
        return ""
    positions = []
    for vals in inv.values():
        if isinstance(vals, list):
            positions.extend([v for v in vals if isinstance(v, int)])
    if not positions:
        return ""
    words: List[str] = [""] * (max(positions) + 1)
    for token, offsets in inv.items():
        if not isinstance(offsets, list):
            continue
        for pos in offsets:
            if isinstance(pos, int) and pos >= 0:
                words[pos] = token
    return " ".join([w for w in words if w])


def _strip_doi_url(value: Optional[str]) -> Optional[str]:
    text = str(value or "").strip()
    for prefix in ("https://doi.org/", "http://doi.org/"):
        if text.lower().startswith(prefix):
            text = text[len(prefix) :]
    return text or None


def work_from_openalex(payload: Optional[Dict[str, Any]]) -> Optional[CitedWork]:
    """Map one OpenAlex work onto ``CitedWork``."""
    if not payload or not payload.get("id"):
        return None
    authors: List[str] = []
    for authorship in payload.get("authorships") or []:
        name = ((authorship or {}).get("author") or {}).get("display_name")
        if name:
            authors.append(str(name))
    year = payload.get("publication_year")
    return CitedWork(
        title=payload.get("display_name") or None,
        abstract=_abstract_from_inverted_index(payload.get("abstract_inverted_index")) or None,
        authors=authors,
        year=int(year) if isinstance(year, int) else None,
        doi=_strip_doi_url(payload.get("doi")),
        external_id=str(payload["id"]).rsplit("/", 1)[-1],
    )


class OpenAlexClient:
    """Bibliographic source backed by the OpenAlex works API."""

    name = "OpenAlex"

    def __init__(
        self,
        *,
        mailto: str | None = None,
        limiter: RateLimiter | None = None,
        timeout: float = 15.0,
        max_retries: int = 2,
        session: requests.Session | None = None,
        base_url: str = BASE_URL,
    ) -> None:
        self.mailto = str(mailto or os.environ.get("OPENALEX_MAILTO") or "").strip()
        self.limiter = limiter or RateLimiter(1.0, name="openalex")
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")

    def _get(self, url: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        payload = dict(params)
        if self.mailto:
            payload["mailto"] = self.mailto
        return request_json(
            self.session,
            url,
            params=payload,
            limiter=self.limiter,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

    def by_doi(self, doi: str) -> Optional[CitedWork]:
        return work_from_openalex(self._get(f"{self.base_url}/https://doi.org/{doi}", {"select": DEFAULT_SELECT}))

    def by_external_id(self, identifier: str) -> Optional[CitedWork]:
        """Look up an arXiv identifier through its DataCite DOI."""
        return self.by_doi(f"{ARXIV_DOI_PREFIX}{identifier}")

    def search_by_title(self, title: str, limit: int = 5) -> List[CitedWork]:
        data = self._get(self.base_url, {"search": title, "per-page": int(limit), "select": DEFAULT_SELECT})
        works = [work_from_openalex(item) for item in (data or {}).get("results") or []]
        return [w for w in works if w is not None]

"""Semantic Scholar Graph API lookups for cited works."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from paperlens.db.models import CitedWork
from paperlens.integrations.http import request_json
from paperlens.integrations.rate_limit import RateLimiter

BASE_URL = "https://api.semanticscholar.org/graph/v1"
PAPER_FIELDS = "paperId,title,abstract,year,authors,externalIds"


def work_from_s2(payload: Optional[Dict[str, Any]]) -> Optional[CitedWork]:
    """Map one Graph API paper object onto ``CitedWork``."""
    if not payload or not payload.get("paperId"):
        return None
    external_ids = payload.get("externalIds") or {}
    year = payload.get("year")
    return CitedWork(
        title=payload.get("title") or None,
        abstract=payload.get("abstract") or None,
        authors=[str(a.get("name")) for a in payload.get("authors") or [] if isinstance(a, dict) and a.get("name")],
        year=int(year) if isinstance(year, int) else None,
        doi=external_ids.get("DOI") or None,
        external_id=str(payload["paperId"]),
    )


class SemanticScholarClient:
    """Bibliographic source backed by the Semantic Scholar Graph API."""

    name = "Semantic Scholar"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        limiter: RateLimiter | None = None,
        timeout: float = 15.0,
        max_retries: int = 2,
        session: requests.Session | None = None,
        base_url: str = BASE_URL,
    ) -> None:
        self.api_key = str(api_key or "").strip()
        self.limiter = limiter or RateLimiter(1.0, name="semantic_scholar")
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")

    def _get(self, path: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        headers = {"x-api-key": self.api_key} if self.api_key else {}
        return request_json(
            self.session,
            f"{self.base_url}{path}",
            params=params,
            headers=headers,
            limiter=self.limiter,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

    def by_doi(self, doi: str) -> Optional[CitedWork]:
        return work_from_s2(self._get(f"/paper/DOI:{quote(doi, safe='/')}", {"fields": PAPER_FIELDS}))

    def by_external_id(self, identifier: str) -> Optional[CitedWork]:
        """Look up an arXiv identifier such as ``2101.00001``."""
        return work_from_s2(self._get(f"/paper/ARXIV:{quote(identifier, safe='/')}", {"fields": PAPER_FIELDS}))

    def search_by_title(self, title: str, limit: int = 5) -> List[CitedWork]:
        data = self._get("/paper/search", {"query": title, "limit": int(limit), "fields": PAPER_FIELDS})
        works = [work_from_s2(item) for item in (data or {}).get("data") or []]
        return [w for w in works if w is not None]

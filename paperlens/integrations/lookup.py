"""Multi-strategy resolution of a raw reference string to a cited work."""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Protocol, Tuple

from paperlens.citations.context import extract_title_from_reference
from paperlens.core.errors import ExternalLookupError
from paperlens.core.logging_utils import error_payload, log_event
from paperlens.db.models import CitedWork

FREE_TEXT_QUERY_CHARS = 200
TITLE_SEARCH_LIMIT = 5

_DOI_RE = re.compile(r"\b(10\.\d{4,9}/[^\s\"<>]+)", re.IGNORECASE)
_ARXIV_RE = re.compile(
    r"(?:arxiv:\s*|arxiv\.org/(?:abs|pdf)/)(\d{4}\.\d{4,5})(?:v\d+)?",
    re.IGNORECASE,
)


class BibliographicSource(Protocol):
    """External lookup service; not-found is ``None`` or ``[]``, transport failure raises."""

    name: str

    def by_doi(self, doi: str) -> Optional[CitedWork]:
        ...

    def by_external_id(self, identifier: str) -> Optional[CitedWork]:
        ...

    def search_by_title(self, title: str, limit: int = TITLE_SEARCH_LIMIT) -> List[CitedWork]:
        ...


def extract_doi(text: Optional[str]) -> Optional[str]:
    """First DOI in ``text`` with trailing punctuation removed."""
    match = _DOI_RE.search(str(text or ""))
    if not match:
        return None
    return match.group(1).rstrip(".,;:)]}")


def extract_arxiv_id(text: Optional[str]) -> Optional[str]:
    """arXiv identifier without its version suffix, e.g. ``2101.00001``."""
    match = _ARXIV_RE.search(str(text or ""))
    return match.group(1) if match else None


def title_overlap(a: Optional[str], b: Optional[str]) -> float:
    """Shared-word ratio ``|A & B| / max(|A|, |B|)`` over lowercase whitespace tokens."""
    words_a = set(str(a or "").lower().split())
    words_b = set(str(b or "").lower().split())
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / max(len(words_a), len(words_b))


def best_title_match(query: str, candidates: List[CitedWork]) -> Optional[CitedWork]:
    """Candidate with the highest ``title_overlap``; the first one wins ties."""
    best: Optional[CitedWork] = None
    best_score = -1.0
    for candidate in candidates:
        score = title_overlap(query, candidate.title)
        if score > best_score:
            best, best_score = candidate, score
    return best


def _strategies(source: BibliographicSource, raw_reference: str) -> List[Tuple[str, Callable[[], Optional[CitedWork]]]]:
    steps: List[Tuple[str, Callable[[], Optional[CitedWork]]]] = []
    doi = extract_doi(raw_reference)
    if doi:
        steps.append(("doi", lambda: source.by_doi(doi)))
    arxiv_id = extract_arxiv_id(raw_reference)
    if arxiv_id:
        steps.append(("arxiv", lambda: source.by_external_id(arxiv_id)))
    title = extract_title_from_reference(raw_reference)
    if title:
        steps.append(("title", lambda: best_title_match(title, source.search_by_title(title, TITLE_SEARCH_LIMIT))))
    prefix = raw_reference[:FREE_TEXT_QUERY_CHARS].strip()
    if prefix:
        steps.append(("free_text", lambda: best_title_match(prefix, source.search_by_title(prefix, TITLE_SEARCH_LIMIT))))
    return steps


def lookup_cited_work(source: BibliographicSource, raw_reference: Optional[str]) -> Optional[CitedWork]:
    """Resolve ``raw_reference`` with DOI, arXiv id, title, then free-text search.

    The first strategy that returns a work wins. A strategy whose request fails is
    logged and skipped. Returns ``None`` when nothing matched.
    """
    reference = str(raw_reference or "").strip()
    if not reference:
        return None
    for strategy, run in _strategies(source, reference):
        try:
            work = run()
        except ExternalLookupError as exc:
            log_event(
                "citation_lookup_failed",
                error_payload(exc, source=getattr(source, "name", ""), strategy=strategy),
            )
            continue
        if work is not None:
            return work
    return None

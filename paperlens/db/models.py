"""Row types for papers, citations, retrieved chunks, and cited works."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def _iso(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class Paper:
    """One ingested paper with its full extracted text."""

    id: str
    title: str
    raw_text: str
    authors: List[str] = field(default_factory=list)
    year: Optional[int] = None
    page_count: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self, *, include_text: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "year": self.year,
            "page_count": self.page_count,
            "created_at": _iso(self.created_at),
        }
        if include_text:
            data["raw_text"] = self.raw_text
        return data


@dataclass(frozen=True)
class Citation:
    """One unique citation key of a paper plus its enrichment state.

    ``enriched`` and ``enrichment_failed`` are never both true. Once either is
    set the citation is not enriched again.
    """

    paper_id: str
    citation_key: str
    id: Optional[int] = None
    raw_reference: Optional[str] = None
    context_in_paper: Optional[str] = None
    cited_title: Optional[str] = None
    cited_abstract: Optional[str] = None
    cited_authors: List[str] = field(default_factory=list)
    cited_year: Optional[int] = None
    cited_doi: Optional[str] = None
    cited_external_id: Optional[str] = None
    relevance_explanation: Optional[str] = None
    enriched: bool = False
    enrichment_failed: bool = False
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    enriched_at: Optional[datetime] = None

    @property
    def attempted(self) -> bool:
        """True once the citation reached a terminal enrichment state."""
        return bool(self.enriched or self.enrichment_failed)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = _iso(self.created_at)
        data["enriched_at"] = _iso(self.enriched_at)
        return data

    def summary(self) -> Dict[str, Any]:
        """Short form used in paper listings."""
        return {
            "citation_key": self.citation_key,
            "raw_reference": self.raw_reference,
            "cited_title": self.cited_title,
            "enriched": self.enriched,
            "enrichment_failed": self.enrichment_failed,
        }


@dataclass(frozen=True)
class ChunkMatch:
    """A retrieved chunk and its cosine similarity to the query."""

    content: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "score": self.score}


@dataclass(frozen=True)
class CitedWork:
    """Bibliographic record of a cited work returned by an external source."""

    title: Optional[str] = None
    abstract: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    year: Optional[int] = None
    doi: Optional[str] = None
    external_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EnrichmentResult:
    """Fields written by one enrichment attempt."""

    enriched: bool
    enrichment_failed: bool
    failure_reason: Optional[str] = None
    work: Optional[CitedWork] = None
    relevance_explanation: Optional[str] = None

    def __post_init__(self) -> None:
        if self.enriched and self.enrichment_failed:
            raise ValueError("a citation cannot be both enriched and failed")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enriched": self.enriched,
            "enrichment_failed": self.enrichment_failed,
            "failure_reason": self.failure_reason,
            "work": self.work.to_dict() if self.work else None,
            "relevance_explanation": self.relevance_explanation,
        }

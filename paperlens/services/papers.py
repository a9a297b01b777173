"""Read paths for papers and citations, including lazy citation enrichment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from paperlens.citations.context import find_marker_positions
from paperlens.core.errors import InputValidationError, NotFoundError
from paperlens.db.models import Citation, Paper


@dataclass
class PaperService:
    repository: Any
    enrichment: Any = None

    def _paper(self, paper_id: str) -> Paper:
        if not str(paper_id or "").strip():
            raise InputValidationError("paper_id is required")
        paper = self.repository.get_paper(paper_id)
        if paper is None:
            raise NotFoundError("paper", paper_id)
        return paper

    def get_paper(self, paper_id: str) -> Dict[str, Any]:
        paper = self._paper(paper_id)
        data = paper.to_dict()
        data["citations"] = [c.summary() for c in self.repository.list_citations(paper_id)]
        return data

    def list_citations(self, paper_id: str) -> List[Citation]:
        self._paper(paper_id)
        return self.repository.list_citations(paper_id)

    def get_citation(self, paper_id: str, citation_key: str) -> Citation:
        """Citation row, enriched on first access and never again."""
        self._paper(paper_id)
        citation = self.repository.get_citation(paper_id, citation_key)
        if citation is None:
            raise NotFoundError("citation", citation_key)
        if self.enrichment is not None and not citation.attempted:
            citation = self.enrichment.enrich(paper_id, citation)
        return citation

    def paper_text(self, paper_id: str) -> Dict[str, Any]:
        """Full text with the marker spans of every stored citation key."""
        paper = self._paper(paper_id)
        markers = []
        for citation in self.repository.list_citations(paper_id):
            spans = find_marker_positions(paper.raw_text, citation.citation_key)
            markers.append(
                {
                    "key": citation.citation_key,
                    "positions": [{"start": start, "end": end} for start, end in spans],
                }
            )
        return {"paper_id": paper.id, "text": paper.raw_text, "citation_markers": markers}

"""One-shot citation enrichment: bibliographic lookup, wider context, relevance note."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from paperlens.core.errors import ExternalLookupError, PersistenceError
from paperlens.core.logging_utils import error_payload, log_event
from paperlens.core.prompts import (
    CITATION_RELEVANCE_INPUT_TEMPLATE,
    CITATION_RELEVANCE_PROMPT,
    CITED_WORK_INFO_TEMPLATE,
    RAW_REFERENCE_INFO_TEMPLATE,
    SIMILAR_CONTEXT_SEPARATOR,
)
from paperlens.db.models import Citation, CitedWork, EnrichmentResult
from paperlens.integrations.lookup import BibliographicSource, lookup_cited_work
from paperlens.llm.errors import LLMProviderError

SIMILAR_CHUNKS = 2


def _not_found_reason(source: Any) -> str:
    return f"Paper not found on {getattr(source, 'name', 'the bibliographic source')}"


@dataclass
class CitationEnrichmentService:
    """Enrich a citation at most once and persist the terminal state.

    ``enrich`` always writes either ``enriched`` or ``enrichment_failed``. Lookup,
    similar-chunk, and explanation failures are logged and skipped; only storage
    errors propagate.
    """

    repository: Any
    source: BibliographicSource
    relevance: Any
    embedder: Any = None
    vector_index: Any = None
    max_tokens: int = 300
    explain_unresolved: bool = False

    def _lookup(self, citation: Citation) -> Optional[CitedWork]:
        if not citation.raw_reference:
            return None
        try:
            return lookup_cited_work(self.source, citation.raw_reference)
        except (ExternalLookupError, ValueError) as exc:
            log_event(
                "citation_lookup_failed",
                error_payload(exc, paper_id=citation.paper_id, citation_key=citation.citation_key),
            )
            return None

    def _widen_context(self, paper_id: str, citation: Citation) -> str:
        context = citation.context_in_paper or ""
        if not context or self.embedder is None or self.vector_index is None:
            return context
        try:
            vector = self.embedder.embed_one(context)
            matches = self.vector_index.search(paper_id, vector, SIMILAR_CHUNKS)
        except (ExternalLookupError, LLMProviderError, PersistenceError) as exc:
            log_event(
                "citation_similar_chunks_failed",
                error_payload(exc, paper_id=paper_id, citation_key=citation.citation_key),
            )
            return context
        additional = " ".join(m.content for m in matches).strip()
        if additional:
            context = f"{context}{SIMILAR_CONTEXT_SEPARATOR}{additional}"
        return context

    def _explain(self, citation: Citation, context: str, work: Optional[CitedWork]) -> Optional[str]:
        if work is not None and work.title:
            cited_info = CITED_WORK_INFO_TEMPLATE.format(title=work.title, abstract=work.abstract or "Not available")
        else:
            cited_info = RAW_REFERENCE_INFO_TEMPLATE.format(raw_reference=citation.raw_reference or "Not available")
        try:
            response = self.relevance.generate(
                instructions=CITATION_RELEVANCE_PROMPT,
                user_input=CITATION_RELEVANCE_INPUT_TEMPLATE.format(context=context, cited_info=cited_info),
                max_output_tokens=self.max_tokens,
            )
        except (LLMProviderError, ExternalLookupError) as exc:
            log_event(
                "citation_explanation_failed",
                error_payload(exc, paper_id=citation.paper_id, citation_key=citation.citation_key),
            )
            return None
        return str(response.text or "").strip() or None

    def enrich(self, paper_id: str, citation: Citation) -> Citation:
        """Run the enrichment steps in order and return the persisted row."""
        work = self._lookup(citation)
        context = self._widen_context(paper_id, citation)
        explanation = None
        if work is not None or self.explain_unresolved:
            explanation = self._explain(citation, context, work)
        found = work is not None
        result = EnrichmentResult(
            enriched=found,
            enrichment_failed=not found,
            failure_reason=None if found else _not_found_reason(self.source),
            work=work,
            relevance_explanation=explanation,
        )
        updated = self.repository.update_citation_enrichment(citation.id, result)
        log_event(
            "citation_enriched",
            {
                "paper_id": paper_id,
                "citation_key": citation.citation_key,
                "enriched": result.enriched,
                "has_explanation": explanation is not None,
            },
        )
        return updated or citation

    def ensure_enriched(self, paper_id: str, citation: Citation) -> Citation:
        """Enrich only citations that have not reached a terminal state."""
        if citation.attempted:
            return citation
        return self.enrich(paper_id, citation)

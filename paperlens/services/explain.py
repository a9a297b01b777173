"""Question answering over a selected passage with retrieved context and nearby citations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from paperlens.citations.context import find_marker_positions
from paperlens.core.errors import ExternalLookupError, InputValidationError, NotFoundError, PersistenceError
from paperlens.core.logging_utils import error_payload, log_event
from paperlens.core.prompts import (
    EXPLAIN_SELECTION_TEMPLATE,
    EXPLAIN_SYSTEM_PROMPT,
    FULLTEXT_TRUNCATION_MARKER,
    NO_NEARBY_CITATIONS,
)
from paperlens.db.models import Citation
from paperlens.llm.errors import LLMProviderError

CONTEXT_VECTOR = "vector"
CONTEXT_FULLTEXT = "fulltext"


@dataclass(frozen=True)
class ExplainResult:
    """Generated reply plus how its context was built."""

    reply: str
    context_source: str
    citations: List[Citation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reply": self.reply,
            "context_source": self.context_source,
            "citations": [dict(c.summary(), relevance_explanation=c.relevance_explanation) for c in self.citations],
        }


def truncate_full_text(text: str, max_chars: int) -> str:
    """``text`` cut to ``max_chars`` with a marker appended when it was cut."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + FULLTEXT_TRUNCATION_MARKER


def format_sections(contents: Iterable[str]) -> str:
    return "\n\n".join(f"[Section {i}]\n{content}" for i, content in enumerate(contents, start=1))


def find_selection(text: str, selected_text: str) -> Optional[int]:
    """Offset of the first occurrence of ``selected_text``, ignoring whitespace differences."""
    tokens = selected_text.split()
    if not tokens:
        return None
    index = text.find(selected_text)
    if index >= 0:
        return index
    match = re.search(r"\s+".join(re.escape(t) for t in tokens), text)
    return match.start() if match else None


def format_citations_block(citations: List[Citation]) -> str:
    """One line per citation: key, title or raw reference, and the relevance note."""
    if not citations:
        return NO_NEARBY_CITATIONS
    lines = []
    for citation in citations:
        label = citation.cited_title or citation.raw_reference or "Reference text unavailable"
        line = f"- {citation.citation_key}: {label}"
        if citation.relevance_explanation:
            line += f"\n  Relevance: {citation.relevance_explanation}"
        lines.append(line)
    return "\n".join(lines)


def build_system_prompt(selected_text: str, paper_context: str, citations_block: str) -> str:
    return (
        f"{EXPLAIN_SYSTEM_PROMPT}\n\n"
        f'Selected passage:\n"{selected_text}"\n\n'
        f"Relevant paper sections (for context only):\n{paper_context}\n\n"
        f"Citations near the selected passage:\n{citations_block}"
    )


@dataclass
class ContextAssembler:
    """Build the prompt for one explain request and hand it to the chat capability.

    Retrieval failures and enrichment failures degrade the context; they never
    fail the request. Only a missing paper, an empty selection, storage errors,
    and generation errors reach the caller.
    """

    repository: Any
    chat: Any
    embedder: Any = None
    vector_index: Any = None
    enrichment: Any = None
    top_k: int = 8
    max_fallback_context_chars: int = 80000
    citation_window_chars: int = 600
    max_tokens: int = 1024

    def paper_context(self, paper_id: str, selected_text: str, full_text: str) -> Tuple[str, str]:
        """Retrieved sections for ``selected_text``, or the truncated full text.

        Returns ``(context, source)`` where source is ``vector`` or ``fulltext``.
        """
        reason = "no_chunks"
        if self.embedder is not None and self.vector_index is not None:
            try:
                vector = self.embedder.embed_one(selected_text)
                matches = self.vector_index.search(paper_id, vector, self.top_k)
            except (ExternalLookupError, LLMProviderError, PersistenceError) as exc:
                matches = []
                reason = type(exc).__name__
            if matches:
                return format_sections(m.content for m in matches), CONTEXT_VECTOR
        else:
            reason = "retrieval_disabled"
        log_event("explain_context_fallback", {"paper_id": paper_id, "reason": reason})
        return truncate_full_text(full_text, self.max_fallback_context_chars), CONTEXT_FULLTEXT

    def nearby_citations(self, paper_id: str, full_text: str, selected_text: str) -> List[Citation]:
        """Citations with a marker within the window around the first selection occurrence.

        Citations not yet enriched are enriched inline; a failed attempt keeps the stored row.
        """
        anchor = find_selection(full_text, selected_text)
        if anchor is None:
            return []
        nearby: List[Citation] = []
        for citation in self.repository.list_citations(paper_id):
            spans = find_marker_positions(full_text, citation.citation_key)
            if any(abs(start - anchor) <= self.citation_window_chars for start, _ in spans):
                nearby.append(self._enriched(paper_id, citation))
        return nearby

    def _enriched(self, paper_id: str, citation: Citation) -> Citation:
        if self.enrichment is None or citation.attempted:
            return citation
        try:
            return self.enrichment.ensure_enriched(paper_id, citation)
        except (PersistenceError, ExternalLookupError, LLMProviderError) as exc:
            log_event(
                "explain_citation_enrichment_failed",
                error_payload(exc, paper_id=paper_id, citation_key=citation.citation_key),
            )
            return citation

    def explain(
        self,
        paper_id: str,
        selected_text: str,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> ExplainResult:
        """Answer about ``selected_text``; ``history`` continues an earlier conversation."""
        if not str(paper_id or "").strip():
            raise InputValidationError("paper_id is required")
        if not str(selected_text or "").strip():
            raise InputValidationError("selected_text must not be empty")
        paper = self.repository.get_paper(paper_id)
        if paper is None:
            raise NotFoundError("paper", paper_id)

        context, source = self.paper_context(paper_id, selected_text, paper.raw_text)
        citations = self.nearby_citations(paper_id, paper.raw_text, selected_text)
        system_prompt = build_system_prompt(selected_text, context, format_citations_block(citations))

        if history:
            response = self.chat.generate(
                instructions=system_prompt,
                messages=history,
                max_output_tokens=self.max_tokens,
            )
        else:
            response = self.chat.generate(
                instructions=system_prompt,
                user_input=EXPLAIN_SELECTION_TEMPLATE.format(selected_text=selected_text),
                max_output_tokens=self.max_tokens,
            )
        return ExplainResult(reply=response.text, context_source=source, citations=citations)

"""Store a paper: extract citations, persist rows, and index chunk embeddings."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from paperlens.citations.extractor import MAX_TITLE_CHARS, extract_citations
from paperlens.core.chunking import chunk_text, chunk_words
from paperlens.core.errors import ExternalLookupError, InputValidationError, PersistenceError
from paperlens.core.io_loaders import extract_pdf_text
from paperlens.core.logging_utils import error_payload, log_event
from paperlens.db.models import Citation, Paper
from paperlens.llm.errors import LLMProviderError


@dataclass(frozen=True)
class StoredPaper:
    """Result of ingesting one paper."""

    paper: Paper
    style: str
    citations: List[Citation] = field(default_factory=list)
    chunk_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paper": self.paper.to_dict(),
            "style": self.style,
            "chunk_count": self.chunk_count,
            "citations": [c.summary() for c in self.citations],
        }


@dataclass
class IngestService:
    repository: Any
    embedder: Any = None
    vector_index: Any = None
    chunk_size: int = 800
    chunk_overlap: int = 150
    chunk_unit: str = "chars"
    context_sentences: int = 2

    def store_paper(
        self,
        text: str,
        *,
        title: Optional[str] = None,
        authors: Optional[List[str]] = None,
        year: Optional[int] = None,
        page_count: Optional[int] = None,
    ) -> StoredPaper:
        """Persist ``text`` with its citations; embedding is best effort."""
        if not str(text or "").strip():
            raise InputValidationError("paper text must not be empty")
        extraction = extract_citations(text, sentences_around=self.context_sentences)
        final_title = (str(title or "").strip() or extraction.title)[:MAX_TITLE_CHARS]
        paper = self.repository.insert_paper(
            Paper(
                id=uuid.uuid4().hex,
                title=final_title,
                raw_text=text,
                authors=[str(a) for a in authors or [] if str(a or "").strip()],
                year=year,
                page_count=page_count,
            ),
            extraction.citations,
        )
        chunk_count = self.index_chunks(paper.id, text)
        citations = self.repository.list_citations(paper.id)
        log_event(
            "paper_stored",
            {
                "paper_id": paper.id,
                "style": extraction.style,
                "citations": len(citations),
                "chunks": chunk_count,
            },
        )
        return StoredPaper(paper=paper, style=extraction.style, citations=citations, chunk_count=chunk_count)

    def store_pdf(self, data: bytes, *, title: Optional[str] = None) -> StoredPaper:
        """Extract text from PDF bytes and store it; the PDF's own title beats the heuristic one."""
        pdf = extract_pdf_text(data)
        return self.store_paper(pdf.text, title=title or pdf.title, page_count=pdf.page_count or None)

    def index_chunks(self, paper_id: str, text: str) -> int:
        """Chunk, embed, and index ``text``; returns the chunk count, 0 when skipped."""
        if self.embedder is None or self.vector_index is None:
            log_event("paper_embedding_skipped", {"paper_id": paper_id, "reason": "retrieval_disabled"})
            return 0
        if self.chunk_unit == "words":
            chunks = chunk_words(text)
        else:
            chunks = chunk_text(text, self.chunk_size, self.chunk_overlap)
        if not chunks:
            return 0
        try:
            vectors = self.embedder.embed(chunks)
            self.vector_index.upsert(paper_id, list(zip(chunks, vectors)))
        except (LLMProviderError, ExternalLookupError, PersistenceError) as exc:
            log_event("paper_embedding_skipped", error_payload(exc, paper_id=paper_id))
            return 0
        log_event("chunks_indexed", {"paper_id": paper_id, "chunks": len(chunks)})
        return len(chunks)

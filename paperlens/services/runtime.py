"""Wire settings into repositories, indexes, sources, and the reader services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from paperlens.core.settings import Settings, load_settings
from paperlens.db.repository import PaperRepository
from paperlens.indexing.embeddings import EmbeddingClient
from paperlens.indexing.vector_index import InMemoryVectorIndex, PgVectorIndex
from paperlens.integrations.openalex import OpenAlexClient
from paperlens.integrations.rate_limit import RateLimiter
from paperlens.integrations.semantic_scholar import SemanticScholarClient
from paperlens.llm.runtime import LLMRuntime, build_llm_runtime
from paperlens.services.enrichment import CitationEnrichmentService
from paperlens.services.explain import ContextAssembler
from paperlens.services.ingest import IngestService
from paperlens.services.papers import PaperService


@dataclass
class ReaderRuntime:
    """Fully wired services shared by the CLI and the web app."""

    settings: Settings
    repository: Any
    vector_index: Any
    embedder: EmbeddingClient
    enrichment: CitationEnrichmentService
    ingest: IngestService
    papers: PaperService
    assembler: ContextAssembler


def build_bibliographic_source(settings: Settings) -> Any:
    """Semantic Scholar or OpenAlex client with its own rate limiter."""
    source = (settings.bibliographic_source or "semantic_scholar").strip().lower()
    limiter = RateLimiter(settings.lookup_min_interval_seconds, name=source)
    if source == "openalex":
        return OpenAlexClient(limiter=limiter, timeout=settings.lookup_timeout_seconds)
    return SemanticScholarClient(
        api_key=settings.semantic_scholar_api_key,
        limiter=limiter,
        timeout=settings.lookup_timeout_seconds,
    )


def build_reader_runtime(
    settings: Optional[Settings] = None,
    *,
    repository: Any = None,
    vector_index: Any = None,
    llm: Optional[LLMRuntime] = None,
    source: Any = None,
) -> ReaderRuntime:
    """Assemble the reader services; any collaborator may be passed in instead."""
    settings = settings or load_settings()
    if repository is None:
        repository = PaperRepository(settings.database_url or None)
    if vector_index is None:
        if settings.vector_backend == "postgres" and settings.database_url:
            vector_index = PgVectorIndex(settings.database_url)
        else:
            vector_index = InMemoryVectorIndex()
    llm = llm or build_llm_runtime(settings)
    source = source or build_bibliographic_source(settings)

    embedder = EmbeddingClient(
        llm.embeddings,
        model=settings.embedding_model,
        batch_size=settings.embed_batch_size,
        max_chars=settings.embed_max_chars,
    )
    enrichment = CitationEnrichmentService(
        repository=repository,
        source=source,
        relevance=llm.relevance,
        embedder=embedder,
        vector_index=vector_index,
        max_tokens=settings.relevance_max_tokens,
        explain_unresolved=settings.explain_unresolved_citations,
    )
    return ReaderRuntime(
        settings=settings,
        repository=repository,
        vector_index=vector_index,
        embedder=embedder,
        enrichment=enrichment,
        ingest=IngestService(
            repository=repository,
            embedder=embedder,
            vector_index=vector_index,
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            chunk_unit=settings.chunk_unit,
            context_sentences=settings.context_sentences,
        ),
        papers=PaperService(repository=repository, enrichment=enrichment),
        assembler=ContextAssembler(
            repository=repository,
            chat=llm.chat,
            embedder=embedder,
            vector_index=vector_index,
            enrichment=enrichment,
            top_k=settings.top_k,
            max_fallback_context_chars=settings.max_fallback_context_chars,
            citation_window_chars=settings.citation_window_chars,
            max_tokens=settings.explain_max_tokens,
        ),
    )

"""Create paper, citation, and chunk tables."""

from __future__ import annotations

import os

from alembic import op


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

# HNSW needs a fixed dimension; 1536 matches text-embedding-3-small.
EMBEDDING_DIMENSIONS = int(os.environ.get("EMBEDDING_DIMENSIONS", "1536"))


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS papers (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            authors_json JSONB,
            year INTEGER,
            raw_text TEXT NOT NULL,
            page_count INTEGER,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """
    )
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS citations (
            id BIGSERIAL PRIMARY KEY,
            paper_id TEXT NOT NULL REFERENCES papers(id) ON DELETE CASCADE,
            citation_key TEXT NOT NULL,
            raw_reference TEXT,
            context_in_paper TEXT,
            cited_title TEXT,
            cited_abstract TEXT,
            cited_authors_json JSONB,
            cited_year INTEGER,
            cited_doi TEXT,
            cited_external_id TEXT,
            relevance_explanation TEXT,
            enriched BOOLEAN NOT NULL DEFAULT FALSE,
            enrichment_failed BOOLEAN NOT NULL DEFAULT FALSE,
            failure_reason TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            enriched_at TIMESTAMPTZ,
            CONSTRAINT citations_paper_key_unique UNIQUE (paper_id, citation_key),
            CONSTRAINT citations_single_terminal_state CHECK (NOT (enriched AND enrichment_failed))
        )
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS citations_paper_id_idx ON citations (paper_id)")
    op.execute(
        f"""
        CREATE TABLE IF NOT EXISTS paper_chunks (
            paper_id TEXT NOT NULL REFERENCES papers(id) ON DELETE CASCADE,
            chunk_index INTEGER NOT NULL,
            content TEXT NOT NULL,
            embedding VECTOR({EMBEDDING_DIMENSIONS}),
            PRIMARY KEY (paper_id, chunk_index)
        )
        """
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS paper_chunks_embedding_hnsw
        ON paper_chunks USING hnsw (embedding vector_cosine_ops)
        """
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS paper_chunks")
    op.execute("DROP TABLE IF EXISTS citations")
    op.execute("DROP TABLE IF EXISTS papers")

"""Embedding client and per-paper vector indexes."""

from paperlens.indexing.embeddings import EmbeddingClient
from paperlens.indexing.vector_index import InMemoryVectorIndex, PgVectorIndex, cosine

__all__ = ["EmbeddingClient", "InMemoryVectorIndex", "PgVectorIndex", "cosine"]

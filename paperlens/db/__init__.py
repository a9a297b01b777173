"""Postgres connections, row types, and the paper/citation repository."""

from .connection import ensure_schema_ready, get_database_url, get_pool, pooled_connection
from .models import ChunkMatch, Citation, CitedWork, EnrichmentResult, Paper
from .repository import PaperRepository

__all__ = [
    "ChunkMatch",
    "Citation",
    "CitedWork",
    "EnrichmentResult",
    "Paper",
    "PaperRepository",
    "ensure_schema_ready",
    "get_database_url",
    "get_pool",
    "pooled_connection",
]

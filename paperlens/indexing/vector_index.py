"""Per-paper nearest-neighbour search over chunk embeddings (in-memory and pgvector)."""

from __future__ import annotations

import math
import threading
from contextlib import contextmanager
from typing import Any, Callable, ContextManager, Dict, Iterator, List, Optional, Protocol, Sequence, Tuple

import numpy as np
from psycopg import Error as DriverError

from paperlens.core.errors import PersistenceError
from paperlens.db.connection import pooled_connection
from paperlens.db.models import ChunkMatch


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero norm.

    Vectors of different lengths are not comparable and also score 0.0.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape or va.size == 0:
        return 0.0
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / norm, -1.0, 1.0))


def _similarity(value: Any) -> float:
    """Score column value as a float; NULL or NaN (zero-norm vectors) score 0.0."""
    if value is None:
        return 0.0
    score = float(value)
    return 0.0 if math.isnan(score) else score


def _to_pgvector_literal(values: Sequence[float]) -> str:
    return "[" + ",".join(f"{float(v):.10f}" for v in values) + "]"


class VectorIndex(Protocol):
    """Similarity index partitioned by paper id."""

    def upsert(self, paper_id: str, chunks: Sequence[Tuple[str, Sequence[float]]]) -> None:
        ...

    def search(self, paper_id: str, query_vector: Sequence[float], top_k: int = 3) -> List[ChunkMatch]:
        ...


class InMemoryVectorIndex:
    """Process-local index: a dict of paper id to ``(content, vector)`` rows.

    This is a volatile cache with no eviction; everything is lost on restart and
    memory grows for the lifetime of the process. Use it for tests and local runs.
    """

    def __init__(self) -> None:
        self._rows: Dict[str, List[Tuple[str, np.ndarray]]] = {}
        self._lock = threading.Lock()

    def upsert(self, paper_id: str, chunks: Sequence[Tuple[str, Sequence[float]]]) -> None:
        """Replace the stored chunks of ``paper_id``."""
        rows = [(str(content), np.asarray(vec, dtype=np.float64)) for content, vec in chunks]
        with self._lock:
            self._rows[paper_id] = rows

    def search(self, paper_id: str, query_vector: Sequence[float], top_k: int = 3) -> List[ChunkMatch]:
        """Top ``top_k`` chunks of ``paper_id`` by descending cosine similarity."""
        with self._lock:
            rows = list(self._rows.get(paper_id, []))
        if not rows or top_k <= 0:
            return []
        scored = [ChunkMatch(content=content, score=cosine(vec, query_vector)) for content, vec in rows]
        # Stable sort keeps chunk order for equal scores.
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:top_k]

    def count(self, paper_id: str) -> int:
        with self._lock:
            return len(self._rows.get(paper_id, []))


ConnectionFactory = Callable[[], ContextManager[Any]]


class PgVectorIndex:
    """Chunk index stored in ``paper_chunks`` and ranked with pgvector ``<=>``.

    ``<=>`` is cosine distance, so ``1 - distance`` gives the same score as
    :func:`cosine` and ordering by distance ascending matches the in-memory index.
    """

    def __init__(self, db_url: str | None = None, *, connection_factory: Optional[ConnectionFactory] = None) -> None:
        self.db_url = db_url
        self._connection_factory = connection_factory

    @contextmanager
    def _connection(self) -> Iterator[Any]:
        if self._connection_factory is not None:
            with self._connection_factory() as conn:
                yield conn
            return
        with pooled_connection(self.db_url) as conn:
            yield conn

    def upsert(self, paper_id: str, chunks: Sequence[Tuple[str, Sequence[float]]]) -> None:
        """Replace the stored chunks of ``paper_id`` in one transaction."""
        try:
            with self._connection() as conn:
                cur = conn.cursor()
                cur.execute("DELETE FROM paper_chunks WHERE paper_id = %s", (paper_id,))
                for index, (content, vector) in enumerate(chunks):
                    cur.execute(
                        """
                        INSERT INTO paper_chunks (paper_id, chunk_index, content, embedding)
                        VALUES (%s, %s, %s, %s::vector)
                        """,
                        (paper_id, index, content, _to_pgvector_literal(vector)),
                    )
                conn.commit()
        except DriverError as exc:
            raise PersistenceError(f"failed to store chunks for paper {paper_id}: {exc}") from exc

    def search(self, paper_id: str, query_vector: Sequence[float], top_k: int = 3) -> List[ChunkMatch]:
        """Top ``top_k`` chunks of ``paper_id``, ranked in the database."""
        if top_k <= 0:
            return []
        literal = _to_pgvector_literal(query_vector)
        try:
            with self._connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    SELECT content, (1 - (embedding <=> %s::vector)) AS score
                    FROM paper_chunks
                    WHERE paper_id = %s AND embedding IS NOT NULL
                    ORDER BY embedding <=> %s::vector, chunk_index
                    LIMIT %s
                    """,
                    (literal, paper_id, literal, int(top_k)),
                )
                rows = cur.fetchall()
        except DriverError as exc:
            raise PersistenceError(f"vector search failed for paper {paper_id}: {exc}") from exc
        return [ChunkMatch(content=str(r[0]), score=_similarity(r[1])) for r in rows]

    def count(self, paper_id: str) -> int:
        try:
            with self._connection() as conn:
                cur = conn.cursor()
                cur.execute("SELECT COUNT(*) FROM paper_chunks WHERE paper_id = %s", (paper_id,))
                row = cur.fetchone()
        except DriverError as exc:
            raise PersistenceError(f"failed to count chunks for paper {paper_id}: {exc}") from exc
        return int(row[0]) if row else 0

"""Postgres storage for papers and their citations."""

from __future__ import annotations

import json
import re
from contextlib import contextmanager
from typing import Any, Callable, ContextManager, Iterator, List, Optional, Sequence

from psycopg import Error as DriverError

from paperlens.core.errors import PersistenceError
from paperlens.db.connection import pooled_connection
from paperlens.db.models import Citation, EnrichmentResult, Paper

_NUMBERED_KEY_RE = re.compile(r"^\[(\d+)\]$")

_PAPER_COLUMNS = "id, title, authors_json, year, raw_text, page_count, created_at"
_CITATION_COLUMNS = """
    id, paper_id, citation_key, raw_reference, context_in_paper,
    cited_title, cited_abstract, cited_authors_json, cited_year, cited_doi, cited_external_id,
    relevance_explanation, enriched, enrichment_failed, failure_reason, created_at, enriched_at
"""


def _load_json_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if str(item or "").strip()]


def _int_or_none(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _paper_from_row(row: Sequence[Any]) -> Paper:
    return Paper(
        id=str(row[0]),
        title=str(row[1] or ""),
        authors=_load_json_list(row[2]),
        year=_int_or_none(row[3]),
        raw_text=str(row[4] or ""),
        page_count=_int_or_none(row[5]),
        created_at=row[6],
    )


def _citation_from_row(row: Sequence[Any]) -> Citation:
    return Citation(
        id=int(row[0]),
        paper_id=str(row[1]),
        citation_key=str(row[2]),
        raw_reference=row[3],
        context_in_paper=row[4],
        cited_title=row[5],
        cited_abstract=row[6],
        cited_authors=_load_json_list(row[7]),
        cited_year=_int_or_none(row[8]),
        cited_doi=row[9],
        cited_external_id=row[10],
        relevance_explanation=row[11],
        enriched=bool(row[12]),
        enrichment_failed=bool(row[13]),
        failure_reason=row[14],
        created_at=row[15],
        enriched_at=row[16],
    )


def citation_sort_key(key: str) -> tuple:
    """Numbered keys in numeric order first, then everything else alphabetically."""
    match = _NUMBERED_KEY_RE.match(key)
    if match:
        return (0, int(match.group(1)), key)
    return (1, 0, key)


class PaperRepository:
    """Paper and citation rows behind one connection source.

    ``connection_factory`` returns a context manager yielding a DB-API connection;
    by default connections come from the process-wide pool for ``db_url``.
    Driver errors are raised as ``PersistenceError``.
    """

    def __init__(
        self,
        db_url: str | None = None,
        *,
        connection_factory: Optional[Callable[[], ContextManager[Any]]] = None,
    ) -> None:
        self.db_url = db_url
        self._connection_factory = connection_factory

    @contextmanager
    def _connection(self) -> Iterator[Any]:
        try:
            if self._connection_factory is not None:
                with self._connection_factory() as conn:
                    yield conn
            else:
                with pooled_connection(self.db_url) as conn:
                    yield conn
        except DriverError as exc:
            raise PersistenceError(str(exc)) from exc

    @staticmethod
    def _insert_paper_row(cur: Any, paper: Paper) -> Paper:
        cur.execute(
            f"""
            INSERT INTO papers (id, title, authors_json, year, raw_text, page_count, created_at)
            VALUES (%s, %s, %s::jsonb, %s, %s, %s, NOW())
            RETURNING {_PAPER_COLUMNS}
            """,
            (
                paper.id,
                paper.title,
                json.dumps(list(paper.authors), ensure_ascii=False),
                paper.year,
                paper.raw_text,
                paper.page_count,
            ),
        )
        row = cur.fetchone()
        return _paper_from_row(row) if row else paper

    @staticmethod
    def _insert_citation_rows(cur: Any, paper_id: str, citations: Sequence[Any]) -> None:
        for item in citations:
            cur.execute(
                """
                INSERT INTO citations (paper_id, citation_key, raw_reference, context_in_paper, created_at)
                VALUES (%s, %s, %s, %s, NOW())
                ON CONFLICT (paper_id, citation_key) DO NOTHING
                """,
                (paper_id, item.citation_key, item.raw_reference, item.context_in_paper),
            )

    def insert_paper(self, paper: Paper, citations: Sequence[Any] = ()) -> Paper:
        """Insert a paper and its citations in one transaction.

        Each citation needs ``citation_key``, ``raw_reference`` and
        ``context_in_paper`` attributes; a key repeated within ``citations`` keeps
        its first row. Nothing is committed when any row fails, so a paper never
        exists without its citations.
        """
        with self._connection() as conn:
            cur = conn.cursor()
            try:
                stored = self._insert_paper_row(cur, paper)
                self._insert_citation_rows(cur, stored.id, citations)
            except Exception:
                conn.rollback()
                raise
            conn.commit()
        return stored

    def get_paper(self, paper_id: str) -> Optional[Paper]:
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_PAPER_COLUMNS} FROM papers WHERE id = %s", (paper_id,))
            row = cur.fetchone()
        return _paper_from_row(row) if row else None

    def list_citations(self, paper_id: str) -> List[Citation]:
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_CITATION_COLUMNS} FROM citations WHERE paper_id = %s", (paper_id,))
            rows = cur.fetchall()
        citations = [_citation_from_row(row) for row in rows]
        citations.sort(key=lambda c: citation_sort_key(c.citation_key))
        return citations

    def get_citation(self, paper_id: str, citation_key: str) -> Optional[Citation]:
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"SELECT {_CITATION_COLUMNS} FROM citations WHERE paper_id = %s AND citation_key = %s",
                (paper_id, citation_key),
            )
            row = cur.fetchone()
        return _citation_from_row(row) if row else None

    def update_citation_enrichment(self, citation_id: int, result: EnrichmentResult) -> Optional[Citation]:
        """Write one enrichment outcome; returns the updated row, or None if it vanished."""
        work = result.work
        with self._connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                UPDATE citations
                SET cited_title = %s,
                    cited_abstract = %s,
                    cited_authors_json = %s::jsonb,
                    cited_year = %s,
                    cited_doi = %s,
                    cited_external_id = %s,
                    relevance_explanation = %s,
                    enriched = %s,
                    enrichment_failed = %s,
                    failure_reason = %s,
                    enriched_at = NOW()
                WHERE id = %s
                RETURNING {_CITATION_COLUMNS}
                """,
                (
                    work.title if work else None,
                    work.abstract if work else None,
                    json.dumps(list(work.authors) if work else [], ensure_ascii=False),
                    work.year if work else None,
                    work.doi if work else None,
                    work.external_id if work else None,
                    result.relevance_explanation,
                    bool(result.enriched),
                    bool(result.enrichment_failed),
                    result.failure_reason,
                    int(citation_id),
                ),
            )
            row = cur.fetchone()
            conn.commit()
        return _citation_from_row(row) if row else None

"""Reader schema migration DDL, recorded without a database."""

from __future__ import annotations

import importlib.util
from pathlib import Path

MIGRATION = Path(__file__).resolve().parents[1] / "alembic" / "versions" / "0001_reader_schema.py"


class _RecordingOp:
    def __init__(self) -> None:
        self.statements = []

    def execute(self, sql) -> None:
        self.statements.append(" ".join(str(sql).split()))


def _load_migration(monkeypatch, dimensions: str | None = None):
    if dimensions is None:
        monkeypatch.delenv("EMBEDDING_DIMENSIONS", raising=False)
    else:
        monkeypatch.setenv("EMBEDDING_DIMENSIONS", dimensions)
    spec = importlib.util.spec_from_file_location("reader_schema_0001", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    recorder = _RecordingOp()
    monkeypatch.setattr(module, "op", recorder)
    return module, recorder


def test_chunk_embeddings_have_fixed_dimension_and_hnsw_index(monkeypatch) -> None:
    module, recorder = _load_migration(monkeypatch)
    module.upgrade()
    ddl = "\n".join(recorder.statements)
    assert "embedding VECTOR(1536)" in ddl
    assert "CREATE INDEX IF NOT EXISTS paper_chunks_embedding_hnsw ON paper_chunks USING hnsw (embedding vector_cosine_ops)" in ddl
    assert "atttypmod" not in ddl


def test_embedding_dimension_follows_environment(monkeypatch) -> None:
    module, recorder = _load_migration(monkeypatch, "768")
    module.upgrade()
    assert any("embedding VECTOR(768)" in sql for sql in recorder.statements)

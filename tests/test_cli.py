"""CLI tests for argument parsing and command dispatch."""

import json
import os
import sys
from pathlib import Path
from types import SimpleNamespace

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from paperlens.cli import entrypoints
from paperlens.core.errors import NotFoundError

PAPER = (
    "Graph Methods\n\n"
    "Early work [1] built graphs.\n\n"
    "References\n"
    "[1] A. Author. Citation graphs at scale. 2001.\n"
)


def test_parser_accepts_global_config_and_explain_flags() -> None:
    parser = entrypoints.build_parser()
    args = parser.parse_args(["--config", "cfg.toml", "explain", "--paper-id", "p1", "--selection", "text", "--json"])
    assert args.config == "cfg.toml"
    assert args.paper_id == "p1"
    assert args.json is True
    assert args.func is entrypoints.cmd_explain


def test_cmd_citations_prints_extraction(tmp_path: Path, capsys) -> None:
    path = tmp_path / "paper.txt"
    path.write_text(PAPER, encoding="utf-8")
    assert entrypoints.main(["citations", str(path), "--sentences", "1"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["citations"][0]["citation_key"] == "[1]"
    assert "Citation graphs at scale" in payload["citations"][0]["raw_reference"]


def test_cmd_citations_missing_file(tmp_path: Path, capsys) -> None:
    assert entrypoints.main(["citations", str(tmp_path / "nope.txt")]) == 1
    assert "File not found" in capsys.readouterr().out


def test_cmd_db_migrate_requires_url(capsys) -> None:
    assert entrypoints.main(["db", "migrate"]) == 1
    assert "No database URL" in capsys.readouterr().out


def test_cmd_db_migrate_runs_alembic(monkeypatch) -> None:
    captured = {}

    def _fake_call(cmd):
        captured["cmd"] = list(cmd)
        return 0

    monkeypatch.setattr(entrypoints.subprocess, "call", _fake_call)
    assert entrypoints.main(["db", "migrate", "--db-url", "postgresql://u@h/db"]) == 0
    cmd = captured["cmd"]
    assert cmd[1:3] == ["-m", "alembic"]
    assert "db_url=postgresql://u@h/db" in cmd
    assert cmd[-2:] == ["upgrade", "head"]


def test_cmd_ingest_text_file(monkeypatch, tmp_path: Path, capsys) -> None:
    path = tmp_path / "paper.txt"
    path.write_text(PAPER, encoding="utf-8")
    seen = {}

    def _store_paper(text, *, title=None):
        seen["text"] = text
        seen["title"] = title
        return SimpleNamespace(to_dict=lambda: {"paper": {"id": "p1"}})

    runtime = SimpleNamespace(ingest=SimpleNamespace(store_paper=_store_paper))
    monkeypatch.setattr(entrypoints, "_runtime", lambda args: runtime)
    assert entrypoints.main(["ingest", str(path), "--title", "Given"]) == 0
    assert seen == {"text": PAPER, "title": "Given"}
    assert json.loads(capsys.readouterr().out)["paper"]["id"] == "p1"


def test_cmd_explain_prints_reply_or_error(monkeypatch, capsys) -> None:
    def _explain(paper_id, selection):
        if paper_id == "missing":
            raise NotFoundError("paper", paper_id)
        return SimpleNamespace(reply=f"About {selection}", to_dict=lambda: {})

    runtime = SimpleNamespace(assembler=SimpleNamespace(explain=_explain))
    monkeypatch.setattr(entrypoints, "_runtime", lambda args: runtime)
    assert entrypoints.main(["explain", "--paper-id", "p1", "--selection", "graphs"]) == 0
    assert capsys.readouterr().out.strip() == "About graphs"
    assert entrypoints.main(["explain", "--paper-id", "missing", "--selection", "graphs"]) == 1
    assert "Explain failed" in capsys.readouterr().out


def test_cmd_web_sets_host_and_port(monkeypatch) -> None:
    from paperlens.web import app as web_app

    called = {}
    monkeypatch.setattr(web_app, "main", lambda: called.setdefault("ran", True))
    monkeypatch.setenv("WEB_HOST", "")
    monkeypatch.setenv("WEB_PORT", "")
    assert entrypoints.main(["web", "--host", "127.0.0.1", "--port", "9000"]) == 0
    assert called == {"ran": True}
    assert os.environ["WEB_HOST"] == "127.0.0.1"
    assert os.environ["WEB_PORT"] == "9000"

"""Primary CLI entrypoints: migrations, ingestion, citation extraction, explain, and the web server."""

from __future__ import annotations

import argparse
import json
import os
import subprocess
import sys
from pathlib import Path

from paperlens.citations.extractor import extract_citations
from paperlens.core.errors import PaperLensError
from paperlens.core.io_loaders import load_text_file
from paperlens.core.settings import load_settings
from paperlens.llm.errors import LLMProviderError

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"


def _runtime(args: argparse.Namespace):
    from paperlens.services.runtime import build_reader_runtime

    config_path = Path(args.config) if getattr(args, "config", None) else None
    return build_reader_runtime(load_settings(config_path))


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def cmd_db_migrate(args: argparse.Namespace) -> int:
    """Apply Alembic migrations to the target Postgres database.

    Args:
        args (argparse.Namespace): Parsed CLI args.

    Returns:
        int: Process return code.
    """
    db_url = (args.db_url or os.environ.get("DATABASE_URL") or "").strip()
    if not db_url:
        print("No database URL configured. Pass --db-url or set DATABASE_URL.")
        return 1
    cmd = [
        sys.executable,
        "-m",
        "alembic",
        "-c",
        str(ALEMBIC_INI),
        "-x",
        f"db_url={db_url}",
        "upgrade",
        "head",
    ]
    return subprocess.call(cmd)


def cmd_ingest(args: argparse.Namespace) -> int:
    """Store a paper from a PDF or UTF-8 text file and print its summary."""
    path = Path(args.path)
    if not path.is_file():
        print(f"File not found: {path}")
        return 1
    runtime = _runtime(args)
    try:
        if path.suffix.lower() == ".pdf":
            stored = runtime.ingest.store_pdf(path.read_bytes(), title=args.title)
        else:
            stored = runtime.ingest.store_paper(load_text_file(path), title=args.title)
    except PaperLensError as exc:
        print(f"Ingest failed: {exc}")
        return 1
    _print_json(stored.to_dict())
    return 0


def cmd_citations(args: argparse.Namespace) -> int:
    """Run citation extraction on a text file without storing anything."""
    path = Path(args.path)
    if not path.is_file():
        print(f"File not found: {path}")
        return 1
    result = extract_citations(load_text_file(path), sentences_around=args.sentences)
    _print_json(result.to_dict())
    return 0


def cmd_explain(args: argparse.Namespace) -> int:
    """Explain a passage of a stored paper."""
    runtime = _runtime(args)
    try:
        result = runtime.assembler.explain(args.paper_id, args.selection)
    except (PaperLensError, LLMProviderError) as exc:
        print(f"Explain failed: {exc}")
        return 1
    if args.json:
        _print_json(result.to_dict())
    else:
        print(result.reply)
    return 0


def cmd_web(args: argparse.Namespace) -> int:
    """Launch the Flask API."""
    os.environ["WEB_HOST"] = str(args.host or "0.0.0.0")
    os.environ["WEB_PORT"] = str(int(args.port or 8590))
    try:
        from paperlens.web.app import main as web_main

        web_main()
        return 0
    except (OSError, RuntimeError) as exc:
        print(f"Failed to launch web app: {exc}")
        return 1


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser.
    """
    p = argparse.ArgumentParser(prog="paperlens")
    p.add_argument("--config", type=str, default=None, help="Path to a config.toml file")
    sub = p.add_subparsers(dest="cmd", required=True)

    db = sub.add_parser("db", help="Database operations")
    db_sub = db.add_subparsers(dest="db_cmd", required=True)
    db_migrate = db_sub.add_parser("migrate", help="Apply Alembic migrations to Postgres")
    db_migrate.add_argument("--db-url", type=str, default=None)
    db_migrate.set_defaults(func=cmd_db_migrate)

    ingest = sub.add_parser("ingest", help="Store a paper from a PDF or text file")
    ingest.add_argument("path", type=str)
    ingest.add_argument("--title", type=str, default=None)
    ingest.set_defaults(func=cmd_ingest)

    cit = sub.add_parser("citations", help="Extract citations from a text file (no storage)")
    cit.add_argument("path", type=str)
    cit.add_argument("--sentences", type=int, default=2)
    cit.set_defaults(func=cmd_citations)

    ex = sub.add_parser("explain", help="Explain a selected passage of a stored paper")
    ex.add_argument("--paper-id", type=str, required=True)
    ex.add_argument("--selection", type=str, required=True)
    ex.add_argument("--json", action="store_true", help="Print the full result as JSON")
    ex.set_defaults(func=cmd_explain)

    web = sub.add_parser("web", help="Launch the Flask API")
    web.add_argument("--host", type=str, default="0.0.0.0")
    web.add_argument("--port", type=int, default=8590)
    web.set_defaults(func=cmd_web)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for paperlens.

    Returns:
        int: Process return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())

"""Runtime settings for the reader: chunking, retrieval, enrichment, and provider routing."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

from paperlens.core.config import (
    DEFAULT_CONFIG_PATH,
    PROJECT_ROOT,
    apply_config_env_overrides,
    build_effective_config,
    hash_config_dict,
    load_config,
    redact_config,
)
from paperlens.core.logging_utils import log_event


DOTENV_PATH = PROJECT_ROOT / ".env"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for ingestion, retrieval, and citation enrichment.

    Attributes:
        database_url: Postgres DSN; empty when running without persistence.
        vector_backend: ``postgres`` or ``memory``.
        chunk_size: Target characters per chunk.
        chunk_overlap: Characters shared by consecutive chunks.
        chunk_unit: ``chars`` for character windows, ``words`` for 500-word windows.
        embed_batch_size: Texts per embeddings request.
        embed_max_chars: Per-text character budget sent to the embedding provider.
        top_k: Chunks retrieved for question answering.
        max_fallback_context_chars: Full-text budget when retrieval is unavailable.
        citation_window_chars: Distance from the selection within which citations count as nearby.
        context_sentences: Sentences kept before a citation marker.
        lookup_min_interval_seconds: Minimum spacing between bibliographic requests.
        lookup_timeout_seconds: Timeout applied to each bibliographic request.
        llm_timeout_seconds: Timeout applied to each generation or embeddings request.
        llm_max_retries: SDK retries after a failed generation or embeddings request.
        explain_unresolved_citations: Explain citations whose cited work was not found.
        config_effective: Effective config dict used for hashing and logs.
    """

    database_url: str = ""
    vector_backend: str = "memory"
    chunk_size: int = 800
    chunk_overlap: int = 150
    chunk_unit: str = "chars"
    embed_batch_size: int = 100
    embed_max_chars: int = 8000
    embedding_model: str = "text-embedding-3-small"
    chat_model: str = "gpt-5-nano"
    relevance_model: str = "gpt-5-nano"
    top_k: int = 8
    max_fallback_context_chars: int = 80000
    citation_window_chars: int = 600
    context_sentences: int = 2
    explain_max_tokens: int = 1024
    relevance_max_tokens: int = 300
    bibliographic_source: str = "semantic_scholar"
    semantic_scholar_api_key: str = ""
    lookup_min_interval_seconds: float = 1.0
    lookup_timeout_seconds: float = 15.0
    llm_timeout_seconds: float = 30.0
    llm_max_retries: int = 2
    explain_unresolved_citations: bool = False
    llm_provider: str = "openai"
    llm_base_url: str = ""
    llm_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    openai_compatible_api_key: str = ""
    chat_provider: str = ""
    relevance_provider: str = ""
    embedding_provider: str = ""
    chat_provider_fallback: str = ""
    relevance_provider_fallback: str = ""
    embedding_provider_fallback: str = ""
    config_path: Path | None = None
    config_hash: str | None = None
    config_effective: Dict[str, Any] | None = None


def load_env(path: Path) -> None:
    """Load environment variables from a .env-style file.

    Args:
        path (Path): Filesystem path value.
    """
    if not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def settings_from_mapping(effective: Mapping[str, Any], *, config_path: Path | None = None) -> Settings:
    """Build ``Settings`` from an effective config mapping."""
    return Settings(
        database_url=str(effective.get("database_url") or ""),
        vector_backend=str(effective.get("vector_backend") or "memory"),
        chunk_size=int(effective["chunk_size"]),
        chunk_overlap=int(effective["chunk_overlap"]),
        chunk_unit=str(effective.get("chunk_unit") or "chars"),
        embed_batch_size=int(effective["embed_batch_size"]),
        embed_max_chars=int(effective["embed_max_chars"]),
        embedding_model=str(effective["embedding_model"]),
        chat_model=str(effective["chat_model"]),
        relevance_model=str(effective["relevance_model"]),
        top_k=int(effective["top_k"]),
        max_fallback_context_chars=int(effective["max_fallback_context_chars"]),
        citation_window_chars=int(effective["citation_window_chars"]),
        context_sentences=int(effective["context_sentences"]),
        explain_max_tokens=int(effective["explain_max_tokens"]),
        relevance_max_tokens=int(effective["relevance_max_tokens"]),
        bibliographic_source=str(effective["bibliographic_source"]),
        semantic_scholar_api_key=str(effective.get("semantic_scholar_api_key") or ""),
        lookup_min_interval_seconds=float(effective["lookup_min_interval_seconds"]),
        lookup_timeout_seconds=float(effective["lookup_timeout_seconds"]),
        llm_timeout_seconds=float(effective["llm_timeout_seconds"]),
        llm_max_retries=int(effective["llm_max_retries"]),
        explain_unresolved_citations=bool(effective["explain_unresolved_citations"]),
        llm_provider=str(effective.get("llm_provider") or "openai"),
        llm_base_url=str(effective.get("llm_base_url") or ""),
        llm_api_key=str(effective.get("llm_api_key") or ""),
        openai_api_key=str(effective.get("openai_api_key") or ""),
        anthropic_api_key=str(effective.get("anthropic_api_key") or ""),
        openai_compatible_api_key=str(effective.get("openai_compatible_api_key") or ""),
        chat_provider=str(effective.get("chat_provider") or ""),
        relevance_provider=str(effective.get("relevance_provider") or ""),
        embedding_provider=str(effective.get("embedding_provider") or ""),
        chat_provider_fallback=str(effective.get("chat_provider_fallback") or ""),
        relevance_provider_fallback=str(effective.get("relevance_provider_fallback") or ""),
        embedding_provider_fallback=str(effective.get("embedding_provider_fallback") or ""),
        config_path=config_path,
        config_hash=hash_config_dict(effective),
        config_effective=dict(effective),
    )


def load_settings(config_path: Path | None = None) -> Settings:
    """Load runtime settings from config file, environment variables, and defaults.

    Args:
        config_path (Path | None): Path to the configuration file.

    Returns:
        Settings: Resolved settings.
    """
    load_env(DOTENV_PATH)
    cfg_path = config_path or Path(os.getenv("PAPERLENS_CONFIG", DEFAULT_CONFIG_PATH))
    cfg = load_config(cfg_path)
    apply_config_env_overrides(cfg, os.environ)
    effective = build_effective_config(cfg, os.environ)
    settings = settings_from_mapping(effective, config_path=cfg_path if cfg_path.exists() else None)
    log_event(
        "settings_loaded",
        {
            "config_path": str(settings.config_path) if settings.config_path else None,
            "config_hash": settings.config_hash,
            "config": redact_config(effective),
        },
    )
    return settings

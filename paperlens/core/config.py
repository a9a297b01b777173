"""Configuration loader and merger for PaperLens. Used by load_settings to build reader config from TOML and environment variables."""

from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping

try:
    import tomllib
except ImportError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config.toml"

ENV_CONFIG_MAP = {
    "DATABASE_URL": "database_url",
    "VECTOR_BACKEND": "vector_backend",
    "LLM_PROVIDER": "llm_provider",
    "CHAT_PROVIDER": "chat_provider",
    "RELEVANCE_PROVIDER": "relevance_provider",
    "EMBEDDING_PROVIDER": "embedding_provider",
    "BIBLIO_SOURCE": "bibliographic_source",
    "SEMANTIC_SCHOLAR_API_KEY": "semantic_scholar_api_key",
    "EXPLAIN_UNRESOLVED_CITATIONS": "explain_unresolved_citations",
}

MAX_EMBED_BATCH = 128


def load_config(path: Path | None) -> Dict[str, Any]:
    """Load a TOML config file and return the paperlens section or top-level dict."""
    if not path or not path.exists():
        return {}
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict) and "paperlens" in data and isinstance(data["paperlens"], dict):
        return data["paperlens"]
    return data or {}


def hash_config_dict(config: Mapping[str, Any]) -> str:
    """Return a stable SHA-256 hash of a config mapping."""
    payload = json.dumps(config, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _env_or_config(env: Mapping[str, str], config: Mapping[str, Any], env_key: str, config_key: str, default: Any) -> Any:
    if env_key in env and env[env_key] != "":
        return env[env_key]
    if config_key in config:
        return config[config_key]
    return default


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except Exception:
        return default


def _coerce_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except Exception:
        return default


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off", ""}:
        return False
    return default


def _coerce_str(value: Any, default: str = "") -> str:
    text = str(value if value is not None else "").strip()
    return text or default


def build_effective_config(config: Mapping[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    """Build the effective config with env overrides applied."""
    database_url = _coerce_str(_env_or_config(env, config, "DATABASE_URL", "database_url", ""))
    vector_backend = _coerce_str(_env_or_config(env, config, "VECTOR_BACKEND", "vector_backend", "postgres"), "postgres")
    vector_backend = vector_backend.lower()
    if vector_backend not in {"postgres", "memory"} or (vector_backend == "postgres" and not database_url):
        vector_backend = "memory"

    chunk_size = max(1, _coerce_int(_env_or_config(env, config, "CHUNK_SIZE", "chunk_size", 800), 800))
    chunk_overlap = max(0, _coerce_int(_env_or_config(env, config, "CHUNK_OVERLAP", "chunk_overlap", 150), 150))
    chunk_unit = _coerce_str(_env_or_config(env, config, "CHUNK_UNIT", "chunk_unit", ""), "chars").lower()
    if chunk_unit not in {"chars", "words"}:
        chunk_unit = "chars"
    embed_batch = _coerce_int(_env_or_config(env, config, "EMBED_BATCH", "embed_batch_size", 100), 100)
    chat_model = _coerce_str(_env_or_config(env, config, "CHAT_MODEL", "chat_model", ""), "gpt-5-nano")

    effective = {
        "database_url": database_url,
        "vector_backend": vector_backend,
        "chunk_size": chunk_size,
        "chunk_overlap": min(chunk_overlap, chunk_size - 1),
        "chunk_unit": chunk_unit,
        "embed_batch_size": min(MAX_EMBED_BATCH, max(1, embed_batch)),
        "embed_max_chars": _coerce_int(_env_or_config(env, config, "EMBED_MAX_CHARS", "embed_max_chars", 8000), 8000),
        "embedding_model": _coerce_str(
            _env_or_config(env, config, "EMBEDDING_MODEL", "embedding_model", ""), "text-embedding-3-small"
        ),
        "chat_model": chat_model,
        "relevance_model": _coerce_str(_env_or_config(env, config, "RELEVANCE_MODEL", "relevance_model", ""), chat_model),
        "top_k": max(1, _coerce_int(_env_or_config(env, config, "TOP_K", "top_k", 8), 8)),
        "max_fallback_context_chars": _coerce_int(
            _env_or_config(env, config, "MAX_FALLBACK_CONTEXT_CHARS", "max_fallback_context_chars", 80000), 80000
        ),
        "citation_window_chars": _coerce_int(
            _env_or_config(env, config, "CITATION_WINDOW_CHARS", "citation_window_chars", 600), 600
        ),
        "context_sentences": _coerce_int(_env_or_config(env, config, "CONTEXT_SENTENCES", "context_sentences", 2), 2),
        "explain_max_tokens": _coerce_int(
            _env_or_config(env, config, "EXPLAIN_MAX_TOKENS", "explain_max_tokens", 1024), 1024
        ),
        "relevance_max_tokens": _coerce_int(
            _env_or_config(env, config, "RELEVANCE_MAX_TOKENS", "relevance_max_tokens", 300), 300
        ),
        "bibliographic_source": _coerce_str(
            _env_or_config(env, config, "BIBLIO_SOURCE", "bibliographic_source", ""), "semantic_scholar"
        ).lower(),
        "semantic_scholar_api_key": _coerce_str(
            _env_or_config(env, config, "SEMANTIC_SCHOLAR_API_KEY", "semantic_scholar_api_key", "")
        ),
        "lookup_min_interval_seconds": max(
            0.0,
            _coerce_float(
                _env_or_config(env, config, "LOOKUP_MIN_INTERVAL_SECONDS", "lookup_min_interval_seconds", 1.0), 1.0
            ),
        ),
        "lookup_timeout_seconds": max(
            1.0,
            _coerce_float(_env_or_config(env, config, "LOOKUP_TIMEOUT_SECONDS", "lookup_timeout_seconds", 15), 15.0),
        ),
        "llm_timeout_seconds": max(
            1.0,
            _coerce_float(_env_or_config(env, config, "LLM_TIMEOUT_SECONDS", "llm_timeout_seconds", 30), 30.0),
        ),
        "llm_max_retries": max(0, _coerce_int(_env_or_config(env, config, "LLM_MAX_RETRIES", "llm_max_retries", 2), 2)),
        "explain_unresolved_citations": _coerce_bool(
            _env_or_config(env, config, "EXPLAIN_UNRESOLVED_CITATIONS", "explain_unresolved_citations", False), False
        ),
    }
    for key in (
        "llm_provider",
        "llm_base_url",
        "llm_api_key",
        "openai_api_key",
        "anthropic_api_key",
        "openai_compatible_api_key",
        "chat_provider",
        "relevance_provider",
        "embedding_provider",
        "chat_provider_fallback",
        "relevance_provider_fallback",
        "embedding_provider_fallback",
    ):
        effective[key] = _coerce_str(_env_or_config(env, config, key.upper(), key, ""))
    return effective


def redact_config(config: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``config`` with credentials masked for logging."""
    out: Dict[str, Any] = {}
    for key, value in config.items():
        if key.endswith("api_key") or key == "database_url":
            out[key] = "***" if value else ""
        else:
            out[key] = value
    return out


def apply_config_env_overrides(config: Mapping[str, Any], env: Mapping[str, str]) -> None:
    """Populate env vars from config when not already set.

    Boolean values only set the env var when True to avoid truthy "0"/"false" strings.
    """
    for env_key, config_key in ENV_CONFIG_MAP.items():
        if env_key in env and env[env_key] != "":
            continue
        if config_key not in config:
            continue
        value = config.get(config_key)
        if value is None:
            continue
        if isinstance(value, bool):
            if value:
                os.environ[env_key] = "1"
            continue
        if isinstance(value, (int, float)):
            os.environ[env_key] = str(value)
            continue
        value_str = str(value).strip()
        if value_str == "":
            continue
        os.environ[env_key] = value_str

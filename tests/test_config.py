"""Tests for config loading, env overrides, and settings construction."""

from __future__ import annotations

import json
from pathlib import Path

from paperlens.core.config import build_effective_config, hash_config_dict, load_config, redact_config
from paperlens.core.settings import load_settings, settings_from_mapping


def test_defaults_without_config_or_env() -> None:
    effective = build_effective_config({}, {})
    assert effective["chunk_size"] == 800
    assert effective["chunk_overlap"] == 150
    assert effective["embed_batch_size"] == 100
    assert effective["top_k"] == 8
    assert effective["citation_window_chars"] == 600
    assert effective["max_fallback_context_chars"] == 80000
    assert effective["bibliographic_source"] == "semantic_scholar"
    assert effective["explain_unresolved_citations"] is False
    assert effective["llm_timeout_seconds"] == 30.0
    assert effective["llm_max_retries"] == 2
    # postgres backend needs a database URL
    assert effective["vector_backend"] == "memory"


def test_env_overrides_config_values() -> None:
    config = {"chunk_size": 500, "chat_model": "from-config", "vector_backend": "postgres"}
    env = {"CHUNK_SIZE": "300", "DATABASE_URL": "postgresql://u@h/db", "EXPLAIN_UNRESOLVED_CITATIONS": "yes"}
    effective = build_effective_config(config, env)
    assert effective["chunk_size"] == 300
    assert effective["chat_model"] == "from-config"
    assert effective["relevance_model"] == "from-config"
    assert effective["vector_backend"] == "postgres"
    assert effective["explain_unresolved_citations"] is True


def test_invalid_values_fall_back_and_clamp() -> None:
    effective = build_effective_config({"chunk_size": "abc", "chunk_overlap": 5000, "embed_batch_size": 999}, {})
    assert effective["chunk_size"] == 800
    assert effective["chunk_overlap"] == 799
    assert effective["embed_batch_size"] == 128


def test_load_config_reads_paperlens_section(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('[paperlens]\nchunk_size = 640\nbibliographic_source = "openalex"\n', encoding="utf-8")
    assert load_config(path) == {"chunk_size": 640, "bibliographic_source": "openalex"}
    assert load_config(tmp_path / "missing.toml") == {}


def test_load_settings_from_file(tmp_path: Path, monkeypatch) -> None:
    # Loading exports config values into the environment; keep that scoped to this test.
    for key in ("CHUNK_SIZE", "BIBLIO_SOURCE", "VECTOR_BACKEND"):
        monkeypatch.setenv(key, "")
    path = tmp_path / "config.toml"
    path.write_text('[paperlens]\nchunk_size = 640\nbibliographic_source = "openalex"\n', encoding="utf-8")
    monkeypatch.setattr("paperlens.core.settings.DOTENV_PATH", tmp_path / ".env")
    settings = load_settings(path)
    assert settings.chunk_size == 640
    assert settings.bibliographic_source == "openalex"
    assert settings.config_path == path
    assert settings.config_hash == hash_config_dict(settings.config_effective)


def test_settings_from_mapping_round_trip() -> None:
    effective = build_effective_config({}, {"SEMANTIC_SCHOLAR_API_KEY": "s2-key"})
    settings = settings_from_mapping(effective)
    assert settings.semantic_scholar_api_key == "s2-key"
    assert settings.lookup_min_interval_seconds == 1.0
    assert redact_config(effective)["semantic_scholar_api_key"] == "***"


def test_load_settings_logs_redacted_config(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("SEMANTIC_SCHOLAR_API_KEY", "")
    path = tmp_path / "config.toml"
    path.write_text('[paperlens]\nsemantic_scholar_api_key = "s2-secret"\n', encoding="utf-8")
    monkeypatch.setattr("paperlens.core.settings.DOTENV_PATH", tmp_path / ".env")
    settings = load_settings(path)
    assert settings.semantic_scholar_api_key == "s2-secret"
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]
    logged = [line for line in lines if line["event"] == "settings_loaded"][-1]
    assert logged["config"]["semantic_scholar_api_key"] == "***"
    assert logged["config_hash"] == settings.config_hash
    assert "s2-secret" not in json.dumps(logged)


def test_chunk_unit_accepts_words_and_rejects_unknown() -> None:
    assert build_effective_config({}, {})["chunk_unit"] == "chars"
    assert build_effective_config({"chunk_unit": "Words"}, {})["chunk_unit"] == "words"
    assert build_effective_config({}, {"CHUNK_UNIT": "tokens"})["chunk_unit"] == "chars"

"""Provider routing logic for per-capability LLM selection."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from paperlens.llm.errors import LLMConfigurationError
from paperlens.llm.interfaces import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_SECONDS, ProviderCapabilities
from paperlens.llm.providers import AnthropicProvider, OpenAICompatibleProvider, OpenAIProvider
from paperlens.llm.types import EmbeddingRequest, EmbeddingResponse, GenerateRequest, GenerateResponse

CAPABILITY_SETTING_KEYS: Dict[str, str] = {
    "chat": "chat_provider",
    "relevance": "relevance_provider",
    "embeddings": "embedding_provider",
}
SUPPORTED_PROVIDERS = ("openai", "anthropic", "openai_compatible")


@dataclass(frozen=True)
class ProviderSelection:
    """Resolved provider keys for one capability."""

    capability: str
    primary_provider: str
    fallback_provider: Optional[str] = None


class UnavailableProvider:
    """Placeholder for a provider that could not be constructed.

    Every call raises the original configuration error, so only the
    capabilities routed to this provider fail.
    """

    capabilities = ProviderCapabilities(supports_chat=True, supports_embeddings=True)

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason

    def generate(self, request: GenerateRequest, *, capability: str = "chat") -> GenerateResponse:
        raise LLMConfigurationError(self.reason)

    def embed(self, request: EmbeddingRequest, *, capability: str = "embeddings") -> EmbeddingResponse:
        raise LLMConfigurationError(self.reason)


def _cfg_value(settings: Any, key: str, default: Optional[str] = None) -> Optional[str]:
    """Read one normalized string setting from object/dict/env sources."""
    if settings is None:
        value = None
    elif isinstance(settings, dict):
        value = settings.get(key)
    else:
        value = getattr(settings, key, None)
    text = "" if value is None else str(value).strip()
    if text:
        return text
    env_val = os.environ.get(key.upper())
    if env_val and env_val.strip():
        return env_val.strip()
    return default


def resolve_provider_selection(settings: Any, capability: str) -> ProviderSelection:
    """Resolve primary/fallback providers for one capability."""
    if capability not in CAPABILITY_SETTING_KEYS:
        raise LLMConfigurationError(f"Unknown capability '{capability}'")
    override_key = CAPABILITY_SETTING_KEYS[capability]
    global_provider = (_cfg_value(settings, "llm_provider", default="openai") or "openai").lower()
    primary = (_cfg_value(settings, override_key, default=global_provider) or global_provider).lower()
    if capability == "embeddings" and primary == "anthropic":
        # Anthropic has no embeddings endpoint.
        primary = "openai"
    fallback = _cfg_value(settings, f"{override_key}_fallback", default=None)
    fallback = fallback.lower() if fallback else None
    if fallback and fallback == primary:
        fallback = None
    return ProviderSelection(capability=capability, primary_provider=primary, fallback_provider=fallback)


def _request_limits(settings: Any) -> Dict[str, Any]:
    """Per-request timeout and SDK retry count for provider clients."""
    try:
        timeout = float(_cfg_value(settings, "llm_timeout_seconds", default=str(DEFAULT_TIMEOUT_SECONDS)))
    except ValueError:
        timeout = DEFAULT_TIMEOUT_SECONDS
    try:
        max_retries = int(_cfg_value(settings, "llm_max_retries", default=str(DEFAULT_MAX_RETRIES)))
    except ValueError:
        max_retries = DEFAULT_MAX_RETRIES
    return {"timeout": max(1.0, timeout), "max_retries": max(0, max_retries)}


def _build_provider(settings: Any, provider_id: str) -> Any:
    limits = _request_limits(settings)
    if provider_id == "openai":
        return OpenAIProvider(
            api_key=_cfg_value(settings, "openai_api_key", default=os.environ.get("OPENAI_API_KEY")),
            **limits,
        )
    if provider_id == "openai_compatible":
        base_url = _cfg_value(settings, "llm_base_url", default=os.environ.get("LLM_BASE_URL"))
        if not base_url:
            raise LLMConfigurationError("openai_compatible provider requires llm_base_url or LLM_BASE_URL")
        compat_key = _cfg_value(
            settings,
            "openai_compatible_api_key",
            default=_cfg_value(settings, "llm_api_key", default=os.environ.get("LLM_API_KEY")),
        )
        return OpenAICompatibleProvider(base_url=base_url, api_key=compat_key, **limits)
    if provider_id == "anthropic":
        return AnthropicProvider(
            api_key=_cfg_value(settings, "anthropic_api_key", default=os.environ.get("ANTHROPIC_API_KEY")),
            **limits,
        )
    raise LLMConfigurationError(
        f"Unsupported llm provider '{provider_id}'. Supported: {', '.join(SUPPORTED_PROVIDERS)}"
    )


def build_provider_registry(settings: Any) -> Dict[str, Any]:
    """Instantiate configured providers keyed by provider id.

    A provider that cannot be built (missing key, unknown id) is registered as an
    ``UnavailableProvider`` instead of failing the whole registry.
    """
    registry: Dict[str, Any] = {}

    def _register(key: str) -> None:
        provider_id = str(key or "").strip().lower()
        if not provider_id or provider_id in registry:
            return
        try:
            registry[provider_id] = _build_provider(settings, provider_id)
        except LLMConfigurationError as exc:
            registry[provider_id] = UnavailableProvider(provider_id, str(exc))

    for cap in CAPABILITY_SETTING_KEYS:
        selection = resolve_provider_selection(settings, cap)
        _register(selection.primary_provider)
        if selection.fallback_provider:
            _register(selection.fallback_provider)

    return registry

"""Composed runtime for routing LLM capabilities across providers."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional

from paperlens.llm.errors import LLMCapabilityError, LLMConfigurationError
from paperlens.llm.interfaces import ChatProvider, EmbeddingProvider
from paperlens.llm.router import ProviderSelection, _cfg_value, build_provider_registry, resolve_provider_selection
from paperlens.llm.types import (
    CONVERSATION_ROLES,
    ConversationTurn,
    EmbeddingRequest,
    EmbeddingResponse,
    GenerateRequest,
    GenerateResponse,
)

# Errors from the primary provider that hand the request to the fallback provider.
_FALLBACK_ERRORS = (LLMCapabilityError, LLMConfigurationError)


def coerce_turns(messages: Optional[Iterable[Any]]) -> list[ConversationTurn]:
    """Normalize dict/object conversation messages into ``ConversationTurn`` values."""
    turns: list[ConversationTurn] = []
    for item in messages or []:
        if isinstance(item, ConversationTurn):
            turns.append(item)
            continue
        if isinstance(item, dict):
            role, content = item.get("role"), item.get("content")
        else:
            role, content = getattr(item, "role", None), getattr(item, "content", None)
        role = str(role or "").strip().lower()
        if role not in CONVERSATION_ROLES:
            raise ValueError(f"Unsupported conversation role '{role}'")
        turns.append(ConversationTurn(role=role, content=str(content or "")))
    return turns


@dataclass
class ChatCapabilityRuntime:
    """Bound runtime object for one chat-like capability."""

    capability: str
    model: str
    selection: ProviderSelection
    primary_provider: ChatProvider
    fallback_provider: Optional[ChatProvider] = None

    def _ensure_chat_supported(self, provider: ChatProvider) -> None:
        if not bool(getattr(provider, "capabilities", None) and provider.capabilities.supports_chat):
            raise LLMCapabilityError(f"Provider '{provider.name}' does not support chat capability '{self.capability}'")

    def generate(
        self,
        *,
        instructions: str,
        user_input: str = "",
        messages: Optional[Iterable[Any]] = None,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> GenerateResponse:
        """Execute one non-streaming generation request with fallback routing."""
        req = GenerateRequest(
            model=str(model or self.model),
            instructions=instructions,
            user_input=user_input,
            messages=coerce_turns(messages),
            max_output_tokens=max_output_tokens,
            temperature=temperature,
            metadata=metadata or {},
        )
        try:
            self._ensure_chat_supported(self.primary_provider)
            return self.primary_provider.generate(req, capability=self.capability)
        except _FALLBACK_ERRORS:
            if self.fallback_provider is None:
                raise
            self._ensure_chat_supported(self.fallback_provider)
            resp = self.fallback_provider.generate(req, capability=self.capability)
            return replace(resp, fallback_from=getattr(self.primary_provider, "name", self.selection.primary_provider))


@dataclass
class EmbeddingCapabilityRuntime:
    """Bound runtime object for the embeddings capability."""

    capability: str
    model: str
    selection: ProviderSelection
    primary_provider: EmbeddingProvider
    fallback_provider: Optional[EmbeddingProvider] = None

    def _ensure_embeddings_supported(self, provider: EmbeddingProvider) -> None:
        if not bool(getattr(provider, "capabilities", None) and provider.capabilities.supports_embeddings):
            raise LLMCapabilityError(
                f"Provider '{provider.name}' does not support embeddings capability '{self.capability}'"
            )

    def embed(
        self,
        *,
        texts: list[str],
        model: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> EmbeddingResponse:
        """Execute one embeddings request with fallback routing."""
        req = EmbeddingRequest(model=str(model or self.model), texts=texts, metadata=metadata or {})
        try:
            self._ensure_embeddings_supported(self.primary_provider)
            return self.primary_provider.embed(req, capability=self.capability)
        except _FALLBACK_ERRORS:
            if self.fallback_provider is None:
                raise
            self._ensure_embeddings_supported(self.fallback_provider)
            resp = self.fallback_provider.embed(req, capability=self.capability)
            return replace(resp, fallback_from=getattr(self.primary_provider, "name", self.selection.primary_provider))


@dataclass
class LLMRuntime:
    """Composed capability runtimes with deterministic provider routing."""

    chat: ChatCapabilityRuntime
    relevance: ChatCapabilityRuntime
    embeddings: EmbeddingCapabilityRuntime


def _resolve_model(settings: Any, key: str, default: str) -> str:
    """Resolve one model name from settings/env with fallback."""
    return _cfg_value(settings, key, default=None) or default


def build_llm_runtime(settings: Any) -> LLMRuntime:
    """Build composed runtime from settings/env provider configuration."""
    registry = build_provider_registry(settings)

    chat_model = _resolve_model(settings, "chat_model", "gpt-5-nano")
    relevance_model = _resolve_model(settings, "relevance_model", chat_model)
    embedding_model = _resolve_model(settings, "embedding_model", "text-embedding-3-small")

    def _bind(capability: str) -> tuple[ProviderSelection, Any, Any]:
        selection = resolve_provider_selection(settings, capability)
        primary = registry[selection.primary_provider]
        fallback = registry.get(selection.fallback_provider) if selection.fallback_provider else None
        return selection, primary, fallback

    def _chat_runtime(capability: str, model: str) -> ChatCapabilityRuntime:
        selection, primary, fallback = _bind(capability)
        return ChatCapabilityRuntime(
            capability=capability,
            model=model,
            selection=selection,
            primary_provider=primary,
            fallback_provider=fallback,
        )

    selection, primary, fallback = _bind("embeddings")
    return LLMRuntime(
        chat=_chat_runtime("chat", chat_model),
        relevance=_chat_runtime("relevance", relevance_model),
        embeddings=EmbeddingCapabilityRuntime(
            capability="embeddings",
            model=embedding_model,
            selection=selection,
            primary_provider=primary,
            fallback_provider=fallback,
        ),
    )

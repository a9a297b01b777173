"""Composable LLM provider runtime and adapter interfaces."""

from paperlens.llm.errors import (
    LLMCapabilityError,
    LLMConfigurationError,
    LLMProviderError,
    LLMRequestError,
    ProviderUnavailable,
)
from paperlens.llm.interfaces import ChatProvider, EmbeddingProvider, ProviderCapabilities
from paperlens.llm.runtime import LLMRuntime, build_llm_runtime
from paperlens.llm.types import (
    ConversationTurn,
    EmbeddingRequest,
    EmbeddingResponse,
    GenerateRequest,
    GenerateResponse,
)

__all__ = [
    "LLMProviderError",
    "LLMConfigurationError",
    "LLMCapabilityError",
    "LLMRequestError",
    "ProviderUnavailable",
    "ProviderCapabilities",
    "ChatProvider",
    "EmbeddingProvider",
    "ConversationTurn",
    "GenerateRequest",
    "GenerateResponse",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "LLMRuntime",
    "build_llm_runtime",
]

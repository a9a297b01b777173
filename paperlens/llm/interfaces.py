"""Protocols and capability descriptors for provider composition."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .types import EmbeddingRequest, EmbeddingResponse, GenerateRequest, GenerateResponse

# Outbound bound per request; the SDK retries on top of this.
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 2


@dataclass(frozen=True)
class ProviderCapabilities:
    """Capability flags for an LLM provider implementation."""

    supports_chat: bool = True
    supports_embeddings: bool = False


class ChatProvider(Protocol):
    """Protocol for chat/text-generation providers."""

    name: str
    capabilities: ProviderCapabilities

    def generate(self, request: GenerateRequest, *, capability: str = "chat") -> GenerateResponse:
        """Run one non-streaming text-generation request."""


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers."""

    name: str
    capabilities: ProviderCapabilities

    def embed(self, request: EmbeddingRequest, *, capability: str = "embeddings") -> EmbeddingResponse:
        """Run one embeddings request."""

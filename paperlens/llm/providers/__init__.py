"""Concrete provider adapters for chat generation and embeddings."""

from .anthropic_provider import AnthropicProvider
from .openai_provider import OpenAICompatibleProvider, OpenAIProvider

__all__ = ["AnthropicProvider", "OpenAICompatibleProvider", "OpenAIProvider"]

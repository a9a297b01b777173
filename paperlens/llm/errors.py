"""Errors raised by the LLM provider abstraction layer."""

from __future__ import annotations


class LLMProviderError(RuntimeError):
    """Base error for provider-layer failures."""


class LLMConfigurationError(LLMProviderError):
    """Raised when a provider is unavailable: missing credential, unknown provider id, bad base URL."""


class LLMCapabilityError(LLMProviderError):
    """Raised when a selected provider cannot serve a requested capability."""


class LLMRequestError(LLMProviderError):
    """Raised when a provider call fails in transport or returns an unusable payload."""


# Name used by the reader services for the "no credential configured" case.
ProviderUnavailable = LLMConfigurationError

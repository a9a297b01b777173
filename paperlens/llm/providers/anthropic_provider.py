"""Anthropic-backed chat provider implementation."""

from __future__ import annotations

from typing import Any, Optional

from anthropic import Anthropic, AnthropicError

from paperlens.llm.errors import LLMCapabilityError, LLMConfigurationError, LLMRequestError
from paperlens.llm.interfaces import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_SECONDS, ProviderCapabilities
from paperlens.llm.types import EmbeddingRequest, EmbeddingResponse, GenerateRequest, GenerateResponse


def _usage_counts(usage: Any) -> tuple[int, int, int]:
    """Normalize Anthropic token usage payload into input/output/total."""
    if usage is None:
        return 0, 0, 0
    input_tokens = int(getattr(usage, "input_tokens", 0) or 0)
    output_tokens = int(getattr(usage, "output_tokens", 0) or 0)
    return input_tokens, output_tokens, input_tokens + output_tokens


def _text_blocks(response: Any) -> str:
    parts: list[str] = []
    for block in getattr(response, "content", []) or []:
        if getattr(block, "type", None) == "text":
            val = getattr(block, "text", None)
            if val:
                parts.append(str(val))
    return "\n".join(parts).strip()


class AnthropicProvider:
    """Provider adapter for Anthropic Messages API (chat only)."""

    name = "anthropic"
    capabilities = ProviderCapabilities(supports_chat=True, supports_embeddings=False)

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        client: Optional[Anthropic] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        """Initialize Anthropic client with API key."""
        if client is not None:
            self._client = client
            return
        key = str(api_key or "").strip()
        if not key:
            raise LLMConfigurationError("anthropic provider requires ANTHROPIC_API_KEY")
        self._client = Anthropic(api_key=key, timeout=timeout, max_retries=max_retries)

    def _payload(self, request: GenerateRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model,
            "max_tokens": int(request.max_output_tokens or 1024),
            "system": request.instructions,
            "messages": request.conversation(),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        return payload

    def generate(self, request: GenerateRequest, *, capability: str = "chat") -> GenerateResponse:
        """Generate text via Anthropic Messages API."""
        try:
            response = self._client.messages.create(**self._payload(request))
        except AnthropicError as exc:
            raise LLMRequestError(f"anthropic generation failed: {exc}") from exc
        in_tok, out_tok, total_tok = _usage_counts(getattr(response, "usage", None))
        return GenerateResponse(
            text=_text_blocks(response),
            provider=self.name,
            capability=capability,
            provider_request_id=str(getattr(response, "id", "") or "") or None,
            input_tokens=in_tok,
            output_tokens=out_tok,
            total_tokens=total_tok,
            raw=response,
        )

    def embed(self, request: EmbeddingRequest, *, capability: str = "embeddings") -> EmbeddingResponse:
        """Raise capability error because Anthropic does not expose embeddings."""
        _ = (request, capability)
        raise LLMCapabilityError("anthropic provider does not support embeddings")

"""OpenAI-backed provider implementations for chat and embeddings."""

from __future__ import annotations

import os
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from paperlens.llm.errors import LLMConfigurationError, LLMRequestError
from paperlens.llm.interfaces import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_SECONDS, ProviderCapabilities
from paperlens.llm.types import EmbeddingRequest, EmbeddingResponse, GenerateRequest, GenerateResponse


def _extract_text_from_openai_response(response: Any) -> str:
    """Extract text payload from an OpenAI Responses API object."""
    # ``response.text`` is the SDK's format config, never the answer.
    output_text = getattr(response, "output_text", None)
    if isinstance(output_text, str) and output_text.strip():
        return output_text.strip()
    parts: list[str] = []
    for item in getattr(response, "output", []) or []:
        if getattr(item, "type", None) != "message":
            continue
        for content in getattr(item, "content", []) or []:
            if getattr(content, "type", None) == "output_text":
                text = getattr(content, "text", None)
                if text:
                    parts.append(str(text))
    return "\n".join(parts).strip()


def _usage_counts(usage: Any) -> tuple[int, int, int]:
    """Normalize token counts from provider usage payloads."""
    if usage is None:
        return 0, 0, 0
    if isinstance(usage, dict):
        input_tokens = int(usage.get("input_tokens") or usage.get("prompt_tokens") or 0)
        output_tokens = int(usage.get("output_tokens") or 0)
        total_tokens = int(usage.get("total_tokens") or 0)
    else:
        input_tokens = int(getattr(usage, "input_tokens", 0) or getattr(usage, "prompt_tokens", 0) or 0)
        output_tokens = int(getattr(usage, "output_tokens", 0) or 0)
        total_tokens = int(getattr(usage, "total_tokens", 0) or 0)
    if total_tokens == 0:
        total_tokens = input_tokens + output_tokens
    return input_tokens, output_tokens, total_tokens


def _ordered_embeddings(data: Any) -> list[list[float]]:
    """Embedding vectors ordered by each item's ``index`` field."""
    items = list(data or [])
    items.sort(key=lambda item: int(getattr(item, "index", 0) or 0))
    return [list(item.embedding) for item in items]


class OpenAIProvider:
    """Provider adapter for OpenAI Responses + Embeddings APIs."""

    name = "openai"
    capabilities = ProviderCapabilities(supports_chat=True, supports_embeddings=True)

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[OpenAI] = None,
        provider_name: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        """Initialize provider with optional explicit API key/base URL."""
        self.name = str(provider_name or self.name)
        if client is not None:
            self._client = client
            return
        key = str(api_key or os.environ.get("OPENAI_API_KEY") or "").strip()
        if not key and not base_url:
            raise LLMConfigurationError(f"{self.name} provider requires OPENAI_API_KEY")
        self._client = OpenAI(
            api_key=key or "unused",
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    def generate(self, request: GenerateRequest, *, capability: str = "chat") -> GenerateResponse:
        """Generate text using non-streaming Responses API."""
        payload: dict[str, Any] = {
            "model": request.model,
            "instructions": request.instructions,
            "input": request.user_input if not request.messages else request.conversation(),
            "max_output_tokens": request.max_output_tokens,
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        try:
            response = self._client.responses.create(**payload)
        except OpenAIError as exc:
            raise LLMRequestError(f"{self.name} generation failed: {exc}") from exc
        text = _extract_text_from_openai_response(response)
        in_tok, out_tok, total_tok = _usage_counts(getattr(response, "usage", None))
        return GenerateResponse(
            text=text,
            provider=self.name,
            capability=capability,
            provider_request_id=str(getattr(response, "id", "") or "") or None,
            input_tokens=in_tok,
            output_tokens=out_tok,
            total_tokens=total_tok,
            raw=response,
        )

    def embed(self, request: EmbeddingRequest, *, capability: str = "embeddings") -> EmbeddingResponse:
        """Generate embeddings for input texts, in input order."""
        try:
            response = self._client.embeddings.create(model=request.model, input=request.texts)
        except OpenAIError as exc:
            raise LLMRequestError(f"{self.name} embeddings failed: {exc}") from exc
        embeddings = _ordered_embeddings(getattr(response, "data", None))
        if len(embeddings) != len(request.texts):
            raise LLMRequestError(
                f"{self.name} returned {len(embeddings)} embeddings for {len(request.texts)} inputs"
            )
        in_tok, out_tok, total_tok = _usage_counts(getattr(response, "usage", None))
        return EmbeddingResponse(
            embeddings=embeddings,
            provider=self.name,
            capability=capability,
            provider_request_id=str(getattr(response, "id", "") or "") or None,
            input_tokens=in_tok,
            output_tokens=out_tok,
            total_tokens=total_tok,
            raw=response,
        )


class OpenAICompatibleProvider(OpenAIProvider):
    """OpenAI-compatible adapter (local/self-hosted endpoint)."""

    name = "openai_compatible"

    def __init__(
        self,
        *,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        """Initialize an OpenAI-compatible provider.

        Args:
            base_url (str): OpenAI-compatible endpoint base URL.
            api_key (Optional[str]): Optional API key/token.
            timeout (float): Per-request timeout in seconds.
            max_retries (int): SDK retries after a failed request.
        """
        if not str(base_url or "").strip():
            raise LLMConfigurationError("openai_compatible provider requires a non-empty base_url")
        super().__init__(
            api_key=api_key,
            base_url=base_url,
            provider_name=self.name,
            timeout=timeout,
            max_retries=max_retries,
        )

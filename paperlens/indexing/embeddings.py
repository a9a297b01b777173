"""Batched, truncating embedding client over the provider runtime."""

from __future__ import annotations

from typing import Any, List, Sequence

from paperlens.core.config import MAX_EMBED_BATCH
from paperlens.core.errors import ExternalLookupError
from paperlens.llm.errors import LLMRequestError

DEFAULT_MAX_CHARS = 8000


class EmbeddingClient:
    """Turn text into fixed-length vectors through the ``embeddings`` capability.

    Inputs are cut to ``max_chars`` characters and sent in batches of at most
    ``batch_size`` texts. Output order always matches input order.

    Raises ``ProviderUnavailable`` (``LLMConfigurationError``) when no credential is
    configured for the embeddings provider; that error is not retried. Transport
    failures surface as ``ExternalLookupError``.
    """

    def __init__(
        self,
        runtime: Any,
        *,
        model: str | None = None,
        batch_size: int = 100,
        max_chars: int = DEFAULT_MAX_CHARS,
    ) -> None:
        self.runtime = runtime
        self.model = model
        self.batch_size = max(1, min(int(batch_size), MAX_EMBED_BATCH))
        self.max_chars = max(1, int(max_chars))

    def _truncate(self, text: str) -> str:
        return str(text or "")[: self.max_chars]

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed ``texts`` in batches, returning one vector per input."""
        items = [self._truncate(t) for t in texts]
        vectors: List[List[float]] = []
        for i in range(0, len(items), self.batch_size):
            batch = items[i : i + self.batch_size]
            try:
                result = self.runtime.embed(texts=batch, model=self.model)
            except LLMRequestError as exc:
                raise ExternalLookupError(str(exc)) from exc
            if len(result.embeddings) != len(batch):
                raise ExternalLookupError(
                    f"embedding provider returned {len(result.embeddings)} vectors for {len(batch)} inputs"
                )
            vectors.extend([float(v) for v in vec] for vec in result.embeddings)
        return vectors

    def embed_one(self, text: str) -> List[float]:
        """Embed a single text."""
        return self.embed([text])[0]

"""Tests for the batched embedding client."""

from __future__ import annotations

import pytest

from paperlens.core.errors import ExternalLookupError
from paperlens.indexing.embeddings import EmbeddingClient
from paperlens.llm.errors import LLMRequestError, ProviderUnavailable
from paperlens.llm.types import EmbeddingResponse


class _FakeEmbeddingRuntime:
    """Records batches and returns ``[len(text), call_number]`` vectors."""

    def __init__(self, *, error: Exception | None = None, drop_last: bool = False) -> None:
        self.calls = []
        self.error = error
        self.drop_last = drop_last

    def embed(self, *, texts, model=None, metadata=None) -> EmbeddingResponse:
        if self.error is not None:
            raise self.error
        self.calls.append({"texts": list(texts), "model": model})
        vectors = [[float(len(t)), float(len(self.calls))] for t in texts]
        if self.drop_last:
            vectors = vectors[:-1]
        return EmbeddingResponse(embeddings=vectors, provider="fake", capability="embeddings")


def test_embed_batches_in_order() -> None:
    runtime = _FakeEmbeddingRuntime()
    client = EmbeddingClient(runtime, model="embed-small", batch_size=2)
    vectors = client.embed(["a", "bb", "ccc", "dddd", "eeeee"])
    assert [len(call["texts"]) for call in runtime.calls] == [2, 2, 1]
    assert all(call["model"] == "embed-small" for call in runtime.calls)
    assert [v[0] for v in vectors] == [1.0, 2.0, 3.0, 4.0, 5.0]
    assert [v[1] for v in vectors] == [1.0, 1.0, 2.0, 2.0, 3.0]


def test_embed_truncates_long_inputs() -> None:
    runtime = _FakeEmbeddingRuntime()
    client = EmbeddingClient(runtime, max_chars=5)
    vectors = client.embed(["abcdefghij", "xy"])
    assert runtime.calls[0]["texts"] == ["abcde", "xy"]
    assert vectors[0][0] == 5.0


def test_embed_empty_input_makes_no_calls() -> None:
    runtime = _FakeEmbeddingRuntime()
    assert EmbeddingClient(runtime).embed([]) == []
    assert runtime.calls == []


def test_batch_size_is_clamped() -> None:
    runtime = _FakeEmbeddingRuntime()
    assert EmbeddingClient(runtime, batch_size=10_000).batch_size == 128
    assert EmbeddingClient(runtime, batch_size=0).batch_size == 1


def test_embed_one_returns_single_vector() -> None:
    client = EmbeddingClient(_FakeEmbeddingRuntime())
    assert client.embed_one("four") == [4.0, 1.0]


def test_provider_unavailable_propagates() -> None:
    client = EmbeddingClient(_FakeEmbeddingRuntime(error=ProviderUnavailable("no key")))
    with pytest.raises(ProviderUnavailable):
        client.embed(["text"])


def test_transport_failure_becomes_lookup_error() -> None:
    client = EmbeddingClient(_FakeEmbeddingRuntime(error=LLMRequestError("boom")))
    with pytest.raises(ExternalLookupError):
        client.embed(["text"])


def test_vector_count_mismatch_is_an_error() -> None:
    client = EmbeddingClient(_FakeEmbeddingRuntime(drop_last=True))
    with pytest.raises(ExternalLookupError):
        client.embed(["a", "b"])

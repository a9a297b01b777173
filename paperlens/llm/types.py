"""Provider-agnostic request and response datatypes for LLM calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

CONVERSATION_ROLES = ("user", "assistant")


@dataclass(frozen=True)
class ConversationTurn:
    """One prior message in a multi-turn conversation."""

    role: str
    content: str

    def to_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class GenerateRequest:
    """Structured text-generation request.

    When ``messages`` is non-empty it is the whole conversation and ``user_input``
    is ignored; otherwise ``user_input`` is sent as a single user turn.
    """

    model: str
    instructions: str
    user_input: str = ""
    messages: List[ConversationTurn] = field(default_factory=list)
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def conversation(self) -> List[Dict[str, str]]:
        """Role/content dicts for the provider call."""
        if self.messages:
            return [turn.to_message() for turn in self.messages]
        return [{"role": "user", "content": self.user_input}]


@dataclass(frozen=True)
class GenerateResponse:
    """Normalized text-generation response."""

    text: str
    provider: str
    capability: str
    provider_request_id: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    fallback_from: Optional[str] = None
    raw: Any = None


@dataclass(frozen=True)
class EmbeddingRequest:
    """Structured embeddings request."""

    model: str
    texts: List[str]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EmbeddingResponse:
    """Normalized embeddings response."""

    embeddings: List[List[float]]
    provider: str
    capability: str
    provider_request_id: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    fallback_from: Optional[str] = None
    raw: Any = None

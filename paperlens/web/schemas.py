"""Pydantic request schemas for Flask API endpoints."""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field


class PaperCreateRequest(BaseModel):
    text: str = Field(min_length=1)
    title: Optional[str] = Field(default=None, max_length=2000)
    authors: List[str] = Field(default_factory=list)
    year: Optional[int] = Field(default=None, ge=0, le=3000)


class ConversationMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(max_length=16000)


class ExplainRequest(BaseModel):
    paper_id: str = Field(min_length=1, max_length=64)
    selected_text: str = Field(min_length=1, max_length=20000)
    messages: List[ConversationMessage] = Field(default_factory=list)


def parse_model(model_cls: Any, payload: Any) -> Any:
    """Parse one request payload into a pydantic model."""
    return model_cls.model_validate(payload or {})

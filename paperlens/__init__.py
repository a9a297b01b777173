"""paperlens: citation extraction and retrieval-backed explanations for research papers."""

from .citations import extract_citations
from .core.chunking import chunk_text

__version__ = "0.1.0"

__all__ = [
    "chunk_text",
    "extract_citations",
]

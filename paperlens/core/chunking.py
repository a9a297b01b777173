"""Overlapping text chunkers used to prepare paper text for embedding."""

from __future__ import annotations

from typing import List, Tuple

DEFAULT_CHUNK_SIZE = 800
DEFAULT_CHUNK_OVERLAP = 150
DEFAULT_CHUNK_WORDS = 500
DEFAULT_OVERLAP_WORDS = 50


def normalize_newlines(text: str) -> str:
    """Convert CRLF/CR line endings to LF and strip surrounding whitespace."""
    return (text or "").replace("\r\n", "\n").replace("\r", "\n").strip()


def chunk_spans(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_CHUNK_OVERLAP) -> List[Tuple[int, int]]:
    """Window boundaries over ``normalize_newlines(text)``.

    A window that ends before the end of the text is cut back to its last newline
    or ``". "`` when that break lies past the middle of the window. Windows start
    at 0, never exceed ``chunk_size``, start strictly after the previous start,
    and start no later than the previous end; the last one ends at the text end.
    """
    normalized = normalize_newlines(text)
    if not normalized:
        return []
    chunk_size = max(1, int(chunk_size))
    overlap = min(max(0, int(overlap)), chunk_size - 1)

    spans: List[Tuple[int, int]] = []
    length = len(normalized)
    start = 0
    while start < length:
        end = min(start + chunk_size, length)
        if end < length:
            piece = normalized[start:end]
            break_at = max(piece.rfind("\n"), piece.rfind(". "))
            if break_at > chunk_size / 2:
                end = start + break_at + 1
        spans.append((start, end))
        if end >= length:
            break
        next_start = end - overlap
        # Never move backwards or stall.
        start = end if next_start <= start else next_start
    return spans


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_CHUNK_OVERLAP) -> List[str]:
    """Split text into overlapping character windows that prefer paragraph/sentence breaks.

    Args:
        text (str): Raw document text.
        chunk_size (int): Target characters per chunk.
        overlap (int): Characters shared by consecutive chunks; clamped below ``chunk_size``.

    Returns:
        List[str]: Trimmed, non-empty chunks in document order.
    """
    normalized = normalize_newlines(text)
    pieces = (normalized[start:end].strip() for start, end in chunk_spans(normalized, chunk_size, overlap))
    return [piece for piece in pieces if piece]


def chunk_words(text: str, chunk_words: int = DEFAULT_CHUNK_WORDS, overlap_words: int = DEFAULT_OVERLAP_WORDS) -> List[str]:
    """Split text into overlapping word chunks.

    Args:
        text (str): Input text value.
        chunk_words (int): Words per chunk.
        overlap_words (int): Words shared by consecutive chunks.

    Returns:
        List[str]: Space-joined word windows.
    """
    words = (text or "").split()
    if not words:
        return []
    chunk_words = max(1, int(chunk_words))
    step = max(1, chunk_words - max(0, int(overlap_words)))
    chunks = []
    i = 0
    while i < len(words):
        j = min(len(words), i + chunk_words)
        chunks.append(" ".join(words[i:j]))
        if j == len(words):
            break
        i += step
    return chunks

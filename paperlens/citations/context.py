"""Locate citation markers in body text and cut sentence windows around them."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from paperlens.citations.patterns import NUMBERED_CITATION_RE, body_text, numbered_group_tokens

CONTEXT_WINDOW_CHARS = 500
DEFAULT_SENTENCES_AROUND = 2
MIN_REFERENCE_TITLE_CHARS = 10

_NUMBERED_KEY_RE = re.compile(r"^\[(\d+)\]$")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_QUOTED_TITLE_RE = re.compile(r"[\"“]([^\"”]{%d,})[\"”]" % MIN_REFERENCE_TITLE_CHARS)
_YEAR_PREFIX_RE = re.compile(r"^\d{4}")

Span = Tuple[int, int]


def _literal_pattern(key: str) -> re.Pattern:
    """Escaped pattern for ``key`` that tolerates whitespace differences between tokens."""
    return re.compile(r"\s*".join(re.escape(token) for token in key.split()))


def _numbered_group_spans(body: str, number: int) -> Tuple[List[Span], List[Span]]:
    """Bracket groups listing ``number`` as an element, and groups covering it through a range."""
    listed: List[Span] = []
    ranged: List[Span] = []
    for match in NUMBERED_CITATION_RE.finditer(body):
        tokens = numbered_group_tokens(match.group(1))
        if any(number in numbers for numbers, is_range in tokens if not is_range):
            listed.append(match.span())
        elif any(number in numbers for numbers, is_range in tokens if is_range):
            ranged.append(match.span())
    return listed, ranged


def find_marker_positions(text: str, citation_key: str) -> List[Span]:
    """Return ``(start, end)`` spans of every in-body occurrence of ``citation_key``.

    Numbered keys match bracket groups that list the number (``[2, 19]``),
    then groups whose range covers it (``[1-3]``), then the literal key.
    Offsets index into ``text``; the reference section is never searched.
    """
    body = body_text(text)
    key = (citation_key or "").strip()
    if not body or not key:
        return []
    numbered = _NUMBERED_KEY_RE.match(key)
    if numbered:
        listed, ranged = _numbered_group_spans(body, int(numbered.group(1)))
        if listed or ranged:
            return sorted(listed + ranged)
    return [m.span() for m in _literal_pattern(key).finditer(body)]


def locate_citation(text: str, citation_key: str) -> Optional[int]:
    """Offset of the preferred occurrence of ``citation_key``, or None when absent.

    A group listing the number wins over a range group even if the range appears earlier.
    """
    body = body_text(text)
    key = (citation_key or "").strip()
    if not body or not key:
        return None
    numbered = _NUMBERED_KEY_RE.match(key)
    if numbered:
        listed, ranged = _numbered_group_spans(body, int(numbered.group(1)))
        if listed:
            return listed[0][0]
        if ranged:
            return ranged[0][0]
    match = _literal_pattern(key).search(body)
    return match.start() if match else None


def split_sentences(text: str) -> List[str]:
    """Split on whitespace that follows ``.``, ``!`` or ``?``."""
    return _SENTENCE_SPLIT_RE.split(text)


def extract_citation_context(text: str, citation_key: str, sentences_around: int = DEFAULT_SENTENCES_AROUND) -> str:
    """Sentence window around the first occurrence of ``citation_key``.

    Keeps the last ``sentences_around`` sentences before the marker and the first
    ``sentences_around + 1`` starting at the marker, all within 500 characters
    either side. Returns an empty string when the key does not occur in the body.
    """
    position = locate_citation(text, citation_key)
    if position is None:
        return ""
    body = body_text(text)
    sentences_around = max(0, int(sentences_around))
    before = body[max(0, position - CONTEXT_WINDOW_CHARS) : position]
    after = body[position : position + CONTEXT_WINDOW_CHARS]
    before_part = " ".join(split_sentences(before)[-sentences_around:]) if sentences_around else ""
    after_part = " ".join(split_sentences(after)[: sentences_around + 1])
    return " ".join(f"{before_part}{after_part}".split())


def extract_title_from_reference(reference_text: Optional[str]) -> Optional[str]:
    """Guess the cited work's title from a bibliography entry.

    A quoted substring of at least 10 characters wins; otherwise the segment after
    the author list (second ``". "`` split) when it is long enough and not a year.
    """
    text = " ".join((reference_text or "").split())
    if not text:
        return None
    quoted = _QUOTED_TITLE_RE.search(text)
    if quoted:
        return quoted.group(1).strip().rstrip(",.")
    parts = text.split(". ")
    if len(parts) < 2:
        return None
    candidate = parts[1].strip().rstrip(".")
    if len(candidate) >= MIN_REFERENCE_TITLE_CHARS and not _YEAR_PREFIX_RE.match(candidate):
        return candidate
    return None

"""Citation extraction over a full paper: title guess, style, and keyed citations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from paperlens.citations.context import extract_citation_context
from paperlens.citations.patterns import (
    AUTHOR_YEAR,
    NUMBERED,
    UNKNOWN,
    author_year_markers,
    detect_citation_style,
    extract_markers,
    numbered_markers,
    parse_references,
    split_body_and_references,
)

UNTITLED_PAPER = "Untitled Paper"
MAX_TITLE_CHARS = 500
TITLE_SCAN_LINES = 5
MIN_TITLE_LINE_CHARS = 6

_AFFILIATION_TOKENS = (
    "university",
    "department",
    "institute",
    "school of",
    "laboratory",
    "college",
    "inc.",
    "corresponding author",
)
_AUTHOR_JOIN_WORDS = {"and", "et", "al"}


@dataclass(frozen=True)
class ParsedCitation:
    """One unique in-text citation with its reference entry and sentence window."""

    citation_key: str
    raw_reference: Optional[str] = None
    context_in_paper: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "citation_key": self.citation_key,
            "raw_reference": self.raw_reference,
            "context_in_paper": self.context_in_paper,
        }


@dataclass(frozen=True)
class ExtractionResult:
    """Output of one extraction run over a paper."""

    title: str
    style: str
    citations: List[ParsedCitation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "style": self.style,
            "citations": [c.to_dict() for c in self.citations],
        }


def _name_token_ratio(text: str) -> float:
    tokens = re.findall(r"[A-Za-z][A-Za-z.'`-]*", text or "")
    if not tokens:
        return 0.0
    good = 0
    for token in tokens:
        cleaned = token.strip(".")
        if cleaned.lower() in _AUTHOR_JOIN_WORDS:
            good += 1
            continue
        if token[0].isupper() and (not cleaned.isupper() or len(cleaned) == 1):
            good += 1
    return good / len(tokens)


def _is_affiliation_line(line: str) -> bool:
    low = line.lower()
    return "@" in line or any(token in low for token in _AFFILIATION_TOKENS)


def _looks_like_author_line(line: str) -> bool:
    """True for author lists and affiliation lines under a title."""
    text = " ".join(line.split())
    low = text.lower()
    if _is_affiliation_line(text):
        return True
    if re.search(r"[\*†‡]", text):
        # footnote marks next to names
        return _name_token_ratio(text) >= 0.75
    if ":" in text or len(text.split()) > 24:
        return False
    if "," in text or " and " in low or " & " in text:
        return _name_token_ratio(text) >= 0.75
    return False


def extract_title(text: str) -> str:
    """Guess the paper title from its first non-blank lines.

    Scans up to five lines, stopping at an ``Abstract`` line or at the first line
    that looks like an author/affiliation line; short lines are skipped.
    """
    lines = [line.strip() for line in (text or "").split("\n") if line.strip()]
    title_lines: List[str] = []
    for line in lines[:TITLE_SCAN_LINES]:
        if line.lower().startswith("abstract"):
            break
        if title_lines and _looks_like_author_line(line):
            break
        if len(line) < MIN_TITLE_LINE_CHARS or _is_affiliation_line(line):
            continue
        title_lines.append(line)
    title = " ".join(" ".join(title_lines).split())
    if not title or len(title) > MAX_TITLE_CHARS:
        return UNTITLED_PAPER
    return title


def resolve_marker_style(style: str, body: str) -> str:
    """Style used to scan markers.

    Unknown style takes the numbered path; when the body holds no numbered
    markers but does hold author-year ones, the author-year path is used instead.
    """
    if style != UNKNOWN:
        return style
    if not numbered_markers(body) and author_year_markers(body):
        return AUTHOR_YEAR
    return NUMBERED


def _unique(markers: List[str]) -> List[str]:
    seen = set()
    ordered = []
    for marker in markers:
        if marker in seen:
            continue
        seen.add(marker)
        ordered.append(marker)
    return ordered


def extract_citations(text: str, *, sentences_around: int = 2) -> ExtractionResult:
    """Extract the title, citation style, and unique citations of a paper.

    Markers are read from the body only. Each unique key is joined with its
    parsed reference entry (None when unmatched) and its sentence window.
    """
    text = text or ""
    title = extract_title(text)
    style = detect_citation_style(text)
    body, reference_section = split_body_and_references(text)
    marker_style = resolve_marker_style(style, body)
    references = parse_references(reference_section or "", marker_style)

    citations = []
    for key in _unique(extract_markers(body, marker_style)):
        context = extract_citation_context(text, key, sentences_around=sentences_around)
        citations.append(
            ParsedCitation(
                citation_key=key,
                raw_reference=references.get(key),
                context_in_paper=context or None,
            )
        )
    return ExtractionResult(title=title, style=style, citations=citations)

"""Regex heuristics for citation style detection, in-text markers, and reference lists.

Everything here is a pure function over immutable strings. PDF-extracted text is
noisy, so these are best-effort heuristics rather than a grammar.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

NUMBERED = "numbered"
AUTHOR_YEAR = "author-year"
UNKNOWN = "unknown"
CITATION_STYLES = (NUMBERED, AUTHOR_YEAR, UNKNOWN)

STYLE_SAMPLE_CHARS = 5000
MIN_STYLE_EVIDENCE = 3
MAX_RANGE_SPAN = 200
MIN_REFERENCE_PARAGRAPH_CHARS = 10

# [1], [1,2], [1-3], [1, 2, 3]
NUMBERED_CITATION_RE = re.compile(r"\[(\d+(?:[,\s\-–]+\d+)*)\]")
# (Smith, 2020), (Smith & Jones, 2020), (Smith and Jones, 2020), (Smith et al., 2020)
_AUTHOR_PART = r"[A-Z][a-z]+(?:\s(?:&|and)\s[A-Z][a-z]+)?(?:\set\sal\.)?"
AUTHOR_YEAR_CITATION_RE = re.compile(r"\((" + _AUTHOR_PART + r"),\s*(\d{4}[a-z]?)\)")
AUTHOR_YEAR_REFERENCE_RE = re.compile(r"^(" + _AUTHOR_PART + r")\s*\((\d{4}[a-z]?)\)")
NUMBERED_REFERENCE_RE = re.compile(r"\[(\d+)\]\s*(.+?)(?=\[\d+\]|$)", re.DOTALL)
REFERENCE_HEADING_RE = re.compile(
    r"^[ \t]*(references|bibliography|works cited)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
INLINE_REFERENCE_HEADING_RE = re.compile(
    r"(?<!\S)(References|REFERENCES|Bibliography|BIBLIOGRAPHY|Works Cited|WORKS CITED)[ \t]*(?:\n|$)"
)
_RANGE_TOKEN_RE = re.compile(r"(\d+)\s*[\-–]\s*(\d+)|(\d+)")


def detect_citation_style(text: str) -> str:
    """Classify the document's citation style from a prefix sample.

    Returns ``numbered`` or ``author-year`` only when that pattern strictly
    outnumbers the other and has at least three matches; otherwise ``unknown``.
    """
    sample = (text or "")[:STYLE_SAMPLE_CHARS]
    numbered = len(NUMBERED_CITATION_RE.findall(sample))
    author_year = len(AUTHOR_YEAR_CITATION_RE.findall(sample))
    if numbered > author_year and numbered >= MIN_STYLE_EVIDENCE:
        return NUMBERED
    if author_year > numbered and author_year >= MIN_STYLE_EVIDENCE:
        return AUTHOR_YEAR
    return UNKNOWN


def find_reference_heading(text: str) -> Optional[re.Match]:
    """Return the references/bibliography heading.

    A heading on its own line wins. Otherwise the last capitalised heading word
    that ends a line is used, since extracted text often glues it to the previous line.
    """
    text = text or ""
    match = REFERENCE_HEADING_RE.search(text)
    if match is not None:
        return match
    trailing = None
    for trailing in INLINE_REFERENCE_HEADING_RE.finditer(text):
        pass
    return trailing


def split_body_and_references(text: str) -> Tuple[str, Optional[str]]:
    """Split text into the body before the reference heading and the section after it."""
    text = text or ""
    match = find_reference_heading(text)
    if match is None:
        return text, None
    return text[: match.start()], text[match.end() :]


def body_text(text: str) -> str:
    """Return the text before the reference heading (the whole text when there is none)."""
    return split_body_and_references(text)[0]


def numbered_key(number: int | str) -> str:
    """Canonical key for a numbered citation."""
    return f"[{int(number)}]"


def author_year_key(author: str, year: str) -> str:
    """Canonical key for an author-year citation."""
    return f"({' '.join(author.split())}, {year})"


def numbered_group_tokens(inner: str) -> List[Tuple[List[int], bool]]:
    """Tokens of a bracket group as ``(numbers, is_range)`` pairs, in order.

    Elements may be separated by commas or whitespace and may be zero-padded
    (``"03"`` is 3). Ranges that run backwards or span more than
    ``MAX_RANGE_SPAN`` numbers keep only their endpoints and count as listed.
    """
    tokens: List[Tuple[List[int], bool]] = []
    for match in _RANGE_TOKEN_RE.finditer(inner or ""):
        if match.group(3) is not None:
            tokens.append(([int(match.group(3))], False))
            continue
        first, last = int(match.group(1)), int(match.group(2))
        if first <= last and last - first <= MAX_RANGE_SPAN:
            tokens.append((list(range(first, last + 1)), True))
        else:
            tokens.append(([first, last], False))
    return tokens


def expand_numbered_group(inner: str) -> List[int]:
    """Expand the inside of a bracket group into citation numbers.

    ``"2, 5"`` -> ``[2, 5]``; ``"1-3"`` -> ``[1, 2, 3]``; ``"1 2"`` -> ``[1, 2]``.
    """
    return [number for numbers, _ in numbered_group_tokens(inner) for number in numbers]


def numbered_markers(body: str) -> List[str]:
    """All numbered markers in ``body`` in order of appearance (duplicates kept)."""
    markers: List[str] = []
    for match in NUMBERED_CITATION_RE.finditer(body or ""):
        markers.extend(numbered_key(n) for n in expand_numbered_group(match.group(1)))
    return markers


def author_year_markers(body: str) -> List[str]:
    """All author-year markers in ``body`` in order of appearance (duplicates kept)."""
    return [author_year_key(m.group(1), m.group(2)) for m in AUTHOR_YEAR_CITATION_RE.finditer(body or "")]


def extract_markers(body: str, style: str) -> List[str]:
    """Markers for ``style``; unknown style falls back to the numbered path."""
    if style == AUTHOR_YEAR:
        return author_year_markers(body)
    return numbered_markers(body)


def parse_references(section: str, style: str) -> Dict[str, str]:
    """Parse a reference section into ``{canonical key: reference text}``.

    Numbered (and unknown) style reads ``[n] text`` entries up to the next ``[n]``.
    Author-year style reads blank-line separated paragraphs that start with ``Author (Year)``.
    """
    references: Dict[str, str] = {}
    if not section:
        return references
    if style == AUTHOR_YEAR:
        for paragraph in re.split(r"\n\s*\n+", section):
            entry = " ".join(paragraph.split())
            if len(entry) < MIN_REFERENCE_PARAGRAPH_CHARS:
                continue
            match = AUTHOR_YEAR_REFERENCE_RE.match(entry)
            if match:
                references[author_year_key(match.group(1), match.group(2))] = entry
        return references
    for match in NUMBERED_REFERENCE_RE.finditer(section):
        entry = " ".join(match.group(2).split())
        if entry:
            references[numbered_key(match.group(1))] = entry
    return references

"""Citation style detection, marker extraction, and context windows."""

from paperlens.citations.context import (
    extract_citation_context,
    extract_title_from_reference,
    find_marker_positions,
    locate_citation,
)
from paperlens.citations.extractor import ExtractionResult, ParsedCitation, extract_citations, extract_title
from paperlens.citations.patterns import AUTHOR_YEAR, NUMBERED, UNKNOWN, detect_citation_style

__all__ = [
    "AUTHOR_YEAR",
    "NUMBERED",
    "UNKNOWN",
    "ExtractionResult",
    "ParsedCitation",
    "detect_citation_style",
    "extract_citation_context",
    "extract_citations",
    "extract_title",
    "extract_title_from_reference",
    "find_marker_positions",
    "locate_citation",
]

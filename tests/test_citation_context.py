"""Unit tests for marker location, sentence windows, and reference title guessing."""

from __future__ import annotations

from paperlens.citations.context import (
    extract_citation_context,
    extract_title_from_reference,
    find_marker_positions,
    locate_citation,
)

GROUPED_TEXT = "A [1, 2] and B [2]. C [1-3].\n\nReferences\n[2] Ref entry."


def test_find_marker_positions_lists_ranges_and_skips_references() -> None:
    spans = find_marker_positions(GROUPED_TEXT, "[2]")
    starts = [start for start, _ in spans]
    assert starts == [GROUPED_TEXT.index("[1, 2]"), GROUPED_TEXT.index("[2]"), GROUPED_TEXT.index("[1-3]")]
    first_start, first_end = spans[0]
    assert GROUPED_TEXT[first_start:first_end] == "[1, 2]"
    assert all(start < GROUPED_TEXT.index("References") for start in starts)


def test_find_marker_positions_unknown_key() -> None:
    assert find_marker_positions(GROUPED_TEXT, "[9]") == []
    assert find_marker_positions(GROUPED_TEXT, "") == []


def test_find_marker_positions_author_year_tolerates_whitespace() -> None:
    text = "as noted (Smith,  2020) here and (Smith, 2020) again."
    spans = find_marker_positions(text, "(Smith, 2020)")
    assert len(spans) == 2
    assert text[spans[0][0] : spans[0][1]] == "(Smith,  2020)"


def test_locate_citation_prefers_listed_group_over_earlier_range() -> None:
    text = "Range [1-3] first. Then [2] alone."
    assert locate_citation(text, "[2]") == text.index("[2]")
    assert locate_citation(text, "[3]") == text.index("[1-3]")
    assert locate_citation(text, "[7]") is None


def test_extract_citation_context_sentence_window() -> None:
    text = "One. Two. Three. Four has [1] here. Five. Six. Seven."
    assert extract_citation_context(text, "[1]", sentences_around=1) == "Four has [1] here. Five."


def test_extract_citation_context_default_window() -> None:
    text = "One. Two. Three. Four has [1] here. Five. Six. Seven."
    context = extract_citation_context(text, "[1]")
    assert context == "Three. Four has [1] here. Five. Six."


def test_extract_citation_context_missing_key_is_empty() -> None:
    assert extract_citation_context("No markers here.", "[1]") == ""


def test_extract_citation_context_ignores_reference_section() -> None:
    text = "Body mentions nothing.\n\nReferences\n[1] Some entry."
    assert extract_citation_context(text, "[1]") == ""


def test_extract_title_prefers_quoted_title() -> None:
    ref = 'Smith, J. "Deep learning for parsing." Journal of Things, 2020.'
    assert extract_title_from_reference(ref) == "Deep learning for parsing"


def test_extract_title_uses_segment_after_authors() -> None:
    ref = "Vaswani et al. Attention is all you need. 2017."
    assert extract_title_from_reference(ref) == "Attention is all you need"


def test_extract_title_rejects_years_and_short_segments() -> None:
    assert extract_title_from_reference("Smith J. 2020. Short.") is None
    assert extract_title_from_reference("Smith J. Tiny. 2020.") is None
    assert extract_title_from_reference("No separator here") is None
    assert extract_title_from_reference(None) is None


def test_find_marker_positions_space_separated_and_zero_padded_groups() -> None:
    text = "Prior work [1 2] shows this. Padded [03] too.\n\nReferences\n[2] Ref entry."
    group = text.index("[1 2]")
    padded = text.index("[03]")
    assert find_marker_positions(text, "[2]") == [(group, group + len("[1 2]"))]
    assert find_marker_positions(text, "[1]") == [(group, group + len("[1 2]"))]
    assert find_marker_positions(text, "[3]") == [(padded, padded + len("[03]"))]

"""Tests for identifier extraction and multi-strategy cited-work lookup."""

from __future__ import annotations

from paperlens.core.errors import ExternalLookupError
from paperlens.db.models import CitedWork
from paperlens.integrations.lookup import (
    best_title_match,
    extract_arxiv_id,
    extract_doi,
    lookup_cited_work,
    title_overlap,
)


class _FakeSource:
    """Bibliographic source with canned answers and a call log."""

    name = "Fake Source"

    def __init__(self, *, doi=None, arxiv=None, search=None, fail=()) -> None:
        self.doi = doi
        self.arxiv = arxiv
        self.search = search or {}
        self.fail = set(fail)
        self.calls = []

    def by_doi(self, doi):
        self.calls.append(("doi", doi))
        if "doi" in self.fail:
            raise ExternalLookupError("doi lookup down")
        return self.doi

    def by_external_id(self, identifier):
        self.calls.append(("arxiv", identifier))
        return self.arxiv

    def search_by_title(self, title, limit=5):
        self.calls.append(("search", title))
        if "search" in self.fail:
            raise ExternalLookupError("search down")
        return list(self.search.get(title, []))


def test_extract_doi_strips_trailing_punctuation() -> None:
    assert extract_doi("Journal 5, 2020. doi:10.1234/abc.def.") == "10.1234/abc.def"
    assert extract_doi("https://doi.org/10.5555/XYZ-1)") == "10.5555/XYZ-1"
    assert extract_doi("no identifier") is None


def test_extract_arxiv_id_drops_version() -> None:
    assert extract_arxiv_id("Preprint arXiv:2101.00001v2, 2021.") == "2101.00001"
    assert extract_arxiv_id("https://arxiv.org/abs/1706.03762") == "1706.03762"
    assert extract_arxiv_id("nothing") is None


def test_title_overlap_ratio() -> None:
    assert title_overlap("a b c", "a b d") == 2 / 3
    assert title_overlap("Attention Is All You Need", "attention is all you need") == 1.0
    assert title_overlap("", "anything") == 0.0


def test_best_title_match_first_candidate_wins_ties() -> None:
    first = CitedWork(title="deep nets")
    second = CitedWork(title="deep nets")
    third = CitedWork(title="shallow trees")
    assert best_title_match("deep nets", [third, first, second]) is first
    assert best_title_match("deep nets", []) is None


def test_lookup_prefers_doi() -> None:
    work = CitedWork(title="By DOI")
    source = _FakeSource(doi=work)
    assert lookup_cited_work(source, "Smith. Some title here. doi:10.1000/abc") is work
    assert source.calls == [("doi", "10.1000/abc")]


def test_lookup_falls_through_to_title_search() -> None:
    good = CitedWork(title="Attention is all you need")
    other = CitedWork(title="Something else entirely")
    source = _FakeSource(search={"Attention is all you need": [other, good]})
    found = lookup_cited_work(source, "Vaswani et al. Attention is all you need. 2017. arXiv:1706.03762")
    assert found is good
    assert [kind for kind, _ in source.calls] == ["arxiv", "search"]


def test_lookup_uses_free_text_when_no_title() -> None:
    hit = CitedWork(title="Smith 2020 report")
    source = _FakeSource(search={"Smith 2020 report": [hit]})
    assert lookup_cited_work(source, "Smith 2020 report") is hit


def test_lookup_skips_failed_strategy_and_returns_none() -> None:
    source = _FakeSource(fail={"doi", "search"})
    assert lookup_cited_work(source, "Doe. A long enough title. doi:10.9999/zzz") is None
    assert [kind for kind, _ in source.calls] == ["doi", "search", "search"]


def test_lookup_without_reference() -> None:
    source = _FakeSource()
    assert lookup_cited_work(source, None) is None
    assert lookup_cited_work(source, "   ") is None
    assert source.calls == []

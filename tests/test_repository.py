"""Repository tests against the sqlite-backed connection shim."""

from __future__ import annotations

import pytest

from paperlens.citations.extractor import ParsedCitation
from paperlens.db.models import CitedWork, EnrichmentResult, Paper


def _paper(paper_id: str = "p1") -> Paper:
    return Paper(id=paper_id, title="A Paper", raw_text="Body [1].", authors=["Ada", "Grace"], year=2021, page_count=3)


def test_insert_and_get_paper(repository) -> None:
    stored = repository.insert_paper(_paper())
    assert stored.id == "p1"
    assert stored.created_at is not None
    loaded = repository.get_paper("p1")
    assert loaded is not None
    assert loaded.authors == ["Ada", "Grace"]
    assert loaded.year == 2021
    assert loaded.raw_text == "Body [1]."
    assert repository.get_paper("missing") is None


def test_insert_paper_with_citations_keeps_first_duplicate_key(repository) -> None:
    repository.insert_paper(
        _paper(),
        [
            ParsedCitation(citation_key="[1]", raw_reference="Ref one", context_in_paper="Body [1]."),
            ParsedCitation(citation_key="[2]"),
            ParsedCitation(citation_key="[1]", raw_reference="changed"),
        ],
    )
    assert [c.citation_key for c in repository.list_citations("p1")] == ["[1]", "[2]"]
    assert repository.get_citation("p1", "[1]").raw_reference == "Ref one"
    assert repository.get_citation("p1", "[1]").context_in_paper == "Body [1]."


def test_failed_citation_insert_rolls_back_paper(repository, sqlite_conn) -> None:
    class _Broken:
        citation_key = "[2]"

    with pytest.raises(AttributeError):
        repository.insert_paper(_paper(), [ParsedCitation(citation_key="[1]"), _Broken()])
    assert repository.get_paper("p1") is None
    assert repository.list_citations("p1") == []
    assert sqlite_conn.commits == 0


def test_list_citations_orders_numbered_keys_numerically(repository) -> None:
    repository.insert_paper(
        _paper(),
        [
            ParsedCitation(citation_key="(Smith, 2020)"),
            ParsedCitation(citation_key="[10]"),
            ParsedCitation(citation_key="[2]"),
        ],
    )
    keys = [c.citation_key for c in repository.list_citations("p1")]
    assert keys == ["[2]", "[10]", "(Smith, 2020)"]
    assert repository.list_citations("other") == []


def test_new_citation_is_not_attempted(repository) -> None:
    repository.insert_paper(_paper(), [ParsedCitation(citation_key="[1]")])
    citation = repository.get_citation("p1", "[1]")
    assert citation.enriched is False
    assert citation.enrichment_failed is False
    assert citation.attempted is False
    assert repository.get_citation("p1", "[9]") is None


def test_update_citation_enrichment_writes_terminal_state(repository) -> None:
    repository.insert_paper(_paper(), [ParsedCitation(citation_key="[1]", raw_reference="Ref one")])
    citation = repository.get_citation("p1", "[1]")
    result = EnrichmentResult(
        enriched=True,
        enrichment_failed=False,
        work=CitedWork(title="Cited", abstract="Abs", authors=["X"], year=2017, doi="10.1/x", external_id="s2"),
        relevance_explanation="Because.",
    )
    updated = repository.update_citation_enrichment(citation.id, result)
    assert updated.enriched is True
    assert updated.enrichment_failed is False
    assert updated.cited_title == "Cited"
    assert updated.cited_authors == ["X"]
    assert updated.cited_year == 2017
    assert updated.relevance_explanation == "Because."
    assert updated.enriched_at is not None
    assert updated.attempted is True


def test_update_citation_enrichment_failure(repository) -> None:
    repository.insert_paper(_paper(), [ParsedCitation(citation_key="[1]")])
    citation = repository.get_citation("p1", "[1]")
    updated = repository.update_citation_enrichment(
        citation.id,
        EnrichmentResult(enriched=False, enrichment_failed=True, failure_reason="Paper not found"),
    )
    assert updated.enrichment_failed is True
    assert updated.failure_reason == "Paper not found"
    assert updated.cited_title is None
    assert repository.update_citation_enrichment(9999, EnrichmentResult(enriched=True, enrichment_failed=False)) is None


def test_enrichment_result_rejects_both_flags() -> None:
    with pytest.raises(ValueError):
        EnrichmentResult(enriched=True, enrichment_failed=True)

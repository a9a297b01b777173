"""External bibliographic sources and the lookup strategies that use them."""

from paperlens.integrations.lookup import BibliographicSource, lookup_cited_work, title_overlap
from paperlens.integrations.openalex import OpenAlexClient
from paperlens.integrations.rate_limit import RateLimiter
from paperlens.integrations.semantic_scholar import SemanticScholarClient

__all__ = [
    "BibliographicSource",
    "OpenAlexClient",
    "RateLimiter",
    "SemanticScholarClient",
    "lookup_cited_work",
    "title_overlap",
]

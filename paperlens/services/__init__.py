"""Reader services shared by the CLI and the Flask surface."""

from . import enrichment, explain, ingest, papers, runtime

__all__ = [
    "enrichment",
    "explain",
    "ingest",
    "papers",
    "runtime",
]

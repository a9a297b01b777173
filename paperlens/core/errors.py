"""Error taxonomy shared by the reader services and surfaced by the web layer."""

from __future__ import annotations


class PaperLensError(RuntimeError):
    """Base error for reader-level failures."""


class NotFoundError(PaperLensError):
    """Raised when a paper or citation does not exist."""

    def __init__(self, resource: str, identifier: str) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class InputValidationError(PaperLensError, ValueError):
    """Raised for malformed service input (empty text, missing ids)."""


class ExternalLookupError(PaperLensError):
    """Raised when an external lookup fails at the transport level or times out."""


class PersistenceError(PaperLensError):
    """Raised when the storage layer fails."""


class UnreadablePdfError(PaperLensError):
    """Raised when a PDF yields no extractable text."""

"""PDF and text file loading for ingestion, backed by the Poppler command-line tools."""

from __future__ import annotations

import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from paperlens.core.errors import UnreadablePdfError

PDF_TOOL_TIMEOUT_SECONDS = 30


@dataclass(frozen=True)
class PdfText:
    """Text extracted from one PDF.

    Attributes:
        text: Full document text with pages separated by form feeds.
        page_count: Page count reported by ``pdfinfo`` (0 when unknown).
        title: Document-info title, when the PDF carries one.
    """

    text: str
    page_count: int
    title: Optional[str] = None


def run_pdftotext(path: Path) -> str:
    """Extract text from a PDF using ``pdftotext``.

    Raises:
        UnreadablePdfError: If the tool is missing, times out, or rejects the file.
    """
    try:
        result = subprocess.run(
            ["pdftotext", "-q", "-enc", "UTF-8", str(path), "-"],
            check=True,
            capture_output=True,
            text=False,
            timeout=PDF_TOOL_TIMEOUT_SECONDS,
        )
    except FileNotFoundError as exc:
        raise UnreadablePdfError("pdftotext is not available. Install Poppler to read PDFs.") from exc
    except subprocess.TimeoutExpired as exc:
        raise UnreadablePdfError(f"pdftotext timed out after {PDF_TOOL_TIMEOUT_SECONDS}s") from exc
    except subprocess.CalledProcessError as exc:
        raise UnreadablePdfError("pdftotext could not read the file; it may not be a valid PDF.") from exc
    return result.stdout.decode("utf-8", errors="replace")


def run_pdfinfo(path: Path) -> Dict[str, str]:
    """Document-info fields from ``pdfinfo`` keyed by lowercase name; empty on failure."""
    try:
        result = subprocess.run(
            ["pdfinfo", str(path)],
            check=True,
            capture_output=True,
            text=True,
            timeout=PDF_TOOL_TIMEOUT_SECONDS,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, subprocess.CalledProcessError):
        return {}
    info: Dict[str, str] = {}
    for raw_line in result.stdout.splitlines():
        if ":" not in raw_line:
            continue
        key, value = raw_line.split(":", 1)
        info[key.strip().lower()] = value.strip()
    return info


def pdf_text_from_path(path: Path) -> PdfText:
    """Extract text, page count, and title from a PDF on disk.

    Raises:
        UnreadablePdfError: If no text comes out; usually a scanned document.
    """
    text = run_pdftotext(path)
    if not text.strip():
        raise UnreadablePdfError("No text could be extracted from the PDF; it is likely a scanned image.")
    info = run_pdfinfo(path)
    try:
        pages = int(info.get("pages", "0"))
    except ValueError:
        pages = 0
    title = info.get("title", "").strip()
    if title.lower() in {"", "untitled", "none", "unknown"}:
        title = ""
    return PdfText(text=text, page_count=pages, title=title or None)


def extract_pdf_text(data: bytes) -> PdfText:
    """Extract text from PDF bytes (an upload body)."""
    if not data:
        raise UnreadablePdfError("The uploaded PDF is empty.")
    with tempfile.TemporaryDirectory(prefix="paperlens-") as tmp:
        path = Path(tmp) / "upload.pdf"
        path.write_bytes(data)
        return pdf_text_from_path(path)


def load_text_file(path: Path, encoding: str = "utf-8") -> str:
    """Read a text file, replacing undecodable bytes."""
    return path.read_text(encoding=encoding, errors="replace")

# ingest.py

from __future__ import annotations

import io
import logging
from typing import Any, List, Optional

import pypdf
from pypdf.errors import PyPdfError

from errors import ExtractionError, LibraryNotReadyError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

EXTRACTION_HINT = (
    "Failed to extract text from PDF. "
    "It might be password protected or scanned image only."
)


def is_pdf_upload(name: Optional[str], mime_type: Optional[str]) -> bool:
    """Accept declared PDFs; fall back to the extension when the browser sends no type."""
    if mime_type:
        if mime_type == PDF_MIME_TYPE:
            return True
        if mime_type != "application/octet-stream":
            return False
    return (name or "").lower().endswith(".pdf")


def title_from_filename(name: str) -> str:
    if name.lower().endswith(".pdf"):
        return name[: -len(".pdf")]
    return name


# -----------------------
# PDF backend
# -----------------------

class PypdfBackend:
    """PDF capability over pypdf: load, count pages, read one page's text.

    Must be initialised before use. Page numbers are 1-based.
    """

    def __init__(self) -> None:
        self._ready = False

    def initialize(self) -> "PypdfBackend":
        if not self._ready:
            logger.info("PDF backend ready (pypdf %s)", pypdf.__version__)
            self._ready = True
        return self

    def ready(self) -> bool:
        return self._ready

    def load_document(self, data: bytes) -> pypdf.PdfReader:
        try:
            reader = pypdf.PdfReader(io.BytesIO(data))
        except (PyPdfError, ValueError, OSError) as exc:
            logger.warning("Could not decode PDF: %s", exc)
            raise ExtractionError(EXTRACTION_HINT) from exc

        if reader.is_encrypted:
            try:
                unlocked = reader.decrypt("")
            except (PyPdfError, NotImplementedError) as exc:
                raise ExtractionError(EXTRACTION_HINT) from exc
            if unlocked == pypdf.PasswordType.NOT_DECRYPTED:
                logger.warning("PDF is password protected")
                raise ExtractionError(EXTRACTION_HINT)
        return reader

    def page_count(self, handle: pypdf.PdfReader) -> int:
        try:
            return len(handle.pages)
        except PyPdfError as exc:
            raise ExtractionError(EXTRACTION_HINT) from exc

    def page_text(self, handle: Any, page_number: int) -> str:
        items: List[str] = []

        def collect(text, cm, tm, font_dict, font_size):
            text = text.strip()
            if text:
                items.append(text)

        try:
            handle.pages[page_number - 1].extract_text(visitor_text=collect)
        except PyPdfError as exc:
            raise ExtractionError(EXTRACTION_HINT) from exc
        return " ".join(items)


# -----------------------
# Extraction
# -----------------------

def extract_pages(data: bytes, backend) -> List[str]:
    """Return the text of every page, in page order."""
    if not backend.ready():
        raise LibraryNotReadyError(
            "PDF library is still loading. Please try again in a moment."
        )

    handle = backend.load_document(data)
    count = backend.page_count(handle)
    pages = [backend.page_text(handle, number) for number in range(1, count + 1)]

    if not any(page.strip() for page in pages):
        logger.warning("PDF has %d page(s) but no text layer", count)
        raise ExtractionError(EXTRACTION_HINT)
    return pages


def extract(data: bytes, backend) -> str:
    pages = extract_pages(data, backend)
    logger.info("Extracted %d page(s) from PDF", len(pages))
    return "\n\n".join(pages)

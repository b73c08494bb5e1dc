"""Plain-text extraction for uploaded documents (PDF and plain text)."""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

import pdfplumber

from .errors import ExtractionFailedError, UnsupportedFormatError
from .logger import Log

PDF_MIME_TYPE = "application/pdf"
TEXT_MIME_TYPE = "text/plain"
WORD_MIME_TYPES = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)
TEXT_SUFFIXES = (".txt", ".text", ".md")

WORD_UNSUPPORTED_MESSAGE = "DOC/DOCX support coming soon. Please use PDF or TXT files."
UNSUPPORTED_MESSAGE = "Unsupported file type"


def _normalize_mime(mime_type: Optional[str]) -> str:
    """Lower-case the media type and drop parameters such as charset."""
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


@contextmanager
def owned_file(file_path: Union[str, Path]) -> Iterator[Path]:
    """Yield ``file_path`` and delete it when the block exits, however it exits."""
    path = Path(file_path)
    try:
        yield path
    finally:
        if path.exists():
            os.unlink(path)
            Log.debug("Removed uploaded file %s", path)


def _read_pdf(path: Path) -> str:
    try:
        with pdfplumber.open(path) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as exc:
        raise ExtractionFailedError(f"Could not read PDF: {exc}") from exc
    return "\n".join(pages)


def _read_text(path: Path) -> str:
    # Decode bytes directly so line endings are preserved exactly.
    return path.read_bytes().decode("utf-8", errors="replace")


def extract_text(file_path: Union[str, Path], mime_type: Optional[str], file_name: str = "") -> str:
    """Extract plain text from an uploaded file and remove the file afterwards.

    The file at ``file_path`` is consumed: it is deleted whether extraction
    succeeds or fails.

    Args:
        file_path: Location of the uploaded file on disk.
        mime_type: MIME type declared by the client.
        file_name: Original filename; used to recognize plain-text suffixes.

    Returns:
        The extracted text. May be empty or whitespace only.

    Raises:
        UnsupportedFormatError: for DOC/DOCX and any unknown type.
        ExtractionFailedError: when a PDF cannot be decoded.
    """
    kind = _normalize_mime(mime_type)
    name = (file_name or "").lower()

    with owned_file(file_path) as path:
        if kind == PDF_MIME_TYPE:
            text = _read_pdf(path)
        elif kind == TEXT_MIME_TYPE or name.endswith(TEXT_SUFFIXES):
            text = _read_text(path)
        elif kind in WORD_MIME_TYPES:
            raise UnsupportedFormatError(WORD_UNSUPPORTED_MESSAGE)
        else:
            raise UnsupportedFormatError(UNSUPPORTED_MESSAGE)

    Log.info("Extracted %d characters from %s (%s)", len(text), file_name or "upload", kind or "unknown")
    return text

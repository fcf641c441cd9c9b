"""Plain-text extraction for the supported document formats.

PDFs are read with PyMuPDF (fitz), Word documents with python-docx and text
files are decoded as UTF-8. Every library or IO error is wrapped in
:class:`ExtractionFailure` so callers deal with one exception type.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterator

import docx
import fitz  # PyMuPDF

from docscope.errors import ExtractionFailure, UnsupportedFormat
from docscope.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)


def iter_pdf_pages(path: Path) -> Iterator[str]:
    """Yield normalized text page by page."""
    doc = fitz.open(str(path))
    try:
        for index in range(len(doc)):
            text = doc[index].get_text() or ""
            normalized = normalize_whitespace(text.splitlines())
            if normalized:
                yield normalized
    finally:
        doc.close()


def extract_pdf(path: Path) -> str:
    return "\n".join(iter_pdf_pages(path))


def extract_plain_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def extract_word(path: Path) -> str:
    document = docx.Document(str(path))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


EXTRACTORS: Dict[str, Callable[[Path], str]] = {
    ".pdf": extract_pdf,
    ".txt": extract_plain_text,
    ".docx": extract_word,
    ".doc": extract_word,
}


def extract_text(path: Path) -> str:
    """Extract the plain text of ``path``.

    Raises:
        UnsupportedFormat: the extension has no extractor.
        ExtractionFailure: the extractor raised for this file.
    """
    path = Path(path)
    extractor = EXTRACTORS.get(path.suffix.lower())
    if extractor is None:
        raise UnsupportedFormat(path)

    try:
        return extractor(path)
    except Exception as exc:
        LOGGER.debug("Extractor for %s raised", path, exc_info=True)
        raise ExtractionFailure(path, str(exc)) from exc

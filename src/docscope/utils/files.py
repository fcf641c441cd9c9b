"""Utility helpers for working with files."""

from __future__ import annotations

import base64
import os
from datetime import datetime, timezone
from pathlib import Path

SUPPORTED_EXTENSIONS = frozenset({".pdf", ".txt", ".doc", ".docx"})


def is_supported(path: Path) -> bool:
    """Return True for extensions DocScope can extract text from."""
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def relative_label(path: Path, base_dir: Path) -> str:
    """Path of ``path`` relative to ``base_dir``, with forward slashes."""
    return Path(os.path.relpath(path, base_dir)).as_posix()


def encode_document_id(relative_path: str) -> str:
    """Encode a relative path into a URL-safe document ID.

    Base64 is injective and the stripped ``=`` padding is implied by the
    length, so distinct paths always give distinct IDs.
    """
    encoded = base64.urlsafe_b64encode(relative_path.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def decode_document_id(doc_id: str) -> str:
    padding = "=" * (-len(doc_id) % 4)
    return base64.urlsafe_b64decode(doc_id + padding).decode("utf-8")


def document_id(path: Path, base_dir: Path) -> str:
    return encode_document_id(relative_label(path, base_dir))


def timestamp_to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)

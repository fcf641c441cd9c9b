"""Shared fixtures for the DocScope test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import pytest

from docscope.index.store import DocumentIndex
from docscope.models import Document

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def build_document(relative_path: str, text: str = "", size: int | None = None) -> Document:
    path = Path("/base") / relative_path
    return Document(
        id=relative_path,
        filename=path.name,
        path=path,
        relative_path=relative_path,
        text=text,
        size=len(text) if size is None else size,
        modified_at=NOW,
        indexed_at=NOW,
    )


@pytest.fixture
def make_document() -> Callable[..., Document]:
    return build_document


@pytest.fixture
def index() -> DocumentIndex:
    return DocumentIndex()

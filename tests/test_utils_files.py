"""Tests for file utility functions."""

from __future__ import annotations

from datetime import timezone
from pathlib import Path

import pytest

from docscope.utils.files import (
    decode_document_id,
    document_id,
    encode_document_id,
    is_supported,
    relative_label,
    timestamp_to_datetime,
)


class TestIsSupported:
    """Test is_supported function."""

    @pytest.mark.parametrize("name", ["a.pdf", "b.txt", "c.doc", "d.docx", "E.PDF", "f.DocX"])
    def test_supported_extensions(self, name: str) -> None:
        assert is_supported(Path(name))

    @pytest.mark.parametrize("name", ["a.md", "b.xlsx", "c", "d.pdf.bak", ".DS_Store"])
    def test_unsupported_extensions(self, name: str) -> None:
        assert not is_supported(Path(name))


class TestRelativeLabel:
    def test_inside_base(self, tmp_path: Path) -> None:
        assert relative_label(tmp_path / "a" / "b.txt", tmp_path) == "a/b.txt"

    def test_outside_base(self, tmp_path: Path) -> None:
        base = tmp_path / "base"
        assert relative_label(tmp_path / "other" / "c.txt", base) == "../other/c.txt"


class TestDocumentId:
    """Test document ID encoding."""

    def test_is_deterministic(self, tmp_path: Path) -> None:
        path = tmp_path / "docs" / "report.pdf"

        assert document_id(path, tmp_path) == document_id(path, tmp_path)

    def test_is_path_safe(self) -> None:
        doc_id = encode_document_id("some dir/??>>/file name.pdf")

        assert "/" not in doc_id
        assert "+" not in doc_id
        assert "=" not in doc_id

    def test_round_trip(self) -> None:
        relative = "Projects/Ünïcode/report (final).docx"

        assert decode_document_id(encode_document_id(relative)) == relative

    def test_distinct_paths_give_distinct_ids(self) -> None:
        """Paths that collided under a lossy encoding stay distinct."""
        paths = ["a/b.txt", "a/c.txt", "ab.txt", "a", "aa", "aaa", "docs/>>", "docs/??"]
        ids = {encode_document_id(path) for path in paths}

        assert len(ids) == len(paths)


def test_timestamp_to_datetime_is_utc() -> None:
    moment = timestamp_to_datetime(0)

    assert moment.tzinfo == timezone.utc
    assert moment.year == 1970

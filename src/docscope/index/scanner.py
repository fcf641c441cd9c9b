"""Folder scanning and single-file indexing."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from docscope.errors import ExtractionFailure, UnsupportedFormat
from docscope.index.store import DocumentIndex
from docscope.ingestion.extractors import extract_text
from docscope.models import Document, ScanReport
from docscope.utils.files import document_id, is_supported, relative_label, timestamp_to_datetime
from docscope.utils.patterns import should_exclude

LOGGER = logging.getLogger(__name__)

Extractor = Callable[[Path], str]


@dataclass(slots=True)
class _Entry:
    path: Path
    is_dir: bool
    is_file: bool


def _list_directory(directory: Path) -> List[_Entry]:
    with os.scandir(directory) as iterator:
        entries = [
            _Entry(
                path=Path(entry.path),
                is_dir=entry.is_dir(follow_symlinks=False),
                is_file=entry.is_file(),
            )
            for entry in iterator
        ]
    return sorted(entries, key=lambda entry: entry.path.name)


class FolderScanner:
    """Walks directory trees and feeds extracted documents into an index."""

    def __init__(
        self,
        index: DocumentIndex,
        *,
        base_dir: Optional[Path] = None,
        extractor: Extractor = extract_text,
    ) -> None:
        self.index = index
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.extractor = extractor

    def document_id_for(self, path: Path) -> str:
        return document_id(Path(os.path.abspath(path)), self.base_dir)

    async def scan(self, root: Path, exclusions: Sequence[str] = ()) -> ScanReport:
        """Index every supported file below ``root``."""
        report = ScanReport()
        root = Path(os.path.abspath(root))
        if should_exclude(root, exclusions):
            LOGGER.debug("Folder %s is excluded", root)
            return report

        await self._scan_directory(root, exclusions, report)
        return report

    async def _scan_directory(
        self, directory: Path, exclusions: Sequence[str], report: ScanReport
    ) -> None:
        try:
            entries = await asyncio.to_thread(_list_directory, directory)
        except OSError as exc:
            LOGGER.error("Error indexing folder %s: %s", directory, exc)
            return

        for entry in entries:
            if should_exclude(entry.path, exclusions):
                LOGGER.debug("Excluded: %s", entry.path)
                continue
            if entry.is_dir:
                await self._scan_directory(entry.path, exclusions, report)
            elif entry.is_file:
                status = await self.index_file(entry.path)
                report.increment(status, entry.path)

    def _read(self, path: Path) -> Tuple[str, os.stat_result]:
        stat = path.stat()
        return self.extractor(path), stat

    async def index_file(self, path: Path) -> str:
        """Extract one file and store it in the index.

        Returns ``inserted``, ``updated``, ``skipped`` (unsupported format) or
        ``failed``. A failure never touches an existing entry for the path.
        """
        path = Path(os.path.abspath(path))
        if not is_supported(path):
            LOGGER.debug("Skipping unsupported file %s", path)
            return "skipped"

        try:
            text, stat = await asyncio.to_thread(self._read, path)
        except UnsupportedFormat:
            return "skipped"
        except ExtractionFailure as exc:
            LOGGER.error("Failed to index %s: %s", path.name, exc.reason)
            return "failed"
        except OSError as exc:
            LOGGER.error("Failed to index %s: %s", path.name, exc)
            return "failed"

        document = self.build_document(path, text, size=stat.st_size, mtime=stat.st_mtime)
        status = self.index.put(document)
        LOGGER.info("Indexed: %s", path.name)
        return status

    def build_document(self, path: Path, text: str, *, size: int, mtime: float) -> Document:
        return Document(
            id=document_id(path, self.base_dir),
            filename=path.name,
            path=path,
            relative_path=relative_label(path, self.base_dir),
            text=text,
            size=size,
            modified_at=timestamp_to_datetime(mtime),
            indexed_at=datetime.now(timezone.utc),
        )

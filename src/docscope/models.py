"""Core DocScope data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List


@dataclass(slots=True)
class DocumentSummary:
    """Listing view of a document, without its text."""

    id: str
    filename: str
    relative_path: str
    size: int
    modified_at: datetime
    indexed_at: datetime


@dataclass(slots=True)
class Document:
    """One indexed file and the text extracted from it."""

    id: str
    filename: str
    path: Path
    relative_path: str
    text: str
    size: int
    modified_at: datetime
    indexed_at: datetime

    def summary(self) -> DocumentSummary:
        return DocumentSummary(
            id=self.id,
            filename=self.filename,
            relative_path=self.relative_path,
            size=self.size,
            modified_at=self.modified_at,
            indexed_at=self.indexed_at,
        )


@dataclass(slots=True)
class IndexStats:
    total_documents: int = 0
    total_size: int = 0
    total_words: int = 0
    is_indexing: bool = False
    is_watching: bool = False


@dataclass(slots=True)
class ScanReport:
    """Outcome counters for a folder scan."""

    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    processed_files: List[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "inserted":
            self.inserted += 1
        elif status == "updated":
            self.updated += 1
        elif status == "skipped":
            self.skipped += 1
            return
        else:
            self.failed += 1
        self.processed_files.append(path)

    def merge(self, other: "ScanReport") -> None:
        self.inserted += other.inserted
        self.updated += other.updated
        self.skipped += other.skipped
        self.failed += other.failed
        self.processed_files.extend(other.processed_files)

    @property
    def indexed(self) -> int:
        return self.inserted + self.updated


@dataclass(slots=True)
class SearchMatch:
    position: int
    context: str
    match_text: str


@dataclass(slots=True)
class SearchResult:
    document_id: str
    filename: str
    relative_path: str
    matches: List[SearchMatch]


@dataclass(slots=True)
class DuplicateEntry:
    id: str
    filename: str
    path: Path
    relative_path: str
    size: int
    modified_at: datetime


@dataclass(slots=True)
class DuplicateGroup:
    """Documents sharing the same filename."""

    filename: str
    count: int
    documents: List[DuplicateEntry]

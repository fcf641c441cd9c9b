"""The DocScope engine: one index and the components that read and write it."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from docscope.ai.assistant import ChatAssistant
from docscope.compare.differ import ComparisonReport
from docscope.compare.report import compare_texts
from docscope.config import AppConfig, split_csv
from docscope.errors import (
    AssistantUnavailable,
    DocumentNotFound,
    InvalidRequest,
    PathNotFound,
    ReindexConflict,
)
from docscope.index.duplicates import DuplicateDetector
from docscope.index.scanner import Extractor, FolderScanner
from docscope.index.search import Searcher
from docscope.index.store import DocumentIndex
from docscope.index.watcher import ChangeWatcher
from docscope.ingestion.extractors import extract_text
from docscope.models import Document, DocumentSummary, DuplicateGroup, IndexStats, ScanReport, SearchResult
from docscope.utils.patterns import is_excluded_below, resolve_folders

LOGGER = logging.getLogger(__name__)

Specs = str | Sequence[str] | None


class DocScopeService:
    """Coordinates indexing, watching, search, duplicates and comparison."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        index: DocumentIndex | None = None,
        extractor: Extractor = extract_text,
        assistant: ChatAssistant | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.index = index if index is not None else DocumentIndex()
        self.extractor = extractor
        self.assistant = assistant
        self.base_dir = self.config.resolve_base_dir()
        self.scanner = FolderScanner(self.index, base_dir=self.base_dir, extractor=extractor)
        self.searcher = Searcher(self.index, context_chars=self.config.context_chars)
        self.duplicates = DuplicateDetector(self.index)
        self.watcher: Optional[ChangeWatcher] = None
        self.folders: List[str] = list(self.config.folders)
        self.exclusions: List[str] = list(self.config.exclude_patterns)
        self._reindex_lock = asyncio.Lock()

    @property
    def is_indexing(self) -> bool:
        return self._reindex_lock.locked()

    @property
    def is_watching(self) -> bool:
        return self.watcher is not None and self.watcher.is_active

    def _resolve_roots(self, folders: Sequence[str]) -> List[Path]:
        roots: List[Path] = []
        for folder in resolve_folders(folders):
            root = Path(os.path.abspath(folder))
            if not root.is_dir():
                LOGGER.warning("Skipping %s: %s", folder, PathNotFound(root))
                continue
            roots.append(root)
        return roots

    async def _scan_into(self, scanner: FolderScanner, roots: Sequence[Path]) -> ScanReport:
        report = ScanReport()
        for root in roots:
            report.merge(await scanner.scan(root, self.exclusions))
        return report

    def _apply_specs(self, folder_specs: Specs, exclusion_specs: Specs) -> None:
        if folder_specs is not None:
            self.folders = split_csv(folder_specs)
        if exclusion_specs is not None:
            self.exclusions = split_csv(exclusion_specs)
        if not self.folders:
            raise InvalidRequest("At least one folder is required")

    async def initialize(
        self,
        folder_specs: Specs = None,
        watch_enabled: bool | None = None,
        exclusion_specs: Specs = None,
    ) -> ScanReport:
        """Index the configured folders and optionally start watching them."""
        if self._reindex_lock.locked():
            raise ReindexConflict()
        self._apply_specs(folder_specs, exclusion_specs)
        watch = self.config.watch if watch_enabled is None else watch_enabled

        async with self._reindex_lock:
            LOGGER.info("Indexing documents from %d folder(s): %s", len(self.folders), ", ".join(self.folders))
            if self.exclusions:
                LOGGER.info("Excluding patterns: %s", ", ".join(self.exclusions))
            roots = self._resolve_roots(self.folders)
            report = await self._scan_into(self.scanner, roots)

        if watch:
            await self._restart_watcher(roots)
        LOGGER.info("Indexed %d documents", len(self.index))
        return report

    async def reindex(self, folder_specs: Specs = None, exclusion_specs: Specs = None) -> ScanReport:
        """Rebuild the index from scratch.

        The new set is built aside and swapped in at once. A request made while
        another re-index runs is rejected with :class:`ReindexConflict`.
        """
        if self._reindex_lock.locked():
            raise ReindexConflict()
        async with self._reindex_lock:
            self._apply_specs(folder_specs, exclusion_specs)
            LOGGER.info("Re-indexing all documents...")
            roots = self._resolve_roots(self.folders)
            staging = DocumentIndex()
            scanner = FolderScanner(staging, base_dir=self.base_dir, extractor=self.extractor)
            watcher = self.watcher if self.is_watching else None
            if watcher is not None:
                watcher.begin_tracking()
            try:
                report = await self._scan_into(scanner, roots)
                if watcher is not None:
                    touched = watcher.take_touched()
                    while touched:
                        await self._refresh_paths(scanner, roots, touched)
                        touched = watcher.take_touched()
                self.index.replace_all(staging.documents())
            finally:
                if watcher is not None:
                    watcher.end_tracking()

        if self.watcher is not None and self.is_watching:
            if self.watcher.roots != roots or self.watcher.exclusions != self.exclusions:
                await self.watcher.drain()
                await self._restart_watcher(roots)
        LOGGER.info("Re-indexed %d documents", len(self.index))
        return report

    async def _refresh_paths(self, scanner: FolderScanner, roots: Sequence[Path], paths: Iterable[Path]) -> None:
        """Bring ``paths`` in the staging index up to date with the filesystem."""
        for path in sorted(paths):
            root = next((root for root in roots if root == path or root in path.parents), None)
            if root is not None and path.is_file() and not is_excluded_below(path, root, self.exclusions):
                await scanner.index_file(path)
            else:
                scanner.index.remove(scanner.document_id_for(path))
                scanner.index.remove_under(path)

    async def _restart_watcher(self, roots: Sequence[Path]) -> None:
        await self.stop_watching()
        self.watcher = ChangeWatcher(
            self.scanner,
            self.index,
            exclusions=self.exclusions,
            stability_threshold=self.config.stability_threshold,
            poll_interval=self.config.poll_interval,
        )
        self.watcher.start(roots)

    async def stop_watching(self) -> None:
        if self.watcher is not None:
            await self.watcher.stop()
            self.watcher = None

    def list_documents(self) -> List[DocumentSummary]:
        return self.index.all()

    def get_document(self, doc_id: str) -> Optional[Document]:
        return self.index.get(doc_id)

    def require_document(self, doc_id: str) -> Document:
        document = self.index.get(doc_id)
        if document is None:
            raise DocumentNotFound(doc_id)
        return document

    def search(self, query: str) -> List[SearchResult]:
        if not query or not query.strip():
            raise InvalidRequest("Search query is required")
        return self.searcher.search(query)

    def find_duplicates(self) -> List[DuplicateGroup]:
        return self.duplicates.find_duplicates()

    def compare(self, text_a: str, text_b: str, label_a: str, label_b: str) -> ComparisonReport:
        return compare_texts(text_a, text_b, label_a, label_b)

    def compare_documents(self, id_a: str, id_b: str) -> ComparisonReport:
        first = self.require_document(id_a)
        second = self.require_document(id_b)
        return compare_texts(first.text, second.text, first.relative_path, second.relative_path)

    def stats(self) -> IndexStats:
        return self.index.stats(is_indexing=self.is_indexing, is_watching=self.is_watching)

    def _require_assistant(self) -> ChatAssistant:
        if self.assistant is None:
            raise AssistantUnavailable("No language model is configured; set OPENAI_API_KEY")
        return self.assistant

    async def translate(self, doc_id: str, language: str) -> str:
        if not language:
            raise InvalidRequest("Target language is required")
        assistant = self._require_assistant()
        return await assistant.translate(self.require_document(doc_id).text, language)

    async def summarize(self, doc_id: str, length: str = "medium") -> str:
        assistant = self._require_assistant()
        return await assistant.summarize(self.require_document(doc_id).text, length)

    async def ai_compare(self, id_a: str, id_b: str) -> str:
        assistant = self._require_assistant()
        first = self.require_document(id_a)
        second = self.require_document(id_b)
        return await assistant.compare(first.text, second.text, first.relative_path, second.relative_path)

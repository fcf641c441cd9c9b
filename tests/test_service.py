"""Tests for the DocScope service facade."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docscope.config import AppConfig
from docscope.errors import AssistantUnavailable, DocumentNotFound, InvalidRequest, ReindexConflict
from docscope.index.watcher import CHANGED, DELETED
from docscope.ingestion.extractors import extract_text
from docscope.service import DocScopeService
from docscope.utils.files import encode_document_id


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    _write(root / "alpha.txt", "The alpha report mentions budget twice: budget.")
    _write(root / "beta.txt", "line1\nline2")
    _write(root / "archive" / "beta.txt", "line1\nline3")
    _write(root / ".git" / "config.txt", "ignored")
    return root


@pytest.fixture
def service(docs: Path, tmp_path: Path) -> DocScopeService:
    config = AppConfig(folders=[str(docs)], exclude_patterns=[".git"], base_dir=tmp_path)
    return DocScopeService(config)


class TestIndexing:
    """Test initial indexing and re-indexing."""

    @pytest.mark.asyncio
    async def test_initialize(self, service: DocScopeService) -> None:
        report = await service.initialize()

        assert report.inserted == 3
        assert sorted(doc.relative_path for doc in service.list_documents()) == [
            "docs/alpha.txt",
            "docs/archive/beta.txt",
            "docs/beta.txt",
        ]
        assert service.is_watching is False

    @pytest.mark.asyncio
    async def test_missing_folder_is_skipped(self, service: DocScopeService, docs: Path, tmp_path: Path) -> None:
        report = await service.initialize([str(tmp_path / "absent"), str(docs)])

        assert report.inserted == 3

    @pytest.mark.asyncio
    async def test_empty_folder_list_rejected(self, service: DocScopeService) -> None:
        with pytest.raises(InvalidRequest):
            await service.initialize(" , ")

    @pytest.mark.asyncio
    async def test_reindex_replaces_content(self, service: DocScopeService, docs: Path) -> None:
        await service.initialize()
        (docs / "alpha.txt").unlink()
        _write(docs / "gamma.txt", "new")

        report = await service.reindex()

        assert report.inserted == 3
        assert sorted(doc.filename for doc in service.list_documents()) == ["beta.txt", "beta.txt", "gamma.txt"]

    @pytest.mark.asyncio
    async def test_reindex_with_new_exclusions(self, service: DocScopeService) -> None:
        await service.initialize()

        await service.reindex(exclusion_specs="archive,.git")

        assert service.exclusions == ["archive", ".git"]
        assert len(service.list_documents()) == 2

    @pytest.mark.asyncio
    async def test_concurrent_reindex_rejected(self, service: DocScopeService) -> None:
        await service.initialize()

        results = await asyncio.gather(service.reindex(), service.reindex(), return_exceptions=True)

        assert sum(isinstance(result, ReindexConflict) for result in results) == 1
        assert len(service.list_documents()) == 3
        assert service.is_indexing is False

    @pytest.mark.asyncio
    async def test_watch_lifecycle(self, service: DocScopeService) -> None:
        await service.initialize(watch_enabled=True)

        assert service.is_watching is True
        assert service.stats().is_watching is True

        await service.stop_watching()
        assert service.is_watching is False


class TestQueries:
    """Test read operations over an indexed service."""

    @pytest.mark.asyncio
    async def test_search(self, service: DocScopeService) -> None:
        await service.initialize()

        results = service.search("BUDGET")

        assert len(results) == 1
        assert results[0].filename == "alpha.txt"
        assert len(results[0].matches) == 2

    def test_blank_query_rejected(self, service: DocScopeService) -> None:
        with pytest.raises(InvalidRequest):
            service.search("   ")

    @pytest.mark.asyncio
    async def test_duplicates(self, service: DocScopeService) -> None:
        await service.initialize()

        groups = service.find_duplicates()

        assert [(group.filename, group.count) for group in groups] == [("beta.txt", 2)]

    @pytest.mark.asyncio
    async def test_compare_documents(self, service: DocScopeService) -> None:
        await service.initialize()

        report = service.compare_documents(
            encode_document_id("docs/beta.txt"), encode_document_id("docs/archive/beta.txt")
        )

        assert report.label_a == "docs/beta.txt"
        assert report.label_b == "docs/archive/beta.txt"
        assert report.stats.similarity_percent == 33

    def test_compare_unknown_document(self, service: DocScopeService) -> None:
        with pytest.raises(DocumentNotFound):
            service.compare_documents("nope", "nada")

    def test_compare_texts(self, service: DocScopeService) -> None:
        report = service.compare("same", "same", "left", "right")

        assert report.identical is True

    @pytest.mark.asyncio
    async def test_stats(self, service: DocScopeService) -> None:
        await service.initialize()

        stats = service.stats()

        assert stats.total_documents == 3
        assert stats.total_words == 7 + 2 + 2
        assert stats.is_indexing is False


class TestAssistantOperations:
    """Test operations delegated to the language model."""

    def _service_with_assistant(self, service: DocScopeService) -> MagicMock:
        assistant = MagicMock()
        assistant.translate = AsyncMock(return_value="translated")
        assistant.summarize = AsyncMock(return_value="summary")
        assistant.compare = AsyncMock(return_value="analysis")
        service.assistant = assistant
        return assistant

    @pytest.mark.asyncio
    async def test_translate(self, service: DocScopeService) -> None:
        await service.initialize()
        assistant = self._service_with_assistant(service)

        result = await service.translate(encode_document_id("docs/beta.txt"), "Spanish")

        assert result == "translated"
        assistant.translate.assert_awaited_once_with("line1\nline2", "Spanish")

    @pytest.mark.asyncio
    async def test_summarize_and_compare(self, service: DocScopeService) -> None:
        await service.initialize()
        assistant = self._service_with_assistant(service)
        first = encode_document_id("docs/beta.txt")
        second = encode_document_id("docs/archive/beta.txt")

        assert await service.summarize(first, "short") == "summary"
        assert await service.ai_compare(first, second) == "analysis"
        assistant.compare.assert_awaited_once_with(
            "line1\nline2", "line1\nline3", "docs/beta.txt", "docs/archive/beta.txt"
        )

    @pytest.mark.asyncio
    async def test_without_assistant(self, service: DocScopeService) -> None:
        with pytest.raises(AssistantUnavailable):
            await service.summarize("anything")

    @pytest.mark.asyncio
    async def test_translate_requires_language(self, service: DocScopeService) -> None:
        self._service_with_assistant(service)

        with pytest.raises(InvalidRequest):
            await service.translate("anything", "")


class _GatedExtractor:
    """Blocks on ``b.txt`` once armed, until released."""

    def __init__(self) -> None:
        self.armed = False
        self.started = threading.Event()
        self.release = threading.Event()

    def __call__(self, path: Path) -> str:
        if self.armed and path.name == "b.txt":
            self.started.set()
            self.release.wait(5)
        return extract_text(path)


class TestReindexWhileWatching:
    """Changes applied by the watcher during a re-index survive the swap."""

    @pytest.mark.asyncio
    async def test_changes_during_reindex_are_kept(self, tmp_path: Path) -> None:
        root = tmp_path / "live"
        _write(root / "a.txt", "first")
        _write(root / "alpha.txt", "original alpha")
        _write(root / "b.txt", "second")
        config = AppConfig(
            folders=[str(root)],
            exclude_patterns=[],
            base_dir=tmp_path,
            stability_threshold=0.05,
            poll_interval=0.01,
        )
        gate = _GatedExtractor()
        service = DocScopeService(config, extractor=gate)
        await service.initialize(watch_enabled=True)
        watcher = service.watcher

        gate.armed = True
        task = asyncio.create_task(service.reindex())
        try:
            assert await asyncio.to_thread(gate.started.wait, 5)

            (root / "a.txt").unlink()
            (root / "alpha.txt").write_text("revised alpha", encoding="utf-8")
            watcher.submit(DELETED, root / "a.txt", root)
            watcher.submit(CHANGED, root / "alpha.txt", root)
            await watcher.drain()
            assert "a.txt" not in [doc.filename for doc in service.list_documents()]
        finally:
            gate.release.set()
            await task

        assert sorted(doc.filename for doc in service.list_documents()) == ["alpha.txt", "b.txt"]
        assert service.get_document(encode_document_id("live/alpha.txt")).text == "revised alpha"
        assert service.watcher is watcher
        await service.stop_watching()

    @pytest.mark.asyncio
    async def test_tracking_stops_after_reindex(self, service: DocScopeService) -> None:
        await service.initialize(watch_enabled=True)

        await service.reindex()

        assert service.watcher.take_touched() == set()
        await service.stop_watching()

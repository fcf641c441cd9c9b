"""Tests for filesystem change watching."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from watchdog.events import FileMovedEvent

from docscope.index.scanner import FolderScanner
from docscope.index.store import DocumentIndex
from docscope.index.watcher import (
    CHANGED,
    DELETED,
    ChangeWatcher,
    _EventForwarder,
    wait_until_settled,
)
from docscope.utils.files import encode_document_id


@pytest.fixture
def index() -> DocumentIndex:
    return DocumentIndex()


@pytest.fixture
def watcher(tmp_path: Path, index: DocumentIndex) -> ChangeWatcher:
    scanner = FolderScanner(index, base_dir=tmp_path)
    return ChangeWatcher(
        scanner,
        index,
        exclusions=["drafts", "*.tmp.txt"],
        stability_threshold=0.05,
        poll_interval=0.01,
        observer_factory=MagicMock,
    )


class TestWaitUntilSettled:
    @pytest.mark.asyncio
    async def test_stable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("content", encoding="utf-8")

        assert await wait_until_settled(path, stability_threshold=0.03, poll_interval=0.01) is True

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path: Path) -> None:
        assert await wait_until_settled(tmp_path / "nope.txt", poll_interval=0.01) is False


class TestStart:
    @pytest.mark.asyncio
    async def test_schedules_roots(self, watcher: ChangeWatcher, tmp_path: Path) -> None:
        watcher.start([tmp_path])

        assert watcher.is_active is True
        assert watcher.roots == [tmp_path]
        watcher._observer.start.assert_called_once()
        watcher._observer.schedule.assert_called_once()
        await watcher.stop()
        assert watcher.is_active is False

    @pytest.mark.asyncio
    async def test_missing_root_is_reported(
        self, watcher: ChangeWatcher, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            watcher.start([tmp_path / "missing", tmp_path])

        assert watcher.roots == [tmp_path]
        assert "not a directory" in caplog.text
        await watcher.stop()


class TestChanges:
    """Test that events end up in the index."""

    @pytest.mark.asyncio
    async def test_add_modify_delete(self, watcher: ChangeWatcher, index: DocumentIndex, tmp_path: Path) -> None:
        watcher.start([tmp_path])
        path = tmp_path / "notes.txt"
        doc_id = encode_document_id("notes.txt")

        path.write_text("first", encoding="utf-8")
        watcher.submit(CHANGED, path, tmp_path)
        await watcher.drain()
        assert index.get(doc_id).text == "first"

        path.write_text("second version", encoding="utf-8")
        watcher.submit(CHANGED, path, tmp_path)
        await watcher.drain()
        assert index.get(doc_id).text == "second version"
        assert len(index) == 1

        path.unlink()
        watcher.submit(DELETED, path, tmp_path)
        await watcher.drain()
        assert index.get(doc_id) is None

        await watcher.stop()

    @pytest.mark.asyncio
    async def test_delete_before_settle(self, watcher: ChangeWatcher, index: DocumentIndex, tmp_path: Path) -> None:
        watcher.start([tmp_path])
        path = tmp_path / "short-lived.txt"
        path.write_text("temp", encoding="utf-8")

        watcher.submit(CHANGED, path, tmp_path)
        path.unlink()
        watcher.submit(DELETED, path, tmp_path)
        await watcher.drain()

        assert len(index) == 0
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_excluded_and_unsupported_ignored(
        self, watcher: ChangeWatcher, index: DocumentIndex, tmp_path: Path
    ) -> None:
        watcher.start([tmp_path])
        drafts = tmp_path / "drafts"
        drafts.mkdir()
        ignored = [drafts / "plan.txt", tmp_path / "swap.tmp.txt", tmp_path / "photo.png"]
        for path in ignored:
            path.write_text("ignored", encoding="utf-8")
            watcher.submit(CHANGED, path, tmp_path)

        assert watcher._settling == {}
        await watcher.drain()
        assert len(index) == 0
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_directory_delete_removes_tree(
        self, watcher: ChangeWatcher, index: DocumentIndex, tmp_path: Path
    ) -> None:
        sub = tmp_path / "sub"
        (sub / "deep").mkdir(parents=True)
        (sub / "a.txt").write_text("a", encoding="utf-8")
        (sub / "deep" / "b.txt").write_text("b", encoding="utf-8")
        (tmp_path / "keep.txt").write_text("keep", encoding="utf-8")
        await watcher.scanner.scan(tmp_path)
        assert len(index) == 3

        watcher.start([tmp_path])
        watcher.submit(DELETED, sub, tmp_path, is_directory=True)
        await watcher.drain()

        assert [summary.filename for summary in index.all()] == ["keep.txt"]
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_post_hands_over_to_loop(self, watcher: ChangeWatcher, index: DocumentIndex, tmp_path: Path) -> None:
        watcher.start([tmp_path])
        path = tmp_path / "threaded.txt"
        path.write_text("from another thread", encoding="utf-8")

        await asyncio.to_thread(watcher.post, CHANGED, path, root=tmp_path)
        await asyncio.sleep(0.01)
        await watcher.drain()

        assert index.get(encode_document_id("threaded.txt")) is not None
        await watcher.stop()

    def test_submit_before_start_is_ignored(self, watcher: ChangeWatcher, tmp_path: Path) -> None:
        watcher.submit(CHANGED, tmp_path / "a.txt", tmp_path)

        assert watcher._settling == {}


def test_move_is_delete_then_change(tmp_path: Path) -> None:
    target = MagicMock()
    forwarder = _EventForwarder(target, tmp_path)

    forwarder.on_moved(FileMovedEvent(str(tmp_path / "old.txt"), str(tmp_path / "new.txt")))

    calls = target.post.call_args_list
    assert [call.args for call in calls] == [
        (DELETED, tmp_path / "old.txt"),
        (CHANGED, tmp_path / "new.txt"),
    ]
    assert all(call.kwargs == {"root": tmp_path, "is_directory": False} for call in calls)


async def _wait_for(predicate, timeout: float = 10.0) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.05)
    return predicate()


@pytest.mark.asyncio
async def test_real_observer_follows_file_lifecycle(tmp_path: Path, index: DocumentIndex) -> None:
    """Write, delete and re-create a file under a live watchdog observer."""
    watcher = ChangeWatcher(
        FolderScanner(index, base_dir=tmp_path),
        index,
        stability_threshold=0.1,
        poll_interval=0.02,
    )
    watcher.start([tmp_path])
    path = tmp_path / "report.txt"
    doc_id = encode_document_id("report.txt")

    def text() -> str | None:
        document = index.get(doc_id)
        return document.text if document is not None else None

    try:
        path.write_text("first draft", encoding="utf-8")
        assert await _wait_for(lambda: text() == "first draft")

        path.unlink()
        assert await _wait_for(lambda: text() is None)

        path.write_text("second draft", encoding="utf-8")
        assert await _wait_for(lambda: text() == "second draft")
    finally:
        await watcher.stop()

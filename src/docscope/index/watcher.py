"""Keeps the index in sync with filesystem changes.

Watchdog delivers events on its observer thread. The handler below does no
work there: it forwards each event to the event loop, where changes are
debounced and then applied to the index by a single writer task.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from docscope.errors import WatcherFault
from docscope.index.scanner import FolderScanner
from docscope.index.store import DocumentIndex
from docscope.utils.files import is_supported
from docscope.utils.patterns import is_excluded_below

LOGGER = logging.getLogger(__name__)

CHANGED = "changed"
DELETED = "deleted"

UPSERT = "upsert"
REMOVE = "remove"
REMOVE_TREE = "remove_tree"

DEFAULT_STABILITY_THRESHOLD = 2.0
DEFAULT_POLL_INTERVAL = 0.1


@dataclass(frozen=True, slots=True)
class FileChange:
    """A settled change waiting to be applied to the index."""

    kind: str
    path: Path


async def wait_until_settled(
    path: Path,
    *,
    stability_threshold: float = DEFAULT_STABILITY_THRESHOLD,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> bool:
    """Poll the size of ``path`` until it stops changing.

    Returns True once the size has been constant for ``stability_threshold``
    seconds, False if the file disappears or cannot be read meanwhile.
    """
    loop = asyncio.get_running_loop()
    last_size: Optional[int] = None
    stable_since = loop.time()

    while True:
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            return False
        except OSError as exc:
            LOGGER.warning("Cannot stat %s: %s", path, exc)
            return False

        now = loop.time()
        if size != last_size:
            last_size = size
            stable_since = now
        elif now - stable_since >= stability_threshold:
            return True
        await asyncio.sleep(poll_interval)


class _EventForwarder(FileSystemEventHandler):
    def __init__(self, watcher: "ChangeWatcher", root: Path) -> None:
        super().__init__()
        self._watcher = watcher
        self._root = root

    def _forward(self, kind: str, raw_path: str | bytes, is_directory: bool) -> None:
        self._watcher.post(kind, Path(os.fsdecode(raw_path)), root=self._root, is_directory=is_directory)

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(CHANGED, event.src_path, event.is_directory)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(CHANGED, event.src_path, event.is_directory)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._forward(DELETED, event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._forward(DELETED, event.src_path, event.is_directory)
        self._forward(CHANGED, event.dest_path, event.is_directory)


class ChangeWatcher:
    """Applies add, modify and delete events under watched roots to an index."""

    def __init__(
        self,
        scanner: FolderScanner,
        index: DocumentIndex,
        *,
        exclusions: Sequence[str] = (),
        stability_threshold: float = DEFAULT_STABILITY_THRESHOLD,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        observer_factory: Callable[[], Observer] = Observer,
    ) -> None:
        self.scanner = scanner
        self.index = index
        self.exclusions = list(exclusions)
        self.stability_threshold = stability_threshold
        self.poll_interval = poll_interval
        self._observer_factory = observer_factory
        self._observer: Optional[Observer] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue[FileChange]] = None
        self._writer: Optional[asyncio.Task[None]] = None
        self._settling: Dict[Path, asyncio.Task[None]] = {}
        self._touched: Optional[Set[Path]] = None
        self.roots: List[Path] = []

    @property
    def is_active(self) -> bool:
        return self._observer is not None

    def start(self, roots: Sequence[Path]) -> None:
        """Begin watching ``roots``. Must be called from the event loop."""
        if self.is_active:
            LOGGER.debug("Watcher already running")
            return

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._writer = self._loop.create_task(self._run_writer())

        observer = self._observer_factory()
        observer.start()
        self._observer = observer

        for root in roots:
            root = Path(os.path.abspath(root))
            try:
                if not root.is_dir():
                    raise WatcherFault(root, "not a directory")
                observer.schedule(_EventForwarder(self, root), str(root), recursive=True)
            except WatcherFault as exc:
                LOGGER.warning("%s", exc)
                continue
            except OSError as exc:
                LOGGER.warning("%s", WatcherFault(root, str(exc)))
                continue
            self.roots.append(root)

        LOGGER.info("Watching %d folder(s) for document changes", len(self.roots))

    def post(self, kind: str, path: Path, *, root: Path, is_directory: bool = False) -> None:
        """Hand an event over to the event loop; safe to call from any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self.submit, kind, path, root, is_directory)
        except RuntimeError:
            LOGGER.debug("Event loop closed, dropping event for %s", path)

    def submit(self, kind: str, path: Path, root: Path, is_directory: bool = False) -> None:
        """Route one raw event. Runs on the event loop."""
        if self._queue is None:
            return
        if is_excluded_below(path, root, self.exclusions):
            LOGGER.debug("Ignoring excluded path %s", path)
            return

        if kind == CHANGED:
            if is_directory or not is_supported(path):
                return
            self._schedule_settle(path)
        elif kind == DELETED:
            self._cancel_settle(path)
            self._queue.put_nowait(FileChange(REMOVE_TREE if is_directory else REMOVE, path))
        else:
            LOGGER.debug("Unknown event kind %s for %s", kind, path)

    def _schedule_settle(self, path: Path) -> None:
        assert self._loop is not None
        self._cancel_settle(path)
        self._settling[path] = self._loop.create_task(self._settle(path))

    def _cancel_settle(self, path: Path) -> None:
        task = self._settling.pop(path, None)
        if task is not None:
            task.cancel()

    async def _settle(self, path: Path) -> None:
        try:
            settled = await wait_until_settled(
                path,
                stability_threshold=self.stability_threshold,
                poll_interval=self.poll_interval,
            )
        finally:
            if self._settling.get(path) is asyncio.current_task():
                del self._settling[path]

        if settled and self._queue is not None:
            self._queue.put_nowait(FileChange(UPSERT, path))

    async def _run_writer(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            change = await queue.get()
            try:
                await self._apply(change)
            except Exception:
                LOGGER.exception("Failed to apply change for %s", change.path)
            finally:
                queue.task_done()

    def begin_tracking(self) -> None:
        """Start recording the paths of every change applied from now on."""
        self._touched = set()

    def take_touched(self) -> Set[Path]:
        """Return the paths recorded since the last call and keep recording."""
        if self._touched is None:
            return set()
        touched, self._touched = self._touched, set()
        return touched

    def end_tracking(self) -> None:
        self._touched = None

    async def _apply(self, change: FileChange) -> None:
        if self._touched is not None:
            self._touched.add(change.path)
        if change.kind == UPSERT:
            LOGGER.info("Document changed: %s", change.path.name)
            await self.scanner.index_file(change.path)
        elif change.kind == REMOVE:
            if self.index.remove(self.scanner.document_id_for(change.path)):
                LOGGER.info("Removed from index: %s", change.path.name)
        elif change.kind == REMOVE_TREE:
            removed = self.index.remove_under(change.path)
            if removed:
                LOGGER.info("Removed %d document(s) under %s", removed, change.path)

    async def drain(self) -> None:
        """Wait until pending changes have been settled and applied."""
        while self._settling:
            await asyncio.gather(*list(self._settling.values()), return_exceptions=True)
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return

        observer.stop()
        await asyncio.to_thread(observer.join)

        for task in self._settling.values():
            task.cancel()
        self._settling.clear()

        if self._writer is not None:
            self._writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._writer

        self._writer = None
        self._queue = None
        self._loop = None
        self.roots = []
        LOGGER.info("Stopped watching for changes")

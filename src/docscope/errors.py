"""Exceptions raised by DocScope."""

from __future__ import annotations

from pathlib import Path


class DocScopeError(Exception):
    """Base class for every DocScope error."""


class PathNotFound(DocScopeError):
    """A folder specification does not resolve to an existing directory."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Folder not found: {self.path}")


class UnsupportedFormat(DocScopeError):
    """The file extension is not one DocScope can extract text from."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Unsupported file format: {self.path.suffix or self.path.name}")


class ExtractionFailure(DocScopeError):
    """Text extraction raised an error for a specific file."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to extract text from {self.path.name}: {reason}")


class WatcherFault(DocScopeError):
    """The change notification subsystem failed for a path."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot watch {self.path}: {reason}")


class ReindexConflict(DocScopeError):
    """A re-index was requested while another one is still running."""

    def __init__(self) -> None:
        super().__init__("A re-index is already in progress")


class InvalidRequest(DocScopeError):
    """A top-level request is structurally invalid."""


class DocumentNotFound(DocScopeError):
    def __init__(self, doc_id: str) -> None:
        self.doc_id = doc_id
        super().__init__(f"Document not found: {doc_id}")


class AssistantUnavailable(DocScopeError):
    """No language model is configured."""


class AssistantError(DocScopeError):
    """A call to the language model failed."""

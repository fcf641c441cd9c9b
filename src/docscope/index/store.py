"""In-memory document index."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from docscope.models import Document, DocumentSummary, IndexStats
from docscope.utils.text import count_words


class DocumentIndex:
    """Mapping from document ID to :class:`Document`.

    Every public method takes the internal lock for its whole duration, so a
    reader never sees a half-applied ``put``, ``clear`` or ``replace_all``.
    """

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        with self._lock:
            return doc_id in self._documents

    def put(self, document: Document) -> str:
        """Insert or replace a document; returns ``inserted`` or ``updated``."""
        with self._lock:
            existed = document.id in self._documents
            self._documents[document.id] = document
        return "updated" if existed else "inserted"

    def remove(self, doc_id: str) -> bool:
        with self._lock:
            return self._documents.pop(doc_id, None) is not None

    def remove_under(self, directory: Path) -> int:
        """Remove every document stored below ``directory``."""
        directory = Path(directory)
        with self._lock:
            doomed = [
                doc_id
                for doc_id, document in self._documents.items()
                if directory in document.path.parents
            ]
            for doc_id in doomed:
                del self._documents[doc_id]
        return len(doomed)

    def get(self, doc_id: str) -> Optional[Document]:
        with self._lock:
            return self._documents.get(doc_id)

    def all(self) -> List[DocumentSummary]:
        with self._lock:
            documents = list(self._documents.values())
        return [document.summary() for document in documents]

    def documents(self) -> List[Document]:
        with self._lock:
            return list(self._documents.values())

    def clear(self) -> None:
        with self._lock:
            self._documents = {}

    def replace_all(self, documents: Iterable[Document]) -> None:
        """Swap the whole content for ``documents`` in one step."""
        fresh = {document.id: document for document in documents}
        with self._lock:
            self._documents = fresh

    def stats(self, *, is_indexing: bool = False, is_watching: bool = False) -> IndexStats:
        documents = self.documents()
        return IndexStats(
            total_documents=len(documents),
            total_size=sum(document.size for document in documents),
            total_words=sum(count_words(document.text) for document in documents),
            is_indexing=is_indexing,
            is_watching=is_watching,
        )

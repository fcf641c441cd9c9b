"""Duplicate filename detection."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List

from docscope.index.store import DocumentIndex
from docscope.models import DuplicateEntry, DuplicateGroup


class DuplicateDetector:
    """Groups indexed documents that share a filename.

    Only the name is compared, never the content: two unrelated files called
    ``notes.txt`` form a group.
    """

    def __init__(self, index: DocumentIndex) -> None:
        self.index = index

    def find_duplicates(self) -> List[DuplicateGroup]:
        by_name: Dict[str, List[DuplicateEntry]] = defaultdict(list)
        for document in self.index.documents():
            by_name[document.filename].append(
                DuplicateEntry(
                    id=document.id,
                    filename=document.filename,
                    path=document.path,
                    relative_path=document.relative_path,
                    size=document.size,
                    modified_at=document.modified_at,
                )
            )

        groups = [
            DuplicateGroup(filename=filename, count=len(entries), documents=entries)
            for filename, entries in by_name.items()
            if len(entries) >= 2
        ]
        groups.sort(key=lambda group: (-group.count, group.filename))
        return groups

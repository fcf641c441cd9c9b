"""Case-insensitive substring search over the index."""

from __future__ import annotations

import re
from typing import List

from docscope.index.store import DocumentIndex
from docscope.models import SearchMatch, SearchResult

DEFAULT_CONTEXT_CHARS = 100
ELLIPSIS = "..."


def find_matches(text: str, query: str, *, context_chars: int = DEFAULT_CONTEXT_CHARS) -> List[SearchMatch]:
    """Return every non-overlapping occurrence of ``query`` in ``text``.

    Scanning restarts right after each match, leftmost first. Offsets refer
    to ``text`` itself, never to a case-folded copy.
    """
    if not query:
        return []

    matches: List[SearchMatch] = []
    for found in re.finditer(re.escape(query), text, re.IGNORECASE):
        index, end = found.start(), found.end()
        start = max(0, index - context_chars)
        stop = min(len(text), end + context_chars)

        context = text[start:stop]
        if start > 0:
            context = ELLIPSIS + context
        if stop < len(text):
            context = context + ELLIPSIS

        matches.append(SearchMatch(position=index, context=context, match_text=text[index:end]))

    return matches


class Searcher:
    """High-level full-text search over a :class:`DocumentIndex`."""

    def __init__(self, index: DocumentIndex, *, context_chars: int = DEFAULT_CONTEXT_CHARS) -> None:
        self.index = index
        self.context_chars = context_chars

    def search(self, query: str) -> List[SearchResult]:
        results: List[SearchResult] = []
        for document in self.index.documents():
            matches = find_matches(document.text, query, context_chars=self.context_chars)
            if matches:
                results.append(
                    SearchResult(
                        document_id=document.id,
                        filename=document.filename,
                        relative_path=document.relative_path,
                        matches=matches,
                    )
                )
        return results

"""Text helpers shared by extraction, statistics and the assistant."""

from __future__ import annotations

import re
from typing import Iterable, List

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def count_words(text: str) -> int:
    """Number of whitespace separated tokens in ``text``."""
    return len(text.split())


def split_into_chunks(text: str, max_length: int) -> List[str]:
    """Pack paragraphs into chunks of roughly ``max_length`` characters.

    A single paragraph longer than ``max_length`` becomes its own chunk.
    """
    chunks: List[str] = []
    current = ""
    for paragraph in _PARAGRAPH_BREAK.split(text):
        if current and len(current) + len(paragraph) > max_length:
            chunks.append(current.strip())
            current = paragraph
        else:
            current = f"{current}\n\n{paragraph}" if current else paragraph

    if current.strip():
        chunks.append(current.strip())
    return chunks

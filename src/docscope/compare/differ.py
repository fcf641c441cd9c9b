"""Local line and word level comparison of two texts."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import List, Sequence, Tuple

ADDED = "added"
REMOVED = "removed"
UNCHANGED = "unchanged"

_WORD_TOKENS = re.compile(r"\s+|\S+")
_LINE_TOKENS = re.compile(r"[^\n]*\n|[^\n]+")


@dataclass(slots=True)
class DiffSegment:
    """A run of consecutive tokens sharing the same tag."""

    tag: str
    tokens: List[str]

    @property
    def added(self) -> bool:
        return self.tag == ADDED

    @property
    def removed(self) -> bool:
        return self.tag == REMOVED

    @property
    def value(self) -> str:
        return "".join(self.tokens)


@dataclass(slots=True)
class ComparisonStats:
    added_lines: int = 0
    removed_lines: int = 0
    unchanged_lines: int = 0
    added_words: int = 0
    removed_words: int = 0
    lines_a: int = 0
    lines_b: int = 0
    chars_a: int = 0
    chars_b: int = 0

    @property
    def total_lines(self) -> int:
        return self.added_lines + self.removed_lines + self.unchanged_lines

    @property
    def changed_lines(self) -> int:
        return self.added_lines + self.removed_lines

    @property
    def similarity_percent(self) -> int:
        if self.total_lines == 0:
            return 100
        return round_half_up((self.total_lines - self.changed_lines) / self.total_lines * 100)

    @property
    def changed_percent(self) -> int:
        if self.total_lines == 0:
            return 0
        return round_half_up(self.changed_lines / self.total_lines * 100)


@dataclass(slots=True)
class ComparisonReport:
    label_a: str
    label_b: str
    stats: ComparisonStats
    line_diff: List[DiffSegment] = field(default_factory=list)
    html: str = ""

    @property
    def identical(self) -> bool:
        return not any(segment.added or segment.removed for segment in self.line_diff)

    @property
    def changes(self) -> List[DiffSegment]:
        return [segment for segment in self.line_diff if segment.added or segment.removed]


def round_half_up(value: float) -> int:
    """Round a non-negative value, halves going up."""
    return int(value + 0.5)


def _diff_tokens(a: Sequence[str], b: Sequence[str]) -> List[DiffSegment]:
    matcher = SequenceMatcher(None, a, b, autojunk=False)
    segments: List[DiffSegment] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            segments.append(DiffSegment(UNCHANGED, list(a[i1:i2])))
            continue
        if i2 > i1:
            segments.append(DiffSegment(REMOVED, list(a[i1:i2])))
        if j2 > j1:
            segments.append(DiffSegment(ADDED, list(b[j1:j2])))
    return segments


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only, keeping the newline on each line.

    Form feeds and other characters ``str.splitlines`` treats as breaks stay
    inside their line.
    """
    return _LINE_TOKENS.findall(text)


def diff_lines(text_a: str, text_b: str) -> List[DiffSegment]:
    """Line granularity diff; each token is one line including its newline."""
    return _diff_tokens(split_lines(text_a), split_lines(text_b))


def diff_words(text_a: str, text_b: str) -> List[DiffSegment]:
    """Word granularity diff; whitespace runs are tokens of their own."""
    return _diff_tokens(_WORD_TOKENS.findall(text_a), _WORD_TOKENS.findall(text_b))


def _count_words(segment: DiffSegment) -> int:
    return sum(1 for token in segment.tokens if not token.isspace())


def calculate_stats(
    line_diff: Sequence[DiffSegment],
    word_diff: Sequence[DiffSegment],
    text_a: str,
    text_b: str,
) -> ComparisonStats:
    stats = ComparisonStats(
        lines_a=len(text_a.split("\n")),
        lines_b=len(text_b.split("\n")),
        chars_a=len(text_a),
        chars_b=len(text_b),
    )

    for segment in line_diff:
        if segment.added:
            stats.added_lines += len(segment.tokens)
        elif segment.removed:
            stats.removed_lines += len(segment.tokens)
        else:
            stats.unchanged_lines += len(segment.tokens)

    for segment in word_diff:
        if segment.added:
            stats.added_words += _count_words(segment)
        elif segment.removed:
            stats.removed_words += _count_words(segment)

    return stats


def diff_texts(text_a: str, text_b: str) -> Tuple[List[DiffSegment], ComparisonStats]:
    line_diff = diff_lines(text_a, text_b)
    word_diff = diff_words(text_a, text_b)
    return line_diff, calculate_stats(line_diff, word_diff, text_a, text_b)

"""Wildcard matching, folder expansion and exclusion rules."""

from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path, PurePath
from typing import Iterable, List, Sequence

LOGGER = logging.getLogger(__name__)

WILDCARD = "*"
_SEPARATORS = ("/", "\\")


def has_wildcard(value: str) -> bool:
    return WILDCARD in value


@lru_cache(maxsize=256)
def _compile_segment_pattern(pattern: str) -> re.Pattern[str]:
    parts = (re.escape(part) for part in pattern.split(WILDCARD))
    return re.compile(r"[^/\\]*".join(parts))


def wildcard_match(name: str, pattern: str) -> bool:
    """Return True if a single path segment matches ``pattern``.

    ``*`` matches any run of characters that does not cross a path separator;
    everything else is literal. The match is anchored at both ends.
    """
    return _compile_segment_pattern(pattern).fullmatch(name) is not None


def expand_home(raw: str) -> str:
    """Expand a leading ``~`` or ``~/`` to the user's home directory."""
    if raw == "~":
        return str(Path.home())
    if raw.startswith("~/"):
        return str(Path.home() / raw[2:])
    return raw


def _expand_wildcard(expanded: str) -> List[Path]:
    parent = Path(os.path.dirname(expanded) or ".")
    pattern = os.path.basename(expanded)
    try:
        children = sorted(parent.iterdir(), key=lambda child: child.name)
    except OSError as exc:
        LOGGER.warning("Could not expand wildcard %s: %s", expanded, exc)
        return []

    matched: List[Path] = []
    for child in children:
        if child.is_dir() and wildcard_match(child.name, pattern):
            LOGGER.info("Matched wildcard: %s", child)
            matched.append(child)
    return matched


def resolve_folders(raw_paths: Iterable[str]) -> List[Path]:
    """Expand folder specifications into concrete directory paths.

    Wildcards are only honoured in the last path segment. Entries without a
    wildcard are returned as-is after ``~`` expansion; checking that they
    exist is left to the caller.
    """
    resolved: List[Path] = []
    for raw in raw_paths:
        raw = raw.strip()
        if not raw:
            continue
        expanded = expand_home(raw)
        if has_wildcard(expanded):
            resolved.extend(_expand_wildcard(expanded))
        else:
            resolved.append(Path(expanded))
    return resolved


def should_exclude(path: Path | str, patterns: Sequence[str]) -> bool:
    """Decide whether ``path`` is covered by any exclusion pattern.

    Wildcard patterns are matched against the base name only. Literal
    patterns match the base name exactly or any complete segment of the path.
    """
    if not patterns:
        return False

    text = str(path)
    basename = PurePath(text).name
    for pattern in patterns:
        if has_wildcard(pattern):
            if wildcard_match(basename, pattern):
                return True
        elif basename == pattern:
            return True
        elif any(f"{sep}{pattern}{sep}" in text for sep in _SEPARATORS):
            return True
    return False


def is_excluded_below(path: Path, root: Path, patterns: Sequence[str]) -> bool:
    """Check ``path`` and each of its ancestors up to (excluding) ``root``."""
    if not patterns:
        return False
    current = path
    while True:
        if should_exclude(current, patterns):
            return True
        parent = current.parent
        if current == root or parent == current or parent == root:
            return False
        current = parent

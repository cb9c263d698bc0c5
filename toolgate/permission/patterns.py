"""Glob matching for tool permission patterns.

Only ``*`` is a wildcard (any run of characters, including none). Every other
character, regex metacharacters included, matches itself.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable


def is_wildcard_only(pattern: str) -> bool:
    """Return True for patterns made solely of ``*`` (one or more)."""
    return bool(pattern) and pattern.strip("*") == ""


@lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")), re.DOTALL)


def matches_pattern(tool_name: str, pattern: str) -> bool:
    """Return True if ``tool_name`` matches the glob ``pattern``."""
    if pattern == tool_name:
        return True
    if "*" not in pattern:
        return False
    # Checked directly; "*"-only patterns must match everything.
    if is_wildcard_only(pattern):
        return True
    return _compile(pattern).fullmatch(tool_name) is not None


def matches_any_pattern(tool_name: str, patterns: Iterable[str]) -> bool:
    return any(matches_pattern(tool_name, p) for p in patterns)

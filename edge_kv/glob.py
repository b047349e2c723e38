"""Glob pattern helpers shared by scan implementations."""

from __future__ import annotations

import re
from functools import lru_cache


MATCH_ALL = "*"


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a ``*``-only glob into a whole-string regular expression.

    ``*`` matches any run of characters, including an empty one. Every other
    character matches itself literally.
    """
    body = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(body, re.DOTALL)


def glob_match(pattern: str, key: str) -> bool:
    """Return True when ``key`` matches ``pattern`` in full."""
    if pattern == MATCH_ALL:
        return True
    return compile_glob(pattern).fullmatch(key) is not None


def literal_prefix(pattern: str) -> str | None:
    """Return ``prefix`` for patterns of the form ``prefix*``, else None.

    ``*`` alone yields the empty prefix.
    """
    if not pattern.endswith("*"):
        return None
    prefix = pattern[:-1]
    if "*" in prefix:
        return None
    return prefix

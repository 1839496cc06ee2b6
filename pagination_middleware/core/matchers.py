"""Route path matchers for include/exclude lists.

An include/exclude entry is either a literal path template (exact match) or
a compiled regular expression (searched against the path template).
"""

import re
from dataclasses import dataclass
from typing import Any

WILDCARD = "*"
"""Include entry meaning "every route"."""


@dataclass(frozen=True)
class ExactMatcher:
    """Matches a path template by string equality."""

    path: str

    def matches(self, path: str) -> bool:
        return self.path == path

    @property
    def is_wildcard(self) -> bool:
        return self.path == WILDCARD


@dataclass(frozen=True)
class PatternMatcher:
    """Matches a path template with ``re.search``."""

    pattern: re.Pattern[str]

    def matches(self, path: str) -> bool:
        return self.pattern.search(path) is not None

    @property
    def is_wildcard(self) -> bool:
        return False


RouteMatcher = ExactMatcher | PatternMatcher


def build_matcher(entry: Any) -> RouteMatcher:
    """Convert an include/exclude entry into a matcher.

    Args:
        entry: A path string, a compiled pattern, or an existing matcher.

    Returns:
        The corresponding matcher.

    Raises:
        ValueError: If the entry is neither a string nor a compiled pattern.
    """
    if isinstance(entry, ExactMatcher | PatternMatcher):
        return entry
    if isinstance(entry, str):
        if not entry:
            msg = "route entries must be non-empty strings or compiled patterns"
            raise ValueError(msg)
        return ExactMatcher(entry)
    if isinstance(entry, re.Pattern):
        if not isinstance(entry.pattern, str):
            msg = "route patterns must be compiled from str, not bytes"
            raise ValueError(msg)
        return PatternMatcher(entry)
    msg = f"route entries must be strings or compiled patterns, got {type(entry).__name__}"
    raise ValueError(msg)


def any_match(matchers: tuple[RouteMatcher, ...], path: str) -> bool:
    """Check whether any matcher accepts the path."""
    return any(matcher.matches(path) for matcher in matchers)

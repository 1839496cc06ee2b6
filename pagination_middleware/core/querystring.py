"""Order-preserving raw query strings.

Generated links must reproduce every client-supplied parameter exactly as it
was sent (dates, bracketed arrays, nested keys, custom encodings). Parsing
into a dict and re-encoding would normalize those, so RawQuery keeps the
original ``key=value`` segments and only rewrites the ones it is told to.
"""

from dataclasses import dataclass
from urllib.parse import quote, unquote_plus


def _segment_key(segment: str) -> str:
    return unquote_plus(segment.partition("=")[0])


def _encode(name: str, value: str) -> str:
    return f"{quote(name, safe='[]')}={quote(value, safe='')}"


@dataclass(frozen=True)
class RawQuery:
    """Immutable list of raw query segments, in their original order."""

    segments: tuple[str, ...] = ()

    @classmethod
    def parse(cls, query_string: bytes | str) -> "RawQuery":
        """Split a raw query string into segments without decoding values.

        Args:
            query_string: Raw query string (ASGI scope bytes or str),
                without the leading "?".

        Returns:
            RawQuery holding the non-empty segments.
        """
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        return cls(tuple(part for part in query_string.split("&") if part))

    def has(self, name: str) -> bool:
        return any(_segment_key(segment) == name for segment in self.segments)

    def set(self, name: str, value: object) -> "RawQuery":
        """Return a copy with ``name`` set to ``value``.

        The first occurrence is replaced in place and later duplicates are
        dropped. A missing parameter is appended at the end.
        """
        replacement = _encode(name, str(value))
        segments: list[str] = []
        replaced = False
        for segment in self.segments:
            if _segment_key(segment) != name:
                segments.append(segment)
            elif not replaced:
                segments.append(replacement)
                replaced = True
        if not replaced:
            segments.append(replacement)
        return RawQuery(tuple(segments))

    def remove(self, name: str) -> "RawQuery":
        """Return a copy without any occurrence of ``name``."""
        return RawQuery(
            tuple(segment for segment in self.segments if _segment_key(segment) != name)
        )

    def __str__(self) -> str:
        return "&".join(self.segments)

    def encode(self) -> bytes:
        """Encode for an ASGI scope ``query_string``."""
        return str(self).encode("latin-1")

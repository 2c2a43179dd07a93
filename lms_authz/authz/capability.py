"""
Capability strings and wildcard matching.

A capability (also called a right) is a colon-delimited token such as
``content:courses:read``. Held rights may end in ``*`` to grant every
capability that shares their leading segments:

    content:*            grants content:courses:read, content:lessons:manage, ...
    content:courses:*    grants content:courses:read, content:courses:create, ...
    system:*             grants everything (super-admin override)

Parsing never raises. Malformed strings parse to ``None`` and simply never
match anything, so callers can pass free text straight through.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

SEPARATOR = ":"
WILDCARD = "*"
SUPER_ADMIN = "system:*"


@dataclass(frozen=True)
class Capability:
    """Parsed capability: two or three segments, optionally ending in ``*``."""

    segments: tuple[str, ...]

    @property
    def domain(self) -> str:
        return self.segments[0]

    @property
    def resource(self) -> str:
        return self.segments[1]

    @property
    def action(self) -> str | None:
        return self.segments[2] if len(self.segments) > 2 else None

    @property
    def is_wildcard(self) -> bool:
        return self.segments[-1] == WILDCARD

    @property
    def prefix(self) -> tuple[str, ...]:
        """Leading segments a wildcard covers (all segments for concrete rights)."""
        return self.segments[:-1] if self.is_wildcard else self.segments

    def grants(self, requested: Capability) -> bool:
        """
        Return True if holding ``self`` satisfies a request for ``requested``.

        Exact equality always grants. A wildcard grants any request whose
        leading segments equal the wildcard's prefix and which has at least
        one more segment. A narrower wildcard never grants a broader one.
        """

        if self == requested:
            return True
        if not self.is_wildcard:
            return False
        prefix = self.prefix
        if len(requested.segments) <= len(prefix):
            return False
        return requested.segments[: len(prefix)] == prefix

    def __str__(self) -> str:
        return SEPARATOR.join(self.segments)


def parse_capability(text: str) -> Capability | None:
    """
    Parse ``text`` into a Capability, or return None when malformed.

    Accepted: ``domain:resource``, ``domain:resource:action``, with ``*``
    allowed only as the final segment (``domain:*``, ``domain:resource:*``).
    Segments are otherwise free text and compared case-sensitively.
    """

    if not isinstance(text, str):
        return None
    return _parse(text.strip())


@lru_cache(maxsize=4096)
def _parse(text: str) -> Capability | None:
    parts = text.split(SEPARATOR)
    if len(parts) not in (2, 3):
        return None
    for index, part in enumerate(parts):
        if not part.strip():
            return None
        if part == WILDCARD and index != len(parts) - 1:
            return None
    return Capability(segments=tuple(parts))


def is_valid_capability(text: str) -> bool:
    return parse_capability(text) is not None

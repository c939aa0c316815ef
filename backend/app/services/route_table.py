"""
HeartSmiles Backend — Resource Route Table
============================================

What:  Maps request paths to resource collaborators.
Why:   Each resource must answer identically at `/api/<resource>` and
       `/<resource>` (one URL family per proxy topology). Keeping a single
       table with the list of accepted bases per entry guarantees the two
       mounts can never drift apart or hold separate state.
How:   resolve(path) tries every (base, segment) prefix on whole path
       segments and returns the longest match together with the path
       remainder to hand to the collaborator.

    /api/staff/42   ->  staff,  "/42"
    /staff          ->  staff,  "/"
    /staffing       ->  no match (segment-aware)
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from app.services.collaborators import ResourceHandler


@dataclass(frozen=True)
class RouteEntry:
    segment: str
    handler: ResourceHandler


@dataclass(frozen=True)
class RouteMatch:
    entry: RouteEntry
    prefix: str
    remainder: str

    @property
    def handler(self) -> ResourceHandler:
        return self.entry.handler


class RouteTable:
    """
    Ordered segment -> collaborator table mounted under several bases.

    Raises:
        ValueError: on duplicate or malformed segments, so ambiguous
                    tables are rejected at startup.
    """

    def __init__(self, entries: Iterable[RouteEntry], bases: Tuple[str, ...] = ("/api", "")):
        self.bases = tuple(base.rstrip("/") for base in bases)
        self._entries: List[RouteEntry] = []
        seen: Dict[str, RouteEntry] = {}
        for entry in entries:
            segment = entry.segment
            if not segment or "/" in segment:
                raise ValueError(f"Route segment must be a single path segment: {segment!r}")
            if segment in seen:
                raise ValueError(f"Duplicate route segment: {segment!r}")
            seen[segment] = entry
            self._entries.append(entry)

        # Longest prefix first; ties cannot occur (segments are unique per base)
        self._prefixes: List[Tuple[str, RouteEntry]] = sorted(
            ((f"{base}/{entry.segment}", entry) for base in self.bases for entry in self._entries),
            key=lambda item: len(item[0]),
            reverse=True,
        )

    @classmethod
    def from_handlers(
        cls, handlers: Dict[str, ResourceHandler], bases: Tuple[str, ...] = ("/api", "")
    ) -> "RouteTable":
        return cls((RouteEntry(segment, handler) for segment, handler in handlers.items()), bases)

    @property
    def entries(self) -> List[RouteEntry]:
        return list(self._entries)

    def prefixes_for(self, segment: str) -> List[str]:
        return [f"{base}/{segment}" for base in self.bases]

    def all_prefixes(self) -> List[str]:
        return [prefix for prefix, _ in self._prefixes]

    def resolve(self, path: str) -> Optional[RouteMatch]:
        for prefix, entry in self._prefixes:
            if path == prefix or path.startswith(prefix + "/"):
                remainder = path[len(prefix):] or "/"
                return RouteMatch(entry=entry, prefix=prefix, remainder=remainder)
        return None

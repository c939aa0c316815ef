"""
HeartSmiles Backend — CORS Origin Matcher
===========================================

What:  Decides whether a browser-declared Origin may receive CORS headers.
Why:   The allow-list is security relevant, so matching is kept to a small,
       closed set of predicate types instead of a general pattern engine.
How:   Two rule variants:
       - ExactOrigin:              case-sensitive string equality
       - PreviewDeploymentOrigin:  fixed scheme + host prefix, any middle,
                                   fixed host suffix (no overlap allowed)
       No rule ever performs substring matching.

Absent origin:
    Requests without an Origin header (curl, server-to-server, health probes)
    are allowed unconditionally; CORS only constrains browsers.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExactOrigin:
    """Allows one origin, compared by exact string equality."""

    value: str

    def matches(self, origin: str) -> bool:
        return origin == self.value

    def describe(self) -> str:
        return self.value


@dataclass(frozen=True)
class PreviewDeploymentOrigin:
    """
    Allows the preview-deployment family of one frontend project.

    Equivalent to the anchored pattern ``^<scheme><host_prefix>.*<host_suffix>$``:
    the origin must start with scheme + host prefix and end with the suffix,
    and the two ends may not share characters.

    Example (scheme="https://", host_prefix="heart-smiles-frontend",
    host_suffix=".vercel.app"):
        https://heart-smiles-frontend-preview123.vercel.app   allowed
        https://heart-smiles-frontendx.attacker.com           denied
        https://evil.vercel.app                               denied
    """

    scheme: str
    host_prefix: str
    host_suffix: str

    @property
    def head(self) -> str:
        return self.scheme + self.host_prefix

    def matches(self, origin: str) -> bool:
        head, tail = self.head, self.host_suffix
        return (
            len(origin) >= len(head) + len(tail)
            and origin.startswith(head)
            and origin.endswith(tail)
        )

    def describe(self) -> str:
        return f"{self.head}*{self.host_suffix}"


OriginRule = Union[ExactOrigin, PreviewDeploymentOrigin]


class OriginMatcher:
    """
    Evaluates origins against an immutable tuple of rules.

    Every evaluation is logged; denials additionally at WARNING level.
    """

    def __init__(self, rules: Iterable[OriginRule]):
        self._rules: Tuple[OriginRule, ...] = tuple(rules)

    @property
    def rules(self) -> Tuple[OriginRule, ...]:
        return self._rules

    def matches(self, origin: Optional[str]) -> bool:
        """Pure decision, no logging."""
        if origin is None:
            return True
        return any(rule.matches(origin) for rule in self._rules)

    def is_allowed(self, origin: Optional[str]) -> bool:
        allowed = self.matches(origin)
        logger.info(
            "CORS origin check: %s -> %s",
            origin if origin is not None else "<none>",
            "allowed" if allowed else "blocked",
        )
        if not allowed:
            logger.warning("CORS: Blocked origin: %s", origin)
        return allowed

    def describe(self) -> list:
        """Human-readable allow-list for startup logs."""
        return [rule.describe() for rule in self._rules]

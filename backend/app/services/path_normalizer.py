"""
HeartSmiles Backend — Request Path Normalizer
===============================================

What:  Reconciles the path the application observes with the URL the
       client originally requested.
Why:   Two deployment topologies deliver requests differently:
       - prefixed:    proxy forwards `/api/participants?x=1` untouched
       - stripped:    proxy forwards `/participants?x=1` and records the
                      original URL (`X-Original-URL`, `X-Forwarded-Prefix`
                      or the ASGI root_path)
       Routing should see one canonical form in both cases.
How:   If the original URL lives under the prefix but the observed path
       does not, prepend the prefix to the path. Everything after `?` is
       carried over as-is (no decoding, no re-encoding, no reordering).

Idempotence:
    A normalized path already starts with the prefix, so a second pass
    is a no-op: normalize_url(normalize_url(u, o), o) == normalize_url(u, o).
"""

from typing import Mapping, Optional
from urllib.parse import urlsplit


def has_prefix(path: str, prefix: str) -> bool:
    """True if `path` is `prefix` itself or lies below it (segment-aware)."""
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/") or path.startswith(prefix + "?")


def _path_of(url: str) -> str:
    if "://" in url:
        return urlsplit(url).path or "/"
    return url


def normalize_url(raw_url: str, original_url: Optional[str], prefix: str = "/api") -> str:
    """
    Effective request target (path plus optional `?query`).

    Args:
        raw_url:      Path (and query) the application observed.
        original_url: URL the client requested, when known.
        prefix:       Routing prefix the proxy may have stripped.
    """
    if not original_url or not prefix:
        return raw_url
    path, sep, query = raw_url.partition("?")
    if has_prefix(_path_of(original_url), prefix) and not has_prefix(path, prefix):
        return prefix + path + sep + query
    return raw_url


def original_url_from(
    headers: Mapping[str, str],
    path: str,
    query: str = "",
    root_path: str = "",
) -> Optional[str]:
    """
    Best available reconstruction of the client's original URL.

    Checked in order: `X-Original-URL`, `X-Forwarded-Prefix` + path,
    then the ASGI root_path + path. Returns None when nothing indicates
    a rewrite.
    """
    suffix = path + ("?" + query if query else "")
    original = headers.get("x-original-url")
    if original:
        return original
    forwarded_prefix = headers.get("x-forwarded-prefix")
    if forwarded_prefix:
        return forwarded_prefix.rstrip("/") + suffix
    if root_path and not path.startswith(root_path):
        return root_path.rstrip("/") + suffix
    return None

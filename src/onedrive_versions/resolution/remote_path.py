"""Remote path and URL construction for drive item lookups."""

from __future__ import annotations

import base64
from collections.abc import Sequence
from urllib.parse import SplitResult, quote, unquote, urlsplit, urlunsplit

from onedrive_versions.mapping.models import Mapping, normalize_share_base_url
from onedrive_versions.mapping.paths import normalize_remote_root

# Characters encodeURIComponent leaves alone besides alphanumerics and "_.-~"
_SEGMENT_SAFE = "!'()*"

# Everything outside the WHATWG path percent-encode set, plus "%" so that
# already-encoded sequences survive.
_URL_PATH_SAFE = "/%!$&'()*+,;=:@[]|^\\"

SHARE_ID_PREFIX = "u!"

_DEFAULT_PORTS = {"http": 80, "https": 443}


def encode_segment(segment: str) -> str:
    """Percent-encode a single path segment."""
    return quote(segment, safe=_SEGMENT_SAFE)


def build_remote_path(mapping: Mapping, relative_segments: Sequence[str]) -> str:
    """Join the mapping's remote root with the local relative segments.

    Each segment is encoded on its own so separators are preserved.
    """
    root_segments = [s for s in normalize_remote_root(mapping.remote_root).split("/") if s]
    encoded = [encode_segment(s) for s in [*root_segments, *relative_segments]]
    return "/" + "/".join(encoded)


def build_remote_path_candidates(remote_path: str) -> list[str]:
    """Return the path followed by each shorter suffix of its segments.

    Used when the configured mount root does not match the server-side root:
    ``/a/b/c.txt`` yields ``/a/b/c.txt``, ``/b/c.txt`` and ``/c.txt``.
    """
    segments = [s for s in remote_path.split("/") if s]
    if not segments:
        return ["/"]
    candidates = ("/" + "/".join(segments[start:]) for start in range(len(segments)))
    return list(dict.fromkeys(candidates))


def _split_url(url: str) -> SplitResult:
    """Split a URL, percent-encoding its path the way a browser would.

    Raises:
        ValueError: If the URL is not absolute.
    """
    parts = urlsplit(normalize_share_base_url(url))
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Not an absolute URL: {url!r}")
    return parts._replace(path=quote(parts.path, safe=_URL_PATH_SAFE))


def _origin(parts: SplitResult) -> tuple[str, str, int | None]:
    """Scheme, host and effective port; userinfo is ignored.

    Raises:
        ValueError: If the port is not a valid number.
    """
    scheme = parts.scheme.lower()
    return scheme, parts.hostname or "", parts.port or _DEFAULT_PORTS.get(scheme)


def append_path_segments_to_url(base_url: str, segments: Sequence[str]) -> str:
    """Append encoded path segments to a web URL.

    Raises:
        ValueError: If ``base_url`` is not an absolute URL.
    """
    parts = _split_url(base_url)
    base_path = parts.path.rstrip("/")
    extra = "/".join(encode_segment(s) for s in segments)
    full_path = f"{base_path}/{extra}" if extra else (base_path or "/")
    return urlunsplit(parts._replace(path=full_path))


def get_relative_path_by_url_prefix(target_url: str, base_url: str) -> str | None:
    """Return the decoded path of ``target_url`` below ``base_url``.

    Origins (scheme, host and port, with default ports filled in) and paths
    are compared case-insensitively, and the base path
    must end on a segment boundary of the target path. Returns None on any
    mismatch or malformed URL.
    """
    try:
        target = _split_url(target_url)
        base = _split_url(base_url)
        same_origin = _origin(target) == _origin(base)
    except ValueError:
        return None

    if not same_origin:
        return None

    target_path = target.path.rstrip("/")
    base_path = base.path.rstrip("/")
    if not target_path.lower().startswith(base_path.lower()):
        return None

    remaining = target_path[len(base_path) :]
    if remaining and not remaining.startswith("/"):
        return None
    return unquote(remaining.lstrip("/"))


def to_share_id(url: str) -> str:
    """Encode a sharing URL into Graph's ``/shares/{id}`` token format."""
    encoded = base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii")
    return SHARE_ID_PREFIX + encoded.rstrip("=")

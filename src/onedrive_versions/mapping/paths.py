"""Canonical forms for local paths and remote roots."""

from __future__ import annotations

import os

from onedrive_versions.errors import MappingNotFoundError


def normalize_local_root(path: str) -> str:
    """Resolve a local path to absolute form without trailing separators.

    The filesystem anchor ("/" or "C:\\") is kept intact.
    """
    return os.path.abspath(path)


def canonical_key(path: str) -> str:
    """Platform-aware identity for a local path (case-folded on Windows)."""
    return os.path.normcase(normalize_local_root(path))


def same_path(a: str, b: str) -> bool:
    return canonical_key(a) == canonical_key(b)


def normalize_remote_root(value: str) -> str:
    """Turn a configured remote root into "/" or "/seg/seg"."""
    trimmed = value.strip().replace("\\", "/")
    if not trimmed or trimmed == "/":
        return "/"
    return "/" + trimmed.strip("/")


def _relative(root: str, path: str) -> str | None:
    try:
        return os.path.relpath(normalize_local_root(path), normalize_local_root(root))
    except ValueError:
        # Different drives on Windows.
        return None


def _escapes(relative: str) -> bool:
    return (
        relative == os.pardir
        or relative.startswith(os.pardir + os.sep)
        or os.path.isabs(relative)
    )


def is_path_within(candidate: str, root: str) -> bool:
    """True when ``candidate`` equals ``root`` or lies underneath it."""
    relative = _relative(root, candidate)
    if relative is None:
        return False
    return relative == os.curdir or not _escapes(relative)


def relative_segments(root: str, path: str) -> list[str]:
    """Split the part of ``path`` below ``root`` into its segments.

    Raises:
        MappingNotFoundError: If ``path`` is not inside ``root``.
    """
    relative = _relative(root, path)
    if relative is None or _escapes(relative):
        raise MappingNotFoundError(path)
    if relative == os.curdir:
        return []
    return [segment for segment in relative.split(os.sep) if segment]

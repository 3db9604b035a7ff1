"""Most-specific mapping selection."""

from __future__ import annotations

from collections.abc import Iterable

from onedrive_versions.mapping.models import Mapping
from onedrive_versions.mapping.paths import is_path_within, normalize_local_root


def select_mapping(local_path: str, candidates: Iterable[Mapping]) -> Mapping | None:
    """Pick the containing mapping with the longest local root.

    Among roots of equal length the earliest candidate wins. Returns None
    when no candidate contains ``local_path``.
    """
    path = normalize_local_root(local_path)
    best: Mapping | None = None
    for mapping in candidates:
        if not is_path_within(path, mapping.local_root):
            continue
        if best is None or len(mapping.local_root) > len(best.local_root):
            best = mapping
    return best

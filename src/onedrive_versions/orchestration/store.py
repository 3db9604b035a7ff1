"""Per-path version state owned by the core."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace

from onedrive_versions.errors import NoVersionsError
from onedrive_versions.graph.models import Version
from onedrive_versions.mapping.paths import canonical_key

logger = logging.getLogger(__name__)

ContextLoader = Callable[[str, bool], Awaitable["VersionContext"]]


def _clamp(index: int, count: int) -> int:
    return max(0, min(count - 1, index))


@dataclass(frozen=True)
class VersionContext:
    """Resolved drive item plus its versions (newest first) and the selection.

    A context always holds at least one version and a selection in range.
    Contexts are immutable; the store swaps in a new one when the selection
    moves.
    """

    drive_id: str
    item_id: str
    versions: tuple[Version, ...]
    selected_index: int = 0

    def __post_init__(self) -> None:
        versions = tuple(self.versions)
        if not versions:
            raise NoVersionsError(self.drive_id, self.item_id)
        object.__setattr__(self, "versions", versions)
        object.__setattr__(self, "selected_index", _clamp(self.selected_index, len(versions)))

    @property
    def selected_version(self) -> Version:
        return self.versions[self.selected_index]


class VersionContextStore:
    """Table of version contexts keyed by canonical local path.

    ``load`` always replaces an existing entry. Concurrent loads for the same
    path are not serialized; whichever finishes last is kept.
    """

    def __init__(self, loader: ContextLoader) -> None:
        """Initialise the store.

        Args:
            loader: Coroutine function ``(path, interactive)`` running the
                full resolution and version fetch for one local path.
        """
        self._loader = loader
        self._contexts: dict[str, VersionContext] = {}

    async def load(self, path: str, *, interactive: bool = True) -> VersionContext:
        context = await self._loader(path, interactive)
        self._contexts[canonical_key(path)] = context
        logger.info(
            "[load] stored context; path:%s;version_count:%d", path, len(context.versions)
        )
        return context

    def get(self, path: str) -> VersionContext | None:
        return self._contexts.get(canonical_key(path))

    def clear(self, path: str) -> None:
        self._contexts.pop(canonical_key(path), None)

    def set_index(self, path: str, index: int) -> VersionContext:
        """Select a version, saturating out-of-range indexes.

        Raises:
            KeyError: If no context is stored for ``path``.
        """
        key = canonical_key(path)
        context = replace(self._contexts[key], selected_index=index)
        self._contexts[key] = context
        return context

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and canonical_key(path) in self._contexts

    def __len__(self) -> int:
        return len(self._contexts)

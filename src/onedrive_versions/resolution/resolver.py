"""Layered drive item resolution with ordered fallback strategies."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from onedrive_versions.errors import AccessDeniedError, ItemNotFoundError
from onedrive_versions.graph.client import ErrorKind, GraphApiError
from onedrive_versions.graph.models import (
    SELECT_DRIVE,
    SELECT_DRIVE_WITH_URL,
    SELECT_ITEM,
    Drive,
    DriveItem,
)
from onedrive_versions.mapping.models import normalize_share_base_url
from onedrive_versions.resolution.outcomes import Denied, Fatal, Found, NotFound, Outcome
from onedrive_versions.resolution.remote_path import (
    append_path_segments_to_url,
    build_remote_path,
    build_remote_path_candidates,
    encode_segment,
    get_relative_path_by_url_prefix,
    to_share_id,
)

if TYPE_CHECKING:
    from onedrive_versions.graph.client import GraphClient
    from onedrive_versions.mapping.models import Mapping

logger = logging.getLogger(__name__)

STRATEGY_DIRECT_DRIVE = "direct-drive"
STRATEGY_DEFAULT_DRIVE = "default-drive"
STRATEGY_ALL_DRIVES = "all-drives"
STRATEGY_DRIVE_WEB_URL = "drive-web-url"
STRATEGY_SHARE_URL = "share-url"


@dataclass(frozen=True)
class ResolutionRequest:
    """Everything a strategy needs to look up one local file."""

    mapping: Mapping
    relative_segments: tuple[str, ...]
    candidates: tuple[str, ...]
    """Remote path candidates, full path first, then trimmed suffixes."""

    interactive: bool


Strategy = Callable[[ResolutionRequest], Awaitable[Outcome]]


def _drive_root_endpoint(drive_id: str, path: str) -> str:
    return f"/drives/{encode_segment(drive_id)}/root:{path}?{SELECT_ITEM}"


def _default_drive_endpoint(path: str) -> str:
    return f"/me/drive/root:{path}?{SELECT_ITEM}"


def _share_endpoint(share_url: str) -> str:
    return f"/shares/{to_share_id(share_url)}/driveItem?{SELECT_ITEM}"


def _classify(strategy: str, endpoint: str, exc: GraphApiError) -> Outcome:
    if exc.kind is ErrorKind.NOT_FOUND:
        return NotFound(strategy, f"{endpoint} returned {exc.status_code}: {exc.message}")
    if exc.kind is ErrorKind.ACCESS_DENIED:
        return Denied(strategy, endpoint, exc.message)
    return Fatal(exc)


class ItemResolver:
    """Finds the drive item behind a local file.

    Strategies run strictly in order; the first ``Found`` wins, a ``Fatal``
    outcome is re-raised, and ``NotFound`` / ``Denied`` fall through to the
    next strategy. Only not-found and access-denied Graph responses are
    turned into fall-through outcomes; transport and auth errors propagate.
    """

    def __init__(self, graph_client: GraphClient) -> None:
        self._graph = graph_client

    def strategies_for(self, mapping: Mapping) -> list[tuple[str, Strategy]]:
        """Ordered strategies applicable to ``mapping``.

        An explicit drive id is trusted: the default and enumerated drives
        are never searched for such mappings. URL fallbacks need URL metadata.
        """
        strategies: list[tuple[str, Strategy]] = []
        if mapping.drive_id:
            strategies.append((STRATEGY_DIRECT_DRIVE, self._direct_drive))
        else:
            strategies.append((STRATEGY_DEFAULT_DRIVE, self._default_drive))
            strategies.append((STRATEGY_ALL_DRIVES, self._all_drives))
        if mapping.share_roots:
            strategies.append((STRATEGY_DRIVE_WEB_URL, self._drive_web_url))
            strategies.append((STRATEGY_SHARE_URL, self._share_url))
        return strategies

    async def resolve(
        self,
        mapping: Mapping,
        relative_segments: Sequence[str],
        *,
        interactive: bool = True,
    ) -> DriveItem:
        """Resolve the drive item for a file below ``mapping.local_root``.

        Args:
            mapping: Selected mapping for the local file.
            relative_segments: Local path segments below the mapping root.
            interactive: Whether token acquisition may prompt the user.

        Returns:
            The resolved DriveItem.

        Raises:
            ItemNotFoundError: If every strategy ended without a match.
            AccessDeniedError: If the last strategy attempted was refused.
            GraphApiError: For any other API failure.
        """
        remote_path = build_remote_path(mapping, relative_segments)
        request = ResolutionRequest(
            mapping=mapping,
            relative_segments=tuple(relative_segments),
            candidates=tuple(build_remote_path_candidates(remote_path)),
            interactive=interactive,
        )

        last: NotFound | Denied | None = None
        for name, strategy in self.strategies_for(mapping):
            logger.info("[resolve] trying strategy; strategy:%s;remote_path:%s", name, remote_path)
            outcome = await strategy(request)
            if isinstance(outcome, Found):
                logger.info(
                    "[resolve] item found; strategy:%s;item_id:%s;drive_id:%s",
                    name,
                    outcome.item.id,
                    outcome.item.drive_id,
                )
                return outcome.item
            if isinstance(outcome, Fatal):
                raise outcome.error
            logger.info("[resolve] strategy exhausted; strategy:%s;outcome:%s", name, outcome)
            last = outcome

        if isinstance(last, Denied):
            raise AccessDeniedError(last.endpoint, last.detail)
        if last is None:
            raise ItemNotFoundError("none", "no resolution strategy applies to this mapping")
        raise ItemNotFoundError(last.strategy, last.detail)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _direct_drive(self, request: ResolutionRequest) -> Outcome:
        drive_id = request.mapping.drive_id or ""
        endpoints = (_drive_root_endpoint(drive_id, path) for path in request.candidates)
        return await self._first_match(STRATEGY_DIRECT_DRIVE, endpoints, request.interactive)

    async def _default_drive(self, request: ResolutionRequest) -> Outcome:
        endpoints = (_default_drive_endpoint(path) for path in request.candidates)
        return await self._first_match(STRATEGY_DEFAULT_DRIVE, endpoints, request.interactive)

    async def _all_drives(self, request: ResolutionRequest) -> Outcome:
        listed = await self._list_drives(STRATEGY_ALL_DRIVES, SELECT_DRIVE, request.interactive)
        if not isinstance(listed, list):
            return listed
        endpoints = (
            _drive_root_endpoint(drive.id, path)
            for drive in listed
            for path in request.candidates
        )
        return await self._first_match(STRATEGY_ALL_DRIVES, endpoints, request.interactive)

    async def _drive_web_url(self, request: ResolutionRequest) -> Outcome:
        target_urls = self._target_urls(request)
        if not target_urls:
            return NotFound(STRATEGY_DRIVE_WEB_URL, "no usable URL metadata on the mapping")
        listed = await self._list_drives(
            STRATEGY_DRIVE_WEB_URL, SELECT_DRIVE_WITH_URL, request.interactive
        )
        if not isinstance(listed, list):
            return listed
        return await self._first_match(
            STRATEGY_DRIVE_WEB_URL,
            self._web_url_endpoints(listed, target_urls),
            request.interactive,
            denied_continues=True,
        )

    async def _share_url(self, request: ResolutionRequest) -> Outcome:
        endpoints = (_share_endpoint(url) for url in self._target_urls(request))
        return await self._first_match(STRATEGY_SHARE_URL, endpoints, request.interactive)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _first_match(
        self,
        strategy: str,
        endpoints: Iterable[str],
        interactive: bool,
        *,
        denied_continues: bool = False,
    ) -> Outcome:
        """Try each endpoint in order and return the first item found.

        Not-found responses move on to the next endpoint; access denied ends
        the strategy unless ``denied_continues`` is set.
        """
        tried = 0
        last_endpoint = ""
        for endpoint in endpoints:
            tried += 1
            last_endpoint = endpoint
            try:
                raw = await self._graph.get_json(endpoint, interactive=interactive)
            except GraphApiError as exc:
                outcome = _classify(strategy, endpoint, exc)
                if isinstance(outcome, NotFound) or (
                    denied_continues and isinstance(outcome, Denied)
                ):
                    logger.debug(
                        "[_first_match] lookup missed; strategy:%s;endpoint:%s;status:%d",
                        strategy,
                        endpoint,
                        exc.status_code,
                    )
                    continue
                return outcome
            return Found(DriveItem.from_json(raw))
        return NotFound(
            strategy,
            f"no match after {tried} lookup(s); last endpoint: {last_endpoint or 'none'}",
        )

    async def _list_drives(
        self, strategy: str, select: str, interactive: bool
    ) -> list[Drive] | Outcome:
        endpoint = f"/me/drives?{select}"
        try:
            entries = await self._graph.get_paged(endpoint, interactive=interactive)
        except GraphApiError as exc:
            return _classify(strategy, endpoint, exc)
        drives = [Drive.from_json(raw) for raw in entries]
        logger.info("[_list_drives] enumerated drives; strategy:%s;count:%d", strategy, len(drives))
        return drives

    @staticmethod
    def _target_urls(request: ResolutionRequest) -> list[str]:
        """Web URLs the local file should have, one per mapping share root."""
        urls: list[str] = []
        for root in request.mapping.share_roots:
            try:
                urls.append(append_path_segments_to_url(root, request.relative_segments))
            except ValueError:
                logger.warning("[_target_urls] skipping malformed URL metadata; root:%s", root)
        return urls

    @staticmethod
    def _web_url_endpoints(drives: Sequence[Drive], target_urls: Sequence[str]) -> Iterator[str]:
        for drive in drives:
            web_url = normalize_share_base_url(drive.web_url)
            if not web_url:
                continue
            for target_url in target_urls:
                relative = get_relative_path_by_url_prefix(target_url, web_url)
                if relative is None:
                    continue
                encoded = "/".join(encode_segment(s) for s in relative.split("/") if s)
                yield _drive_root_endpoint(drive.id, f"/{encoded}")

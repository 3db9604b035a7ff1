"""Version service — the resolution pipeline exposed to the UI layer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from onedrive_versions.errors import ItemNotFoundError, MappingNotFoundError
from onedrive_versions.graph.client import GraphApiError, GraphClient, graph_client_from_config
from onedrive_versions.mapping.discovery import MappingDiscovery
from onedrive_versions.mapping.paths import normalize_local_root, relative_segments
from onedrive_versions.mapping.selector import select_mapping
from onedrive_versions.orchestration.store import VersionContext, VersionContextStore
from onedrive_versions.resolution.remote_path import encode_segment
from onedrive_versions.resolution.resolver import ItemResolver
from onedrive_versions.resolution.versions import VersionFetcher, item_endpoint

if TYPE_CHECKING:
    from onedrive_versions.config import AppConfig
    from onedrive_versions.graph.auth import PromptCallback
    from onedrive_versions.mapping.models import Mapping

logger = logging.getLogger(__name__)


class VersionService:
    """Orchestrates mapping, item resolution and version retrieval.

    Owns the VersionContextStore; callers read and move the selection through
    this service instead of keeping their own copies of a context.
    """

    def __init__(
        self,
        graph_client: GraphClient,
        discovery: MappingDiscovery,
        resolver: ItemResolver | None = None,
        fetcher: VersionFetcher | None = None,
    ) -> None:
        """Initialise the service.

        Args:
            graph_client: Authenticated GraphClient shared by all stages.
            discovery: Source of candidate mappings.
            resolver: Item resolver; built from ``graph_client`` when omitted.
            fetcher: Version fetcher; built from ``graph_client`` when omitted.
        """
        self._graph = graph_client
        self._discovery = discovery
        self._resolver = resolver or ItemResolver(graph_client)
        self._fetcher = fetcher or VersionFetcher(graph_client)
        self._store = VersionContextStore(self._build_context)

    @property
    def store(self) -> VersionContextStore:
        return self._store

    def find_mapping(self, local_path: str) -> Mapping | None:
        """Detect the mapping for a local file without touching the network."""
        path = normalize_local_root(local_path)
        return select_mapping(path, self._discovery.candidates(path))

    async def load_versions(self, local_path: str, *, interactive: bool = True) -> VersionContext:
        """Resolve the file and (re)load its versions into the store.

        Raises:
            MappingNotFoundError: If no mapping contains the file.
            ItemNotFoundError: If resolution exhausted every strategy.
            AccessDeniedError: If the last resolution attempt was refused.
            NoVersionsError: If the item has no versions.
            AuthRequiredError: If ``interactive`` is False and no token is cached.
        """
        return await self._store.load(local_path, interactive=interactive)

    async def ensure_context(self, local_path: str, *, interactive: bool = True) -> VersionContext:
        """Return the cached context, loading it first when absent."""
        cached = self._store.get(local_path)
        if cached is not None:
            return cached
        return await self.load_versions(local_path, interactive=interactive)

    def get_cached_context(self, local_path: str) -> VersionContext | None:
        return self._store.get(local_path)

    def clear_cached_context(self, local_path: str) -> None:
        self._store.clear(local_path)

    def set_selected_index(self, local_path: str, index: int) -> VersionContext:
        return self._store.set_index(local_path, index)

    async def step_selection(self, local_path: str, delta: int) -> VersionContext:
        """Move the selection by ``delta``; positive is older, negative is newer."""
        context = await self.ensure_context(local_path)
        return self._store.set_index(local_path, context.selected_index + delta)

    async def download_version_bytes(
        self,
        local_path: str,
        version_id: str,
        *,
        interactive: bool = True,
    ) -> bytes:
        """Download the content of one version of a local file.

        Graph may refuse to serve the current version through the versions
        endpoint; the item's own content is downloaded instead in that case.
        """
        context = await self.ensure_context(local_path, interactive=interactive)
        base = item_endpoint(context.drive_id, context.item_id)
        try:
            return await self._graph.get_content(
                f"{base}/versions/{encode_segment(version_id)}/content",
                interactive=interactive,
            )
        except GraphApiError as exc:
            is_current = version_id == context.versions[0].id
            if not (is_current and exc.is_current_version_content_unsupported):
                raise
            logger.info(
                "[download_version_bytes] current version served from item content; item_id:%s",
                context.item_id,
            )
            return await self._graph.get_content(f"{base}/content", interactive=interactive)

    async def _build_context(self, local_path: str, interactive: bool) -> VersionContext:
        path = normalize_local_root(local_path)
        mapping = self.find_mapping(path)
        if mapping is None:
            raise MappingNotFoundError(path)
        logger.info(
            "[_build_context] selected mapping; path:%s;local_root:%s;drive_id:%s",
            path,
            mapping.local_root,
            mapping.drive_id,
        )

        segments = relative_segments(mapping.local_root, path)
        item = await self._resolver.resolve(mapping, segments, interactive=interactive)
        drive_id = item.drive_id or mapping.drive_id
        if not drive_id:
            raise ItemNotFoundError(
                "drive-id", f"item {item.id} has no parent driveId and the mapping names none"
            )

        versions = await self._fetcher.fetch(drive_id, item.id, interactive=interactive)
        return VersionContext(drive_id=drive_id, item_id=item.id, versions=tuple(versions))


def version_service_from_config(
    config: AppConfig,
    prompt: PromptCallback | None = None,
) -> VersionService:
    """Construct a VersionService from application configuration.

    Args:
        config: Application configuration instance.
        prompt: Receives device-code sign-in instructions.

    Returns:
        Configured VersionService instance.
    """
    client = graph_client_from_config(config, prompt)
    return VersionService(
        graph_client=client,
        discovery=MappingDiscovery(configured=config.mappings),
    )

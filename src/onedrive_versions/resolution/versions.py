"""Version history retrieval for resolved drive items."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from onedrive_versions.errors import NoVersionsError
from onedrive_versions.graph.models import SELECT_VERSION, Version
from onedrive_versions.resolution.remote_path import encode_segment

if TYPE_CHECKING:
    from onedrive_versions.graph.client import GraphClient

logger = logging.getLogger(__name__)


def item_endpoint(drive_id: str, item_id: str) -> str:
    return f"/drives/{encode_segment(drive_id)}/items/{encode_segment(item_id)}"


class VersionFetcher:
    """Fetches a drive item's versions, newest first."""

    def __init__(self, graph_client: GraphClient) -> None:
        self._graph = graph_client

    async def fetch(
        self, drive_id: str, item_id: str, *, interactive: bool = True
    ) -> list[Version]:
        """Fetch every version of an item and sort it newest first.

        The sort is stable: versions with equal timestamps keep API order.

        Raises:
            NoVersionsError: If the API returns no versions.
            GraphApiError: If the versions request fails.
        """
        endpoint = f"{item_endpoint(drive_id, item_id)}/versions?{SELECT_VERSION}"
        entries = await self._graph.get_paged(endpoint, interactive=interactive)
        versions = sorted(
            (Version.from_json(raw) for raw in entries),
            key=lambda v: v.last_modified,
            reverse=True,
        )
        if not versions:
            raise NoVersionsError(drive_id, item_id)
        logger.info(
            "[fetch] fetched versions; drive_id:%s;item_id:%s;count:%d",
            drive_id,
            item_id,
            len(versions),
        )
        return versions

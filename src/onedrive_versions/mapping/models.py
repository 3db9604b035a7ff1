"""Local-root to remote-root mapping model."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from onedrive_versions.mapping.paths import normalize_local_root

# Configuration JSON field names
FIELD_LOCAL_ROOT = "localRoot"
FIELD_DRIVE_ID = "driveId"
FIELD_REMOTE_ROOT = "remoteRoot"
FIELD_URL_NAMESPACE = "urlNamespace"
FIELD_FULL_REMOTE_PATH = "fullRemotePath"

# Some registry entries store a malformed protocol like "https:/contoso...".
_SINGLE_SLASH_PROTOCOL_RE = re.compile(r"^(https?):/(?!/)", re.IGNORECASE)


def normalize_share_base_url(value: str) -> str:
    """Trim a stored URL and repair a single-slash http(s) protocol."""
    trimmed = value.strip()
    if not trimmed:
        return trimmed
    return _SINGLE_SLASH_PROTOCOL_RE.sub(r"\1://", trimmed)


def _optional(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


@dataclass
class Mapping:
    """Association between a local sync root and a remote drive location."""

    local_root: str
    """Canonical local root; normalized on construction."""

    drive_id: str | None = None
    """Explicit drive to search; when set, no other drive is tried."""

    remote_root: str = "/"
    """Folder inside the drive that ``local_root`` mirrors."""

    url_namespace: str | None = None
    full_remote_path: str | None = None

    def __post_init__(self) -> None:
        self.local_root = normalize_local_root(self.local_root)

    @property
    def share_roots(self) -> list[str]:
        """Web URLs the local root is known to mirror, most specific first."""
        values = (self.full_remote_path, self.url_namespace)
        return [normalize_share_base_url(v) for v in values if v and v.strip()]

    @classmethod
    def from_config(cls, raw: Any) -> Mapping | None:
        """Build a mapping from a user-configured JSON object.

        Returns None for entries without a usable ``localRoot``.
        """
        if not isinstance(raw, dict):
            return None
        local_root = _optional(raw.get(FIELD_LOCAL_ROOT))
        if local_root is None:
            return None
        return cls(
            local_root=local_root,
            drive_id=_optional(raw.get(FIELD_DRIVE_ID)),
            remote_root=_optional(raw.get(FIELD_REMOTE_ROOT)) or "/",
            url_namespace=_optional(raw.get(FIELD_URL_NAMESPACE)),
            full_remote_path=_optional(raw.get(FIELD_FULL_REMOTE_PATH)),
        )

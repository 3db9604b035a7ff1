"""Data models for Microsoft Graph drives, drive items and versions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

# Graph API JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_DRIVE_ID = "driveId"
FIELD_DRIVE_TYPE = "driveType"
FIELD_WEB_URL = "webUrl"
FIELD_PARENT_REFERENCE = "parentReference"
FIELD_LAST_MODIFIED = "lastModifiedDateTime"
FIELD_LAST_MODIFIED_BY = "lastModifiedBy"
FIELD_USER = "user"
FIELD_DISPLAY_NAME = "displayName"
FIELD_SIZE = "size"
FIELD_ERROR = "error"
FIELD_CODE = "code"
FIELD_MESSAGE = "message"

# OData response keys
ODATA_NEXT_LINK = "@odata.nextLink"
ODATA_VALUE = "value"

# Graph error codes
CODE_ITEM_NOT_FOUND = "itemNotFound"
CODE_ACCESS_DENIED = "accessDenied"
CODE_INVALID_REQUEST = "invalidRequest"

# $select clauses
SELECT_ITEM = "$select=id,name,parentReference"
SELECT_DRIVE = "$select=id,name,driveType"
SELECT_DRIVE_WITH_URL = "$select=id,name,driveType,webUrl"
SELECT_VERSION = "$select=id,lastModifiedDateTime,size,lastModifiedBy"

# Graph emits up to seven fractional digits; datetime accepts at most six.
_FRACTION_RE = re.compile(r"\.(\d{6})\d+")

# Stands in for missing or malformed timestamps; sorts before every real one.
UNKNOWN_TIMESTAMP = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class DriveItem:
    """A file or folder resolved from a drive path or share URL."""

    id: str
    name: str
    drive_id: str | None = None

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> DriveItem:
        parent_ref = raw.get(FIELD_PARENT_REFERENCE) or {}
        return cls(
            id=raw.get(FIELD_ID, ""),
            name=raw.get(FIELD_NAME, ""),
            drive_id=parent_ref.get(FIELD_DRIVE_ID) or None,
        )


@dataclass(frozen=True)
class Drive:
    """A drive visible to the signed-in user."""

    id: str
    name: str = ""
    drive_type: str = ""
    web_url: str = ""

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> Drive:
        return cls(
            id=raw.get(FIELD_ID, ""),
            name=raw.get(FIELD_NAME, "") or "",
            drive_type=raw.get(FIELD_DRIVE_TYPE, "") or "",
            web_url=raw.get(FIELD_WEB_URL, "") or "",
        )


@dataclass(frozen=True)
class Version:
    """One historical snapshot of a drive item."""

    id: str
    last_modified: datetime
    size: int | None = None
    modified_by: str | None = None

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> Version:
        user = (raw.get(FIELD_LAST_MODIFIED_BY) or {}).get(FIELD_USER) or {}
        size = raw.get(FIELD_SIZE)
        return cls(
            id=str(raw.get(FIELD_ID, "")),
            last_modified=parse_timestamp(raw.get(FIELD_LAST_MODIFIED, "")),
            size=size if isinstance(size, int) else None,
            modified_by=user.get(FIELD_DISPLAY_NAME),
        )


def parse_timestamp(value: str) -> datetime:
    """Parse a Graph ISO-8601 timestamp into an aware datetime (UTC when no offset is given).

    Missing or malformed values sort as the oldest possible time.
    """
    if not value:
        return UNKNOWN_TIMESTAMP
    text = _FRACTION_RE.sub(r".\1", value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return UNKNOWN_TIMESTAMP
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed

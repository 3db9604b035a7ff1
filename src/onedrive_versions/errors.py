"""Error taxonomy for mapping, resolution and version retrieval."""

from __future__ import annotations


class OneDriveVersionsError(Exception):
    """Base class for failures surfaced to the UI layer."""


class MappingNotFoundError(OneDriveVersionsError):
    """Raised when no mapping contains the local path.

    The UI treats this as "inactive" rather than as an error.
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"File is not inside a detected OneDrive root: {path}")
        self.path = path


class ItemNotFoundError(OneDriveVersionsError):
    """Raised when every resolution strategy is exhausted."""

    def __init__(self, strategy: str, detail: str) -> None:
        super().__init__(f"itemNotFound ({strategy}): {detail}")
        self.strategy = strategy
        self.detail = detail


class AccessDeniedError(OneDriveVersionsError):
    """Raised when the last applicable strategy was refused by the API."""

    def __init__(self, endpoint: str, detail: str) -> None:
        super().__init__(f"accessDenied for {endpoint}: {detail}")
        self.endpoint = endpoint
        self.detail = detail


class AuthRequiredError(OneDriveVersionsError):
    """Raised by a token provider asked for a token without user interaction."""

    def __init__(self, message: str = "AUTH_REQUIRED") -> None:
        super().__init__(message)


class NoVersionsError(OneDriveVersionsError):
    """Raised when a resolved item has an empty version history."""

    def __init__(self, drive_id: str, item_id: str) -> None:
        super().__init__(
            f"No OneDrive versions were returned for item {item_id} in drive {drive_id}"
        )
        self.drive_id = drive_id
        self.item_id = item_id

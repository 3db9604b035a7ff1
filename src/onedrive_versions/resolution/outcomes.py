"""Tagged results returned by item resolution strategies."""

from __future__ import annotations

from dataclasses import dataclass

from onedrive_versions.graph.models import DriveItem


@dataclass(frozen=True)
class Found:
    item: DriveItem


@dataclass(frozen=True)
class NotFound:
    strategy: str
    detail: str


@dataclass(frozen=True)
class Denied:
    strategy: str
    endpoint: str
    detail: str


@dataclass(frozen=True)
class Fatal:
    """A failure fallback logic must not mask; the orchestrator re-raises it."""

    error: Exception


Outcome = Found | NotFound | Denied | Fatal

"""Candidate mapping discovery from configuration, environment, registry and path names."""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
from collections.abc import Iterable
from pathlib import PurePath
from typing import Any

from onedrive_versions.mapping.models import Mapping
from onedrive_versions.mapping.paths import canonical_key, normalize_local_root

logger = logging.getLogger(__name__)

# Environment variables the OneDrive client sets for personal and business roots
ENVIRONMENT_VARIABLES = ("OneDrive", "OneDriveCommercial", "OneDriveConsumer")

# One subkey per sync relationship
REGISTRY_KEY = r"HKCU\Software\SyncEngines\Providers\OneDrive"
REGISTRY_TIMEOUT = 10

_REGISTRY_KEY_RE = re.compile(
    r"^HKEY_CURRENT_USER\\Software\\SyncEngines\\Providers\\OneDrive\\(.+)$",
    re.IGNORECASE,
)
_REGISTRY_VALUE_RE = re.compile(
    r"^\s*(MountPoint|UrlNamespace|FullRemotePath)\s+REG_\w+\s*(.*?)\s*$",
    re.IGNORECASE,
)

# "OneDrive", "OneDrive - Contoso", "onedrive-contoso"
_ONEDRIVE_SEGMENT_RE = re.compile(r"^onedrive(\b|[ -])", re.IGNORECASE)


def _dedupe(mappings: Iterable[Mapping]) -> list[Mapping]:
    """Drop mappings whose canonical root was already seen, keeping order."""
    seen: set[str] = set()
    result: list[Mapping] = []
    for mapping in mappings:
        key = canonical_key(mapping.local_root)
        if key not in seen:
            seen.add(key)
            result.append(mapping)
    return result


def mappings_from_config(entries: Iterable[Any]) -> list[Mapping]:
    """Build mappings from user configuration, silently skipping invalid entries."""
    mappings: list[Mapping] = []
    for raw in entries:
        mapping = Mapping.from_config(raw)
        if mapping is None:
            logger.debug("[mappings_from_config] skipping entry without localRoot")
            continue
        mappings.append(mapping)
    return mappings


def mappings_from_environment(environ: dict[str, str] | None = None) -> list[Mapping]:
    """Build mappings from the OneDrive environment variables."""
    env = os.environ if environ is None else environ
    roots = [env.get(name, "") for name in ENVIRONMENT_VARIABLES]
    return _dedupe(Mapping(local_root=root.strip()) for root in roots if root and root.strip())


def parse_registry_output(output: str) -> list[Mapping]:
    """Parse ``reg query ... /s`` output into mappings.

    Each subkey under the provider key describes one sync relationship.
    Subkeys without a MountPoint value are ignored.
    """
    entries: dict[str, dict[str, str]] = {}
    current_key = ""
    for line in output.splitlines():
        key_match = _REGISTRY_KEY_RE.match(line)
        if key_match:
            current_key = key_match.group(1).strip()
            entries.setdefault(current_key, {})
            continue
        if not current_key:
            continue
        value_match = _REGISTRY_VALUE_RE.match(line)
        if value_match:
            entries[current_key][value_match.group(1).lower()] = value_match.group(2).strip()

    mappings = (
        Mapping(
            local_root=values["mountpoint"],
            url_namespace=values.get("urlnamespace") or None,
            full_remote_path=values.get("fullremotepath") or None,
        )
        for values in entries.values()
        if values.get("mountpoint")
    )
    return _dedupe(mappings)


def mappings_from_registry() -> list[Mapping]:
    """Query the Windows registry for OneDrive sync relationships.

    Returns an empty list off Windows and on any failure.
    """
    if sys.platform != "win32":
        return []
    try:
        result = subprocess.run(
            ["reg", "query", REGISTRY_KEY, "/s"],
            capture_output=True,
            text=True,
            check=True,
            timeout=REGISTRY_TIMEOUT,
        )
        mappings = parse_registry_output(result.stdout)
    except (OSError, subprocess.SubprocessError, ValueError) as exc:
        logger.warning("[mappings_from_registry] registry query failed; error:%s", exc)
        return []
    logger.info("[mappings_from_registry] found sync roots; count:%d", len(mappings))
    return mappings


def infer_mapping_from_path(local_path: str) -> Mapping | None:
    """Guess a sync root from a path segment named like a OneDrive folder.

    The root is every segment up to and including the first match.
    """
    path = PurePath(normalize_local_root(local_path))
    segments = path.parts[1:] if path.anchor else path.parts
    for index, segment in enumerate(segments):
        if _ONEDRIVE_SEGMENT_RE.match(segment):
            return Mapping(local_root=str(PurePath(path.anchor, *segments[: index + 1])))
    return None


class MappingDiscovery:
    """Collects candidate mappings for a local path, in source order.

    Later sources never override earlier ones; the selector settles ambiguity.
    """

    def __init__(
        self,
        configured: Iterable[Any] = (),
        environ: dict[str, str] | None = None,
    ) -> None:
        """Initialise discovery.

        Args:
            configured: Raw user-configured mapping objects.
            environ: Environment to read; defaults to ``os.environ`` at call time.
        """
        self._configured = list(configured)
        self._environ = environ
        self._registry: list[Mapping] | None = None

    def registry_mappings(self) -> list[Mapping]:
        """Registry mappings, queried once per discovery instance."""
        if self._registry is None:
            self._registry = mappings_from_registry()
        return self._registry

    def candidates(self, local_path: str) -> list[Mapping]:
        candidates = [
            *mappings_from_config(self._configured),
            *mappings_from_environment(self._environ),
            *self.registry_mappings(),
        ]
        inferred = infer_mapping_from_path(local_path)
        if inferred is not None:
            candidates.append(inferred)
        return candidates

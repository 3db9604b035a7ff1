"""Unit tests for mapping/discovery.py — the four mapping sources."""

import subprocess
import sys
from unittest.mock import MagicMock, patch

import pytest

from onedrive_versions.mapping.discovery import (
    MappingDiscovery,
    infer_mapping_from_path,
    mappings_from_config,
    mappings_from_environment,
    mappings_from_registry,
    parse_registry_output,
)
from onedrive_versions.mapping.models import Mapping

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX path fixtures")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_REGISTRY_OUTPUT = """
HKEY_CURRENT_USER\\Software\\SyncEngines\\Providers\\OneDrive\\Personal
    MountPoint    REG_SZ    /mnt/c/Users/x/OneDrive
    LibraryType    REG_SZ    mysite

HKEY_CURRENT_USER\\Software\\SyncEngines\\Providers\\OneDrive\\Business1
    MountPoint    REG_SZ    /mnt/c/Users/x/Contoso/Board - Documents
    UrlNamespace    REG_SZ    https://contoso.sharepoint.com/sites/Board/Shared Documents/
    FullRemotePath    REG_SZ    https:/contoso.sharepoint.com/sites/Board/Shared Documents/General

HKEY_CURRENT_USER\\Software\\SyncEngines\\Providers\\OneDrive\\NoMount
    UrlNamespace    REG_SZ    https://contoso.sharepoint.com/sites/Orphan/

HKEY_CURRENT_USER\\Software\\SyncEngines\\Providers\\OneDrive\\Duplicate
    mountpoint    REG_EXPAND_SZ    /mnt/c/Users/x/OneDrive/
"""


# ---------------------------------------------------------------------------
# Configured mappings
# ---------------------------------------------------------------------------


class TestMappingsFromConfig:
    def test_valid_entry_is_converted(self) -> None:
        result = mappings_from_config(
            [
                {
                    "localRoot": "/Users/x/Work/",
                    "driveId": "b!drive",
                    "remoteRoot": "Documents",
                    "urlNamespace": "https://contoso-my.sharepoint.com/personal/x/Documents",
                }
            ]
        )
        assert result == [
            Mapping(
                local_root="/Users/x/Work",
                drive_id="b!drive",
                remote_root="Documents",
                url_namespace="https://contoso-my.sharepoint.com/personal/x/Documents",
            )
        ]

    def test_invalid_entries_are_discarded_silently(self) -> None:
        result = mappings_from_config(
            [
                {"localRoot": "   "},
                {"localRoot": 42},
                {"driveId": "no-root"},
                "not-an-object",
                {"localRoot": "/Users/x/Keep"},
            ]
        )
        assert [m.local_root for m in result] == ["/Users/x/Keep"]

    def test_blank_optional_fields_become_defaults(self) -> None:
        (mapping,) = mappings_from_config([{"localRoot": "/a", "driveId": " ", "remoteRoot": ""}])
        assert mapping.drive_id is None
        assert mapping.remote_root == "/"


# ---------------------------------------------------------------------------
# Environment mappings
# ---------------------------------------------------------------------------


class TestMappingsFromEnvironment:
    def test_reads_variables_in_fixed_order(self) -> None:
        env = {
            "OneDriveConsumer": "/Users/x/OneDrive",
            "OneDrive": "/Users/x/OneDrive - Contoso",
            "UNRELATED": "/tmp",
        }
        result = mappings_from_environment(env)
        assert [m.local_root for m in result] == [
            "/Users/x/OneDrive - Contoso",
            "/Users/x/OneDrive",
        ]

    def test_duplicates_after_canonicalization_are_removed(self) -> None:
        env = {
            "OneDrive": "/Users/x/OneDrive/",
            "OneDriveCommercial": "/Users/x/OneDrive - Contoso",
            "OneDriveConsumer": "/Users/x/./OneDrive",
        }
        result = mappings_from_environment(env)
        assert [m.local_root for m in result] == [
            "/Users/x/OneDrive",
            "/Users/x/OneDrive - Contoso",
        ]

    def test_blank_values_are_ignored(self) -> None:
        assert mappings_from_environment({"OneDrive": "  "}) == []


# ---------------------------------------------------------------------------
# Registry mappings
# ---------------------------------------------------------------------------


class TestParseRegistryOutput:
    def test_collects_mount_points_and_url_metadata(self) -> None:
        result = parse_registry_output(_REGISTRY_OUTPUT)

        assert [m.local_root for m in result] == [
            "/mnt/c/Users/x/OneDrive",
            "/mnt/c/Users/x/Contoso/Board - Documents",
        ]
        business = result[1]
        assert business.url_namespace == (
            "https://contoso.sharepoint.com/sites/Board/Shared Documents/"
        )
        assert business.full_remote_path == (
            "https:/contoso.sharepoint.com/sites/Board/Shared Documents/General"
        )
        assert business.share_roots == [
            "https://contoso.sharepoint.com/sites/Board/Shared Documents/General",
            "https://contoso.sharepoint.com/sites/Board/Shared Documents/",
        ]

    def test_empty_output_yields_nothing(self) -> None:
        assert parse_registry_output("") == []


class TestMappingsFromRegistry:
    def test_returns_empty_off_windows(self) -> None:
        with (
            patch("onedrive_versions.mapping.discovery.sys.platform", "linux"),
            patch("onedrive_versions.mapping.discovery.subprocess.run") as mock_run,
        ):
            assert mappings_from_registry() == []
        mock_run.assert_not_called()

    def test_parses_reg_query_output_on_windows(self) -> None:
        completed = MagicMock(stdout=_REGISTRY_OUTPUT)
        with (
            patch("onedrive_versions.mapping.discovery.sys.platform", "win32"),
            patch(
                "onedrive_versions.mapping.discovery.subprocess.run", return_value=completed
            ) as mock_run,
        ):
            result = mappings_from_registry()

        assert len(result) == 2
        args = mock_run.call_args[0][0]
        assert args == ["reg", "query", r"HKCU\Software\SyncEngines\Providers\OneDrive", "/s"]

    @pytest.mark.parametrize(
        "error",
        [
            FileNotFoundError("reg"),
            subprocess.CalledProcessError(1, ["reg"]),
            subprocess.TimeoutExpired(["reg"], 10),
        ],
    )
    def test_never_raises(self, error: Exception) -> None:
        with (
            patch("onedrive_versions.mapping.discovery.sys.platform", "win32"),
            patch("onedrive_versions.mapping.discovery.subprocess.run", side_effect=error),
        ):
            assert mappings_from_registry() == []


# ---------------------------------------------------------------------------
# Path inference
# ---------------------------------------------------------------------------


class TestInferMappingFromPath:
    @pytest.mark.parametrize(
        ("path", "root"),
        [
            ("/sync/OneDrive - Contoso/docs/plan.md", "/sync/OneDrive - Contoso"),
            ("/home/x/OneDrive/a.txt", "/home/x/OneDrive"),
            ("/home/x/onedrive-contoso/a.txt", "/home/x/onedrive-contoso"),
            ("/home/x/ONEDRIVE/sub/OneDrive/a.txt", "/home/x/ONEDRIVE"),
        ],
    )
    def test_root_ends_at_first_matching_segment(self, path: str, root: str) -> None:
        mapping = infer_mapping_from_path(path)
        assert mapping is not None
        assert mapping.local_root == root

    @pytest.mark.parametrize(
        "path",
        ["/home/x/Documents/a.txt", "/home/x/MyOneDrive/a.txt", "/home/x/OneDriveBackup/a.txt"],
    )
    def test_no_matching_segment(self, path: str) -> None:
        assert infer_mapping_from_path(path) is None


# ---------------------------------------------------------------------------
# MappingDiscovery
# ---------------------------------------------------------------------------


class TestMappingDiscovery:
    def test_candidates_in_source_order(self) -> None:
        discovery = MappingDiscovery(
            configured=[{"localRoot": "/Users/x/OneDrive/Projects"}],
            environ={"OneDrive": "/Users/x/OneDrive"},
        )
        registry = [Mapping(local_root="/Users/x/Registry")]

        with patch(
            "onedrive_versions.mapping.discovery.mappings_from_registry", return_value=registry
        ):
            result = discovery.candidates("/Users/x/OneDrive/Projects/a.txt")

        assert [m.local_root for m in result] == [
            "/Users/x/OneDrive/Projects",
            "/Users/x/OneDrive",
            "/Users/x/Registry",
            "/Users/x/OneDrive",
        ]

    def test_registry_is_queried_once(self) -> None:
        discovery = MappingDiscovery(environ={})

        with patch(
            "onedrive_versions.mapping.discovery.mappings_from_registry", return_value=[]
        ) as mock_registry:
            discovery.candidates("/a/b.txt")
            discovery.candidates("/a/c.txt")

        mock_registry.assert_called_once()

"""Unit tests for mapping/paths.py — local and remote path canonicalization."""

import sys

import pytest

from onedrive_versions.errors import MappingNotFoundError
from onedrive_versions.mapping.paths import (
    canonical_key,
    is_path_within,
    normalize_local_root,
    normalize_remote_root,
    relative_segments,
    same_path,
)

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX path fixtures")


class TestNormalizeLocalRoot:
    def test_strips_trailing_separators(self) -> None:
        assert normalize_local_root("/Users/x/OneDrive///") == "/Users/x/OneDrive"

    def test_resolves_dot_segments(self) -> None:
        assert normalize_local_root("/Users/x/../y/./OneDrive") == "/Users/y/OneDrive"

    def test_keeps_filesystem_root(self) -> None:
        assert normalize_local_root("/") == "/"


class TestCanonicalKey:
    def test_equivalent_spellings_share_a_key(self) -> None:
        assert canonical_key("/a/b/../b/file.txt") == canonical_key("/a/b/file.txt")
        assert same_path("/a/b/", "/a/b")

    def test_posix_keys_are_case_sensitive(self) -> None:
        assert not same_path("/a/File.txt", "/a/file.txt")


class TestNormalizeRemoteRoot:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("", "/"),
            ("   ", "/"),
            ("/", "/"),
            ("Documents", "/Documents"),
            ("/Documents/Team/", "/Documents/Team"),
            ("\\Documents\\Team", "/Documents/Team"),
            ("  //Shared//  ", "/Shared"),
        ],
    )
    def test_forms(self, value: str, expected: str) -> None:
        assert normalize_remote_root(value) == expected


class TestIsPathWithin:
    def test_child_is_within(self) -> None:
        assert is_path_within("/Users/x/OneDrive/docs/a.txt", "/Users/x/OneDrive")

    def test_root_itself_is_within(self) -> None:
        assert is_path_within("/Users/x/OneDrive", "/Users/x/OneDrive/")

    def test_sibling_with_common_prefix_is_not_within(self) -> None:
        assert not is_path_within("/Users/x/OneDrive2/a.txt", "/Users/x/OneDrive")

    def test_parent_is_not_within(self) -> None:
        assert not is_path_within("/Users/x", "/Users/x/OneDrive")

    def test_dot_dot_prefixed_name_is_within(self) -> None:
        assert is_path_within("/Users/x/OneDrive/..hidden", "/Users/x/OneDrive")


class TestRelativeSegments:
    def test_splits_relative_path(self) -> None:
        assert relative_segments("/sync/OneDrive", "/sync/OneDrive/docs/plan.md") == [
            "docs",
            "plan.md",
        ]

    def test_root_itself_has_no_segments(self) -> None:
        assert relative_segments("/sync/OneDrive", "/sync/OneDrive") == []

    def test_outside_root_raises(self) -> None:
        with pytest.raises(MappingNotFoundError):
            relative_segments("/sync/OneDrive", "/sync/Other/plan.md")

"""Integration tests for Microsoft Graph API connectivity.

These tests require a real Graph token and a synced file, and are skipped in
CI/CD unless ODV_ACCESS_TOKEN and ODV_TEST_FILE are set.
"""

import asyncio
import os

import pytest

pytestmark = pytest.mark.skipif(
    not (os.getenv("ODV_ACCESS_TOKEN") and os.getenv("ODV_TEST_FILE")),
    reason="Real Graph credentials or synced test file not available",
)


def test_load_versions_real() -> None:
    """Resolve a real synced file and fetch its version history.

    Asserts that at least one version is returned, newest first.
    """
    from onedrive_versions.config import load_config
    from onedrive_versions.orchestration.service import version_service_from_config

    config = load_config()
    service = version_service_from_config(config)
    context = asyncio.run(service.load_versions(os.environ["ODV_TEST_FILE"], interactive=False))

    assert context.versions
    stamps = [v.last_modified for v in context.versions]
    assert stamps == sorted(stamps, reverse=True)

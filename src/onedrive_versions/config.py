"""Application configuration loaded from environment variables."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    ``client_id`` is required unless a static ``access_token`` is supplied;
    ``load_config`` raises KeyError at startup when neither is present.
    """

    client_id: str = ""
    tenant_id: str = "organizations"
    access_token: str = ""

    # User-configured mappings, as raw JSON objects (validated during discovery)
    mappings: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    # Transport
    request_timeout: float = 30.0


def load_mappings_file(path: str | Path) -> list[dict[str, Any]]:
    """Read user-configured mappings from a JSON file.

    The file holds either a list of mapping objects or an object with a
    ``mappings`` list. Individual entries are not validated here.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the JSON is malformed or has the wrong shape.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("mappings", [])
    if not isinstance(data, list):
        raise ValueError(f"Mappings file {path} must contain a JSON list of mappings")
    return data


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        ODV_CLIENT_ID: Entra application (client) ID for device-code sign-in.
            Not required when ODV_ACCESS_TOKEN is set.

    Optional environment variables (with defaults):
        ODV_TENANT_ID: Tenant for sign-in (default: organizations).
        ODV_ACCESS_TOKEN: Pre-acquired Graph bearer token; skips MSAL sign-in.
        ODV_MAPPINGS_FILE: JSON file with user-configured local-to-remote mappings.
        ODV_REQUEST_TIMEOUT: Seconds allowed per HTTP request (default: 30).

    Returns:
        Configured AppConfig instance.
    """
    access_token = os.environ.get("ODV_ACCESS_TOKEN", "").strip()
    if access_token:
        client_id = os.environ.get("ODV_CLIENT_ID", "")
    else:
        client_id = os.environ["ODV_CLIENT_ID"]
    mappings_file = os.environ.get("ODV_MAPPINGS_FILE", "").strip()
    return AppConfig(
        client_id=client_id.strip(),
        tenant_id=os.environ.get("ODV_TENANT_ID", "").strip() or "organizations",
        access_token=access_token,
        mappings=tuple(load_mappings_file(mappings_file)) if mappings_file else (),
        request_timeout=float(os.environ.get("ODV_REQUEST_TIMEOUT", "30")),
    )

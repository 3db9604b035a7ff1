"""Bearer-token providers for Microsoft Graph, backed by MSAL."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

import msal

from onedrive_versions.errors import AuthRequiredError

if TYPE_CHECKING:
    from onedrive_versions.config import AppConfig

logger = logging.getLogger(__name__)

GRAPH_SCOPES = ["https://graph.microsoft.com/Files.Read.All"]
AUTHORITY_BASE_URL = "https://login.microsoftonline.com"
DEFAULT_TENANT = "organizations"

PromptCallback = Callable[[str], None]


class GraphAuthError(Exception):
    """Raised when MSAL token acquisition fails."""


class AccessTokenProvider(Protocol):
    """Anything able to hand out Graph bearer tokens."""

    async def get_token(self, interactive: bool) -> str:
        """Return an access token.

        When ``interactive`` is False the provider must not prompt the user
        and must raise AuthRequiredError if no token is available silently.
        """
        ...


class StaticTokenProvider:
    """Serves a pre-acquired bearer token."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def get_token(self, interactive: bool) -> str:
        return self._token


def _log_prompt(message: str) -> None:
    logger.warning("[device_code] %s", message)


class DeviceCodeTokenProvider:
    """Device-code sign-in with silent reuse of the signed-in account."""

    def __init__(
        self,
        client_id: str,
        tenant_id: str = DEFAULT_TENANT,
        scopes: list[str] | None = None,
        prompt: PromptCallback | None = None,
    ) -> None:
        """Initialise the MSAL public client application.

        Args:
            client_id: Entra application (client) ID registered for public client flows.
            tenant_id: Tenant ID or one of "organizations" / "common" / "consumers".
            scopes: Graph scopes to request.
            prompt: Receives the device-code instructions shown to the user.
        """
        self._app = msal.PublicClientApplication(
            client_id=client_id,
            authority=f"{AUTHORITY_BASE_URL}/{tenant_id or DEFAULT_TENANT}",
        )
        self._scopes = list(scopes or GRAPH_SCOPES)
        self._prompt = prompt or _log_prompt
        self._home_account_id: str | None = None

    async def get_token(self, interactive: bool) -> str:
        token = await asyncio.to_thread(self._acquire_silent)
        if token is not None:
            return token
        if not interactive:
            raise AuthRequiredError()
        return await asyncio.to_thread(self._acquire_by_device_code)

    def _acquire_silent(self) -> str | None:
        """Return a cached or refreshed token for the remembered account, if any."""
        if self._home_account_id is None:
            return None
        account = next(
            (
                a
                for a in self._app.get_accounts()
                if a.get("home_account_id") == self._home_account_id
            ),
            None,
        )
        if account is None:
            return None
        result: dict[str, Any] = self._app.acquire_token_silent(self._scopes, account=account) or {}
        if "access_token" not in result:
            logger.info(
                "[_acquire_silent] silent acquisition yielded no token; error:%s",
                result.get("error", "none"),
            )
            return None
        return str(result["access_token"])

    def _acquire_by_device_code(self) -> str:
        """Run the device-code flow, blocking until the user completes sign-in.

        Raises:
            GraphAuthError: If the flow cannot start or does not return a token.
        """
        flow: dict[str, Any] = self._app.initiate_device_flow(scopes=self._scopes)
        if "user_code" not in flow:
            error = flow.get("error", "unknown_error")
            logger.error("[_acquire_by_device_code] device flow could not start; error:%s", error)
            raise GraphAuthError(
                f"Device code flow failed to start: {error} ({flow.get('error_description', '')})"
            )

        self._prompt(str(flow.get("message", "")))
        result: dict[str, Any] = self._app.acquire_token_by_device_flow(flow) or {}
        if "access_token" not in result:
            error = result.get("error", "unknown_error")
            description = result.get("error_description", "No description provided")
            logger.error("[_acquire_by_device_code] MSAL token acquisition failed; error:%s", error)
            raise GraphAuthError(f"Token acquisition failed: {error} ({description})")

        accounts = self._app.get_accounts()
        if accounts:
            self._home_account_id = accounts[0].get("home_account_id")
        return str(result["access_token"])


def token_provider_from_config(
    config: AppConfig,
    prompt: PromptCallback | None = None,
) -> AccessTokenProvider:
    """Pick a token provider from configuration.

    A configured static token wins; otherwise device-code sign-in is used.

    Args:
        config: Application configuration instance.
        prompt: Receives device-code sign-in instructions.

    Returns:
        Configured provider.
    """
    if config.access_token:
        return StaticTokenProvider(config.access_token)
    return DeviceCodeTokenProvider(
        client_id=config.client_id,
        tenant_id=config.tenant_id,
        prompt=prompt,
    )

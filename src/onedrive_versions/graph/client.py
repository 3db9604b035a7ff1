"""Microsoft Graph API client with pluggable bearer-token acquisition."""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from typing import TYPE_CHECKING, Any
from urllib import request as urllib_request
from urllib.error import HTTPError

from onedrive_versions.graph.auth import token_provider_from_config
from onedrive_versions.graph.models import (
    CODE_ACCESS_DENIED,
    CODE_INVALID_REQUEST,
    CODE_ITEM_NOT_FOUND,
    FIELD_CODE,
    FIELD_ERROR,
    FIELD_MESSAGE,
    ODATA_NEXT_LINK,
    ODATA_VALUE,
)

if TYPE_CHECKING:
    from onedrive_versions.config import AppConfig
    from onedrive_versions.graph.auth import AccessTokenProvider, PromptCallback

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_TIMEOUT = 30.0


class ErrorKind(enum.Enum):
    """Classification of a failed Graph response."""

    NOT_FOUND = "notFound"
    ACCESS_DENIED = "accessDenied"
    OTHER = "other"


class GraphApiError(Exception):
    """Raised when the Graph API returns a non-2xx response."""

    def __init__(self, status_code: int, message: str, code: str = "", body: str = "") -> None:
        super().__init__(f"Graph API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.code = code
        self.body = body

    @property
    def kind(self) -> ErrorKind:
        """Whether this failure may be cascaded past by resolution fallbacks."""
        if self.status_code == 404 or self.code == CODE_ITEM_NOT_FOUND:
            return ErrorKind.NOT_FOUND
        if self.status_code == 403 or self.code == CODE_ACCESS_DENIED:
            return ErrorKind.ACCESS_DENIED
        return ErrorKind.OTHER

    @property
    def is_current_version_content_unsupported(self) -> bool:
        """True when Graph refuses to serve the current version via the versions endpoint."""
        return (
            self.status_code == 400
            and self.code == CODE_INVALID_REQUEST
            and "current version" in self.message.lower()
        )


class GraphClient:
    """Authenticated read-only client for Microsoft Graph API.

    Requests run on a worker thread so callers can await them; one call is
    one round trip and nothing is issued concurrently by the client itself.
    """

    def __init__(
        self,
        token_provider: AccessTokenProvider,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialise the client.

        Args:
            token_provider: Source of bearer tokens.
            timeout: Per-request socket timeout in seconds.
        """
        self._tokens = token_provider
        self._timeout = timeout

    async def get_json(self, path: str, *, interactive: bool = True) -> dict[str, Any]:
        """Perform an authenticated GET request and decode the JSON body.

        Args:
            path: URL path relative to GRAPH_BASE_URL (must start with '/'),
                or an absolute Graph URL such as an @odata.nextLink.
            interactive: Whether the token provider may prompt the user.

        Returns:
            Parsed JSON response body as a dict.

        Raises:
            AuthRequiredError: If interactive is False and no cached token exists.
            GraphAuthError: If token acquisition fails.
            GraphApiError: If the API returns a non-2xx status code.
        """
        token = await self._tokens.get_token(interactive)
        body = await asyncio.to_thread(self._request, path, token, "application/json")
        return json.loads(body)  # type: ignore[no-any-return]

    async def get_content(self, path: str, *, interactive: bool = True) -> bytes:
        """Perform an authenticated GET request and return the raw body.

        Raises:
            AuthRequiredError: If interactive is False and no cached token exists.
            GraphAuthError: If token acquisition fails.
            GraphApiError: If the API returns a non-2xx status code.
        """
        token = await self._tokens.get_token(interactive)
        return await asyncio.to_thread(self._request, path, token, "*/*")

    async def get_paged(self, path: str, *, interactive: bool = True) -> list[dict[str, Any]]:
        """Collect the ``value`` entries of a collection, following @odata.nextLink."""
        entries: list[dict[str, Any]] = []
        next_path: str | None = path
        pages = 0
        while next_path is not None:
            response = await self.get_json(next_path, interactive=interactive)
            entries.extend(response.get(ODATA_VALUE) or [])
            next_path = response.get(ODATA_NEXT_LINK)
            pages += 1
        logger.debug(
            "[get_paged] collected entries; path:%s;pages:%d;count:%d", path, pages, len(entries)
        )
        return entries

    def _request(self, path: str, token: str, accept: str) -> bytes:
        url = self._absolute_url(path)
        req = urllib_request.Request(
            url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": accept,
            },
            method="GET",
        )
        logger.debug("[_request] GET; url:%s", url)
        try:
            with urllib_request.urlopen(req, timeout=self._timeout) as resp:
                return resp.read()  # type: ignore[no-any-return]
        except HTTPError as exc:
            raise self._api_error(exc) from exc

    @staticmethod
    def _absolute_url(path: str) -> str:
        if path.startswith(("https://", "http://")):
            return path
        return f"{GRAPH_BASE_URL}{path}"

    @staticmethod
    def _api_error(exc: HTTPError) -> GraphApiError:
        raw = exc.read() or b""
        body = raw.decode("utf-8", errors="replace")
        code = ""
        message = str(exc.reason)
        try:
            error = json.loads(body).get(FIELD_ERROR) or {}
        except (ValueError, AttributeError):
            error = {}
        if isinstance(error, dict):
            code = str(error.get(FIELD_CODE) or "")
            message = str(error.get(FIELD_MESSAGE) or message)
        return GraphApiError(exc.code, message, code=code, body=body)


def graph_client_from_config(
    config: AppConfig,
    prompt: PromptCallback | None = None,
) -> GraphClient:
    """Construct a GraphClient from application configuration.

    Args:
        config: Application configuration instance.
        prompt: Receives device-code sign-in instructions.

    Returns:
        Configured GraphClient instance.
    """
    return GraphClient(
        token_provider=token_provider_from_config(config, prompt),
        timeout=config.request_timeout,
    )

"""
Async REST client base for venue APIs.

Optimized for low-latency order entry with:
- Connection pooling and keep-alive
- Fast JSON parsing with orjson
- Per-venue request signing hooks
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlencode

import aiohttp
import orjson

from crossarb.config.constants import HTTP_REQUEST_TIMEOUT


class VenueError(Exception):
    """Base exception for venue client errors (network, decoding)."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class VenueAPIError(VenueError):
    """Exception for requests the venue rejected."""

    pass


class VenueClient:
    """
    Shared plumbing for a signed JSON REST API.

    Features:
    - Single session with connection pooling
    - orjson for request and response bodies
    - Subclasses provide authentication headers and payload checks
    """

    venue_name = "venue"

    def __init__(self, base_url: str, timeout: float = HTTP_REQUEST_TIMEOUT) -> None:
        """
        Initialize the client.

        Args:
            base_url: REST base URL without trailing slash.
            timeout: Total timeout per request in seconds.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=20,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )

            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )

        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    @asynccontextmanager
    async def _request_context(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Context manager for making requests."""
        session = await self._get_session()
        try:
            yield session
        except (aiohttp.ClientError, TimeoutError) as e:
            raise VenueError(f"{self.venue_name} network error: {e!r}") from e

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        signed: bool = True,
    ) -> dict[str, Any]:
        """
        Make an API request.

        Args:
            method: HTTP method (GET, POST, DELETE).
            path: API endpoint path.
            params: Query parameters.
            body: JSON body.
            signed: Whether the request carries authentication headers.

        Returns:
            Parsed JSON response.

        Raises:
            VenueAPIError: On API error response.
            VenueError: On network or other errors.
        """
        query = urlencode(params) if params else ""
        request_path = f"{path}?{query}" if query else path
        payload = orjson.dumps(body).decode() if body is not None else ""

        headers = self._auth_headers(method, request_path, query, payload) if signed else {}

        async with self._request_context() as session:
            async with session.request(
                method,
                f"{self._base_url}{request_path}",
                data=payload or None,
                headers=headers,
            ) as response:
                return await self._handle_response(response)

    def _auth_headers(self, method: str, path: str, query: str, payload: str) -> dict[str, str]:
        """
        Build authentication headers for a request.

        Args:
            method: HTTP method.
            path: Path including the query string.
            query: Query string alone.
            payload: Serialized body, empty if none.
        """
        raise NotImplementedError

    async def _handle_response(self, response: aiohttp.ClientResponse) -> dict[str, Any]:
        """Parse and validate response."""
        text = await response.text()

        try:
            data = orjson.loads(text) if text else {}
        except orjson.JSONDecodeError as e:
            if response.status >= 400:
                raise VenueAPIError(
                    f"{self.venue_name} HTTP {response.status}: {text[:200]}",
                    code=response.status,
                ) from e
            raise VenueError(f"{self.venue_name} invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise VenueError(f"{self.venue_name} unexpected response type: {type(data).__name__}")

        if response.status >= 400:
            code = data.get("code", response.status)
            msg = data.get("msg", text)
            raise VenueAPIError(f"{self.venue_name} API error {code}: {msg}", code=code)

        self._check_payload(data)
        return data

    def _check_payload(self, data: dict[str, Any]) -> None:
        """Raise VenueAPIError if a 2xx body reports a business error."""

    async def __aenter__(self) -> "VenueClient":
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

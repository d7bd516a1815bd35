# uniform request dispatch for the storefront REST API
import asyncio
from typing import Any, Awaitable, Callable, Optional

import requests

from api.errors import (
    ApiError,
    AuthenticationError,
    ConnectivityError,
    RequestTimeoutError,
)
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

TokenProvider = Callable[[], Optional[str]]
UnauthorizedHandler = Callable[[], Awaitable[None]]


def _decode_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(payload: Any) -> Optional[str]:
    """Pull the human readable message out of an error payload."""
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            if payload.get(key):
                return str(payload[key])
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return None


class ApiClient:
    """
    Thin wrapper over a requests.Session.

    Attaches the bearer token of the current session, classifies failures
    into the ShopError hierarchy and invalidates the session on any 401.
    Blocking I/O runs in a worker thread so the UI loop never waits on it.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.timeout = config.REQUEST_TIMEOUT if timeout is None else timeout
        self.http = http or requests.Session()

        self._token_provider: TokenProvider = lambda: None
        self._on_unauthorized: Optional[UnauthorizedHandler] = None

    def bind(
        self,
        token_provider: TokenProvider,
        on_unauthorized: Optional[UnauthorizedHandler] = None,
    ) -> None:
        """Wire in the session: where to read the token, what to do on 401."""
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized

    def close(self) -> None:
        self.http.close()

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        return self.http.request(method, url, timeout=self.timeout, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        files: Optional[dict] = None,
        data: Optional[dict] = None,
    ) -> Any:
        """
        Send one request and return the decoded body (JSON, text or None).

        Raises:
            AuthenticationError: 401, after the session has been invalidated.
            ApiError: any other status >= 400.
            RequestTimeoutError: no answer within the timeout.
            ConnectivityError: no connection could be made.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        _logger.debug(f"{method} {url} params={params}")

        try:
            response = await asyncio.to_thread(
                self._send,
                method,
                url,
                headers=self._headers(),
                params=params,
                json=json,
                files=files,
                data=data,
            )
        # ConnectTimeout is both a Timeout and a ConnectionError
        except requests.exceptions.Timeout as e:
            _logger.error(f"{method} {url} timed out after {self.timeout}s")
            raise RequestTimeoutError(
                "The server is taking too long to respond. Please try again."
            ) from e
        except requests.exceptions.ConnectionError as e:
            _logger.error(f"{method} {url} failed: server unreachable")
            raise ConnectivityError(
                f"Cannot reach the server at {self.base_url}. "
                "Please check that it is running."
            ) from e

        payload = _decode_body(response)
        _logger.debug(f"{method} {url} -> {response.status_code}")

        if response.status_code == 401:
            _logger.warning(f"{method} {url} -> 401, invalidating session")
            if self._on_unauthorized is not None:
                await self._on_unauthorized()
            message = _error_message(payload)
            if message:
                raise AuthenticationError(message, payload)
            raise AuthenticationError(payload=payload)

        if response.status_code >= 400:
            message = _error_message(payload)
            raise ApiError(
                response.status_code,
                message or f"Request failed with status {response.status_code}.",
                payload,
            )

        return payload

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

"""HTTP transport for the kintone REST API.

Defines the HttpTransport protocol the record client depends on, and the httpx
backed implementation used in production. GET parameters travel in the query
string; every other verb sends its parameters as a JSON body.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx

from .. import __version__
from ..config import ClientConfig
from .errors import (
    APIClientError,
    KintoneAPIError,
    NetworkError,
    RequestTimeoutError,
    ResponseDecodeError,
)

logger = logging.getLogger(__name__)

API_TOKEN_HEADER = "X-Cybozu-API-Token"
USER_AGENT = f"kintone-client-python/{__version__}"


class HttpTransport(Protocol):
    """Capability the record client needs from an HTTP layer.

    ``path`` is relative to the REST API prefix (e.g. ``/record.json``).
    Implementations return the decoded JSON body or raise an APIClientError.
    """

    async def get(self, path: str, params: Dict[str, Any]) -> Any: ...

    async def post(self, path: str, params: Dict[str, Any]) -> Any: ...

    async def put(self, path: str, params: Dict[str, Any]) -> Any: ...

    async def delete(self, path: str, params: Dict[str, Any]) -> Any: ...


def build_query_params(params: Dict[str, Any]) -> List[Tuple[str, str]]:
    """Flatten request parameters into query string pairs.

    Nested lists and mappings use bracket-indexed keys, so
    ``{"fields": ["a", "b"]}`` becomes ``fields[0]=a&fields[1]=b``. Booleans
    are written as ``true``/``false`` and None values are dropped.

    Args:
        params: Request parameters

    Returns:
        Ordered list of (key, value) pairs
    """
    pairs: List[Tuple[str, str]] = []

    def _flatten(key: str, value: Any) -> None:
        if value is None:
            return
        if isinstance(value, bool):
            pairs.append((key, "true" if value else "false"))
        elif isinstance(value, dict):
            for sub_key, sub_value in value.items():
                _flatten(f"{key}[{sub_key}]", sub_value)
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                _flatten(f"{key}[{index}]", item)
        else:
            pairs.append((key, str(value)))

    for name, value in params.items():
        _flatten(name, value)
    return pairs


class KintoneHttpClient:
    """httpx implementation of HttpTransport.

    Args:
        config: Client configuration (base URL, token, guest space, timeout)
    """

    def __init__(self, config: ClientConfig):
        self.config = config
        self._client: Optional[httpx.AsyncClient] = None

    def build_url(self, path: str) -> str:
        """Get full URL for an API path."""
        return f"{self.config.base_url}{self.config.api_path_prefix}{path}"

    def get_request_headers(self) -> Dict[str, str]:
        """Get headers sent with every request."""
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if self.config.api_token:
            headers[API_TOKEN_HEADER] = self.config.api_token
        return headers

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers=self.get_request_headers(),
            )
        return self._client

    async def get(self, path: str, params: Dict[str, Any]) -> Any:
        return await self._request("GET", path, params=build_query_params(params))

    async def post(self, path: str, params: Dict[str, Any]) -> Any:
        return await self._request("POST", path, json=params)

    async def put(self, path: str, params: Dict[str, Any]) -> Any:
        return await self._request("PUT", path, json=params)

    async def delete(self, path: str, params: Dict[str, Any]) -> Any:
        return await self._request("DELETE", path, json=params)

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and decode the response body.

        Args:
            method: HTTP method
            path: API path relative to the REST prefix
            **kwargs: ``params`` or ``json`` for httpx

        Returns:
            Decoded JSON body (``{}`` for an empty body)

        Raises:
            KintoneAPIError: For non-2xx responses (ServerError for 5xx)
            RequestTimeoutError: For request timeouts
            NetworkError: For connection and other network failures
            ResponseDecodeError: For a 2xx body that is not JSON
        """
        url = self.build_url(path)
        logger.debug(f"{method} {url}")

        try:
            response = await self.session.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Request timed out after {self.config.timeout} seconds: {str(e)}"
            ) from e
        except httpx.ConnectError as e:
            raise NetworkError(
                f"Connection failed to {self.config.base_url}: {str(e)}"
            ) from e
        except httpx.NetworkError as e:
            raise NetworkError(
                f"Network error connecting to {self.config.base_url}: {str(e)}"
            ) from e
        except httpx.HTTPError as e:
            raise APIClientError(f"HTTP error: {str(e)}") from e

        if not 200 <= response.status_code < 300:
            try:
                error_body = response.json()
            except ValueError:
                error_body = None
            error = KintoneAPIError.from_response_body(
                response.status_code, error_body, response.text
            )
            logger.debug(f"{method} {url} failed: {error}")
            raise error

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise ResponseDecodeError(
                f"Invalid JSON response from {method} {path}: {str(e)}",
                response.status_code,
            ) from e

    async def close(self):
        """Close HTTP client and cleanup resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager."""
        await self.close()

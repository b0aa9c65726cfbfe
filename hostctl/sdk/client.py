"""
HTTP Client for the hosting API.

Provides a synchronous HTTP client for communicating with the API.
All requests include X-Frontend-ID: cli header for log routing and
the bearer token from config/.env.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from hostctl.core.config import get_api_base_url, get_settings
from hostctl.core.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    NotFoundError,
    RemoteOperationError,
)
from hostctl.core.logging import get_logger, log_with_source

logger = get_logger(__name__)


def _error_detail(response: httpx.Response) -> tuple[str, dict]:
    """Pull a human-readable message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase, {}
    if isinstance(body, dict):
        message = body.get("message") or body.get("error") or response.reason_phrase
        return str(message), body
    return response.reason_phrase, {"body": body}


def raise_for_status(response: httpx.Response) -> None:
    """
    Map an unsuccessful response onto the application exceptions.

    Raises:
        AuthenticationError: 401 / 403
        NotFoundError: 404
        RemoteOperationError: other 4xx (the API rejected the operation)
        ExternalServiceError: 5xx
    """
    status = response.status_code
    if status < 400:
        return

    message, details = _error_detail(response)
    if status in (401, 403):
        raise AuthenticationError(message)
    if status == 404:
        raise NotFoundError(message)
    if status < 500:
        raise RemoteOperationError(message, details=details)
    raise ExternalServiceError(f"API error {status}: {message}")


class APIClient:
    """
    HTTP client for API communication.

    Features:
    - Base URL and timeout from application.yaml
    - Bearer token from config/.env
    - X-Frontend-ID header for log routing
    - Structured logging of requests/responses
    - Status codes mapped onto application exceptions

    Usage:
        client = APIClient()
        data = client.get_json("/cloud-account/42")
        response = client.post("/cloud-account/42/backup")
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the API client.

        Args:
            base_url: API base URL. If None, reads from config/settings/application.yaml.
            timeout: Request timeout in seconds. If None, reads from application.yaml.
            token: API token. If None, reads from config/.env.
            transport: Optional httpx transport (used for testing).
        """
        if base_url is None or timeout is None:
            config_base_url, config_timeout = get_api_base_url()
            base_url = base_url or config_base_url
            timeout = timeout if timeout is not None else config_timeout
        if token is None:
            token = get_settings().api_token

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"X-Frontend-ID": "cli", "Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()
            self._client = None

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path (e.g., /cloud-account/42)
            **kwargs: Additional arguments for httpx

        Returns:
            httpx.Response

        Raises:
            ExternalServiceError: On transport failure or 5xx
            NotFoundError, AuthenticationError, RemoteOperationError: On 4xx
        """
        client = self._get_client()

        log_with_source(logger, "sdk", "debug", "API request", method=method, path=path)

        try:
            response = client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log_with_source(
                logger, "sdk", "error", "API request failed",
                method=method, path=path, error=str(e),
            )
            raise ExternalServiceError(f"Request to {path} failed: {e}") from e

        log_with_source(
            logger, "sdk", "debug", "API response",
            method=method, path=path, status_code=response.status_code,
        )
        raise_for_status(response)
        return response

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a GET request."""
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a POST request."""
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a PUT request."""
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a PATCH request."""
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a DELETE request."""
        return self.request("DELETE", path, **kwargs)

    def get_json(self, path: str, **kwargs: Any) -> Any:
        """GET a path and decode the JSON body."""
        return self.get(path, **kwargs).json()

    def post_json(self, path: str, **kwargs: Any) -> Any:
        """POST to a path and decode the JSON body."""
        return self.post(path, **kwargs).json()

    @contextmanager
    def stream(self, path: str, **kwargs: Any) -> Iterator[httpx.Response]:
        """Stream a GET response body (downloads)."""
        client = self._get_client()
        log_with_source(logger, "sdk", "debug", "API stream", path=path)
        try:
            with client.stream("GET", path, **kwargs) as response:
                if response.is_error:
                    response.read()
                raise_for_status(response)
                yield response
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Download from {path} failed: {e}") from e

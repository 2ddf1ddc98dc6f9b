"""
HTTP client utilities for forgedeps.

This module provides a thread-safe, synchronous HTTP client built on
``httpx`` that normalizes transport and status failures into the
forgedeps registry error taxonomy. Every request is a single best-effort
attempt: there is no retry or backoff layer.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, cast

import httpx

from forgedeps.utils.logger import get_logger
from forgedeps.__version__ import __version__
from forgedeps.exceptions import NotFoundError, TransientError
from forgedeps.constants import DEFAULT_TIMEOUT, USER_AGENT_TEMPLATE

logger = get_logger("http")


class HTTPClient:
    """Synchronous HTTP client shared by registry lookups and sinks.

    A single ``httpx.Client`` (and therefore its connection pool) is shared
    by all worker threads; ``httpx.Client`` is safe to use concurrently.

    Args:
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        transport: Optional ``httpx`` transport (e.g. ``httpx.MockTransport``).

    Example:
        >>> with HTTPClient() as client:
        ...     data = client.get_json("https://forgeapi.puppet.com/v3/modules/puppetlabs-stdlib")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.transport = transport

        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()

    def __enter__(self) -> "HTTPClient":
        self._ensure_client()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def _ensure_client(self) -> httpx.Client:
        """Initialize the underlying httpx client if needed."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    kwargs: Dict[str, Any] = {}
                    if self.transport is not None:
                        kwargs["transport"] = self.transport
                    else:
                        kwargs["http2"] = True
                    self._client = httpx.Client(
                        timeout=httpx.Timeout(self.timeout),
                        verify=self.verify_ssl,
                        follow_redirects=True,
                        headers={"User-Agent": self.user_agent},
                        **kwargs,
                    )
        return self._client

    def close(self) -> None:
        """Close the underlying HTTP client."""
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Execute one HTTP request.

        Raises:
            NotFoundError: The server answered 404.
            TransientError: Timeout, connection failure, or any other
                status >= 400.
        """
        client = self._ensure_client()
        clean_url = url.strip().strip("\"'")

        try:
            response = client.request(method, clean_url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("Request timeout: %s", clean_url)
            raise TransientError(f"Request timed out: {clean_url}", url=clean_url) from exc
        except httpx.HTTPError as exc:
            logger.warning("Network error: %s (%s)", clean_url, exc)
            raise TransientError(
                f"Network error for {clean_url}: {exc}",
                url=clean_url,
            ) from exc

        if response.status_code == 404:
            raise NotFoundError(
                f"Resource not found: {clean_url}",
                url=clean_url,
                status_code=404,
            )

        if response.status_code >= 400:
            raise TransientError(
                f"HTTP {response.status_code} error for {clean_url}",
                url=clean_url,
                status_code=response.status_code,
                response_body=response.text,
            )

        return response

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request."""
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a POST request."""
        return self.request("POST", url, **kwargs)

    def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """Fetch a URL and parse the response as a JSON object."""
        response = self.get(url, **kwargs)

        try:
            data = response.json()
        except ValueError as exc:
            raise TransientError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if not isinstance(data, dict):
            raise TransientError(
                f"Expected JSON object from {url}",
                url=url,
                response_body=response.text,
            )

        return cast(Dict[str, Any], data)

    def get_text(self, url: str, **kwargs: Any) -> str:
        """Fetch a URL and return the decoded body."""
        return self.get(url, **kwargs).text

"""WebDAV client for pydavsync."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Generator
from typing import Any

import httpx

from .config import config
from .exceptions import DavConfigError, DavNetworkError
from .protocol import (
    CREATE_COLLECTION,
    REMOVE_COLLECTION,
    UPLOAD_RESOURCE,
    StatusTable,
)
from .utils import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    Credentials,
    build_basic_auth_header,
    parse_remote_url,
    resolve_remote_url,
)

logger = logging.getLogger(__name__)


class DeferredBasicAuth(httpx.Auth):
    """HTTP Basic auth that waits for a 401 challenge.

    The first request goes out without credentials. Only when the server
    answers 401 is the request replayed with an ``Authorization`` header,
    so servers that do not need credentials never see them.
    """

    requires_request_body = True

    def __init__(self, username: str, password: str):
        self._auth_header = build_basic_auth_header(username, password)

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        response = yield request
        if response.status_code != 401:
            return
        request.headers["Authorization"] = self._auth_header
        yield request


class DavClient:
    """Client for a WebDAV remote store."""

    def __init__(
        self,
        remote_url: str | None = None,
        timeout: float | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        follow_redirects: bool = False,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the WebDAV client.

        Args:
            remote_url: Remote root URL, may embed ``user:password@``
                credentials (uses config if not provided)
            timeout: Request timeout in seconds (uses config if not provided)
            max_retries: Maximum retry attempts on transport errors (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            follow_redirects: Whether to follow redirects (default: False)
            transport: Optional httpx transport (used by tests)
        """
        remote_url = remote_url or config.remote_url
        if not remote_url:
            raise DavConfigError(
                "Remote URL not configured. Please set DAVSYNC_REMOTE_URL "
                "environment variable or run 'davsync init'."
            )
        try:
            self.remote_url, self.credentials = parse_remote_url(remote_url)
        except ValueError as e:
            raise DavConfigError(str(e)) from e

        self.timeout = timeout if timeout is not None else config.timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.follow_redirects = follow_redirects
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            auth = None
            if self.credentials is not None:
                auth = DeferredBasicAuth(*self.credentials)
            self._client = httpx.Client(
                auth=auth,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=self.follow_redirects,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> DavClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def url_for(self, relative_path: str) -> str:
        """Resolve a path relative to the remote root into a full URL."""
        return resolve_remote_url(self.remote_url, relative_path)

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def request(
        self,
        method: str,
        url: str,
        content: bytes | None = None,
        credentials: Credentials | None = None,
    ) -> int:
        """Send a request and return its status code.

        Transport errors are retried with exponential backoff. Status codes
        are returned as-is and never retried; classifying them is up to
        the caller.

        Args:
            method: HTTP method (DELETE, MKCOL, PUT, ...)
            url: Target URL (without embedded credentials)
            content: Optional request body
            credentials: Optional (user, password) for this request only,
                overriding the credentials of the remote root

        Returns:
            HTTP status code

        Raises:
            DavNetworkError: If the request fails after all retries
        """
        client = self._get_client()
        kwargs: dict[str, Any] = {"content": content}
        if credentials is not None:
            kwargs["auth"] = DeferredBasicAuth(*credentials)

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                logger.debug(f"{method} {url} -> {response.status_code}")
                return response.status_code
            except httpx.RequestError as e:
                if attempt >= self.max_retries:
                    raise DavNetworkError(
                        f"Network error during {method} {url}: {e}"
                    ) from e
                delay = self._calculate_retry_delay(attempt)
                logger.debug(
                    f"{method} {url} failed ({e}), retrying in {delay:.2f}s "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                time.sleep(delay)

        # range() always runs at least once
        raise DavNetworkError(f"Request {method} {url} failed after all retries")

    def _perform(
        self,
        table: StatusTable,
        url: str,
        content: bytes | None = None,
        credentials: Credentials | None = None,
    ) -> int:
        status_code = self.request(
            table.method, url, content=content, credentials=credentials
        )
        error = table.error_for(status_code, url)
        if error is not None:
            raise error
        return status_code

    # =========================
    # Collection Operations
    # =========================

    def remove_collection(
        self, url: str, credentials: Credentials | None = None
    ) -> int:
        """Remove a collection. A missing collection counts as removed.

        Args:
            url: Collection URL
            credentials: Optional per-request (user, password)

        Returns:
            Status code (204 or 404)

        Raises:
            DavLockedError: If the collection is locked (423)
            DavUnknownStatusError: For any other status code
        """
        logger.debug(f"Deleting folder: {url}")
        status_code = self._perform(
            REMOVE_COLLECTION, url, credentials=credentials
        )
        logger.debug(f"Folder: {url} deleted")
        return status_code

    def create_collection(
        self, url: str, credentials: Credentials | None = None
    ) -> int:
        """Create a collection. An existing collection counts as created.

        Args:
            url: Collection URL
            credentials: Optional per-request (user, password)

        Returns:
            Status code (201 or 405)

        Raises:
            DavUnauthorizedError: 401
            DavForbiddenError: 403
            DavConflictError: 409, missing intermediate collections
            DavUnsupportedBodyError: 415
            DavUnknownStatusError: For any other status code
        """
        logger.debug(f"Creating folder: {url}")
        status_code = self._perform(
            CREATE_COLLECTION, url, credentials=credentials
        )
        if status_code == 405:
            logger.debug(f"Folder already exists: {url}")
        else:
            logger.debug(f"Folder: {url} created")
        return status_code

    def sync_directory(
        self, url: str, credentials: Credentials | None = None
    ) -> int:
        """Replace a remote collection with an empty one.

        Removes the collection, then creates it again. If the remove step
        fails, the create step is not attempted.

        Args:
            url: Collection URL
            credentials: Optional per-request (user, password)

        Returns:
            Status code of the create step
        """
        self.remove_collection(url, credentials=credentials)
        return self.create_collection(url, credentials=credentials)

    # =========================
    # Resource Operations
    # =========================

    def upload_resource(
        self, url: str, payload: bytes, credentials: Credentials | None = None
    ) -> int:
        """Create or replace a resource.

        Every status except 500 and 401 is accepted as success.

        Args:
            url: Resource URL
            payload: File content
            credentials: Optional per-request (user, password)

        Returns:
            Status code

        Raises:
            DavServerError: 500
            DavUnauthorizedError: 401
        """
        logger.debug(f"Creating file: {url}")
        status_code = self._perform(
            UPLOAD_RESOURCE, url, content=payload, credentials=credentials
        )
        logger.debug(f"File: {url} created ({status_code})")
        return status_code

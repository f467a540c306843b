"""Exceptions raised by pydavsync."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classified failure kinds for remote operations and runs."""

    LOCKED = "locked"
    """Resource is locked (423)"""

    UNAUTHORIZED = "unauthorized"
    """Authorization required or denied (401)"""

    FORBIDDEN = "forbidden"
    """Server refuses to create the collection here (403)"""

    CONFLICT = "conflict"
    """Intermediate collections are missing (409)"""

    UNSUPPORTED_BODY = "unsupported_body"
    """Request body type not supported (415)"""

    SERVER_ERROR = "server_error"
    """Internal server error (500)"""

    UNKNOWN = "unknown"
    """Status code not covered by any classification"""

    NETWORK = "network"
    """Transport failure, no status code received"""

    GRAPH_INTEGRITY = "graph_integrity"
    """Task graph could not be built"""


class DavSyncError(Exception):
    """Base exception for all pydavsync errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class DavConfigError(DavSyncError):
    """Configuration is missing or malformed."""


class DavGraphIntegrityError(DavSyncError):
    """Task graph is structurally invalid (e.g. duplicate keys)."""

    kind = ErrorKind.GRAPH_INTEGRITY


class DavNetworkError(DavSyncError):
    """Request could not be completed at the transport level."""

    kind = ErrorKind.NETWORK


class DavRemoteError(DavSyncError):
    """Remote store answered with a status classified as failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url


class DavLockedError(DavRemoteError):
    """Collection is locked and cannot be removed."""

    kind = ErrorKind.LOCKED


class DavUnauthorizedError(DavRemoteError):
    """Authorization required or denied."""

    kind = ErrorKind.UNAUTHORIZED


class DavForbiddenError(DavRemoteError):
    """Server does not allow the collection to be created."""

    kind = ErrorKind.FORBIDDEN


class DavConflictError(DavRemoteError):
    """Intermediate collections are missing on the server."""

    kind = ErrorKind.CONFLICT


class DavUnsupportedBodyError(DavRemoteError):
    """Server does not support the request body type."""

    kind = ErrorKind.UNSUPPORTED_BODY


class DavServerError(DavRemoteError):
    """Server failed while handling the request."""

    kind = ErrorKind.SERVER_ERROR


class DavUnknownStatusError(DavRemoteError):
    """Server returned a status code with no classification."""

    kind = ErrorKind.UNKNOWN


REMOTE_ERRORS: dict[ErrorKind, type[DavRemoteError]] = {
    ErrorKind.LOCKED: DavLockedError,
    ErrorKind.UNAUTHORIZED: DavUnauthorizedError,
    ErrorKind.FORBIDDEN: DavForbiddenError,
    ErrorKind.CONFLICT: DavConflictError,
    ErrorKind.UNSUPPORTED_BODY: DavUnsupportedBodyError,
    ErrorKind.SERVER_ERROR: DavServerError,
    ErrorKind.UNKNOWN: DavUnknownStatusError,
}

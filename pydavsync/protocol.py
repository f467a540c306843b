"""WebDAV status code classification tables.

Each remote operation maps HTTP status codes to either success (``None``)
or an :class:`ErrorKind`. The tables are plain data so the wire contract
can be inspected and tested independently of the client.
"""

from dataclasses import dataclass, field
from typing import Optional

from .exceptions import REMOTE_ERRORS, DavRemoteError, ErrorKind


@dataclass(frozen=True)
class StatusTable:
    """Status code classification for one remote operation."""

    method: str
    """HTTP method used by the operation"""

    codes: dict[int, Optional[ErrorKind]]
    """Explicitly handled status codes (None means success)"""

    default: Optional[ErrorKind]
    """Classification for any status code not listed in ``codes``"""

    messages: dict[ErrorKind, str] = field(default_factory=dict)
    """Message templates per error kind ({url} and {status} are substituted)"""

    def classify(self, status_code: int) -> Optional[ErrorKind]:
        """Classify a status code.

        Args:
            status_code: HTTP status code returned by the server

        Returns:
            None on success, otherwise the error kind
        """
        return self.codes.get(status_code, self.default)

    def is_success(self, status_code: int) -> bool:
        return self.classify(status_code) is None

    def error_for(self, status_code: int, url: str) -> Optional[DavRemoteError]:
        """Build the exception matching a status code, or None on success.

        Args:
            status_code: HTTP status code returned by the server
            url: Target address of the request

        Returns:
            Exception instance (not raised) or None
        """
        kind = self.classify(status_code)
        if kind is None:
            return None
        template = self.messages.get(
            kind, "Request {method} failed with status {status}. For url: {url}"
        )
        message = template.format(method=self.method, status=status_code, url=url)
        return REMOTE_ERRORS[kind](message, status_code=status_code, url=url)


_UNAUTHORIZED_MESSAGE = (
    "Resource requires authorization or authorization was denied. For url: {url}"
)

REMOVE_COLLECTION = StatusTable(
    method="DELETE",
    codes={
        204: None,
        404: None,
        423: ErrorKind.LOCKED,
    },
    default=ErrorKind.UNKNOWN,
    messages={
        ErrorKind.LOCKED: "Could not remove the locked folder. For url: {url}",
        ErrorKind.UNKNOWN: (
            "Unknown error while deleting a folder, status {status}. For url: {url}"
        ),
    },
)

CREATE_COLLECTION = StatusTable(
    method="MKCOL",
    codes={
        201: None,
        # 405: collection already exists
        405: None,
        401: ErrorKind.UNAUTHORIZED,
        403: ErrorKind.FORBIDDEN,
        409: ErrorKind.CONFLICT,
        415: ErrorKind.UNSUPPORTED_BODY,
    },
    default=ErrorKind.UNKNOWN,
    messages={
        ErrorKind.UNAUTHORIZED: _UNAUTHORIZED_MESSAGE,
        ErrorKind.FORBIDDEN: (
            "The server does not allow collections to be created at the "
            "specified location, or the parent collection cannot accept "
            "members. For url: {url}"
        ),
        ErrorKind.CONFLICT: (
            "A resource cannot be created at the destination until one or more "
            "intermediate collections are created. For url: {url}"
        ),
        ErrorKind.UNSUPPORTED_BODY: (
            "The request type of the body is not supported by the server. "
            "For url: {url}"
        ),
        ErrorKind.UNKNOWN: (
            "Unknown error while creating a folder, status {status}. For url: {url}"
        ),
    },
)

# Permissive: only 500 and 401 count as failures for uploads.
UPLOAD_RESOURCE = StatusTable(
    method="PUT",
    codes={
        500: ErrorKind.SERVER_ERROR,
        401: ErrorKind.UNAUTHORIZED,
    },
    default=None,
    messages={
        ErrorKind.SERVER_ERROR: (
            "Got status {status} trying to upload a file. For url: {url}"
        ),
        ErrorKind.UNAUTHORIZED: _UNAUTHORIZED_MESSAGE,
    },
)

"""PyDavSync - push local directory trees to a WebDAV server."""

from .api import DavClient, DeferredBasicAuth
from .exceptions import (
    DavConfigError,
    DavConflictError,
    DavForbiddenError,
    DavGraphIntegrityError,
    DavLockedError,
    DavNetworkError,
    DavRemoteError,
    DavServerError,
    DavSyncError,
    DavUnauthorizedError,
    DavUnknownStatusError,
    DavUnsupportedBodyError,
    ErrorKind,
)
from .utils import parse_remote_url, resolve_remote_url

__all__ = [
    "DavClient",
    "DeferredBasicAuth",
    "DavSyncError",
    "DavConfigError",
    "DavConflictError",
    "DavForbiddenError",
    "DavGraphIntegrityError",
    "DavLockedError",
    "DavNetworkError",
    "DavRemoteError",
    "DavServerError",
    "DavUnauthorizedError",
    "DavUnknownStatusError",
    "DavUnsupportedBodyError",
    "ErrorKind",
    "parse_remote_url",
    "resolve_remote_url",
]

"""Error types for aemmobile.

Server-reported errors are classified once, when the transport decodes a
response body, so callers branch on ``ErrorKind`` instead of inspecting
error codes themselves.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of server error categories."""

    ENTITY_NOT_FOUND = "entity_not_found"
    SERVER_EXCEPTION = "server_exception"
    REQUEST_ERROR = "request_error"
    HTTP_ERROR = "http_error"
    UNKNOWN = "unknown"


class AEMMobileError(Exception):
    """Base class for all aemmobile errors."""

    pass


class ConfigError(AEMMobileError):
    """Missing credentials or invalid configuration."""

    pass


class TransportError(AEMMobileError):
    """Network-level failure talking to the publishing service."""

    def __init__(self, message: str, method: str | None = None, url: str | None = None):
        super().__init__(message)
        self.method = method
        self.url = url


class ServerError(AEMMobileError):
    """Error reported by the publishing service in a response body."""

    def __init__(
        self,
        code: str,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        data: Any = None,
    ):
        self.code = code
        self.message = message
        self.kind = kind
        self.data = data
        super().__init__(f"{message} ({code})")


class EntityNotFoundError(ServerError):
    """The requested entity does not exist."""

    def __init__(self, code: str, message: str, data: Any = None):
        super().__init__(code, message, ErrorKind.ENTITY_NOT_FOUND, data)


class EntityResolutionError(AEMMobileError):
    """An entity of a publish batch could not be resolved."""

    def __init__(self, entity_uri: str, cause: Exception):
        super().__init__(f"Could not resolve {entity_uri}: {cause}")
        self.entity_uri = entity_uri
        self.cause = cause


def classify_code(code: str) -> ErrorKind:
    """Map a server ``code`` value to an ``ErrorKind``."""
    if code == "EntityNotFoundException":
        return ErrorKind.ENTITY_NOT_FOUND
    if code.endswith("Exception"):
        return ErrorKind.SERVER_EXCEPTION
    return ErrorKind.UNKNOWN


def server_error_from(data: Any) -> ServerError | None:
    """Build a ServerError from a decoded response body, if it reports one.

    The service signals failures in two shapes: ``{"code": ..., "message": ...}``
    from the publication endpoints and ``{"error_code": ..., "message": ...}``
    from the gateway. Bodies that are not mappings never carry an error.
    """
    if not isinstance(data, dict):
        return None

    message = str(data.get("message", ""))

    if data.get("error_code") is not None:
        return ServerError(
            str(data["error_code"]), message, ErrorKind.REQUEST_ERROR, data
        )

    code = data.get("code")
    if code is None:
        return None

    code = str(code)
    kind = classify_code(code)
    if kind is ErrorKind.ENTITY_NOT_FOUND:
        return EntityNotFoundError(code, message, data)
    return ServerError(code, message, kind, data)

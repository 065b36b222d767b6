"""aemmobile - client for the AEM Mobile publishing API."""

__version__ = "0.1.0"

from .client import AEMMobileAPI
from .config import Credentials, WatchOptions
from .entities import EntityClient, EntityRef
from .errors import (
    AEMMobileError,
    ConfigError,
    EntityNotFoundError,
    EntityResolutionError,
    ErrorKind,
    ServerError,
    TransportError,
)
from .status import Aspect, EventType, StatusEvent
from .transport import Session
from .watcher import OutcomeKind, Watch, WatchOutcome, WatchRequest, WatchState

__all__ = [
    "__version__",
    "AEMMobileAPI",
    "Credentials",
    "WatchOptions",
    "EntityClient",
    "EntityRef",
    "Session",
    "Aspect",
    "EventType",
    "StatusEvent",
    "Watch",
    "WatchRequest",
    "WatchOutcome",
    "WatchState",
    "OutcomeKind",
    "AEMMobileError",
    "ConfigError",
    "EntityNotFoundError",
    "EntityResolutionError",
    "ErrorKind",
    "ServerError",
    "TransportError",
]

"""Status feed model.

The status endpoint returns every event recorded for an entity, in arrival
order (not sorted by date). Each event names the workflow aspect it belongs
to and its type, e.g. ``{"aspect": "publishing", "eventType": "success",
"eventDate": "2016-03-01T10:00:00Z"}``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Aspect(str, Enum):
    """Workflow dimension of a status event."""

    INGESTION = "ingestion"
    PUBLISHING = "publishing"
    UNPUBLISHING = "unpublishing"


class EventType(str, Enum):
    PROGRESS = "progress"
    SUCCESS = "success"
    FAILURE = "failure"


UNKNOWN_STATUS = "unknown"


@dataclass(frozen=True)
class StatusEvent:
    """One entry of an entity's status feed.

    ``aspect`` and ``event_type`` keep the server's strings so values this
    library does not know about pass through untouched. ``timestamp`` is in
    epoch milliseconds.
    """

    timestamp: int
    aspect: str
    event_type: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatusEvent":
        return cls(
            timestamp=parse_event_date(data.get("eventDate")),
            aspect=str(data.get("aspect", "")),
            event_type=str(data.get("eventType", "")),
            raw=data,
        )

    def is_success(self, aspect: str) -> bool:
        return self.aspect == aspect and self.event_type == EventType.SUCCESS

    def is_progress(self, aspect: str) -> bool:
        return self.aspect == aspect and self.event_type == EventType.PROGRESS


@dataclass
class ScanResult:
    """What one pass over a status feed found."""

    completed: bool
    status: str
    completing_event: StatusEvent | None = None


def parse_event_date(value: Any) -> int:
    """Convert an eventDate to epoch milliseconds. Unparseable dates are 0."""
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    try:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    except ValueError:
        return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def parse_events(data: Any) -> list[StatusEvent]:
    """Parse a status endpoint response into events."""
    if not isinstance(data, list):
        return []
    return [StatusEvent.from_dict(item) for item in data if isinstance(item, dict)]


def baseline_time(events: list[StatusEvent], aspect: str) -> int:
    """Timestamp of the newest success event for ``aspect``, or 0.

    Success events at or before this time belong to earlier operations.
    """
    times = [e.timestamp for e in events if e.is_success(aspect)]
    return max(times, default=0)


def scan(events: list[StatusEvent], aspect: str, baseline: int) -> ScanResult:
    """Decide whether the operation on ``aspect`` has finished.

    Ingestion and publishing complete on a success event newer than
    ``baseline``. Unpublishing has no success event of its own: it is done
    once the entity no longer has any publishing events.

    The reported status while waiting follows the feed: ingestion progress
    always wins, and publishing progress never replaces an ingestion status
    seen earlier in the same feed.
    """
    status = UNKNOWN_STATUS

    if aspect == Aspect.UNPUBLISHING:
        for event in events:
            if event.aspect == Aspect.PUBLISHING:
                status = Aspect.UNPUBLISHING.value
        return ScanResult(completed=status == UNKNOWN_STATUS, status=status)

    for event in events:
        if event.is_success(aspect) and event.timestamp > baseline:
            return ScanResult(completed=True, status=status, completing_event=event)
        if (
            aspect != Aspect.INGESTION
            and status != Aspect.INGESTION
            and event.is_progress(aspect)
        ):
            status = aspect_name(aspect)
        if event.is_progress(Aspect.INGESTION):
            status = Aspect.INGESTION.value

    return ScanResult(completed=False, status=status)


def aspect_name(aspect: str) -> str:
    return aspect.value if isinstance(aspect, Enum) else aspect

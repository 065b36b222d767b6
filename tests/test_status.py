"""Tests for aemmobile.status module."""

import pytest

from aemmobile.status import (
    UNKNOWN_STATUS,
    Aspect,
    EventType,
    StatusEvent,
    baseline_time,
    parse_event_date,
    parse_events,
    scan,
)

from conftest import event


def ev(timestamp, aspect, event_type):
    return StatusEvent(timestamp=timestamp, aspect=aspect, event_type=event_type)


class TestParseEventDate:
    """Tests for parse_event_date()."""

    def test_iso_with_z(self):
        assert parse_event_date("1970-01-01T00:00:01Z") == 1000

    def test_iso_with_offset(self):
        assert parse_event_date("1970-01-01T01:00:01+01:00") == 1000

    def test_fractional_seconds(self):
        assert parse_event_date("1970-01-01T00:00:01.500Z") == 1500

    def test_naive_is_utc(self):
        assert parse_event_date("1970-01-01T00:00:02") == 2000

    def test_numeric_passthrough(self):
        assert parse_event_date(1500) == 1500

    def test_missing_or_invalid(self):
        assert parse_event_date(None) == 0
        assert parse_event_date("yesterday") == 0


class TestParseEvents:
    """Tests for parse_events()."""

    def test_parses_feed(self):
        events = parse_events([
            event("1970-01-01T00:00:01Z", "ingestion", "success"),
            event("1970-01-01T00:00:02Z", "publishing", "progress"),
        ])
        assert events == [
            ev(1000, "ingestion", "success"),
            ev(2000, "publishing", "progress"),
        ]
        assert events[0].raw["eventDate"] == "1970-01-01T00:00:01Z"

    def test_unknown_values_pass_through(self):
        events = parse_events([event(None, "archiving", "queued")])
        assert events[0].aspect == "archiving"
        assert events[0].event_type == "queued"

    def test_non_list_is_empty(self):
        assert parse_events(None) == []
        assert parse_events({"code": "x"}) == []

    def test_skips_non_mapping_entries(self):
        assert len(parse_events(["junk", event(None, "ingestion", "progress")])) == 1

    def test_events_are_immutable(self):
        e = ev(1, "ingestion", "success")
        with pytest.raises(AttributeError):
            e.timestamp = 2


class TestBaselineTime:
    """Tests for baseline_time()."""

    def test_no_events(self):
        assert baseline_time([], Aspect.PUBLISHING) == 0

    def test_no_matching_success(self):
        events = [
            ev(500, "publishing", "progress"),
            ev(900, "ingestion", "success"),
        ]
        assert baseline_time(events, Aspect.PUBLISHING) == 0

    def test_max_of_unsorted_successes(self):
        events = [
            ev(3000, "publishing", "success"),
            ev(1000, "publishing", "success"),
            ev(5000, "ingestion", "success"),
            ev(2000, "publishing", "success"),
        ]
        assert baseline_time(events, Aspect.PUBLISHING) == 3000
        assert baseline_time(events, Aspect.INGESTION) == 5000

    def test_accepts_plain_strings(self):
        assert baseline_time([ev(10, "ingestion", "success")], "ingestion") == 10


class TestScanCompletion:
    """Tests for completion detection in scan()."""

    def test_newer_success_completes(self):
        result = scan([ev(1500, "publishing", "success")], Aspect.PUBLISHING, 1000)
        assert result.completed is True
        assert result.completing_event.timestamp == 1500

    def test_stale_success_ignored(self):
        events = [ev(500, "publishing", "success"), ev(1000, "publishing", "success")]
        result = scan(events, Aspect.PUBLISHING, 1000)
        assert result.completed is False

    def test_success_of_other_aspect_ignored(self):
        result = scan([ev(5000, "ingestion", "success")], Aspect.PUBLISHING, 0)
        assert result.completed is False

    def test_ingestion_success(self):
        result = scan([ev(1, "ingestion", "success")], Aspect.INGESTION, 0)
        assert result.completed is True

    def test_unpublish_completes_without_publishing_events(self):
        events = [
            ev(100, "ingestion", "success"),
            ev(200, "unpublishing", "progress"),
        ]
        result = scan(events, Aspect.UNPUBLISHING, 0)
        assert result.completed is True
        assert result.status == UNKNOWN_STATUS

    def test_unpublish_waits_while_publishing_events_remain(self):
        events = [ev(100, "publishing", "success")]
        result = scan(events, Aspect.UNPUBLISHING, 0)
        assert result.completed is False
        assert result.status == "unpublishing"

    def test_unpublish_empty_feed_completes(self):
        assert scan([], Aspect.UNPUBLISHING, 0).completed is True


class TestScanStatus:
    """Tests for the progress status reported by scan()."""

    def test_no_progress_is_unknown(self):
        assert scan([], Aspect.PUBLISHING, 0).status == UNKNOWN_STATUS

    def test_publishing_progress(self):
        result = scan([ev(1, "publishing", "progress")], Aspect.PUBLISHING, 0)
        assert result.status == "publishing"

    def test_ingestion_progress_wins_when_later(self):
        events = [ev(1, "publishing", "progress"), ev(2, "ingestion", "progress")]
        assert scan(events, Aspect.PUBLISHING, 0).status == "ingestion"

    def test_ingestion_progress_sticks_when_earlier(self):
        events = [ev(2, "ingestion", "progress"), ev(1, "publishing", "progress")]
        assert scan(events, Aspect.PUBLISHING, 0).status == "ingestion"

    def test_upload_reports_ingestion(self):
        events = [ev(1, "ingestion", "progress"), ev(2, "publishing", "progress")]
        assert scan(events, Aspect.INGESTION, 0).status == "ingestion"

    def test_event_type_constants(self):
        assert EventType.SUCCESS == "success"
        assert Aspect.UNPUBLISHING == "unpublishing"

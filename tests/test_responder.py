"""Tests for the status responder."""

from datetime import datetime, timezone

from statuspagebot.models import FeedEntry
from statuspagebot.responder import ALL_CLEAR, StatusResponder
from statuspagebot.tracker import IncidentTracker

UPDATED = datetime(2023, 1, 31, 12, 0, tzinfo=timezone.utc)


def _entry(entry_id: str, body: str, title: str) -> FeedEntry:
    return FeedEntry(id=entry_id, title=title, updated=UPDATED, body=body)


class TestRenderStatus:
    def test_all_clear_on_empty_tracker(self):
        assert StatusResponder(IncidentTracker()).render_status() == ["All systems are operational."]
        assert ALL_CLEAR == "All systems are operational."

    def test_one_line_per_open_incident(self):
        tracker = IncidentTracker()
        tracker.reconcile([
            _entry("a", "<p>DB Investigating - slow</p>", "DB"),
            _entry("b", "<p>Web Identified - cause found</p>", "Web"),
            _entry("c", "<p>Mail Resolved - fine</p>", "Mail"),
        ])
        assert StatusResponder(tracker).render_status() == [
            "DB -- DB Investigating - slow (2023-01-31T12:00:00Z)",
            "Web -- Web Identified - cause found (2023-01-31T12:00:00Z)",
        ]

    def test_does_not_change_tracker(self):
        tracker = IncidentTracker()
        tracker.reconcile([_entry("a", "<p>DB Investigating - slow</p>", "DB")])
        before = (dict(tracker.tracked_bodies), dict(tracker.open_incidents))
        StatusResponder(tracker).render_status()
        assert (dict(tracker.tracked_bodies), dict(tracker.open_incidents)) == before

    def test_all_clear_after_resolution(self):
        tracker = IncidentTracker()
        responder = StatusResponder(tracker)
        body = "<p>DB Investigating - slow</p>"
        tracker.reconcile([_entry("a", body, "DB")])
        tracker.reconcile([_entry("a", "<p>DB Resolved - ok</p>" + body, "DB")])
        assert responder.render_status() == [ALL_CLEAR]

"""Answers to "status?": the open incidents, or an all-clear line."""

from __future__ import annotations

from typing import List

from statuspagebot.tracker import IncidentTracker

ALL_CLEAR = "All systems are operational."


class StatusResponder:
    """Renders the tracker's open incidents. Never changes the tracker."""

    def __init__(self, tracker: IncidentTracker) -> None:
        self._tracker = tracker

    def render_status(self) -> List[str]:
        # One snapshot of the mapping, so a swap mid-render can't mix states
        ongoing = self._tracker.open_incidents
        lines = list(ongoing.values())
        return lines or [ALL_CLEAR]

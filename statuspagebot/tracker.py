"""
Incident Tracker — the bot's memory of the feed.

Keeps, per entry id, the body last seen (the baseline for the next
delta) and, for incidents that are not resolved yet, the latest status
line. ``reconcile`` is called with every fresh copy of the feed and
returns what should be announced.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping

from statuspagebot import notifier
from statuspagebot.differ import compute_delta, is_resolved
from statuspagebot.models import Announcement, FeedEntry


class IncidentTracker:
    """
    Tracks feed entries and open incidents across fetches.

    The first reconcile only seeds the state: announcing every entry of
    the feed when the bot starts would flood the channels.

    Each reconcile works on copies of the two maps and swaps them in at
    the end, so readers see either the previous or the new state.
    """

    def __init__(self) -> None:
        self._bodies: Dict[str, str] = {}  # id -> last raw body
        self._ongoing: Dict[str, str] = {}  # id -> "title -- msg (updated)"
        self._seeded = False

    @property
    def tracked_bodies(self) -> Mapping[str, str]:
        return MappingProxyType(self._bodies)

    @property
    def open_incidents(self) -> Mapping[str, str]:
        return MappingProxyType(self._ongoing)

    @property
    def has_completed_cycle(self) -> bool:
        return self._seeded

    def reconcile(self, entries: Iterable[FeedEntry]) -> List[Announcement]:
        """
        Fold one fetch of the feed into the state.

        Args:
            entries: The feed's entries, in feed order.

        Returns:
            One announcement per entry with a non-empty delta, in feed
            order. Always empty on the first call.
        """
        entries = list(entries)
        bodies = dict(self._bodies)
        ongoing = dict(self._ongoing)
        announcements: List[Announcement] = []

        for entry in entries:
            msg = compute_delta(entry, bodies.get(entry.id))

            if msg and self._seeded:
                announcements.append(Announcement(entry.id, f"{entry.title} -- {msg}"))

            if is_resolved(msg):
                if ongoing.pop(entry.id, None) is not None:
                    notifier.print_incident_closed(entry.id)
            elif msg:
                summary = f"{entry.title} -- {msg} ({entry.updated_label})"
                notifier.print_incident_set(entry.id, summary)
                ongoing[entry.id] = summary

            bodies[entry.id] = entry.body

        # Forget entries that dropped out of the feed
        current = {entry.id for entry in entries}
        for entry_id in [i for i in bodies if i not in current]:
            del bodies[entry_id]
            notifier.print_entry_removed(entry_id)
        for entry_id in [i for i in ongoing if i not in current]:
            del ongoing[entry_id]

        self._bodies, self._ongoing = bodies, ongoing
        self._seeded = True
        return announcements

"""
Atom / RSS Feed Parser.

Parses XML feed content into FeedEntry objects, keeping each entry's
body as HTML: the differ needs the exact markup to tell old text from
new. Supports both Atom and RSS 2.0.

Uses only the Python standard library (xml.etree) for the XML and
dateutil for the timestamps.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from xml.etree import ElementTree as ET

from dateutil import parser as dateutil_parser

from statuspagebot.models import FeedEntry

# Atom namespace
_ATOM_NS = {"atom": "http://www.w3.org/2005/Atom"}
_CONTENT_ENCODED = "{http://purl.org/rss/1.0/modules/content/}encoded"


def _safe_parse_datetime(dt_string: str) -> datetime:
    """Parse a datetime string flexibly, defaulting to UTC now on failure."""
    try:
        return dateutil_parser.parse(dt_string)
    except (ValueError, TypeError, OverflowError):
        return datetime.now(timezone.utc)


# ─── Public API ───────────────────────────────────────────────


def parse_atom_feed(xml_text: str | bytes) -> List[FeedEntry]:
    """
    Parse an Atom feed XML string into a list of FeedEntry objects.

    Args:
        xml_text: Raw XML of the Atom feed; bytes are decoded per the XML declaration.

    Returns:
        List of FeedEntry objects, in document order.

    Raises:
        ET.ParseError: If the text is not well-formed XML.
    """
    root = ET.fromstring(xml_text)
    entries: List[FeedEntry] = []

    for entry in root.findall("atom:entry", _ATOM_NS):
        body = _get_text(entry, "atom:content", _ATOM_NS)
        if body is None:
            body = _get_text(entry, "atom:summary", _ATOM_NS) or ""

        entries.append(
            FeedEntry(
                id=_get_text(entry, "atom:id", _ATOM_NS) or "",
                title=(_get_text(entry, "atom:title", _ATOM_NS) or "").strip(),
                updated=_safe_parse_datetime(_get_text(entry, "atom:updated", _ATOM_NS) or ""),
                body=body,
            )
        )

    return entries


def parse_rss_feed(xml_text: str | bytes) -> List[FeedEntry]:
    """
    Parse an RSS 2.0 feed XML string into a list of FeedEntry objects.

    Args:
        xml_text: Raw XML of the RSS feed; bytes are decoded per the XML declaration.

    Returns:
        List of FeedEntry objects, in document order.
    """
    root = ET.fromstring(xml_text)
    entries: List[FeedEntry] = []

    for item in root.iter("item"):
        # Try <content:encoded> first (richer), fall back to <description>
        body = _get_text(item, _CONTENT_ENCODED)
        if body is None:
            body = _get_text(item, "description") or ""

        entries.append(
            FeedEntry(
                id=_get_text(item, "guid") or _get_text(item, "link") or "",
                title=(_get_text(item, "title") or "").strip(),
                updated=_safe_parse_datetime(_get_text(item, "pubDate") or ""),
                body=body,
            )
        )

    return entries


def parse_feed(xml_text: str | bytes, feed_type: str = "atom") -> List[FeedEntry]:
    """Dispatch to the correct parser based on feed type ("atom" or "rss")."""
    if feed_type.lower() == "rss":
        return parse_rss_feed(xml_text)
    return parse_atom_feed(xml_text)


# ─── Helpers ──────────────────────────────────────────────────


def _get_text(element: ET.Element, tag: str, ns: dict | None = None) -> Optional[str]:
    """Safely get text content from a child element."""
    child = element.find(tag, ns) if ns else element.find(tag)
    if child is not None and child.text:
        return child.text
    return None

"""
Entry differ.

A statuspage entry keeps the whole history of an incident in its body,
one paragraph per status change, and each new change is added to the
body that was already published. Removing the previously seen body from
the current one therefore leaves just the new message.

The removal is a single literal substring removal. If the old body is no
longer part of the new one (the entry was edited upstream), nothing is
removed and the whole body becomes the message.
"""

from __future__ import annotations

import re
from typing import Optional

from statuspagebot.models import FeedEntry

_TAG_RE = re.compile(r"<[^>]+>")
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARA_END_RE = re.compile(r"</p>", re.IGNORECASE)
_FIRST_PARA_RE = re.compile(r"<p>(.*?)</p>", re.IGNORECASE | re.DOTALL)

# "<anything without a hyphen> Resolved - ..." / "... Completed - ..."
_RESOLVED_RE = re.compile(r"[^-]* (?:Completed|Resolved) -")


def strip_tags(html: str) -> str:
    """Remove every <...> tag. Does not validate the markup."""
    return _TAG_RE.sub("", html)


def first_paragraph(html: str) -> str:
    """Text between the first <p> and the next </p>, or the whole body."""
    match = _FIRST_PARA_RE.search(html)
    return match.group(1) if match else html


def compute_delta(entry: FeedEntry, previous_body: Optional[str]) -> str:
    """
    Extract the message that is new in ``entry`` since ``previous_body``.

    With no previous body (the entry was never seen) the first paragraph
    is taken to be the latest status line.

    Returns:
        The new text with markup removed, or "" when nothing changed.
    """
    if previous_body is None:
        msg = first_paragraph(entry.body)
        msg = _BR_RE.sub(" ", msg)
    else:
        msg = entry.body.replace(previous_body, "", 1)
        msg = _BR_RE.sub(" ", msg)
        msg = _PARA_END_RE.sub("\n", msg)
    return strip_tags(msg).strip()


def is_resolved(message: str) -> bool:
    """True if the message says the incident is completed or resolved."""
    return _RESOLVED_RE.match(message) is not None

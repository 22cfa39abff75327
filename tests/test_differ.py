"""
Tests for the entry differ: delta extraction, markup stripping and the
resolved-incident predicate.
"""

from datetime import datetime, timezone

import pytest

from statuspagebot.differ import compute_delta, first_paragraph, is_resolved, strip_tags
from statuspagebot.models import FeedEntry


def _entry(body: str) -> FeedEntry:
    return FeedEntry(
        id="a",
        title="DB",
        updated=datetime(2023, 1, 31, 12, 0, tzinfo=timezone.utc),
        body=body,
    )


class TestStripTags:
    def test_removes_tags(self):
        assert strip_tags("<b>Hello</b> <i>World</i>") == "Hello World"

    def test_keeps_text_without_tags(self):
        assert strip_tags("a < b") == "a < b"

    def test_unclosed_tag_is_left_alone(self):
        assert strip_tags("broken <b") == "broken <b"


class TestFirstParagraph:
    def test_first_of_several(self):
        assert first_paragraph("<p>one</p><p>two</p>") == "one"

    def test_text_before_first_paragraph_ignored(self):
        assert first_paragraph("head<p>one</p>tail") == "one"

    def test_no_paragraphs_means_whole_body(self):
        assert first_paragraph("just text") == "just text"

    def test_spans_lines(self):
        assert first_paragraph("<p>one\nmore</p>") == "one\nmore"


class TestComputeDeltaFirstSight:
    def test_first_paragraph_stripped(self):
        body = "<p><small>Jan 31</small><br><strong>Investigating</strong> - Mail delayed.</p><p>old</p>"
        assert compute_delta(_entry(body), None) == "Jan 31 Investigating - Mail delayed."

    def test_self_closing_br(self):
        assert compute_delta(_entry("<p>a<br/>b<BR />c</p>"), None) == "a b c"

    def test_body_without_paragraphs(self):
        assert compute_delta(_entry("<b>Status</b> fine"), None) == "Status fine"

    def test_empty_body(self):
        assert compute_delta(_entry(""), None) == ""


class TestComputeDeltaAgainstPrevious:
    def test_prepended_paragraph(self):
        old = "<p>DB Investigating - issue found</p>"
        new = "<p>DB Monitoring - fix deployed</p>" + old
        assert compute_delta(_entry(new), old) == "DB Monitoring - fix deployed"

    def test_appended_paragraph(self):
        old = "<p>first</p>"
        assert compute_delta(_entry(old + "<p>second</p>"), old) == "second"

    def test_unchanged_body_gives_empty_delta(self):
        body = "<p>DB Investigating - issue found</p>"
        assert compute_delta(_entry(body), body) == ""

    def test_several_new_paragraphs_become_lines(self):
        old = "<p>one</p>"
        new = "<p>three</p><p>two<br>more</p>" + old
        assert compute_delta(_entry(new), old) == "three\ntwo more"

    def test_edited_body_gives_whole_body(self):
        old = "<p>original text</p>"
        new = "<p>rewritten</p><p>original text, edited</p>"
        assert compute_delta(_entry(new), old) == "rewritten\noriginal text, edited"

    def test_only_first_occurrence_removed(self):
        old = "<p>x</p>"
        assert compute_delta(_entry("<p>x</p><p>x</p>"), old) == "x"

    def test_deterministic(self):
        old = "<p>a</p>"
        entry = _entry("<p>b</p><p>a</p>")
        assert compute_delta(entry, old) == compute_delta(entry, old)


class TestIsResolved:
    @pytest.mark.parametrize(
        "message",
        [
            "DB Resolved - back to normal",
            "Jan 31 Completed - The maintenance has been completed.",
            " Resolved - leading space only",
        ],
    )
    def test_resolved(self, message):
        assert is_resolved(message)

    @pytest.mark.parametrize(
        "message",
        [
            "DB Investigating - issue found",
            "DB resolved - lower case",
            "Resolved - no space before keyword",
            "DB - Resolved - hyphen in prefix",
            "DB Resolved-no space before hyphen",
            "",
        ],
    )
    def test_not_resolved(self, message):
        assert not is_resolved(message)

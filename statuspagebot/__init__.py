"""
Statuspage Bot — IRC relay for a status page feed.

Polls the Atom feed of a status page (an Atlassian Statuspage instance,
status.w3.org by default), announces every change on IRC and answers
"status?" questions with the incidents that are still open.
"""

__version__ = "0.1"

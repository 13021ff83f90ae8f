"""
Junk-record heuristics for people-search results.

The search API regularly returns placeholder people: a "title" that is just
the company name, organizations with zero employees, test accounts, no-reply
mailboxes. Each signal below adds one indicator; the scorer multiplies the
count by a penalty large enough that a single hit sinks the candidate.
"""
from __future__ import annotations

from contactscout.models.candidate import Candidate

PLACEHOLDER_NAME_KEYWORDS = ("test", "sample", "demo", "fake", "example")
NOREPLY_MARKERS = ("noreply", "no-reply")

# Titles shorter than this that equal the org name are too generic to flag ("IBM", "Meta")
_MIN_TITLE_ORG_ECHO_LENGTH = 6


def count_spam_indicators(candidate: Candidate) -> int:
    """Return the number of independent suspicion indicators on `candidate`."""
    indicators = 0

    title = (candidate.title or "").strip().lower()
    org = (candidate.organization_name or "").strip().lower()
    name = (candidate.name or "").strip().lower()
    email = (candidate.email or "").lower()

    if title and title == org and len(title) >= _MIN_TITLE_ORG_ECHO_LENGTH:
        indicators += 1

    # Only an explicit zero counts; None means the API did not report a headcount
    if candidate.organization_employee_count == 0:
        indicators += 1

    if any(keyword in name for keyword in PLACEHOLDER_NAME_KEYWORDS):
        indicators += 1

    if any(marker in email for marker in NOREPLY_MARKERS):
        indicators += 1

    if not name or not title or not org:
        indicators += 1

    return indicators

"""Heuristic importance scoring and tagging of content changes."""

import re
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser

from opportunities_radar.core.differ import extract_change_summary
from opportunities_radar.core.entities import DiffResult, ScoreResult, Source, SourceCategory

# Base score and implied tag per source category
CATEGORY_SCORES: dict[SourceCategory, tuple[int, Optional[str]]] = {
    SourceCategory.GRANTS: (20, "grant"),
    SourceCategory.GOVERNANCE: (15, "governance"),
    SourceCategory.PROTOCOL: (10, None),
    SourceCategory.ECOSYSTEM: (5, None),
}

# (minimum exclusive length, bonus), largest first
VOLUME_TIERS = [(1000, 15), (500, 10), (100, 5)]

HIGH_PRIORITY_KEYWORDS = [
    "deadline",
    "apply now",
    "closes",
    "last day",
    "urgent",
    "limited",
    "ending soon",
    "final",
    "announcement",
    "breaking",
    "major update",
    "new round",
    "funding",
    "grant",
    "application",
]

MEDIUM_PRIORITY_KEYWORDS = [
    "update",
    "release",
    "launch",
    "upgrade",
    "proposal",
    "vote",
    "governance",
    "roadmap",
    "milestone",
    "partnership",
    "integration",
]

ACTION_KEYWORDS = [
    "apply",
    "vote",
    "participate",
    "register",
    "sign up",
    "submit",
    "join",
    "claim",
]

TAG_PATTERNS = [
    (re.compile(rf"\b{tag}\b", re.IGNORECASE), tag)
    for tag in [
        "grant",
        "funding",
        "governance",
        "vote",
        "proposal",
        "hackathon",
        "builder",
        "developer",
        "infrastructure",
        "defi",
        "nft",
        "security",
        "upgrade",
        "release",
    ]
]

# Tried in order against the full new content, first valid future date wins
DATE_PATTERNS = [
    re.compile(r"(?:deadline|closes?|ends?|due|by|before)\s*:?\s*(\w+\s+\d{1,2},?\s+\d{4})", re.IGNORECASE),
    re.compile(r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4})"),
    re.compile(r"(\w+\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4})", re.IGNORECASE),
]

NUMERIC_DATE = re.compile(r"^(\d{1,2})[/\-]\d{1,2}[/\-]\d{2,4}$")

PARSE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

HIGH_PRIORITY_BONUS = 15
MEDIUM_PRIORITY_BONUS = 8
ACTION_BONUS = 10
DEADLINE_BONUS = 15


def _contains_any(text: str, keywords: list[str]) -> Optional[str]:
    """Return the first keyword found in ``text``."""
    return next((keyword for keyword in keywords if keyword in text), None)


def _parse_date(value: str) -> Optional[datetime]:
    """Parse a matched date string; ``None`` unless it names a full calendar date.

    Numeric dates are read month first. Parsing against two defaults that
    differ in year, month and day exposes any field dateutil had to fill in.
    """
    numeric = NUMERIC_DATE.match(value)
    if numeric and int(numeric.group(1)) > 12:
        return None

    try:
        parsed = date_parser.parse(value, default=PARSE_DEFAULTS[0], dayfirst=False)
        check = date_parser.parse(value, default=PARSE_DEFAULTS[1], dayfirst=False)
    except (ValueError, OverflowError):
        return None

    if parsed != check:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_deadline(content: str, now: datetime) -> Optional[datetime]:
    """Find the first date in ``content`` that lies strictly after ``now``.

    Each pattern is tried once, on its first match only.
    """
    for pattern in DATE_PATTERNS:
        match = pattern.search(content)
        if not match:
            continue

        parsed = _parse_date(match.group(1))
        if parsed is not None and parsed > now:
            return parsed

    return None


def score_changes(
    source: Source,
    diff: DiffResult,
    new_content: str,
    now: Optional[datetime] = None,
) -> ScoreResult:
    """Score and tag the additions of a diff.

    Args:
        source: Source the change was observed on
        diff: Diff between the previous and the new snapshot
        new_content: Full text of the new snapshot, used for deadlines
        now: Reference time for deadline validity, defaults to current UTC time

    Returns:
        Score clamped to 0..100 with tags, action and deadline
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    added_sections, _ = extract_change_summary(diff)
    text = " ".join(added_sections).lower()

    score, category_tag = CATEGORY_SCORES[source.category]
    tags = {category_tag} if category_tag else set()

    change_length = sum(len(section) for section in added_sections)
    score += next((bonus for threshold, bonus in VOLUME_TIERS if change_length > threshold), 0)

    if _contains_any(text, HIGH_PRIORITY_KEYWORDS):
        score += HIGH_PRIORITY_BONUS

    if _contains_any(text, MEDIUM_PRIORITY_KEYWORDS):
        score += MEDIUM_PRIORITY_BONUS

    action = None
    action_keyword = _contains_any(text, ACTION_KEYWORDS)
    if action_keyword:
        action = action_keyword[0].upper() + action_keyword[1:]
        score += ACTION_BONUS

    tags.update(tag for pattern, tag in TAG_PATTERNS if pattern.search(text))

    deadline = extract_deadline(new_content, now)
    if deadline is not None:
        score += DEADLINE_BONUS
        tags.add("deadline")

    return ScoreResult(
        score=max(0, min(100, score)),
        tags=frozenset(tags),
        action=action,
        deadline=deadline,
    )

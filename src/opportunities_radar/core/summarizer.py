"""Change summaries via an external provider, with a rule-based fallback."""

import re
from typing import Optional, Sequence

from opportunities_radar.core.differ import extract_change_summary
from opportunities_radar.core.entities import DiffResult, Source, SummaryResult
from opportunities_radar.core.interfaces import SummaryProvider

FIRST_SENTENCE = re.compile(r"^[^.!?]+[.!?]")

MAX_TITLE_LENGTH = 80
MAX_BULLET_LENGTH = 150
MAX_BULLETS = 4

# Checked in this order, first hit wins
FALLBACK_ACTIONS = [
    ("apply", "Apply"),
    ("vote", "Vote"),
    ("register", "Register"),
    ("submit", "Submit"),
]


def _first_sentence_or_truncate(text: str, limit: int) -> str:
    match = FIRST_SENTENCE.match(text)
    if match and len(match.group(0)) <= limit:
        return match.group(0)
    return text[: limit - 3] + "..."


def fallback_summary(source: Source, sections: list[str]) -> SummaryResult:
    """Deterministic summary built from the added sections alone."""
    title = f"{source.name} Update"
    if sections:
        title = _first_sentence_or_truncate(sections[0], MAX_TITLE_LENGTH)

    bullets = [
        _first_sentence_or_truncate(section, MAX_BULLET_LENGTH)
        for section in sections[:MAX_BULLETS]
    ]

    all_text = " ".join(sections).lower()
    action = next((label for keyword, label in FALLBACK_ACTIONS if keyword in all_text), None)

    return SummaryResult(title=title, bullets=bullets, action=action)


def select_provider(providers: Sequence[SummaryProvider]) -> Optional[SummaryProvider]:
    """First provider with credentials configured."""
    return next((provider for provider in providers if provider.is_configured()), None)


async def summarize_changes(
    source: Source,
    diff: DiffResult,
    providers: Sequence[SummaryProvider] = (),
) -> SummaryResult:
    """Summarize a diff, never raising.

    At most one configured provider is called. Any failure falls back to
    ``fallback_summary``.
    """
    added_sections, _ = extract_change_summary(diff)

    provider = select_provider(providers)
    if provider is not None:
        try:
            return await provider.summarize(source, added_sections)
        except Exception as e:
            print(f"  ⚠️  LLM summarization failed ({provider.name}): {e}")

    return fallback_summary(source, added_sections)

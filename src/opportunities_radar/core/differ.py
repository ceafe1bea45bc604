"""Diffing of successive snapshots and grouping of changed text."""

import re

from diff_match_patch import diff_match_patch

from opportunities_radar.core.entities import DiffResult

# Fragments shorter than this are usually formatting noise
MIN_FRAGMENT_LENGTH = 10

# Fragments longer than this always open their own section
MAX_FRAGMENT_LENGTH = 200

# Headings, "Label:" prefixes, numbered items and bullets
SECTION_START = re.compile(r"^(#|[A-Z][^.]*:|\d+\.|[-•*])")


def _matcher() -> diff_match_patch:
    return diff_match_patch()


def _strip_whitespace(text: str) -> str:
    return "".join(text.split())


def generate_diff(old_content: str, new_content: str) -> DiffResult:
    """Compute the difference between two snapshot texts.

    The patch always reproduces ``new_content`` from ``old_content``.
    Additions and deletions only list non-whitespace fragments, trimmed.
    """
    dmp = _matcher()
    patch = dmp.patch_toText(dmp.patch_make(old_content, new_content))

    # Pure whitespace edits never count as changes
    if _strip_whitespace(old_content) == _strip_whitespace(new_content):
        return DiffResult(patch=patch)

    diffs = dmp.diff_main(old_content, new_content)
    dmp.diff_cleanupSemantic(diffs)

    additions: list[str] = []
    deletions: list[str] = []

    for operation, text in diffs:
        fragment = text.strip()
        if not fragment:
            continue

        if operation == dmp.DIFF_INSERT:
            additions.append(fragment)
        elif operation == dmp.DIFF_DELETE:
            deletions.append(fragment)

    return DiffResult(patch=patch, additions=tuple(additions), deletions=tuple(deletions))


def apply_patch(content: str, patch_text: str) -> str:
    """Apply a patch produced by ``generate_diff`` to its original text."""
    dmp = _matcher()
    patches = dmp.patch_fromText(patch_text)
    result, _ = dmp.patch_apply(patches, content)
    return result


def group_into_sections(fragments: list[str] | tuple[str, ...]) -> list[str]:
    """Merge diff fragments into coherent sections.

    Greedy single pass: a fragment opens a new section when it looks like a
    heading or list item, or is long on its own; otherwise it is appended to
    the section being built.
    """
    sections: list[str] = []
    current = ""

    for fragment in fragments:
        if len(fragment) < MIN_FRAGMENT_LENGTH:
            continue

        is_new_section = bool(SECTION_START.match(fragment)) or len(fragment) > MAX_FRAGMENT_LENGTH

        if is_new_section and current:
            sections.append(current.strip())
            current = fragment
        else:
            current += " " + fragment

    if current.strip():
        sections.append(current.strip())

    return sections


def extract_change_summary(diff: DiffResult) -> tuple[list[str], list[str]]:
    """Group a diff's fragments into sections.

    Returns:
        Tuple of (added_sections, removed_sections)
    """
    return group_into_sections(diff.additions), group_into_sections(diff.deletions)

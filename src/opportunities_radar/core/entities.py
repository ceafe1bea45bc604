"""Core domain entities."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class SourceCategory(str, Enum):
    """Category of a monitored source."""

    GRANTS = "grants"
    GOVERNANCE = "governance"
    PROTOCOL = "protocol"
    ECOSYSTEM = "ecosystem"


class SourceKind(str, Enum):
    """How a source is fetched."""

    HTML = "html"
    RSS = "rss"
    API = "api"


def slugify(name: str) -> str:
    """Build a stable identifier from a display name."""
    slug = re.sub(r"[^\w\s-]", "", name.lower())
    return re.sub(r"[-\s_]+", "-", slug).strip("-")


@dataclass
class Source:
    """Monitored endpoint.

    Only ``enabled`` and ``last_fetched_at`` change after creation.
    """

    name: str
    url: str
    category: SourceCategory
    kind: SourceKind = SourceKind.HTML
    extractor: Optional[str] = None
    enabled: bool = True
    last_fetched_at: Optional[datetime] = None
    id: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Name cannot be empty")
        if not self.url:
            raise ValueError("URL cannot be empty")
        self.category = SourceCategory(self.category)
        self.kind = SourceKind(self.kind)
        if not self.id:
            self.id = slugify(self.name)


@dataclass(frozen=True)
class Snapshot:
    """One fetched-and-extracted observation of a source."""

    id: str
    source_id: str
    content_hash: str
    content: str
    fetched_at: datetime


@dataclass(frozen=True)
class FetchResult:
    """Extracted content of a single fetch."""

    content: str
    content_hash: str


@dataclass(frozen=True)
class DiffResult:
    """Difference between two snapshots of the same source."""

    patch: str
    additions: tuple[str, ...] = ()
    deletions: tuple[str, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.additions or self.deletions)


@dataclass(frozen=True)
class DiffRecord:
    """Persisted diff between a snapshot and its predecessor."""

    id: str
    snapshot_id: str
    prev_snapshot_id: str
    patch: str
    created_at: datetime


@dataclass(frozen=True)
class ScoreResult:
    """Importance score and tags for a change."""

    score: int
    tags: frozenset[str] = frozenset()
    action: Optional[str] = None
    deadline: Optional[datetime] = None


@dataclass(frozen=True)
class SummaryResult:
    """Short human-readable description of a change."""

    title: str
    bullets: list[str] = field(default_factory=list)
    action: Optional[str] = None


@dataclass(frozen=True)
class Digest:
    """Scored and summarized change, ready for downstream readers."""

    id: str
    diff_id: str
    source_id: str
    title: str
    bullets: list[str]
    score: int
    created_at: datetime
    tags: frozenset[str] = frozenset()
    action: Optional[str] = None
    deadline: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.title:
            raise ValueError("Title cannot be empty")
        if not 0 <= self.score <= 100:
            raise ValueError(f"Score must be within 0..100, got {self.score}")
        if self.deadline is not None and self.deadline <= self.created_at:
            raise ValueError("Deadline must be after the digest creation time")


class SourceStatus(str, Enum):
    """Outcome of processing one source."""

    BASELINE = "baseline"
    UNCHANGED = "unchanged"
    NO_CHANGES = "no_changes"
    DIGESTED = "digested"


@dataclass
class SourceOutcome:
    """Result of processing one source in a run."""

    source: Source
    status: SourceStatus
    snapshot: Optional[Snapshot] = None
    digest: Optional[Digest] = None


@dataclass
class RunReport:
    """Aggregate counts of a fetch run."""

    total: int = 0
    processed: int = 0
    unchanged: int = 0
    errors: int = 0
    digests: list[Digest] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.errors == 0

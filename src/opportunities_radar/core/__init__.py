"""Core domain layer."""

from opportunities_radar.core.entities import (
    DiffRecord,
    DiffResult,
    Digest,
    FetchResult,
    RunReport,
    ScoreResult,
    Snapshot,
    Source,
    SourceCategory,
    SourceKind,
    SourceOutcome,
    SourceStatus,
    SummaryResult,
)
from opportunities_radar.core.errors import FetchError, RadarError, SummarizationError
from opportunities_radar.core.interfaces import ContentFetcher, RadarStore, SummaryProvider

__all__ = [
    "Source",
    "SourceCategory",
    "SourceKind",
    "Snapshot",
    "FetchResult",
    "DiffResult",
    "DiffRecord",
    "ScoreResult",
    "SummaryResult",
    "Digest",
    "SourceStatus",
    "SourceOutcome",
    "RunReport",
    "RadarError",
    "FetchError",
    "SummarizationError",
    "ContentFetcher",
    "RadarStore",
    "SummaryProvider",
]

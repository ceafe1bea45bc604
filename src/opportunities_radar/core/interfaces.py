"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from opportunities_radar.core.entities import (
    DiffRecord,
    Digest,
    FetchResult,
    Snapshot,
    Source,
    SummaryResult,
)


class ContentFetcher(ABC):
    """Interface for fetching and extracting source content."""

    @abstractmethod
    async def fetch(self, source: Source) -> FetchResult:
        """Fetch a source; raise ``FetchError`` on failure."""
        pass


class SummaryProvider(ABC):
    """Interface for external text-generation summarizers."""

    name: str = "provider"

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for this provider are present."""
        pass

    @abstractmethod
    async def summarize(self, source: Source, sections: list[str]) -> SummaryResult:
        """Summarize the added sections of a change."""
        pass


class RadarStore(ABC):
    """Interface for persisting snapshots, diffs and digests."""

    @abstractmethod
    def get_latest_snapshot(self, source_id: str) -> Optional[Snapshot]:
        """Most recently fetched snapshot of a source."""
        pass

    @abstractmethod
    def insert_snapshot(self, snapshot: Snapshot) -> None:
        pass

    @abstractmethod
    def insert_diff(self, diff: DiffRecord) -> None:
        pass

    @abstractmethod
    def insert_digest(self, digest: Digest) -> None:
        pass

    @abstractmethod
    def delete_snapshot(self, snapshot: Snapshot) -> None:
        """Remove a snapshot; no-op if it was never written."""
        pass

    @abstractmethod
    def delete_diff(self, diff_id: str) -> None:
        """Remove a diff; no-op if it was never written."""
        pass

    @abstractmethod
    def update_last_fetched(self, source_id: str, fetched_at: datetime) -> None:
        pass

    @abstractmethod
    def set_source_enabled(self, source_id: str, enabled: bool) -> None:
        pass

    @abstractmethod
    def apply_source_state(self, sources: list[Source]) -> list[Source]:
        """Overlay stored ``enabled`` and ``last_fetched_at`` on configured sources."""
        pass

    @abstractmethod
    def list_digests(self, limit: int = 20, source_id: Optional[str] = None) -> list[Digest]:
        """Digests ordered by score, then most recent first."""
        pass

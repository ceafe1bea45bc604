"""Tests for the radar service."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, patch

import pytest

from opportunities_radar.adapters.storage import YamlRadarStore
from opportunities_radar.core import (
    ContentFetcher,
    FetchError,
    FetchResult,
    Source,
    SourceStatus,
    SummarizationError,
    SummaryProvider,
    SummaryResult,
)
from opportunities_radar.core.differ import apply_patch
from opportunities_radar.core.extraction import hash_content
from opportunities_radar.use_cases import RadarService

OLD = "Grant round 1 open."
NEW = "Grant round 1 open. New: Applications for round 2 close December 1, 2030. Apply now."


class FakeFetcher(ContentFetcher):
    """Serve queued page texts per source id."""

    def __init__(self, pages: dict[str, list[str | Exception]]) -> None:
        self.pages = pages
        self.calls: list[str] = []

    async def fetch(self, source: Source) -> FetchResult:
        self.calls.append(source.id)
        page = self.pages[source.id].pop(0)
        if isinstance(page, Exception):
            raise page
        return FetchResult(content=page, content_hash=hash_content(page))


class FakeProvider(SummaryProvider):
    name = "fake"

    def __init__(self, result: SummaryResult | None = None, error: Exception | None = None) -> None:
        self.summarize_mock = AsyncMock(return_value=result, side_effect=error)

    def is_configured(self) -> bool:
        return True

    async def summarize(self, source: Source, sections: list[str]) -> SummaryResult:
        return await self.summarize_mock(source, sections)


@pytest.fixture
def store(tmp_path: Path) -> YamlRadarStore:
    return YamlRadarStore(tmp_path / "data")


@pytest.mark.asyncio
async def test_first_fetch_records_baseline(
    store: YamlRadarStore, grants_source: Source, clock: Callable[[], datetime]
) -> None:
    service = RadarService(FakeFetcher({"base-grants": [OLD]}), store, clock=clock)

    outcome = await service.process_source(grants_source)

    assert outcome.status == SourceStatus.BASELINE
    assert outcome.digest is None
    assert store.get_latest_snapshot("base-grants").content == OLD
    assert store.list_digests() == []
    assert store.get_source_state("base-grants")["last_fetched_at"] == "2026-01-01T12:00:00+00:00"


@pytest.mark.asyncio
async def test_change_produces_scored_digest(
    store: YamlRadarStore, grants_source: Source, clock: Callable[[], datetime]
) -> None:
    service = RadarService(FakeFetcher({"base-grants": [OLD, NEW]}), store, clock=clock)

    await service.process_source(grants_source)
    outcome = await service.process_source(grants_source)

    assert outcome.status == SourceStatus.DIGESTED
    digest = outcome.digest
    assert digest.score == 60
    assert digest.title == "New: Applications for round 2 close December 1, 2030."
    assert digest.action == "Apply"
    assert digest.deadline == datetime(2030, 12, 1, tzinfo=timezone.utc)
    assert {"grant", "deadline"} <= digest.tags
    assert digest.created_at == datetime(2026, 1, 1, 13, 0, tzinfo=timezone.utc)

    assert store.list_digests() == [digest]
    diff_record = store.get_diff(digest.diff_id)
    assert diff_record.snapshot_id == outcome.snapshot.id
    assert apply_patch(OLD, diff_record.patch) == NEW
    assert store.count_snapshots("base-grants") == 2


@pytest.mark.asyncio
async def test_identical_content_only_touches_timestamp(
    store: YamlRadarStore, grants_source: Source, clock: Callable[[], datetime]
) -> None:
    service = RadarService(FakeFetcher({"base-grants": [OLD, OLD]}), store, clock=clock)

    await service.process_source(grants_source)
    outcome = await service.process_source(grants_source)

    assert outcome.status == SourceStatus.UNCHANGED
    assert store.count_snapshots("base-grants") == 1
    assert store.get_source_state("base-grants")["last_fetched_at"] == "2026-01-01T13:00:00+00:00"


@pytest.mark.asyncio
async def test_whitespace_only_change_stores_snapshot_without_digest(
    store: YamlRadarStore, grants_source: Source, clock: Callable[[], datetime]
) -> None:
    service = RadarService(FakeFetcher({"base-grants": [OLD, "Grant  round1\nopen. "]}), store, clock=clock)

    await service.process_source(grants_source)
    outcome = await service.process_source(grants_source)

    assert outcome.status == SourceStatus.NO_CHANGES
    assert store.count_snapshots("base-grants") == 2
    assert store.list_digests() == []


@pytest.mark.asyncio
async def test_provider_summary_keeps_scorer_action(
    store: YamlRadarStore, grants_source: Source, clock: Callable[[], datetime]
) -> None:
    provider = FakeProvider(SummaryResult(title="Round 2 applications", bullets=["Closes Dec 1"]))
    service = RadarService(FakeFetcher({"base-grants": [OLD, NEW]}), store, providers=[provider], clock=clock)

    await service.process_source(grants_source)
    outcome = await service.process_source(grants_source)

    assert outcome.digest.title == "Round 2 applications"
    assert outcome.digest.bullets == ["Closes Dec 1"]
    assert outcome.digest.action == "Apply"
    provider.summarize_mock.assert_awaited_once()


@pytest.mark.asyncio
async def test_provider_failure_falls_back(
    store: YamlRadarStore, grants_source: Source, clock: Callable[[], datetime]
) -> None:
    provider = FakeProvider(error=SummarizationError("fake", "API error: 500"))
    service = RadarService(FakeFetcher({"base-grants": [OLD, NEW]}), store, providers=[provider], clock=clock)

    await service.process_source(grants_source)
    outcome = await service.process_source(grants_source)

    assert outcome.status == SourceStatus.DIGESTED
    assert outcome.digest.title == "New: Applications for round 2 close December 1, 2030."


@pytest.mark.asyncio
async def test_run_isolates_failures(
    store: YamlRadarStore, grants_source: Source, protocol_source: Source, clock: Callable[[], datetime]
) -> None:
    fetcher = FakeFetcher({
        "base-grants": [OLD],
        "base-blog": [FetchError("https://base.org/blog", status_code=503)],
    })
    service = RadarService(fetcher, store, clock=clock)

    report = await service.run([protocol_source, grants_source])

    assert report.total == 2
    assert report.processed == 1
    assert report.errors == 1
    assert not report.success
    assert report.failures == {"base-blog": "Failed to fetch https://base.org/blog: HTTP 503"}
    assert store.get_latest_snapshot("base-blog") is None
    assert store.get_source_state("base-blog") == {}
    assert store.get_latest_snapshot("base-grants") is not None


@pytest.mark.asyncio
async def test_run_counts_and_collects_digests(
    store: YamlRadarStore, grants_source: Source, protocol_source: Source, clock: Callable[[], datetime]
) -> None:
    fetcher = FakeFetcher({
        "base-grants": [OLD, NEW],
        "base-blog": ["Blog post one.", "Blog post one."],
    })
    service = RadarService(fetcher, store, clock=clock)

    await service.run([grants_source, protocol_source])
    report = await service.run([grants_source, protocol_source])

    assert report.total == 2
    assert report.processed == 1
    assert report.unchanged == 1
    assert report.success
    assert [d.source_id for d in report.digests] == ["base-grants"]


@pytest.mark.asyncio
async def test_run_skips_disabled_sources(
    store: YamlRadarStore, grants_source: Source, clock: Callable[[], datetime]
) -> None:
    disabled = Source(name="Base Blog", url="https://base.org/blog", category="protocol", enabled=False)
    fetcher = FakeFetcher({"base-grants": [OLD], "base-blog": ["never fetched"]})
    service = RadarService(fetcher, store, clock=clock)

    report = await service.run([grants_source, disabled])

    assert report.total == 1
    assert fetcher.calls == ["base-grants"]


@pytest.mark.asyncio
async def test_run_with_concurrency(
    store: YamlRadarStore, grants_source: Source, protocol_source: Source, clock: Callable[[], datetime]
) -> None:
    fetcher = FakeFetcher({
        "base-grants": [OLD],
        "base-blog": [FetchError("https://base.org/blog", reason="ConnectError: refused")],
    })
    service = RadarService(fetcher, store, concurrency=2, clock=clock)

    report = await service.run([grants_source, protocol_source])

    assert sorted(fetcher.calls) == ["base-blog", "base-grants"]
    assert report.processed == 1
    assert report.errors == 1
    assert "base-blog" in report.failures


@pytest.mark.asyncio
async def test_failed_digest_write_rolls_back_cycle(
    store: YamlRadarStore, grants_source: Source, clock: Callable[[], datetime]
) -> None:
    service = RadarService(FakeFetcher({"base-grants": [OLD, NEW, NEW]}), store, clock=clock)
    baseline = await service.process_source(grants_source)

    with patch.object(store, "insert_digest", side_effect=OSError("disk full")):
        with pytest.raises(OSError, match="disk full"):
            await service.process_source(grants_source)

    assert store.get_stats()["diffs"] == 0
    assert store.get_latest_snapshot("base-grants").id == baseline.snapshot.id
    assert store.get_source_state("base-grants")["last_fetched_at"] == "2026-01-01T12:00:00+00:00"

    # The change is picked up again on the next run
    retry = await service.process_source(grants_source)

    assert retry.status == SourceStatus.DIGESTED
    assert store.list_digests() == [retry.digest]

"""Business logic use cases."""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from opportunities_radar.core import (
    ContentFetcher,
    DiffRecord,
    Digest,
    RadarStore,
    RunReport,
    Snapshot,
    Source,
    SourceOutcome,
    SourceStatus,
    SummaryProvider,
)
from opportunities_radar.core.differ import generate_diff
from opportunities_radar.core.scorer import score_changes
from opportunities_radar.core.summarizer import summarize_changes


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class RadarService:
    """Fetch sources, detect changes and record scored digests."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        store: RadarStore,
        providers: Sequence[SummaryProvider] = (),
        concurrency: int = 1,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.providers = list(providers)
        self.concurrency = max(1, concurrency)
        self.clock = clock

    async def process_source(self, source: Source) -> SourceOutcome:
        """Run one fetch cycle for a source.

        Everything is computed before the first write, so a failed fetch
        leaves the store untouched.
        """
        # Read phase: the previous snapshot as of the start of this fetch
        prev_snapshot = self.store.get_latest_snapshot(source.id)

        fetch_result = await self.fetcher.fetch(source)
        fetched_at = self.clock()

        if prev_snapshot and prev_snapshot.content_hash == fetch_result.content_hash:
            self.store.update_last_fetched(source.id, fetched_at)
            return SourceOutcome(source=source, status=SourceStatus.UNCHANGED, snapshot=prev_snapshot)

        snapshot = Snapshot(
            id=_new_id(),
            source_id=source.id,
            content_hash=fetch_result.content_hash,
            content=fetch_result.content,
            fetched_at=fetched_at,
        )

        if prev_snapshot is None:
            self._commit(source, snapshot)
            return SourceOutcome(source=source, status=SourceStatus.BASELINE, snapshot=snapshot)

        diff = generate_diff(prev_snapshot.content, fetch_result.content)
        if not diff.has_changes:
            self._commit(source, snapshot)
            return SourceOutcome(source=source, status=SourceStatus.NO_CHANGES, snapshot=snapshot)

        score = score_changes(source, diff, fetch_result.content, now=fetched_at)
        summary = await summarize_changes(source, diff, self.providers)

        diff_record = DiffRecord(
            id=_new_id(),
            snapshot_id=snapshot.id,
            prev_snapshot_id=prev_snapshot.id,
            patch=diff.patch,
            created_at=fetched_at,
        )
        digest = Digest(
            id=_new_id(),
            diff_id=diff_record.id,
            source_id=source.id,
            title=summary.title,
            bullets=list(summary.bullets),
            action=summary.action or score.action,
            deadline=score.deadline,
            tags=score.tags,
            score=score.score,
            created_at=fetched_at,
        )

        self._commit(source, snapshot, diff_record, digest)
        return SourceOutcome(source=source, status=SourceStatus.DIGESTED, snapshot=snapshot, digest=digest)

    def _commit(
        self,
        source: Source,
        snapshot: Snapshot,
        diff_record: Optional[DiffRecord] = None,
        digest: Optional[Digest] = None,
    ) -> None:
        """Write phase: snapshot, diff, digest, then the fetch timestamp.

        If the diff or digest cannot be written, the records of this cycle are
        removed again so the next run diffs against the same previous snapshot.
        """
        self.store.insert_snapshot(snapshot)
        if diff_record is not None and digest is not None:
            try:
                self.store.insert_diff(diff_record)
                self.store.insert_digest(digest)
            except Exception:
                self.store.delete_diff(diff_record.id)
                self.store.delete_snapshot(snapshot)
                raise
        self.store.update_last_fetched(source.id, snapshot.fetched_at)

    async def run(self, sources: list[Source]) -> RunReport:
        """Process every enabled source and report aggregate counts."""
        enabled = [source for source in sources if source.enabled]
        report = RunReport(total=len(enabled))

        print("\n" + "=" * 70)
        print(f"📥 FETCHING {len(enabled)} SOURCES")
        print("=" * 70)

        if self.concurrency > 1:
            semaphore = asyncio.Semaphore(self.concurrency)

            async def bounded(source: Source) -> SourceOutcome | Exception:
                async with semaphore:
                    return await self._attempt(source)

            results = await asyncio.gather(*(bounded(source) for source in enabled))
        else:
            results = [await self._attempt(source) for source in enabled]

        for source, result in zip(enabled, results):
            if isinstance(result, Exception):
                report.errors += 1
                report.failures[source.id] = str(result)
            elif result.status == SourceStatus.UNCHANGED:
                report.unchanged += 1
            else:
                report.processed += 1
                if result.digest is not None:
                    report.digests.append(result.digest)

        print("\n" + "=" * 70)
        print("📊 RUN SUMMARY")
        print("=" * 70)
        print(f"✓ Processed: {report.processed}")
        print(f"• Unchanged: {report.unchanged}")
        print(f"✨ Digests: {len(report.digests)}")
        if report.errors:
            print(f"⚠️  Errors: {report.errors}")

        return report

    async def _attempt(self, source: Source) -> SourceOutcome | Exception:
        """Process a source, returning the exception instead of raising it."""
        print(f"\n🔍 {source.name} ({source.category.value})")
        print(f"  └─ URL: {source.url}")

        try:
            outcome = await self.process_source(source)
        except Exception as e:
            print(f"  └─ ❌ Failed to process source {source.name}: {e}")
            return e

        if outcome.status == SourceStatus.DIGESTED and outcome.digest is not None:
            print(f"  └─ ✨ [{outcome.digest.score}] {outcome.digest.title}")
        else:
            print(f"  └─ {outcome.status.value}")
        return outcome

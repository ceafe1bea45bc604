"""File-backed store keeping snapshots, diffs and digests as YAML artifacts."""

import os
import tempfile
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from opportunities_radar.core import DiffRecord, Digest, RadarStore, Snapshot, Source


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class YamlRadarStore(RadarStore):
    """Store every record as an individual YAML artifact.

    Layout under ``storage_dir``::

        sources/<source_id>.yaml
        snapshots/<source_id>/<fetched_at>_<id>.yaml
        diffs/<diff_id>.yaml
        digests/<digest_id>.yaml
    """

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = storage_dir
        self._ensure_structure()

    def _ensure_structure(self) -> None:
        """Create directory structure for artifacts."""
        for name in ["sources", "snapshots", "diffs", "digests"]:
            (self.storage_dir / name).mkdir(parents=True, exist_ok=True)

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        """Write YAML atomically via a temp file in the same directory."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read(self, path: Path) -> dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    # Snapshots

    def _snapshot_dir(self, source_id: str) -> Path:
        return self.storage_dir / "snapshots" / source_id

    def _snapshot_path(self, snapshot: Snapshot) -> Path:
        # UTC timestamp prefix, so file names sort in fetch order
        stamp = snapshot.fetched_at.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        return self._snapshot_dir(snapshot.source_id) / f"{stamp}_{snapshot.id[:8]}.yaml"

    def get_latest_snapshot(self, source_id: str) -> Optional[Snapshot]:
        snapshot_dir = self._snapshot_dir(source_id)
        if not snapshot_dir.exists():
            return None

        latest = max(snapshot_dir.glob("*.yaml"), default=None)
        return self._load_snapshot(latest) if latest else None

    def insert_snapshot(self, snapshot: Snapshot) -> None:
        self._write(self._snapshot_path(snapshot), {
            "id": snapshot.id,
            "source_id": snapshot.source_id,
            "content_hash": snapshot.content_hash,
            "fetched_at": _timestamp(snapshot.fetched_at),
            "content": snapshot.content,
        })

    def delete_snapshot(self, snapshot: Snapshot) -> None:
        self._snapshot_path(snapshot).unlink(missing_ok=True)

    def _load_snapshot(self, path: Path) -> Snapshot:
        data = self._read(path)
        return Snapshot(
            id=data["id"],
            source_id=data["source_id"],
            content_hash=data["content_hash"],
            content=data.get("content") or "",
            fetched_at=_parse_timestamp(data["fetched_at"]),
        )

    def count_snapshots(self, source_id: str) -> int:
        snapshot_dir = self._snapshot_dir(source_id)
        return len(list(snapshot_dir.glob("*.yaml"))) if snapshot_dir.exists() else 0

    # Diffs

    def _diff_path(self, diff_id: str) -> Path:
        return self.storage_dir / "diffs" / f"{diff_id}.yaml"

    def insert_diff(self, diff: DiffRecord) -> None:
        self._write(self._diff_path(diff.id), {
            "id": diff.id,
            "snapshot_id": diff.snapshot_id,
            "prev_snapshot_id": diff.prev_snapshot_id,
            "created_at": _timestamp(diff.created_at),
            "patch": diff.patch,
        })

    def delete_diff(self, diff_id: str) -> None:
        self._diff_path(diff_id).unlink(missing_ok=True)

    def get_diff(self, diff_id: str) -> Optional[DiffRecord]:
        path = self._diff_path(diff_id)
        if not path.exists():
            return None
        data = self._read(path)
        return DiffRecord(
            id=data["id"],
            snapshot_id=data["snapshot_id"],
            prev_snapshot_id=data["prev_snapshot_id"],
            patch=data["patch"],
            created_at=_parse_timestamp(data["created_at"]),
        )

    # Digests

    def insert_digest(self, digest: Digest) -> None:
        if self.get_diff(digest.diff_id) is None:
            raise ValueError(f"Digest {digest.id} references unknown diff {digest.diff_id}")

        self._write(self.storage_dir / "digests" / f"{digest.id}.yaml", {
            "id": digest.id,
            "diff_id": digest.diff_id,
            "source_id": digest.source_id,
            "title": digest.title,
            "bullets": list(digest.bullets),
            "action": digest.action,
            "deadline": _timestamp(digest.deadline),
            "tags": sorted(digest.tags),
            "score": digest.score,
            "created_at": _timestamp(digest.created_at),
        })

    def _load_digest(self, path: Path) -> Digest:
        data = self._read(path)
        return Digest(
            id=data["id"],
            diff_id=data["diff_id"],
            source_id=data["source_id"],
            title=data["title"],
            bullets=list(data.get("bullets") or []),
            action=data.get("action"),
            deadline=_parse_timestamp(data.get("deadline")),
            tags=frozenset(data.get("tags") or []),
            score=int(data["score"]),
            created_at=_parse_timestamp(data["created_at"]),
        )

    def list_digests(self, limit: int = 20, source_id: Optional[str] = None) -> list[Digest]:
        digests = [self._load_digest(path) for path in (self.storage_dir / "digests").glob("*.yaml")]
        if source_id:
            digests = [d for d in digests if d.source_id == source_id]

        digests.sort(key=lambda d: (d.score, d.created_at), reverse=True)
        return digests[:limit]

    # Source state

    def _source_path(self, source_id: str) -> Path:
        return self.storage_dir / "sources" / f"{source_id}.yaml"

    def get_source_state(self, source_id: str) -> dict[str, Any]:
        path = self._source_path(source_id)
        return self._read(path) if path.exists() else {}

    def _update_source_state(self, source_id: str, **changes: Any) -> None:
        state = self.get_source_state(source_id)
        state.update(changes)
        self._write(self._source_path(source_id), state)

    def update_last_fetched(self, source_id: str, fetched_at: datetime) -> None:
        self._update_source_state(source_id, last_fetched_at=_timestamp(fetched_at))

    def set_source_enabled(self, source_id: str, enabled: bool) -> None:
        self._update_source_state(source_id, enabled=enabled)

    def apply_source_state(self, sources: list[Source]) -> list[Source]:
        result = []
        for source in sources:
            state = self.get_source_state(source.id)
            result.append(replace(
                source,
                enabled=state.get("enabled", source.enabled),
                last_fetched_at=_parse_timestamp(state.get("last_fetched_at")) or source.last_fetched_at,
            ))
        return result

    def get_stats(self) -> dict:
        """Get statistics about stored records."""
        snapshots = {
            source_dir.name: len(list(source_dir.glob("*.yaml")))
            for source_dir in (self.storage_dir / "snapshots").iterdir()
            if source_dir.is_dir()
        }
        return {
            "snapshots": sum(snapshots.values()),
            "snapshots_by_source": snapshots,
            "diffs": len(list((self.storage_dir / "diffs").glob("*.yaml"))),
            "digests": len(list((self.storage_dir / "digests").glob("*.yaml"))),
        }

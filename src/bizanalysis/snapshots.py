"""Snapshot helpers: save, load, export and compare stored analyses."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from bizanalysis.actions import RequestSequencer
from bizanalysis.bcg.diff import DiffRecord, diff
from bizanalysis.errors import AnalysisError
from bizanalysis.models import BCGPoint, Snapshot, SnapshotKind
from bizanalysis.swot.merge import SwotDraft

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20
COMPARE_LIST_LIMIT = 50


class SnapshotStore(Protocol):
    """Subset of :class:`bizanalysis.sdk.client.SnapshotsClient` used here."""

    def create(self, kind: Any, payload: Dict[str, Any], note: Optional[str] = None) -> Snapshot: ...

    def list(self, kind: Any = None, limit: Optional[int] = None) -> List[Snapshot]: ...

    def get(self, snapshot_id: str) -> Snapshot: ...


def save_bcg_snapshot(
    store: SnapshotStore, points: Sequence[BCGPoint], note: Optional[str] = None
) -> Snapshot:
    if not points:
        raise AnalysisError("No BCG points to save; run BCG first to generate points.")
    payload = {"points": [point.model_dump(mode="json") for point in points]}
    return store.create(SnapshotKind.BCG, payload, note=note)


def save_swot_snapshot(store: SnapshotStore, draft: SwotDraft, note: Optional[str] = None) -> Snapshot:
    return store.create(SnapshotKind.SWOT, draft.build().model_dump(mode="json"), note=note)


def list_snapshots(
    store: SnapshotStore, kind: SnapshotKind | str = SnapshotKind.BCG, limit: int = DEFAULT_LIST_LIMIT
) -> List[Snapshot]:
    return store.list(kind=kind, limit=limit)


def load_snapshot(store: SnapshotStore, snapshot_id: str) -> Snapshot:
    """Read one snapshot back. Unknown ids raise :class:`SnapshotNotFoundError`."""

    return store.get(snapshot_id)


def snapshot_points(snapshot: Optional[Snapshot]) -> List[BCGPoint]:
    if snapshot is None:
        return []
    raw = snapshot.payload.get("points")
    if not isinstance(raw, list):
        return []
    return [BCGPoint.model_validate(item) for item in raw]


def snapshot_item_count(snapshot: Snapshot) -> int:
    points = snapshot.payload.get("points")
    if isinstance(points, list):
        return len(points)
    strengths = snapshot.payload.get("strengths")
    return len(strengths) if isinstance(strengths, list) else 0


def short_id(snapshot: Snapshot) -> str:
    return snapshot.id[:8]


def export_snapshot_json(snapshot: Snapshot) -> str:
    """Pretty-printed JSON of the full snapshot, as offered for download."""

    return json.dumps(snapshot.model_dump(mode="json"), indent=2)


def snapshot_filename(snapshot: Snapshot) -> str:
    return f"snapshot-{short_id(snapshot)}.json"


def write_snapshot(snapshot: Snapshot, directory: Path | str = ".") -> Path:
    target = Path(directory) / snapshot_filename(snapshot)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(export_snapshot_json(snapshot), encoding="utf-8")
    return target


class SnapshotComparison:
    """Two snapshot selections ("from" and "to") and their diff.

    Each selection change takes a generation token before fetching. A
    response is only applied if no newer selection was made on the same side
    meanwhile, so a slow earlier fetch cannot overwrite a later one.
    """

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store
        self.from_snapshot: Optional[Snapshot] = None
        self.to_snapshot: Optional[Snapshot] = None
        self._sequencers = {"from": RequestSequencer(), "to": RequestSequencer()}

    def options(self, limit: int = COMPARE_LIST_LIMIT) -> List[Snapshot]:
        return self._store.list(kind=SnapshotKind.BCG, limit=limit)

    def begin(self, side: str) -> int:
        return self._sequencers[side].issue()

    def apply(self, side: str, token: int, snapshot: Optional[Snapshot]) -> bool:
        """Apply a fetched snapshot if *token* is still the latest for *side*."""

        if not self._sequencers[side].is_current(token):
            logger.debug("Discarding stale %s snapshot response (token %d)", side, token)
            return False
        setattr(self, f"{side}_snapshot", snapshot)
        return True

    def select(self, side: str, snapshot_id: Optional[str]) -> bool:
        if side not in self._sequencers:
            raise ValueError(f"side must be 'from' or 'to', got {side!r}")
        token = self.begin(side)
        snapshot = self._store.get(snapshot_id) if snapshot_id else None
        return self.apply(side, token, snapshot)

    def select_from(self, snapshot_id: Optional[str]) -> bool:
        return self.select("from", snapshot_id)

    def select_to(self, snapshot_id: Optional[str]) -> bool:
        return self.select("to", snapshot_id)

    @property
    def from_points(self) -> List[BCGPoint]:
        return snapshot_points(self.from_snapshot)

    @property
    def to_points(self) -> List[BCGPoint]:
        return snapshot_points(self.to_snapshot)

    def diff(self) -> List[DiffRecord]:
        return diff(self.from_points, self.to_points)


def compare_snapshots(store: SnapshotStore, from_id: str, to_id: str) -> List[DiffRecord]:
    comparison = SnapshotComparison(store)
    comparison.select_from(from_id)
    comparison.select_to(to_id)
    return comparison.diff()


__all__ = [
    "SnapshotComparison",
    "compare_snapshots",
    "export_snapshot_json",
    "list_snapshots",
    "load_snapshot",
    "save_bcg_snapshot",
    "save_swot_snapshot",
    "snapshot_filename",
    "snapshot_item_count",
    "snapshot_points",
    "write_snapshot",
]

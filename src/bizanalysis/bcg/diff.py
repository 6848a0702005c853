"""Per-product comparison of two BCG point sets."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, model_validator

from bizanalysis.bcg.quadrant import Quadrant, classify_point
from bizanalysis.models import BCGPoint

NO_VALUE = "—"


class DiffRecord(BaseModel):
    """Change of one named product between a "from" and a "to" snapshot."""

    name: str
    from_point: Optional[BCGPoint] = None
    to_point: BCGPoint
    drms: Optional[float] = None
    dgrowth: Optional[float] = None
    quadrant_from: Optional[Quadrant] = None
    quadrant_to: Quadrant

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_consistency(self) -> "DiffRecord":
        matched = self.from_point is not None
        if matched != (self.drms is not None) or matched != (self.dgrowth is not None):
            raise ValueError("drms/dgrowth must be set exactly when both points are present")
        if matched != (self.quadrant_from is not None):
            raise ValueError("quadrant_from must be set exactly when the from point is present")
        if self.quadrant_to != classify_point(self.to_point):
            raise ValueError("quadrant_to must be derived from to_point")
        return self

    @property
    def changed(self) -> bool:
        """True when the product moved to a different quadrant."""

        return (
            self.quadrant_from is not None
            and self.quadrant_to is not None
            and self.quadrant_from != self.quadrant_to
        )

    @property
    def is_new(self) -> bool:
        return self.from_point is None


def diff(from_points: Sequence[BCGPoint], to_points: Sequence[BCGPoint]) -> List[DiffRecord]:
    """Compare two point sets by product name.

    Output follows the order of *to_points* and has exactly one record per
    "to" point. Products that only exist in *from_points* are not reported.
    If a name repeats within *from_points*, the last occurrence is used.
    Quadrants are always classified locally from ``rms``/``growth``; stored
    ``quadrant`` fields are ignored.
    """

    lookup: Dict[str, BCGPoint] = {}
    for point in from_points:
        lookup[point.name] = point

    records: List[DiffRecord] = []
    for new in to_points:
        old = lookup.get(new.name)
        if old is None:
            records.append(
                DiffRecord(name=new.name, to_point=new, quadrant_to=classify_point(new))
            )
            continue
        records.append(
            DiffRecord(
                name=new.name,
                from_point=old,
                to_point=new,
                drms=new.rms - old.rms,
                dgrowth=new.growth - old.growth,
                quadrant_from=classify_point(old),
                quadrant_to=classify_point(new),
            )
        )
    return records


def format_delta(value: Optional[float]) -> str:
    if value is None:
        return NO_VALUE
    if value >= 0:
        return f"+{value:.2f}"
    return f"{value:.2f}"


def quadrant_label(record: DiffRecord) -> str:
    """Render the quadrant column, e.g. ``Cash Cow → Star``."""

    if record.quadrant_from is not None and record.quadrant_to is not None:
        return f"{record.quadrant_from.value} → {record.quadrant_to.value}"
    if record.quadrant_to is not None:
        return record.quadrant_to.value
    return NO_VALUE


def summarize(records: Sequence[DiffRecord]) -> Dict[str, int]:
    changed = sum(1 for record in records if record.changed)
    new = sum(1 for record in records if record.is_new)
    return {
        "total": len(records),
        "changed": changed,
        "new": new,
        "unchanged": len(records) - changed - new,
    }


__all__ = ["DiffRecord", "diff", "format_delta", "quadrant_label", "summarize"]

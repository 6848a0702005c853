"""Client-held mirror of the BCG quadrant rule.

The analysis service owns the authoritative classification. This module keeps
an identical copy so that quadrants can be re-derived locally for snapshot
comparison and for points the service computed but never confirmed during a
degraded import. The thresholds are published as a versioned contract together
with a table of reference cases; the test suite checks both this module and
the service against the same table so a divergence shows up as a failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from bizanalysis.models import BCGPoint


class Quadrant(str, Enum):
    """Strategic category of a growth/share pair.

    Values are the labels the analysis service returns on the wire.
    """

    STAR = "Star"
    CASH_COW = "Cash Cow"
    QUESTION_MARK = "Question Mark"
    DOG = "Dog"


GROWTH_THRESHOLD = 10.0  # percentage points
RMS_THRESHOLD = 1.0  # parity with the largest rival


@dataclass(frozen=True)
class ClassificationContract:
    """Versioned thresholds shared with the analysis service."""

    version: str
    growth_threshold: float = GROWTH_THRESHOLD
    rms_threshold: float = RMS_THRESHOLD

    def classify(self, rms: float, growth: float) -> Quadrant:
        high_growth = growth >= self.growth_threshold
        high_share = rms >= self.rms_threshold
        if high_growth and high_share:
            return Quadrant.STAR
        if not high_growth and high_share:
            return Quadrant.CASH_COW
        if high_growth and not high_share:
            return Quadrant.QUESTION_MARK
        return Quadrant.DOG


DEFAULT_CONTRACT = ClassificationContract(version="bcg-quadrant/1")

# (rms, growth, expected) reference values for the contract above.
CONTRACT_CASES: List[Tuple[float, float, Quadrant]] = [
    (1.0, 10.0, Quadrant.STAR),
    (0.999999, 10.0, Quadrant.QUESTION_MARK),
    (1.0, 9.999999, Quadrant.CASH_COW),
    (0.5, 5.0, Quadrant.DOG),
    (1.2, 14.0, Quadrant.STAR),
    (0.8, 8.0, Quadrant.DOG),
    (1.5, 6.0, Quadrant.CASH_COW),
    (0.51, 12.0, Quadrant.QUESTION_MARK),
    (0.0, 0.0, Quadrant.DOG),
    (3.0, -2.5, Quadrant.CASH_COW),
    (0.2, 40.0, Quadrant.QUESTION_MARK),
]


def classify(rms: float, growth: float) -> Quadrant:
    """Map a relative market share and a growth percentage to a quadrant.

    Both thresholds are inclusive on the high side, so ``classify(1.0, 10)``
    is a Star.
    """

    return DEFAULT_CONTRACT.classify(rms, growth)


def classify_point(point: "BCGPoint") -> Quadrant:
    return classify(point.rms, point.growth)


def find_divergent(points: Iterable["BCGPoint"]) -> List["BCGPoint"]:
    """Return the points whose stored quadrant disagrees with the local rule."""

    return [point for point in points if point.quadrant != classify_point(point)]


def reclassify(points: Iterable["BCGPoint"]) -> List["BCGPoint"]:
    """Return copies of *points* with quadrants re-derived locally."""

    result = []
    for point in points:
        quadrant = classify_point(point)
        if quadrant != point.quadrant:
            point = point.model_copy(update={"quadrant": quadrant})
        result.append(point)
    return result


__all__ = [
    "CONTRACT_CASES",
    "ClassificationContract",
    "DEFAULT_CONTRACT",
    "GROWTH_THRESHOLD",
    "Quadrant",
    "RMS_THRESHOLD",
    "classify",
    "classify_point",
    "find_divergent",
    "reclassify",
]

"""Bulk import pipeline: uploaded rows to persisted entities and a BCG chart.

Stages run strictly in order:

1. validate the whole batch (all-or-nothing, no network traffic on failure);
2. collapse rows to unique markets by exact name;
3. persist markets, then products referencing the returned market ids;
4. compute the BCG points.

Stage 3 is best-effort. Any failure there is logged and recorded on the
result, and the pipeline carries on so the user still gets a chart. Stage 4 is
the only fatal failure and surfaces as :class:`ComputationError`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from bizanalysis.bcg.csv_import import unique_markets, validate_rows
from bizanalysis.bcg.quadrant import find_divergent, reclassify
from bizanalysis.errors import ApiError, ComputationError, PersistenceError
from bizanalysis.models import (
    BCGPoint,
    ImportRow,
    MarketIn,
    MarketOut,
    ProductCreate,
    ProductIn,
    ProductOut,
)
from bizanalysis.observability import log_event

logger = logging.getLogger(__name__)


class ImportBackend(Protocol):
    """Subset of :class:`bizanalysis.sdk.client.BizClient` used by the pipeline."""

    def bulk_markets(self, markets: Sequence[MarketIn]) -> List[MarketOut]: ...

    def bulk_products(self, products: Sequence[ProductCreate]) -> List[ProductOut]: ...

    def compute_bcg(self, products: Sequence[ProductIn]) -> List[BCGPoint]: ...


class ImportStatus(str, Enum):
    PERSISTED = "persisted"
    COMPUTED_ONLY = "computed_only"
    FAILED = "failed"


class ImportResult(BaseModel):
    """Outcome of one bulk import.

    ``PERSISTED`` means markets and products were stored and the chart was
    computed. ``COMPUTED_ONLY`` means the chart was computed but persistence
    failed (fully or after the market stage). ``FAILED`` is never returned by
    :func:`import_and_compute`, which raises instead; it is built with
    :meth:`failed` by callers that report rather than raise.
    """

    status: ImportStatus
    points: List[BCGPoint] = Field(default_factory=list)
    rows: int = 0
    markets_persisted: int = 0
    products_persisted: int = 0
    persistence_error: Optional[str] = None
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def degraded(self) -> bool:
        return self.status is ImportStatus.COMPUTED_ONLY

    @classmethod
    def failed(cls, error: BaseException | str) -> "ImportResult":
        return cls(status=ImportStatus.FAILED, error=str(error))


def _persist(backend: ImportBackend, rows: Sequence[ImportRow], counts: Dict[str, int]) -> None:
    """Create unique markets, then products referencing the returned ids.

    *counts* is only advanced after the corresponding call succeeded, so a
    product failure still reports the markets that were created.
    """

    markets = unique_markets(rows)
    log_event("import.markets.create", count=len(markets))
    created = backend.bulk_markets(markets)
    counts["markets"] = len(created)

    name_to_id = {market.name: market.id for market in created}
    missing = sorted({row.market_name for row in rows} - set(name_to_id))
    if missing:
        logger.warning("Service returned no id for market(s) %s", missing)

    products = [row.to_product_create(name_to_id.get(row.market_name)) for row in rows]
    log_event("import.products.create", count=len(products))
    backend.bulk_products(products)
    counts["products"] = len(products)


def import_rows(backend: ImportBackend, rows: Sequence[ImportRow]) -> ImportResult:
    """Run the persist and compute stages for rows that already passed validation."""

    counts = {"markets": 0, "products": 0}
    persistence_error: Optional[PersistenceError] = None
    try:
        _persist(backend, rows, counts)
    except Exception as exc:
        # Stage 3 is best-effort whatever the backend raised.
        persistence_error = PersistenceError(f"{type(exc).__name__}: {exc}")
        logger.warning("Persistence failed, proceeding with BCG computation only: %s", exc)

    inputs = [row.to_product_in() for row in rows]
    try:
        points = backend.compute_bcg(inputs)
    except (ApiError, PydanticValidationError) as exc:
        log_event("import.compute.failed", level=logging.ERROR, error=str(exc))
        raise ComputationError(str(exc)) from exc

    if persistence_error is None:
        divergent = find_divergent(points)
        if divergent:
            logger.warning(
                "Service and local quadrant rule disagree for %s",
                [point.name for point in divergent],
            )
        status = ImportStatus.PERSISTED
    else:
        # Never confirmed by the service; show the locally derived quadrants.
        points = reclassify(points)
        status = ImportStatus.COMPUTED_ONLY

    result = ImportResult(
        status=status,
        points=points,
        rows=len(rows),
        markets_persisted=counts["markets"],
        products_persisted=counts["products"],
        persistence_error=str(persistence_error) if persistence_error else None,
    )
    log_event(
        "import.completed",
        status=result.status.value,
        points=len(result.points),
        markets=result.markets_persisted,
        products=result.products_persisted,
    )
    return result


def import_and_compute(backend: ImportBackend, raw_rows: Sequence[Mapping[str, Any]]) -> ImportResult:
    """Validate *raw_rows*, persist what can be persisted and compute the chart.

    Raises:
        ValidationError: if any row is invalid; no request is sent.
        ComputationError: if the BCG computation itself fails.
    """

    rows = validate_rows(raw_rows)
    return import_rows(backend, rows)


def outcome_message(result: ImportResult) -> str:
    """User-facing summary, distinct for each outcome."""

    if result.status is ImportStatus.PERSISTED:
        return (
            f"Imported {result.markets_persisted} market(s) and {result.products_persisted} "
            f"product(s). BCG computed with {len(result.points)} points."
        )
    if result.status is ImportStatus.COMPUTED_ONLY and result.markets_persisted:
        return (
            f"Imported {result.markets_persisted} market(s); products not persisted. "
            f"BCG computed with {len(result.points)} points."
        )
    if result.status is ImportStatus.COMPUTED_ONLY:
        return (
            f"BCG computed with {len(result.points)} points. "
            "(Database unavailable - entities not persisted)"
        )
    return f"Import failed: {result.error}"


__all__ = [
    "ImportBackend",
    "ImportResult",
    "ImportStatus",
    "import_and_compute",
    "import_rows",
    "outcome_message",
]

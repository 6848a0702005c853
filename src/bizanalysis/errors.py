"""Exception hierarchy for the analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence


class AnalysisError(Exception):
    """Base class for every error raised by :mod:`bizanalysis`."""


@dataclass(frozen=True)
class RowIssue:
    """A single problem found while validating an upload row."""

    row_number: int
    field: str
    message: str

    def __str__(self) -> str:
        return f"row {self.row_number}: {self.field}: {self.message}"


class ValidationError(AnalysisError, ValueError):
    """Raised when an upload batch is rejected before any network call."""

    def __init__(self, message: str, issues: Optional[Sequence[RowIssue]] = None):
        self.issues: List[RowIssue] = list(issues or [])
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if not self.issues:
            return base
        shown = "; ".join(str(issue) for issue in self.issues[:5])
        more = len(self.issues) - 5
        if more > 0:
            shown += f"; and {more} more"
        return f"{base} ({shown})"


class ApiError(AnalysisError):
    """Non-2xx response or transport failure from the analysis service."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        detail: object = None,
        method: str = "",
        path: str = "",
    ):
        self.status_code = status_code
        self.detail = detail
        self.method = method
        self.path = path
        super().__init__(message)


class SnapshotNotFoundError(ApiError, LookupError):
    """The requested snapshot id does not exist on the service."""


class PersistenceError(AnalysisError):
    """Market or product creation failed; recovered inside the import pipeline."""


class ComputationError(AnalysisError):
    """The BCG computation call failed, so no chart can be produced."""


class ActionBusyError(AnalysisError):
    """An action was triggered again while a previous run was still in flight."""


__all__ = [
    "AnalysisError",
    "ActionBusyError",
    "ApiError",
    "ComputationError",
    "PersistenceError",
    "RowIssue",
    "SnapshotNotFoundError",
    "ValidationError",
]

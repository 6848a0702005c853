"""Structured pipeline events tagged with the current CLI run.

Each ``bizanalysis`` invocation gets one run id. Events such as
``import.completed`` or ``swot.suggestions.merged`` carry it in their
``payload`` so every step of an import, comparison or suggestion round trip
can be grouped afterwards.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

logger = logging.getLogger(__name__)

_run_id_ctx: ContextVar[Optional[str]] = ContextVar("bizanalysis_run_id", default=None)


def new_run_id() -> str:
    """Start a run; called once per CLI invocation."""

    value = str(uuid.uuid4())
    _run_id_ctx.set(value)
    return value


def current_run_id() -> Optional[str]:
    return _run_id_ctx.get()


def redact_api_key(raw: Optional[str]) -> str:
    """Mask the ``X-API-Key`` value before it reaches a log line."""

    if not raw:
        return "<missing>"
    if len(raw) <= 3:
        return "***"
    return f"{raw[:4]}***"


def log_event(message: str, level: int = logging.INFO, **extra: object) -> None:
    """Emit pipeline event *message* with *extra* fields and the run id.

    The fields land on the record as ``record.payload``.
    """

    payload = {"run_id": current_run_id(), **extra}
    logger.log(level, message, extra={"payload": payload})

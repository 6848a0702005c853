"""Per-action run guards and stale-response sequencing."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from bizanalysis.errors import ActionBusyError
from bizanalysis.observability import log_event

T = TypeVar("T")


class ActionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class ActionGuard:
    """State machine guarding one user-triggered action (import, save, suggest).

    ``running`` has a single exit: ``done`` when the callable returns, or
    ``failed`` when it raises. A trigger that arrives while the guard is
    running is rejected with :class:`ActionBusyError` instead of queued.
    Guards for different actions are independent of each other.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = ActionState.IDLE
        self.error: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self.state is ActionState.RUNNING

    def _enter(self) -> None:
        with self._lock:
            if self.state is ActionState.RUNNING:
                raise ActionBusyError(f"{self.name} is already running")
            self.state = ActionState.RUNNING
            self.error = None

    def _leave(self, state: ActionState, error: Optional[str] = None) -> None:
        with self._lock:
            self.state = state
            self.error = error

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        self._enter()
        log_event("action.started", action=self.name)
        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:
            self._leave(ActionState.FAILED, str(exc) or type(exc).__name__)
            log_event("action.failed", level=logging.WARNING, action=self.name, error=str(exc))
            raise
        self._leave(ActionState.DONE)
        log_event("action.completed", action=self.name)
        return result


class RequestSequencer:
    """Generation tokens that let callers discard out-of-order responses.

    Each fetch takes a token with :meth:`issue`; when its response arrives,
    :meth:`is_current` tells whether a newer fetch has been issued since.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._lock = threading.Lock()

    def issue(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._generation


__all__ = ["ActionGuard", "ActionState", "RequestSequencer"]

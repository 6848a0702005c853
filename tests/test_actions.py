import threading

import pytest

from bizanalysis.actions import ActionGuard, ActionState, RequestSequencer
from bizanalysis.errors import ActionBusyError


def test_guard_transitions_to_done():
    guard = ActionGuard("import")
    assert guard.state is ActionState.IDLE

    assert guard.run(lambda x: x * 2, 21) == 42
    assert guard.state is ActionState.DONE
    assert guard.error is None


def test_guard_transitions_to_failed_and_reraises():
    guard = ActionGuard("suggest")

    def boom():
        raise RuntimeError("service down")

    with pytest.raises(RuntimeError):
        guard.run(boom)
    assert guard.state is ActionState.FAILED
    assert guard.error == "service down"

    assert guard.run(lambda: "ok") == "ok"
    assert guard.state is ActionState.DONE
    assert guard.error is None


def test_reentrant_trigger_is_rejected():
    guard = ActionGuard("save")
    calls = []

    def inner():
        calls.append("inner")

    def outer():
        assert guard.busy
        with pytest.raises(ActionBusyError):
            guard.run(inner)
        return "outer"

    assert guard.run(outer) == "outer"
    assert calls == []
    assert guard.state is ActionState.DONE


def test_different_actions_do_not_block_each_other():
    import_guard = ActionGuard("import")
    compare_guard = ActionGuard("compare")

    result = import_guard.run(lambda: compare_guard.run(lambda: "nested"))

    assert result == "nested"
    assert compare_guard.state is ActionState.DONE


def test_concurrent_trigger_from_another_thread_is_rejected():
    guard = ActionGuard("import")
    started = threading.Event()
    release = threading.Event()

    def slow():
        started.set()
        release.wait(timeout=5)
        return "done"

    worker = threading.Thread(target=guard.run, args=(slow,))
    worker.start()
    started.wait(timeout=5)
    try:
        with pytest.raises(ActionBusyError):
            guard.run(lambda: None)
    finally:
        release.set()
        worker.join(timeout=5)
    assert guard.state is ActionState.DONE


def test_sequencer_only_latest_token_is_current():
    seq = RequestSequencer()
    first = seq.issue()
    second = seq.issue()
    assert second > first
    assert seq.is_current(second)
    assert not seq.is_current(first)


def test_interrupt_exits_running_as_failed():
    guard = ActionGuard("import")

    def interrupted():
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        guard.run(interrupted)
    assert guard.state is ActionState.FAILED
    assert guard.error == "KeyboardInterrupt"
    assert guard.run(lambda: "again") == "again"

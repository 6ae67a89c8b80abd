import signal

import pytest

from bucketarr.pipeline.models import ItemResult, Outcome
from bucketarr.pipeline.policy import FailFast, KeepGoing, get_policy
from bucketarr.pipeline.run_state import (
    FORCED_EXIT_CODE,
    CancellationToken,
    RunStage,
    RunState,
    RunStatus,
    ShutdownHandler,
)

from fakes import make_item


def test_first_interrupt_requests_drain_only():
    token = CancellationToken()
    exits = []
    handler = ShutdownHandler(token, exit_fn=exits.append)

    handler(signal.SIGINT, None)

    assert token.cancellation_requested
    assert not token.force_exit_requested
    assert exits == []


def test_second_interrupt_kills_in_flight_work_and_exits():
    token = CancellationToken()
    exits = []
    aborted = []
    handler = ShutdownHandler(
        token, on_force_exit=lambda: aborted.append(True), exit_fn=exits.append
    )

    handler(signal.SIGINT, None)
    handler(signal.SIGTERM, None)

    assert token.force_exit_requested
    assert aborted == [True]
    assert exits == [FORCED_EXIT_CODE]


def test_install_registers_for_interrupt_and_terminate():
    previous = {s: signal.getsignal(s) for s in (signal.SIGINT, signal.SIGTERM)}
    handler = ShutdownHandler(CancellationToken(), exit_fn=lambda code: None)
    try:
        handler.install()
        assert signal.getsignal(signal.SIGINT) is handler
        assert signal.getsignal(signal.SIGTERM) is handler
    finally:
        for s, h in previous.items():
            signal.signal(s, h)


@pytest.mark.parametrize(
    "status, stage",
    [
        (RunStatus.COMPLETED, RunStage.DONE),
        (RunStatus.DRAINED, RunStage.DONE),
        (RunStatus.FAILED, RunStage.DONE),
        (RunStatus.CONFIG_ERROR, RunStage.FATAL_ABORT),
        (RunStatus.STORE_UNAVAILABLE, RunStage.FATAL_ABORT),
    ],
)
def test_finish_sets_terminal_stage(status, stage):
    state = RunState()
    state.finish(status, "why")
    assert state.stage == stage
    assert state.stop_reason == "why"
    assert state.runtime_seconds >= 0


def test_policies():
    failed = ItemResult(item=make_item(1), outcome=Outcome.FAILED, reason="x")
    ok = ItemResult(item=make_item(1), outcome=Outcome.UPLOADED)

    assert FailFast().should_stop(failed)
    assert not FailFast().should_stop(ok)
    assert not KeepGoing().should_stop(failed)

    assert isinstance(get_policy("Keep-Going"), KeepGoing)
    with pytest.raises(ValueError):
        get_policy("retry-forever")

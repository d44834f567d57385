import asyncio

import pytest

from ugcvideo.models.video_schema import PollOutcome
from ugcvideo.services.errors import (
    PollingError,
    PollingExhaustedError,
    PollingTimeoutError,
    PollingTransportError,
)
from ugcvideo.services.result_poller import ResultPoller, PollerState


class ScriptedLookup:
    """Plays back outcomes/exceptions in order, then answers pending forever."""

    def __init__(self, *steps):
        self.steps = list(steps)
        self.calls = 0

    async def __call__(self, session_id):
        self.calls += 1
        step = self.steps.pop(0) if self.steps else PollOutcome.pending()
        if isinstance(step, BaseException):
            raise step
        return step


def _poller(lookup, results, errors, **kw):
    kw.setdefault("interval", 0.005)
    kw.setdefault("max_retries", 3)
    kw.setdefault("max_duration", 5)
    return ResultPoller(
        lookup,
        on_result=lambda sid, payload: results.append((sid, payload)),
        on_error=lambda sid, err: errors.append((sid, err)),
        **kw,
    )


def test_succeeds_after_pending_ticks():
    results, errors = [], []
    payload = {"videoUrl": "https://x.test/a.mp4"}
    lookup = ScriptedLookup(PollOutcome.pending(), PollOutcome.pending(), PollOutcome.completed(payload))

    async def scenario():
        p = _poller(lookup, results, errors)
        assert p.start("s-1")
        return await p.wait(), p

    state, p = asyncio.run(scenario())
    assert state is PollerState.SUCCEEDED
    assert results == [("s-1", payload)]
    assert errors == []
    assert lookup.calls == 3
    assert p.payload == payload


def test_second_start_is_rejected():
    async def scenario():
        p = _poller(ScriptedLookup(), [], [])
        assert p.start("s-1")
        assert not p.start("s-2")
        assert not p.start("s-1")
        assert p.session_id == "s-1"
        p.stop()

    asyncio.run(scenario())


def test_retry_bound_reached_fails():
    results, errors = [], []
    boom = PollingTransportError("connection reset")
    lookup = ScriptedLookup(boom, boom, boom, PollOutcome.completed("late"))

    async def scenario():
        p = _poller(lookup, results, errors, max_retries=3)
        p.start("s-1")
        return await p.wait()

    assert asyncio.run(scenario()) is PollerState.FAILED
    assert results == []
    assert len(errors) == 1
    err = errors[0][1]
    assert isinstance(err, PollingExhaustedError)
    assert err.last_error is not None
    assert lookup.calls == 3


def test_one_below_retry_bound_then_success():
    results, errors = [], []
    lookup = ScriptedLookup(ConnectionError("a"), ConnectionError("b"), PollOutcome.completed("ok"))

    async def scenario():
        p = _poller(lookup, results, errors, max_retries=3)
        p.start("s-1")
        return await p.wait()

    assert asyncio.run(scenario()) is PollerState.SUCCEEDED
    assert results == [("s-1", "ok")]
    assert errors == []


def test_pending_answer_resets_consecutive_errors():
    results, errors = [], []
    e = PollingTransportError("flaky")
    lookup = ScriptedLookup(e, e, PollOutcome.pending(), e, e, PollOutcome.completed("done"))

    async def scenario():
        p = _poller(lookup, results, errors, max_retries=3)
        p.start("s-1")
        return await p.wait()

    assert asyncio.run(scenario()) is PollerState.SUCCEEDED
    assert results == [("s-1", "done")]


def test_times_out_regardless_of_retry_budget():
    results, errors = [], []

    async def scenario():
        p = _poller(ScriptedLookup(), results, errors, max_retries=1000, max_duration=0.05)
        p.start("s-1")
        return await p.wait()

    assert asyncio.run(scenario()) is PollerState.FAILED
    assert results == []
    assert isinstance(errors[0][1], PollingTimeoutError)


def test_times_out_while_lookup_in_flight():
    errors = []

    async def hanging(session_id):
        await asyncio.sleep(10)
        return PollOutcome.completed("too late")

    async def scenario():
        p = _poller(hanging, [], errors, max_duration=0.05)
        p.start("s-1")
        return await p.wait()

    assert asyncio.run(scenario()) is PollerState.FAILED
    assert len(errors) == 1
    assert isinstance(errors[0][1], PollingTimeoutError)


def test_workflow_failure_is_terminal():
    errors = []
    lookup = ScriptedLookup(PollOutcome.failed("render crashed"))

    async def scenario():
        p = _poller(lookup, [], errors)
        p.start("s-1")
        return await p.wait()

    assert asyncio.run(scenario()) is PollerState.FAILED
    err = errors[0][1]
    assert type(err) is PollingError
    assert err.reason == "render crashed"


def test_no_callback_after_stop_even_if_lookup_resolves():
    results, errors = [], []

    async def scenario():
        started = asyncio.Event()
        gate = asyncio.get_running_loop().create_future()

        async def slow(session_id):
            started.set()
            return await asyncio.shield(gate)

        p = _poller(slow, results, errors)
        p.start("s-1")
        await started.wait()
        p.stop()
        gate.set_result(PollOutcome.completed("ignored"))
        await asyncio.sleep(0.02)
        return p

    p = asyncio.run(scenario())
    assert p.state is PollerState.CANCELLED
    assert results == []
    assert errors == []


def test_stop_is_idempotent_and_safe_inside_callback():
    seen = []

    async def scenario():
        p = ResultPoller(ScriptedLookup(PollOutcome.completed("x")), interval=0.005)

        def on_result(sid, payload):
            p.stop()
            p.stop()
            seen.append(payload)

        p.on_result = on_result
        p.start("s-1")
        await p.wait()
        p.stop()
        return p.state

    assert asyncio.run(scenario()) is PollerState.SUCCEEDED
    assert seen == ["x"]


def test_stop_before_start_is_noop():
    p = ResultPoller(ScriptedLookup())
    p.stop()
    assert p.state is PollerState.IDLE


def test_reset_makes_poller_reusable():
    results = []

    async def scenario():
        p = _poller(ScriptedLookup(PollOutcome.completed(1), PollOutcome.completed(2)), results, [])
        p.start("s-1")
        await p.wait()
        assert not p.start("s-2")
        assert p.reset()
        assert p.state is PollerState.IDLE
        assert p.session_id is None and p.payload is None and p.retries == 0
        assert p.start("s-2")
        await p.wait()

    asyncio.run(scenario())
    assert results == [("s-1", 1), ("s-2", 2)]


def test_reset_rejected_while_polling():
    async def scenario():
        p = _poller(ScriptedLookup(), [], [])
        p.start("s-1")
        assert not p.reset()
        assert p.state is PollerState.POLLING
        p.stop()
        assert p.reset()

    asyncio.run(scenario())


def test_raising_callback_does_not_escape():
    def explode(sid, payload):
        raise RuntimeError("listener bug")

    async def scenario():
        p = ResultPoller(ScriptedLookup(PollOutcome.completed("x")), on_result=explode, interval=0.005)
        p.start("s-1")
        return await p.wait()

    assert asyncio.run(scenario()) is PollerState.SUCCEEDED


def test_max_retries_must_be_positive():
    with pytest.raises(ValueError):
        ResultPoller(ScriptedLookup(), max_retries=0)


def test_malformed_lookup_answer_counts_as_transport_error():
    results, errors = [], []
    lookup = ScriptedLookup(None, {"status": "completed"}, PollOutcome.completed("ok"))

    async def scenario():
        p = _poller(lookup, results, errors, max_retries=3)
        p.start("s-1")
        return await p.wait()

    assert asyncio.run(scenario()) is PollerState.SUCCEEDED
    assert results == [("s-1", "ok")]


def test_malformed_lookup_answers_exhaust_retries():
    errors = []

    async def broken(session_id):
        return None

    async def scenario():
        p = _poller(broken, [], errors, max_retries=2)
        p.start("s-1")
        return await p.wait()

    assert asyncio.run(scenario()) is PollerState.FAILED
    assert isinstance(errors[0][1], PollingExhaustedError)

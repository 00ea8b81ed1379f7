import asyncio

import pytest

from fxconvert.core.logging import session_id_ctx
from fxconvert.services.orchestrator import ConversionOutcome, ConversionState
from fxconvert.services.tasks import ConversionTaskRegistry

DONE = ConversionOutcome(state=ConversionState.SUCCESS, trail=(ConversionState.SUCCESS,))


async def _hang() -> ConversionOutcome:
    await asyncio.Event().wait()
    return DONE


async def _quick() -> ConversionOutcome:
    return DONE


def test_newer_submission_supersedes_outstanding():
    async def scenario():
        registry = ConversionTaskRegistry()
        first = asyncio.ensure_future(registry.submit("s1", _hang))
        await asyncio.sleep(0)
        assert registry.is_busy("s1")

        second = await registry.submit("s1", _quick)
        return await first, second, registry

    first, second, registry = asyncio.run(scenario())

    assert first.error_kind == "superseded"
    assert first.message == "Superseded by a newer conversion request"
    assert second is DONE
    assert not registry.is_busy("s1")


def test_sessions_do_not_interfere():
    async def scenario():
        registry = ConversionTaskRegistry()
        gate = asyncio.Event()

        async def gated() -> ConversionOutcome:
            await gate.wait()
            return DONE

        a = asyncio.ensure_future(registry.submit("a", gated))
        await asyncio.sleep(0)
        b = await registry.submit("b", _quick)
        assert registry.is_busy("a")
        gate.set()
        return await a, b

    a, b = asyncio.run(scenario())
    assert a is DONE
    assert b is DONE


def test_shutdown_cancels_outstanding_and_closes():
    async def scenario():
        registry = ConversionTaskRegistry()
        pending = asyncio.ensure_future(registry.submit("s1", _hang))
        await asyncio.sleep(0)
        assert registry.outstanding() == 1

        await registry.shutdown()
        outcome = await pending

        with pytest.raises(RuntimeError):
            await registry.submit("s1", _quick)
        return outcome, registry

    outcome, registry = asyncio.run(scenario())
    assert outcome.error_kind == "cancelled"
    assert registry.outstanding() == 0


def test_cancelled_caller_takes_its_task_down():
    async def scenario():
        registry = ConversionTaskRegistry()
        caller = asyncio.ensure_future(registry.submit("s1", _hang))
        await asyncio.sleep(0)
        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller
        for _ in range(3):
            await asyncio.sleep(0)
        return registry

    registry = asyncio.run(scenario())
    assert not registry.is_busy("s1")


def test_cancelled_caller_leaves_no_stale_entry():
    async def scenario():
        registry = ConversionTaskRegistry()
        callers = [asyncio.ensure_future(registry.submit(f"req-{i}", _hang)) for i in range(5)]
        await asyncio.sleep(0)
        assert registry.tracked() == 5
        for caller in callers:
            caller.cancel()
        await asyncio.gather(*callers, return_exceptions=True)
        for _ in range(3):
            await asyncio.sleep(0)
        return registry

    registry = asyncio.run(scenario())
    assert registry.tracked() == 0


def test_conversion_task_sees_its_session_in_log_context():
    async def scenario():
        registry = ConversionTaskRegistry()
        seen = []

        async def capture() -> ConversionOutcome:
            seen.append(session_id_ctx.get())
            return DONE

        await registry.submit("sess-42", capture)
        return seen, session_id_ctx.get()

    seen, after = asyncio.run(scenario())
    assert seen == ["sess-42"]
    assert after is None

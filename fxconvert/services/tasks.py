from __future__ import annotations

"""Per-session conversion tasks.

Each conversion runs as an explicit `asyncio.Task` owned by this registry,
keyed by client session. A newer submission from the same session cancels the
outstanding one (last write wins on the display); application shutdown
cancels everything still running.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict

from fxconvert.core.logging import session_id_ctx
from fxconvert.models.constants import MSG_CANCELLED, MSG_SUPERSEDED
from fxconvert.services.orchestrator import ConversionOutcome, ConversionState

logger = logging.getLogger("fxconvert.tasks")

SUPERSEDED = "superseded"
CANCELLED = "cancelled"


class ConversionTaskRegistry:
    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task] = {}
        self._closed = False

    def is_busy(self, session_id: str) -> bool:
        task = self._tasks.get(session_id)
        return task is not None and not task.done()

    def outstanding(self) -> int:
        return sum(1 for t in self._tasks.values() if not t.done())

    def tracked(self) -> int:
        return len(self._tasks)

    def _forget(self, session_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(session_id) is task:
            del self._tasks[session_id]

    async def submit(
        self,
        session_id: str,
        factory: Callable[[], Awaitable[ConversionOutcome]],
    ) -> ConversionOutcome:
        if self._closed:
            raise RuntimeError("task registry is shut down")
        previous = self._tasks.get(session_id)
        if previous is not None and not previous.done():
            logger.info("session %s: superseding outstanding conversion", session_id)
            previous.cancel()

        # the new task copies the current context, so its log records carry the session
        token = session_id_ctx.set(session_id)
        try:
            task = asyncio.ensure_future(factory())
        finally:
            session_id_ctx.reset(token)
        self._tasks[session_id] = task
        task.add_done_callback(lambda t: self._forget(session_id, t))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                # the caller itself was cancelled; take the task down with it
                task.cancel()
                raise
            kind, message = (CANCELLED, MSG_CANCELLED) if self._closed else (SUPERSEDED, MSG_SUPERSEDED)
            return ConversionOutcome(
                state=ConversionState.FAILED,
                trail=(ConversionState.FAILED,),
                error_kind=kind,
                message=message,
            )

    async def shutdown(self) -> None:
        self._closed = True
        pending = [t for t in self._tasks.values() if not t.done()]
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.debug("cancelled %d outstanding conversions", len(pending))
        self._tasks.clear()

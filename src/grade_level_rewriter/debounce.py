from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

from .errors import RewriteEngineError

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


@dataclass(slots=True)
class DebouncedRequest:
    """Arguments of a deferred preview rewrite."""

    text: str
    target_level: str


class DebounceScheduler:
    """
    Coalesces rapid preview requests into one trailing dispatch per session.

    A new ``schedule`` call cancels the session's pending timer, so only the
    most recent request inside the delay window ever reaches ``dispatch``.
    """

    def __init__(
        self,
        dispatch: Callable[[DebouncedRequest], Awaitable[Any]],
        default_delay: float = 1.5,
    ) -> None:
        self._dispatch = dispatch
        self._default_delay = default_delay
        self._pending: Dict[str, asyncio.Task[Any]] = {}
        self._running: List[asyncio.Task[Any]] = []
        self.last_error: RewriteEngineError | None = None

    def schedule(
        self,
        request: DebouncedRequest,
        delay: float | None = None,
        session_id: str = DEFAULT_SESSION,
    ) -> None:
        """Start (or restart) the session's timer; must run inside an event loop."""
        self.cancel(session_id)
        loop = asyncio.get_running_loop()
        wait = self._default_delay if delay is None else delay
        self._pending[session_id] = loop.create_task(
            self._fire(session_id, request, wait)
        )

    def cancel(self, session_id: str = DEFAULT_SESSION) -> bool:
        task = self._pending.pop(session_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Cancelled pending preview for session %s", session_id)
        return True

    def cancel_all(self) -> None:
        for session_id in list(self._pending):
            self.cancel(session_id)

    def pending_sessions(self) -> List[str]:
        return [session for session, task in self._pending.items() if not task.done()]

    async def join(self) -> None:
        """Wait for every pending or in-flight timer to finish."""
        tasks = [*self._pending.values(), *self._running]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _fire(self, session_id: str, request: DebouncedRequest, delay: float) -> Any:
        await asyncio.sleep(delay)
        task = asyncio.current_task()
        if self._pending.get(session_id) is task:
            del self._pending[session_id]
        if task is not None:
            self._running.append(task)
        try:
            return await self._dispatch(request)
        except RewriteEngineError as exc:
            self.last_error = exc
            logger.info("Preview rewrite for session %s did not complete: %s", session_id, exc)
            return None
        except Exception:
            logger.exception("Preview dispatch for session %s raised", session_id)
            raise
        finally:
            if task is not None:
                self._running.remove(task)

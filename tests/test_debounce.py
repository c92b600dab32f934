from __future__ import annotations

import asyncio
import logging
from typing import List

import pytest

from grade_level_rewriter.config import EngineConfig
from grade_level_rewriter.debounce import DebouncedRequest, DebounceScheduler
from grade_level_rewriter.errors import RateLimited
from grade_level_rewriter.service import RewriteService
from tests.utils import COMPLEX_TEXT, EASY_TEXT, ScriptedRewriter


def test_rapid_requests_collapse_into_one_dispatch_with_last_arguments():
    dispatched: List[DebouncedRequest] = []

    async def dispatch(request: DebouncedRequest) -> None:
        dispatched.append(request)

    async def scenario() -> None:
        scheduler = DebounceScheduler(dispatch, default_delay=0.05)
        for text in ("Draft one.", "Draft two.", "Draft three."):
            scheduler.schedule(DebouncedRequest(text=text, target_level="college"))
            await asyncio.sleep(0.01)
        await scheduler.join()

    asyncio.run(scenario())
    assert dispatched == [DebouncedRequest(text="Draft three.", target_level="college")]


def test_sessions_are_debounced_independently():
    dispatched: List[str] = []

    async def dispatch(request: DebouncedRequest) -> None:
        dispatched.append(request.text)

    async def scenario() -> None:
        scheduler = DebounceScheduler(dispatch, default_delay=0.02)
        scheduler.schedule(DebouncedRequest("Left one.", "college"), session_id="left")
        scheduler.schedule(DebouncedRequest("Right one.", "college"), session_id="right")
        scheduler.schedule(DebouncedRequest("Left two.", "college"), session_id="left")
        assert sorted(scheduler.pending_sessions()) == ["left", "right"]
        await scheduler.join()
        assert scheduler.pending_sessions() == []

    asyncio.run(scenario())
    assert sorted(dispatched) == ["Left two.", "Right one."]


def test_cancel_all_prevents_dispatch():
    dispatched: List[str] = []

    async def dispatch(request: DebouncedRequest) -> None:
        dispatched.append(request.text)

    async def scenario() -> None:
        scheduler = DebounceScheduler(dispatch, default_delay=0.02)
        scheduler.schedule(DebouncedRequest("Never sent.", "college"))
        scheduler.cancel_all()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert dispatched == []


def test_dispatch_errors_are_recorded_not_raised():
    async def dispatch(request: DebouncedRequest) -> None:
        raise RateLimited(12.0)

    async def scenario() -> DebounceScheduler:
        scheduler = DebounceScheduler(dispatch, default_delay=0.0)
        scheduler.schedule(DebouncedRequest("Busy.", "college"))
        await scheduler.join()
        return scheduler

    scheduler = asyncio.run(scenario())
    assert isinstance(scheduler.last_error, RateLimited)


def test_service_preview_rewrites_latest_text_once():
    rewriter = ScriptedRewriter([EASY_TEXT])
    service = RewriteService(rewriter, config=EngineConfig(debounce_seconds=0.02))

    async def scenario() -> None:
        service.schedule_preview("First draft.", "elementary")
        service.schedule_preview(COMPLEX_TEXT, "elementary")
        await service.debouncer.join()

    asyncio.run(scenario())
    assert rewriter.calls == 1
    assert service.last_preview is not None
    assert service.last_preview.original_text == COMPLEX_TEXT


def test_unexpected_dispatch_errors_are_logged(caplog: pytest.LogCaptureFixture):
    """A dispatch bug is logged with its traceback instead of vanishing in join()."""

    async def dispatch(request: DebouncedRequest) -> None:
        raise ValueError("broken dispatch")

    async def scenario() -> None:
        scheduler = DebounceScheduler(dispatch, default_delay=0.0)
        scheduler.schedule(DebouncedRequest("Oops.", "college"), session_id="editor")
        await scheduler.join()

    with caplog.at_level(logging.ERROR, logger="grade_level_rewriter.debounce"):
        asyncio.run(scenario())

    records = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert len(records) == 1
    assert "editor" in records[0].getMessage()
    assert records[0].exc_info is not None
    assert isinstance(records[0].exc_info[1], ValueError)

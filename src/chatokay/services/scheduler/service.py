from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

from fastapi import BackgroundTasks

logger = logging.getLogger("scheduler")


class JobScheduler(Protocol):
    """Deferred one-shot job execution."""

    def run_after(self, delay_seconds: float, func: Callable[..., Any], *args: Any) -> None: ...


class BackgroundTaskScheduler:
    """JobScheduler backed by FastAPI BackgroundTasks.

    Jobs run after the response has been sent, so the request that scheduled
    them never waits for them.
    """

    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def run_after(self, delay_seconds: float, func: Callable[..., Any], *args: Any) -> None:
        self._background_tasks.add_task(_run_job, delay_seconds, func, *args)


async def _run_job(delay_seconds: float, func: Callable[..., Any], *args: Any) -> None:
    if delay_seconds > 0:
        await asyncio.sleep(delay_seconds)
    name = getattr(func, "__qualname__", repr(func))
    try:
        result = func(*args)
        if asyncio.iscoroutine(result):
            await result
    except Exception:
        # Nobody awaits the job, so the log is the only record of the failure.
        logger.exception("Scheduled job %s failed", name)
        return
    logger.info("Scheduled job %s completed", name)

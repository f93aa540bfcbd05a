"""Run the pipeline for many users with bounded concurrency."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable

from inbox_calendar.pipeline.models import RunReport
from inbox_calendar.pipeline.orchestrator import ConversationOrchestrator

logger = logging.getLogger(__name__)

MAX_CONCURRENT_USERS = 4
USER_TIMEOUT_SECONDS = 300


async def run_users(
    users: list[str],
    orchestrator_factory: Callable[[str], ConversationOrchestrator],
    max_concurrent: int = MAX_CONCURRENT_USERS,
    timeout: float = USER_TIMEOUT_SECONDS,
) -> list[RunReport]:
    """Process every user, at most ``max_concurrent`` at a time.

    Each user's run executes in a worker thread. A user whose factory or run
    raises, or who exceeds ``timeout`` seconds, gets a failed report; other
    users are unaffected. Reports come back in the order of ``users``.

    A timed-out run is asked to stop after its current conversation, and
    its worker slot is released only once the thread has returned.
    """
    semaphore = asyncio.Semaphore(max_concurrent)

    async def run_one(user: str) -> RunReport:
        async with semaphore:
            stop = threading.Event()
            task = asyncio.ensure_future(
                asyncio.to_thread(_run_user, user, orchestrator_factory, stop)
            )
            try:
                return await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
            except asyncio.TimeoutError:
                logger.error(f"Run for {user} timed out after {timeout}s, stopping it")
                stop.set()
                await asyncio.wait({task})
                if not task.cancelled() and task.exception() is None:
                    late = task.result()
                    logger.warning(
                        f"Run for {user} finished after its timeout "
                        f"with {late.processed} conversations processed"
                    )
                return RunReport.failed(user, f"timed out after {timeout}s")
            except Exception as e:
                logger.exception(f"Run for {user} failed")
                return RunReport.failed(user, f"{type(e).__name__}: {e}")

    return list(await asyncio.gather(*(run_one(u) for u in users)))


def _run_user(
    user: str,
    factory: Callable[[str], ConversationOrchestrator],
    stop: threading.Event,
) -> RunReport:
    return factory(user).run(stop=stop)

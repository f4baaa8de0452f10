"""
Background worker for periodic marketplace jobs.

- Closes published jobs past their deadline.
- Sends the daily digest and the category newsletter once a day.
- Optionally runs a content hook at random daily slots.

The content hook is an integration point for the caller: `python -m app.worker`
runs without one, so slots are only scheduled when an embedding process
calls `run_worker(content_hook=...)` with its own coroutine function.

Multiple worker instances are not coordinated; run exactly one.

Usage: python -m app.worker
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from app import database
from app.clock import utcnow
from app.config import settings
from app.services.job_lifecycle import auto_close_expired_jobs
from app.services.notifications import send_category_newsletter, send_daily_digest
from app.services.scheduling import CronSchedule, DailySlotScheduler

logger = logging.getLogger(__name__)

POLL_SECONDS = 30


async def run_daily_jobs(now: datetime) -> None:
    async with database.AsyncSessionLocal() as db:
        await send_daily_digest(db, now=now)
    async with database.AsyncSessionLocal() as db:
        await send_category_newsletter(db, now=now)


async def run_cycle(
    schedule: CronSchedule,
    now: datetime,
    content_scheduler: Optional[DailySlotScheduler] = None
) -> None:
    """Run whatever is due at `now`. Failures are logged; the next cycle retries."""
    if schedule.due_auto_close(now):
        schedule.mark_auto_close(now)
        try:
            async with database.AsyncSessionLocal() as db:
                await auto_close_expired_jobs(db, now=now)
        except Exception:
            logger.exception("Auto-closing expired jobs failed")

    if schedule.due_daily(now):
        try:
            await run_daily_jobs(now)
            schedule.mark_daily(now)
        except Exception:
            logger.exception("Daily digest/newsletter run failed")

    if content_scheduler is not None and schedule.due_hourly_tick(now):
        schedule.mark_hourly_tick(now)
        content_scheduler.on_hourly_tick(now)


async def run_worker(
    content_hook: Optional[Callable[[], Awaitable[None]]] = None,
    poll_seconds: int = POLL_SECONDS
) -> None:
    schedule = CronSchedule(
        daily_hour=settings.digest_hour_utc,
        auto_close_interval=timedelta(seconds=settings.auto_close_interval_seconds),
    )
    content_scheduler = None
    if content_hook is not None:
        content_scheduler = DailySlotScheduler(
            content_hook,
            posts_per_day=settings.content_posts_per_day,
            hour_start=settings.content_hour_start,
            hour_end=settings.content_hour_end,
        )

    logger.info(f"Worker started (daily jobs at {settings.digest_hour_utc}:00 UTC)")
    try:
        while True:
            await run_cycle(schedule, utcnow(), content_scheduler)
            await asyncio.sleep(poll_seconds)
    finally:
        if content_scheduler is not None:
            content_scheduler.close()
        await database.engine.dispose()
        logger.info("Worker stopped")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(run_worker())

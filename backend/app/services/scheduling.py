"""
Wall-clock scheduling used by the background worker.

CronSchedule decides when the periodic jobs are due. DailySlotScheduler
runs a callback at a few random times a day, at most once per slot.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class Slot:
    hour: int
    minute: int

    def __str__(self) -> str:
        return f"{self.hour}:{self.minute:02d}"


@dataclass
class CronSchedule:
    """Tracks the last run of each periodic job so each runs once per period."""
    daily_hour: int
    auto_close_interval: timedelta
    last_daily_run: Optional[date] = None
    last_auto_close: Optional[datetime] = None
    last_hourly_tick: Optional[Tuple[date, int]] = None

    def due_daily(self, now: datetime) -> bool:
        return now.hour >= self.daily_hour and self.last_daily_run != now.date()

    def mark_daily(self, now: datetime) -> None:
        self.last_daily_run = now.date()

    def due_auto_close(self, now: datetime) -> bool:
        return self.last_auto_close is None or now - self.last_auto_close >= self.auto_close_interval

    def mark_auto_close(self, now: datetime) -> None:
        self.last_auto_close = now

    def due_hourly_tick(self, now: datetime) -> bool:
        return self.last_hourly_tick != (now.date(), now.hour)

    def mark_hourly_tick(self, now: datetime) -> None:
        self.last_hourly_tick = (now.date(), now.hour)


class DailySlotScheduler:
    """
    Runs `callback` at up to `posts_per_day` random (hour, minute) slots
    between `hour_start` and `hour_end` inclusive.

    State is held in `date_key` and `slots`; both are regenerated the first
    time a tick arrives on a new calendar day. Call on_hourly_tick() once
    at the start of every hour: it clears any armed timer, then runs or
    arms the slots falling in that hour. A slot fires at most once.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        posts_per_day: int,
        hour_start: int,
        hour_end: int,
        rng: Optional[random.Random] = None
    ):
        if not 0 <= hour_start <= hour_end <= 23:
            raise ValueError(f"Invalid hour range {hour_start}..{hour_end}")

        self.callback = callback
        self.hour_start = hour_start
        self.hour_end = hour_end
        capacity = (hour_end - hour_start + 1) * 60
        self.posts_per_day = max(0, min(posts_per_day, capacity))
        self._rng = rng or random.Random()

        self.date_key: Optional[str] = None
        self.slots: list[Slot] = []
        self._fired: set[Slot] = set()
        self._timer: Optional[asyncio.TimerHandle] = None
        self.pending_slot: Optional[Slot] = None
        self._tasks: set[asyncio.Task] = set()

    def _generate_slots(self) -> list[Slot]:
        chosen: set[Slot] = set()
        while len(chosen) < self.posts_per_day:
            chosen.add(Slot(
                self._rng.randint(self.hour_start, self.hour_end),
                self._rng.randint(0, 59),
            ))
        return sorted(chosen)

    def ensure_daily_schedule(self, now: datetime) -> list[Slot]:
        """Regenerate slots when the calendar day changes."""
        date_key = now.date().isoformat()
        if self.date_key != date_key:
            self.clear_timer()
            self.date_key = date_key
            self.slots = self._generate_slots()
            self._fired = set()
            logger.info(
                f"Daily schedule for {date_key} ({len(self.slots)} slots): "
                f"{', '.join(str(slot) for slot in self.slots)}"
            )
        return self.slots

    def on_hourly_tick(self, now: datetime) -> Optional[Slot]:
        """Returns the slot left armed on a timer, if any."""
        self.ensure_daily_schedule(now)
        return self._arm_next(now)

    def _arm_next(self, now: datetime) -> Optional[Slot]:
        self.clear_timer()
        elapsed = now.minute * 60 + now.second

        for slot in self.slots:
            if slot.hour != now.hour or slot in self._fired:
                continue
            delay = slot.minute * 60 - elapsed
            if delay <= -60:
                # Earlier this hour, before the worker was running
                continue
            if delay <= 0:
                self._fire(slot)
                continue

            loop = asyncio.get_running_loop()
            self.pending_slot = slot
            self._timer = loop.call_later(delay, self._on_timer, slot, now + timedelta(seconds=delay))
            logger.info(f"Next slot {slot} armed in {delay}s")
            return slot
        return None

    def _on_timer(self, slot: Slot, fire_time: datetime) -> None:
        self._timer = None
        self.pending_slot = None
        if slot in self._fired:
            return
        self._fire(slot)
        self._arm_next(fire_time)

    def _fire(self, slot: Slot) -> None:
        self._fired.add(slot)
        task = asyncio.ensure_future(self._run(slot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, slot: Slot) -> None:
        try:
            await self.callback()
            logger.info(f"Slot {slot} on {self.date_key} completed")
        except Exception:
            logger.exception(f"Scheduled run for slot {slot} failed")

    def clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.pending_slot = None

    def reset(self) -> None:
        """Drop today's schedule; the next tick builds a fresh one."""
        self.clear_timer()
        self.date_key = None
        self.slots = []
        self._fired = set()

    def close(self) -> None:
        self.clear_timer()

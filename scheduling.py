"""Weekday-only daily triggers built on discord.ext.tasks."""

import asyncio
import logging
from datetime import datetime, time, timezone
from typing import Awaitable, Callable, Iterable, Optional

from discord.ext import tasks

from config import WEEKDAYS

log = logging.getLogger("standup-bot.scheduling")

JobCallback = Callable[[str], Awaitable[object]]


class WeekdaySchedule:
    """
    Calls *callback* at each of *times* (UTC) on the given weekdays.

    ``loop`` is the handle returned to the caller; start and stop it like any
    other ``tasks.Loop``. Each firing runs as its own task, so the loop returns
    immediately and a job stuck on I/O never holds up later firings. Errors
    are logged when the task finishes.
    """

    def __init__(
        self,
        name: str,
        callback: JobCallback,
        times: Iterable[time],
        weekdays: Iterable[int] = WEEKDAYS,
    ):
        self.name = name
        self.callback = callback
        self.times = list(times)
        self.weekdays = frozenset(weekdays)
        self.running: set[asyncio.Task] = set()
        self.loop = tasks.loop(time=self.times)(self.fire)

    async def fire(self, now: Optional[datetime] = None) -> bool:
        """Start the job if *now* falls on a scheduled weekday."""
        now = now or datetime.now(timezone.utc)
        if now.weekday() not in self.weekdays:
            return False

        label = f"[{now:%Y-%m-%d %H:%M} UTC] {self.name}"
        log.info(f"{label} - CRON JOB START")
        task = asyncio.create_task(self.callback(label), name=label)
        self.running.add(task)
        task.add_done_callback(self._finished)
        return True

    def _finished(self, task: asyncio.Task):
        self.running.discard(task)
        if task.cancelled():
            log.warning(f"{task.get_name()} - job cancelled")
            return
        error = task.exception()
        if error is not None:
            log.error(
                f"{task.get_name()} - job failed: {error!r}",
                exc_info=(type(error), error, error.__traceback__),
            )
        else:
            log.info(f"{task.get_name()} - job done")

    async def wait_idle(self):
        """Wait for every job started so far to finish."""
        while self.running:
            await asyncio.gather(*self.running, return_exceptions=True)

    def cancel(self):
        self.loop.cancel()
        for task in list(self.running):
            task.cancel()

    def describe(self) -> str:
        days = "Mon-Fri" if self.weekdays == WEEKDAYS else ",".join(map(str, sorted(self.weekdays)))
        hours = ", ".join(f"{t.hour:02d}:{t.minute:02d}" for t in self.times)
        return f"{self.name}: {hours} UTC ({days})"

import asyncio
import tempfile
import unittest
from datetime import datetime, time, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import config
from checkin import CheckInSweep, ReminderDispatcher
from fakes import FakeClient
from scheduling import WeekdaySchedule
from store import StandupRecord, StandupStore

MONDAY_NOON = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
FRIDAY_FIVE = datetime(2026, 10, 23, 17, 0, tzinfo=timezone.utc)
SATURDAY_NOON = datetime(2026, 10, 24, 12, 0, tzinfo=timezone.utc)
SUNDAY_FIVE = datetime(2026, 10, 25, 17, 0, tzinfo=timezone.utc)


class StalledFetchClient(FakeClient):
    """fetch_user never returns for the ids in *stalled*."""

    def __init__(self, stalled=()):
        super().__init__()
        self.stalled = {str(u) for u in stalled}

    async def fetch_user(self, user_id):
        if str(user_id) in self.stalled:
            await asyncio.Event().wait()
        return await super().fetch_user(user_id)


async def wait_until(condition, timeout=2.0):
    async def poll():
        while not condition():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(poll(), timeout)


class WeekdayScheduleTests(unittest.IsolatedAsyncioTestCase):
    def test_reminder_times_are_noon_and_five_utc(self) -> None:
        self.assertEqual(
            [(t.hour, t.minute, t.tzinfo) for t in config.REMINDER_TIMES],
            [(12, 0, timezone.utc), (17, 0, timezone.utc)],
        )
        self.assertEqual(config.WEEKDAYS, frozenset({0, 1, 2, 3, 4}))

    async def test_fires_on_weekdays(self) -> None:
        callback = AsyncMock()
        schedule = WeekdaySchedule("reminder", callback, config.REMINDER_TIMES)

        self.assertTrue(await schedule.fire(MONDAY_NOON))
        self.assertTrue(await schedule.fire(FRIDAY_FIVE))
        await schedule.wait_idle()

        self.assertEqual(callback.await_count, 2)
        self.assertIn("reminder", callback.await_args.args[0])

    async def test_skips_weekends(self) -> None:
        callback = AsyncMock()
        schedule = WeekdaySchedule("reminder", callback, config.REMINDER_TIMES)

        self.assertFalse(await schedule.fire(SATURDAY_NOON))
        self.assertFalse(await schedule.fire(SUNDAY_FIVE))
        await schedule.wait_idle()
        callback.assert_not_awaited()

    async def test_failing_job_does_not_break_later_firings(self) -> None:
        callback = AsyncMock(side_effect=[RuntimeError("boom"), None])
        schedule = WeekdaySchedule("reminder", callback, config.REMINDER_TIMES)

        with self.assertLogs("standup-bot.scheduling", level="ERROR") as logs:
            self.assertTrue(await schedule.fire(MONDAY_NOON))
            await schedule.wait_idle()
        self.assertIn("boom", logs.output[0])

        self.assertTrue(await schedule.fire(FRIDAY_FIVE))
        await schedule.wait_idle()
        self.assertEqual(callback.await_count, 2)
        self.assertEqual(schedule.running, set())

    async def test_stuck_job_does_not_block_firing(self) -> None:
        started = asyncio.Event()

        async def stuck(label):
            started.set()
            await asyncio.Event().wait()

        schedule = WeekdaySchedule("reminder", stuck, config.REMINDER_TIMES)

        self.assertTrue(await asyncio.wait_for(schedule.fire(MONDAY_NOON), 1))
        self.assertTrue(await asyncio.wait_for(schedule.fire(FRIDAY_FIVE), 1))
        await asyncio.wait_for(started.wait(), 1)
        self.assertEqual(len(schedule.running), 2)

        schedule.cancel()
        await schedule.wait_idle()
        self.assertEqual(schedule.running, set())

    def test_loop_handle_uses_configured_times(self) -> None:
        schedule = WeekdaySchedule("summary", AsyncMock(), [time(15, 30, tzinfo=timezone.utc)])

        self.assertEqual(len(schedule.loop.time), 1)
        self.assertEqual(schedule.loop.time[0].hour, 15)
        self.assertFalse(schedule.loop.is_running())
        self.assertEqual(schedule.describe(), "summary: 15:30 UTC (Mon-Fri)")


class ScheduledSweepTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = StandupStore(str(Path(self._tmp.name) / "test.db"))
        self.store.init_db()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    async def test_hung_fetch_does_not_stall_the_schedule(self) -> None:
        self.store.create(StandupRecord("1", "10", ["101", "102"]))
        client = StalledFetchClient(stalled={"101"})
        sweep = CheckInSweep(self.store, ReminderDispatcher(client))
        schedule = WeekdaySchedule("reminder", sweep.run, config.REMINDER_TIMES)

        self.assertTrue(await asyncio.wait_for(schedule.fire(MONDAY_NOON), 1))
        await wait_until(lambda: len(client.sent_to("102")) == 1)
        self.assertEqual(client.sent_to("101"), [])

        # the next firing still runs while the first one is stuck on 101
        self.assertTrue(await asyncio.wait_for(schedule.fire(FRIDAY_FIVE), 1))
        await wait_until(lambda: len(client.sent_to("102")) == 2)

        schedule.cancel()
        await schedule.wait_idle()

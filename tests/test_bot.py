import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from bot import StandupBot
from store import StandupRecord, StandupStore


class StandupBotWiringTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = StandupStore(str(Path(self._tmp.name) / "test.db"))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_only_reminders_scheduled_by_default(self) -> None:
        bot = StandupBot(self.store, summary_enabled=False)

        self.assertEqual([s.name for s in bot.schedules], ["reminder"])
        self.assertEqual(
            [(t.hour, t.minute) for t in bot.schedules[0].times],
            [(12, 0), (17, 0)],
        )

    def test_summary_schedule_when_enabled(self) -> None:
        bot = StandupBot(self.store, summary_enabled=True)
        self.assertEqual([s.name for s in bot.schedules], ["reminder", "summary"])

    def test_jobs_share_the_injected_client_and_store(self) -> None:
        bot = StandupBot(self.store)

        self.assertIs(bot.sweep.store, self.store)
        self.assertIs(bot.sweep.dispatcher.client, bot)
        self.assertIs(bot.summary.client, bot)
        self.assertIs(bot.lifecycle.store, self.store)


class OnReadyTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    async def test_store_error_for_one_guild_is_logged(self) -> None:
        class FlakyStore(StandupStore):
            def find_by_id(self, standup_id):
                if standup_id == "1":
                    raise RuntimeError("database is locked")
                return super().find_by_id(standup_id)

        store = FlakyStore(str(Path(self._tmp.name) / "test.db"))
        store.init_db()
        store.create(StandupRecord("2", "20", ["201"]))
        bot = StandupBot(store)
        guilds = [SimpleNamespace(id=1, name="one"), SimpleNamespace(id=2, name="two")]

        with patch.object(StandupBot, "user", SimpleNamespace(id=99)), \
                patch.object(StandupBot, "guilds", guilds):
            with self.assertLogs("standup-bot", level="INFO") as logs:
                await bot.on_ready()

        errors = [line for line in logs.output if line.startswith("ERROR")]
        self.assertEqual(len(errors), 1)
        self.assertIn("database is locked", errors[0])
        self.assertTrue(any("two (2): 1 member(s)" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()

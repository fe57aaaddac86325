"""
Cron-friendly check-in script: connects, runs one reminder sweep, exits.

Schedule this with cron / Task Scheduler instead of keeping bot.py running.

Usage:
  python cron_checkin.py              # remind members who have not answered
  python cron_checkin.py --summary    # post the end-of-day summary instead

Example crontab (weekdays at 12:00 and 17:00 UTC):
  0 12,17 * * 1-5 cd /path/to/standup-bot && python cron_checkin.py
"""

import sys
import logging
from datetime import datetime, timezone

import discord

import config
from checkin import CheckInSweep, ReminderDispatcher, StandupSummary
from store import StandupStore

logging.basicConfig(
    level=config.LOG_LEVEL,
    format=config.LOG_FORMAT,
    datefmt=config.LOG_DATEFMT,
)
log = logging.getLogger("cron-checkin")


class OneShotClient(discord.Client):
    """Minimal client: no commands, runs one job in on_ready and closes."""

    def __init__(self, store: StandupStore, summary: bool = False):
        super().__init__(intents=discord.Intents.default())
        self.store = store
        self.summary = summary
        self.result = None

    async def on_ready(self):
        log.info(f"Logged in as {self.user}")
        label = f"[{datetime.now(timezone.utc):%Y-%m-%d %H:%M} UTC] cron"
        try:
            if self.summary:
                self.result = await StandupSummary(self.store, self).run(label)
            else:
                dispatcher = ReminderDispatcher(self)
                self.result = await CheckInSweep(self.store, dispatcher).run(label)
        finally:
            log.info("Done, shutting down.")
            await self.close()


def main():
    if not config.DISCORD_TOKEN:
        log.error("DISCORD_TOKEN not set. Check your .env file.")
        sys.exit(1)

    store = StandupStore(config.DB_PATH)
    store.init_db()
    client = OneShotClient(store, summary="--summary" in sys.argv)
    client.run(config.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()

"""
Discord Standup Bot

Keeps one standup roster per server. Members answer by DM with !reply, and
on weekdays at 12:00 and 17:00 UTC (09:00 and 14:00 UTC-3) everyone who has
not answered yet gets a reminder DM.

Usage:
  1. Copy .env.example to .env and fill in your token
  2. pip install -r requirements.txt
  3. python bot.py
"""

import logging

import discord
from discord.ext import commands

import config
from checkin import CheckInSweep, ReminderDispatcher, StandupSummary
from lifecycle import TenantLifecycle
from scheduling import WeekdaySchedule
from standup_commands import StandupCommands
from store import StandupStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=config.LOG_LEVEL,
    format=config.LOG_FORMAT,
    datefmt=config.LOG_DATEFMT,
)
log = logging.getLogger("standup-bot")


# ---------------------------------------------------------------------------
# Bot
# ---------------------------------------------------------------------------

class StandupBot(commands.Bot):
    def __init__(self, store: StandupStore, summary_enabled: bool = config.SUMMARY_ENABLED):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        super().__init__(
            command_prefix=config.COMMAND_PREFIX,
            intents=intents,
            help_command=None,
        )
        self.store = store
        self.summary_enabled = summary_enabled

        self.sweep = CheckInSweep(store, ReminderDispatcher(self))
        self.summary = StandupSummary(store, self)
        self.lifecycle = TenantLifecycle(
            store,
            channel_name=config.STANDUP_CHANNEL_NAME,
            channel_topic=config.STANDUP_CHANNEL_TOPIC,
            prefix=config.COMMAND_PREFIX,
        )

        self.schedules = [
            WeekdaySchedule("reminder", self.sweep.run, config.REMINDER_TIMES),
        ]
        if summary_enabled:
            self.schedules.append(
                WeekdaySchedule("summary", self.summary.run, [config.SUMMARY_TIME])
            )

    async def setup_hook(self):
        await self.add_cog(StandupCommands(self.store, config.COMMAND_PREFIX))
        for schedule in self.schedules:
            schedule.loop.before_loop(self.wait_until_ready)
            schedule.loop.start()
            log.info(f"Scheduled {schedule.describe()}")

    async def on_ready(self):
        log.info(f"Logged in as {self.user} (ID: {self.user.id})")
        log.info(f"Connected to {len(self.guilds)} guild(s)")
        for guild in self.guilds:
            try:
                record = self.store.find_by_id(str(guild.id))
            except Exception as e:
                log.error(f"  - {guild.name} ({guild.id}): could not load standup: {e}")
                continue
            if record is None:
                log.warning(f"  - {guild.name} ({guild.id}): no standup record")
            else:
                log.info(
                    f"  - {guild.name} ({guild.id}): {len(record.members)} member(s), "
                    f"{len(record.responses)} response(s)"
                )

    async def on_guild_join(self, guild: discord.Guild):
        log.info(f"Joined guild {guild.name} ({guild.id})")
        await self.lifecycle.on_join(guild)

    async def on_guild_remove(self, guild: discord.Guild):
        log.info(f"Removed from guild {guild.name} ({guild.id})")
        self.lifecycle.on_leave(guild.id)

    async def close(self):
        for schedule in self.schedules:
            schedule.cancel()
        await super().close()


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

def main():
    if not config.DISCORD_TOKEN:
        log.error("DISCORD_TOKEN not set. Check your .env file.")
        return

    store = StandupStore(config.DB_PATH)
    store.init_db()
    log.info("Starting Standup Bot...")
    StandupBot(store).run(config.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()

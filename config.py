"""
Environment-driven settings shared by bot.py and cron_checkin.py.

Values come from the process environment, with a local .env file loaded first.
"""

import os
from datetime import time, timezone

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DISCORD_TOKEN = os.getenv("DISCORD_TOKEN", "")
DB_PATH = os.getenv("DB_PATH", "standups.db")
COMMAND_PREFIX = os.getenv("COMMAND_PREFIX", "!")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

STANDUP_CHANNEL_NAME = os.getenv("STANDUP_CHANNEL_NAME", "daily-standups")
STANDUP_CHANNEL_TOPIC = os.getenv("STANDUP_CHANNEL_TOPIC", "Scrum Standup Meeting Channel")

# 09:00 and 14:00 in UTC-3
REMINDER_TIMES = (
    time(hour=12, minute=0, tzinfo=timezone.utc),
    time(hour=17, minute=0, tzinfo=timezone.utc),
)
WEEKDAYS = frozenset(range(0, 5))  # Monday..Friday

SUMMARY_ENABLED = _env_bool("SUMMARY_ENABLED")
SUMMARY_HOUR = int(os.getenv("SUMMARY_HOUR", "15"))  # 24h format, UTC
SUMMARY_MINUTE = int(os.getenv("SUMMARY_MINUTE", "30"))
SUMMARY_TIME = time(hour=SUMMARY_HOUR, minute=SUMMARY_MINUTE, tzinfo=timezone.utc)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

"""
Check-in jobs: the reminder sweep and the end-of-day summary.

Both jobs take the discord client and the store as constructor arguments and
read every record fresh when they run. Work is isolated per guild and, for
reminders, per member: a failure is logged and only that unit is skipped.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import discord

from embeds import reminder_text, summary_embeds
from store import StandupRecord, StandupStore

log = logging.getLogger("standup-bot.checkin")


def missing_members(members: list[str], responses: dict[str, str]) -> list[str]:
    """Members without a response, in roster order, each listed once."""
    seen = set()
    missing = []
    for member_id in members:
        if member_id in responses or member_id in seen:
            continue
        seen.add(member_id)
        missing.append(member_id)
    return missing


@dataclass
class DispatchResult:
    member_id: str
    ok: bool
    error: Optional[str] = None


class ReminderDispatcher:
    """Sends the reminder DM to each missing member, one task per member."""

    def __init__(self, client: discord.Client):
        self.client = client

    async def notify(self, member_id: str) -> DispatchResult:
        try:
            user = await self.client.fetch_user(int(member_id))
        except Exception as e:
            log.error(f"Could not fetch user {member_id}: {e}")
            return DispatchResult(member_id, False, f"fetch: {e}")

        try:
            await user.send(reminder_text(member_id))
        except discord.Forbidden as e:
            log.warning(f"DMs closed for user {member_id}: {e}")
            return DispatchResult(member_id, False, f"send: {e}")
        except Exception as e:
            log.error(f"Could not send DM to user {member_id}: {e}")
            return DispatchResult(member_id, False, f"send: {e}")

        return DispatchResult(member_id, True)

    async def notify_all(self, member_ids: list[str]) -> list[DispatchResult]:
        results = await asyncio.gather(
            *(self.notify(m) for m in member_ids), return_exceptions=True
        )
        out = []
        for member_id, result in zip(member_ids, results):
            if isinstance(result, BaseException):
                # notify() handles its own errors; this only catches cancellation
                log.error(f"Reminder task for {member_id} failed: {result!r}")
                result = DispatchResult(member_id, False, repr(result))
            out.append(result)
        return out


class CheckInSweep:
    """One pass over every standup, reminding members who have not answered."""

    def __init__(self, store: StandupStore, dispatcher: ReminderDispatcher):
        self.store = store
        self.dispatcher = dispatcher

    async def run(self, label: str = "check-in") -> dict[str, list[DispatchResult]]:
        log.info(f"{label} - sweep start")
        try:
            standup_ids = self.store.standup_ids()
        except Exception as e:
            log.error(f"{label} - could not list standups: {e}")
            return {}

        results = await asyncio.gather(
            *(self._sweep_one(sid) for sid in standup_ids)
        )
        by_standup = dict(zip(standup_ids, results))

        sent = sum(1 for rs in results for r in rs if r.ok)
        failed = sum(1 for rs in results for r in rs if not r.ok)
        log.info(
            f"{label} - sweep done: {len(standup_ids)} standup(s), "
            f"{sent} reminder(s) sent, {failed} failed"
        )
        return by_standup

    async def _sweep_one(self, standup_id: str) -> list[DispatchResult]:
        try:
            record = self.store.find_by_id(standup_id)
        except Exception as e:
            log.error(f"Could not load standup {standup_id}: {e}")
            return []
        if record is None:
            return []

        missing = missing_members(record.members, record.responses)
        if not missing:
            return []
        log.info(f"Standup {standup_id}: reminding {len(missing)} member(s)")
        return await self.dispatcher.notify_all(missing)


class StandupSummary:
    """
    End-of-day report posted to each standup channel.

    After posting, the reported responses are removed one key at a time so a
    reply saved while the report was being sent survives until the next run.
    """

    def __init__(self, store: StandupStore, client: discord.Client):
        self.store = store
        self.client = client

    async def run(self, label: str = "summary") -> dict[str, bool]:
        log.info(f"{label} - summary start")
        try:
            standup_ids = self.store.standup_ids()
        except Exception as e:
            log.error(f"{label} - could not list standups: {e}")
            return {}

        results = await asyncio.gather(*(self._post_one(sid) for sid in standup_ids))
        return dict(zip(standup_ids, results))

    async def _post_one(self, standup_id: str) -> bool:
        try:
            record = self.store.find_by_id(standup_id)
        except Exception as e:
            log.error(f"Could not load standup {standup_id}: {e}")
            return False
        if record is None:
            return False
        return await self.post(record)

    async def _get_channel(self, channel_id: str):
        channel = self.client.get_channel(int(channel_id))
        if channel is None:
            channel = await self.client.fetch_channel(int(channel_id))
        return channel

    async def post(self, record: StandupRecord) -> bool:
        missing = missing_members(record.members, record.responses)
        reported = [m for m in dict.fromkeys(record.members) if m in record.responses]

        try:
            channel = await self._get_channel(record.channel_id)
            for embed in summary_embeds(record, missing, reported):
                await channel.send(embed=embed)
        except discord.Forbidden as e:
            log.warning(f"No permission to post summary for {record.id}: {e}")
            return False
        except Exception as e:
            log.error(f"Could not post summary for {record.id}: {e}")
            return False

        try:
            for member_id in reported:
                self.store.delete_response(record.id, member_id)
        except Exception as e:
            log.error(f"Could not clear responses for {record.id}: {e}")
            return False

        log.info(f"Standup {record.id}: summary posted, {len(reported)} response(s) cleared")
        return True

"""Guild join/leave handling: provision the standup channel and record."""

import logging
from typing import Optional

import discord

from embeds import intro_embed
from store import StandupRecord, StandupStore

log = logging.getLogger("standup-bot.lifecycle")


class TenantLifecycle:
    def __init__(
        self,
        store: StandupStore,
        channel_name: str,
        channel_topic: str,
        prefix: str,
    ):
        self.store = store
        self.channel_name = channel_name
        self.channel_topic = channel_topic
        self.prefix = prefix

    async def on_join(self, guild: discord.Guild) -> Optional[StandupRecord]:
        """
        Create the standup channel, a fresh record and post the intro.

        No rollback: if the record cannot be saved the channel stays, and the
        intro is still posted so admins see the bot arrived.
        """
        try:
            channel = await guild.create_text_channel(
                self.channel_name, topic=self.channel_topic
            )
        except Exception as e:
            log.error(f"Could not create #{self.channel_name} in {guild.id}: {e}")
            return None

        record = StandupRecord(id=str(guild.id), channel_id=str(channel.id))
        try:
            self.store.save(record)
            log.info(f"Howdy! Standup created for guild {guild.id}")
        except Exception as e:
            log.error(f"Could not save standup for guild {guild.id}: {e}")
            record = None

        try:
            await channel.send(embed=intro_embed(self.prefix))
        except Exception as e:
            log.error(f"Could not post intro in guild {guild.id}: {e}")

        return record

    def on_leave(self, guild_id) -> bool:
        try:
            deleted = self.store.delete(str(guild_id))
        except Exception as e:
            log.error(f"Could not delete standup for guild {guild_id}: {e}")
            return False
        if deleted:
            log.info(f"Peace! Standup deleted for guild {guild_id}")
        else:
            log.info(f"No standup stored for guild {guild_id}, nothing to delete")
        return deleted

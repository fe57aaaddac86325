"""Roster and response commands."""

import logging
from typing import Optional

import discord
from discord.ext import commands

from embeds import help_text, mention, roster_embed, truncate_text
from store import StandupRecord, StandupStore

log = logging.getLogger("standup-bot.commands")

RESPONSE_LIMIT = 1000


class StandupCommands(commands.Cog):
    def __init__(self, store: StandupStore, prefix: str):
        self.store = store
        self.prefix = prefix

    def _guild_record(self, guild: discord.Guild) -> Optional[StandupRecord]:
        return self.store.find_by_id(str(guild.id))

    async def _no_standup(self, ctx: commands.Context):
        await ctx.send(
            "There is no standup for this server yet. "
            "Re-invite the bot to provision one."
        )

    def _pick_standup(
        self, member_id: str, guild_id: Optional[str]
    ) -> tuple[Optional[StandupRecord], Optional[str]]:
        """Resolve which standup a DM command refers to, or explain why not."""
        records = self.store.find_by_member(member_id)
        if guild_id is not None:
            for record in records:
                if record.id == guild_id:
                    return record, None
            return None, f"You are not a member of the standup for server `{guild_id}`."
        if not records:
            return None, "You are not a member of any standup."
        if len(records) > 1:
            ids = ", ".join(f"`{r.id}`" for r in records)
            return None, (
                f"You are in several standups ({ids}). "
                f"Put the server id first, e.g. `{self.prefix}reply {records[0].id} ...`"
            )
        return records[0], None

    @commands.command(name="help")
    async def cmd_help(self, ctx: commands.Context):
        """!help: Show available commands."""
        await ctx.send(help_text(self.prefix))

    @commands.command(name="am")
    @commands.guild_only()
    async def cmd_add_members(self, ctx: commands.Context):
        """!am @user ...: Add members to the standup."""
        record = self._guild_record(ctx.guild)
        if record is None:
            await self._no_standup(ctx)
            return

        targets = [u for u in ctx.message.mentions if not u.bot]
        if not targets:
            await ctx.send(f"Usage: `{self.prefix}am @user ...`")
            return

        added, already = [], []
        for user in targets:
            member_id = str(user.id)
            if member_id in record.members:
                already.append(member_id)
            else:
                record.members.append(member_id)
                added.append(member_id)

        if added:
            self.store.save(record)
            log.info(f"Guild {record.id}: added {added}")

        lines = []
        if added:
            lines.append("Added: " + " ".join(mention(m) for m in added))
        if already:
            lines.append("Already in the standup: " + " ".join(mention(m) for m in already))
        await ctx.send("\n".join(lines))

    @commands.command(name="rm")
    @commands.guild_only()
    async def cmd_remove_members(self, ctx: commands.Context):
        """!rm @user ...: Remove members (and their answers) from the standup."""
        record = self._guild_record(ctx.guild)
        if record is None:
            await self._no_standup(ctx)
            return

        targets = ctx.message.mentions
        if not targets:
            await ctx.send(f"Usage: `{self.prefix}rm @user ...`")
            return

        removed, unknown = [], []
        for user in targets:
            member_id = str(user.id)
            if member_id in record.members:
                record.members = [m for m in record.members if m != member_id]
                record.responses.pop(member_id, None)
                removed.append(member_id)
            else:
                unknown.append(member_id)

        if removed:
            self.store.save(record)
            log.info(f"Guild {record.id}: removed {removed}")

        lines = []
        if removed:
            lines.append("Removed: " + " ".join(mention(m) for m in removed))
        if unknown:
            lines.append("Not in the standup: " + " ".join(mention(m) for m in unknown))
        await ctx.send("\n".join(lines))

    @commands.command(name="show")
    @commands.guild_only()
    async def cmd_show(self, ctx: commands.Context):
        """!show: Show the roster and who has answered."""
        record = self._guild_record(ctx.guild)
        if record is None:
            await self._no_standup(ctx)
            return
        await ctx.send(embed=roster_embed(record))

    @commands.command(name="reset")
    @commands.guild_only()
    @commands.has_guild_permissions(manage_guild=True)
    async def cmd_reset(self, ctx: commands.Context):
        """!reset: Clear every saved answer for this server."""
        record = self._guild_record(ctx.guild)
        if record is None:
            await self._no_standup(ctx)
            return
        count = len(record.responses)
        record.responses = {}
        self.store.save(record)
        log.info(f"Guild {record.id}: responses reset by {ctx.author.id}")
        await ctx.send(f"Cleared {count} response(s).")

    @commands.command(name="reply")
    @commands.dm_only()
    async def cmd_reply(self, ctx: commands.Context, *, text: str = ""):
        """!reply [server_id] <message>: Save your standup answer."""
        member_id = str(ctx.author.id)
        guild_id = None
        first, _, rest = text.strip().partition(" ")
        # a leading number is a server id only if it names one of the author's standups
        if rest.strip() and first in {r.id for r in self.store.find_by_member(member_id)}:
            guild_id, text = first, rest
        text = text.strip()
        if not text:
            await ctx.send(f"Usage: `{self.prefix}reply [server_id] <message>`")
            return

        record, problem = self._pick_standup(member_id, guild_id)
        if record is None:
            await ctx.send(problem)
            return

        self.store.set_response(record.id, member_id, truncate_text(text, RESPONSE_LIMIT))
        log.info(f"Guild {record.id}: response saved for {member_id}")
        await ctx.send("✅ Response saved. Thanks!")

    @commands.command(name="view")
    @commands.dm_only()
    async def cmd_view(self, ctx: commands.Context, guild_id: Optional[str] = None):
        """!view [server_id]: Show your saved answer."""
        member_id = str(ctx.author.id)
        record, problem = self._pick_standup(member_id, guild_id)
        if record is None:
            await ctx.send(problem)
            return
        response = record.responses.get(member_id)
        if response is None:
            await ctx.send("You have not answered yet today.")
        else:
            await ctx.send(f"Your answer:\n{response}")

    async def cog_command_error(self, ctx: commands.Context, error: Exception):
        if isinstance(error, commands.NoPrivateMessage):
            await ctx.send("Hmm, that command cannot be used in a dm!")
        elif isinstance(error, commands.PrivateMessageOnly):
            await ctx.send(
                f"Send that to me in a DM, e.g. `{self.prefix}{ctx.command.name} ...`"
            )
        elif isinstance(error, commands.MissingPermissions):
            await ctx.send("You need the Manage Server permission for that.")
        else:
            log.error(f"Command {ctx.command} failed: {error}")
            await ctx.send("Error 8008135: Something went wrong!")

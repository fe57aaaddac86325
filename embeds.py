"""Message templates and embeds posted by the bot."""

from datetime import datetime, timezone

import discord

from store import StandupRecord

STANDUP_COLOR = discord.Color(0xFF9900)
FIELD_VALUE_LIMIT = 1024
MAX_FIELDS = 25
DESCRIPTION_LIMIT = 2048
EMBED_CHAR_BUDGET = 5500  # Discord rejects embeds over 6000 chars


def truncate_text(text: str, max_chars: int) -> str:
    """Truncate text to max_chars, keeping whole lines where possible."""
    if len(text) <= max_chars:
        return text
    marker = "\n... (truncated)"
    truncated = text[: max_chars - len(marker)]
    last_newline = truncated.rfind("\n")
    if last_newline > max_chars // 2:
        truncated = truncated[:last_newline]
    return truncated + marker


def mention(member_id: str) -> str:
    return f"<@{member_id}>"


def reminder_text(member_id: str) -> str:
    return (
        f"Ei {mention(member_id)}! Você está pronto para ter nossa reunião "
        f"do Daily Engenharia + SRE agora?"
    )


def intro_embed(prefix: str) -> discord.Embed:
    embed = discord.Embed(
        title="Daily Standup",
        description=(
            "Este é o canal de texto recém-gerado usado para reuniões diárias "
            "do time de Engenharia + SRE!"
        ),
        color=STANDUP_COLOR,
        timestamp=datetime.now(timezone.utc),
    )
    embed.add_field(
        name="Introdução",
        value=(
            "Oi! Eu sou um BOT desenvolvido pelo Time de Engenharia e "
            "facilitarei suas reuniões diárias a partir de agora.\n"
            f"Para ver todos os comandos disponíveis, digite `{prefix}help`."
        ),
        inline=False,
    )
    embed.add_field(
        name="Como eu funciono?",
        value=(
            "Todos os dias úteis às `09:00` e `14:00`, eu vou te avisar por DM "
            "caso ainda não tenha preenchido seu relatório de atividades. "
            f"Responda com `{prefix}reply <mensagem>` na DM e eu guardo a resposta."
        ),
        inline=False,
    )
    embed.add_field(
        name="Começando",
        value=(
            "*Atualmente*, não há membros no standup! "
            f"Para adicionar um membro, tente `{prefix}am <User>`."
        ),
        inline=False,
    )
    embed.set_footer(text="standup-bot")
    return embed


def roster_embed(record: StandupRecord) -> discord.Embed:
    embed = discord.Embed(
        title="Daily Standup: membros",
        color=STANDUP_COLOR,
        timestamp=datetime.now(timezone.utc),
    )
    if not record.members:
        embed.description = "Nenhum membro no standup."
        return embed
    lines = []
    for member_id in record.members:
        status = "✅" if member_id in record.responses else "⏳"
        lines.append(f"{status} {mention(member_id)}")
    embed.description = truncate_text("\n".join(lines), 4096)
    return embed


def summary_embeds(
    record: StandupRecord, missing: list[str], reported: list[str]
) -> list[discord.Embed]:
    """
    End-of-day report: who is missing, then one field per reported answer.

    Answers are spread over as many embeds as Discord's per-embed limits
    require; only the first one carries the missing list.
    """
    if missing:
        description = "Hooligans: " + " ".join(mention(m) for m in missing)
    else:
        description = "Hooligans: :man_shrugging:"

    def new_embed(title: str, text: str = "") -> discord.Embed:
        embed = discord.Embed(
            title=title,
            description=text or None,
            color=STANDUP_COLOR,
            timestamp=datetime.now(timezone.utc),
        )
        embed.set_footer(text="standup-bot")
        return embed

    embeds = [new_embed("Daily Standup", truncate_text(description, DESCRIPTION_LIMIT))]
    for member_id in reported:
        value = truncate_text(
            f"{mention(member_id)}\n{record.responses[member_id]}", FIELD_VALUE_LIMIT
        )
        current = embeds[-1]
        if len(current.fields) >= MAX_FIELDS or len(current) + len(value) + 1 > EMBED_CHAR_BUDGET:
            current = new_embed("Daily Standup (cont.)")
            embeds.append(current)
        current.add_field(name="-", value=value, inline=False)
    return embeds


def help_text(prefix: str) -> str:
    return f"""**📋 Standup Bot Commands**

`{prefix}am @user ...` Add members to this server's standup
`{prefix}rm @user ...` Remove members from the standup
`{prefix}show` Show the roster and who has answered today
`{prefix}reset` Clear every response (Manage Server only)
`{prefix}reply [server_id] <message>` Save your standup answer (DM only)
`{prefix}view [server_id]` Show your saved answer (DM only)
`{prefix}help` Show this message

Reminders go out by DM on weekdays at 12:00 and 17:00 UTC (09:00 and 14:00 UTC-3) to members who have not answered yet.
"""

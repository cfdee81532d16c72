from __future__ import annotations

import discord

from ..domain.moderation.events import MessageEvent, MemberJoinEvent
from ..infrastructure.logging.structured_logging import (
    info as log_info,
    warning as log_warning,
    debug as log_debug,
)


def to_ms(dt) -> int:
    return int(dt.timestamp() * 1000)


def message_event_from(bot, message: discord.Message) -> MessageEvent:
    author = message.author
    is_mod = isinstance(author, discord.Member) and bot.is_moderator(author)
    return MessageEvent(
        community_id=message.guild.id,
        actor_id=author.id,
        channel_id=message.channel.id,
        message_id=message.id,
        text=message.content or "",
        actor_is_moderator=is_mod,
        timestamp=to_ms(message.created_at),
    )


def member_join_event_from(member: discord.Member) -> MemberJoinEvent:
    joined = member.joined_at or discord.utils.utcnow()
    return MemberJoinEvent(
        community_id=member.guild.id,
        actor_id=member.id,
        account_created_at=to_ms(member.created_at),
        current_role_ids=tuple(r.id for r in getattr(member, 'roles', [])),
        timestamp=to_ms(joined),
    )


def register_events(bot):
    @bot.event
    async def on_ready():
        log_info("lifecycle.ready", bot_user=str(bot.user), bot_id=getattr(bot.user, 'id', None), guild_count=len(bot.guilds))

    @bot.event
    async def on_disconnect():
        log_warning("lifecycle.disconnected")

    @bot.event
    async def on_resumed():
        log_info("lifecycle.resumed")

    @bot.event
    async def on_message(message: discord.Message):
        if message.author.bot or message.guild is None:
            return
        outcome = await bot.engine.handle_message(message_event_from(bot, message))
        if outcome.flagged:
            log_debug("message.flagged", message_id=message.id, verdicts=outcome.verdicts)

    @bot.event
    async def on_member_join(member: discord.Member):
        if member.bot:
            return
        await bot.engine.handle_member_join(member_join_event_from(member))

    return bot


__all__ = ["register_events", "message_event_from", "member_join_event_from", "to_ms"]

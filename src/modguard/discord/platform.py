"""discord.py realization of the engine's abstract outputs."""
from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Iterable, Optional
import discord

from ..domain.moderation.audit import SEVERITY_HIGH
from ..domain.moderation.errors import TransientActionError
from ..utils.channel_utils import resolve_channel, resolve_member, moderator_mention
from ..utils.decorators import platform_action
from ..utils.format_utils import truncate

COLOR_DANGER = 0xED4245
COLOR_WARNING = 0xFEE75C


def build_audit_embed(payload: Dict[str, Any]) -> discord.Embed:
    color = COLOR_DANGER if payload.get("severity") == SEVERITY_HIGH else COLOR_WARNING
    embed = discord.Embed(
        title=payload.get("title") or "Moderation",
        description=payload.get("description") or None,
        color=color,
        timestamp=discord.utils.utcnow(),
    )
    for f in payload.get("fields") or []:
        embed.add_field(name=f["name"], value=truncate(f["value"], 1024), inline=f.get("inline", True))
    if payload.get("footer"):
        embed.set_footer(text=payload["footer"])
    return embed


class DiscordPlatform:
    def __init__(self, client: discord.Client):
        self.client = client

    def _guild(self, community_id: int, action: str) -> discord.Guild:
        guild = self.client.get_guild(community_id)
        if guild is None:
            raise TransientActionError(action, "guild_unavailable")
        return guild

    @platform_action("delete_message")
    async def delete_message(self, channel_id: int, message_id: int) -> None:
        channel = await resolve_channel(self.client, channel_id)
        await channel.get_partial_message(message_id).delete()

    @platform_action("transient_notice")
    async def post_transient_notice(self, channel_id: int, text: str, auto_delete_after_ms: int) -> None:
        channel = await resolve_channel(self.client, channel_id)
        embed = discord.Embed(description=text, color=COLOR_WARNING)
        await channel.send(embed=embed, delete_after=auto_delete_after_ms / 1000)

    @platform_action("timeout")
    async def apply_timeout(self, community_id: int, actor_id: int, duration_ms: int, reason: str) -> None:
        guild = self._guild(community_id, "timeout")
        bot_member = getattr(guild, 'me', None)
        if actor_id in {getattr(guild, 'owner_id', None), getattr(bot_member, 'id', None)}:
            raise TransientActionError("timeout", "protected_member")
        member = await resolve_member(guild, actor_id)
        await member.timeout(timedelta(milliseconds=duration_ms), reason=reason)

    @platform_action("remove_roles")
    async def remove_roles(self, community_id: int, actor_id: int, role_ids: Iterable[int]) -> None:
        guild = self._guild(community_id, "remove_roles")
        member = await resolve_member(guild, actor_id)
        roles = [r for r in (guild.get_role(rid) for rid in role_ids) if r is not None]
        if roles:
            await member.remove_roles(*roles, reason="Entry gate: pending verification")

    @platform_action("audit")
    async def emit_audit_record(self, community_id: int, audit_channel_id: Optional[int], payload: Dict[str, Any]) -> None:
        if audit_channel_id is None:
            raise TransientActionError("audit", "no_audit_channel")
        guild = self._guild(community_id, "audit")
        channel = guild.get_channel(audit_channel_id)
        if channel is None:
            raise TransientActionError("audit", "audit_channel_missing")
        content = moderator_mention(guild) if payload.get("mention_moderators") else None
        await channel.send(content=content, embed=build_audit_embed(payload))


__all__ = ["DiscordPlatform", "build_audit_embed"]

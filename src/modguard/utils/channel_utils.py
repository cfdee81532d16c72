"""Channel / guild related helpers."""
from __future__ import annotations
import discord


async def resolve_channel(client: discord.Client, channel_id: int):
    channel = client.get_channel(channel_id)
    if channel is None:
        channel = await client.fetch_channel(channel_id)
    return channel


async def resolve_member(guild: discord.Guild, member_id: int) -> discord.Member:
    member = guild.get_member(member_id)
    if member is None:
        member = await guild.fetch_member(member_id)
    return member


def moderator_mention(guild: discord.Guild) -> str:
    """Mention for the first role whose name contains 'mod', else ``@here``."""
    for role in getattr(guild, 'roles', []):
        if 'mod' in role.name.lower():
            return role.mention
    return "@here"

__all__ = ["resolve_channel", "resolve_member", "moderator_mention"]

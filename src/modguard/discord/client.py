"""ModerationBot Discord client wiring the engine to the gateway."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional
import discord

from ..config.settings import EngineConfig
from ..domain.policy.provider import build_policy_provider
from ..infrastructure.persistence.db_core import ModerationDB
from ..services.moderation_pipeline import ModerationEngine
from .platform import DiscordPlatform

logger = logging.getLogger("modguard")

SWEEP_INTERVAL_SECONDS = 300


def build_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.message_content = True
    intents.members = True
    return intents


class ModerationBot(discord.Client):
    """Discord client wiring policy, engine, platform adapter and DB."""
    def __init__(self, config: EngineConfig, policy_provider=None, db: Optional[ModerationDB] = None):
        super().__init__(intents=build_intents())
        self.config = config
        self.policy_provider = policy_provider or build_policy_provider(
            config.policy_file, config.policy_cache_ttl_seconds,
        )
        self.db = db if db is not None else ModerationDB(config.sqlite_path)
        self.platform = DiscordPlatform(self)
        self.engine = ModerationEngine.build(
            self.policy_provider,
            self.platform,
            db=self.db,
            workers=config.action_workers,
            queue_size=config.action_queue_size,
        )
        self.moderator_role_names = config.exempt_role_names
        self._sweeper: Optional[asyncio.Task] = None

    def is_moderator(self, member: discord.Member | None) -> bool:
        if member is None:
            return False
        try:
            guild_owner_id = getattr(member.guild, 'owner_id', None)
            if guild_owner_id and member.id == guild_owner_id:
                return True
        except AttributeError:
            pass
        names = set(self.moderator_role_names)
        guild = getattr(member, 'guild', None)
        if guild is not None:
            policy = self.engine.policy_for(guild.id)
            names |= {n.lower() for n in policy.exempt_role_names}
        member_role_names = {role.name.lower() for role in getattr(member, 'roles', [])}
        if not names.isdisjoint(member_role_names):
            return True
        perms = getattr(member, 'guild_permissions', None)
        return bool(getattr(perms, 'manage_messages', False) or getattr(perms, 'administrator', False))

    async def setup_hook(self) -> None:
        self._sweeper = asyncio.create_task(self._sweep_loop())

    async def _sweep_loop(self):
        while True:
            await asyncio.sleep(SWEEP_INTERVAL_SECONDS)
            self.engine.sweep(int(time.time() * 1000))

    async def close(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
        await self.engine.close()
        self.db.close()
        await super().close()


def create_bot(config: EngineConfig, **kwargs) -> ModerationBot:
    from .events import register_events

    bot = ModerationBot(config, **kwargs)
    register_events(bot)
    return bot


__all__ = ["ModerationBot", "create_bot", "build_intents"]

"""Engine settings using Pydantic BaseSettings for validation & env loading.

Centralizes all environment parsing and adds validation rules:
 - Worker / queue sizes coerced to at least 1.
 - Cache TTL coerced to a non-negative int (0 disables caching).
 - LOG_LEVEL normalized to upper case and validated.
 - DISCORD_TOKEN is only required when the bot is actually started
   (see ``require_token``), so dry runs work without credentials.
"""
from __future__ import annotations

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class EngineConfig(BaseSettings):
	# Discord
	discord_token: Optional[str] = Field(None, env="DISCORD_TOKEN")

	# Policy
	policy_file: str = Field("policies/moderation.yaml", env="POLICY_FILE")
	policy_cache_ttl_seconds: int = Field(30, env="POLICY_CACHE_TTL_SECONDS")
	mod_exempt_role_names: str = Field("mod,admin", env="MOD_EXEMPT_ROLE_NAMES")

	# Persistence
	sqlite_path: str = Field("storage/modguard.db", env="SQLITE_PATH")

	# Side-effect execution
	action_workers: int = Field(4, env="ACTION_WORKERS")
	action_queue_size: int = Field(1000, env="ACTION_QUEUE_SIZE")

	# Misc
	log_level: str = Field("INFO", env="LOG_LEVEL")
	log_json: bool = Field(False, env="LOG_JSON")

	class Config:
		case_sensitive = False
		env_file = ".env"
		env_file_encoding = "utf-8"

	@field_validator("log_level", mode="before")
	def _normalize_level(cls, v: str):  # noqa: D401
		level = (v or "INFO").upper()
		if level not in _ALLOWED_LOG_LEVELS:
			raise ValueError(f"LOG_LEVEL must be one of {sorted(_ALLOWED_LOG_LEVELS)}, got '{v}'")
		return level

	@field_validator("action_workers", "action_queue_size", mode="before")
	def _coerce_at_least_one(cls, v):
		try:
			iv = int(v)
		except (TypeError, ValueError):
			iv = 1
		return max(iv, 1)

	@field_validator("policy_cache_ttl_seconds", mode="before")
	def _coerce_non_negative(cls, v):
		try:
			iv = int(v)
		except (TypeError, ValueError):
			iv = 0
		return max(iv, 0)

	@property
	def exempt_role_names(self) -> set[str]:
		return {r.strip().lower() for r in (self.mod_exempt_role_names or "").split(",") if r.strip()}

	def require_token(self) -> str:
		if not self.discord_token:
			raise ValueError("DISCORD_TOKEN is required (empty or missing)")
		return self.discord_token


def load_config(**overrides) -> EngineConfig:
	return EngineConfig(**overrides)  # type: ignore[call-arg]


__all__ = ["EngineConfig", "load_config"]

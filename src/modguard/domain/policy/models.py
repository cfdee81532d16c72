"""Policy domain models"""
from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

DAY_MS = 24 * 60 * 60 * 1000


class FeatureToggles(BaseModel):
    """Per-community switches. ``enabled`` and ``auto_mod`` gate the message checks."""
    enabled: bool = True
    auto_mod: bool = False
    anti_spam: bool = False
    anti_raid: bool = True
    bad_words: bool = True
    anti_links: bool = False
    anti_invites: bool = False
    entry_gate: bool = False
    audit_bare_links: bool = False


class Thresholds(BaseModel):
    message_burst_count: int = 5
    message_burst_window_ms: int = 5000
    duplicate_repeat_count: int = 3
    duplicate_history_size: int = 10
    join_burst_count: int = 5
    join_burst_window_ms: int = 10_000
    new_account_age_threshold_ms: int = 7 * DAY_MS
    warnings_before_mute: int = 3
    mute_cooldown_ms: int = 60_000
    mute_duration_ms: int = 5 * 60 * 1000
    notice_delete_after_ms: int = 3000
    burst_notice_delete_after_ms: int = 5000
    raid_recent_joins_listed: int = 5

    @field_validator("*")
    def _positive(cls, v: int):  # type: ignore[override]
        if v <= 0:
            raise ValueError("thresholds must be positive integers")
        return v


class ModerationPolicy(BaseModel):
    community_id: Optional[int] = None
    features: FeatureToggles = Field(default_factory=FeatureToggles)
    thresholds: Thresholds = Field(default_factory=Thresholds)
    filtered_terms: List[str] = Field(default_factory=list)
    audit_channel_id: Optional[int] = None
    exempt_role_names: List[str] = Field(default_factory=list)
    base_role_id: Optional[int] = None

    @field_validator("filtered_terms")
    def _clean_terms(cls, v: List[str]):  # type: ignore[override]
        return [t.strip() for t in v if t and t.strip()]

    # Gating helpers; every message check also requires enabled + auto_mod.
    @property
    def automod_active(self) -> bool:
        return self.features.enabled and self.features.auto_mod

    @property
    def spam_active(self) -> bool:
        return self.automod_active and self.features.anti_spam

    @property
    def terms_active(self) -> bool:
        return self.automod_active and self.features.bad_words and bool(self.filtered_terms)

    @property
    def links_active(self) -> bool:
        return self.automod_active and self.features.anti_links

    @property
    def invites_active(self) -> bool:
        return self.automod_active and self.features.anti_invites

    @property
    def raid_active(self) -> bool:
        return self.features.enabled and self.features.anti_raid

    @classmethod
    def disabled(cls, community_id: Optional[int] = None) -> "ModerationPolicy":
        """Policy with every feature off, used when the provider fails."""
        return cls(
            community_id=community_id,
            features=FeatureToggles(enabled=False, auto_mod=False, anti_raid=False, bad_words=False),
        )


class PolicyBook(BaseModel):
    """All community policies from one YAML document."""
    defaults: dict = Field(default_factory=dict)
    communities: dict[int, dict] = Field(default_factory=dict)

    def policy_for(self, community_id: int) -> ModerationPolicy:
        merged = _deep_merge(self.defaults, self.communities.get(community_id, {}))
        merged["community_id"] = community_id
        return ModerationPolicy(**merged)


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = value
    return out


__all__ = [
    'FeatureToggles', 'Thresholds', 'ModerationPolicy', 'PolicyBook', 'DAY_MS'
]

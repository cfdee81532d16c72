"""Policy book loading, merging, providers and formatting."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from modguard.domain.policy.formatter import format_book, format_policy
from modguard.domain.policy.loader import load_policy_book, parse_policy_book
from modguard.domain.policy.models import ModerationPolicy, PolicyBook, Thresholds
from modguard.domain.policy.provider import (
    CachedPolicyProvider,
    StaticPolicyProvider,
    YamlPolicyProvider,
    build_policy_provider,
)

REPO_POLICY = Path(__file__).resolve().parent.parent / "policies" / "moderation.yaml"


def write(path, text, mtime):
    path.write_text(text, encoding="utf-8")
    os.utime(path, (mtime, mtime))


class TestModels:

    def test_defaults(self):
        policy = ModerationPolicy(community_id=1)
        t = policy.thresholds
        assert (t.message_burst_count, t.message_burst_window_ms) == (5, 5000)
        assert (t.join_burst_count, t.join_burst_window_ms) == (5, 10_000)
        assert (t.warnings_before_mute, t.mute_cooldown_ms, t.mute_duration_ms) == (3, 60_000, 300_000)
        assert policy.automod_active is False
        assert policy.raid_active is True

    def test_thresholds_must_be_positive(self):
        with pytest.raises(ValidationError):
            Thresholds(message_burst_count=0)

    def test_filtered_terms_are_stripped(self):
        policy = ModerationPolicy(filtered_terms=[" spoiler ", "", "  "])
        assert policy.filtered_terms == ["spoiler"]

    def test_disabled_turns_everything_off(self):
        policy = ModerationPolicy.disabled(5)
        assert policy.community_id == 5
        assert not any([
            policy.automod_active, policy.spam_active, policy.terms_active,
            policy.links_active, policy.invites_active, policy.raid_active,
        ])

    def test_master_switch_gates_raid(self):
        policy = ModerationPolicy(features={"enabled": False, "anti_raid": True})
        assert policy.raid_active is False


class TestPolicyBook:

    def test_community_overrides_merge_onto_defaults(self):
        book = PolicyBook(
            defaults={"features": {"auto_mod": True, "anti_spam": True}, "thresholds": {"message_burst_count": 7}},
            communities={42: {"features": {"anti_spam": False}, "thresholds": {"mute_duration_ms": 1000}}},
        )
        policy = book.policy_for(42)
        assert policy.community_id == 42
        assert policy.features.auto_mod is True
        assert policy.features.anti_spam is False
        assert policy.thresholds.message_burst_count == 7
        assert policy.thresholds.mute_duration_ms == 1000

    def test_unknown_community_gets_defaults(self):
        book = PolicyBook(defaults={"features": {"auto_mod": True}})
        assert book.policy_for(7).features.auto_mod is True

    def test_invalid_community_fails_at_parse(self):
        with pytest.raises(ValueError, match="Invalid moderation policy"):
            parse_policy_book({"communities": {1: {"thresholds": {"join_burst_count": -1}}}})

    def test_repo_policy_file_loads(self):
        book = load_policy_book(str(REPO_POLICY))
        policy = book.policy_for(123456789012345678)
        assert policy.audit_channel_id == 234567890123456789
        assert policy.features.anti_links is True
        assert policy.spam_active is True
        assert "badword" in policy.filtered_terms

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_policy_book(str(tmp_path / "nope.yaml"))

    def test_empty_file_is_empty_book(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_policy_book(str(path)).communities == {}


class TestProviders:

    def test_static_provider_default(self):
        default = ModerationPolicy(features={"auto_mod": True})
        provider = StaticPolicyProvider(default=default)
        policy = provider.get_policy(9)
        assert policy.community_id == 9
        assert policy.automod_active is True

    def test_static_provider_without_default(self):
        provider = StaticPolicyProvider()
        provider.set_policy(1, ModerationPolicy(community_id=1, audit_channel_id=5))
        assert provider.get_policy(1).audit_channel_id == 5
        assert provider.get_policy(2).audit_channel_id is None

    def test_yaml_provider_reloads_on_change(self, tmp_path):
        path = tmp_path / "policy.yaml"
        write(path, "defaults:\n  audit_channel_id: 1\n", 1_000_000)
        provider = YamlPolicyProvider(str(path))
        assert provider.get_policy(5).audit_channel_id == 1

        write(path, "defaults:\n  audit_channel_id: 2\n", 1_000_100)
        assert provider.get_policy(5).audit_channel_id == 2

    def test_cached_provider_respects_ttl(self):
        calls = []

        class Inner:
            def get_policy(self, community_id):
                calls.append(community_id)
                return ModerationPolicy(community_id=community_id)

        now = [0.0]
        provider = CachedPolicyProvider(Inner(), ttl_seconds=30, clock=lambda: now[0])
        provider.get_policy(1)
        now[0] = 29.0
        provider.get_policy(1)
        assert calls == [1]
        now[0] = 30.0
        provider.get_policy(1)
        assert calls == [1, 1]

    def test_build_policy_provider(self, tmp_path):
        path = tmp_path / "p.yaml"
        write(path, "{}\n", 1_000_000)
        assert isinstance(build_policy_provider(str(path), 30), CachedPolicyProvider)
        assert isinstance(build_policy_provider(str(path), 0), YamlPolicyProvider)


class TestFormatter:

    def test_format_policy(self):
        text = format_policy(ModerationPolicy(community_id=1), detail=True)
        assert "burst: 5 msgs / 5s" in text
        assert "raid: 5 joins / 10s" in text
        assert "mute: warning #3 -> 5m (cooldown 1m)" in text
        assert "new account: < 7d" in text

    def test_format_book(self):
        assert format_book(PolicyBook()) == "(no community overrides)"
        book = PolicyBook(communities={2: {}, 1: {}})
        text = format_book(book)
        assert text.index("community: 1") < text.index("community: 2")

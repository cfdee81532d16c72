"""
Moderation Engine Tests
=======================

End-to-end message and join handling through ``ModerationEngine`` with a
recording platform: content filter enforcement, audit routing, policy
failures and error containment.
"""

import pytest

from modguard.domain.moderation.window import SlidingWindowTracker
from modguard.domain.policy.provider import StaticPolicyProvider
from modguard.infrastructure.persistence.db_core import ModerationDB
from modguard.services.moderation_pipeline import ModerationEngine

from conftest import ACTOR, AUDIT_CHANNEL, CHANNEL, COMMUNITY, RecordingPlatform, make_policy, settle

FILTERS_ON = {"anti_links": True, "anti_invites": True, "bad_words": True}


async def say(engine, text, ts=0, mid=1, moderator=False):
    return await engine.on_message(COMMUNITY, ACTOR, CHANNEL, text, moderator, ts, message_id=mid)


class TestContentEnforcement:

    @pytest.mark.asyncio
    async def test_link_is_deleted_with_notice_and_no_audit(self, make_engine, platform):
        engine = make_engine(make_policy(features={"anti_links": True}))
        outcome = await say(engine, "look at http://example.com")
        await settle(engine)

        assert outcome.verdicts == ["bare_link"]
        assert platform.of("delete_message") == [{"channel_id": CHANNEL, "message_id": 1}]
        (notice,) = platform.of("post_transient_notice")
        assert "links are not allowed" in notice["text"]
        assert notice["auto_delete_after_ms"] == 3000
        assert platform.of("emit_audit_record") == []

    @pytest.mark.asyncio
    async def test_filtered_term_is_audited(self, make_engine, platform):
        engine = make_engine(make_policy(filtered_terms=["badword"]))
        outcome = await say(engine, "what a BADWORD")
        await settle(engine)

        assert outcome.verdicts == ["filtered_term"]
        (audit,) = platform.of("emit_audit_record")
        assert audit["audit_channel_id"] == AUDIT_CHANNEL
        payload = audit["payload"]
        assert payload["title"] == "Filtered Term Removed"
        assert payload["fields"][-1]["value"] == "||what a BADWORD||"

    @pytest.mark.asyncio
    async def test_invite_is_audited(self, make_engine, platform):
        engine = make_engine(make_policy(features={"anti_invites": True}))
        outcome = await say(engine, "join discord.gg/abcdef")
        await settle(engine)

        assert outcome.verdicts == ["invite_link"]
        assert platform.of("emit_audit_record")[0]["payload"]["kind"] == "invite_link"

    @pytest.mark.asyncio
    async def test_every_matching_filter_is_enforced(self, make_engine, platform):
        engine = make_engine(make_policy(features=FILTERS_ON, filtered_terms=["badword"]))
        outcome = await say(engine, "badword https://discord.gg/abc")
        await settle(engine)

        assert outcome.verdicts == ["filtered_term", "bare_link", "invite_link"]
        assert len(platform.of("post_transient_notice")) == 3
        assert len(platform.of("emit_audit_record")) == 2

    @pytest.mark.asyncio
    async def test_unknown_message_id_skips_deletion(self, make_engine, platform):
        engine = make_engine(make_policy(features={"anti_links": True}))
        outcome = await engine.on_message(COMMUNITY, ACTOR, CHANNEL, "see http://example.com", False, 0)
        await settle(engine)

        assert outcome.verdicts == ["bare_link"]
        assert platform.of("delete_message") == []
        assert len(platform.of("post_transient_notice")) == 1

    @pytest.mark.asyncio
    async def test_no_audit_channel(self, make_engine, platform):
        engine = make_engine(make_policy(filtered_terms=["badword"], audit_channel_id=None))
        await say(engine, "badword")
        await settle(engine)

        assert len(platform.of("delete_message")) == 1
        assert platform.of("emit_audit_record") == []

    @pytest.mark.asyncio
    async def test_clean_message(self, make_engine, platform):
        engine = make_engine(make_policy(features=FILTERS_ON, filtered_terms=["badword"]))
        outcome = await say(engine, "good morning")
        await settle(engine)

        assert outcome.flagged is False
        assert outcome.skipped is None
        assert platform.calls == []


class TestSkips:

    @pytest.mark.asyncio
    async def test_moderator_is_never_moderated(self, make_engine, platform):
        engine = make_engine(make_policy(features={**FILTERS_ON, "anti_spam": True}, filtered_terms=["badword"]))
        for i in range(10):
            outcome = await say(engine, "badword https://discord.gg/x", ts=i * 10, mid=i, moderator=True)
            assert outcome.skipped == "moderator"
        await settle(engine)

        assert platform.calls == []

    @pytest.mark.asyncio
    async def test_auto_mod_off(self, make_engine, platform):
        engine = make_engine(make_policy(features={**FILTERS_ON, "auto_mod": False}, filtered_terms=["badword"]))
        outcome = await say(engine, "badword")
        await settle(engine)

        assert outcome.skipped == "disabled"
        assert platform.calls == []

    @pytest.mark.asyncio
    async def test_failing_provider_disables_moderation(self, platform):
        class Failing:
            def get_policy(self, community_id):
                raise RuntimeError("backend down")

        engine = ModerationEngine(Failing(), platform)
        outcome = await say(engine, "https://discord.gg/x")
        joins = [await engine.on_member_join(COMMUNITY, 10 + i, 0, (), i) for i in range(6)]
        await settle(engine)

        assert outcome.skipped == "disabled"
        assert outcome.error is None
        assert not any(j.raid or j.new_account for j in joins)
        assert platform.calls == []

    @pytest.mark.asyncio
    async def test_provider_returning_none(self, platform):
        class Empty:
            def get_policy(self, community_id):
                return None

        engine = ModerationEngine(Empty(), platform)
        assert engine.policy_for(COMMUNITY).automod_active is False
        await settle(engine)


class TestErrorContainment:

    @pytest.mark.asyncio
    async def test_platform_failures_do_not_reach_caller(self, make_engine, platform):
        platform.fail["delete_message"] = RuntimeError("gateway closed")
        engine = make_engine(make_policy(features={"anti_links": True}))
        first = await say(engine, "http://a.io", mid=1)
        second = await say(engine, "http://b.io", ts=10, mid=2)
        await settle(engine)

        assert first.error is None and second.error is None
        assert len(platform.of("post_transient_notice")) == 2

    @pytest.mark.asyncio
    async def test_detector_errors_become_outcome_errors(self, make_engine, platform):
        class Exploding(SlidingWindowTracker):
            async def record(self, *args, **kwargs):
                raise RuntimeError("store offline")

        engine = make_engine(make_policy(features={"anti_spam": True}), message_tracker=Exploding("messages"))
        outcome = await say(engine, "hello")
        await settle(engine)

        assert outcome.error == "store offline"

    def test_engine_requires_platform_or_executor(self):
        with pytest.raises(ValueError):
            ModerationEngine(StaticPolicyProvider())


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_sweep_evicts_idle_windows(self, make_engine, platform):
        engine = make_engine(make_policy(features={"anti_spam": True}))
        await say(engine, "hello", ts=0)
        await engine.on_member_join(COMMUNITY, 10, 0, (), 0)
        assert engine.sweep(now=1000, idle_ms=60_000) == 0
        assert engine.sweep(now=120_000, idle_ms=60_000) == 2
        await settle(engine)

    @pytest.mark.asyncio
    async def test_build_with_database(self):
        platform = RecordingPlatform()
        db = ModerationDB(":memory:")
        try:
            provider = StaticPolicyProvider({COMMUNITY: make_policy(features={"anti_links": True})})
            engine = ModerationEngine.build(provider, platform, db=db, workers=2, queue_size=10)
            await say(engine, "http://example.com")
            await settle(engine)

            rows = db.actions.fetch_actions(ACTOR)
            assert {r["kind"] for r in rows} == {"delete_message", "transient_notice"}
            assert all(r["status"] == "success" for r in rows)
        finally:
            db.close()

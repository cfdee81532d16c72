"""Shared fixtures: a recording platform fake and policy/engine builders."""

import pytest

from modguard.domain.policy.models import ModerationPolicy, FeatureToggles, Thresholds
from modguard.domain.policy.provider import StaticPolicyProvider
from modguard.services.moderation_pipeline import ModerationEngine

COMMUNITY = 1000
AUDIT_CHANNEL = 9000
CHANNEL = 2000
ACTOR = 3000


class RecordingPlatform:
    """Captures every output call. ``fail[name] = exc`` makes that call raise."""

    def __init__(self):
        self.calls = []
        self.fail = {}

    def _record(self, name, **kwargs):
        exc = self.fail.get(name)
        if exc is not None:
            raise exc
        self.calls.append((name, kwargs))

    def of(self, name):
        return [kw for n, kw in self.calls if n == name]

    async def delete_message(self, channel_id, message_id):
        self._record("delete_message", channel_id=channel_id, message_id=message_id)

    async def post_transient_notice(self, channel_id, text, auto_delete_after_ms):
        self._record("post_transient_notice", channel_id=channel_id, text=text, auto_delete_after_ms=auto_delete_after_ms)

    async def apply_timeout(self, community_id, actor_id, duration_ms, reason):
        self._record("apply_timeout", community_id=community_id, actor_id=actor_id, duration_ms=duration_ms, reason=reason)

    async def remove_roles(self, community_id, actor_id, role_ids):
        self._record("remove_roles", community_id=community_id, actor_id=actor_id, role_ids=list(role_ids))

    async def emit_audit_record(self, community_id, audit_channel_id, payload):
        self._record("emit_audit_record", community_id=community_id, audit_channel_id=audit_channel_id, payload=payload)


def make_policy(features=None, thresholds=None, **kwargs):
    base_features = {"auto_mod": True}
    base_features.update(features or {})
    kwargs.setdefault("community_id", COMMUNITY)
    kwargs.setdefault("audit_channel_id", AUDIT_CHANNEL)
    return ModerationPolicy(
        features=FeatureToggles(**base_features),
        thresholds=Thresholds(**(thresholds or {})),
        **kwargs,
    )


async def settle(engine):
    """Run every queued side effect, then stop the workers."""
    await engine.drain()
    await engine.close()


@pytest.fixture
def platform():
    return RecordingPlatform()


@pytest.fixture
def make_engine(platform):
    def _make(policy, **kwargs):
        provider = StaticPolicyProvider({policy.community_id: policy})
        return ModerationEngine(provider, platform, **kwargs)
    return _make

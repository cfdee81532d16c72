"""Policy providers.

The engine only needs ``get_policy(community_id)``. Three implementations:
 - ``StaticPolicyProvider``: fixed mapping, used by tests and embedders.
 - ``YamlPolicyProvider``: backed by a policy book file, re-read when the
   file's mtime changes.
 - ``CachedPolicyProvider``: TTL cache in front of any provider.
"""
from __future__ import annotations

import os
import time
from typing import Callable, Dict, Optional, Tuple

from .loader import load_policy_book
from .models import ModerationPolicy, PolicyBook
from ...infrastructure.logging.structured_logging import info as log_info


class StaticPolicyProvider:
    def __init__(self, policies: Optional[Dict[int, ModerationPolicy]] = None, default: Optional[ModerationPolicy] = None):
        self._policies = dict(policies or {})
        self._default = default

    def set_policy(self, community_id: int, policy: ModerationPolicy):
        self._policies[community_id] = policy

    def get_policy(self, community_id: int) -> ModerationPolicy:
        policy = self._policies.get(community_id)
        if policy is not None:
            return policy
        if self._default is not None:
            return self._default.model_copy(update={"community_id": community_id})
        return ModerationPolicy(community_id=community_id)


class YamlPolicyProvider:
    def __init__(self, path: str):
        self.path = path
        self._book: Optional[PolicyBook] = None
        self._mtime: Optional[float] = None

    def _refresh(self) -> PolicyBook:
        mtime = os.path.getmtime(self.path)
        if self._book is None or mtime != self._mtime:
            self._book = load_policy_book(self.path)
            self._mtime = mtime
            log_info("policy.loaded", path=self.path, communities=len(self._book.communities))
        return self._book

    def get_policy(self, community_id: int) -> ModerationPolicy:
        return self._refresh().policy_for(community_id)


class CachedPolicyProvider:
    def __init__(self, inner, ttl_seconds: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self._inner = inner
        self._ttl = ttl_seconds
        self._clock = clock
        self._cache: Dict[int, Tuple[float, ModerationPolicy]] = {}

    def get_policy(self, community_id: int) -> ModerationPolicy:
        now = self._clock()
        hit = self._cache.get(community_id)
        if hit is not None and now - hit[0] < self._ttl:
            return hit[1]
        policy = self._inner.get_policy(community_id)
        self._cache[community_id] = (now, policy)
        return policy


def build_policy_provider(path: str, ttl_seconds: int = 30):
    provider = YamlPolicyProvider(path)
    if ttl_seconds > 0:
        return CachedPolicyProvider(provider, ttl_seconds)
    return provider


__all__ = ["StaticPolicyProvider", "YamlPolicyProvider", "CachedPolicyProvider", "build_policy_provider"]

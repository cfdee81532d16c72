"""Policy loader"""
from __future__ import annotations

import os
import yaml
from .models import ModerationPolicy, PolicyBook

POLICY_FILE = os.getenv("POLICY_FILE", "policies/moderation.yaml")


def load_policy_book(path: str = POLICY_FILE) -> PolicyBook:
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Policy file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return parse_policy_book(raw)


def parse_policy_book(raw: dict) -> PolicyBook:
    try:
        book = PolicyBook(**raw)
        ModerationPolicy(**book.defaults)
        # Defaults and every community must validate at load time.
        for community_id in book.communities:
            book.policy_for(community_id)
    except Exception as e:
        raise ValueError(f"Invalid moderation policy: {e}") from e
    return book

__all__ = ['load_policy_book', 'parse_policy_book', 'POLICY_FILE']

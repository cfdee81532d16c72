"""Stateless per-message content checks.

Three independent classifiers, any of which can fire on the same message:
filtered terms (case-insensitive substring), bare ``http(s)://`` links and
invite links in the platform's own grammar. Moderators are exempt from all
of them. Matching is literal; no normalisation beyond lower-casing.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from ..policy.models import ModerationPolicy

LINK_RE = re.compile(r"https?://[^\s]+", re.IGNORECASE)
INVITE_RE = re.compile(
    r"(?:discord\.gg/|discord\.com/invite/|discordapp\.com/invite/)[a-zA-Z0-9]+",
    re.IGNORECASE,
)

FILTERED_TERM = "filtered_term"
BARE_LINK = "bare_link"
INVITE_LINK = "invite_link"

NOTICES = {
    FILTERED_TERM: "{mention}, please watch your language!",
    BARE_LINK: "{mention}, links are not allowed in this server!",
    INVITE_LINK: "{mention}, invite links are not allowed!",
}


@dataclass(frozen=True)
class FilterMatch:
    kind: str
    detail: Optional[str] = None
    audit: bool = False


def match_filtered_term(terms: List[str], text: str) -> Optional[str]:
    lowered = (text or "").lower()
    for term in terms:
        if term.lower() in lowered:
            return term
    return None


def match_link(text: str) -> Optional[str]:
    m = LINK_RE.search(text or "")
    return m.group(0) if m else None


def match_invite(text: str) -> Optional[str]:
    m = INVITE_RE.search(text or "")
    return m.group(0) if m else None


def evaluate_content(policy: ModerationPolicy, text: str, actor_is_moderator: bool = False) -> List[FilterMatch]:
    """Return every filter that fires for ``text`` under ``policy``."""
    if actor_is_moderator:
        return []
    matches: List[FilterMatch] = []
    if policy.terms_active:
        term = match_filtered_term(policy.filtered_terms, text)
        if term is not None:
            matches.append(FilterMatch(FILTERED_TERM, term, audit=True))
    if policy.links_active:
        link = match_link(text)
        if link is not None:
            matches.append(FilterMatch(BARE_LINK, link, audit=policy.features.audit_bare_links))
    if policy.invites_active:
        invite = match_invite(text)
        if invite is not None:
            matches.append(FilterMatch(INVITE_LINK, invite, audit=True))
    return matches


def notice_for(kind: str, actor_id: int) -> str:
    return NOTICES[kind].format(mention=f"<@{actor_id}>")


__all__ = [
    "FilterMatch",
    "evaluate_content",
    "match_filtered_term",
    "match_link",
    "match_invite",
    "notice_for",
    "FILTERED_TERM",
    "BARE_LINK",
    "INVITE_LINK",
    "LINK_RE",
    "INVITE_RE",
]

"""Escalation state data access (read on start, write on change)."""
from __future__ import annotations

import sqlite3
from typing import List

from ...services.escalation_service import EscalationState


class EscalationRepository:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def load_all(self) -> List[EscalationState]:
        cur = self.conn.execute(
            "SELECT community_id, actor_id, warning_count, last_auto_action_ms FROM escalation_state"
        )
        return [
            EscalationState(r[0], r[1], r[2], r[3])
            for r in cur.fetchall()
        ]

    def save(self, state: EscalationState) -> None:
        self.conn.execute(
            "INSERT INTO escalation_state(community_id, actor_id, warning_count, last_auto_action_ms) VALUES(?,?,?,?) "
            "ON CONFLICT(community_id, actor_id) DO UPDATE SET "
            "warning_count=excluded.warning_count, last_auto_action_ms=excluded.last_auto_action_ms",
            (state.community_id, state.actor_id, state.warning_count, state.last_auto_action_ms),
        )
        self.conn.commit()

__all__ = ["EscalationRepository"]

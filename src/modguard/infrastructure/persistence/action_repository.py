"""Action log data access.

One row per executed side effect, successful or not. Timestamps are epoch
milliseconds like the rest of the engine; ids are stored as integers.
"""
from __future__ import annotations

import json
import sqlite3
import time
from typing import Dict, List, Optional


def _now_ms() -> int:
    return int(time.time() * 1000)


class ActionRepository:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def log_action(
        self,
        community_id: Optional[int],
        channel_id: Optional[int],
        kind: str,
        target_id: Optional[int],
        reason: str,
        evidence: dict | None = None,
        status: str = 'success',
        failure_reason: str | None = None,
        ts_ms: int | None = None,
    ) -> int:
        cur = self.conn.execute(
            "INSERT INTO action_log(ts_ms, community_id, channel_id, kind, target_id, reason, evidence_json, status, failure_reason) "
            "VALUES(?,?,?,?,?,?,?,?,?)",
            (
                ts_ms if ts_ms is not None else _now_ms(),
                community_id,
                channel_id,
                kind,
                target_id,
                reason,
                json.dumps({k: v for k, v in (evidence or {}).items() if v is not None}),
                status,
                failure_reason,
            ),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def fetch_actions(self, target_id: int, limit: int = 20, kinds: List[str] | None = None,
                      community_id: int | None = None) -> List[dict]:
        """Newest first."""
        clauses = ["target_id = ?"]
        params: list = [target_id]
        if community_id is not None:
            clauses.append("community_id = ?")
            params.append(community_id)
        if kinds:
            clauses.append("kind IN (" + ",".join("?" for _ in kinds) + ")")
            params.extend(kinds)
        params.append(int(limit))
        cur = self.conn.execute(
            "SELECT id, ts_ms, community_id, channel_id, kind, reason, evidence_json, status, failure_reason "
            f"FROM action_log WHERE {' AND '.join(clauses)} ORDER BY ts_ms DESC, id DESC LIMIT ?",
            params,
        )
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, r)) for r in cur.fetchall()]

    def aggregate_counts(self, community_id: int, since_ms: int = 0, status: str = 'success') -> Dict[str, int]:
        """Per-kind totals for one community, e.g. ``{"delete_message": 12, "timeout": 1}``."""
        cur = self.conn.execute(
            "SELECT kind, COUNT(*) FROM action_log WHERE community_id=? AND ts_ms>=? AND status=? GROUP BY kind",
            (community_id, since_ms, status),
        )
        return {r[0]: r[1] for r in cur.fetchall()}

__all__ = ["ActionRepository"]

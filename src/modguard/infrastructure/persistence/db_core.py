"""SQLite persistence core.

Two tables: ``action_log`` (append-only audit of executed side effects)
and ``escalation_state`` (one row per community/actor warning counter).
``":memory:"`` gives a throwaway database for tests.
"""
from __future__ import annotations

import os
import sqlite3

from .action_repository import ActionRepository
from .escalation_repository import EscalationRepository

DB_PATH = os.getenv("SQLITE_PATH", "storage/modguard.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS action_log(
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts_ms INTEGER NOT NULL,
  community_id INTEGER,
  channel_id INTEGER,
  kind TEXT NOT NULL,
  target_id INTEGER,
  reason TEXT,
  evidence_json TEXT,
  status TEXT DEFAULT 'success',
  failure_reason TEXT
);
CREATE INDEX IF NOT EXISTS idx_action_target_ts ON action_log(target_id, kind, ts_ms);
CREATE INDEX IF NOT EXISTS idx_action_community_ts ON action_log(community_id, ts_ms);
CREATE TABLE IF NOT EXISTS escalation_state(
  community_id INTEGER NOT NULL,
  actor_id INTEGER NOT NULL,
  warning_count INTEGER NOT NULL DEFAULT 0,
  last_auto_action_ms INTEGER,
  PRIMARY KEY (community_id, actor_id)
);
"""


def init_connection(path: str = DB_PATH) -> sqlite3.Connection:
    if path != ":memory:":
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.executescript(SCHEMA)
    conn.commit()
    return conn


class ModerationDB:
    """Both repositories over one shared connection."""
    def __init__(self, path: str = DB_PATH):
        self.path = path
        self.conn = init_connection(path)
        self.actions = ActionRepository(self.conn)
        self.escalations = EscalationRepository(self.conn)

    def close(self):
        self.conn.close()

__all__ = [
    'ModerationDB', 'init_connection', 'ActionRepository', 'EscalationRepository', 'DB_PATH'
]

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from loguru import logger

from codegpt_chat.errors import PersistenceError
from codegpt_chat.models import ChatSession


class SqliteSessionRepository:
    def __init__(self, db_path: str):
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._initialize_schema()

    async def close(self) -> None:
        self._conn.close()

    async def list_sessions(self, owner_id: str) -> list[ChatSession]:
        rows = self._conn.execute(
            """
            SELECT id, owner_id, title, messages_json, updated_at
            FROM sessions
            WHERE owner_id = ?
            ORDER BY updated_at DESC
            """,
            (owner_id,),
        ).fetchall()

        sessions: list[ChatSession] = []
        for row in rows:
            try:
                sessions.append(
                    ChatSession.from_row(
                        {
                            "id": row["id"],
                            "title": row["title"],
                            "messages": row["messages_json"],
                            "updated_at": row["updated_at"],
                        }
                    )
                )
            except (ValueError, KeyError) as ex:
                raise PersistenceError(f"Malformed session row {row['id']}: {ex}") from ex
        logger.debug(f"Loaded {len(sessions)} session(s) for owner {owner_id}")
        return sessions

    async def upsert_session(self, session: ChatSession, owner_id: str) -> None:
        row = session.to_row(owner_id)
        self._conn.execute(
            """
            INSERT INTO sessions (id, owner_id, title, messages_json, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                owner_id = excluded.owner_id,
                title = excluded.title,
                messages_json = excluded.messages_json,
                updated_at = excluded.updated_at
            """,
            (
                row["id"],
                row["owner_id"],
                row["title"],
                json.dumps(row["messages"], ensure_ascii=True),
                row["updated_at"],
            ),
        )
        self._conn.commit()

    def _initialize_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                title TEXT NOT NULL,
                messages_json TEXT NOT NULL DEFAULT '[]',
                updated_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_sessions_owner_updated
                ON sessions(owner_id, updated_at);
            """
        )
        self._conn.commit()

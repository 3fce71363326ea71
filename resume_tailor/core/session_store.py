from __future__ import annotations

import json
import os
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Protocol

from resume_tailor.core.config import settings
from resume_tailor.schemas.tailoring import Session


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore(Protocol):
    """Persistence for tailoring sessions.

    Every write is a whole-session replace. ``replace_if_current`` and
    ``save_to_library`` only apply when ``token`` is still the latest one
    issued for the session, so a slow request can never overwrite the result
    of a newer one.
    """

    def create(self, user_id: str | None = None) -> Session: ...

    def get(self, session_id: str) -> Session | None: ...

    def issue_token(self, session_id: str) -> int: ...

    def replace_if_current(self, session: Session, token: int) -> bool: ...

    def save_to_library(self, session: Session, token: int, *, filename: str) -> bool: ...

    def get_library_entry(self, entry_id: str) -> dict[str, Any] | None: ...


class InMemorySessionStore:
    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._library: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def create(self, user_id: str | None = None) -> Session:
        session = Session(session_id=uuid.uuid4().hex, user_id=user_id)
        with self._lock:
            self._sessions[session.session_id] = session.model_copy(deep=True)
        return session

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            stored = self._sessions.get(session_id)
            return stored.model_copy(deep=True) if stored else None

    def issue_token(self, session_id: str) -> int:
        with self._lock:
            stored = self._sessions.get(session_id)
            if stored is None:
                raise KeyError(session_id)
            token = stored.request_token + 1
            self._sessions[session_id] = stored.model_copy(update={"request_token": token})
            return token

    def replace_if_current(self, session: Session, token: int) -> bool:
        with self._lock:
            stored = self._sessions.get(session.session_id)
            if stored is None or stored.request_token != token:
                return False
            self._sessions[session.session_id] = session.model_copy(
                update={"request_token": token, "updated_at": _utc_now()}, deep=True
            )
            return True

    def save_to_library(self, session: Session, token: int, *, filename: str) -> bool:
        with self._lock:
            stored = self._sessions.get(session.session_id)
            if stored is None or stored.request_token != token or not session.library_entry_id:
                return False
            self._sessions[session.session_id] = session.model_copy(
                update={"request_token": token, "updated_at": _utc_now()}, deep=True
            )
            self._library[session.library_entry_id] = {
                "entry_id": session.library_entry_id,
                "session_id": session.session_id,
                "user_id": session.user_id,
                "filename": filename,
                "content": session.tailored_content.model_dump(mode="json") if session.tailored_content else {},
                "created_at": _utc_now(),
            }
            return True

    def get_library_entry(self, entry_id: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._library.get(entry_id)
            return dict(entry) if entry else None


class SqliteSessionStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._conn_lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._conn_lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    user_id TEXT,
                    status TEXT NOT NULL,
                    request_token INTEGER NOT NULL DEFAULT 0,
                    payload_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tailored_resumes (
                    entry_id TEXT PRIMARY KEY,
                    session_id TEXT NOT NULL,
                    user_id TEXT,
                    filename TEXT NOT NULL,
                    content_json TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_tailored_resumes_user
                ON tailored_resumes (user_id);
                """
            )
            self._conn = conn
            return conn

    def create(self, user_id: str | None = None) -> Session:
        conn = self._get_connection()
        session = Session(session_id=uuid.uuid4().hex, user_id=user_id)
        with self._conn_lock:
            conn.execute(
                """
                INSERT INTO sessions (
                    session_id, user_id, status, request_token, payload_json, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.session_id,
                    session.user_id,
                    session.status,
                    session.request_token,
                    session.model_dump_json(),
                    session.created_at.isoformat(),
                    session.updated_at.isoformat(),
                ),
            )
        return session

    def get(self, session_id: str) -> Session | None:
        conn = self._get_connection()
        with self._conn_lock:
            row = conn.execute(
                "SELECT payload_json, request_token FROM sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if not row:
            return None
        # the column is authoritative; issue_token does not rewrite the payload
        return Session.model_validate_json(row[0]).model_copy(update={"request_token": int(row[1])})

    def issue_token(self, session_id: str) -> int:
        conn = self._get_connection()
        with self._conn_lock:
            conn.execute("BEGIN IMMEDIATE")
            try:
                cur = conn.execute(
                    "UPDATE sessions SET request_token = request_token + 1 WHERE session_id = ?",
                    (session_id,),
                )
                if cur.rowcount != 1:
                    conn.execute("ROLLBACK")
                    raise KeyError(session_id)
                token = conn.execute(
                    "SELECT request_token FROM sessions WHERE session_id = ?", (session_id,)
                ).fetchone()[0]
                conn.execute("COMMIT")
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
        return int(token)

    def _update_if_current(self, conn: sqlite3.Connection, session: Session, token: int) -> bool:
        updated = session.model_copy(update={"request_token": token, "updated_at": _utc_now()})
        cur = conn.execute(
            """
            UPDATE sessions
            SET status = ?, payload_json = ?, updated_at = ?
            WHERE session_id = ? AND request_token = ?
            """,
            (
                updated.status,
                updated.model_dump_json(),
                updated.updated_at.isoformat(),
                updated.session_id,
                token,
            ),
        )
        return cur.rowcount == 1

    def replace_if_current(self, session: Session, token: int) -> bool:
        conn = self._get_connection()
        with self._conn_lock:
            return self._update_if_current(conn, session, token)

    def save_to_library(self, session: Session, token: int, *, filename: str) -> bool:
        if not session.library_entry_id:
            return False
        conn = self._get_connection()
        content = session.tailored_content.model_dump(mode="json") if session.tailored_content else {}
        with self._conn_lock:
            conn.execute("BEGIN IMMEDIATE")
            try:
                if not self._update_if_current(conn, session, token):
                    conn.execute("ROLLBACK")
                    return False
                conn.execute(
                    """
                    INSERT INTO tailored_resumes (
                        entry_id, session_id, user_id, filename, content_json, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        session.library_entry_id,
                        session.session_id,
                        session.user_id,
                        filename,
                        json.dumps(content, ensure_ascii=False),
                        _utc_now().isoformat(),
                    ),
                )
                conn.execute("COMMIT")
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
        return True

    def get_library_entry(self, entry_id: str) -> dict[str, Any] | None:
        conn = self._get_connection()
        with self._conn_lock:
            row = conn.execute(
                """
                SELECT entry_id, session_id, user_id, filename, content_json, created_at
                FROM tailored_resumes
                WHERE entry_id = ?
                """,
                (entry_id,),
            ).fetchone()
        if not row:
            return None
        return {
            "entry_id": row[0],
            "session_id": row[1],
            "user_id": row[2],
            "filename": row[3],
            "content": json.loads(row[4]) if row[4] else {},
            "created_at": datetime.fromisoformat(row[5]),
        }

    def close(self) -> None:
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    if settings.session_store_backend == "memory":
        return InMemorySessionStore()
    return SqliteSessionStore(settings.session_db_path)

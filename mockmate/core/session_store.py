from __future__ import annotations

import json
import os
import sqlite3
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field, fields
from functools import lru_cache
from typing import Any, Protocol

from mockmate.core.config import settings
from mockmate.core.errors import SessionNotFoundError

_MUTABLE_FIELDS = {"company", "role", "questions"}


@dataclass
class ReviewRecord:
    question: str
    score: int
    feedback: list[str]
    transcript: str | None = None
    created_at: float = field(default_factory=time.time)


@dataclass
class InterviewSession:
    session_id: str
    resume_text: str
    company: str | None = None
    role: str | None = None
    questions: list[str] = field(default_factory=list)
    reviews: list[ReviewRecord] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "InterviewSession":
        known = {f.name for f in fields(cls)}
        data = {key: value for key, value in payload.items() if key in known}
        data["reviews"] = [ReviewRecord(**review) for review in data.get("reviews") or []]
        return cls(**data)


class SessionStore(Protocol):
    def create(self, resume_text: str) -> str: ...

    def get(self, session_id: str) -> InterviewSession | None: ...

    def update(self, session_id: str, **changes: Any) -> InterviewSession: ...

    def append_review(self, session_id: str, record: ReviewRecord) -> InterviewSession: ...

    def purge_expired(self) -> int: ...

    def clear(self) -> None: ...


def _check_changes(changes: dict[str, Any]) -> None:
    unknown = set(changes) - _MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported session fields: {', '.join(sorted(unknown))}")


class InMemorySessionStore:
    """Process-local sessions keyed by an opaque UUID token.

    Entries expire ``ttl_seconds`` after their last write and the oldest ones are dropped
    once ``max_entries`` is exceeded. Mutations are last-write-wins.
    """

    def __init__(self, ttl_seconds: float, max_entries: int = 500, clock=time.time):
        self._ttl_seconds = ttl_seconds
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._sessions: dict[str, InterviewSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _expired(self, session: InterviewSession, now: float) -> bool:
        if self._ttl_seconds <= 0:
            return False
        return now - session.updated_at >= self._ttl_seconds

    def _evict_overflow(self) -> None:
        overflow = len(self._sessions) - self._max_entries
        if overflow <= 0:
            return
        oldest = sorted(self._sessions.values(), key=lambda s: s.updated_at)[:overflow]
        for session in oldest:
            self._sessions.pop(session.session_id, None)

    def create(self, resume_text: str) -> str:
        now = self._clock()
        session_id = str(uuid.uuid4())
        self._sessions[session_id] = InterviewSession(
            session_id=session_id,
            resume_text=resume_text,
            created_at=now,
            updated_at=now,
        )
        self._evict_overflow()
        return session_id

    def get(self, session_id: str) -> InterviewSession | None:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if self._expired(session, self._clock()):
            self._sessions.pop(session_id, None)
            return None
        return session

    def _require(self, session_id: str) -> InterviewSession:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    def update(self, session_id: str, **changes: Any) -> InterviewSession:
        _check_changes(changes)
        session = self._require(session_id)
        for key, value in changes.items():
            setattr(session, key, value)
        session.updated_at = self._clock()
        return session

    def append_review(self, session_id: str, record: ReviewRecord) -> InterviewSession:
        session = self._require(session_id)
        session.reviews.append(record)
        session.updated_at = self._clock()
        return session

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [sid for sid, session in self._sessions.items() if self._expired(session, now)]
        for sid in expired:
            self._sessions.pop(sid, None)
        return len(expired)

    def clear(self) -> None:
        self._sessions.clear()


class SqliteSessionStore:
    """Sessions persisted in a WAL-mode SQLite file so they survive restarts."""

    def __init__(self, db_path: str, ttl_seconds: float, clock=time.time):
        self._db_path = db_path
        self._ttl_seconds = ttl_seconds
        self._clock = clock
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
                CREATE TABLE IF NOT EXISTS interview_sessions (
                    session_id TEXT PRIMARY KEY,
                    payload_json TEXT NOT NULL,
                    updated_at REAL NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_interview_sessions_updated
                ON interview_sessions (updated_at);
                """
            )
            self._conn = conn
            return conn

    def _cutoff(self, now: float) -> float | None:
        if self._ttl_seconds <= 0:
            return None
        return now - self._ttl_seconds

    def _write(self, session: InterviewSession) -> None:
        conn = self._get_connection()
        payload_json = json.dumps(session.to_dict(), ensure_ascii=False)
        with self._conn_lock:
            conn.execute(
                """
                INSERT INTO interview_sessions (session_id, payload_json, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(session_id) DO UPDATE SET
                    payload_json = excluded.payload_json,
                    updated_at = excluded.updated_at
                """,
                (session.session_id, payload_json, session.updated_at),
            )

    def create(self, resume_text: str) -> str:
        now = self._clock()
        session = InterviewSession(
            session_id=str(uuid.uuid4()),
            resume_text=resume_text,
            created_at=now,
            updated_at=now,
        )
        self._write(session)
        return session.session_id

    def get(self, session_id: str) -> InterviewSession | None:
        conn = self._get_connection()
        with self._conn_lock:
            row = conn.execute(
                "SELECT payload_json, updated_at FROM interview_sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if not row:
            return None
        cutoff = self._cutoff(self._clock())
        if cutoff is not None and float(row[1]) <= cutoff:
            self.purge_expired()
            return None
        return InterviewSession.from_dict(json.loads(row[0]))

    def _require(self, session_id: str) -> InterviewSession:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    def update(self, session_id: str, **changes: Any) -> InterviewSession:
        _check_changes(changes)
        session = self._require(session_id)
        for key, value in changes.items():
            setattr(session, key, value)
        session.updated_at = self._clock()
        self._write(session)
        return session

    def append_review(self, session_id: str, record: ReviewRecord) -> InterviewSession:
        session = self._require(session_id)
        session.reviews.append(record)
        session.updated_at = self._clock()
        self._write(session)
        return session

    def purge_expired(self) -> int:
        cutoff = self._cutoff(self._clock())
        if cutoff is None:
            return 0
        conn = self._get_connection()
        with self._conn_lock:
            cur = conn.execute("DELETE FROM interview_sessions WHERE updated_at <= ?", (cutoff,))
            return int(cur.rowcount or 0)

    def clear(self) -> None:
        conn = self._get_connection()
        with self._conn_lock:
            conn.execute("DELETE FROM interview_sessions")


def build_session_store() -> SessionStore:
    ttl_seconds = settings.session_ttl_minutes * 60
    if settings.session_backend == "sqlite":
        return SqliteSessionStore(settings.session_db_path, ttl_seconds=ttl_seconds)
    return InMemorySessionStore(ttl_seconds=ttl_seconds, max_entries=settings.session_max_entries)


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    return build_session_store()

"""SQLite storage implementation."""

import json
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..logging_config import get_logger
from ..models import Session, SessionKey, TraceEvent

logger = get_logger(__name__)

Clock = Callable[[], float]


class ISessionStore(Protocol):
    """Keyed, expiring storage of per-user sessions.

    An expired session is indistinguishable from one that never existed.
    """

    async def get_session(self, key: SessionKey) -> Session | None:
        """Get the live session for a key."""
        ...

    async def put_session(self, key: SessionKey, session: Session, ttl: int) -> None:
        """Overwrite the session and reset its expiry to ``ttl`` seconds from now."""
        ...

    async def delete_session(self, key: SessionKey) -> None:
        """Delete the session, if any."""
        ...


class IStorage(ISessionStore, Protocol):
    """Persistent storage for sessions and trace events (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    async def purge_expired_sessions(self) -> int:
        """Delete expired sessions, returning how many were removed."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None, clock: Clock = time.time):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._clock = clock
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Sessions
    async def get_session(self, key: SessionKey) -> Session | None:
        """Get the live session for a key; expired rows read as absent."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT data
            FROM sessions
            WHERE namespace = ? AND user_id = ? AND expires_at > ?
            """,
            (key.namespace, key.user_id, self._clock()),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        try:
            return Session.from_dict(json.loads(row[0]))
        except (ValueError, TypeError) as e:
            # Unreadable rows are dropped so the user can start over
            logger.error(
                "Discarding corrupt session for %s/%s: %s",
                key.namespace,
                key.user_id,
                e,
            )
            await self.delete_session(key)
            return None

    async def put_session(self, key: SessionKey, session: Session, ttl: int) -> None:
        """Overwrite the session and reset its expiry."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO sessions
            (namespace, user_id, data, expires_at, updated_at)
            VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
            """,
            (
                key.namespace,
                key.user_id,
                json.dumps(session.to_dict()),
                self._clock() + ttl,
            ),
        )
        await conn.commit()

    async def delete_session(self, key: SessionKey) -> None:
        """Delete the session, if any."""
        conn = self._require_conn()

        await conn.execute(
            "DELETE FROM sessions WHERE namespace = ? AND user_id = ?",
            (key.namespace, key.user_id),
        )
        await conn.commit()

    async def purge_expired_sessions(self) -> int:
        """Delete expired sessions, returning how many were removed."""
        conn = self._require_conn()

        cursor = await conn.execute(
            "DELETE FROM sessions WHERE expires_at <= ?", (self._clock(),)
        )
        await conn.commit()
        return cursor.rowcount

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data),
                event.timestamp.isoformat(),
            ),
        )
        await conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events (newest first) with optional filters."""
        conn = self._require_conn()

        conditions = []
        params: list = []

        if after:
            if after.tzinfo is None:
                after = after.replace(tzinfo=timezone.utc)
            conditions.append("timestamp > ?")
            params.append(after.isoformat())
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=datetime.fromisoformat(row[4]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        for table in ("sessions", "trace_events"):
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()

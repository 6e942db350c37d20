"""SQLite storage implementation."""

import json
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..errors import PersistStoreError, VersionConflictError
from ..logging_config import get_logger
from ..models import BusMessage, Message, Topic, TraceEvent

logger = get_logger(__name__)


class Scope(str, Enum):
    """Storage scopes for property state."""

    CONVERSATION = "conversation"
    USER = "user"
    BOT = "bot"


@dataclass(frozen=True)
class StoredProperty:
    """A property value together with the version it was read at."""

    value: Any
    version: int


class IStorage(Protocol):
    """Persistent storage for all system data (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Properties
    async def get_property(
        self, scope: Scope, scope_id: str, key: str
    ) -> StoredProperty | None:
        """Read a scoped property, or None if it was never written."""
        ...

    async def put_property(
        self,
        scope: Scope,
        scope_id: str,
        key: str,
        value: Any,
        expected_version: int | None = None,
    ) -> int:
        """Write a scoped property and return its new version.

        With ``expected_version`` set the write is a compare-and-swap: it only
        succeeds if the stored version still matches (0 meaning "absent"),
        otherwise VersionConflictError is raised.
        """
        ...

    # Transcript
    async def save_message(self, message: Message) -> None:
        """Save a transcript message."""
        ...

    async def get_messages(
        self, conversation_id: str, after: datetime | None = None
    ) -> list[Message]:
        """Get transcript messages for a conversation, oldest first."""
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
        job_id: str | None = None,
        conversation_id: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # BusMessages
    async def save_bus_message(self, message: BusMessage) -> None:
        """Save a bus message."""
        ...

    async def get_bus_messages(self, limit: int = 100) -> list[BusMessage]:
        """Get bus messages (newest first)."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _parse_ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


@contextmanager
def _driver_errors(action: str) -> Iterator[None]:
    try:
        yield
    except aiosqlite.Error as e:
        raise PersistStoreError(f"{action} failed: {e}") from e


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        try:
            self._conn = await aiosqlite.connect(self._db_path)

            schema_path = Path(__file__).parent / "schema.sql"
            with open(schema_path, "r", encoding="utf-8") as f:
                schema_sql = f.read()
            await self._conn.executescript(schema_sql)
            await self._conn.commit()
        except aiosqlite.Error as e:
            raise PersistStoreError(f"Cannot open storage: {e}") from e

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Properties
    async def get_property(
        self, scope: Scope, scope_id: str, key: str
    ) -> StoredProperty | None:
        """Read a scoped property, or None if it was never written."""
        conn = self._require_conn()

        try:
            cursor = await conn.execute(
                """
                SELECT value, version
                FROM properties
                WHERE scope = ? AND scope_id = ? AND key = ?
                """,
                (scope.value, scope_id, key),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise PersistStoreError(f"Read failed for {scope.value}/{key}: {e}") from e

        if not row:
            return None

        return StoredProperty(value=json.loads(row[0]), version=row[1])

    async def put_property(
        self,
        scope: Scope,
        scope_id: str,
        key: str,
        value: Any,
        expected_version: int | None = None,
    ) -> int:
        """Write a scoped property and return its new version."""
        conn = self._require_conn()
        payload = json.dumps(value)

        try:
            if expected_version is None:
                await conn.execute(
                    """
                    INSERT INTO properties (scope, scope_id, key, value, version, updated_at)
                    VALUES (?, ?, ?, ?, 1, CURRENT_TIMESTAMP)
                    ON CONFLICT (scope, scope_id, key) DO UPDATE SET
                        value = excluded.value,
                        version = properties.version + 1,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (scope.value, scope_id, key, payload),
                )
            elif expected_version == 0:
                try:
                    await conn.execute(
                        """
                        INSERT INTO properties (scope, scope_id, key, value, version, updated_at)
                        VALUES (?, ?, ?, ?, 1, CURRENT_TIMESTAMP)
                        """,
                        (scope.value, scope_id, key, payload),
                    )
                except aiosqlite.IntegrityError:
                    await conn.rollback()
                    raise VersionConflictError(scope.value, scope_id, key, 0)
            else:
                cursor = await conn.execute(
                    """
                    UPDATE properties
                    SET value = ?, version = version + 1, updated_at = CURRENT_TIMESTAMP
                    WHERE scope = ? AND scope_id = ? AND key = ? AND version = ?
                    """,
                    (payload, scope.value, scope_id, key, expected_version),
                )
                if cursor.rowcount == 0:
                    await conn.rollback()
                    raise VersionConflictError(
                        scope.value, scope_id, key, expected_version
                    )

            await conn.commit()

            cursor = await conn.execute(
                """
                SELECT version FROM properties
                WHERE scope = ? AND scope_id = ? AND key = ?
                """,
                (scope.value, scope_id, key),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise PersistStoreError(f"Write failed for {scope.value}/{key}: {e}") from e

        return row[0]

    # Transcript
    async def save_message(self, message: Message) -> None:
        """Save a transcript message."""
        conn = self._require_conn()

        # Generate ID if not provided
        if not message.id:
            message.id = str(uuid.uuid4())

        with _driver_errors(f"Saving message {message.id}"):
            await conn.execute(
                """
                INSERT INTO messages (id, conversation_id, role, content, timestamp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    message.id,
                    message.conversation_id,
                    message.role,
                    message.content,
                    message.timestamp.isoformat(),
                ),
            )
            await conn.commit()

    async def get_messages(
        self, conversation_id: str, after: datetime | None = None
    ) -> list[Message]:
        """Get transcript messages for a conversation, oldest first."""
        conn = self._require_conn()

        with _driver_errors(f"Reading transcript of {conversation_id}"):
            if after:
                cursor = await conn.execute(
                    """
                    SELECT id, conversation_id, role, content, timestamp
                    FROM messages
                    WHERE conversation_id = ? AND timestamp > ?
                    ORDER BY timestamp ASC, rowid ASC
                    """,
                    (conversation_id, after.isoformat()),
                )
            else:
                cursor = await conn.execute(
                    """
                    SELECT id, conversation_id, role, content, timestamp
                    FROM messages
                    WHERE conversation_id = ?
                    ORDER BY timestamp ASC, rowid ASC
                    """,
                    (conversation_id,),
                )

            rows = await cursor.fetchall()

        return [
            Message(
                id=row[0],
                conversation_id=row[1],
                role=row[2],
                content=row[3],
                timestamp=_parse_ts(row[4]),
            )
            for row in rows
        ]

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()

        with _driver_errors(f"Saving trace event {event.event_type}"):
            await conn.execute(
                """
                INSERT INTO trace_events (id, event_type, actor, data, timestamp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    event.id or str(uuid.uuid4()),
                    event.event_type,
                    event.actor,
                    json.dumps(event.data, default=str),
                    event.timestamp.isoformat(),
                ),
            )
            await conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        job_id: str | None = None,
        conversation_id: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        conn = self._require_conn()

        # Build query dynamically
        conditions = []
        params: list[Any] = []

        if after:
            conditions.append("timestamp > ?")
            params.append(after.isoformat())
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)
        if job_id:
            conditions.append("json_extract(data, '$.job_id') = ?")
            params.append(str(job_id))
        if conversation_id:
            conditions.append("json_extract(data, '$.conversation_id') = ?")
            params.append(conversation_id)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC, rowid DESC
            LIMIT ?
        """
        params.append(limit)

        with _driver_errors("Reading trace events"):
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=_parse_ts(row[4]),
            )
            for row in rows
        ]

    # BusMessages
    async def save_bus_message(self, message: BusMessage) -> None:
        """Save a bus message."""
        conn = self._require_conn()

        with _driver_errors(f"Saving bus message {message.topic.value}"):
            await conn.execute(
                """
                INSERT INTO bus_messages (id, topic, payload, source, timestamp)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    message.id or str(uuid.uuid4()),
                    message.topic.value,
                    json.dumps(message.payload, default=str),
                    message.source,
                    message.timestamp.isoformat(),
                ),
            )
            await conn.commit()

    async def get_bus_messages(self, limit: int = 100) -> list[BusMessage]:
        """Get bus messages (newest first)."""
        conn = self._require_conn()

        with _driver_errors("Reading bus messages"):
            cursor = await conn.execute(
                """
                SELECT id, topic, payload, source, timestamp
                FROM bus_messages
                ORDER BY timestamp DESC, rowid DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = await cursor.fetchall()

        return [
            BusMessage(
                id=row[0],
                topic=Topic(row[1]),
                payload=json.loads(row[2]),
                source=row[3],
                timestamp=_parse_ts(row[4]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        with _driver_errors("Clearing storage"):
            for table in ["properties", "messages", "trace_events", "bus_messages"]:
                await conn.execute(f"DELETE FROM {table}")

            await conn.commit()
        logger.info("Storage cleared")

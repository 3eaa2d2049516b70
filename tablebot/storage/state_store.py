"""Per-conversation key-value state stores.

The booking flow reads and writes its reservation record and dialog
state through this interface, keyed by conversation ID. Values are
JSON-compatible dicts; last write wins.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)

JsonDict = dict[str, Any]


class StateStore(ABC):
    """Abstract interface for conversation-scoped state."""

    @abstractmethod
    def get(self, conversation_id: str, key: str) -> Optional[JsonDict]:
        """Return the stored value, or None if absent."""

    @abstractmethod
    def set(self, conversation_id: str, key: str, value: JsonDict) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    def delete(self, conversation_id: str, key: str) -> None:
        """Remove a single key. Missing keys are ignored."""

    @abstractmethod
    def clear(self, conversation_id: str) -> None:
        """Remove every key stored for a conversation."""


class InMemoryStateStore(StateStore):
    """Process-local store. Values are kept serialized, as a durable store would."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, str]] = {}

    def get(self, conversation_id: str, key: str) -> Optional[JsonDict]:
        raw = self._data.get(conversation_id, {}).get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, conversation_id: str, key: str, value: JsonDict) -> None:
        self._data.setdefault(conversation_id, {})[key] = json.dumps(value)

    def delete(self, conversation_id: str, key: str) -> None:
        self._data.get(conversation_id, {}).pop(key, None)

    def clear(self, conversation_id: str) -> None:
        self._data.pop(conversation_id, None)


class SQLiteStateStore(StateStore):
    """SQLite-backed store; state survives process restarts."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS conversation_state (
                    conversation_id TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (conversation_id, key)
                )
                """
            )

    def get(self, conversation_id: str, key: str) -> Optional[JsonDict]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT value FROM conversation_state WHERE conversation_id = ? AND key = ?",
                (conversation_id, key),
            ).fetchone()
        return json.loads(row[0]) if row else None

    def set(self, conversation_id: str, key: str, value: JsonDict) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO conversation_state (conversation_id, key, value)
                VALUES (?, ?, ?)
                ON CONFLICT (conversation_id, key) DO UPDATE SET value = excluded.value
                """,
                (conversation_id, key, json.dumps(value)),
            )

    def delete(self, conversation_id: str, key: str) -> None:
        with self._connection() as conn:
            conn.execute(
                "DELETE FROM conversation_state WHERE conversation_id = ? AND key = ?",
                (conversation_id, key),
            )

    def clear(self, conversation_id: str) -> None:
        with self._connection() as conn:
            conn.execute(
                "DELETE FROM conversation_state WHERE conversation_id = ?",
                (conversation_id,),
            )
        logger.debug("Cleared state for conversation %s", conversation_id)


def create_state_store(backend: str, sqlite_path: Optional[str] = None) -> StateStore:
    """Build the store named by configuration ("memory" or "sqlite")."""
    if backend == "memory":
        return InMemoryStateStore()
    if backend == "sqlite":
        if not sqlite_path:
            raise ValueError("sqlite backend requires a database path")
        return SQLiteStateStore(sqlite_path)
    raise ValueError(f"Unknown state backend: {backend!r}")

"""
Tool: State Persistence
Purpose: Store the AppState as a single JSON blob in a key/value store

Blob stores:
    SQLiteBlobStore: durable store in data/taskquest.db (default)
    MemoryBlobStore: process-local store for tests and dry runs

Schema versions:
    0 - layout written by the original web app: no schemaVersion,
        millisecond epoch timestamps, a stored level, unused badges and
        weeklyGoals lists
    1 - current layout: ISO timestamps, schemaVersion, level derived

Loading never raises on bad data: a blob that cannot be parsed, migrated
or validated is discarded, the error is logged and the initial state is
returned instead.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from pydantic import ValidationError

from taskquest.state import DB_PATH, STATE_KEY
from taskquest.tasks.models import CURRENT_SCHEMA_VERSION, AppState

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, blob: str) -> None: ...


class MemoryBlobStore:
    """Dictionary-backed blob store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def put(self, key: str, blob: str) -> None:
        self._blobs[key] = blob


class SQLiteBlobStore:
    """Blob store persisted in a SQLite table."""

    def __init__(self, db_path: Path | str = DB_PATH):
        self.db_path = Path(db_path)

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating the table if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        conn.execute("""
            CREATE TABLE IF NOT EXISTS blobs (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
        return conn

    def get(self, key: str) -> Optional[str]:
        conn = self.get_connection()
        try:
            row = conn.execute("SELECT value FROM blobs WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def put(self, key: str, blob: str) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                "INSERT INTO blobs (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                (key, blob),
            )
            conn.commit()
        finally:
            conn.close()


# ─────────────────────────────────────────────────────────────────────────────
# Migrations
# ─────────────────────────────────────────────────────────────────────────────


def _ms_to_iso(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    return value


def _convert_timestamps(item: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    converted = dict(item)
    for key in keys:
        if key in converted:
            converted[key] = _ms_to_iso(converted[key])
    return converted


def _migrate_v0_to_v1(raw: dict[str, Any]) -> dict[str, Any]:
    tasks = []
    for task in raw.get("tasks", []):
        task = _convert_timestamps(task, ("createdAt", "completedAt", "dueDate"))
        task.setdefault("isSubtask", task.get("parent") is not None)
        tasks.append(task)

    gamification = _convert_timestamps(
        raw.get("gamification", {}), ("lastTaskCompletedAt", "streakStartDate")
    )
    for legacy_key in ("level", "badges", "weeklyGoals"):
        gamification.pop(legacy_key, None)
    gamification["dailyChallenges"] = [
        _convert_timestamps(c, ("createdAt", "expiresAt"))
        for c in gamification.get("dailyChallenges", [])
    ]
    gamification["achievements"] = [
        _convert_timestamps(a, ("unlockedAt",)) for a in gamification.get("achievements", [])
    ]

    toasts = []
    for toast in raw.get("toasts", []):
        toast = _convert_timestamps(toast, ("createdAt",))
        # A toast without a duration was never auto-dismissed
        toast["duration"] = toast.get("duration") or 0
        toasts.append(toast)

    return {
        **raw,
        "schemaVersion": 1,
        "tasks": tasks,
        "gamification": gamification,
        "toasts": toasts,
    }


MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    0: _migrate_v0_to_v1,
}


def migrate_blob(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Run forward migrations until the blob reaches the current version.

    Raises:
        ValueError: the blob was written by a newer version
    """
    version = raw.get("schemaVersion", 0)
    if isinstance(version, bool) or not isinstance(version, int) or version > CURRENT_SCHEMA_VERSION:
        raise ValueError(f"Unsupported schema version: {version!r}")

    while version < CURRENT_SCHEMA_VERSION:
        raw = MIGRATIONS[version](raw)
        logger.info(f"Migrated persisted state from schema v{version} to v{raw['schemaVersion']}")
        version = raw["schemaVersion"]

    return raw


# ─────────────────────────────────────────────────────────────────────────────
# Serialization
# ─────────────────────────────────────────────────────────────────────────────


def serialize_state(state: AppState) -> str:
    return json.dumps(state.model_dump(mode="json", by_alias=True), ensure_ascii=False)


def deserialize_state(blob: str) -> AppState:
    raw = json.loads(blob)
    if not isinstance(raw, dict):
        raise ValueError("Persisted state is not a JSON object")
    return AppState.model_validate(migrate_blob(raw))


def load_state(store: BlobStore, key: str = STATE_KEY) -> AppState:
    """
    Load the persisted state, falling back to the initial state.

    Args:
        store: Blob store to read from
        key: Blob key

    Returns:
        The stored AppState, or a fresh one if missing or malformed
    """
    blob = store.get(key)
    if blob is None:
        return AppState()

    try:
        state = deserialize_state(blob)
    except (ValueError, TypeError, KeyError, AttributeError, RecursionError, ValidationError) as e:
        logger.error(f"Error parsing stored state, starting fresh: {e}")
        return AppState()

    logger.info(f"Loaded state with {len(state.tasks)} task(s)")
    return state


def save_state(store: BlobStore, state: AppState, key: str = STATE_KEY) -> None:
    store.put(key, serialize_state(state))

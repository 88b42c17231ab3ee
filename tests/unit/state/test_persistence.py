"""Tests for taskquest/state/persistence.py

Persistence stores the whole AppState as one JSON blob. Key behavior:
- camelCase layout with a schema version
- forward migration of blobs written by the original web app
- malformed blobs fall back to the initial state instead of raising
"""

import json
import sqlite3
from datetime import datetime, timezone

import pytest

from taskquest.gamification import challenges
from taskquest.state.persistence import (
    MemoryBlobStore,
    SQLiteBlobStore,
    deserialize_state,
    load_state,
    migrate_blob,
    save_state,
    serialize_state,
)
from taskquest.tasks import manager
from taskquest.tasks.models import AppState, TaskCategory, TaskPriority


@pytest.fixture
def populated_state(empty_state, now, rng):
    state = manager.add_task(empty_state, "Plan trip", now, category="leisure", priority="high")
    state = manager.add_subtasks(state, state.tasks[0].id, ["Book hotel"], now)
    state = manager.toggle_task_completion(state, state.tasks[1].id, now)
    return challenges.generate_daily_challenge(state, now, rng)


# Blob as written by the original web app: no schemaVersion, ms timestamps
LEGACY_BLOB = {
    "tasks": [
        {
            "id": "t1",
            "title": "Old task",
            "completed": True,
            "createdAt": 1710500000000,
            "completedAt": 1710503600000,
            "category": "work",
            "priority": "high",
        },
        {
            "id": "t2",
            "title": "Old subtask",
            "completed": False,
            "createdAt": 1710500000000,
            "parent": "t1",
            "category": "work",
            "priority": "high",
        },
    ],
    "gamification": {
        "points": 120,
        "level": 2,
        "streak": 1,
        "lastTaskCompletedAt": 1710503600000,
        "streakStartDate": 1710503600000,
        "dailyChallenges": [
            {
                "id": "c1",
                "title": "Concluir tarefas",
                "description": "Complete 3 tarefas hoje",
                "type": "task_completion",
                "requirement": 3,
                "progress": 1,
                "pointsReward": 20,
                "completed": False,
                "createdAt": 1710500000000,
                "expiresAt": 1710550799000,
            }
        ],
        "achievements": [],
        "badges": [],
        "weeklyGoals": [],
        "totalTasksCompleted": 12,
    },
    "settings": {"theme": "dark"},
    "toasts": [{"id": "x", "message": "Oi", "type": "info", "createdAt": 1710500000000}],
}


class TestBlobStores:
    """Tests for the key/value blob stores."""

    def test_memory_store(self):
        store = MemoryBlobStore()

        assert store.get("todoApp") is None
        store.put("todoApp", "{}")
        assert store.get("todoApp") == "{}"

    def test_sqlite_store_round_trip(self, temp_db):
        store = SQLiteBlobStore(temp_db)

        assert store.get("todoApp") is None
        store.put("todoApp", '{"a": 1}')
        store.put("todoApp", '{"a": 2}')

        assert SQLiteBlobStore(temp_db).get("todoApp") == '{"a": 2}'

    def test_sqlite_store_creates_table(self, temp_db):
        SQLiteBlobStore(temp_db).put("k", "v")

        conn = sqlite3.connect(str(temp_db))
        try:
            rows = conn.execute("SELECT key, value FROM blobs").fetchall()
        finally:
            conn.close()
        assert rows == [("k", "v")]


class TestSerialization:
    """Tests for the JSON blob layout."""

    def test_uses_camel_case_layout(self, populated_state):
        raw = json.loads(serialize_state(populated_state))

        assert raw["schemaVersion"] == 1
        assert set(raw) == {"schemaVersion", "tasks", "gamification", "settings", "toasts"}
        assert "createdAt" in raw["tasks"][0]
        assert "isSubtask" in raw["tasks"][1]
        assert "dailyChallenges" in raw["gamification"]
        assert "totalTasksCompleted" in raw["gamification"]

    def test_round_trip(self, populated_state):
        restored = deserialize_state(serialize_state(populated_state))

        assert restored == populated_state
        assert restored.tasks[1].parent == populated_state.tasks[0].id

    def test_level_is_derived_on_load(self, populated_state):
        """A stale stored level is ignored in favor of points."""
        raw = json.loads(serialize_state(populated_state))
        raw["gamification"]["level"] = 42

        restored = deserialize_state(json.dumps(raw))

        assert restored.gamification.level == 1


class TestMigration:
    """Tests for schema migration of legacy blobs."""

    def test_migrates_legacy_blob(self):
        state = deserialize_state(json.dumps(LEGACY_BLOB))

        assert state.schema_version == 1
        assert state.tasks[0].created_at == datetime.fromtimestamp(1710500000, tz=timezone.utc)
        assert state.tasks[0].is_subtask is False
        assert state.tasks[1].is_subtask is True
        assert state.tasks[1].parent == "t1"
        assert state.tasks[0].category == TaskCategory.WORK
        assert state.tasks[0].priority == TaskPriority.HIGH

        gamification = state.gamification
        assert gamification.points == 120
        assert gamification.level == 2
        assert gamification.total_tasks_completed == 12
        assert gamification.daily_challenges[0].points_reward == 20
        assert state.settings.theme == "dark"

    def test_legacy_toast_without_duration_is_sticky(self):
        state = deserialize_state(json.dumps(LEGACY_BLOB))

        assert state.toasts[0].duration == 0

    def test_current_version_is_untouched(self, populated_state):
        raw = json.loads(serialize_state(populated_state))

        assert migrate_blob(raw) == raw

    def test_rejects_newer_version(self):
        with pytest.raises(ValueError):
            migrate_blob({"schemaVersion": 99})

    def test_rejects_boolean_version(self):
        with pytest.raises(ValueError):
            migrate_blob({"schemaVersion": True})


class TestLoadState:
    """Tests for load-with-fallback."""

    def test_missing_blob_gives_initial_state(self):
        assert load_state(MemoryBlobStore()) == AppState()

    @pytest.mark.parametrize(
        "blob",
        [
            "{not json",
            "[]",
            '{"tasks": "nope"}',
            '{"schemaVersion": 99}',
            '{"schemaVersion": 1, "tasks": [{"title": "no timestamp"}]}',
            '{"schemaVersion": true, "tasks": []}',
            pytest.param("[" * 200000, id="deeply-nested"),
        ],
    )
    def test_malformed_blob_gives_initial_state(self, blob):
        store = MemoryBlobStore({"todoApp": blob})

        assert load_state(store) == AppState()

    def test_save_then_load(self, populated_state):
        store = MemoryBlobStore()

        save_state(store, populated_state)

        assert load_state(store) == populated_state

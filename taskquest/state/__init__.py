"""State - persistence and the state-owning AppStore

Components:
    persistence.py: Blob stores, serialization, schema migration
    service.py: AppStore, the only entry point for state mutations

The whole AppState is stored as one JSON blob under a fixed key and
rewritten after every mutation.
"""

from taskquest import DATA_DIR

DB_PATH = DATA_DIR / "taskquest.db"
STATE_KEY = "todoApp"

__all__ = ["DB_PATH", "STATE_KEY"]

"""
TaskQuest - gamified local task manager

Components:
    tasks/: Task domain model, task store operations, statistics
    gamification/: Points, streaks, daily challenges, achievements
    automation/: Toast notifications and periodic maintenance sweeps
    state/: Blob persistence and the state-owning AppStore
    ai/: Optional AI suggestions with fallback defaults

Usage:
    from taskquest.state.service import AppStore

    store = AppStore.open()
    store.add_task("Buy groceries")
"""

from pathlib import Path

__version__ = "0.1.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_ROOT = Path(__file__).parent
DATA_DIR = PROJECT_ROOT / "data"
ARGS_DIR = PROJECT_ROOT / "args"
CONFIG_PATH = ARGS_DIR / "taskquest.yaml"

__all__ = [
    "__version__",
    "PROJECT_ROOT",
    "PACKAGE_ROOT",
    "DATA_DIR",
    "ARGS_DIR",
    "CONFIG_PATH",
]

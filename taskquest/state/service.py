"""
Tool: App Store
Purpose: Own the AppState and serialize every mutation against it

The AppStore is the only way to change application state. Each public
mutator builds the complete next state with a pure transition function,
writes it through to the blob store and only then makes it current, all
while holding one lock. User actions and the periodic sweeps therefore
never interleave a read-modify-write.

Lifecycle:
    1. start(): load the persisted blob (falling back to the initial
       state on parse errors) and generate a daily challenge if none exist
    2. every mutation: full state serialized and written back
    3. sweeps: check_streak, check_daily_challenges, cleanup_toasts

Toasts with a duration schedule their own removal when a scheduler is
attached (the runner attaches one bound to its event loop); otherwise the toast
cleanup sweep removes them.

Usage:
    from taskquest.state.service import AppStore

    store = AppStore.open()
    store.add_task("Buy groceries", priority="high")
"""

from __future__ import annotations

import random
import threading
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from taskquest import PROJECT_ROOT
from taskquest.automation import DEFAULT_TOAST_DURATION_MS, notify
from taskquest.config_models import TaskQuestConfig, load_config
from taskquest.gamification import achievements, challenges, engine
from taskquest.logging_config import get_logger
from taskquest.state import STATE_KEY
from taskquest.state.persistence import (
    BlobStore,
    MemoryBlobStore,
    SQLiteBlobStore,
    load_state,
    save_state,
)
from taskquest.tasks import manager
from taskquest.tasks.models import AppState, Task, TaskCategory, TaskPriority, ToastType
from taskquest.tasks.stats import compute_stats

logger = get_logger(__name__)

Clock = Callable[[], datetime]
Scheduler = Callable[[float, Callable[[], Any]], Any]


def local_now() -> datetime:
    return datetime.now().astimezone()


class AppStore:
    """Single owner of the application state.

    Args:
        blob_store: Durable key/value store for the serialized state
        key: Blob key
        clock: Returns the current time (timezone-aware, local)
        rng: Random source for challenge generation
        toast_duration_ms: Default lifetime of toasts
    """

    def __init__(
        self,
        blob_store: BlobStore,
        key: str = STATE_KEY,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        toast_duration_ms: int = DEFAULT_TOAST_DURATION_MS,
    ):
        self.blob_store = blob_store
        self.key = key
        self.clock: Clock = clock or local_now
        self.rng = rng or random.Random()
        self.toast_duration_ms = toast_duration_ms
        self._scheduler: Optional[Scheduler] = None
        self._lock = threading.RLock()
        self._state = AppState()

    @classmethod
    def open(cls, config: Optional[TaskQuestConfig] = None, **kwargs: Any) -> "AppStore":
        """Build a store from configuration and start it."""
        config = config or load_config()
        storage = config.storage

        if storage.backend == "memory":
            blob_store: BlobStore = MemoryBlobStore()
        else:
            blob_store = SQLiteBlobStore(PROJECT_ROOT / storage.db_path)

        store = cls(
            blob_store,
            key=storage.state_key,
            toast_duration_ms=config.toasts.default_duration_ms,
            **kwargs,
        )
        store.start()
        return store

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> AppState:
        return self._state

    def start(self) -> AppState:
        """Load persisted state, seed the achievement catalog and make sure a daily challenge exists."""
        with self._lock:
            now = self.clock()
            loaded = load_state(self.blob_store, self.key)
            catalog = achievements.evaluate_achievements(loaded.gamification, now)
            if catalog != loaded.gamification.achievements:
                gamification = loaded.gamification.model_copy(update={"achievements": catalog})
                loaded = loaded.model_copy(update={"gamification": gamification})
            if not loaded.gamification.daily_challenges:
                loaded = challenges.generate_daily_challenge(loaded, now, self.rng)
            save_state(self.blob_store, loaded, self.key)
            self._state = loaded

        logger.info(
            f"Store started with {len(loaded.tasks)} task(s), "
            f"{len(loaded.gamification.daily_challenges)} challenge(s)"
        )
        return loaded

    def attach_scheduler(self, scheduler: Optional[Scheduler]) -> None:
        """Set the callable used to schedule toast removal (delay in seconds)."""
        self._scheduler = scheduler

    def _commit(self, transition: Callable[[AppState, datetime], AppState]) -> AppState:
        with self._lock:
            before = self._state
            after = transition(before, self.clock())
            if after is before:
                return before

            save_state(self.blob_store, after, self.key)
            self._state = after

        for toast in notify.new_toasts(before, after):
            self._schedule_dismiss(toast.id, toast.duration)
        return after

    def _schedule_dismiss(self, toast_id: str, duration_ms: int) -> None:
        if self._scheduler is None or duration_ms <= 0:
            return
        self._scheduler(duration_ms / 1000, lambda: self.dismiss_toast(toast_id))

    # ─────────────────────────────────────────────────────────────────────
    # Tasks
    # ─────────────────────────────────────────────────────────────────────

    def add_task(
        self,
        title: str,
        category: TaskCategory | str = TaskCategory.OTHER,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        estimated_time: Optional[int] = None,
        due_date: Optional[datetime] = None,
    ) -> Task:
        state = self._commit(
            lambda s, now: manager.add_task(
                s,
                title,
                now,
                category=category,
                priority=priority,
                estimated_time=estimated_time,
                due_date=due_date,
            )
        )
        return state.tasks[-1]

    def delete_task(self, task_id: str) -> AppState:
        return self._commit(lambda s, now: manager.delete_task(s, task_id, now))

    def add_subtasks(self, parent_id: str, titles: Iterable[str]) -> list[Task]:
        titles = list(titles)
        with self._lock:
            before = {t.id for t in self._state.tasks}
            state = self._commit(lambda s, now: manager.add_subtasks(s, parent_id, titles, now))
        return [t for t in state.tasks if t.id not in before and t.parent == parent_id]

    def toggle_task_completion(self, task_id: str) -> AppState:
        return self._commit(lambda s, now: manager.toggle_task_completion(s, task_id, now))

    def update_task_category(self, task_id: str, category: TaskCategory | str) -> AppState:
        return self._commit(lambda s, now: manager.update_task_category(s, task_id, category))

    def update_task_priority(self, task_id: str, priority: TaskPriority | str) -> AppState:
        return self._commit(lambda s, now: manager.update_task_priority(s, task_id, priority))

    def update_task_due_date(self, task_id: str, due_date: Optional[datetime]) -> AppState:
        return self._commit(lambda s, now: manager.update_task_due_date(s, task_id, due_date))

    def update_task_estimated_time(self, task_id: str, estimated_time: Optional[int]) -> AppState:
        return self._commit(
            lambda s, now: manager.update_task_estimated_time(s, task_id, estimated_time)
        )

    def get_tasks_by_category(self, category: TaskCategory | str) -> list[Task]:
        return manager.get_tasks_by_category(self._state, category)

    def get_filtered_tasks(self, **filters: Any) -> list[Task]:
        return manager.get_filtered_tasks(self._state, **filters)

    def stats(self) -> dict[str, Any]:
        return compute_stats(self._state, self.clock())

    # ─────────────────────────────────────────────────────────────────────
    # Gamification
    # ─────────────────────────────────────────────────────────────────────

    def generate_daily_challenge(self) -> AppState:
        return self._commit(lambda s, now: challenges.generate_daily_challenge(s, now, self.rng))

    def complete_challenge(self, challenge_id: str) -> AppState:
        return self._commit(lambda s, now: challenges.complete_challenge(s, challenge_id, now))

    def reset_streak(self) -> AppState:
        return self._commit(lambda s, now: engine.reset_streak(s))

    # ─────────────────────────────────────────────────────────────────────
    # Settings
    # ─────────────────────────────────────────────────────────────────────

    def update_theme(self, theme: str) -> AppState:
        def transition(s: AppState, now: datetime) -> AppState:
            if s.settings.theme == theme:
                return s
            settings = s.settings.model_validate({**s.settings.model_dump(), "theme": theme})
            return s.model_copy(update={"settings": settings})

        return self._commit(transition)

    # ─────────────────────────────────────────────────────────────────────
    # Toasts
    # ─────────────────────────────────────────────────────────────────────

    def show_toast(
        self,
        message: str,
        toast_type: ToastType | str = ToastType.INFO,
        duration: Optional[int] = None,
    ) -> AppState:
        duration = self.toast_duration_ms if duration is None else duration
        return self._commit(lambda s, now: notify.show_toast(s, message, now, toast_type, duration))

    def dismiss_toast(self, toast_id: str) -> AppState:
        return self._commit(lambda s, now: notify.dismiss_toast(s, toast_id))

    # ─────────────────────────────────────────────────────────────────────
    # Sweeps
    # ─────────────────────────────────────────────────────────────────────

    def check_streak(self) -> AppState:
        return self._commit(engine.check_streak)

    def check_daily_challenges(self) -> AppState:
        return self._commit(lambda s, now: challenges.sweep_expired_challenges(s, now, self.rng))

    def cleanup_toasts(self) -> AppState:
        return self._commit(notify.sweep_expired_toasts)

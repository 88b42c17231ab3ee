"""
Pydantic models for the TaskQuest application state.

Every component receives an ``AppState`` and returns a new one; models are
never mutated in place. Serialized field names are camelCase so the
persisted blob keeps the layout of the original web application.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from taskquest.automation import DEFAULT_TOAST_DURATION_MS
from taskquest.gamification import POINTS_PER_LEVEL
from taskquest.tasks import CATEGORY_LABELS

CURRENT_SCHEMA_VERSION = 1


def _ensure_aware(value: datetime) -> datetime:
    # Naive timestamps are read as local time
    if value.tzinfo is None:
        return value.astimezone()
    return value


Timestamp = Annotated[datetime, AfterValidator(_ensure_aware)]


def generate_id() -> str:
    """Generate a short unique ID."""
    return uuid.uuid4().hex[:12]


def level_for_points(points: int) -> int:
    return points // POINTS_PER_LEVEL + 1


# =============================================================================
# Enums
# =============================================================================


class TaskCategory(str, Enum):
    """Task categories."""

    WORK = "work"
    PERSONAL = "personal"
    STUDY = "study"
    HEALTH = "health"
    LEISURE = "leisure"
    OTHER = "other"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self.value]


class TaskPriority(str, Enum):
    """Task priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ChallengeType(str, Enum):
    """Daily challenge kinds. STREAK is declared but never generated."""

    TASK_COMPLETION = "task_completion"
    STREAK = "streak"
    CATEGORY_FOCUS = "category_focus"


class AchievementType(str, Enum):
    STREAK = "streak"
    TASK_COUNT = "task_count"
    LEVEL = "level"
    CATEGORY_MASTER = "category_master"


class ToastType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


# =============================================================================
# Entities
# =============================================================================


class StateModel(BaseModel):
    """Base for persisted models: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(StateModel):
    id: str = Field(default_factory=generate_id)
    title: str
    completed: bool = False
    created_at: Timestamp
    completed_at: Optional[Timestamp] = None
    parent: Optional[str] = None
    is_subtask: bool = False
    category: TaskCategory = TaskCategory.OTHER
    priority: TaskPriority = TaskPriority.MEDIUM
    estimated_time: Optional[int] = Field(default=None, ge=0)
    due_date: Optional[Timestamp] = None


class Challenge(StateModel):
    id: str = Field(default_factory=generate_id)
    title: str
    description: str
    type: ChallengeType
    requirement: int = Field(ge=1)
    progress: int = Field(default=0, ge=0)
    points_reward: int = Field(ge=0)
    completed: bool = False
    created_at: Timestamp
    expires_at: Timestamp
    category: Optional[TaskCategory] = None


class Achievement(StateModel):
    id: str
    name: str
    description: str
    icon: str
    type: AchievementType
    requirement: int
    unlocked: bool = False
    unlocked_at: Optional[Timestamp] = None


class Toast(StateModel):
    id: str = Field(default_factory=generate_id)
    message: str
    type: ToastType = ToastType.INFO
    duration: int = Field(default=DEFAULT_TOAST_DURATION_MS, ge=0)  # ms, 0 = until dismissed
    created_at: Timestamp


class GamificationState(StateModel):
    points: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    last_task_completed_at: Optional[Timestamp] = None
    streak_start_date: Optional[Timestamp] = None
    daily_challenges: list[Challenge] = Field(default_factory=list)
    achievements: list[Achievement] = Field(default_factory=list)
    total_tasks_completed: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def level(self) -> int:
        return level_for_points(self.points)


class UserSettings(StateModel):
    theme: Literal["light", "dark", "system"] = "system"
    name: Optional[str] = None
    avatar: Optional[str] = None


class AppState(StateModel):
    schema_version: int = CURRENT_SCHEMA_VERSION
    tasks: list[Task] = Field(default_factory=list)
    gamification: GamificationState = Field(default_factory=GamificationState)
    settings: UserSettings = Field(default_factory=UserSettings)
    toasts: list[Toast] = Field(default_factory=list)

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "Timestamp",
    "generate_id",
    "level_for_points",
    "TaskCategory",
    "TaskPriority",
    "ChallengeType",
    "AchievementType",
    "ToastType",
    "Task",
    "Challenge",
    "Achievement",
    "Toast",
    "GamificationState",
    "UserSettings",
    "AppState",
]

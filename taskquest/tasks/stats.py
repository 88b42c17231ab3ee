"""Read-only statistics over the task list."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

from taskquest.gamification import POINTS_PER_LEVEL
from taskquest.tasks.models import AppState, TaskCategory


def tasks_completed_today(state: AppState, now: datetime) -> int:
    today = now.date()
    return sum(
        1
        for t in state.tasks
        if t.completed and t.completed_at is not None and t.completed_at.astimezone(now.tzinfo).date() == today
    )


def average_completion_time(state: AppState) -> Optional[timedelta]:
    """Mean time from creation to completion of completed top-level tasks."""
    durations = [
        t.completed_at - t.created_at
        for t in state.tasks
        if t.completed and t.completed_at is not None and not t.is_subtask
    ]
    if not durations:
        return None
    return sum(durations, timedelta()) / len(durations)


def category_breakdown(state: AppState) -> dict[str, dict[str, int]]:
    breakdown = {c.value: {"count": 0, "completed": 0} for c in TaskCategory}
    for task in state.tasks:
        entry = breakdown[task.category.value]
        entry["count"] += 1
        if task.completed:
            entry["completed"] += 1
    return breakdown


def compute_stats(state: AppState, now: datetime) -> dict[str, Any]:
    """
    Summarize tasks and progress.

    Returns:
        dict with totals, completion rate (percent), per-category counts,
        tasks completed today, average completion time in minutes and
        progress towards the next level
    """
    total = len(state.tasks)
    completed = sum(1 for t in state.tasks if t.completed)
    average = average_completion_time(state)
    gamification = state.gamification

    return {
        "total_tasks": total,
        "completed_tasks": completed,
        "completion_rate": round(completed / total * 100, 1) if total else 0.0,
        "tasks_completed_today": tasks_completed_today(state, now),
        "average_completion_minutes": round(average.total_seconds() / 60, 1) if average else None,
        "categories": category_breakdown(state),
        "points": gamification.points,
        "level": gamification.level,
        "next_level_points": gamification.level * POINTS_PER_LEVEL,
        "streak": gamification.streak,
        "total_tasks_completed": gamification.total_tasks_completed,
        "achievements_unlocked": sum(1 for a in gamification.achievements if a.unlocked),
    }

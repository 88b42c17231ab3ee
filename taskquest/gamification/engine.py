"""
Tool: Gamification Engine
Purpose: Apply the rewards of completing a task

Called by the task store when a task changes completion state:
- completing: points, streak, level, challenge progress, achievements,
  then notifications (task completed, level up, streak milestone)
- un-completing: a neutral notification only; nothing is clawed back

The streak sweep (check_streak) is the only path that lowers a streak.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from taskquest.automation.notify import show_toast
from taskquest.gamification import (
    ANNOUNCEMENT_DURATION_MS,
    PRIORITY_MULTIPLIERS,
    STREAK_MILESTONE_EVERY,
    STREAK_MILESTONES,
    STREAK_RESET_HOURS,
    SUBTASK_POINTS,
    TOP_LEVEL_TASK_POINTS,
)
from taskquest.gamification.achievements import evaluate_achievements, newly_unlocked
from taskquest.tasks.models import (
    AppState,
    Challenge,
    ChallengeType,
    GamificationState,
    Task,
    ToastType,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def task_reward(task: Task) -> int:
    """Points for completing ``task``: base by depth, scaled by priority."""
    base = SUBTASK_POINTS if task.is_subtask else TOP_LEVEL_TASK_POINTS
    return round_half_up(base * PRIORITY_MULTIPLIERS.get(task.priority.value, 1.0))


def is_same_local_day(earlier: Optional[datetime], now: datetime) -> bool:
    if earlier is None:
        return False
    return earlier.astimezone(now.tzinfo).date() == now.date()


def is_streak_milestone(streak: int) -> bool:
    return streak in STREAK_MILESTONES or (streak > 0 and streak % STREAK_MILESTONE_EVERY == 0)


def advance_challenges(challenges: list[Challenge], task: Task) -> tuple[list[Challenge], int]:
    """
    Count a completed task towards every open challenge.

    Returns:
        (updated challenges, bonus points from challenges completed now)
    """
    updated: list[Challenge] = []
    bonus = 0

    for challenge in challenges:
        if challenge.completed:
            updated.append(challenge)
            continue

        counts = challenge.type == ChallengeType.TASK_COMPLETION or (
            challenge.type == ChallengeType.CATEGORY_FOCUS and challenge.category == task.category
        )
        if not counts:
            updated.append(challenge)
            continue

        progress = challenge.progress + 1
        completed = progress >= challenge.requirement
        if completed:
            bonus += challenge.points_reward
            logger.info(f"Challenge {challenge.id} completed, +{challenge.points_reward} points")

        updated.append(challenge.model_copy(update={"progress": progress, "completed": completed}))

    return updated, bonus


def apply_completion(state: AppState, task: Task, now: datetime) -> AppState:
    """
    Apply the rewards of ``task`` transitioning to completed.

    Args:
        state: State in which the task is already marked completed
        task: The task as it was before completion
        now: Completion time

    Returns:
        New state with gamification updated and notifications appended
    """
    before = state.gamification
    reward = task_reward(task)

    new_day = not is_same_local_day(before.last_task_completed_at, now)
    streak = before.streak + 1 if new_day else before.streak
    streak_start = before.streak_start_date
    if new_day and streak_start is None:
        streak_start = now

    challenges, bonus = advance_challenges(before.daily_challenges, task)

    gamification = before.model_copy(
        update={
            "points": before.points + reward + bonus,
            "streak": streak,
            "streak_start_date": streak_start,
            "last_task_completed_at": now,
            "total_tasks_completed": before.total_tasks_completed + 1,
            "daily_challenges": challenges,
        }
    )
    gamification = gamification.model_copy(
        update={"achievements": evaluate_achievements(gamification, now)}
    )

    for achievement in newly_unlocked(before.achievements, gamification.achievements):
        logger.info(f"Achievement unlocked: {achievement.id}")

    state = state.model_copy(update={"gamification": gamification})

    state = show_toast(
        state,
        f'Tarefa "{task.title}" concluída! +{reward} pontos',
        now,
        ToastType.SUCCESS,
    )
    if gamification.level > before.level:
        state = show_toast(
            state,
            f"Você subiu para o nível {gamification.level}! 🎉",
            now,
            ToastType.INFO,
            ANNOUNCEMENT_DURATION_MS,
        )
    if streak > before.streak and is_streak_milestone(streak):
        state = show_toast(
            state,
            f"Sequência de {streak} dias! Incrível! 🔥",
            now,
            ToastType.INFO,
            ANNOUNCEMENT_DURATION_MS,
        )

    return state


def apply_uncompletion(state: AppState, task: Task, now: datetime) -> AppState:
    """Un-completing keeps every reward; it only tells the user."""
    return show_toast(state, f'Tarefa "{task.title}" desmarcada', now, ToastType.INFO)


def reset_streak(state: AppState) -> AppState:
    gamification = state.gamification.model_copy(update={"streak": 0, "streak_start_date": None})
    return state.model_copy(update={"gamification": gamification})


def streak_expired(gamification: GamificationState, now: datetime) -> bool:
    last = gamification.last_task_completed_at
    if last is None:
        return False
    return now - last > timedelta(hours=STREAK_RESET_HOURS)


def check_streak(state: AppState, now: datetime) -> AppState:
    """Reset the streak after more than 48 hours without a completion."""
    if not streak_expired(state.gamification, now):
        return state
    if state.gamification.streak == 0 and state.gamification.streak_start_date is None:
        return state

    logger.info(f"Streak of {state.gamification.streak} day(s) expired, resetting")
    return reset_streak(state)

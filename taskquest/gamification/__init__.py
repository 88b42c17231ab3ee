"""Gamification - points, levels, streaks, daily challenges, achievements

Components:
    engine.py: Rewards applied when a task is completed, streak sweeps
    challenges.py: Daily challenge generation, expiry and manual completion
    achievements.py: Fixed achievement catalog and monotonic re-evaluation

Rules:
    - Completing a task is a one-way ratchet: un-completing it never takes
      points, streak days, challenge progress or achievements back.
    - The level is always points // 100 + 1.
    - A streak grows at most once per local calendar day and is reset only
      by the streak sweep after 48 hours without a completion.
"""

POINTS_PER_LEVEL = 100

# Base reward per completed task
TOP_LEVEL_TASK_POINTS = 10
SUBTASK_POINTS = 5

PRIORITY_MULTIPLIERS = {
    "high": 1.5,
    "medium": 1.0,
    "low": 0.8,
}

# Streak
STREAK_RESET_HOURS = 48
STREAK_MILESTONES = (3, 7)
STREAK_MILESTONE_EVERY = 10

# Toast durations (ms) for the more important announcements
ANNOUNCEMENT_DURATION_MS = 4000

__all__ = [
    "POINTS_PER_LEVEL",
    "TOP_LEVEL_TASK_POINTS",
    "SUBTASK_POINTS",
    "PRIORITY_MULTIPLIERS",
    "STREAK_RESET_HOURS",
    "STREAK_MILESTONES",
    "STREAK_MILESTONE_EVERY",
    "ANNOUNCEMENT_DURATION_MS",
]

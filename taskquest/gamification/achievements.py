"""
Tool: Achievement Evaluator
Purpose: Recompute the fixed achievement catalog from lifetime stats

The catalog is static: thresholds live here, not in the persisted state.
Evaluation is pure and monotonic. An achievement that is already unlocked
is carried over verbatim (including its unlocked_at), so re-running the
evaluation never relocks anything or moves an unlock timestamp.
"""

from __future__ import annotations

from datetime import datetime

from taskquest.tasks.models import Achievement, AchievementType, GamificationState

# (id, name, description, icon, type, requirement)
ACHIEVEMENT_CATALOG: tuple[tuple[str, str, str, str, AchievementType, int], ...] = (
    ("first_task", "Primeira Tarefa", "Complete sua primeira tarefa", "🎯", AchievementType.TASK_COUNT, 1),
    ("task_master_10", "Mestre das Tarefas I", "Complete 10 tarefas", "🏆", AchievementType.TASK_COUNT, 10),
    ("task_master_50", "Mestre das Tarefas II", "Complete 50 tarefas", "🌟", AchievementType.TASK_COUNT, 50),
    ("streak_3", "Consistência", "Mantenha um streak de 3 dias", "🔥", AchievementType.STREAK, 3),
    ("streak_7", "Semana Perfeita", "Mantenha um streak de 7 dias", "📅", AchievementType.STREAK, 7),
    ("level_5", "Novato Avançado", "Alcance o nível 5", "⭐", AchievementType.LEVEL, 5),
    ("level_10", "Produtividade Profissional", "Alcance o nível 10", "🌠", AchievementType.LEVEL, 10),
)


def stat_for(achievement_type: AchievementType, gamification: GamificationState) -> int:
    if achievement_type == AchievementType.TASK_COUNT:
        return gamification.total_tasks_completed
    if achievement_type == AchievementType.STREAK:
        return gamification.streak
    if achievement_type == AchievementType.LEVEL:
        return gamification.level
    return 0


def evaluate_achievements(gamification: GamificationState, now: datetime) -> list[Achievement]:
    """
    Evaluate every catalog entry against the current stats.

    Args:
        gamification: Stats to evaluate (points/level, streak, task count)
        now: Timestamp assigned to newly unlocked achievements

    Returns:
        Full catalog in fixed order, merged with the existing unlocks
    """
    existing = {a.id: a for a in gamification.achievements}
    evaluated: list[Achievement] = []

    for achievement_id, name, description, icon, achievement_type, requirement in ACHIEVEMENT_CATALOG:
        previous = existing.get(achievement_id)
        if previous is not None and previous.unlocked:
            evaluated.append(previous)
            continue

        unlocked = stat_for(achievement_type, gamification) >= requirement
        evaluated.append(
            Achievement(
                id=achievement_id,
                name=name,
                description=description,
                icon=icon,
                type=achievement_type,
                requirement=requirement,
                unlocked=unlocked,
                unlocked_at=now if unlocked else None,
            )
        )

    return evaluated


def newly_unlocked(before: list[Achievement], after: list[Achievement]) -> list[Achievement]:
    was_unlocked = {a.id for a in before if a.unlocked}
    return [a for a in after if a.unlocked and a.id not in was_unlocked]

"""
Tool: Daily Challenges
Purpose: Generate, expire and complete time-boxed bonus objectives

A daily challenge is drawn from one of two templates and expires at
23:59:59 local time on the day it was created. Generation appends; it
never replaces existing challenges, so several can be active at once.

The random source is injected so tests can seed it.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime

from taskquest.automation.notify import show_toast
from taskquest.gamification import ANNOUNCEMENT_DURATION_MS
from taskquest.gamification.achievements import evaluate_achievements
from taskquest.tasks.models import (
    AppState,
    Challenge,
    ChallengeType,
    TaskCategory,
    ToastType,
)

logger = logging.getLogger(__name__)


CHALLENGE_TEMPLATES = (
    {
        "title": "Concluir tarefas",
        "description": "Complete [requirement] tarefas hoje",
        "type": ChallengeType.TASK_COMPLETION,
        "requirement": (2, 4),
        "points_reward": (10, 30),
    },
    {
        "title": "Foco em categoria",
        "description": "Complete [requirement] tarefas da categoria [category]",
        "type": ChallengeType.CATEGORY_FOCUS,
        "requirement": (1, 2),
        "points_reward": (15, 30),
    },
)


def end_of_day(now: datetime) -> datetime:
    """23:59:59 of the calendar day of ``now``, in its own timezone."""
    return now.replace(hour=23, minute=59, second=59, microsecond=0)


def build_daily_challenge(now: datetime, rng: random.Random) -> Challenge:
    template = rng.choice(CHALLENGE_TEMPLATES)

    requirement = rng.randint(*template["requirement"])
    points_reward = rng.randint(*template["points_reward"])

    category = None
    if template["type"] == ChallengeType.CATEGORY_FOCUS:
        category = rng.choice(list(TaskCategory))

    description = template["description"].replace("[requirement]", str(requirement))
    description = description.replace("[category]", f'"{category.label}"' if category else "")

    return Challenge(
        title=template["title"],
        description=description,
        type=template["type"],
        requirement=requirement,
        progress=0,
        points_reward=points_reward,
        completed=False,
        created_at=now,
        expires_at=end_of_day(now),
        category=category,
    )


def generate_daily_challenge(state: AppState, now: datetime, rng: random.Random) -> AppState:
    """
    Append a freshly generated challenge.

    Args:
        state: Current application state
        now: Creation time; the challenge expires at the end of this day
        rng: Random source for template, requirement, reward and category

    Returns:
        New state with the challenge appended
    """
    challenge = build_daily_challenge(now, rng)
    logger.info(
        f"Generated daily challenge {challenge.id} ({challenge.type.value}, "
        f"requirement={challenge.requirement}, reward={challenge.points_reward})"
    )
    gamification = state.gamification.model_copy(
        update={"daily_challenges": [*state.gamification.daily_challenges, challenge]}
    )
    return state.model_copy(update={"gamification": gamification})


def sweep_expired_challenges(state: AppState, now: datetime, rng: random.Random) -> AppState:
    """
    Remove expired challenges and make sure at least one remains.

    A replacement is generated only when the sweep leaves the collection
    empty (or it was empty to begin with).
    """
    challenges = state.gamification.daily_challenges
    remaining = [c for c in challenges if not c.expires_at < now]

    if len(remaining) != len(challenges):
        logger.info(f"Removed {len(challenges) - len(remaining)} expired challenge(s)")
        gamification = state.gamification.model_copy(update={"daily_challenges": remaining})
        state = state.model_copy(update={"gamification": gamification})

    if not remaining:
        state = generate_daily_challenge(state, now, rng)

    return state


def complete_challenge(state: AppState, challenge_id: str, now: datetime) -> AppState:
    """
    Manually mark a challenge as completed and pay its reward.

    Unknown or already completed challenges are ignored.
    """
    challenge = next((c for c in state.gamification.daily_challenges if c.id == challenge_id), None)
    if challenge is None or challenge.completed:
        return state

    challenges = [
        c.model_copy(update={"completed": True}) if c.id == challenge_id else c
        for c in state.gamification.daily_challenges
    ]
    gamification = state.gamification.model_copy(
        update={
            "points": state.gamification.points + challenge.points_reward,
            "daily_challenges": challenges,
        }
    )
    gamification = gamification.model_copy(
        update={"achievements": evaluate_achievements(gamification, now)}
    )

    state = state.model_copy(update={"gamification": gamification})
    return show_toast(
        state,
        f'Desafio "{challenge.title}" concluído! +{challenge.points_reward} pontos',
        now,
        ToastType.SUCCESS,
        ANNOUNCEMENT_DURATION_MS,
    )

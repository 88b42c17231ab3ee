"""AI Suggestions - optional helpers for filling in new tasks

Components:
    suggestions.py: Time estimate, subtask breakdown, priority, motivation
    requests.py: Debounced, cancellable suggestions for the add-task form

Contract:
    Every call is stateless request/response and never raises into the
    task or gamification core. Failures (no API key, network, API errors,
    unparseable or invalid responses) degrade to the fallbacks below and
    are never retried automatically.
"""

FALLBACK_ESTIMATE_MINUTES = 30
FALLBACK_CONFIDENCE = "low"
FALLBACK_MOTIVATION = "Continue assim! Seu progresso é incrível."
SUBTASK_FAILURE_MESSAGE = "Erro ao gerar subtarefas. Tente novamente."

MIN_ESTIMATE_MINUTES = 1
MAX_ESTIMATE_MINUTES = 24 * 60

MAX_SUBTASKS = 5

CONFIDENCE_LEVELS = ("low", "medium", "high")

__all__ = [
    "FALLBACK_ESTIMATE_MINUTES",
    "FALLBACK_CONFIDENCE",
    "FALLBACK_MOTIVATION",
    "SUBTASK_FAILURE_MESSAGE",
    "MIN_ESTIMATE_MINUTES",
    "MAX_ESTIMATE_MINUTES",
    "MAX_SUBTASKS",
    "CONFIDENCE_LEVELS",
]

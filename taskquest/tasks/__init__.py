"""Task Engine - task store, domain model and statistics

Components:
    models.py: Pydantic entities shared by every component (Task, Challenge,
        Achievement, Toast, GamificationState, AppState)
    manager.py: Task CRUD as pure state transitions
    stats.py: Read-only statistics over the task list

Subtasks:
    A subtask points at its parent through ``parent``. Category and priority
    are copied from the parent when the subtask is created and are never
    synced afterwards. Subtasks cannot have subtasks of their own.
"""

# Portuguese labels shown in notifications and challenge descriptions
CATEGORY_LABELS = {
    "work": "Trabalho",
    "personal": "Pessoal",
    "study": "Estudo",
    "health": "Saúde",
    "leisure": "Lazer",
    "other": "Outros",
}

THEMES = ("light", "dark", "system")

__all__ = [
    "CATEGORY_LABELS",
    "THEMES",
]

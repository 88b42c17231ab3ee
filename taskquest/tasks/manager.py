"""
Tool: Task Manager
Purpose: CRUD operations for tasks with parent/subtask relationships

Every operation is a pure transition: it takes the current AppState and
returns a new one, leaving the input untouched. Operations on an unknown
task id are silent no-ops and return the state unchanged.

- Create tasks and subtasks (subtasks copy the parent's category/priority)
- Delete tasks, cascading to their subtasks
- Toggle completion, delegating rewards to the gamification engine
- Update individual fields, query by category or filters

Usage:
    from taskquest.tasks.manager import add_task, toggle_task_completion

    state = add_task(state, "Buy groceries", now=now)
    state = toggle_task_completion(state, state.tasks[-1].id, now=now)
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from taskquest.automation.notify import show_toast
from taskquest.gamification.engine import apply_completion, apply_uncompletion
from taskquest.tasks.models import AppState, Task, TaskCategory, TaskPriority, ToastType


def _replace_task(state: AppState, task_id: str, **changes) -> AppState:
    tasks = [t.model_copy(update=changes) if t.id == task_id else t for t in state.tasks]
    return state.model_copy(update={"tasks": tasks})


def add_task(
    state: AppState,
    title: str,
    now: datetime,
    category: TaskCategory | str = TaskCategory.OTHER,
    priority: TaskPriority | str = TaskPriority.MEDIUM,
    estimated_time: Optional[int] = None,
    due_date: Optional[datetime] = None,
) -> AppState:
    """
    Create a new top-level task.

    Args:
        state: Current application state
        title: Task title (the caller ensures it is not empty)
        now: Creation timestamp
        category: Task category
        priority: Task priority
        estimated_time: Estimated minutes, if known
        due_date: Due date, if any

    Returns:
        New state with the task appended and a success notification
    """
    task = Task(
        title=title,
        created_at=now,
        category=TaskCategory(category),
        priority=TaskPriority(priority),
        estimated_time=estimated_time,
        due_date=due_date,
    )
    state = state.model_copy(update={"tasks": [*state.tasks, task]})
    return show_toast(state, f'Tarefa "{title}" adicionada', now, ToastType.SUCCESS)


def delete_task(state: AppState, task_id: str, now: datetime) -> AppState:
    """
    Delete a task and all its subtasks.

    Args:
        state: Current application state
        task_id: Task to delete

    Returns:
        New state without the task and its subtasks
    """
    task = state.find_task(task_id)
    if task is None:
        return state

    removed = {task_id} | {t.id for t in state.tasks if t.parent == task_id}
    subtask_count = len(removed) - 1

    state = state.model_copy(update={"tasks": [t for t in state.tasks if t.id not in removed]})

    if subtask_count > 0:
        plural = "s" if subtask_count > 1 else ""
        message = f'Tarefa "{task.title}" e {subtask_count} subtarefa{plural} removidas'
    else:
        message = f'Tarefa "{task.title}" removida'

    return show_toast(state, message, now, ToastType.WARNING)


def add_subtasks(state: AppState, parent_id: str, titles: Iterable[str], now: datetime) -> AppState:
    """
    Add subtasks under an existing task.

    Subtasks inherit the parent's category and priority as they are right
    now; later changes to the parent are not propagated. Subtasks cannot
    have subtasks of their own, so a subtask parent is a no-op.

    Args:
        state: Current application state
        parent_id: Task that owns the new subtasks
        titles: One title per subtask

    Returns:
        New state with the subtasks appended and one aggregate notification
    """
    parent = state.find_task(parent_id)
    if parent is None or parent.is_subtask:
        return state

    subtasks = [
        Task(
            title=title,
            created_at=now,
            parent=parent_id,
            is_subtask=True,
            category=parent.category,
            priority=parent.priority,
        )
        for title in titles
    ]
    if not subtasks:
        return state

    state = state.model_copy(update={"tasks": [*state.tasks, *subtasks]})
    return show_toast(state, f"{len(subtasks)} subtarefas adicionadas", now, ToastType.SUCCESS)


def toggle_task_completion(state: AppState, task_id: str, now: datetime) -> AppState:
    """
    Flip a task between completed and pending.

    Completing a task applies its rewards; un-completing it only emits a
    notification (rewards are never reverted).

    Args:
        state: Current application state
        task_id: Task to toggle
        now: Completion time

    Returns:
        New state with the task toggled and gamification updated
    """
    task = state.find_task(task_id)
    if task is None:
        return state

    completing = not task.completed
    state = _replace_task(
        state,
        task_id,
        completed=completing,
        completed_at=now if completing else None,
    )

    if completing:
        return apply_completion(state, task, now)
    return apply_uncompletion(state, task, now)


def update_task_category(state: AppState, task_id: str, category: TaskCategory | str) -> AppState:
    if state.find_task(task_id) is None:
        return state
    return _replace_task(state, task_id, category=TaskCategory(category))


def update_task_priority(state: AppState, task_id: str, priority: TaskPriority | str) -> AppState:
    if state.find_task(task_id) is None:
        return state
    return _replace_task(state, task_id, priority=TaskPriority(priority))


def update_task_due_date(state: AppState, task_id: str, due_date: Optional[datetime]) -> AppState:
    if state.find_task(task_id) is None:
        return state
    return _replace_task(state, task_id, due_date=due_date)


def update_task_estimated_time(state: AppState, task_id: str, estimated_time: Optional[int]) -> AppState:
    if state.find_task(task_id) is None:
        return state
    return _replace_task(state, task_id, estimated_time=estimated_time)


def get_subtasks(state: AppState, parent_id: str) -> list[Task]:
    return [t for t in state.tasks if t.parent == parent_id]


def get_tasks_by_category(state: AppState, category: TaskCategory | str) -> list[Task]:
    """Top-level tasks in a category."""
    category = TaskCategory(category)
    return [t for t in state.tasks if t.category == category and t.parent is None]


def get_filtered_tasks(
    state: AppState,
    categories: Optional[Iterable[TaskCategory | str]] = None,
    completed: Optional[bool] = None,
    priorities: Optional[Iterable[TaskPriority | str]] = None,
) -> list[Task]:
    """
    Filter top-level tasks.

    Args:
        state: Current application state
        categories: Keep only these categories (empty/None = all)
        completed: Keep only completed (True) or pending (False) tasks
        priorities: Keep only these priorities (empty/None = all)

    Returns:
        Matching top-level tasks in stored order
    """
    category_set = {TaskCategory(c) for c in categories or ()}
    priority_set = {TaskPriority(p) for p in priorities or ()}

    result = []
    for task in state.tasks:
        if task.parent is not None:
            continue
        if category_set and task.category not in category_set:
            continue
        if completed is not None and task.completed != completed:
            continue
        if priority_set and task.priority not in priority_set:
            continue
        result.append(task)
    return result

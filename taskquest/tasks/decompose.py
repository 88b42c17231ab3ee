"""
Tool: Task Decomposer
Purpose: Break a task into AI-suggested subtasks and attach them

The AI only proposes titles; the subtasks are created through the store
like any other mutation. When the suggestion fails, nothing is added and
an error toast is shown instead.

Usage:
    result = await decompose_task(store, task_id)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from taskquest.ai.suggestions import generate_subtasks
from taskquest.config_models import AIConfig
from taskquest.state.service import AppStore
from taskquest.tasks.models import ToastType

logger = logging.getLogger(__name__)


async def decompose_task(
    store: AppStore,
    task_id: str,
    client: Optional[Any] = None,
    config: Optional[AIConfig] = None,
) -> dict[str, Any]:
    """
    Generate subtasks for a task and add them under it.

    Args:
        store: Application store
        task_id: Parent task
        client: Optional Anthropic client
        config: Optional AI configuration

    Returns:
        dict with success flag and the created subtasks, or an error
    """
    task = store.state.find_task(task_id)
    if task is None:
        return {"success": False, "error": f"Task not found: {task_id}"}

    suggestion = await generate_subtasks(task.title, client=client, config=config)
    if not suggestion.ok:
        store.show_toast(suggestion.error, ToastType.ERROR)
        return {"success": False, "error": suggestion.error}

    created = store.add_subtasks(task_id, suggestion.subtasks)
    logger.info(f"Added {len(created)} AI subtask(s) to {task_id}")
    return {"success": True, "subtasks": [t.model_dump(mode="json") for t in created]}

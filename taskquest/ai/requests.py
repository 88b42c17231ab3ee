"""
Tool: Form Suggester
Purpose: Debounced, cancellable AI suggestions while a task title is typed

While the user edits the title of a new task, each change restarts a short
debounce timer. When the title settles and is long enough, a time estimate
and a priority suggestion are requested in parallel. A newer title cancels
the pending request, and results that arrive for a title the user has
already moved away from are discarded instead of published.

Task creation never waits on this: the form may be submitted at any time
with whatever suggestion (if any) has been published.

Usage:
    suggester = FormSuggester(on_result=print)
    suggester.update("Preparar apresentação", existing_titles=["Comprar pão"])
    ...
    suggester.cancel()
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional

from pydantic import BaseModel

from taskquest.ai.suggestions import TimeEstimate, estimate_task_time, suggest_task_priority
from taskquest.config_models import AIConfig
from taskquest.logging_config import get_logger
from taskquest.tasks.models import AppState, TaskCategory, TaskPriority

logger = get_logger(__name__)

EstimateFn = Callable[..., Awaitable[TimeEstimate]]
PriorityFn = Callable[..., Awaitable[TaskPriority]]


class FormSuggestion(BaseModel):
    title: str
    estimate: TimeEstimate
    priority: TaskPriority


def open_task_titles(state: AppState) -> list[str]:
    """Titles of incomplete top-level tasks, used as priority context."""
    return [t.title for t in state.tasks if not t.completed and not t.is_subtask]


class FormSuggester:
    """Keeps at most one suggestion request in flight for the current title.

    Args:
        on_result: Called with each published FormSuggestion
        estimate: Coroutine function producing a TimeEstimate
        suggest_priority: Coroutine function producing a TaskPriority
        debounce_ms: Quiet period after the last title change
        min_title_length: Shorter titles never trigger a request
    """

    def __init__(
        self,
        on_result: Optional[Callable[[FormSuggestion], None]] = None,
        estimate: EstimateFn = estimate_task_time,
        suggest_priority: PriorityFn = suggest_task_priority,
        debounce_ms: int = 800,
        min_title_length: int = 6,
    ):
        self.on_result = on_result
        self.estimate = estimate
        self.suggest_priority = suggest_priority
        self.debounce_ms = debounce_ms
        self.min_title_length = min_title_length

        self.title = ""
        self.latest: Optional[FormSuggestion] = None
        self._pending: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, config: AIConfig, **kwargs) -> "FormSuggester":
        return cls(debounce_ms=config.debounce_ms, min_title_length=config.min_title_length, **kwargs)

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def update(
        self,
        title: str,
        category: TaskCategory | str | None = None,
        existing_titles: Iterable[str] = (),
        due_date: Optional[datetime] = None,
    ) -> Optional[asyncio.Task]:
        """
        Register a title change. Must be called from a running event loop.

        Returns:
            The scheduled request, or None when the title is too short or
            unchanged
        """
        title = title.strip()
        if title == self.title and self.pending:
            return self._pending

        self.cancel()
        self.title = title

        if len(title) < self.min_title_length:
            return None

        category_value = TaskCategory(category).value if category else None
        self._pending = asyncio.create_task(
            self._request(title, category_value, list(existing_titles), due_date)
        )
        return self._pending

    def cancel(self) -> None:
        """Abandon the in-flight request, if any."""
        if self.pending:
            self._pending.cancel()
            logger.debug(f"Cancelled suggestion request for {self.title!r}")
        self._pending = None

    async def _request(
        self,
        title: str,
        category: Optional[str],
        existing_titles: list[str],
        due_date: Optional[datetime],
    ) -> Optional[FormSuggestion]:
        await asyncio.sleep(self.debounce_ms / 1000)

        estimate, priority = await asyncio.gather(
            self.estimate(title, category),
            self.suggest_priority(title, existing_titles, due_date),
        )

        if title != self.title:
            logger.debug(f"Discarding suggestion for abandoned title {title!r}")
            return None

        suggestion = FormSuggestion(title=title, estimate=estimate, priority=priority)
        self.latest = suggestion
        if self.on_result is not None:
            self.on_result(suggestion)
        return suggestion

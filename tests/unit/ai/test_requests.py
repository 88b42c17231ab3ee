"""Tests for taskquest/ai/requests.py

The form suggester must:
- wait for the title to settle before asking the AI
- ignore titles that are too short
- cancel the pending request when the title changes
- never publish a suggestion for a title that is no longer current
"""

import asyncio

import pytest

from taskquest.ai.requests import FormSuggester, open_task_titles
from taskquest.ai.suggestions import TimeEstimate
from taskquest.tasks import manager
from taskquest.tasks.models import TaskPriority


class FakeAI:
    """Records calls and returns canned suggestions."""

    def __init__(self):
        self.estimate_calls = []
        self.priority_calls = []
        self.on_estimate = None

    async def estimate(self, title, category=None):
        self.estimate_calls.append((title, category))
        if self.on_estimate is not None:
            self.on_estimate()
        return TimeEstimate(estimated_time_minutes=25, confidence="medium")

    async def suggest_priority(self, title, existing_titles=(), due_date=None):
        self.priority_calls.append((title, list(existing_titles), due_date))
        return TaskPriority.HIGH


@pytest.fixture
def fake_ai():
    return FakeAI()


@pytest.fixture
def published():
    return []


@pytest.fixture
def suggester(fake_ai, published):
    return FormSuggester(
        on_result=published.append,
        estimate=fake_ai.estimate,
        suggest_priority=fake_ai.suggest_priority,
        debounce_ms=10,
        min_title_length=6,
    )


class TestFormSuggester:
    """Tests for debounced form suggestions."""

    @pytest.mark.asyncio
    async def test_publishes_suggestion(self, suggester, fake_ai, published):
        pending = suggester.update("Preparar apresentação", category="work", existing_titles=["Comprar pão"])

        suggestion = await pending

        assert suggestion.title == "Preparar apresentação"
        assert suggestion.estimate.estimated_time_minutes == 25
        assert suggestion.priority == TaskPriority.HIGH
        assert published == [suggestion]
        assert suggester.latest == suggestion
        assert fake_ai.estimate_calls == [("Preparar apresentação", "work")]
        assert fake_ai.priority_calls == [("Preparar apresentação", ["Comprar pão"], None)]

    @pytest.mark.asyncio
    async def test_short_title_is_ignored(self, suggester, fake_ai):
        assert suggester.update("Curto") is None

        await asyncio.sleep(0.03)

        assert fake_ai.estimate_calls == []
        assert suggester.pending is False

    @pytest.mark.asyncio
    async def test_title_change_cancels_pending(self, suggester, fake_ai, published):
        first = suggester.update("Preparar slides")
        second = suggester.update("Preparar slides finais")

        with pytest.raises(asyncio.CancelledError):
            await first
        await second

        assert [s.title for s in published] == ["Preparar slides finais"]
        assert fake_ai.estimate_calls == [("Preparar slides finais", None)]

    @pytest.mark.asyncio
    async def test_shortening_title_cancels_pending(self, suggester, fake_ai, published):
        first = suggester.update("Preparar slides")
        assert suggester.update("Prep") is None

        with pytest.raises(asyncio.CancelledError):
            await first

        assert published == []
        assert fake_ai.estimate_calls == []

    @pytest.mark.asyncio
    async def test_same_title_keeps_pending_request(self, suggester):
        first = suggester.update("Preparar slides")
        second = suggester.update("  Preparar slides ")

        assert second is first
        await first

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, suggester, fake_ai, published):
        """A reply for a title the user already left is never published."""
        fake_ai.on_estimate = lambda: setattr(suggester, "title", "Outro título")

        result = await suggester.update("Preparar slides")

        assert result is None
        assert published == []
        assert suggester.latest is None

    @pytest.mark.asyncio
    async def test_cancel(self, suggester, published):
        pending = suggester.update("Preparar slides")

        suggester.cancel()

        with pytest.raises(asyncio.CancelledError):
            await pending
        assert published == []

    def test_from_config(self, ai_config):
        suggester = FormSuggester.from_config(ai_config)

        assert suggester.debounce_ms == ai_config.debounce_ms
        assert suggester.min_title_length == ai_config.min_title_length


def test_open_task_titles(empty_state, now):
    """Only incomplete top-level tasks are offered as context."""
    state = manager.add_task(empty_state, "Open", now)
    state = manager.add_task(state, "Done", now)
    state = manager.toggle_task_completion(state, state.tasks[1].id, now)
    state = manager.add_subtasks(state, state.tasks[0].id, ["Child"], now)

    assert open_task_titles(state) == ["Open"]

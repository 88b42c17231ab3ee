"""Tests for taskquest/cli.py"""

import json
from unittest.mock import patch

import pytest

from taskquest import cli
from taskquest.config_models import TaskQuestConfig


@pytest.fixture
def memory_config():
    return TaskQuestConfig(storage={"backend": "memory"}, ai={"enabled": False})


def run_cli(args, config, capsys):
    with (
        patch("taskquest.cli.load_config", return_value=config),
        patch("taskquest.cli.setup_logging"),
        patch("taskquest.cli.load_dotenv"),
    ):
        code = cli.main(args)
    return code, json.loads(capsys.readouterr().out)


class TestDispatch:
    """Tests for action dispatch against a live store."""

    def parse(self, *argv):
        return cli.build_parser().parse_args(list(argv))

    def test_add_and_list(self, store, memory_config):
        result = cli.dispatch(
            store,
            memory_config,
            self.parse("--action", "add", "--title", "Relatório", "--category", "work", "--priority", "high"),
        )

        assert result["success"] is True
        assert result["task"]["title"] == "Relatório"
        assert result["toasts"][0]["message"] == 'Tarefa "Relatório" adicionada'

        listed = cli.dispatch(store, memory_config, self.parse("--action", "list", "--category", "work"))
        assert [t["title"] for t in listed["tasks"]] == ["Relatório"]

    def test_toggle_reports_toasts(self, store, memory_config):
        task = store.add_task("Relatório", priority="high")

        result = cli.dispatch(store, memory_config, self.parse("--action", "toggle", "--task-id", task.id))

        assert result["task"]["completed"] is True
        assert any("+15 pontos" in t["message"] for t in result["toasts"])

    def test_explicit_subtasks(self, store, memory_config):
        task = store.add_task("Viagem")

        result = cli.dispatch(
            store,
            memory_config,
            self.parse("--action", "subtasks", "--task-id", task.id, "--subtask", "Mala", "--subtask", "Passagem"),
        )

        assert [s["title"] for s in result["subtasks"]] == ["Mala", "Passagem"]

    def test_ai_subtasks_failure(self, store, memory_config):
        """With AI disabled, subtask generation fails explicitly."""
        task = store.add_task("Viagem")

        result = cli.dispatch(store, memory_config, self.parse("--action", "subtasks", "--task-id", task.id))

        assert result["success"] is False
        assert [t.parent for t in store.state.tasks] == [None]

    def test_update(self, store, memory_config):
        task = store.add_task("Viagem", estimated_time=30)

        result = cli.dispatch(
            store,
            memory_config,
            self.parse("--action", "update", "--task-id", task.id, "--priority", "low", "--minutes", "0"),
        )

        assert result["task"]["priority"] == "low"
        assert result["task"]["estimated_time"] is None
        assert store.state.find_task(task.id).estimated_time is None

    def test_missing_task_id(self, store, memory_config):
        result = cli.dispatch(store, memory_config, self.parse("--action", "toggle"))

        assert result == {"success": False, "error": "--task-id required for toggle"}

    def test_challenge_and_theme(self, store, memory_config):
        challenge = store.state.gamification.daily_challenges[0]

        result = cli.dispatch(
            store, memory_config, self.parse("--action", "challenge", "--challenge-id", challenge.id)
        )
        assert result["success"] is True
        assert store.state.gamification.points == challenge.points_reward

        result = cli.dispatch(store, memory_config, self.parse("--action", "theme", "--theme", "dark"))
        assert result["settings"]["theme"] == "dark"

    def test_motivate_falls_back(self, store, memory_config):
        result = cli.dispatch(store, memory_config, self.parse("--action", "motivate"))

        assert result == {"success": True, "message": "Continue assim! Seu progresso é incrível."}

    def test_suggest_with_short_title(self, store, memory_config):
        result = cli.dispatch(store, memory_config, self.parse("--action", "suggest", "--title", "Oi"))

        assert result["success"] is False

    def test_suggest_falls_back(self, store, memory_config):
        """Without an API key the form suggestion uses the fallbacks."""
        memory_config.ai.debounce_ms = 0

        result = cli.dispatch(
            store, memory_config, self.parse("--action", "suggest", "--title", "Preparar apresentação")
        )

        assert result["success"] is True
        assert result["suggestion"]["estimate"] == {"estimated_time_minutes": 30, "confidence": "low"}
        assert result["suggestion"]["priority"] == "medium"


class TestMain:
    """Tests for the entry point."""

    def test_status(self, memory_config, capsys):
        code, result = run_cli(["--action", "status"], memory_config, capsys)

        assert code == 0
        assert result["gamification"]["level"] == 1
        assert len(result["gamification"]["daily_challenges"]) == 1

    def test_stats(self, memory_config, capsys):
        code, result = run_cli(["--action", "stats"], memory_config, capsys)

        assert code == 0
        assert result["stats"]["total_tasks"] == 0

    def test_failure_exit_code(self, memory_config, capsys):
        code, result = run_cli(["--action", "add", "--title", "   "], memory_config, capsys)

        assert code == 1
        assert result["success"] is False

    def test_rejects_unknown_action(self, memory_config):
        with patch("taskquest.cli.setup_logging"), pytest.raises(SystemExit):
            cli.main(["--action", "explode"])

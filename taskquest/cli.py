#!/usr/bin/env python3
"""
TaskQuest Command Line Interface

Main entry point for the `taskquest` command. Every action prints a JSON
result; mutations also list the toasts they produced.

Usage:
    taskquest --action add --title "Preparar apresentação" --category work --priority high
    taskquest --action list --completed false --category work
    taskquest --action toggle --task-id abc123
    taskquest --action subtasks --task-id abc123                 # AI breakdown
    taskquest --action subtasks --task-id abc123 --subtask "Passo 1" --subtask "Passo 2"
    taskquest --action update --task-id abc123 --minutes 45 --due 2026-10-20T18:00
    taskquest --action challenge --challenge-id def456
    taskquest --action suggest --title "Preparar apresentação"
    taskquest --action status
    taskquest --action run                                       # maintenance loops
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import Any, Optional

from dotenv import load_dotenv

from taskquest import __version__
from taskquest.ai.requests import FormSuggester, open_task_titles
from taskquest.ai.suggestions import generate_motivational_message
from taskquest.automation import notify
from taskquest.automation.runner import MaintenanceRunner
from taskquest.automation.runner import run as run_maintenance
from taskquest.config_models import TaskQuestConfig, load_config
from taskquest.logging_config import setup_logging
from taskquest.state.service import AppStore
from taskquest.tasks import THEMES
from taskquest.tasks.decompose import decompose_task
from taskquest.tasks.models import AppState, TaskCategory, TaskPriority
from taskquest.tasks.stats import tasks_completed_today

ACTIONS = [
    "add",
    "list",
    "toggle",
    "delete",
    "subtasks",
    "update",
    "challenge",
    "new-challenge",
    "theme",
    "status",
    "stats",
    "suggest",
    "motivate",
    "dismiss",
    "run",
]

CATEGORIES = [c.value for c in TaskCategory]
PRIORITIES = [p.value for p in TaskPriority]


def parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("true", "yes", "1"):
        return True
    if lowered in ("false", "no", "0"):
        return False
    raise argparse.ArgumentTypeError(f"Expected true/false, got {value!r}")


def parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _mutation_result(before: AppState, after: AppState, **extra: Any) -> dict[str, Any]:
    return {
        "success": True,
        **extra,
        "toasts": [t.model_dump(mode="json") for t in notify.new_toasts(before, after)],
    }


def open_store(config: TaskQuestConfig) -> AppStore:
    """Open the store and catch up on the sweeps missed while closed."""
    store = AppStore.open(config)
    MaintenanceRunner(store, config.sweeps).run_sweeps_once()
    return store


def cmd_suggest(store: AppStore, config: TaskQuestConfig, args: argparse.Namespace) -> dict[str, Any]:
    suggester = FormSuggester.from_config(config.ai)

    async def request():
        pending = suggester.update(
            args.title,
            category=args.category,
            existing_titles=open_task_titles(store.state),
            due_date=args.due,
        )
        if pending is None:
            return None
        return await pending

    suggestion = asyncio.run(request())
    if suggestion is None:
        return {
            "success": False,
            "error": f"Title must have at least {config.ai.min_title_length} characters",
        }
    return {"success": True, "suggestion": suggestion.model_dump(mode="json")}


def cmd_motivate(store: AppStore, config: TaskQuestConfig) -> dict[str, Any]:
    gamification = store.state.gamification
    message = asyncio.run(
        generate_motivational_message(
            points=gamification.points,
            level=gamification.level,
            streak=gamification.streak,
            tasks_completed_today=tasks_completed_today(store.state, store.clock()),
            config=config.ai,
        )
    )
    return {"success": True, "message": message}


def dispatch(store: AppStore, config: TaskQuestConfig, args: argparse.Namespace) -> dict[str, Any]:
    before = store.state

    if args.action == "add":
        title = (args.title or "").strip()
        if not title:
            return {"success": False, "error": "--title required for add"}
        task = store.add_task(
            title,
            category=args.category or TaskCategory.OTHER,
            priority=args.priority or TaskPriority.MEDIUM,
            estimated_time=args.minutes,
            due_date=args.due,
        )
        return _mutation_result(before, store.state, task=task.model_dump(mode="json"))

    if args.action == "list":
        tasks = store.get_filtered_tasks(
            categories=[args.category] if args.category else None,
            completed=args.completed,
            priorities=[args.priority] if args.priority else None,
        )
        return {
            "success": True,
            "tasks": [
                {
                    **t.model_dump(mode="json"),
                    "subtasks": [
                        s.model_dump(mode="json") for s in store.state.tasks if s.parent == t.id
                    ],
                }
                for t in tasks
            ],
        }

    if args.action in ("toggle", "delete", "subtasks", "update") and not args.task_id:
        return {"success": False, "error": f"--task-id required for {args.action}"}

    if args.action == "toggle":
        store.toggle_task_completion(args.task_id)
        return _mutation_result(before, store.state, task=_dump_task(store, args.task_id))

    if args.action == "delete":
        store.delete_task(args.task_id)
        return _mutation_result(before, store.state)

    if args.action == "subtasks":
        if args.subtask:
            created = store.add_subtasks(args.task_id, args.subtask)
            return _mutation_result(
                before, store.state, subtasks=[t.model_dump(mode="json") for t in created]
            )
        result = asyncio.run(decompose_task(store, args.task_id, config=config.ai))
        if not result["success"]:
            return result
        return _mutation_result(before, store.state, subtasks=result["subtasks"])

    if args.action == "update":
        if args.category:
            store.update_task_category(args.task_id, args.category)
        if args.priority:
            store.update_task_priority(args.task_id, args.priority)
        if args.clear_due:
            store.update_task_due_date(args.task_id, None)
        elif args.due:
            store.update_task_due_date(args.task_id, args.due)
        if args.minutes is not None:
            store.update_task_estimated_time(args.task_id, args.minutes or None)
        return _mutation_result(before, store.state, task=_dump_task(store, args.task_id))

    if args.action == "challenge":
        if not args.challenge_id:
            return {"success": False, "error": "--challenge-id required for challenge"}
        store.complete_challenge(args.challenge_id)
        return _mutation_result(before, store.state)

    if args.action == "new-challenge":
        store.generate_daily_challenge()
        challenge = store.state.gamification.daily_challenges[-1]
        return _mutation_result(before, store.state, challenge=challenge.model_dump(mode="json"))

    if args.action == "theme":
        if not args.theme:
            return {"success": False, "error": "--theme required for theme"}
        store.update_theme(args.theme)
        return {"success": True, "settings": store.state.settings.model_dump(mode="json")}

    if args.action == "status":
        state = store.state
        return {
            "success": True,
            "gamification": state.gamification.model_dump(mode="json"),
            "settings": state.settings.model_dump(mode="json"),
            "toasts": [t.model_dump(mode="json") for t in state.toasts],
        }

    if args.action == "stats":
        return {"success": True, "stats": store.stats()}

    if args.action == "suggest":
        if not args.title:
            return {"success": False, "error": "--title required for suggest"}
        return cmd_suggest(store, config, args)

    if args.action == "motivate":
        return cmd_motivate(store, config)

    if args.action == "dismiss":
        if not args.toast_id:
            return {"success": False, "error": "--toast-id required for dismiss"}
        store.dismiss_toast(args.toast_id)
        return {"success": True, "toasts": [t.model_dump(mode="json") for t in store.state.toasts]}

    return {"success": False, "error": f"Unknown action: {args.action}"}


def _dump_task(store: AppStore, task_id: str) -> Optional[dict[str, Any]]:
    task = store.state.find_task(task_id)
    return task.model_dump(mode="json") if task else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskquest",
        description="TaskQuest - gamified task manager",
    )
    parser.add_argument("--version", action="version", version=f"taskquest {__version__}")
    parser.add_argument("--action", required=True, choices=ACTIONS, help="Action to perform")

    # Identification
    parser.add_argument("--task-id", help="Task ID")
    parser.add_argument("--challenge-id", help="Daily challenge ID")
    parser.add_argument("--toast-id", help="Toast ID")

    # Task fields and filters
    parser.add_argument("--title", help="Task title")
    parser.add_argument("--category", choices=CATEGORIES, help="Task category")
    parser.add_argument("--priority", choices=PRIORITIES, help="Task priority")
    parser.add_argument("--minutes", type=int, help="Estimated minutes (0 clears)")
    parser.add_argument("--due", type=parse_datetime, help="Due date (ISO 8601)")
    parser.add_argument("--clear-due", action="store_true", help="Remove the due date")
    parser.add_argument("--completed", type=parse_bool, help="Filter by completion (true/false)")
    parser.add_argument(
        "--subtask", action="append", help="Subtask title (repeatable; omit to ask the AI)"
    )

    # Settings
    parser.add_argument("--theme", choices=THEMES, help="UI theme")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    setup_logging()

    args = build_parser().parse_args(argv)
    config = load_config()

    if args.action == "run":
        result = run_maintenance(config)
    else:
        result = dispatch(open_store(config), config, args)

    print(json.dumps(result, indent=2, default=str, ensure_ascii=False))
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())

"""
Tool: Maintenance Runner
Purpose: Run the periodic state sweeps while the app is open

Loops:
- Streak check (default every 6 hours): reset a streak left idle > 48 h
- Challenge check (default every hour): drop expired daily challenges and
  generate a new one when none are left
- Toast cleanup (default every 5 seconds): remove expired toasts

Every sweep goes through the AppStore, so sweeps and user actions never
interleave. The runner also attaches a scheduler bound to its event loop to
the store, letting each toast remove itself once its duration has elapsed.
The scheduler hands the timer to the loop with ``call_soon_threadsafe``, so
mutations made on other threads can schedule removals too.

Usage:
    python -m taskquest.automation.runner --start
    python -m taskquest.automation.runner --status

Dependencies:
    - asyncio (stdlib)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from datetime import datetime
from typing import Any, Callable, Optional

from taskquest.config_models import SweepsConfig, TaskQuestConfig, load_config
from taskquest.logging_config import setup_logging
from taskquest.state.service import AppStore, Scheduler

logger = logging.getLogger(__name__)


def loop_scheduler(loop: asyncio.AbstractEventLoop) -> Scheduler:
    """Scheduler that arms ``loop.call_later`` from any thread."""

    def schedule(delay: float, callback: Callable[[], Any]) -> None:
        loop.call_soon_threadsafe(loop.call_later, delay, callback)

    return schedule


class MaintenanceRunner:
    """Orchestrates the sweep loops for one AppStore."""

    def __init__(self, store: AppStore, sweeps: Optional[SweepsConfig] = None):
        self.store = store
        self.sweeps = sweeps or SweepsConfig()
        self.running = False
        self.tasks: list[asyncio.Task] = []
        self.start_time: datetime | None = None
        self._stopped: Optional[asyncio.Event] = None

        self.component_status: dict[str, dict[str, Any]] = {
            name: {"running": False, "last_run": None, "errors": 0}
            for name in ("streak", "challenges", "toasts")
        }

    def _loops(self) -> list[tuple[str, Callable[[], Any], float]]:
        return [
            ("streak", self.store.check_streak, self.sweeps.streak_check_seconds),
            ("challenges", self.store.check_daily_challenges, self.sweeps.challenge_check_seconds),
            ("toasts", self.store.cleanup_toasts, self.sweeps.toast_cleanup_seconds),
        ]

    def run_sweeps_once(self) -> None:
        """Run every sweep one time, in loop order."""
        for name, sweep, _ in self._loops():
            self._run_sweep(name, sweep)

    def _run_sweep(self, name: str, sweep: Callable[[], Any]) -> None:
        status = self.component_status[name]
        try:
            sweep()
        except Exception as e:
            # A failed sweep is retried on its next tick
            logger.error(f"{name} sweep failed: {e}")
            status["errors"] += 1
        status["last_run"] = self.store.clock().isoformat()

    async def _run_loop(self, name: str, sweep: Callable[[], Any], interval: float) -> None:
        self.component_status[name]["running"] = True
        try:
            while self.running:
                self._run_sweep(name, sweep)
                await asyncio.sleep(interval)
        finally:
            self.component_status[name]["running"] = False

    def _setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for signum in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(signum, self.stop)
            except (NotImplementedError, RuntimeError):
                # Signal handlers are only available on the main thread of Unix loops
                pass

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for signum in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.remove_signal_handler(signum)
            except (NotImplementedError, RuntimeError):
                pass

    async def start(self) -> bool:
        """Start all sweep loops and wait until stop() is called."""
        if self.running:
            logger.warning("Maintenance runner already running")
            return False

        loop = asyncio.get_running_loop()
        self.running = True
        self.start_time = datetime.now()
        self._stopped = asyncio.Event()

        self.store.attach_scheduler(loop_scheduler(loop))
        self._setup_signal_handlers(loop)

        for name, sweep, interval in self._loops():
            self.tasks.append(asyncio.create_task(self._run_loop(name, sweep, interval)))
            logger.info(f"Started: {name} sweep every {interval:g}s")

        await self._stopped.wait()

        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()

        self._remove_signal_handlers(loop)
        self.store.attach_scheduler(None)
        logger.info("Maintenance runner stopped")
        return True

    def stop(self) -> None:
        """Ask the running loops to finish."""
        if not self.running:
            return
        logger.info("Maintenance runner shutting down...")
        self.running = False
        if self._stopped is not None:
            self._stopped.set()

    def get_status(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "uptime_seconds": (datetime.now() - self.start_time).total_seconds()
            if self.start_time
            else 0,
            "components": self.component_status,
        }


def run(config: Optional[TaskQuestConfig] = None) -> dict[str, Any]:
    """Open the store from configuration and run until interrupted."""
    config = config or load_config()
    store = AppStore.open(config)
    runner = MaintenanceRunner(store, config.sweeps)
    success = asyncio.run(runner.start())
    return {"success": success, "status": runner.get_status()}


def main():
    parser = argparse.ArgumentParser(description="TaskQuest maintenance runner")
    parser.add_argument("--start", action="store_true", help="Run the sweep loops")
    parser.add_argument("--once", action="store_true", help="Run every sweep once and exit")
    parser.add_argument("--status", action="store_true", help="Show configured sweep intervals")

    args = parser.parse_args()
    setup_logging()
    config = load_config()

    if args.start:
        result = run(config)
    elif args.once:
        runner = MaintenanceRunner(AppStore.open(config), config.sweeps)
        runner.run_sweeps_once()
        result = {"success": True, "status": runner.get_status()}
    elif args.status:
        result = {"success": True, "sweeps": config.sweeps.model_dump()}
    else:
        parser.print_help()
        sys.exit(0)

    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()

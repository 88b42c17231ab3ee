"""Automation - notifications and background maintenance

Components:
    notify.py: Toast queue transitions (show, dismiss, expiry sweep)
    runner.py: Periodic sweeps for streaks, daily challenges and toasts

Usage:
    python -m taskquest.automation.runner --start
"""

# Default sweep intervals (seconds), overridable in args/taskquest.yaml
STREAK_CHECK_INTERVAL = 6 * 60 * 60
CHALLENGE_CHECK_INTERVAL = 60 * 60
TOAST_CLEANUP_INTERVAL = 5

DEFAULT_TOAST_DURATION_MS = 3000

__all__ = [
    "STREAK_CHECK_INTERVAL",
    "CHALLENGE_CHECK_INTERVAL",
    "TOAST_CLEANUP_INTERVAL",
    "DEFAULT_TOAST_DURATION_MS",
]

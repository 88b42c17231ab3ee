"""
Tool: Toast Notifications
Purpose: Ephemeral, timed messages attached to the application state

Toasts are created by task and gamification actions and leave the state
in one of two ways:
- explicit dismissal (idempotent, unknown ids are ignored)
- the expiry sweep, once created_at + duration has passed

A duration of 0 means the toast stays until dismissed. Scheduling the
timed removal is the AppStore's job; these functions only transform state.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from taskquest.automation import DEFAULT_TOAST_DURATION_MS
from taskquest.tasks.models import AppState, Toast, ToastType


def show_toast(
    state: AppState,
    message: str,
    now: datetime,
    toast_type: ToastType | str = ToastType.INFO,
    duration: int = DEFAULT_TOAST_DURATION_MS,
) -> AppState:
    """
    Append a toast to the state.

    Args:
        state: Current application state
        message: Text shown to the user
        now: Creation timestamp
        toast_type: success, error, info or warning
        duration: Lifetime in milliseconds (0 = until dismissed)

    Returns:
        New state with the toast appended
    """
    toast = Toast(
        message=message,
        type=ToastType(toast_type),
        duration=duration,
        created_at=now,
    )
    return state.model_copy(update={"toasts": [*state.toasts, toast]})


def dismiss_toast(state: AppState, toast_id: str) -> AppState:
    if not any(t.id == toast_id for t in state.toasts):
        return state
    return state.model_copy(update={"toasts": [t for t in state.toasts if t.id != toast_id]})


def toast_expired(toast: Toast, now: datetime) -> bool:
    if toast.duration <= 0:
        return False
    return toast.created_at + timedelta(milliseconds=toast.duration) < now


def sweep_expired_toasts(state: AppState, now: datetime) -> AppState:
    """Drop toasts whose timers were skipped or cancelled."""
    remaining = [t for t in state.toasts if not toast_expired(t, now)]
    if len(remaining) == len(state.toasts):
        return state
    return state.model_copy(update={"toasts": remaining})


def new_toasts(before: AppState, after: AppState) -> list[Toast]:
    """Toasts present in ``after`` but not in ``before``."""
    known = {t.id for t in before.toasts}
    return [t for t in after.toasts if t.id not in known]

from __future__ import annotations

import logging
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from taskquest import ARGS_DIR
from taskquest.automation import (
    CHALLENGE_CHECK_INTERVAL,
    DEFAULT_TOAST_DURATION_MS,
    STREAK_CHECK_INTERVAL,
    TOAST_CLEANUP_INTERVAL,
)

logger = logging.getLogger(__name__)


# =============================================================================
# TaskQuestConfig (args/taskquest.yaml)
# =============================================================================

class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    backend: Literal["sqlite", "memory"] = Field(default="sqlite")
    db_path: str = Field(default="data/taskquest.db")
    state_key: str = Field(default="todoApp")


class SweepsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    streak_check_seconds: float = Field(default=STREAK_CHECK_INTERVAL, gt=0)
    challenge_check_seconds: float = Field(default=CHALLENGE_CHECK_INTERVAL, gt=0)
    toast_cleanup_seconds: float = Field(default=TOAST_CLEANUP_INTERVAL, gt=0)


class ToastsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    default_duration_ms: int = Field(default=DEFAULT_TOAST_DURATION_MS, ge=0)


class AIConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=True)
    model: str = Field(default="claude-3-5-haiku-latest")
    api_key_env: str = Field(default="ANTHROPIC_API_KEY")
    max_tokens: int = Field(default=300, ge=1)
    timeout_seconds: float = Field(default=20.0, gt=0)
    debounce_ms: int = Field(default=800, ge=0)
    min_title_length: int = Field(default=6, ge=1)


class TaskQuestConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sweeps: SweepsConfig = Field(default_factory=SweepsConfig)
    toasts: ToastsConfig = Field(default_factory=ToastsConfig)
    ai: AIConfig = Field(default_factory=AIConfig)


_CONFIG_MAP: dict[str, type[BaseModel]] = {
    "taskquest": TaskQuestConfig,
}


def load_and_validate(config_name: str, model_class: Optional[type[BaseModel]] = None) -> BaseModel:
    if model_class is None:
        model_class = _CONFIG_MAP.get(config_name)
        if model_class is None:
            raise ValueError(f"Unknown config: {config_name}. Available: {list(_CONFIG_MAP.keys())}")

    yaml_path = ARGS_DIR / f"{config_name}.yaml"

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        return model_class.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {config_name}: {e}, using defaults")
        return model_class()


def load_config() -> TaskQuestConfig:
    """Load the application configuration from args/taskquest.yaml."""
    return load_and_validate("taskquest")  # type: ignore[return-value]

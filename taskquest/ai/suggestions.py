"""
Tool: AI Suggestions
Purpose: Ask an LLM for task metadata, with documented fallbacks

Operations:
    estimate_task_time: minutes (1-1440) and a confidence level
    generate_subtasks: 3-5 short subtask titles
    suggest_task_priority: low, medium or high
    generate_motivational_message: one or two encouraging sentences

Each operation accepts an optional Anthropic client (tests inject a mock)
and an optional AIConfig. On any failure the fallback value is returned;
subtask generation reports failure explicitly instead of inventing
subtasks.

Dependencies:
    - anthropic
"""

from __future__ import annotations

import json
import math
import os
import re
from datetime import datetime
from typing import Any, Iterable, Literal, Optional

import anthropic
from pydantic import BaseModel, Field, field_validator

from taskquest.ai import (
    FALLBACK_CONFIDENCE,
    FALLBACK_ESTIMATE_MINUTES,
    FALLBACK_MOTIVATION,
    MAX_ESTIMATE_MINUTES,
    MAX_SUBTASKS,
    MIN_ESTIMATE_MINUTES,
    SUBTASK_FAILURE_MESSAGE,
)
from taskquest.config_models import AIConfig, load_config
from taskquest.logging_config import get_logger
from taskquest.tasks.models import TaskPriority

logger = get_logger(__name__)


class AIUnavailableError(RuntimeError):
    """AI suggestions are disabled or no API key is configured."""


class TimeEstimate(BaseModel):
    estimated_time_minutes: int = Field(ge=MIN_ESTIMATE_MINUTES, le=MAX_ESTIMATE_MINUTES)
    confidence: Literal["low", "medium", "high"]

    @classmethod
    def fallback(cls) -> "TimeEstimate":
        return cls(estimated_time_minutes=FALLBACK_ESTIMATE_MINUTES, confidence=FALLBACK_CONFIDENCE)


class RawEstimate(BaseModel):
    """Shape expected from the model before clamping."""

    estimatedTimeMinutes: float
    confidence: Literal["low", "medium", "high"]

    @field_validator("estimatedTimeMinutes", mode="before")
    @classmethod
    def reject_non_numeric(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("estimatedTimeMinutes must be a number")
        if not math.isfinite(value):
            raise ValueError("estimatedTimeMinutes must be finite")
        return value


class SubtaskSuggestion(BaseModel):
    subtasks: list[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ─────────────────────────────────────────────────────────────────────────────
# Prompts
# ─────────────────────────────────────────────────────────────────────────────

SUBTASKS_SYSTEM = """Você é um assistente de produtividade e organização.
Divida a tarefa recebida em subtarefas menores, específicas e executáveis.
Responda APENAS com uma lista de 3 a 5 subtarefas, uma por linha, sem explicações.
Nunca peça mais informações; interprete a tarefa da melhor forma possível."""

ESTIMATE_SYSTEM = """Você é um assistente de gestão de tempo.
Estime quantos minutos são necessários para concluir a tarefa, considerando
contexto, complexidade aparente e escopo. Não explique o raciocínio.
Responda apenas com JSON no formato:
{"estimatedTimeMinutes": X, "confidence": "low|medium|high"}"""

PRIORITY_SYSTEM = """Você é um assistente de priorização de tarefas.
Sugira a prioridade da tarefa considerando urgência, importância,
complexidade, prazo (se houver) e as outras tarefas existentes.
Responda APENAS com uma palavra: "low", "medium" ou "high"."""

MOTIVATION_SYSTEM = """Você é um assistente motivacional positivo e encorajador.
Escreva uma mensagem curta (no máximo 2 frases), amigável e entusiasmada,
mencionando os dados de progresso do usuário em um app de produtividade gamificado."""


# ─────────────────────────────────────────────────────────────────────────────
# LLM access
# ─────────────────────────────────────────────────────────────────────────────


def get_client(config: AIConfig) -> anthropic.AsyncAnthropic:
    if not config.enabled:
        raise AIUnavailableError("AI suggestions are disabled")

    api_key = os.environ.get(config.api_key_env)
    if not api_key:
        raise AIUnavailableError(f"{config.api_key_env} not set")

    return anthropic.AsyncAnthropic(api_key=api_key, timeout=config.timeout_seconds)


async def complete(
    system: str,
    prompt: str,
    client: Optional[Any] = None,
    config: Optional[AIConfig] = None,
    max_tokens: Optional[int] = None,
    temperature: float = 0.5,
) -> str:
    """Send one message and return the text of the reply."""
    config = config or load_config().ai
    client = client or get_client(config)

    message = await client.messages.create(
        model=config.model,
        max_tokens=max_tokens or config.max_tokens,
        temperature=temperature,
        system=system,
        messages=[{"role": "user", "content": prompt}],
    )
    if not message.content:
        return ""
    return message.content[0].text.strip()


def extract_json(text: str) -> Any:
    """Parse a JSON object, tolerating markdown code fences around it."""
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1:
        raise ValueError("No JSON object in response")
    return json.loads(text[start : end + 1])


LIST_MARKER = re.compile(r"^[-*\d.)\s]+")


def parse_subtask_lines(text: str) -> list[str]:
    lines = (LIST_MARKER.sub("", line).strip() for line in text.splitlines())
    return [line for line in lines if line]


# ─────────────────────────────────────────────────────────────────────────────
# Operations
# ─────────────────────────────────────────────────────────────────────────────


async def estimate_task_time(
    title: str,
    category: Optional[str] = None,
    client: Optional[Any] = None,
    config: Optional[AIConfig] = None,
) -> TimeEstimate:
    """
    Estimate how long a task takes.

    Args:
        title: Task title
        category: Optional category value, added as context

    Returns:
        TimeEstimate clamped to 1-1440 minutes, or (30, "low") on failure
    """
    where = f" na categoria {category}" if category else ""
    prompt = f'Estime o tempo para completar esta tarefa{where}: "{title}"'

    try:
        text = await complete(ESTIMATE_SYSTEM, prompt, client, config, max_tokens=100, temperature=0.3)
        raw = RawEstimate.model_validate(extract_json(text))
        minutes = min(max(raw.estimatedTimeMinutes, MIN_ESTIMATE_MINUTES), MAX_ESTIMATE_MINUTES)
        return TimeEstimate(estimated_time_minutes=round(minutes), confidence=raw.confidence)
    except Exception as e:
        logger.warning(f"Time estimation failed, using fallback: {e}")
        return TimeEstimate.fallback()


async def generate_subtasks(
    title: str,
    client: Optional[Any] = None,
    config: Optional[AIConfig] = None,
) -> SubtaskSuggestion:
    """
    Break a task into subtask titles.

    Args:
        title: Task title

    Returns:
        SubtaskSuggestion with up to 5 titles, or with ``error`` set
    """
    prompt = f'Divida a seguinte tarefa em subtarefas menores: "{title}"'

    try:
        text = await complete(SUBTASKS_SYSTEM, prompt, client, config, temperature=0.7)
    except Exception as e:
        logger.warning(f"Subtask generation failed: {e}")
        return SubtaskSuggestion(error=SUBTASK_FAILURE_MESSAGE)

    subtasks = parse_subtask_lines(text)
    if not subtasks:
        logger.warning("Subtask generation returned no usable lines")
        return SubtaskSuggestion(error=SUBTASK_FAILURE_MESSAGE)

    return SubtaskSuggestion(subtasks=subtasks[:MAX_SUBTASKS])


async def suggest_task_priority(
    title: str,
    existing_titles: Iterable[str] = (),
    due_date: Optional[datetime] = None,
    client: Optional[Any] = None,
    config: Optional[AIConfig] = None,
) -> TaskPriority:
    """
    Suggest a priority for a new task.

    Args:
        title: Task title
        existing_titles: Titles of other open tasks, for context
        due_date: Optional due date

    Returns:
        Suggested priority; MEDIUM when the reply is unrecognized or fails
    """
    context = f'Tarefa: "{title}"'
    if due_date:
        context += f"\nData de vencimento: {due_date.isoformat()}"
    existing = list(existing_titles)
    if existing:
        context += "\nOutras tarefas existentes:\n" + "\n".join(f"- {t}" for t in existing)

    try:
        text = await complete(PRIORITY_SYSTEM, context, client, config, max_tokens=10, temperature=0.3)
    except Exception as e:
        logger.warning(f"Priority suggestion failed, using medium: {e}")
        return TaskPriority.MEDIUM

    answer = text.lower()
    for priority in (TaskPriority.HIGH, TaskPriority.MEDIUM, TaskPriority.LOW):
        if priority.value in answer:
            return priority

    logger.warning(f"Unrecognized priority suggestion: {text!r}")
    return TaskPriority.MEDIUM


async def generate_motivational_message(
    points: int,
    level: int,
    streak: int,
    tasks_completed_today: int,
    client: Optional[Any] = None,
    config: Optional[AIConfig] = None,
) -> str:
    prompt = (
        "Gere uma mensagem motivacional baseada nesses dados:\n"
        f"- Pontos: {points}\n"
        f"- Nível: {level}\n"
        f"- Sequência de dias: {streak}\n"
        f"- Tarefas concluídas hoje: {tasks_completed_today}"
    )

    try:
        text = await complete(MOTIVATION_SYSTEM, prompt, client, config, max_tokens=150, temperature=0.8)
    except Exception as e:
        logger.warning(f"Motivational message failed, using fallback: {e}")
        return FALLBACK_MOTIVATION

    return text or FALLBACK_MOTIVATION

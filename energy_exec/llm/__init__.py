"""Text generation: provider bindings and plan/review orchestration."""

from energy_exec.llm.providers import (
    GenerationError,
    generate_text,
)
from energy_exec.llm.planner import (
    CHAT_FALLBACK_MESSAGE,
    resolve_model,
    generate_day_plan,
    generate_plan_review,
    generate_plan_diff,
    chat_reply,
)

__all__ = [
    "GenerationError",
    "generate_text",
    "CHAT_FALLBACK_MESSAGE",
    "resolve_model",
    "generate_day_plan",
    "generate_plan_review",
    "generate_plan_diff",
    "chat_reply",
]

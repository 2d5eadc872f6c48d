"""
Small parsers for free-text answers.

Each one turns a raw message into a value (or a tagged outcome) so handlers
never do ad-hoc string matching themselves.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from energy_exec import config

SKIP_WORDS = ("skip",)
NO_APPOINTMENT_WORDS = ("none", "no")

MODEL_SHORTCUTS = {
    "1": config.MODEL_BIG_PICKLE,
    "2": config.MODEL_GEMINI_3_PRO,
}


@dataclass(frozen=True)
class Matched:
    variant: str


class _NoMatch:
    def __repr__(self):
        return "NO_MATCH"


NO_MATCH = _NoMatch()


def parse_model_selection(text: str):
    """Return Matched(model_id) for "1", "2" or a message naming a model, else NO_MATCH."""
    normalized = text.strip().lower()
    if not normalized:
        return NO_MATCH
    if normalized in MODEL_SHORTCUTS:
        return Matched(MODEL_SHORTCUTS[normalized])
    for model in config.SUPPORTED_MODELS:
        if model in normalized:
            return Matched(model)
    return NO_MATCH


def parse_body_battery(text: str) -> Optional[int]:
    """Integer 0-100 in plain ASCII digits, or None if the text isn't one."""
    stripped = text.strip()
    if not (stripped.isascii() and stripped.lstrip("+-").isdigit()):
        return None
    try:
        value = int(stripped)
    except ValueError:
        return None
    if value < 0 or value > 100:
        return None
    return value


def parse_optional_text(text: str) -> Optional[str]:
    """Trimmed text, with empty meaning absent."""
    return text.strip() or None


def is_skip(text: str) -> bool:
    normalized = text.strip().lower()
    return normalized == "" or normalized in SKIP_WORDS


def parse_appointments(text: str) -> Optional[list]:
    """One-element list with the appointments text, or None for empty/"none"/"no"."""
    stripped = text.strip()
    if not stripped or stripped.lower() in NO_APPOINTMENT_WORDS:
        return None
    return [stripped]


def parse_command(text: str) -> Optional[Tuple[str, list]]:
    """Split "/cmd@BotName arg1 arg2" into ("cmd", ["arg1", "arg2"]); None if not a command."""
    stripped = text.strip()
    if not stripped.startswith("/"):
        return None
    parts = stripped.split()
    name = parts[0][1:].split("@", 1)[0]
    if not name:
        return None
    return name, parts[1:]

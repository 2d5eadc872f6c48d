"""
Prompt loading and message assembly for Energy Exec.
"""

import json
from pathlib import Path
from typing import Optional


def get_prompts_dir() -> Path:
    """Get prompts directory - works both locally and on Modal."""
    # On Modal, prompts are copied to /root/prompts during image build
    modal_path = Path("/root/prompts")
    if modal_path.exists():
        return modal_path
    # Locally, prompts are next to modal_agent.py
    local_path = Path(__file__).parent.parent / "prompts"
    if local_path.exists():
        return local_path
    raise FileNotFoundError(f"Prompts directory not found at {modal_path} or {local_path}")


def load_prompt(name: str) -> str:
    """Load a prompt from the prompts directory."""
    prompt_file = get_prompts_dir() / f"{name}.md"
    if prompt_file.exists():
        return prompt_file.read_text().strip()
    raise FileNotFoundError(f"Prompt file not found: {prompt_file}")


try:
    SYSTEM_PROMPT = load_prompt("system")
except FileNotFoundError:
    # Handle case where prompts aren't available (e.g., installed without the prompts dir)
    SYSTEM_PROMPT = ""


def build_prompt(
    user_message: str,
    timezone: Optional[str] = None,
    current_day_log: Optional[dict] = None,
    recent_history: Optional[list] = None,
) -> list:
    """
    Build the system + user message pair sent to the text generator.

    The system message is the assistant persona followed by whatever context
    is available: the user's timezone, today's log, and earlier logs.
    """
    system_prompt = SYSTEM_PROMPT

    if timezone:
        system_prompt += f"\n\nUser's timezone: {timezone}"

    if current_day_log:
        system_prompt += f"\n\nCurrent day's information:\n{json.dumps(current_day_log, indent=2)}"

    if recent_history:
        system_prompt += f"\n\nRecent history (for context):\n{json.dumps(recent_history, indent=2)}"

    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_message},
    ]

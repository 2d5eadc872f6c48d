"""
Day plan, plan review, plan diff, and free chat generation.

Every request is a system + user message pair built by `build_prompt`; the
text that comes back is used as-is.
"""

from typing import Optional

from energy_exec import config, utils
from energy_exec.config import logger
from energy_exec.interfaces import GenerateFn
from energy_exec.llm.providers import GenerationError
from energy_exec.prompts import build_prompt
from energy_exec.storage.config_store import MODEL_KEY, get_config
from energy_exec.storage.daily_logs import list_recent_daily_logs

CHAT_FALLBACK_MESSAGE = "Sorry, I couldn't process that. Try again or rephrase."


def resolve_model() -> str:
    """Selected model id, or the free default when unset or unrecognised."""
    selected = get_config(MODEL_KEY)
    if selected in config.SUPPORTED_MODELS:
        return selected
    return config.DEFAULT_MODEL


def _generate(generate: GenerateFn, messages: list, operation: str) -> str:
    model = resolve_model()
    try:
        text = generate(messages, model)
    except GenerationError:
        raise
    except Exception as e:
        raise GenerationError(f"{operation} failed with {model}: {e}") from e

    if not text or not text.strip():
        raise GenerationError(f"{operation} returned an empty response from {model}")

    logger.info(f"{operation} generated ({len(text)} chars, model={model})")
    return text


def _mood_text(mood) -> Optional[str]:
    if isinstance(mood, dict):
        return mood.get("text")
    return mood or None


def _join(values) -> Optional[str]:
    if isinstance(values, list):
        return ", ".join(str(v) for v in values) if values else None
    return str(values) if values else None


def build_plan_request(daily_log: dict, update_context: str = None) -> str:
    """Instruction block for a full day plan."""
    battery = daily_log.get("body_battery_start")
    request = f"""Based on my morning check-in, generate a structured day plan for me.

Consider:
- My body battery level: {battery if battery is not None else "not provided"}
- Sleep quality: {daily_log.get("sleep_notes") or "not provided"}
- Current mood/energy: {_mood_text(daily_log.get("mood")) or "not provided"}
- Priorities: {_join(daily_log.get("priorities")) or "not provided"}
- Appointments: {_join(daily_log.get("appointments")) or "none"}"""

    if update_context:
        request += f"\n\nImportant update: {update_context}"

    request += """

Please create a day plan that includes:
1. Suggested work blocks (timing and duration based on energy levels)
2. Break times
3. Tea/caffeine recommendations with timing
4. Integration of appointments/meetings
5. When to tackle priorities based on energy

Format the plan clearly with times and be specific about durations. Use a friendly, encouraging tone."""
    return request


def build_review_request(daily_log: dict) -> str:
    """Instruction block for an end-of-day plan review."""
    start = daily_log.get("body_battery_start")
    end = daily_log.get("body_battery_end")

    battery_lines = [
        f"- Body battery at start of day: {start if start is not None else 'not recorded'}",
        f"- Body battery at end of day: {end if end is not None else 'not recorded'}",
    ]
    if start is not None and end is not None:
        battery_lines.append(f"- Change over the day: {end - start:+d}")

    return f"""Review how my day went compared to the plan.

My plan for today:
{daily_log.get("generated_plan")}

My reflections on the day:
{daily_log.get("reflections")}

Energy:
{chr(10).join(battery_lines)}

Please give me:
1. How well the plan worked (what helped, what didn't)
2. Energy management insights based on my body battery and reflections
3. Concrete suggestions for tomorrow's plan

Be specific and encouraging. Keep it concise."""


def build_diff_request(current_plan: str, change: str) -> str:
    """Instruction block asking only for what changes in the plan."""
    return f"""The user wants to update their day plan. Here's the current plan:

{current_plan}

User's update request: {change}

Please provide ONLY the changes that need to be made to the plan. Be concise and focus on what's different. Don't repeat the entire plan - just show what changed. Format it clearly so the user can see what's new or modified."""


def generate_day_plan(
    generate: GenerateFn,
    daily_log: dict,
    timezone: str = None,
    update_context: str = None,
) -> str:
    """Generate a full day plan from the check-in data in `daily_log`."""
    messages = build_prompt(
        build_plan_request(daily_log, update_context),
        timezone=timezone,
        current_day_log=daily_log,
    )
    return _generate(generate, messages, "Day plan")


def generate_plan_review(generate: GenerateFn, daily_log: dict, timezone: str = None) -> str:
    """Review today's plan against the evening reflections."""
    messages = build_prompt(
        build_review_request(daily_log),
        timezone=timezone,
        current_day_log=daily_log,
    )
    return _generate(generate, messages, "Plan review")


def generate_plan_diff(generate: GenerateFn, daily_log: dict, change: str, timezone: str = None) -> str:
    """Describe only the changes a plan needs after `change`."""
    messages = build_prompt(
        build_diff_request(daily_log.get("generated_plan") or "", change),
        timezone=timezone,
        current_day_log=daily_log,
    )
    return _generate(generate, messages, "Plan diff")


def chat_reply(generate: GenerateFn, text: str, current_day_log: dict = None, timezone: str = None) -> str:
    """Free-form chat answer. Never raises; failures become the fallback message."""
    try:
        today = utils.today_key()
        history = [
            log for log in list_recent_daily_logs(config.CHAT_HISTORY_DAYS + 1)
            if log["date"] != today
        ][:config.CHAT_HISTORY_DAYS]

        messages = build_prompt(
            text,
            timezone=timezone,
            current_day_log=current_day_log,
            recent_history=history,
        )
        return _generate(generate, messages, "Chat reply")
    except Exception as e:
        logger.error(f"Message handling error: {e}")
        return CHAT_FALLBACK_MESSAGE

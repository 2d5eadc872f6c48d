"""
Multi-step conversation flows: onboarding, morning check-in, evening
reflection, and plan update.

A flow is a list of steps plus a terminal action. Each step prompts the
user, parses their next message into Accept or Reject, and either stores the
answer and moves on or repeats itself with an error.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from energy_exec.bot import parsers
from energy_exec.bot.session import Session
from energy_exec.config import logger
from energy_exec.llm.planner import generate_day_plan, generate_plan_diff
from energy_exec.storage.config_store import TIMEZONE_KEY, get_config, set_config
from energy_exec.storage.daily_logs import get_daily_log, upsert_daily_log
from energy_exec.utils import is_valid_timezone

ONBOARDING = "onboarding"
MORNING_CHECKIN = "morning_checkin"
EVENING_REFLECTION = "evening_reflection"
UPDATE_PLAN = "update_plan"


@dataclass(frozen=True)
class Accept:
    value: Any
    warning: Optional[str] = None


@dataclass(frozen=True)
class Reject:
    error: str


@dataclass(frozen=True)
class Step:
    key: str
    prompt: str
    parse: Callable[[str], Any]
    markdown: bool = False


@dataclass(frozen=True)
class Flow:
    name: str
    steps: tuple
    complete: Callable
    intro: Optional[str] = None
    # prepare(bot, message, session) -> bool; False means the flow doesn't start
    prepare: Optional[Callable] = None


# ============================================================================
# ONBOARDING
# ============================================================================

ONBOARDING_PROMPT = (
    "👋 Welcome! Let's get you set up.\n\n"
    "I need to know your timezone to help you plan your day effectively.\n\n"
    "Please send me your timezone. Examples:\n"
    "• America/New_York\n"
    "• Europe/Berlin\n"
    "• Asia/Tokyo\n"
    "• UTC\n\n"
    "You can find your timezone at: https://en.wikipedia.org/wiki/List_of_tz_database_time_zones"
)

INVALID_TIMEZONE_MESSAGE = (
    "❌ That doesn't look like a valid timezone.\n\n"
    "Please try again with a valid IANA timezone identifier.\n"
    "Examples: America/New_York, Europe/Berlin, Asia/Tokyo, UTC"
)


def _parse_timezone(text: str):
    candidate = text.strip()
    if is_valid_timezone(candidate):
        return Accept(candidate)
    return Reject(INVALID_TIMEZONE_MESSAGE)


def _complete_onboarding(bot, message, session: Session):
    timezone = session.answers["timezone"]
    try:
        set_config(TIMEZONE_KEY, timezone)
    except Exception as e:
        logger.error(f"Failed to save timezone (user={message.user_id}, timezone={timezone}): {e}")
        bot.reply(message, "❌ Sorry, I couldn't save your timezone. Please try again later or contact support.")
        return

    logger.info(f"User onboarded successfully (user={message.user_id}, timezone={timezone})")
    bot.reply(
        message,
        f"✅ Great! Your timezone has been set to: {timezone}\n\n"
        "You're all set up! You can now start using Energy Exec to plan your days.\n\n"
        "Send /help to see available commands.",
    )


# ============================================================================
# MORNING CHECK-IN
# ============================================================================

INVALID_BATTERY_MESSAGE = "❌ Please enter a number between 0 and 100.\n\nExamples: 75, 50, 100"


def _parse_battery_start(text: str):
    value = parsers.parse_body_battery(text)
    if value is None:
        return Reject(INVALID_BATTERY_MESSAGE)
    return Accept(value)


def _parse_mood(text: str):
    mood_text = parsers.parse_optional_text(text)
    return Accept({"text": mood_text} if mood_text else None)


def _parse_priority(text: str):
    priority = parsers.parse_optional_text(text)
    return Accept([priority] if priority else None)


def _complete_morning_checkin(bot, message, session: Session):
    answers = session.answers
    try:
        daily_log = upsert_daily_log(session.date, {
            "body_battery_start": answers["body_battery_start"],
            "sleep_notes": answers["sleep_notes"],
            "mood": answers["mood"],
            "priorities": answers["priorities"],
            "appointments": answers["appointments"],
        })
    except Exception as e:
        logger.error(f"Failed to complete morning check-in (user={message.user_id}, date={session.date}): {e}")
        bot.reply(
            message,
            "❌ Sorry, something went wrong during the check-in. "
            "Please try again later or use /checkin to restart.",
        )
        return

    logger.info(
        f"Morning check-in completed (user={message.user_id}, date={session.date}, "
        f"body_battery_start={answers['body_battery_start']})"
    )
    bot.reply(
        message,
        "✅ Check-in complete! I've saved your information for today.\n\n"
        "🤖 Putting together a day plan based on your energy levels...",
    )

    try:
        plan = generate_day_plan(bot.collaborators.generate, daily_log, get_config(TIMEZONE_KEY))
        upsert_daily_log(session.date, {"generated_plan": plan})
    except Exception as e:
        logger.error(f"Failed to generate day plan (user={message.user_id}, date={session.date}): {e}")
        bot.reply(
            message,
            "⚠️ Your check-in is saved, but I couldn't generate a plan right now.\n\n"
            "Use /plan to try again in a bit.",
        )
        return

    bot.reply(message, f"📋 *Your Day Plan*\n\n{plan}", markdown=True)


# ============================================================================
# EVENING REFLECTION
# ============================================================================

BATTERY_END_WARNING = "⚠️ Couldn't parse that number. Skipping body battery end value."


def _parse_battery_end(text: str):
    if parsers.is_skip(text):
        return Accept(None)
    value = parsers.parse_body_battery(text)
    if value is None:
        # Unlike the morning value, a bad evening value is dropped, not re-asked
        return Accept(None, warning=BATTERY_END_WARNING)
    return Accept(value)


def _parse_notes_for_tomorrow(text: str):
    if parsers.is_skip(text):
        return Accept(None)
    return Accept(text.strip())


def _complete_evening_reflection(bot, message, session: Session):
    answers = session.answers
    try:
        upsert_daily_log(session.date, {
            "reflections": answers["reflections"],
            "body_battery_end": answers["body_battery_end"],
            "notes_for_tomorrow": answers["notes_for_tomorrow"],
        })
    except Exception as e:
        logger.error(f"Failed to complete evening reflection (user={message.user_id}, date={session.date}): {e}")
        bot.reply(
            message,
            "❌ Sorry, something went wrong during the reflection. "
            "Please try again later or use /reflect to restart.",
        )
        return

    logger.info(
        f"Evening reflection completed (user={message.user_id}, date={session.date}, "
        f"body_battery_end={answers['body_battery_end']})"
    )
    bot.reply(
        message,
        "✅ Reflection saved! Thank you for sharing.\n\n"
        "Use /planReview for feedback on today's plan. "
        "Have a good rest, and I'll see you tomorrow for your morning check-in! 🌙",
    )


# ============================================================================
# PLAN UPDATE
# ============================================================================

NO_LOG_FOR_UPDATE = "📅 *No daily log found for today*\n\nUse /checkin to create a morning check-in first."
NO_PLAN_FOR_UPDATE = (
    "📋 *No plan found for today*\n\n"
    "Complete your morning check-in with /checkin to generate a plan first."
)


def _check_plan_exists(bot, message, date: str) -> Optional[dict]:
    daily_log = get_daily_log(date)
    if daily_log is None:
        bot.reply(message, NO_LOG_FOR_UPDATE, markdown=True)
        return None
    if not daily_log.get("generated_plan"):
        bot.reply(message, NO_PLAN_FOR_UPDATE, markdown=True)
        return None
    return daily_log


def _prepare_update_plan(bot, message, session: Session) -> bool:
    return _check_plan_exists(bot, message, session.date) is not None


def _parse_change(text: str):
    change = text.strip()
    if not change:
        return Reject("❌ Please provide details about what you'd like to update.")
    return Accept(change)


def _complete_update_plan(bot, message, session: Session):
    change = session.answers["change"]
    timezone = get_config(TIMEZONE_KEY)

    daily_log = _check_plan_exists(bot, message, session.date)
    if daily_log is None:
        return

    bot.reply(message, "🔄 Processing your plan update...")

    # Phase A: show the user only what changes
    try:
        diff = generate_plan_diff(bot.collaborators.generate, daily_log, change, timezone)
    except Exception as e:
        logger.error(f"Failed to update plan (user={message.user_id}, date={session.date}): {e}")
        bot.reply(message, "❌ Sorry, I couldn't process your plan update. Please try again later.")
        return

    bot.reply(message, f"📋 *Plan Changes*\n\n{diff}", markdown=True)

    # Phase B: regenerate and store the full plan; the diff above stands either way
    try:
        logger.info(f"Regenerating full plan (user={message.user_id}, date={session.date})")
        new_plan = generate_day_plan(bot.collaborators.generate, daily_log, timezone, update_context=change)
        upsert_daily_log(session.date, {"generated_plan": new_plan})

        saved = get_daily_log(session.date)
        if not saved or saved.get("generated_plan") != new_plan:
            raise RuntimeError("Plan was not saved correctly")
    except Exception as e:
        logger.error(f"Failed to regenerate plan (user={message.user_id}, date={session.date}): {e}")
        bot.reply(
            message,
            "⚠️ I showed you the changes, but couldn't regenerate the full plan right now.\n\n"
            "The changes are shown above. You can ask me to regenerate the plan again later.",
        )
        return

    logger.info(f"Plan updated successfully (user={message.user_id}, date={session.date})")
    bot.reply(
        message,
        "✅ *Plan updated*\n\n"
        "The full plan has been regenerated and saved. Use /today to view the complete updated plan.",
        markdown=True,
    )


# ============================================================================
# REGISTRY
# ============================================================================

FLOWS = {
    ONBOARDING: Flow(
        name=ONBOARDING,
        steps=(
            Step("timezone", ONBOARDING_PROMPT, _parse_timezone),
        ),
        complete=_complete_onboarding,
    ),
    MORNING_CHECKIN: Flow(
        name=MORNING_CHECKIN,
        intro=(
            "🌅 Good morning! Let's start your day with a quick check-in.\n\n"
            "I'll ask you a few questions to understand your energy levels and priorities for today."
        ),
        steps=(
            Step(
                "body_battery_start",
                "1️⃣ What's your body battery level this morning? (0-100)\n\n"
                "This is typically from your Garmin watch, or you can estimate based on how you feel.",
                _parse_battery_start,
            ),
            Step(
                "sleep_notes",
                "2️⃣ How was your sleep last night?\n\n"
                "Tell me about sleep quality, duration, or any issues "
                "(e.g., \"7 hours, woke up twice\", \"restless, only 5 hours\").",
                lambda text: Accept(parsers.parse_optional_text(text)),
            ),
            Step(
                "mood",
                "3️⃣ How are you feeling right now?\n\n"
                "Describe your current state - motivation level, energy, mood, any physical sensations "
                "(e.g., \"motivated but tired\", \"dizzy, low energy\", \"energetic and focused\").",
                _parse_mood,
            ),
            Step(
                "priorities",
                "4️⃣ What's the most important task you need to accomplish today?",
                _parse_priority,
            ),
            Step(
                "appointments",
                "5️⃣ Do you have any important appointments or meetings today?\n\n"
                "List them or say \"none\" if you don't have any.\n"
                "Examples: \"Meeting at 2pm\", \"Doctor appointment at 10am\", \"none\"",
                lambda text: Accept(parsers.parse_appointments(text)),
            ),
        ),
        complete=_complete_morning_checkin,
    ),
    EVENING_REFLECTION: Flow(
        name=EVENING_REFLECTION,
        intro=(
            "🌌 Good evening! Let's reflect on your day.\n\n"
            "I'll ask you a few questions to capture how your day went."
        ),
        steps=(
            Step(
                "reflections",
                "1️⃣ How did your day go?\n\n"
                "Share what went well, what was challenging, or any highlights.",
                lambda text: Accept(parsers.parse_optional_text(text)),
            ),
            Step(
                "body_battery_end",
                "2️⃣ What's your body battery level now? (0-100)\n\n"
                "You can skip this by typing \"skip\" if you don't have it.",
                _parse_battery_end,
            ),
            Step(
                "notes_for_tomorrow",
                "3️⃣ Any notes or reminders for tomorrow?\n\n"
                "You can skip this by typing \"skip\" if you don't have any.",
                _parse_notes_for_tomorrow,
            ),
        ),
        complete=_complete_evening_reflection,
    ),
    UPDATE_PLAN: Flow(
        name=UPDATE_PLAN,
        prepare=_prepare_update_plan,
        steps=(
            Step(
                "change",
                "📋 *Plan Update*\n\n"
                "What changed or what would you like to update in your plan?\n\n"
                "Example: \"Meeting cancelled, need to shift work blocks earlier\"",
                _parse_change,
                markdown=True,
            ),
        ),
        complete=_complete_update_plan,
    ),
}

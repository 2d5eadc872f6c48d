"""
Slash-command handlers that read or write state directly.

Commands that start a conversation (/checkin, /reflect, /updatePlan,
/timezone, and /start before onboarding) are routed to flows by the engine.
Every handler here takes (bot, message, args).
"""

from datetime import datetime

from energy_exec import config, utils
from energy_exec.config import logger
from energy_exec.llm.planner import generate_day_plan, generate_plan_review
from energy_exec.storage.config_store import MODEL_KEY, TIMEZONE_KEY, get_config, set_config
from energy_exec.storage.daily_logs import get_daily_log, upsert_daily_log

HELP_MESSAGE = """📚 Available Commands:

/start - Welcome message and introduction
/help - Show this help message
/models - View and change AI model
/timezone - Change your timezone
/checkin - Start morning check-in (body battery, sleep, mood, priorities)
/plan - Generate (or regenerate) today's plan from your check-in
/updatePlan - Tell me what changed and I'll adjust today's plan
/reflect - Start evening reflection (how the day went, notes for tomorrow)
/planReview - Get a review of today's plan based on your reflections
/today - View today's daily log in a nice format
/viewDailyLog [YYYY-MM-DD] - View daily log for a date (defaults to today)

Daily Flow:
• Morning: Use /checkin to log your energy levels and priorities
• Throughout the day: Send me messages to get help planning or adjusting your day
• Evening: Use /reflect to reflect on how your day went
• View logs: Use /viewDailyLog to see past daily logs

You can also just chat with me anytime, and I'll help you plan your day based on your energy levels!"""

WELCOME_BACK_MESSAGE = """👋 Welcome back to Energy Exec!

I'm your AI-powered daily planning assistant that helps you structure your day based on your energy levels and health metrics.

You can:
• Log your morning check-ins (body battery, sleep, mood)
• Generate energy-aware day plans
• Track your progress over time

Send /help to see all available commands."""

INVALID_DATE_MESSAGE = (
    "❌ Invalid date format. Please use YYYY-MM-DD format.\n\n"
    "Example: /viewDailyLog 2024-12-01"
)


# ============================================================================
# FORMATTING
# ============================================================================

def _battery_change(daily_log: dict):
    start = daily_log.get("body_battery_start")
    end = daily_log.get("body_battery_end")
    if start is None or end is None:
        return None
    diff = end - start
    emoji = "📈" if diff >= 0 else "📉"
    return f"{emoji} {diff:+d}"


def _mood_text(daily_log: dict):
    mood = daily_log.get("mood")
    if isinstance(mood, dict):
        return mood.get("text")
    return None


def _updated_at(daily_log: dict):
    try:
        return datetime.fromisoformat(daily_log["updated_at"])
    except (KeyError, TypeError, ValueError):
        return None


def format_today(daily_log: dict, timezone: str) -> str:
    """Markdown summary of a daily log for /today."""
    now = utils.now_utc()
    lines = [f"📅 *{utils.display_date(now, timezone)} ({daily_log['date']})*", ""]

    battery = []
    if daily_log.get("body_battery_start") is not None:
        battery.append(f"Start: *{daily_log['body_battery_start']}*")
    if daily_log.get("body_battery_end") is not None:
        battery.append(f"End: *{daily_log['body_battery_end']}*")
    change = _battery_change(daily_log)
    if change:
        battery.append(change)
    if battery:
        lines += ["🔋 *Body Battery*", " • ".join(battery), ""]

    if daily_log.get("sleep_notes"):
        lines += ["😴 *Sleep*", daily_log["sleep_notes"], ""]

    mood = _mood_text(daily_log)
    if mood:
        lines += ["💭 *Mood*", mood, ""]

    for title, key in (("✅ *Priorities*", "priorities"), ("📅 *Appointments*", "appointments")):
        items = daily_log.get(key)
        if isinstance(items, list) and items:
            lines.append(title)
            lines += [f"{i}\\. {item}" for i, item in enumerate(items, 1)]
            lines.append("")

    if daily_log.get("generated_plan"):
        lines += ["📋 *Generated Plan*", daily_log["generated_plan"], ""]

    if daily_log.get("reflections"):
        lines += ["🌙 *Reflections*", daily_log["reflections"], ""]

    if daily_log.get("notes_for_tomorrow"):
        lines += ["📝 *Notes for Tomorrow*", daily_log["notes_for_tomorrow"], ""]

    updated = _updated_at(daily_log)
    if updated:
        local = updated.astimezone(utils.resolve_timezone(timezone))
        lines.append(f"_Last updated: {local.strftime('%H:%M')}_")

    return "\n".join(lines).rstrip()


def format_daily_log(daily_log: dict, timezone: str) -> str:
    """Plain-text dump of a daily log for /viewDailyLog."""
    target = datetime.strptime(daily_log["date"], utils.DATE_KEY_FORMAT)
    message = f"📅 Daily Log: {target.strftime('%A, %B')} {target.day}, {target.year}\n\n"

    if daily_log.get("body_battery_start") is not None:
        message += f"🔋 Body Battery Start: {daily_log['body_battery_start']}\n"
    if daily_log.get("body_battery_end") is not None:
        message += f"🔋 Body Battery End: {daily_log['body_battery_end']}\n"
    change = _battery_change(daily_log)
    if change:
        emoji, diff = change.split(" ", 1)
        message += f"{emoji} Change: {diff}\n"

    if daily_log.get("sleep_notes"):
        message += f"\n😴 Sleep: {daily_log['sleep_notes']}\n"

    mood = _mood_text(daily_log)
    if mood:
        message += f"\n💭 Mood: {mood}\n"

    for title, key in (("✅ Priorities:", "priorities"), ("📅 Appointments:", "appointments")):
        items = daily_log.get(key)
        if isinstance(items, list) and items:
            message += f"\n{title}\n"
            for i, item in enumerate(items, 1):
                message += f"  {i}. {item}\n"

    if daily_log.get("generated_plan"):
        message += f"\n📋 Generated Plan:\n{daily_log['generated_plan']}\n"

    if daily_log.get("reflections"):
        message += f"\n🌙 Reflections:\n{daily_log['reflections']}\n"

    if daily_log.get("notes_for_tomorrow"):
        message += f"\n📝 Notes for Tomorrow:\n{daily_log['notes_for_tomorrow']}\n"

    updated = _updated_at(daily_log)
    if updated:
        local = updated.astimezone(utils.resolve_timezone(timezone))
        message += f"\n🕒 Last updated: {local.strftime('%Y-%m-%d %H:%M:%S')}"

    return message


# ============================================================================
# HANDLERS
# ============================================================================

def handle_start(bot, message, args):
    bot.reply(message, WELCOME_BACK_MESSAGE)


def handle_help(bot, message, args):
    bot.reply(message, HELP_MESSAGE)


def handle_today(bot, message, args):
    try:
        timezone = get_config(TIMEZONE_KEY)
        today = utils.today_key()
        daily_log = get_daily_log(today)

        if daily_log is None:
            formatted = utils.display_date(utils.now_utc(), timezone)
            bot.reply(
                message,
                f"📅 *No log found for today ({formatted})*\n\n"
                "Use /checkin to create a morning check-in for today.",
                markdown=True,
            )
            return

        bot.reply(message, format_today(daily_log, timezone), markdown=True)
    except Exception as e:
        logger.error(f"Failed to retrieve today's daily log (user={message.user_id}): {e}")
        bot.reply(message, "❌ Sorry, I couldn't retrieve today's daily log. Please try again later.")


def handle_view_daily_log(bot, message, args):
    if args and not utils.is_valid_date_key(args[0]):
        bot.reply(message, INVALID_DATE_MESSAGE)
        return

    try:
        timezone = get_config(TIMEZONE_KEY)
        date = args[0] if args else utils.today_key()
        daily_log = get_daily_log(date)

        if daily_log is None:
            bot.reply(
                message,
                f"📅 No log found for {date}.\n\n"
                "Use /checkin to create a morning check-in for today.",
            )
            return

        bot.reply(message, format_daily_log(daily_log, timezone))
    except Exception as e:
        logger.error(f"Failed to retrieve daily log (user={message.user_id}): {e}")
        bot.reply(message, "❌ Sorry, I couldn't retrieve the daily log. Please try again later.")


def handle_models(bot, message, args):
    try:
        current = get_config(MODEL_KEY)
        current_name = config.MODEL_DISPLAY_NAMES.get(current, config.MODEL_DISPLAY_NAMES[config.DEFAULT_MODEL])
        bot.reply(
            message,
            f"🤖 Current Model: {current_name}\n\n"
            "Available models:\n"
            "1. big-pickle (free) - OpenAI-compatible\n"
            "2. gemini-3-pro - Google Gemini\n\n"
            "To switch models, reply with:\n"
            "• \"1\" or \"big-pickle\" for big-pickle (free)\n"
            "• \"2\" or \"gemini-3-pro\" for gemini-3-pro",
        )
    except Exception as e:
        logger.error(f"Failed to handle /models command (user={message.user_id}): {e}")
        bot.reply(message, "Sorry, I couldn't retrieve the model information. Please try again later.")


def select_model(bot, message, model: str):
    """Persist a model choice made by replying to /models."""
    try:
        set_config(MODEL_KEY, model)
    except Exception as e:
        logger.error(f"Failed to change model (user={message.user_id}, model={model}): {e}")
        bot.reply(message, "Sorry, I couldn't change the model. Please try again later.")
        return

    logger.info(f"Model changed (user={message.user_id}, model={model})")
    bot.reply(
        message,
        f"✅ Model changed to: {config.MODEL_DISPLAY_NAMES[model]}\n\n"
        "Your next messages will use this model.",
    )


def handle_plan(bot, message, args):
    """Generate today's plan from the stored check-in, replacing any previous one."""
    today = utils.today_key()
    daily_log = get_daily_log(today)
    if daily_log is None or daily_log.get("body_battery_start") is None:
        bot.reply(
            message,
            "❌ No morning check-in found for today.\n\n"
            "Use /checkin first, then I can build your plan.",
        )
        return

    bot.reply(message, "🤖 Putting together a day plan based on your energy levels...")
    try:
        plan = generate_day_plan(bot.collaborators.generate, daily_log, get_config(TIMEZONE_KEY))
        upsert_daily_log(today, {"generated_plan": plan})
    except Exception as e:
        logger.error(f"Failed to generate day plan (user={message.user_id}, date={today}): {e}")
        bot.reply(message, "❌ Sorry, I couldn't generate a plan right now. Please try again later.")
        return

    bot.reply(message, f"📋 *Your Day Plan*\n\n{plan}", markdown=True)


def handle_plan_review(bot, message, args):
    today = utils.today_key()
    daily_log = get_daily_log(today)

    if daily_log is None:
        bot.reply(message, "❌ No daily log found for today.\n\nUse /checkin to create a morning check-in first.")
        return
    if not daily_log.get("generated_plan"):
        bot.reply(
            message,
            "❌ No plan found for today.\n\n"
            "Use /checkin to generate a plan for today, or /plan to create one.",
        )
        return
    if not daily_log.get("reflections"):
        bot.reply(
            message,
            "❌ No reflections found for today.\n\n"
            "Use /reflect to add your reflections first, then I can review your plan.",
        )
        return

    bot.reply(message, "🤖 Generating an AI review of your plan and reflections...")
    try:
        review = generate_plan_review(bot.collaborators.generate, daily_log, get_config(TIMEZONE_KEY))
    except Exception as e:
        logger.error(f"Failed to generate plan review (user={message.user_id}, date={today}): {e}")
        bot.reply(message, "❌ Sorry, I couldn't generate a plan review right now. Please try again later.")
        return

    bot.reply(message, f"📊 *Plan Review & Suggestions for Tomorrow*\n\n{review}", markdown=True)


COMMANDS = {
    "start": handle_start,
    "help": handle_help,
    "today": handle_today,
    "viewDailyLog": handle_view_daily_log,
    "models": handle_models,
    "plan": handle_plan,
    "planReview": handle_plan_review,
}

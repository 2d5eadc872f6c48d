"""
Tests for the multi-step conversations, driven through PlannerBot with
scripted message sequences.
"""

import pytest

from energy_exec.bot import flows
from energy_exec.storage import get_config, get_daily_log, is_user_onboarded, upsert_daily_log

from conftest import AUTHORIZED_USER_ID


def _step_prompt(flow_name, index):
    return flows.FLOWS[flow_name].steps[index].prompt


class TestOnboarding:
    """Tests for the timezone onboarding flow."""

    def test_first_message_starts_onboarding(self, say):
        """Test any first message from a new user asks for a timezone."""
        replies = say("hello")

        assert replies == [flows.ONBOARDING_PROMPT]
        assert is_user_onboarded() is False

    def test_invalid_timezone_reprompts(self, say, bot):
        """Test an unknown zone repeats the step."""
        say("hello")
        replies = say("Mars/Olympus_Mons")

        assert replies == [flows.INVALID_TIMEZONE_MESSAGE]
        assert bot.sessions.get(AUTHORIZED_USER_ID).flow == flows.ONBOARDING
        assert is_user_onboarded() is False

    def test_valid_timezone_completes(self, say, bot):
        """Test a valid zone is stored and the session ends."""
        say("/start")
        replies = say("Europe/Berlin")

        assert len(replies) == 1
        assert replies[0].startswith("✅ Great! Your timezone has been set to: Europe/Berlin")
        assert get_config("timezone") == "Europe/Berlin"
        assert is_user_onboarded() is True
        assert AUTHORIZED_USER_ID not in bot.sessions

    @pytest.mark.parametrize("command", ["/checkin", "/reflect", "/updatePlan"])
    def test_flow_commands_onboard_first(self, say, bot, command):
        """Test a new user is onboarded before any other flow starts."""
        assert say(command) == [flows.ONBOARDING_PROMPT]
        assert bot.sessions.get(AUTHORIZED_USER_ID).flow == flows.ONBOARDING

        say("UTC")
        assert is_user_onboarded() is True

    def test_help_does_not_start_onboarding(self, say, bot):
        """Test /help works before onboarding."""
        replies = say("/help")

        assert "Available Commands" in replies[0]
        assert AUTHORIZED_USER_ID not in bot.sessions

    def test_timezone_command_changes_zone(self, say, onboarded):
        """Test /timezone re-runs onboarding for an onboarded user."""
        assert say("/timezone") == [flows.ONBOARDING_PROMPT]
        say("Asia/Tokyo")

        assert get_config("timezone") == "Asia/Tokyo"


class TestMorningCheckin:
    """Tests for the morning check-in flow."""

    def test_full_checkin_saves_log_and_plan(self, say, onboarded, mock_generate):
        """Test the five answers are stored and a plan is generated."""
        replies = say("/checkin")
        assert replies == [flows.FLOWS[flows.MORNING_CHECKIN].intro, _step_prompt(flows.MORNING_CHECKIN, 0)]

        say("75")
        say("7 hours, woke up twice")
        say("motivated but tired")
        say("Finish quarterly report")
        replies = say("Meeting at 2pm")

        assert replies[0].startswith("✅ Check-in complete!")
        assert replies[-1] == "📋 *Your Day Plan*\n\n09:00 Deep work\n10:30 Break"

        row = get_daily_log("2026-01-15")
        assert row["body_battery_start"] == 75
        assert row["sleep_notes"] == "7 hours, woke up twice"
        assert row["mood"] == {"text": "motivated but tired"}
        assert row["priorities"] == ["Finish quarterly report"]
        assert row["appointments"] == ["Meeting at 2pm"]
        assert row["generated_plan"] == "09:00 Deep work\n10:30 Break"
        mock_generate.assert_called_once()

    def test_body_battery_loops_until_valid(self, say, onboarded):
        """Test 'abc' and '150' are rejected, then '0' is accepted."""
        say("/checkin")

        assert say("abc") == [flows.INVALID_BATTERY_MESSAGE]
        assert say("150") == [flows.INVALID_BATTERY_MESSAGE]
        assert say("0") == [_step_prompt(flows.MORNING_CHECKIN, 1)]

    def test_body_battery_accepts_100(self, say, onboarded):
        """Test the upper bound is valid."""
        say("/checkin")

        assert say("100") == [_step_prompt(flows.MORNING_CHECKIN, 1)]

    def test_empty_answers_stored_as_absent(self, say, onboarded):
        """Test blank answers and 'none' become None."""
        say("/checkin")
        say("60")
        say(" ")
        say("")
        say("")
        say("None")

        row = get_daily_log("2026-01-15")
        assert row["body_battery_start"] == 60
        assert row["sleep_notes"] is None
        assert row["mood"] is None
        assert row["priorities"] is None
        assert row["appointments"] is None

    def test_plan_failure_keeps_checkin(self, say, onboarded, mock_generate):
        """Test a generator failure still saves the check-in and points to /plan."""
        mock_generate.side_effect = RuntimeError("gateway down")

        say("/checkin")
        for answer in ["80", "fine", "ok", "write", "no"]:
            replies = say(answer)

        assert "/plan" in replies[-1]
        row = get_daily_log("2026-01-15")
        assert row["body_battery_start"] == 80
        assert row["generated_plan"] is None


class TestEveningReflection:
    """Tests for the evening reflection flow."""

    def test_unparseable_battery_warns_and_advances(self, say, onboarded):
        """Test 'xyz' produces a warning, no re-prompt, and no stored value."""
        say("/reflect")
        say("Productive morning, slow afternoon")
        replies = say("xyz")

        assert replies == [flows.BATTERY_END_WARNING, _step_prompt(flows.EVENING_REFLECTION, 2)]

        say("Start with the report")
        row = get_daily_log("2026-01-15")
        assert row["reflections"] == "Productive morning, slow afternoon"
        assert row["body_battery_end"] is None
        assert row["notes_for_tomorrow"] == "Start with the report"

    @pytest.mark.parametrize("answer", ["skip", "SKIP", ""])
    def test_skip_battery_is_silent(self, say, onboarded, answer):
        """Test skipping the battery gives no warning."""
        say("/reflect")
        say("Fine")

        assert say(answer) == [_step_prompt(flows.EVENING_REFLECTION, 2)]

    def test_reflection_merges_with_checkin(self, say, onboarded, mock_now_utc):
        """Test the evening values are added to the morning row."""
        upsert_daily_log("2026-01-15", {"body_battery_start": 70, "generated_plan": "plan"})

        say("/reflect")
        say("Good day")
        say("35")
        replies = say("skip")

        assert replies[0].startswith("✅ Reflection saved!")
        row = get_daily_log("2026-01-15")
        assert row["body_battery_start"] == 70
        assert row["body_battery_end"] == 35
        assert row["generated_plan"] == "plan"
        assert row["notes_for_tomorrow"] is None


class TestSessionReplacement:
    """Tests for starting one flow while another is active."""

    def test_checkin_overrides_reflect(self, say, bot, onboarded):
        """Test /checkin mid-reflection starts the check-in instead."""
        say("/reflect")
        replies = say("/checkin")

        assert replies[-1] == _step_prompt(flows.MORNING_CHECKIN, 0)
        assert bot.sessions.get(AUTHORIZED_USER_ID).flow == flows.MORNING_CHECKIN

        assert say("80") == [_step_prompt(flows.MORNING_CHECKIN, 1)]
        assert get_daily_log("2026-01-15") is None

    def test_commands_inside_session_are_answers(self, say, onboarded):
        """Test a non-flow message during a session answers the pending step."""
        say("/checkin")

        assert say("/today") == [flows.INVALID_BATTERY_MESSAGE]
        assert say("2") == [_step_prompt(flows.MORNING_CHECKIN, 1)]
        assert get_config("model") is None


class TestUpdatePlan:
    """Tests for the plan update flow."""

    def test_no_log_gives_guidance(self, say, bot, onboarded):
        """Test /updatePlan without a check-in explains what to do."""
        say("/reflect")

        assert say("/updatePlan") == [flows.NO_LOG_FOR_UPDATE]
        assert AUTHORIZED_USER_ID not in bot.sessions

    def test_no_plan_gives_guidance(self, say, bot, onboarded, mock_now_utc):
        """Test /updatePlan without a plan explains what to do."""
        upsert_daily_log("2026-01-15", {"body_battery_start": 70})

        assert say("/updatePlan") == [flows.NO_PLAN_FOR_UPDATE]
        assert AUTHORIZED_USER_ID not in bot.sessions

    def test_empty_change_reprompts(self, say, onboarded, sample_daily_log):
        """Test a blank change description is rejected."""
        upsert_daily_log("2026-01-15", {"generated_plan": sample_daily_log["generated_plan"]})
        say("/updatePlan")

        assert say("   ") == ["❌ Please provide details about what you'd like to update."]

    def test_update_sends_diff_then_saves_plan(self, say, onboarded, mock_generate, sample_daily_log):
        """Test phase A sends the diff and phase B stores the regenerated plan."""
        upsert_daily_log("2026-01-15", {"generated_plan": sample_daily_log["generated_plan"]})
        mock_generate.side_effect = ["- Meeting removed", "09:00 Deep work all morning"]

        say("/updatePlan")
        replies = say("Meeting cancelled")

        assert replies[0] == "🔄 Processing your plan update..."
        assert replies[1] == "📋 *Plan Changes*\n\n- Meeting removed"
        assert replies[2].startswith("✅ *Plan updated*")
        assert get_daily_log("2026-01-15")["generated_plan"] == "09:00 Deep work all morning"

        # Phase B carries the change as an important update
        regen_messages = mock_generate.call_args_list[1][0][0]
        assert "Important update: Meeting cancelled" in regen_messages[1]["content"]

    def test_regeneration_failure_keeps_diff(self, say, bot, onboarded, mock_generate, sample_daily_log):
        """Test a phase B failure warns but doesn't retract the diff."""
        upsert_daily_log("2026-01-15", {"generated_plan": sample_daily_log["generated_plan"]})
        mock_generate.side_effect = ["- Meeting removed", RuntimeError("timeout")]

        say("/updatePlan")
        replies = say("Meeting cancelled")

        assert replies[1] == "📋 *Plan Changes*\n\n- Meeting removed"
        assert replies[2].startswith("⚠️ I showed you the changes")
        assert get_daily_log("2026-01-15")["generated_plan"] == sample_daily_log["generated_plan"]
        assert AUTHORIZED_USER_ID not in bot.sessions

    def test_regenerated_plan_not_stored_warns(self, say, onboarded, mock_generate, sample_daily_log, monkeypatch):
        """Test the re-read must find the new plan, not the old one."""
        upsert_daily_log("2026-01-15", {"generated_plan": sample_daily_log["generated_plan"]})
        mock_generate.side_effect = ["- Meeting removed", "09:00 Deep work all morning"]
        monkeypatch.setattr(flows, "upsert_daily_log", lambda date, fields: fields)

        say("/updatePlan")
        replies = say("Meeting cancelled")

        assert replies[1] == "📋 *Plan Changes*\n\n- Meeting removed"
        assert replies[2].startswith("⚠️ I showed you the changes")
        assert get_daily_log("2026-01-15")["generated_plan"] == sample_daily_log["generated_plan"]

    def test_diff_failure_apologises(self, say, onboarded, mock_generate, sample_daily_log):
        """Test a phase A failure gives the fixed apology."""
        upsert_daily_log("2026-01-15", {"generated_plan": sample_daily_log["generated_plan"]})
        mock_generate.side_effect = RuntimeError("gateway down")

        say("/updatePlan")
        replies = say("Meeting cancelled")

        assert replies == [
            "🔄 Processing your plan update...",
            "❌ Sorry, I couldn't process your plan update. Please try again later.",
        ]

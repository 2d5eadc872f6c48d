"""
Shared pytest fixtures for Energy Exec tests.
"""

import pytest
import sys
from pathlib import Path
from datetime import datetime, timezone
from unittest.mock import MagicMock

# Add parent directory to path so the energy_exec package is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from energy_exec.bot.engine import PlannerBot
from energy_exec.interfaces import Collaborators, IncomingMessage

AUTHORIZED_USER_ID = 4242


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Redirect all data paths to temp directory."""
    from energy_exec import config

    monkeypatch.setattr(config, "DATA_DIR", tmp_path)
    monkeypatch.setattr(config, "DAILY_LOGS_DIR", tmp_path / "daily_logs")
    monkeypatch.setattr(config, "CONFIG_FILE", tmp_path / "config.json")
    monkeypatch.setattr(config, "MESSAGES_FILE", tmp_path / "messages.jsonl")

    (tmp_path / "daily_logs").mkdir()

    return tmp_path


@pytest.fixture
def mock_now_utc(monkeypatch):
    """Mock now_utc() to return a fixed datetime."""
    from energy_exec import utils

    fixed_time = datetime(2026, 1, 15, 10, 30, 0, tzinfo=timezone.utc)
    monkeypatch.setattr(utils, "now_utc", lambda: fixed_time)
    return fixed_time


@pytest.fixture
def onboarded(temp_data_dir):
    """A user who already picked a timezone."""
    from energy_exec.storage import set_config

    set_config("timezone", "America/New_York")


@pytest.fixture
def sent():
    """Everything the bot sends, as (chat_id, text, markdown) tuples."""
    return []


@pytest.fixture
def mock_generate():
    """Text generator that returns a canned plan."""
    return MagicMock(return_value="09:00 Deep work\n10:30 Break")


@pytest.fixture
def bot(temp_data_dir, mock_now_utc, sent, mock_generate):
    """PlannerBot wired to a recording send and a mock generator."""
    def send(chat_id, text, markdown=False):
        sent.append((chat_id, text, markdown))
        return 1000 + len(sent)

    return PlannerBot(Collaborators(send=send, generate=mock_generate), AUTHORIZED_USER_ID)


@pytest.fixture
def make_message():
    """Factory for incoming messages from the authorized user."""
    counter = {"id": 0}

    def _make(text, user_id=AUTHORIZED_USER_ID):
        counter["id"] += 1
        return IncomingMessage(
            user_id=user_id,
            chat_id=user_id or 1,
            message_id=counter["id"],
            timestamp=1768473000,
            text=text,
        )

    return _make


@pytest.fixture
def say(bot, make_message, sent):
    """Send a text to the bot and return only the replies it produced."""
    def _say(text, user_id=AUTHORIZED_USER_ID):
        before = len(sent)
        bot.handle_message(make_message(text, user_id=user_id))
        return [text for _, text, _ in sent[before:]]

    return _say


@pytest.fixture
def sample_daily_log():
    """A completed morning check-in with a plan."""
    return {
        "date": "2026-01-15",
        "body_battery_start": 72,
        "body_battery_end": None,
        "sleep_notes": "7 hours, woke up twice",
        "mood": {"text": "motivated but tired"},
        "priorities": ["Finish quarterly report"],
        "appointments": ["Meeting at 2pm"],
        "generated_plan": "09:00 Deep work on report\n14:00 Meeting",
        "reflections": None,
        "notes_for_tomorrow": None,
        "updated_at": "2026-01-15T08:00:00+00:00",
    }

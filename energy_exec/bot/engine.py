"""
Message routing for the Energy Exec bot.

PlannerBot takes one IncomingMessage at a time and decides what it is: an
unauthorized sender, a flow entry, an answer to a pending flow step, a
command, a model choice, or plain chat.
"""

from typing import Optional

from energy_exec import utils
from energy_exec.bot import flows, parsers
from energy_exec.bot.commands import COMMANDS, select_model
from energy_exec.bot.session import Session, SessionStore
from energy_exec.config import logger
from energy_exec.interfaces import Collaborators, IncomingMessage
from energy_exec.llm.planner import chat_reply
from energy_exec.storage.config_store import TIMEZONE_KEY, get_config, is_user_onboarded
from energy_exec.storage.daily_logs import get_daily_log
from energy_exec.storage.messages import log_message

UNIDENTIFIED_USER_MESSAGE = "Error: Could not identify user."
ACCESS_DENIED_MESSAGE = "Access denied. This bot is private."
UNKNOWN_COMMAND_MESSAGE = "Unknown command. Try /help"
GENERIC_ERROR_MESSAGE = (
    "Sorry, something went wrong. Please try again later or contact support if the issue persists."
)

# Commands that always (re)start a flow, dropping any session in progress
FLOW_COMMANDS = {
    "checkin": flows.MORNING_CHECKIN,
    "reflect": flows.EVENING_REFLECTION,
    "updatePlan": flows.UPDATE_PLAN,
    "timezone": flows.ONBOARDING,
}


class PlannerBot:
    """Single-user planning bot with in-memory conversation sessions."""

    def __init__(self, collaborators: Collaborators, authorized_user_id: Optional[int]):
        self.collaborators = collaborators
        self.authorized_user_id = authorized_user_id
        self.sessions = SessionStore()

    # ------------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------------

    def reply(self, message: IncomingMessage, text: str, markdown: bool = False) -> Optional[int]:
        """Send text to the message's chat and record it in the message log."""
        sent_id = self.collaborators.send(message.chat_id, text, markdown=markdown)
        try:
            log_message(sent_id if sent_id is not None else message.message_id + 1, "outgoing", text)
        except Exception as e:
            logger.error(f"Failed to log outgoing message (user={message.user_id}): {e}")
        return sent_id

    # ------------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------------

    def handle_message(self, message: IncomingMessage):
        """Process one inbound text message. Never raises."""
        if message.user_id is None:
            self.collaborators.send(message.chat_id, UNIDENTIFIED_USER_MESSAGE)
            return
        if message.user_id != self.authorized_user_id:
            logger.warning(f"Rejected message from unauthorized user {message.user_id}")
            self.collaborators.send(message.chat_id, ACCESS_DENIED_MESSAGE)
            return

        try:
            log_message(message.message_id, "incoming", message.text)
        except Exception as e:
            logger.error(f"Failed to log incoming message (user={message.user_id}): {e}")

        try:
            self._route(message)
        except Exception as e:
            logger.exception(f"Unhandled error (user={message.user_id}): {e}")
            self.sessions.discard(message.user_id)
            self.reply(message, GENERIC_ERROR_MESSAGE)

    def _route(self, message: IncomingMessage):
        command = parsers.parse_command(message.text)
        name, args = command if command else (None, [])

        onboarded = is_user_onboarded()
        flow_name = FLOW_COMMANDS.get(name)
        if not onboarded and (flow_name or name == "start"):
            flow_name = flows.ONBOARDING
        if flow_name:
            self.enter_flow(message, flow_name)
            return

        session = self.sessions.get(message.user_id)
        if session is not None:
            self.advance(message, session)
            return

        if not onboarded and name != "help":
            self.enter_flow(message, flows.ONBOARDING)
            return

        if command:
            handler = COMMANDS.get(name)
            if handler is None:
                self.reply(message, UNKNOWN_COMMAND_MESSAGE)
                return
            logger.info(f"Command /{name} (user={message.user_id})")
            handler(self, message, args)
            return

        selection = parsers.parse_model_selection(message.text)
        if isinstance(selection, parsers.Matched):
            select_model(self, message, selection.variant)
            return

        self._chat(message)

    def _chat(self, message: IncomingMessage):
        today = utils.today_key()
        response = chat_reply(
            self.collaborators.generate,
            message.text,
            current_day_log=get_daily_log(today),
            timezone=get_config(TIMEZONE_KEY),
        )
        self.reply(message, response)

    # ------------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------------

    def enter_flow(self, message: IncomingMessage, flow_name: str):
        """Start a flow from its first step, replacing any session in progress."""
        flow = flows.FLOWS[flow_name]
        previous = self.sessions.discard(message.user_id)
        if previous is not None:
            logger.info(f"Discarding {previous.flow} session (user={message.user_id})")

        session = Session(flow=flow_name, date=utils.today_key())
        if flow.prepare is not None and not flow.prepare(self, message, session):
            return

        self.sessions.start(message.user_id, session)
        logger.info(f"Started {flow_name} (user={message.user_id}, date={session.date})")

        if flow.intro:
            self.reply(message, flow.intro)
        self._prompt(message, flow.steps[0])

    def advance(self, message: IncomingMessage, session: Session):
        """Feed the message to the session's pending step."""
        flow = flows.FLOWS[session.flow]
        step = flow.steps[session.step]
        outcome = step.parse(message.text)

        if isinstance(outcome, flows.Reject):
            self.reply(message, outcome.error)
            return

        if outcome.warning:
            self.reply(message, outcome.warning)
        session.answers[step.key] = outcome.value
        session.step += 1

        if session.step < len(flow.steps):
            self._prompt(message, flow.steps[session.step])
            return

        self.sessions.discard(message.user_id)
        flow.complete(self, message, session)

    def _prompt(self, message: IncomingMessage, step: flows.Step):
        self.reply(message, step.prompt, markdown=step.markdown)

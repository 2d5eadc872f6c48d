"""Conversation engine: routing, flows, sessions, and commands."""

from energy_exec.bot.engine import PlannerBot
from energy_exec.bot.session import Session, SessionStore
from energy_exec.bot.flows import Accept, Reject, FLOWS
from energy_exec.bot.parsers import Matched, NO_MATCH

__all__ = [
    "PlannerBot",
    "Session",
    "SessionStore",
    "Accept",
    "Reject",
    "FLOWS",
    "Matched",
    "NO_MATCH",
]

"""
Transport-free types shared by the bot core and its collaborators.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

# send(chat_id, text, markdown=False) -> sent message id, or None on failure
SendFn = Callable[..., Optional[int]]

# generate(messages, model) -> generated text; raises on any failure
GenerateFn = Callable[[List[dict], str], str]


@dataclass(frozen=True)
class IncomingMessage:
    """A text message from the chat transport."""

    user_id: Optional[int]
    chat_id: int
    message_id: int
    timestamp: int
    text: str


@dataclass
class Collaborators:
    """External services the bot needs; swapped for fakes in tests."""

    send: SendFn
    generate: GenerateFn

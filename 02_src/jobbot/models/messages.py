"""Transcript data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


@dataclass
class Message:
    """A single line of a conversation transcript."""

    id: str
    conversation_id: str
    role: Literal["user", "bot"]
    content: str
    timestamp: datetime

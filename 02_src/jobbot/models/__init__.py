"""Core data models for the job bot."""

from .activities import (
    Activity,
    ChannelAccount,
    ConversationReference,
    ConversationUpdateActivity,
    EventActivity,
    MessageActivity,
    get_conversation_reference,
)
from .bus import BusMessage, Topic
from .dialogue import DialogFrame, DialogId, StepId, UserProfile
from .jobs import JobRecord
from .messages import Message
from .resume import ResumeCommand, ResumeResult
from .tracing import TraceEvent

__all__ = [
    # Activities
    "Activity",
    "ChannelAccount",
    "ConversationReference",
    "ConversationUpdateActivity",
    "EventActivity",
    "MessageActivity",
    "get_conversation_reference",
    # Jobs
    "JobRecord",
    # Dialogs
    "DialogFrame",
    "DialogId",
    "StepId",
    "UserProfile",
    # Resume
    "ResumeCommand",
    "ResumeResult",
    # Transcript
    "Message",
    # Bus
    "BusMessage",
    "Topic",
    # Tracing
    "TraceEvent",
]

"""Proactive job bot core."""

from .app import Application, IApplication
from .bot import JobBot
from .channel import ChannelAdapter, IChannelAdapter, PropertyState, TurnContext
from .commands import CommandDispatcher, classify
from .dialogs import DialogEngine, IDialogEngine
from .errors import (
    AlreadyCompletedError,
    DuplicateJobError,
    JobBotError,
    NotFoundError,
    PersistStoreError,
    ResumeUnreachableError,
    VersionConflictError,
)
from .event_bus import EventBus, IEventBus
from .jobs import IJobRegistry, JobIdGenerator, JobRegistry
from .models import (
    BusMessage,
    ChannelAccount,
    ConversationReference,
    ConversationUpdateActivity,
    EventActivity,
    JobRecord,
    Message,
    MessageActivity,
    Topic,
    TraceEvent,
    UserProfile,
)
from .output_router import IOutputRouter, OutputRouter
from .proactive import IProactiveNotifier, IResumeScheduler, ProactiveNotifier, ResumeScheduler
from .storage import IStorage, Scope, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    "JobBot",
    # Models
    "BusMessage",
    "ChannelAccount",
    "ConversationReference",
    "ConversationUpdateActivity",
    "EventActivity",
    "JobRecord",
    "Message",
    "MessageActivity",
    "Topic",
    "TraceEvent",
    "UserProfile",
    # Errors
    "AlreadyCompletedError",
    "DuplicateJobError",
    "JobBotError",
    "NotFoundError",
    "PersistStoreError",
    "ResumeUnreachableError",
    "VersionConflictError",
    # Components
    "IStorage",
    "Scope",
    "Storage",
    "IEventBus",
    "EventBus",
    "ITracker",
    "Tracker",
    "IChannelAdapter",
    "ChannelAdapter",
    "PropertyState",
    "TurnContext",
    "IOutputRouter",
    "OutputRouter",
    "IJobRegistry",
    "JobIdGenerator",
    "JobRegistry",
    "IDialogEngine",
    "DialogEngine",
    "IResumeScheduler",
    "ResumeScheduler",
    "IProactiveNotifier",
    "ProactiveNotifier",
    "CommandDispatcher",
    "classify",
]

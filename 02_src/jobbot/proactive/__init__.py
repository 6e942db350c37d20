"""Proactive notification module."""

from .notifier import JOB_COMPLETED, NOTIFICATION_SENT, IProactiveNotifier, ProactiveNotifier
from .scheduler import Continuation, IResumeScheduler, ResumeScheduler

__all__ = [
    "Continuation",
    "IProactiveNotifier",
    "IResumeScheduler",
    "JOB_COMPLETED",
    "NOTIFICATION_SENT",
    "ProactiveNotifier",
    "ResumeScheduler",
]

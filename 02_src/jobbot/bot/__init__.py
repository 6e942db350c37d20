"""Bot module."""

from .job_bot import JOB_COMPLETED_EVENT, WELCOME, JobBot

__all__ = ["JOB_COMPLETED_EVENT", "JobBot", "WELCOME"]

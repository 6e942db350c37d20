"""Commands module."""

from .dispatcher import DONE_USAGE, EMPTY_JOB_LOG, CommandDispatcher, render_job_table
from .parser import Command, CommandKind, classify, parse_job_id

__all__ = [
    "Command",
    "CommandDispatcher",
    "CommandKind",
    "DONE_USAGE",
    "EMPTY_JOB_LOG",
    "classify",
    "parse_job_id",
    "render_job_table",
]

"""Jobs module."""

from .ids import JobIdGenerator
from .registry import IJobRegistry, JobRegistry

__all__ = ["IJobRegistry", "JobIdGenerator", "JobRegistry"]

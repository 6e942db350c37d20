"""Error taxonomy for the job bot.

Every error derives from ``JobBotError`` so the turn boundary can convert any
of them into a reply in the triggering conversation.
"""


class JobBotError(Exception):
    """Base class for all recoverable job bot errors."""


class DuplicateJobError(JobBotError):
    """A job with this identifier already exists."""

    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} already exists.")
        self.job_id = job_id


class NotFoundError(JobBotError):
    """No job is registered under this identifier."""

    def __init__(self, job_id: str):
        super().__init__(f"Sorry no job with ID {job_id}.")
        self.job_id = job_id


class AlreadyCompletedError(JobBotError):
    """The job was completed before; it will not be notified again."""

    def __init__(self, job_id: str):
        super().__init__("This job is already completed, please start a new job.")
        self.job_id = job_id


class PersistStoreError(JobBotError):
    """The underlying storage failed on read or write."""


class VersionConflictError(PersistStoreError):
    """A compare-and-swap write lost against a concurrent writer."""

    def __init__(self, scope: str, scope_id: str, key: str, expected_version: int):
        super().__init__(
            f"Version conflict on {scope}/{scope_id}/{key} "
            f"(expected version {expected_version})"
        )
        self.expected_version = expected_version


class ResumeUnreachableError(JobBotError):
    """A stored conversation reference could not be resumed."""

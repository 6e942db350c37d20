"""Classification of inbound text into bot commands."""

from dataclasses import dataclass
from enum import Enum


class CommandKind(str, Enum):
    RUN = "run"
    SHOW = "show"
    DONE = "done"
    DONE_MISSING_ID = "done_missing_id"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    job_id: int | None = None


def parse_job_id(value: object) -> int | None:
    """Return ``value`` as an integer job id, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def classify(text: str | None) -> Command:
    """Map one utterance to exactly one command. Trimmed and case-insensitive."""
    utterance = (text or "").strip().lower()

    if utterance == "run":
        return Command(CommandKind.RUN)
    if utterance == "show":
        return Command(CommandKind.SHOW)

    words = utterance.split()
    if words and words[0] == "done":
        job_id = parse_job_id(words[1]) if len(words) > 1 else None
        if job_id is None:
            return Command(CommandKind.DONE_MISSING_ID)
        return Command(CommandKind.DONE, job_id)

    return Command(CommandKind.UNRECOGNIZED)

"""Proactive resume command models."""

from dataclasses import dataclass

from .activities import ConversationReference


@dataclass(frozen=True)
class ResumeCommand:
    """Request to re-enter a conversation and run a named continuation in it."""

    id: str
    job_id: str
    reference: ConversationReference
    continuation: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "job_id": self.job_id,
            "reference": self.reference.to_dict(),
            "continuation": self.continuation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ResumeCommand":
        return cls(
            id=data["id"],
            job_id=data["job_id"],
            reference=ConversationReference.from_dict(data["reference"]),
            continuation=data["continuation"],
        )


@dataclass(frozen=True)
class ResumeResult:
    """Outcome of a ResumeCommand."""

    command_id: str
    ok: bool
    error: str | None = None

    def to_dict(self) -> dict:
        return {"command_id": self.command_id, "ok": self.ok, "error": self.error}

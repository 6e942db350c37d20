"""Job-related data models."""

from dataclasses import dataclass, replace
from datetime import datetime

from .activities import ConversationReference


@dataclass(frozen=True)
class JobRecord:
    """A tracked background job and the conversation that started it."""

    id: str
    reference: ConversationReference
    created_at: datetime
    completed: bool = False
    completed_at: datetime | None = None

    def mark_completed(self, when: datetime) -> "JobRecord":
        """Return the completed copy of this record; the reference is carried over untouched."""
        return replace(self, completed=True, completed_at=when)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "completed": self.completed,
            "reference": self.reference.to_dict(),
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JobRecord":
        return cls(
            id=data["id"],
            completed=data["completed"],
            reference=ConversationReference.from_dict(data["reference"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            completed_at=(
                datetime.fromisoformat(data["completed_at"])
                if data.get("completed_at")
                else None
            ),
        )

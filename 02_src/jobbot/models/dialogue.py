"""Dialog-related data models."""

from dataclasses import dataclass
from enum import Enum


class DialogId(str, Enum):
    """Named multi-step dialogs."""

    WHO_ARE_YOU = "who_are_you"
    HELLO_USER = "hello_user"


class StepId(str, Enum):
    """Waterfall steps, in the order they appear in their dialog."""

    PROMPT_FOR_NAME = "prompt_for_name"
    PROMPT_FOR_CITY = "prompt_for_city"
    CAPTURE_CITY = "capture_city"
    DISPLAY_PROFILE = "display_profile"


@dataclass
class UserProfile:
    """What the bot knows about a user."""

    name: str | None = None
    city: str | None = None

    def to_dict(self) -> dict:
        return {"name": self.name, "city": self.city}

    @classmethod
    def from_dict(cls, data: dict | None) -> "UserProfile":
        data = data or {}
        return cls(name=data.get("name"), city=data.get("city"))


@dataclass(frozen=True)
class DialogFrame:
    """One entry of a conversation's dialog stack.

    A frame always sits on a step that is waiting for a reply; ``prompt`` is
    the text that step asked, kept so a blank reply can re-ask it.
    """

    dialog_id: DialogId
    step_index: int
    result: str | None = None
    prompt: str | None = None

    def to_dict(self) -> dict:
        return {
            "dialog_id": self.dialog_id.value,
            "step_index": self.step_index,
            "result": self.result,
            "prompt": self.prompt,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DialogFrame":
        return cls(
            dialog_id=DialogId(data["dialog_id"]),
            step_index=data["step_index"],
            result=data.get("result"),
            prompt=data.get("prompt"),
        )

"""Inbound activities and conversation references."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ChannelAccount:
    """A participant on a channel (user or bot)."""

    id: str
    name: str | None = None

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "ChannelAccount":
        return cls(id=data["id"], name=data.get("name"))


@dataclass(frozen=True, eq=False)
class ConversationReference:
    """Durable handle for re-entering a conversation from outside a turn.

    Two references are equal when they point at the same conversation on the
    same channel, regardless of which user or activity they were captured from.
    """

    channel_id: str
    conversation_id: str
    user: ChannelAccount
    bot: ChannelAccount
    service_url: str | None = None
    activity_id: str | None = None

    @property
    def conversation_key(self) -> str:
        return f"{self.channel_id}/{self.conversation_id}"

    @property
    def user_key(self) -> str:
        return f"{self.channel_id}/{self.user.id}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConversationReference):
            return NotImplemented
        return (self.channel_id, self.conversation_id) == (
            other.channel_id,
            other.conversation_id,
        )

    def __hash__(self) -> int:
        return hash((self.channel_id, self.conversation_id))

    def to_dict(self) -> dict:
        return {
            "channel_id": self.channel_id,
            "conversation_id": self.conversation_id,
            "user": self.user.to_dict(),
            "bot": self.bot.to_dict(),
            "service_url": self.service_url,
            "activity_id": self.activity_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConversationReference":
        return cls(
            channel_id=data["channel_id"],
            conversation_id=data["conversation_id"],
            user=ChannelAccount.from_dict(data["user"]),
            bot=ChannelAccount.from_dict(data["bot"]),
            service_url=data.get("service_url"),
            activity_id=data.get("activity_id"),
        )


@dataclass(frozen=True)
class Activity:
    """Envelope shared by every inbound activity."""

    id: str
    channel_id: str
    conversation_id: str
    from_account: ChannelAccount
    recipient: ChannelAccount
    service_url: str | None = None


@dataclass(frozen=True)
class MessageActivity(Activity):
    """Human-typed text."""

    text: str = ""


@dataclass(frozen=True)
class EventActivity(Activity):
    """Named system event with an arbitrary payload."""

    name: str = ""
    value: Any = None


@dataclass(frozen=True)
class ConversationUpdateActivity(Activity):
    """Membership change in a conversation."""

    members_added: tuple[ChannelAccount, ...] = field(default_factory=tuple)


def get_conversation_reference(activity: Activity) -> ConversationReference:
    """Capture the reference of the conversation an inbound activity belongs to."""
    return ConversationReference(
        channel_id=activity.channel_id,
        conversation_id=activity.conversation_id,
        user=activity.from_account,
        bot=activity.recipient,
        service_url=activity.service_url,
        activity_id=activity.id,
    )

"""Inbound activity routes."""

import uuid
from typing import Annotated, Any, Literal, Union

from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ...app import Application
from ...models import (
    Activity,
    ChannelAccount,
    ConversationUpdateActivity,
    EventActivity,
    MessageActivity,
)


class AccountModel(BaseModel):
    """A channel participant."""

    id: str
    name: str | None = None

    def to_account(self) -> ChannelAccount:
        return ChannelAccount(id=self.id, name=self.name)


class ActivityRequest(BaseModel):
    """Fields shared by every inbound activity."""

    id: str | None = None
    channel_id: str = "webchat"
    conversation_id: str
    user: AccountModel
    bot: AccountModel | None = None
    service_url: str | None = None

    def envelope(self, default_bot: ChannelAccount) -> dict:
        return {
            "id": self.id or str(uuid.uuid4()),
            "channel_id": self.channel_id,
            "conversation_id": self.conversation_id,
            "from_account": self.user.to_account(),
            "recipient": self.bot.to_account() if self.bot else default_bot,
            "service_url": self.service_url,
        }


class MessageRequest(ActivityRequest):
    type: Literal["message"]
    text: str = ""

    def to_activity(self, default_bot: ChannelAccount) -> Activity:
        return MessageActivity(**self.envelope(default_bot), text=self.text)


class EventRequest(ActivityRequest):
    type: Literal["event"]
    name: str
    value: Any = None

    def to_activity(self, default_bot: ChannelAccount) -> Activity:
        return EventActivity(**self.envelope(default_bot), name=self.name, value=self.value)


class ConversationUpdateRequest(ActivityRequest):
    type: Literal["conversationUpdate"]
    members_added: list[AccountModel] = Field(default_factory=list)

    def to_activity(self, default_bot: ChannelAccount) -> Activity:
        return ConversationUpdateActivity(
            **self.envelope(default_bot),
            members_added=tuple(m.to_account() for m in self.members_added),
        )


InboundActivity = Annotated[
    Union[MessageRequest, EventRequest, ConversationUpdateRequest],
    Field(discriminator="type"),
]
_inbound_adapter = TypeAdapter(InboundActivity)


class ActivityResponse(BaseModel):
    """Replies sent within the turn."""

    replies: list[str]


def create_activities_router(app: Application) -> APIRouter:
    """Create inbound activity router."""
    router = APIRouter(prefix="/api", tags=["activities"])
    bot_account = ChannelAccount(id=app.settings.bot_id, name=app.settings.bot_name)

    @router.post("/activities", response_model=ActivityResponse)
    async def post_activity(payload: dict = Body(...)) -> dict:
        """Run one turn for an inbound activity."""
        try:
            request = _inbound_adapter.validate_python(payload)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=e.errors(include_url=False))

        try:
            replies = await app.bot.handle(request.to_activity(bot_account))
            return {"replies": replies}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router

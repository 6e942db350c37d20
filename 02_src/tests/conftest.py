"""Pytest configuration and fixtures."""

import sys
import uuid
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from jobbot.models import (  # noqa: E402
    ChannelAccount,
    ConversationReference,
    ConversationUpdateActivity,
    EventActivity,
    MessageActivity,
)

BOT = ChannelAccount(id="bot", name="Bot")


def _envelope(conversation_id: str, user_id: str, channel_id: str = "test") -> dict:
    return {
        "id": str(uuid.uuid4()),
        "channel_id": channel_id,
        "conversation_id": conversation_id,
        "from_account": ChannelAccount(id=user_id, name=user_id.title()),
        "recipient": BOT,
    }


@pytest.fixture
def make_message():
    """Factory for inbound text activities."""

    def factory(text: str, conversation_id: str = "conv1", user_id: str = "user1"):
        return MessageActivity(**_envelope(conversation_id, user_id), text=text)

    return factory


@pytest.fixture
def make_event():
    """Factory for inbound named events."""

    def factory(name: str, value, conversation_id: str = "ops", user_id: str = "operator"):
        return EventActivity(**_envelope(conversation_id, user_id), name=name, value=value)

    return factory


@pytest.fixture
def make_update():
    """Factory for members-added activities."""

    def factory(members: list[ChannelAccount], conversation_id: str = "conv1"):
        return ConversationUpdateActivity(
            **_envelope(conversation_id, "user1"), members_added=tuple(members)
        )

    return factory


@pytest.fixture
def reference():
    """A reference to conversation conv1 on the test channel."""
    return ConversationReference(
        channel_id="test",
        conversation_id="conv1",
        user=ChannelAccount(id="user1", name="User1"),
        bot=BOT,
    )


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from jobbot.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def event_bus(storage):
    """Create EventBus with storage."""
    from jobbot.event_bus import EventBus

    return EventBus(storage)


@pytest.fixture
def tracker(storage, event_bus):
    """Create Tracker with storage and event bus."""
    from jobbot.tracker import Tracker

    return Tracker(event_bus=event_bus, storage=storage)


@pytest_asyncio.fixture
async def output_router(event_bus, storage, tracker):
    """Started OutputRouter writing outbound text to the transcript."""
    from jobbot.output_router import OutputRouter

    router = OutputRouter(event_bus=event_bus, storage=storage, tracker=tracker)
    await router.start()
    yield router
    await router.stop()


@pytest.fixture
def adapter(event_bus, storage, output_router):
    """Channel adapter whose output lands in the transcript."""
    from jobbot.channel import ChannelAdapter

    return ChannelAdapter(event_bus, storage)


@pytest.fixture
def registry(storage):
    """Job registry over in-memory storage."""
    from jobbot.jobs import JobRegistry

    return JobRegistry(storage, bot_id="bot", max_retries=3)


@pytest.fixture
def dialogs(tracker):
    """Dialog engine."""
    from jobbot.dialogs import DialogEngine

    return DialogEngine(tracker)


@pytest_asyncio.fixture
async def scheduler(event_bus, adapter, tracker):
    """Started resume scheduler with a short timeout."""
    from jobbot.proactive import ResumeScheduler

    sch = ResumeScheduler(event_bus=event_bus, adapter=adapter, tracker=tracker, timeout=2.0)
    await sch.start()
    yield sch
    await sch.stop()


@pytest_asyncio.fixture
async def notifier(registry, scheduler, dialogs, tracker):
    """Started proactive notifier."""
    from jobbot.proactive import ProactiveNotifier

    pn = ProactiveNotifier(
        registry=registry, scheduler=scheduler, dialogs=dialogs, tracker=tracker
    )
    await pn.start()
    return pn


@pytest.fixture
def id_generator():
    """Deterministic job ids 1, 2, 3, ..."""
    from jobbot.jobs import JobIdGenerator

    # A frozen clock makes the generator fall back to last + 1
    return JobIdGenerator(clock=lambda: 0.0)


@pytest.fixture
def dispatcher(registry, notifier, tracker, id_generator):
    """Command dispatcher with deterministic ids."""
    from jobbot.commands import CommandDispatcher

    return CommandDispatcher(
        registry=registry, notifier=notifier, tracker=tracker, id_generator=id_generator
    )


@pytest.fixture
def bot(adapter, dispatcher, dialogs, notifier):
    """Fully wired JobBot."""
    from jobbot.bot import JobBot

    return JobBot(adapter=adapter, dispatcher=dispatcher, dialogs=dialogs, notifier=notifier)


@pytest.fixture
def mock_tracker():
    """Tracker that records nothing."""
    tr = Mock()
    tr.track = AsyncMock()
    return tr

"""Tests for Tracker."""

from datetime import datetime, timezone

import pytest

from jobbot.models import BusMessage, Topic


def _bus_message(topic=Topic.INPUT, source="test_source"):
    return BusMessage(
        id="bus1",
        topic=topic,
        payload={"conversation_id": "conv1"},
        source=source,
        timestamp=datetime.now(timezone.utc),
    )


class TestTrackerTrack:
    """Tests for Tracker.track() method."""

    @pytest.mark.asyncio
    async def test_track_creates_event(self, tracker, storage):
        """Test that track() creates a TraceEvent."""
        await tracker.track(
            event_type="job_created",
            actor="command_dispatcher",
            data={"job_id": "1"},
        )

        events = await storage.get_trace_events()
        assert len(events) == 1
        assert events[0].event_type == "job_created"
        assert events[0].actor == "command_dispatcher"
        assert events[0].data == {"job_id": "1"}

    @pytest.mark.asyncio
    async def test_track_generates_id_and_timestamp(self, tracker, storage):
        """Test that track() fills in id and timestamp."""
        before = datetime.now(timezone.utc)
        await tracker.track(event_type="e", actor="a", data={})
        after = datetime.now(timezone.utc)

        events = await storage.get_trace_events()
        assert events[0].id
        assert before <= events[0].timestamp <= after


class TestTrackerSubscription:
    """Tests for Tracker EventBus subscription."""

    @pytest.mark.asyncio
    async def test_subscription_records_bus_messages(self, tracker, event_bus, storage):
        """Test that every topic is traced once the tracker is started."""
        await tracker.start()

        await event_bus.publish(_bus_message(Topic.OUTPUT, source="channel_adapter"))

        events = await storage.get_trace_events(event_types=["reply_published"])
        assert len(events) == 1
        assert events[0].actor == "event_bus"
        assert events[0].data["source"] == "channel_adapter"
        assert events[0].data["conversation_id"] == "conv1"

        await tracker.stop()

    @pytest.mark.asyncio
    async def test_resume_command_is_correlated(self, tracker, event_bus, storage, reference):
        """Test that resume commands are traced with job, command and conversation ids."""
        from jobbot.models import ResumeCommand

        await tracker.start()
        command = ResumeCommand(
            id="cmd1", job_id="7", reference=reference, continuation="job_completed"
        )

        await event_bus.publish(
            BusMessage(
                id="bus2",
                topic=Topic.RESUME,
                payload=command.to_dict(),
                source="resume_scheduler",
                timestamp=datetime.now(timezone.utc),
            )
        )

        events = await storage.get_trace_events(event_types=["resume_requested"])
        assert events[0].data["job_id"] == "7"
        assert events[0].data["command_id"] == "cmd1"
        assert events[0].data["conversation_id"] == "conv1"

        await tracker.stop()

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(self, tracker, event_bus, storage):
        """Test that a stopped tracker no longer traces bus traffic."""
        await tracker.start()
        await tracker.stop()

        await event_bus.publish(_bus_message())

        assert await storage.get_trace_events() == []


class TestCorrelation:
    """Tests for correlation()."""

    def test_plain_keys(self):
        from jobbot.tracker.tracker import correlation

        assert correlation({"job_id": "1", "content": "x"}) == {"job_id": "1"}

    def test_empty_payload(self):
        from jobbot.tracker.tracker import correlation

        assert correlation({}) == {}

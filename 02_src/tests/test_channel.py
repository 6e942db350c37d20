"""Tests for the channel layer: scoped state, conversation locks and the adapter."""

import asyncio

import pytest

from jobbot.channel import ConversationLocks, PropertyState
from jobbot.channel.adapter import REFERENCE_KEY
from jobbot.errors import PersistStoreError, ResumeUnreachableError
from jobbot.storage import Scope


class TestPropertyState:
    """Tests for PropertyState."""

    @pytest.mark.asyncio
    async def test_get_default_when_missing(self, storage):
        """Test that unknown keys return the default."""
        state = PropertyState(storage, Scope.USER, "test/user1")
        assert await state.get("user", {}) == {}

    @pytest.mark.asyncio
    async def test_set_is_not_persisted_until_saved(self, storage):
        """Test that set() only changes the cached view."""
        state = PropertyState(storage, Scope.USER, "test/user1")
        state.set("user", {"name": "Ada"})

        assert state.has_changes
        assert await storage.get_property(Scope.USER, "test/user1", "user") is None

        await state.save_changes()

        stored = await storage.get_property(Scope.USER, "test/user1", "user")
        assert stored.value == {"name": "Ada"}
        assert not state.has_changes

    @pytest.mark.asyncio
    async def test_save_writes_only_changed_keys(self, storage):
        """Test that a stale cached key does not overwrite a newer value."""
        state = PropertyState(storage, Scope.CONVERSATION, "test/conv1")
        assert await state.get("dialog_state") is None

        # Another turn writes the key after this one cached it
        await storage.put_property(Scope.CONVERSATION, "test/conv1", "dialog_state", [1])

        state.set("other", True)
        await state.save_changes()

        stored = await storage.get_property(Scope.CONVERSATION, "test/conv1", "dialog_state")
        assert stored.value == [1]

    @pytest.mark.asyncio
    async def test_get_is_cached_for_the_turn(self, storage):
        """Test that values are read once per state instance."""
        await storage.put_property(Scope.USER, "u", "k", 1)
        state = PropertyState(storage, Scope.USER, "u")
        assert await state.get("k") == 1

        await storage.put_property(Scope.USER, "u", "k", 2)

        assert await state.get("k") == 1
        assert await PropertyState(storage, Scope.USER, "u").get("k") == 2


class TestConversationLocks:
    """Tests for ConversationLocks."""

    @pytest.mark.asyncio
    async def test_reentrant_within_call_chain(self):
        """Test that re-acquiring a held conversation does not deadlock."""
        locks = ConversationLocks()

        async with locks.hold("test/conv1"):
            async with locks.hold("test/conv1"):
                assert locks.is_locked("test/conv1")

        assert not locks.is_locked("test/conv1")

    @pytest.mark.asyncio
    async def test_reentrant_in_child_task(self):
        """Test that tasks spawned while holding the lock inherit it."""
        locks = ConversationLocks()

        async def nested():
            async with locks.hold("test/conv1"):
                return "ran"

        async with locks.hold("test/conv1"):
            result = await asyncio.wait_for(asyncio.create_task(nested()), timeout=1)

        assert result == "ran"

    @pytest.mark.asyncio
    async def test_serializes_independent_turns(self):
        """Test that two unrelated turns in one conversation never interleave."""
        locks = ConversationLocks()
        order = []

        async def turn(name):
            async with locks.hold("test/conv1"):
                order.append(f"{name}:start")
                await asyncio.sleep(0.01)
                order.append(f"{name}:end")

        await asyncio.gather(turn("a"), turn("b"))

        assert order == ["a:start", "a:end", "b:start", "b:end"]

    @pytest.mark.asyncio
    async def test_different_conversations_run_concurrently(self):
        """Test that locks are per conversation."""
        locks = ConversationLocks()

        async with locks.hold("test/conv1"):
            async with locks.hold("test/conv2"):
                assert locks.is_locked("test/conv1")
                assert locks.is_locked("test/conv2")

    @pytest.mark.asyncio
    async def test_released_lock_is_dropped(self):
        """Test that a lock nobody holds or waits for leaves the map."""
        locks = ConversationLocks()

        async with locks.hold("test/conv1"):
            async with locks.hold("test/conv1"):
                assert "test/conv1" in locks
            assert "test/conv1" in locks

        assert "test/conv1" not in locks
        assert not locks.is_locked("test/conv1")

    @pytest.mark.asyncio
    async def test_lock_kept_while_waiters_remain(self):
        """Test that the lock survives its first holder while another turn waits."""
        locks = ConversationLocks()
        entered = asyncio.Event()
        release = asyncio.Event()
        order = []

        async def first():
            async with locks.hold("test/conv1"):
                entered.set()
                await release.wait()
                order.append("first")

        async def second():
            await entered.wait()
            async with locks.hold("test/conv1"):
                assert "test/conv1" in locks
                order.append("second")

        tasks = [asyncio.create_task(first()), asyncio.create_task(second())]
        await entered.wait()
        await asyncio.sleep(0.01)
        assert locks.is_locked("test/conv1")
        release.set()
        await asyncio.gather(*tasks)

        assert order == ["first", "second"]
        assert "test/conv1" not in locks

    @pytest.mark.asyncio
    async def test_failed_hold_is_dropped(self):
        """Test that an exception inside the hold still releases and drops the lock."""
        locks = ConversationLocks()

        with pytest.raises(RuntimeError):
            async with locks.hold("test/conv1"):
                raise RuntimeError("boom")

        assert "test/conv1" not in locks


class TestChannelAdapter:
    """Tests for ChannelAdapter."""

    @pytest.mark.asyncio
    async def test_process_activity_returns_replies(self, adapter, make_message, storage):
        """Test that replies sent by the logic are returned and transcribed."""

        async def logic(turn):
            await turn.send_activity("pong")

        replies = await adapter.process_activity(make_message("ping"), logic)

        assert replies == ["pong"]
        messages = await storage.get_messages("conv1")
        assert [(m.role, m.content) for m in messages] == [("user", "ping"), ("bot", "pong")]

    @pytest.mark.asyncio
    async def test_process_activity_stores_reference(self, adapter, make_message, storage):
        """Test that an inbound turn makes its conversation reachable."""

        async def logic(turn):
            pass

        await adapter.process_activity(make_message("hi"), logic)

        stored = await storage.get_property(Scope.CONVERSATION, "test/conv1", REFERENCE_KEY)
        assert stored.value["conversation_id"] == "conv1"

    @pytest.mark.asyncio
    async def test_continue_unknown_conversation(self, adapter, reference):
        """Test that a never-seen conversation cannot be resumed."""

        async def logic(turn):
            raise AssertionError("must not run")

        with pytest.raises(ResumeUnreachableError):
            await adapter.continue_conversation(reference, logic)

    @pytest.mark.asyncio
    async def test_continue_known_conversation(self, adapter, make_message, reference, storage):
        """Test that a proactive turn delivers into the stored conversation."""

        async def noop(turn):
            pass

        async def logic(turn):
            assert turn.proactive
            await turn.send_activity("later")

        await adapter.process_activity(make_message("hi"), noop)
        replies = await adapter.continue_conversation(reference, logic)

        assert replies == ["later"]
        messages = await storage.get_messages("conv1")
        assert messages[-1].content == "later"

    @pytest.mark.asyncio
    async def test_proactive_turn_shares_conversation_state(
        self, adapter, make_message, reference
    ):
        """Test that inbound and proactive turns see the same scoped state."""
        seen = []

        async def write(turn):
            turn.conversation_state.set("marker", "x")
            await turn.save_changes()

        async def read(turn):
            seen.append(await turn.conversation_state.get("marker"))

        await adapter.process_activity(make_message("hi"), write)
        await adapter.continue_conversation(reference, read)

        assert seen == ["x"]

    @pytest.mark.asyncio
    async def test_after_turn_runs_outside_the_lock(self, adapter, make_message):
        """Test that queued after-turn work runs unlocked and its replies are returned."""
        seen = []

        async def later(turn):
            seen.append(adapter.locks.is_locked("test/conv1"))
            await turn.send_activity("after")

        async def logic(turn):
            turn.after_turn(later)
            await turn.send_activity("during")

        replies = await adapter.process_activity(make_message("hi"), logic)

        assert replies == ["during", "after"]
        assert seen == [False]

    @pytest.mark.asyncio
    async def test_inbound_write_failure_goes_to_error_handler(
        self, adapter, make_message, storage, monkeypatch
    ):
        """Test that a failed reference write is handed to on_error."""
        errors = []

        async def broken(*args, **kwargs):
            raise PersistStoreError("disk full")

        async def logic(turn):
            raise AssertionError("must not run")

        async def on_error(turn, error):
            errors.append(str(error))
            await turn.send_activity("sorry")

        monkeypatch.setattr(storage, "put_property", broken)

        replies = await adapter.process_activity(make_message("hi"), logic, on_error=on_error)

        assert errors == ["disk full"]
        assert replies == ["sorry"]
        assert not adapter.locks.is_locked("test/conv1")

    @pytest.mark.asyncio
    async def test_errors_propagate_without_handler(self, adapter, make_message):
        """Test that without on_error a turn failure reaches the caller."""

        async def logic(turn):
            raise PersistStoreError("disk full")

        with pytest.raises(PersistStoreError):
            await adapter.process_activity(make_message("hi"), logic)

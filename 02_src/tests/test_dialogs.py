"""Tests for the dialog state machine and DialogEngine."""

import pytest

from jobbot.dialogs import (
    CITY_PROMPT,
    DIALOG_STATE_KEY,
    NAME_PROMPT,
    USER_PROFILE_KEY,
    choose_dialog,
)
from jobbot.dialogs import machine
from jobbot.models import DialogId, UserProfile
from jobbot.storage import Scope


class TestMachine:
    """Tests for the pure dialog transitions."""

    def test_who_are_you_walkthrough(self):
        """Test that name and city are captured in order."""
        start = machine.begin(DialogId.WHO_ARE_YOU, UserProfile())
        assert start.replies == [NAME_PROMPT]
        assert start.frame.step_index == 0

        named = machine.resume(start.frame, "Ada", start.profile)
        assert named.replies == [CITY_PROMPT]
        assert named.profile.name == "Ada"

        done = machine.resume(named.frame, "Seattle", named.profile)
        assert done.frame is None
        assert done.replies == []
        assert done.profile == UserProfile(name="Ada", city="Seattle")

    def test_blank_reply_reprompts(self):
        """Test that whitespace does not advance the dialog."""
        start = machine.begin(DialogId.WHO_ARE_YOU, UserProfile())

        again = machine.resume(start.frame, "   ", start.profile)

        assert again.frame == start.frame
        assert again.replies == [NAME_PROMPT]

    def test_replies_are_trimmed(self):
        """Test that captured values are stripped."""
        start = machine.begin(DialogId.WHO_ARE_YOU, UserProfile())
        named = machine.resume(start.frame, "  Ada ", start.profile)
        assert named.profile.name == "Ada"

    def test_hello_user_ends_immediately(self):
        """Test that the greeting dialog is a single step."""
        profile = UserProfile(name="Ada", city="Seattle")

        transition = machine.begin(DialogId.HELLO_USER, profile)

        assert transition.frame is None
        assert transition.replies == ["Hello, Ada from Seattle"]

    def test_choose_dialog(self):
        """Test that only a known city skips onboarding."""
        assert choose_dialog(UserProfile()) is DialogId.WHO_ARE_YOU
        assert choose_dialog(UserProfile(name="Ada")) is DialogId.WHO_ARE_YOU
        assert choose_dialog(UserProfile(name="Ada", city="Seattle")) is DialogId.HELLO_USER


class TestDialogEngine:
    """Tests for DialogEngine against persisted state."""

    async def _run(self, adapter, activity, step):
        return await adapter.process_activity(activity, step)

    @pytest.mark.asyncio
    async def test_begin_persists_frame(self, adapter, dialogs, make_message, storage):
        """Test that starting a dialog prompts and saves the stack."""

        async def step(turn):
            await dialogs.begin_dialog(turn, DialogId.WHO_ARE_YOU)

        replies = await self._run(adapter, make_message("x"), step)

        assert replies == [NAME_PROMPT]
        stored = await storage.get_property(Scope.CONVERSATION, "test/conv1", DIALOG_STATE_KEY)
        assert len(stored.value) == 1
        assert stored.value[0]["dialog_id"] == "who_are_you"

    @pytest.mark.asyncio
    async def test_continue_across_turns(self, adapter, dialogs, make_message, storage):
        """Test that each turn advances the persisted dialog one step."""

        async def begin(turn):
            await dialogs.begin_dialog(turn, DialogId.WHO_ARE_YOU)

        async def cont(turn):
            assert await dialogs.continue_dialog(turn)

        await self._run(adapter, make_message("x"), begin)
        assert await self._run(adapter, make_message("Ada"), cont) == [CITY_PROMPT]
        assert await self._run(adapter, make_message("Seattle"), cont) == []

        profile = await storage.get_property(Scope.USER, "test/user1", USER_PROFILE_KEY)
        stack = await storage.get_property(Scope.CONVERSATION, "test/conv1", DIALOG_STATE_KEY)
        assert profile.value == {"name": "Ada", "city": "Seattle"}
        assert stack.value == []

    @pytest.mark.asyncio
    async def test_continue_without_dialog(self, adapter, dialogs, make_message):
        """Test that continue reports False when nothing is active."""
        results = []

        async def cont(turn):
            results.append(await dialogs.continue_dialog(turn))

        replies = await self._run(adapter, make_message("hello"), cont)

        assert results == [False]
        assert replies == []

    @pytest.mark.asyncio
    async def test_begin_replaces_active_dialog(self, adapter, dialogs, make_message, storage):
        """Test that at most one dialog is active per conversation."""

        async def begin(turn):
            await dialogs.begin_dialog(turn, DialogId.WHO_ARE_YOU)

        await self._run(adapter, make_message("x"), begin)
        await self._run(adapter, make_message("y"), begin)

        stack = await storage.get_property(Scope.CONVERSATION, "test/conv1", DIALOG_STATE_KEY)
        assert len(stack.value) == 1

    @pytest.mark.asyncio
    async def test_profile_is_per_user(self, adapter, dialogs, make_message):
        """Test that another user in another conversation starts with no profile."""
        profiles = []

        async def begin(turn):
            await dialogs.begin_dialog(turn, DialogId.WHO_ARE_YOU)

        async def cont(turn):
            await dialogs.continue_dialog(turn)

        async def read(turn):
            profiles.append(await dialogs.get_profile(turn))

        await self._run(adapter, make_message("x"), begin)
        await self._run(adapter, make_message("Ada"), cont)
        await self._run(adapter, make_message("Seattle"), cont)
        await self._run(adapter, make_message("?", conversation_id="conv2", user_id="user2"), read)

        assert profiles == [UserProfile()]

    @pytest.mark.asyncio
    async def test_lifecycle_is_traced(self, adapter, dialogs, make_message, storage):
        """Test that start and end of a dialog are recorded."""

        async def begin(turn):
            await dialogs.begin_dialog(turn, DialogId.WHO_ARE_YOU)

        async def cont(turn):
            await dialogs.continue_dialog(turn)

        await self._run(adapter, make_message("x"), begin)
        await self._run(adapter, make_message("Ada"), cont)
        await self._run(adapter, make_message("Seattle"), cont)

        started = await storage.get_trace_events(event_types=["dialog_started"])
        ended = await storage.get_trace_events(event_types=["dialog_ended"])
        assert started[0].data["dialog_id"] == "who_are_you"
        assert ended[0].data["dialog_id"] == "who_are_you"

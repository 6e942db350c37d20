"""Waterfall dialogs as an explicit state machine.

Every function here is pure: it takes the current frame, the user's reply
and the profile, and returns the next frame together with the replies to
send and the updated profile. Persistence lives in ``engine.py``.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from ..models import DialogFrame, DialogId, StepId, UserProfile

NAME_PROMPT = "What is your name?"
CITY_PROMPT = "What city are you from?"

DIALOGS: dict[DialogId, tuple[StepId, ...]] = {
    DialogId.WHO_ARE_YOU: (
        StepId.PROMPT_FOR_NAME,
        StepId.PROMPT_FOR_CITY,
        StepId.CAPTURE_CITY,
    ),
    DialogId.HELLO_USER: (StepId.DISPLAY_PROFILE,),
}


class StepAction(str, Enum):
    PROMPT = "prompt"  # suspend until the next reply
    END = "end"  # pop the dialog


@dataclass
class StepOutcome:
    action: StepAction
    profile: UserProfile
    replies: list[str] = field(default_factory=list)
    prompt: str | None = None


@dataclass
class Transition:
    """Result of feeding one input to a dialog."""

    frame: DialogFrame | None  # None once the dialog has ended
    profile: UserProfile
    replies: list[str] = field(default_factory=list)


def greeting(profile: UserProfile) -> str:
    return f"Hello, {profile.name} from {profile.city}"


def run_step(step: StepId, result: str | None, profile: UserProfile) -> StepOutcome:
    """Execute one waterfall step with the result of the previous one."""
    if step is StepId.PROMPT_FOR_NAME:
        return StepOutcome(StepAction.PROMPT, profile, [NAME_PROMPT], NAME_PROMPT)

    if step is StepId.PROMPT_FOR_CITY:
        profile = replace(profile, name=result)
        return StepOutcome(StepAction.PROMPT, profile, [CITY_PROMPT], CITY_PROMPT)

    if step is StepId.CAPTURE_CITY:
        return StepOutcome(StepAction.END, replace(profile, city=result))

    if step is StepId.DISPLAY_PROFILE:
        return StepOutcome(StepAction.END, profile, [greeting(profile)])

    raise ValueError(f"Unknown step: {step}")


def _execute(
    dialog_id: DialogId, index: int, result: str | None, profile: UserProfile
) -> Transition:
    steps = DIALOGS[dialog_id]
    if index >= len(steps):
        return Transition(frame=None, profile=profile)

    outcome = run_step(steps[index], result, profile)
    if outcome.action is StepAction.PROMPT:
        frame = DialogFrame(
            dialog_id=dialog_id, step_index=index, result=result, prompt=outcome.prompt
        )
        return Transition(frame=frame, profile=outcome.profile, replies=outcome.replies)

    return Transition(frame=None, profile=outcome.profile, replies=outcome.replies)


def begin(dialog_id: DialogId, profile: UserProfile) -> Transition:
    """Start ``dialog_id`` at its first step."""
    return _execute(dialog_id, 0, None, profile)


def resume(frame: DialogFrame, text: str | None, profile: UserProfile) -> Transition:
    """Feed a reply to a suspended prompt.

    A blank reply re-asks the same prompt and leaves the frame where it is.
    """
    reply = (text or "").strip()
    if not reply:
        replies = [frame.prompt] if frame.prompt else []
        return Transition(frame=frame, profile=profile, replies=replies)

    return _execute(frame.dialog_id, frame.step_index + 1, reply, profile)


def choose_dialog(profile: UserProfile) -> DialogId:
    """Returning users with a known city skip onboarding."""
    return DialogId.HELLO_USER if profile.city else DialogId.WHO_ARE_YOU

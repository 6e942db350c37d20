"""Dialogs module."""

from .engine import DIALOG_STATE_KEY, USER_PROFILE_KEY, DialogEngine, IDialogEngine
from .machine import CITY_PROMPT, NAME_PROMPT, choose_dialog, greeting

__all__ = [
    "CITY_PROMPT",
    "DIALOG_STATE_KEY",
    "DialogEngine",
    "IDialogEngine",
    "NAME_PROMPT",
    "USER_PROFILE_KEY",
    "choose_dialog",
    "greeting",
]

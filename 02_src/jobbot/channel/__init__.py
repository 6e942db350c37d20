"""Channel module: turns, scoped state and the adapter."""

from .adapter import ChannelAdapter, IChannelAdapter, TurnErrorHandler, TurnLogic
from .locks import ConversationLocks
from .state import PropertyState
from .turn import TurnContext

__all__ = [
    "ChannelAdapter",
    "ConversationLocks",
    "IChannelAdapter",
    "PropertyState",
    "TurnContext",
    "TurnErrorHandler",
    "TurnLogic",
]

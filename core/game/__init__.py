"""Round state machine and events."""

from core.game.events import GameEvent, EventEmitter, EventType
from core.game.state import DealerPolicy, Ending, RoundState
from core.game.round import Round

__all__ = [
    "GameEvent",
    "EventEmitter",
    "EventType",
    "DealerPolicy",
    "Ending",
    "RoundState",
    "Round",
]

"""Round engine, session controller and state management."""

from core.game.events import GameEvent, EventType, EventEmitter
from core.game.state import RoundPhase, RoundResult, TableSnapshot
from core.game.engine import RoundEngine
from core.game.controller import SessionController

__all__ = [
    "GameEvent",
    "EventType",
    "EventEmitter",
    "RoundPhase",
    "RoundResult",
    "TableSnapshot",
    "RoundEngine",
    "SessionController",
]

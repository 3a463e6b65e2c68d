"""Table events published by the round engine."""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of table events."""

    # Round and session flow
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()
    GAME_ENDED = auto()
    SESSION_RESET = auto()

    # Betting
    BET_PLACED = auto()
    BET_REJECTED = auto()
    INSUFFICIENT_FUNDS = auto()

    # Cards
    DECK_SHUFFLED = auto()
    CARD_DEALT = auto()

    # Player turn
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_BLACKJACK = auto()
    PLAYER_BUSTS = auto()

    # Dealer turn
    DEALER_REVEALS = auto()
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()
    DEALER_BLACKJACK = auto()

    # Resolution
    PLAYER_WINS = auto()
    PLAYER_LOSES = auto()
    PUSH = auto()

    # Refused action; the table is unchanged
    INVALID_ACTION = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable table event.

    The engine never talks to a UI directly: presentation layers (the
    WebSocket endpoint, tests) learn what happened from these.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"

    def to_message(self) -> dict[str, Any]:
        """Serialize for a client message."""
        return {
            "event_type": self.event_type.name,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Synchronous publish/subscribe hub for one table.

    Handlers run in subscription order, type-specific ones before
    catch-alls. A bounded history of recent events is kept for replay.
    """

    HISTORY_SIZE = 200

    def __init__(self) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._recent: deque[GameEvent] = deque(maxlen=self.HISTORY_SIZE)

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            handler: Called with each matching event
            event_type: Only deliver this type, or None for every event

        Returns:
            A callable that removes the subscription again
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, event: GameEvent) -> None:
        """Record an event and deliver it to subscribers."""
        self._recent.append(event)
        logger.debug("event %s", event)

        # Copy so a handler may unsubscribe while being called
        for handler in list(self._handlers.get(event.event_type, [])):
            handler(event)
        for handler in list(self._handlers.get(None, [])):
            handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """Create, emit and return an event."""
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        """Return recent events, oldest first."""
        return list(self._recent)

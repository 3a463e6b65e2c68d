"""WebSocket endpoint streaming table events to the client."""

import asyncio
import json
import logging
from typing import Any, Callable

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status

from api.routes.game import _game_state_response, _get_game, _submit_rounds
from core.game import GameEvent, SessionController

logger = logging.getLogger(__name__)

router = APIRouter()


def _event_message(game: SessionController, event: GameEvent) -> dict[str, Any]:
    """Build an event message with the table as it stood when the event fired."""
    return {
        "type": "event",
        **event.to_message(),
        "state": _game_state_response(game).model_dump(),
    }


class ConnectionManager:
    """
    Track open sockets per session.

    Every socket gets its own message queue and table subscription, so a
    session may be watched from several sockets and closing one leaves
    the others streaming.
    """

    def __init__(self) -> None:
        self._queues: dict[str, dict[WebSocket, asyncio.Queue[dict[str, Any]]]] = {}
        self._detach: dict[WebSocket, Callable[[], None]] = {}

    async def connect(
        self, websocket: WebSocket, session_id: str, game: SessionController
    ) -> asyncio.Queue[dict[str, Any]]:
        """Accept a connection and queue the table's events for it."""
        await websocket.accept()
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._queues.setdefault(session_id, {})[websocket] = queue
        self._detach[websocket] = game.subscribe(
            lambda event: queue.put_nowait(_event_message(game, event))
        )
        logger.debug("WebSocket %s connected (%d active)", session_id, self.active_connections)
        return queue

    def disconnect(self, websocket: WebSocket, session_id: str) -> None:
        """Drop one socket; the table stays for the session's other sockets."""
        detach = self._detach.pop(websocket, None)
        if detach is not None:
            detach()
        sockets = self._queues.get(session_id, {})
        sockets.pop(websocket, None)
        if not sockets:
            self._queues.pop(session_id, None)

    def connections(self, session_id: str) -> int:
        """Return number of open sockets for a session."""
        return len(self._queues.get(session_id, {}))

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._detach)


manager = ConnectionManager()


def _state_message(game: SessionController) -> dict[str, Any]:
    """Build a state update with the hole card concealed when required."""
    return {"type": "state_update", "state": _game_state_response(game).model_dump()}


def _recent_events_message(game: SessionController) -> dict[str, Any]:
    """Build the replay of the table's recent events sent on connect."""
    return {
        "type": "recent_events",
        "events": [event.to_message() for event in game.events.history],
    }


def _error(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message}


def _handle_bet(game: SessionController, message: dict[str, Any]) -> str | None:
    amount = message.get("amount")
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 1:
        return "Bet amount must be a positive integer"
    return None if game.place_bet(amount) else "Bet rejected"


def _handle_deal(game: SessionController, message: dict[str, Any]) -> str | None:
    return None if game.deal() else "Cannot deal now"


def _handle_action(game: SessionController, message: dict[str, Any]) -> str | None:
    action = message.get("action")
    actions = {"hit": game.hit, "stand": game.stand, "double": game.double_down}
    if action not in actions:
        return f"Unknown action: {action}"
    return None if actions[action]() else f"Cannot {action} now"


def _handle_reset(game: SessionController, message: dict[str, Any]) -> str | None:
    game.reset()
    return None


# Message type -> handler returning an error message or None
HANDLERS: dict[str, Callable[[SessionController, dict[str, Any]], str | None]] = {
    "bet": _handle_bet,
    "deal": _handle_deal,
    "action": _handle_action,
    "reset_game": _handle_reset,
}


@router.websocket("/game/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time play.

    The session ID must be one issued by POST /api/game/new; other IDs
    are closed with a policy-violation code before the socket is accepted.

    Messages from client:
    - {"type": "bet", "amount": 100}
    - {"type": "deal"}
    - {"type": "action", "action": "hit"|"stand"|"double"}
    - {"type": "reset_game"}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "recent_events", "events": [...]} (once, after connecting)
    - {"type": "event", "event_type": "...", "data": {...}, "timestamp": "...", "state": {...}}
    - {"type": "error", "message": "..."}
    """
    try:
        game = await _get_game(session_id)
    except HTTPException as exc:
        logger.info("Refused WebSocket: %s", exc.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.detail)
        return

    queue = await manager.connect(websocket, session_id, game)
    await websocket.send_json(_state_message(game))
    await websocket.send_json(_recent_events_message(game))

    async def forward_events() -> None:
        while True:
            await websocket.send_json(await queue.get())

    event_task = asyncio.create_task(forward_events())

    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                await websocket.send_json(_error("Invalid JSON"))
                continue
            if not isinstance(message, dict):
                await websocket.send_json(_error("Expected a JSON object"))
                continue

            msg_type = message.get("type")
            if msg_type == "get_state":
                await websocket.send_json(_state_message(game))
                continue

            handler = HANDLERS.get(msg_type)
            if handler is None:
                await websocket.send_json(_error(f"Unknown message type: {msg_type}"))
                continue

            rounds_before = len(game.history)
            error = handler(game, message)
            if error is not None:
                await websocket.send_json(_error(error))
            await _submit_rounds(game, rounds_before)

    except WebSocketDisconnect:
        logger.debug("WebSocket %s disconnected", session_id)
    finally:
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
        manager.disconnect(websocket, session_id)

"""Game API endpoints."""

import logging
from typing import Annotated, Callable

from fastapi import APIRouter, HTTPException, Header

from api.schemas import (
    ActionRequest,
    BetRequest,
    CardResponse,
    GameStateResponse,
    HandResponse,
    HistoryResponse,
    NewGameRequest,
    NewGameResponse,
    RoundResultResponse,
)
from api.scores import submit_score
from api.session import (
    DEFAULT_PLAYER_NAME,
    extract_session_id,
    load_session,
    open_session,
    touch_session,
)
from config import config
from core.cards import Card
from core.game import RoundPhase, RoundResult, SessionController
from core.hand import Hand
from core.rules import RuleSet

logger = logging.getLogger(__name__)

router = APIRouter()

# Tables live in process memory only, keyed by signed session ID
_games: dict[str, SessionController] = {}


def _new_controller(player_name: str) -> SessionController:
    """Create a session controller with the configured table rules."""
    return SessionController(
        rules=RuleSet.from_config(config.game),
        player_name=player_name,
    )


def _require_signed(session_id: str) -> None:
    """Refuse session IDs this server did not issue."""
    if extract_session_id(session_id) is None:
        logger.info("Refused unsigned session ID")
        raise HTTPException(status_code=401, detail="Invalid session")


async def _get_game(session_id: str) -> SessionController:
    """
    Get the table of a live session, creating it on first use.

    Raises:
        HTTPException: 401 if the ID is not signed by this server or the
            session has expired; an expired session's table is dropped
    """
    _require_signed(session_id)

    session = await load_session(session_id)
    if session is None:
        if _games.pop(session_id, None) is not None:
            logger.info("Session %s expired, table dropped", session_id)
        raise HTTPException(status_code=401, detail="Session expired")

    await touch_session(session_id)
    game = _games.get(session_id)
    if game is None:
        game = _new_controller(session.player_name)
        _games[session_id] = game
        logger.debug("Opened table for session %s", session_id)
    return game


def _card_to_response(card: Card, hidden: bool = False) -> CardResponse:
    """Convert a Card to CardResponse, blanking it when hidden."""
    if hidden:
        return CardResponse(code="??", rank="?", suit="?", value=0, hidden=True)
    return CardResponse(
        code=card.code,
        rank=str(card.rank),
        suit=str(card.suit),
        value=card.value,
    )


def _hand_to_response(codes: list[str], conceal_hole: bool = False) -> HandResponse:
    """Convert card codes to HandResponse; the second card is the hole card."""
    hand = Hand([Card.from_code(code) for code in codes])
    return HandResponse(
        cards=[
            _card_to_response(c, hidden=conceal_hole and i == 1)
            for i, c in enumerate(hand.cards)
        ],
        value=None if conceal_hole else hand.value,
        is_soft=False if conceal_hole else hand.is_soft,
        is_blackjack=False if conceal_hole else hand.is_blackjack,
        is_busted=False if conceal_hole else hand.is_busted,
    )


def _result_to_response(result: RoundResult) -> RoundResultResponse:
    """Convert a RoundResult to its response model."""
    return RoundResultResponse(**result.to_dict())


def _game_state_response(game: SessionController) -> GameStateResponse:
    """Convert the table snapshot to a response, hiding a face-down hole card."""
    snap = game.snapshot()
    engine = game.engine
    last = game.last_result

    return GameStateResponse(
        state=snap.phase.name,
        player_name=snap.player_name,
        player_hand=_hand_to_response(snap.player_cards),
        dealer_hand=_hand_to_response(snap.dealer_cards, conceal_hole=snap.hole_card_hidden),
        bankroll=snap.bankroll,
        bet=snap.bet,
        round_count=snap.round_count,
        round_cap=snap.round_cap,
        money_won=snap.money_won,
        can_bet=engine.can_bet and not game.is_game_over,
        can_deal=engine.can_deal and not game.is_game_over,
        can_hit=engine.can_hit,
        can_stand=engine.can_stand,
        can_double=engine.can_double,
        last_result=_result_to_response(last) if last else None,
    )


def _raise_rejected(game: SessionController, action: str) -> None:
    """Turn a rejected action into the matching HTTP error."""
    if game.is_game_over:
        raise HTTPException(status_code=409, detail="Game over")
    if game.phase == RoundPhase.BET_REJECTED and action == "bet":
        raise HTTPException(status_code=400, detail="Insufficient funds")
    raise HTTPException(status_code=400, detail=f"Cannot {action} now")


async def _submit_rounds(game: SessionController, rounds_before: int) -> None:
    """Send a leaderboard score for each round resolved since rounds_before."""
    if not config.leaderboard.auto_submit:
        return
    for result in game.history[rounds_before:]:
        await submit_score(game.player_name, game.money_won, result.is_win)


async def _run(game: SessionController, action: str, fn: Callable[[], bool]) -> None:
    """Run a table action and submit a score for any round it finished."""
    rounds_before = len(game.history)
    if not fn():
        _raise_rejected(game, action)

    await _submit_rounds(game, rounds_before)


@router.post("/new")
async def new_game(
    request: NewGameRequest | None = None,
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> NewGameResponse:
    """Create a new game session."""
    player_name = (request.player_name if request else "").strip() or DEFAULT_PLAYER_NAME
    if session_id is None:
        session_id = await open_session(player_name)
    else:
        _require_signed(session_id)
        await touch_session(session_id, player_name)

    _games[session_id] = _new_controller(player_name)
    logger.info("New game for %s", player_name)

    return NewGameResponse(session_id=session_id, player_name=player_name)


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Get current game state."""
    game = await _get_game(session_id)
    return _game_state_response(game)


@router.post("/bet")
async def place_bet(
    request: BetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Add chips to the bet for the next round."""
    game = await _get_game(session_id)
    await _run(game, "bet", lambda: game.place_bet(request.amount))
    return _game_state_response(game)


@router.post("/deal")
async def deal(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Deal a round with the current bet."""
    game = await _get_game(session_id)
    await _run(game, "deal", game.deal)
    return _game_state_response(game)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Execute a player action."""
    game = await _get_game(session_id)

    actions = {
        "hit": game.hit,
        "stand": game.stand,
        "double": game.double_down,
    }

    action_fn = actions.get(request.action)
    if action_fn is None:
        raise HTTPException(status_code=400, detail=f"Unknown action: {request.action}")

    await _run(game, request.action, action_fn)
    return _game_state_response(game)


@router.post("/reset")
async def reset_game(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> GameStateResponse:
    """Restart the session with a fresh bankroll."""
    game = await _get_game(session_id)
    game.reset()
    return _game_state_response(game)


@router.get("/history")
async def get_history(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> HistoryResponse:
    """List the session's resolved rounds."""
    game = await _get_game(session_id)
    return HistoryResponse(rounds=[_result_to_response(r) for r in game.history])

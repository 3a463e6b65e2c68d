"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


# Game schemas
class NewGameRequest(BaseModel):
    """Request to start a new game session."""

    player_name: str = Field(default="Player", min_length=1, max_length=32)


class NewGameResponse(BaseModel):
    """Newly created game session."""

    session_id: str
    player_name: str


class BetRequest(BaseModel):
    """Request to add chips to the current bet."""

    amount: int = Field(..., ge=1, description="Bet amount")


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double"]


class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    code: str
    rank: str
    suit: str
    value: int
    hidden: bool = False


class HandResponse(BaseModel):
    """Hand representation; value is None while it is concealed."""

    cards: list[CardResponse]
    value: int | None
    is_soft: bool
    is_blackjack: bool
    is_busted: bool


class RoundResultResponse(BaseModel):
    """Round result."""

    round_number: int
    outcome: Literal["win", "lose", "push"]
    resolution: str
    bet: int
    payout: int
    net: int
    bankroll: int
    player_cards: list[str]
    dealer_cards: list[str]
    player_total: int
    dealer_total: int


class GameStateResponse(BaseModel):
    """Current table state."""

    state: str
    player_name: str
    player_hand: HandResponse
    dealer_hand: HandResponse
    bankroll: int
    bet: int
    round_count: int
    round_cap: int
    money_won: int
    can_bet: bool
    can_deal: bool
    can_hit: bool
    can_stand: bool
    can_double: bool
    last_result: RoundResultResponse | None = None


class HistoryResponse(BaseModel):
    """Resolved rounds of a session, oldest first."""

    rounds: list[RoundResultResponse]


# Leaderboard schemas
class ScoreSubmission(BaseModel):
    """A finished-round record sent to the leaderboard."""

    name: str = Field(..., min_length=1, max_length=32)
    money_won: int = Field(..., description="Net funds change since the session started")
    win: bool = False


class ScoreResponse(BaseModel):
    """A leaderboard entry."""

    name: str
    money_won: int
    win: bool
    timestamp: int  # Unix timestamp in milliseconds


class LeaderboardResponse(BaseModel):
    """Ranked leaderboard entries."""

    scores: list[ScoreResponse]


class RulesResponse(BaseModel):
    """Table rules."""

    starting_bankroll: int
    dealer_stands_on: int
    round_cap: int
    blackjack_payout: int

"""Round phase enumeration and state records."""

from dataclasses import asdict, dataclass, field
from enum import Enum, auto
from typing import Any

from core.hand import Outcome, Resolution


class RoundPhase(Enum):
    """
    Round state machine phases.

    Flow: ROUND_OVER (betting) → PLAYER_TURN → DEALER_TURN → ROUND_OVER
    """

    # Player decides: hit, stand or double down
    PLAYER_TURN = auto()

    # Dealer draws automatically
    DEALER_TURN = auto()

    # Round finished (resolution pending or done); also the betting window
    ROUND_OVER = auto()

    # Out of funds or round cap reached, terminal until reset
    GAME_OVER = auto()

    # Last bet exceeded the bankroll
    BET_REJECTED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


# Valid phase transitions
VALID_TRANSITIONS: dict[RoundPhase, list[RoundPhase]] = {
    RoundPhase.ROUND_OVER: [
        RoundPhase.PLAYER_TURN,
        RoundPhase.ROUND_OVER,  # natural dealt to the player
        RoundPhase.BET_REJECTED,
        RoundPhase.GAME_OVER,
    ],
    RoundPhase.BET_REJECTED: [
        RoundPhase.BET_REJECTED,
        RoundPhase.ROUND_OVER,
        RoundPhase.PLAYER_TURN,
        RoundPhase.GAME_OVER,
    ],
    RoundPhase.PLAYER_TURN: [
        RoundPhase.PLAYER_TURN,
        RoundPhase.DEALER_TURN,
        RoundPhase.ROUND_OVER,  # bust or 21 ends the round directly
    ],
    RoundPhase.DEALER_TURN: [RoundPhase.DEALER_TURN, RoundPhase.ROUND_OVER],
    RoundPhase.GAME_OVER: [RoundPhase.ROUND_OVER],  # session reset only
}


def is_valid_transition(from_phase: RoundPhase, to_phase: RoundPhase) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_phase: Current phase
        to_phase: Desired phase

    Returns:
        True if the transition is allowed
    """
    return to_phase in VALID_TRANSITIONS.get(from_phase, [])


@dataclass(frozen=True)
class RoundResult:
    """Record of one resolved round, handed to history and leaderboard."""

    round_number: int
    outcome: Outcome
    resolution: Resolution
    bet: int
    payout: int
    bankroll: int
    player_cards: list[str] = field(default_factory=list)
    dealer_cards: list[str] = field(default_factory=list)
    player_total: int = 0
    dealer_total: int = 0

    @property
    def net(self) -> int:
        """Return the change in funds caused by this round."""
        return self.payout - self.bet

    @property
    def is_win(self) -> bool:
        """Check if the player won the round."""
        return self.outcome == Outcome.WIN

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-friendly primitives."""
        data = asdict(self)
        data["outcome"] = self.outcome.value
        data["resolution"] = self.resolution.value
        data["net"] = self.net
        return data


@dataclass(frozen=True)
class TableSnapshot:
    """
    What the presentation layer may read about the table.

    Totals are always the true totals. hole_card_hidden tells the reader
    to blank the dealer's second card and total, which holds from the
    deal until the dealer's turn or the resolution reveals it.
    """

    player_cards: list[str]
    dealer_cards: list[str]
    player_total: int
    dealer_total: int
    bankroll: int
    bet: int
    phase: RoundPhase
    round_count: int
    round_cap: int
    hole_card_hidden: bool = False
    player_name: str = "Player"
    money_won: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-friendly primitives."""
        data = asdict(self)
        data["phase"] = self.phase.name
        return data

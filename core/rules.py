"""Table rules for the single-deck game."""

from dataclasses import dataclass

from config import GameConfig


@dataclass(frozen=True)
class RuleSet:
    """
    Blackjack table rules configuration.

    Every rule the engine and session controller honour.
    """

    # Funds the player starts (and restarts) with
    starting_bankroll: int = 2500

    # Dealer stands on this total or higher, hits below it
    dealer_stands_on: int = 17

    # Completed rounds before the session ends
    round_cap: int = 5

    # Credit multiplier for a winning natural (2 = refund + even money)
    blackjack_payout: int = 2

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.starting_bankroll < 1:
            raise ValueError("starting_bankroll must be positive")
        if not 2 <= self.dealer_stands_on <= 21:
            raise ValueError("dealer_stands_on must be between 2 and 21")
        if self.round_cap < 1:
            raise ValueError("round_cap must be at least 1")
        if self.blackjack_payout < 1:
            raise ValueError("blackjack_payout must be at least 1")

    @classmethod
    def from_config(cls, game: GameConfig) -> "RuleSet":
        """Build rules from the environment-driven game configuration."""
        return cls(
            starting_bankroll=game.starting_bankroll,
            dealer_stands_on=game.dealer_stands_on,
            round_cap=game.round_cap,
            blackjack_payout=game.blackjack_payout,
        )

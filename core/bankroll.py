"""Bankroll and bet bookkeeping."""

import logging

from core.hand import Outcome

logger = logging.getLogger(__name__)


class BankrollLedger:
    """
    Tracks the player's funds and the wager on the table.

    A bet is paid out of the bankroll when placed, so a losing round
    needs no further change. Both amounts are plain non-negative ints.
    """

    def __init__(self, bankroll: int, blackjack_payout: int = 2) -> None:
        """
        Initialize the ledger.

        Args:
            bankroll: Starting funds
            blackjack_payout: Credit multiplier applied to a winning natural
        """
        if bankroll < 0:
            raise ValueError("bankroll cannot be negative")
        self._bankroll = bankroll
        self._bet = 0
        self.blackjack_payout = blackjack_payout

    @property
    def bankroll(self) -> int:
        """Return the funds not currently on the table."""
        return self._bankroll

    @property
    def bet(self) -> int:
        """Return the wager currently on the table."""
        return self._bet

    @property
    def total_funds(self) -> int:
        """Return bankroll plus the outstanding bet."""
        return self._bankroll + self._bet

    def can_afford(self, amount: int) -> bool:
        """Check if the bankroll covers an amount."""
        return amount <= self._bankroll

    def place_bet(self, amount: int) -> bool:
        """
        Move funds from the bankroll onto the table.

        Successive bets in one betting window add up.

        Args:
            amount: Amount to add to the current bet

        Returns:
            False (with nothing changed) if the bankroll can't cover it

        Raises:
            ValueError: if amount is not positive
        """
        if amount <= 0:
            raise ValueError("Bet amount must be positive")
        if not self.can_afford(amount):
            logger.debug("Bet of %d rejected, bankroll is %d", amount, self._bankroll)
            return False

        self._bankroll -= amount
        self._bet += amount
        return True

    def double_bet(self) -> bool:
        """
        Match the current bet from the bankroll.

        Returns:
            False (with nothing changed) if the bankroll can't cover it
        """
        if self._bet <= 0 or not self.can_afford(self._bet):
            return False

        self._bankroll -= self._bet
        self._bet *= 2
        return True

    def payout_for(self, outcome: Outcome, natural: bool = False) -> int:
        """Return what a round outcome credits back to the bankroll."""
        if outcome == Outcome.WIN:
            multiplier = self.blackjack_payout if natural else 2
            return self._bet * multiplier
        if outcome == Outcome.PUSH:
            return self._bet
        return 0

    def resolve_payout(self, outcome: Outcome, natural: bool = False) -> int:
        """
        Credit the round result and clear the bet.

        Args:
            outcome: Round outcome from the player's side
            natural: Whether the win came from a natural blackjack

        Returns:
            Amount credited to the bankroll
        """
        payout = self.payout_for(outcome, natural)
        self._bankroll += payout
        self._bet = 0
        return payout

    def reset(self, bankroll: int) -> None:
        """Restart with fresh funds and no bet."""
        self._bankroll = bankroll
        self._bet = 0

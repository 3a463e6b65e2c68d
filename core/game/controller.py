"""Session controller: round counting and game-over checks."""

import logging
from random import Random
from typing import Callable

from core.bankroll import BankrollLedger
from core.cards import Deck
from core.rules import RuleSet
from core.game.engine import RoundEngine
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.state import RoundPhase, RoundResult, TableSnapshot

logger = logging.getLogger(__name__)


class SessionController:
    """
    One player's session: a bounded run of rounds on a single table.

    Gates each deal on the game-over conditions, settles every finished
    round exactly once and keeps the per-round history. All state lives
    on this object; nothing is module-global.
    """

    def __init__(
        self,
        rules: RuleSet | None = None,
        rng: Random | None = None,
        deck: Deck | None = None,
        auto_dealer: bool = True,
        player_name: str = "Player",
    ) -> None:
        """
        Initialize a new session.

        Args:
            rules: Table rules (uses defaults if not provided)
            rng: Random number generator for reproducible games
            deck: Deck to play with (a fresh Deck if not provided)
            auto_dealer: Play the dealer automatically after the player's turn
            player_name: Name used for leaderboard submissions
        """
        self.rules = rules or RuleSet()
        self.player_name = player_name
        self.ledger = BankrollLedger(
            self.rules.starting_bankroll,
            blackjack_payout=self.rules.blackjack_payout,
        )
        self.engine = RoundEngine(
            rules=self.rules,
            ledger=self.ledger,
            deck=deck,
            rng=rng,
            auto_dealer=auto_dealer,
        )
        self.round_count = 0
        self.history: list[RoundResult] = []

    @property
    def events(self) -> EventEmitter:
        """Return the event emitter shared with the engine."""
        return self.engine.events

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> Callable[[], None]:
        """Subscribe to table events; returns an unsubscribe callable."""
        return self.engine.subscribe(handler, event_type)

    @property
    def phase(self) -> RoundPhase:
        """Return the current round phase."""
        return self.engine.phase

    @property
    def is_game_over(self) -> bool:
        """Check if the session has ended."""
        return self.phase == RoundPhase.GAME_OVER

    @property
    def bankroll(self) -> int:
        """Return the funds not on the table."""
        return self.ledger.bankroll

    @property
    def bet(self) -> int:
        """Return the current wager."""
        return self.ledger.bet

    @property
    def money_won(self) -> int:
        """Return net funds change since the session started."""
        return self.ledger.total_funds - self.rules.starting_bankroll

    @property
    def last_result(self) -> RoundResult | None:
        """Return the most recent round result."""
        return self.history[-1] if self.history else None

    def check_game_over(self) -> bool:
        """
        End the session if funds are gone or the round cap is reached.

        Only evaluated between rounds. Funds include a bet already on the
        table, so going all-in does not end the session before the deal.

        Returns:
            True if the session is over
        """
        if self.is_game_over:
            return True
        if self.engine.round_in_progress:
            return False

        reason = None
        if self.round_count >= self.rules.round_cap:
            reason = "round_cap"
        elif self.ledger.total_funds <= 0:
            reason = "bankrupt"

        if reason is None:
            return False

        self.engine.game_over(reason)
        return True

    def place_bet(self, amount: int) -> bool:
        """Add to the wager for the next round."""
        if self.check_game_over():
            return False
        return self.engine.place_bet(amount)

    def deal(self) -> bool:
        """Start a round if the session allows one."""
        if self.check_game_over():
            logger.debug("Deal refused: game over")
            return False
        dealt = self.engine.deal()
        self._settle()
        return dealt

    def hit(self) -> bool:
        """Player hits."""
        done = self.engine.hit()
        self._settle()
        return done

    def stand(self) -> bool:
        """Player stands."""
        done = self.engine.stand()
        self._settle()
        return done

    def double_down(self) -> bool:
        """Player doubles down."""
        done = self.engine.double_down()
        self._settle()
        return done

    def dealer_step(self) -> bool:
        """Advance the dealer by one decision (when not auto-playing)."""
        done = self.engine.dealer_step()
        self._settle()
        return done

    def _settle(self) -> RoundResult | None:
        """Resolve a finished round, count it and re-check game over."""
        result = self.engine.resolve(round_number=self.round_count + 1)
        if result is None:
            return None

        self.round_count += 1
        self.history.append(result)
        self.check_game_over()
        return result

    def reset(self) -> None:
        """Start over with the starting bankroll and no rounds played."""
        self.ledger.reset(self.rules.starting_bankroll)
        self.round_count = 0
        self.history.clear()
        self.engine.reset()
        logger.info("Session reset for %s", self.player_name)
        self.events.emit_new(EventType.SESSION_RESET, bankroll=self.ledger.bankroll)

    def snapshot(self) -> TableSnapshot:
        """Return the table as the presentation layer sees it."""
        return TableSnapshot(
            player_cards=self.engine.player_hand.codes,
            dealer_cards=self.engine.dealer_hand.codes,
            player_total=self.engine.player_hand.value,
            dealer_total=self.engine.dealer_hand.value,
            bankroll=self.ledger.bankroll,
            bet=self.ledger.bet,
            phase=self.phase,
            round_count=self.round_count,
            round_cap=self.rules.round_cap,
            hole_card_hidden=self.engine.hole_card_hidden,
            player_name=self.player_name,
            money_won=self.money_won,
        )

"""Single-deck round engine with state machine."""

import logging
from random import Random
from typing import Callable

from transitions import Machine

from core.bankroll import BankrollLedger
from core.cards import Card, Deck
from core.hand import Hand, Outcome, Resolution, resolve_outcome
from core.rules import RuleSet
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.state import RoundPhase, RoundResult

logger = logging.getLogger(__name__)

_OUTCOME_EVENTS = {
    Outcome.WIN: EventType.PLAYER_WINS,
    Outcome.LOSE: EventType.PLAYER_LOSES,
    Outcome.PUSH: EventType.PUSH,
}


class RoundEngine:
    """
    Round state machine: deal, player turn, dealer turn, resolution.

    This is the core game logic, completely UI-agnostic. It owns the deck,
    both hands and the phase; money moves only through the ledger.
    Rejected actions return False and leave the state untouched.
    """

    # State machine states
    STATES = [p.name.lower() for p in RoundPhase]

    # State machine transitions
    TRANSITIONS = [
        # Betting window
        {"trigger": "reject_bet", "source": ["round_over", "bet_rejected"], "dest": "bet_rejected"},
        {"trigger": "accept_bet", "source": ["round_over", "bet_rejected"], "dest": "round_over"},
        # Deal
        {"trigger": "start_player_turn", "source": ["round_over", "bet_rejected"], "dest": "player_turn"},
        {"trigger": "finish_on_deal", "source": ["round_over", "bet_rejected"], "dest": "round_over"},
        # Player turn
        {"trigger": "continue_player_turn", "source": "player_turn", "dest": "player_turn"},
        {"trigger": "player_done", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "player_finished", "source": "player_turn", "dest": "round_over"},
        # Dealer turn
        {"trigger": "continue_dealer_turn", "source": "dealer_turn", "dest": "dealer_turn"},
        {"trigger": "dealer_done", "source": "dealer_turn", "dest": "round_over"},
        # Session
        {"trigger": "end_game", "source": ["round_over", "bet_rejected"], "dest": "game_over"},
        {"trigger": "restart", "source": "*", "dest": "round_over"},
    ]

    def __init__(
        self,
        rules: RuleSet | None = None,
        ledger: BankrollLedger | None = None,
        deck: Deck | None = None,
        rng: Random | None = None,
        auto_dealer: bool = True,
    ) -> None:
        """
        Initialize the round engine.

        Args:
            rules: Table rules (uses defaults if not provided)
            ledger: Bankroll ledger (created from the rules if not provided)
            deck: Deck to rebuild every round (a fresh Deck if not provided)
            rng: Random number generator for the default deck
            auto_dealer: Play the dealer's turn as soon as it starts; when
                False, the caller advances it with dealer_step()
        """
        self.rules = rules or RuleSet()
        self.ledger = ledger or BankrollLedger(
            self.rules.starting_bankroll,
            blackjack_payout=self.rules.blackjack_payout,
        )
        self.deck = deck or Deck(rng=rng)
        self.auto_dealer = auto_dealer

        self.player_hand = Hand()
        self.dealer_hand = Hand()
        self.events = EventEmitter()
        self.last_result: RoundResult | None = None
        self._round_in_progress = False
        self._hole_card_down = False

        # Initialize state machine; a fresh table sits in the betting window
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="round_over",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> RoundPhase:
        """Get current phase as enum."""
        return RoundPhase[self._machine_state.upper()]  # type: ignore

    @property
    def round_in_progress(self) -> bool:
        """Check if cards are out and the round is not yet resolved."""
        return self._round_in_progress

    @property
    def resolution_pending(self) -> bool:
        """Check if the round has ended but not been paid out."""
        return self._round_in_progress and self.phase == RoundPhase.ROUND_OVER

    @property
    def hole_card_hidden(self) -> bool:
        """Check if the dealer's second card is still face down."""
        return self._hole_card_down

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> Callable[[], None]:
        """Subscribe to table events; returns an unsubscribe callable."""
        return self.events.subscribe(handler, event_type)

    def _reject(self, message: str) -> bool:
        """Report an illegal action without changing anything."""
        logger.debug("Rejected action in %s: %s", self.phase.name, message)
        self.events.emit_new(
            EventType.INVALID_ACTION,
            message=message,
            state=self.phase.name,
        )
        return False

    # Betting

    @property
    def can_bet(self) -> bool:
        """Check if the betting window is open."""
        return (
            self.phase in (RoundPhase.ROUND_OVER, RoundPhase.BET_REJECTED)
            and not self._round_in_progress
        )

    def place_bet(self, amount: int) -> bool:
        """
        Add chips to the wager for the next round.

        Args:
            amount: Bet amount, added to any bet already placed

        Returns:
            True if the bet was accepted
        """
        if not self.can_bet:
            return self._reject("Cannot bet in current state")

        try:
            accepted = self.ledger.place_bet(amount)
        except ValueError as exc:
            return self._reject(str(exc))

        if not accepted:
            self.events.emit_new(
                EventType.INSUFFICIENT_FUNDS,
                required=amount,
                available=self.ledger.bankroll,
            )
            self.reject_bet()
            self.events.emit_new(EventType.BET_REJECTED, amount=amount)
            return False

        self.accept_bet()
        self.events.emit_new(EventType.BET_PLACED, amount=amount, bet=self.ledger.bet)
        return True

    # Deal

    @property
    def can_deal(self) -> bool:
        """Check if a round can be dealt."""
        return self.can_bet and self.ledger.bet > 0

    def deal(self) -> bool:
        """
        Deal a new round from a freshly built and shuffled deck.

        A player 21 ends the round on the spot. A dealer 21 alone is
        left for resolution to reveal.

        Returns:
            True if the round was dealt
        """
        if not self.can_bet:
            return self._reject("Cannot deal in current state")
        if self.ledger.bet <= 0:
            return self._reject("Place a bet first")

        self.player_hand.clear()
        self.dealer_hand.clear()
        self.deck.reset()
        self.deck.shuffle()
        self.events.emit_new(EventType.DECK_SHUFFLED)
        self._round_in_progress = True
        self._hole_card_down = True
        self.last_result = None

        for _ in range(2):
            self._deal_card_to_hand(self.player_hand)
        for _ in range(2):
            self._deal_card_to_hand(self.dealer_hand, face_up=len(self.dealer_hand) == 0)

        player_total = self.player_hand.value
        dealer_total = self.dealer_hand.value
        logger.debug("Dealt player %s (%d), dealer %s (%d)",
                     self.player_hand.codes, player_total,
                     self.dealer_hand.codes, dealer_total)
        self.events.emit_new(EventType.ROUND_STARTED, bet=self.ledger.bet)

        if player_total == 21:
            self.events.emit_new(EventType.PLAYER_BLACKJACK)
            if dealer_total == 21:
                self.events.emit_new(EventType.DEALER_BLACKJACK)
            self.finish_on_deal()
            return True

        self.start_player_turn()
        return True

    def _deal_card_to_hand(self, hand: Hand, face_up: bool = True) -> Card:
        """Deal a card to a hand."""
        card = self.deck.draw()
        hand.add_card(card)
        is_dealer = hand is self.dealer_hand
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=card.code if face_up else "??",
            hand="dealer" if is_dealer else "player",
            hand_value=hand.value if face_up or not is_dealer else None,
        )
        return card

    # Player turn

    @property
    def can_hit(self) -> bool:
        """Check if hitting is allowed."""
        return self.phase == RoundPhase.PLAYER_TURN

    @property
    def can_stand(self) -> bool:
        """Check if standing is allowed."""
        return self.phase == RoundPhase.PLAYER_TURN

    @property
    def can_double(self) -> bool:
        """Check if doubling is allowed."""
        return (
            self.phase == RoundPhase.PLAYER_TURN
            and len(self.player_hand) == 2
            and self.ledger.can_afford(self.ledger.bet)
        )

    def hit(self) -> bool:
        """Player hits (takes another card)."""
        if self.phase != RoundPhase.PLAYER_TURN:
            return self._reject("Cannot hit in current state")

        self._player_draw()
        return True

    def _player_draw(self) -> None:
        """Draw one player card; 21 or more ends the round immediately."""
        self._deal_card_to_hand(self.player_hand)
        total = self.player_hand.value
        logger.debug("Player hand now %s (%d)", self.player_hand.codes, total)
        self.events.emit_new(EventType.PLAYER_HIT, hand_value=total)

        if total > 21:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_value=total)
            self.player_finished()
        elif total == 21:
            self.player_finished()
        else:
            self.continue_player_turn()

    def stand(self) -> bool:
        """Player stands; the dealer plays next."""
        if self.phase != RoundPhase.PLAYER_TURN:
            return self._reject("Cannot stand in current state")

        self.events.emit_new(EventType.PLAYER_STAND, hand_value=self.player_hand.value)
        self._begin_dealer_turn()
        return True

    def double_down(self) -> bool:
        """
        Player doubles the bet and takes exactly one more card.

        Only allowed as the first move, and only when the bankroll can
        match the bet.
        """
        if self.phase != RoundPhase.PLAYER_TURN:
            return self._reject("Cannot double in current state")
        if len(self.player_hand) != 2:
            return self._reject("Can only double on first move")
        if not self.ledger.double_bet():
            self.events.emit_new(
                EventType.INSUFFICIENT_FUNDS,
                required=self.ledger.bet,
                available=self.ledger.bankroll,
            )
            return False

        self.events.emit_new(EventType.PLAYER_DOUBLE, new_bet=self.ledger.bet)
        self._player_draw()

        if self.phase == RoundPhase.PLAYER_TURN:
            self._begin_dealer_turn()
        return True

    # Dealer turn

    def _begin_dealer_turn(self) -> None:
        """Hand control to the dealer and reveal the hole card."""
        self.player_done()
        self._hole_card_down = False
        self.events.emit_new(
            EventType.DEALER_REVEALS,
            card=self.dealer_hand.cards[1].code,
            hand_value=self.dealer_hand.value,
        )
        if self.auto_dealer:
            self.play_dealer()

    def _dealer_should_hit(self) -> bool:
        """Dealer hits below the stand threshold."""
        return self.dealer_hand.value < self.rules.dealer_stands_on

    def dealer_step(self) -> bool:
        """
        Make one dealer decision: draw a card, or stand and end the round.

        Returns:
            False if it is not the dealer's turn
        """
        if self.phase != RoundPhase.DEALER_TURN:
            return self._reject("Not the dealer's turn")

        if self._dealer_should_hit():
            self._deal_card_to_hand(self.dealer_hand)
            logger.debug("Dealer hits: %s (%d)", self.dealer_hand.codes, self.dealer_hand.value)
            self.events.emit_new(EventType.DEALER_HITS, hand_value=self.dealer_hand.value)
            self.continue_dealer_turn()
            return True

        if self.dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=self.dealer_hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=self.dealer_hand.value)
        self.dealer_done()
        return True

    def play_dealer(self) -> bool:
        """Run the dealer's turn to completion."""
        if self.phase != RoundPhase.DEALER_TURN:
            return self._reject("Not the dealer's turn")

        # Each draw raises the total, so this ends well before the deck does.
        while self.phase == RoundPhase.DEALER_TURN:
            self.dealer_step()
        return True

    # Resolution

    def resolve(self, round_number: int = 0) -> RoundResult | None:
        """
        Decide the finished round and pay it out.

        Runs at most once per round.

        Args:
            round_number: Number recorded on the result

        Returns:
            The round result, or None if there is nothing to resolve
        """
        if not self.resolution_pending:
            return None

        resolution = resolve_outcome(self.player_hand, self.dealer_hand)
        outcome = resolution.outcome
        bet = self.ledger.bet
        payout = self.ledger.resolve_payout(
            outcome,
            natural=resolution == Resolution.NATURAL_PLAYER,
        )
        self._round_in_progress = False
        self._hole_card_down = False

        result = RoundResult(
            round_number=round_number,
            outcome=outcome,
            resolution=resolution,
            bet=bet,
            payout=payout,
            bankroll=self.ledger.bankroll,
            player_cards=self.player_hand.codes,
            dealer_cards=self.dealer_hand.codes,
            player_total=self.player_hand.value,
            dealer_total=self.dealer_hand.value,
        )
        self.last_result = result

        logger.info(
            "Round %d: %s (%s), bet %d, payout %d, bankroll %d",
            round_number, outcome.value, resolution.value, bet, payout, result.bankroll,
        )
        self.events.emit_new(
            _OUTCOME_EVENTS[outcome],
            resolution=resolution.value,
            amount=payout,
        )
        self.events.emit_new(
            EventType.ROUND_ENDED,
            round_number=round_number,
            outcome=outcome.value,
            resolution=resolution.value,
            result=result.net,
            bankroll=result.bankroll,
        )
        return result

    # Session hooks

    def game_over(self, reason: str) -> None:
        """Enter the terminal phase."""
        logger.info("Game over: %s", reason)
        self.end_game()
        self.events.emit_new(EventType.GAME_ENDED, reason=reason, bankroll=self.ledger.bankroll)

    def reset(self) -> None:
        """Clear the table and reopen the betting window."""
        self.player_hand.clear()
        self.dealer_hand.clear()
        self.deck.reset()
        self.last_result = None
        self._round_in_progress = False
        self._hole_card_down = False
        self.restart()

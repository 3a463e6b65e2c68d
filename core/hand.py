"""Hand evaluation and round resolution for blackjack."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator

from core.cards import Card

BLACKJACK = 21


def hand_total(cards: Iterable[Card]) -> int:
    """
    Calculate the best total for a sequence of cards.

    Every Ace starts at 11 and is demoted to 1, one at a time, while the
    total is over 21. The result is the highest total that doesn't bust,
    or the all-Aces-as-1 total when every assignment busts.
    """
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
            total += 11
        else:
            total += card.value

    while total > BLACKJACK and aces > 0:
        total -= 10
        aces -= 1

    return total


def is_bust(total: int) -> bool:
    """Check if a total is over 21."""
    return total > BLACKJACK


def is_natural_blackjack(cards: list[Card], total: int) -> bool:
    """Check for 21 made with exactly the first two cards."""
    return len(cards) == 2 and total == BLACKJACK


@dataclass
class Hand:
    """An ordered, append-only blackjack hand."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def clear(self) -> None:
        """Remove all cards from the hand."""
        self.cards.clear()

    @property
    def value(self) -> int:
        """Return the best total, see :func:`hand_total`."""
        return hand_total(self.cards)

    @property
    def is_soft(self) -> bool:
        """
        Check if the hand is soft (has an ace counted as 11).

        A hand is soft if one Ace can count as 11 without busting.
        """
        if not any(card.is_ace for card in self.cards):
            return False
        total_hard = sum(card.value for card in self.cards)
        return total_hard + 10 <= BLACKJACK

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is a natural blackjack (21 with 2 cards)."""
        return is_natural_blackjack(self.cards, self.value)

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return is_bust(self.value)

    @property
    def codes(self) -> list[str]:
        """Return the card codes in deal order."""
        return [card.code for card in self.cards]

    @property
    def num_cards(self) -> int:
        """Return the number of cards in the hand."""
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"


class Outcome(Enum):
    """Result of a round from the player's side."""

    WIN = "win"
    LOSE = "lose"
    PUSH = "push"

    def __str__(self) -> str:
        return self.value


class Resolution(Enum):
    """The rule that decided a round. Each maps to exactly one outcome."""

    PLAYER_BUST = "player_bust"
    DEALER_BUST = "dealer_bust"
    NATURAL_PUSH = "natural_push"
    NATURAL_PLAYER = "natural_player"
    NATURAL_DEALER = "natural_dealer"
    TOTAL_WIN = "total_win"
    TOTAL_LOSE = "total_lose"
    TOTAL_PUSH = "total_push"

    def __str__(self) -> str:
        return self.value

    @property
    def outcome(self) -> Outcome:
        """Return the win/lose/push outcome this rule produces."""
        return _OUTCOMES[self]

    @property
    def is_natural(self) -> bool:
        """Check if the round was decided by a natural blackjack."""
        return self in (
            Resolution.NATURAL_PUSH,
            Resolution.NATURAL_PLAYER,
            Resolution.NATURAL_DEALER,
        )


_OUTCOMES: dict[Resolution, Outcome] = {
    Resolution.PLAYER_BUST: Outcome.LOSE,
    Resolution.DEALER_BUST: Outcome.WIN,
    Resolution.NATURAL_PUSH: Outcome.PUSH,
    Resolution.NATURAL_PLAYER: Outcome.WIN,
    Resolution.NATURAL_DEALER: Outcome.LOSE,
    Resolution.TOTAL_WIN: Outcome.WIN,
    Resolution.TOTAL_LOSE: Outcome.LOSE,
    Resolution.TOTAL_PUSH: Outcome.PUSH,
}


Rule = tuple[Callable[[Hand, Hand], bool], Resolution]

# Evaluated top to bottom; the first matching rule decides the round.
RESOLUTION_RULES: list[Rule] = [
    (lambda p, d: p.is_busted, Resolution.PLAYER_BUST),
    (lambda p, d: d.is_busted, Resolution.DEALER_BUST),
    (lambda p, d: p.is_blackjack and d.is_blackjack, Resolution.NATURAL_PUSH),
    (lambda p, d: p.is_blackjack, Resolution.NATURAL_PLAYER),
    (lambda p, d: d.is_blackjack, Resolution.NATURAL_DEALER),
    (lambda p, d: p.value > d.value, Resolution.TOTAL_WIN),
    (lambda p, d: p.value < d.value, Resolution.TOTAL_LOSE),
    (lambda p, d: True, Resolution.TOTAL_PUSH),
]


def resolve_outcome(player_hand: Hand, dealer_hand: Hand) -> Resolution:
    """
    Decide a round between the player and the dealer.

    Returns:
        The first matching rule of RESOLUTION_RULES
    """
    for matches, resolution in RESOLUTION_RULES:
        if matches(player_hand, dealer_hand):
            return resolution
    raise AssertionError("resolution rules are exhaustive")

"""Card and Deck classes - immutable card representations."""

from dataclasses import dataclass
from enum import Enum
from random import Random
from typing import Iterator

from core.errors import DeckExhaustedError, InvalidCardError


class Suit(Enum):
    """Card suits, valued by their one-letter code."""

    HEARTS = "H"
    CLUBS = "C"
    DIAMONDS = "D"
    SPADES = "S"

    def __str__(self) -> str:
        return self.value

    @property
    def symbol(self) -> str:
        """Return the unicode suit symbol for display."""
        return {
            Suit.HEARTS: "♥",
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.SPADES: "♠",
        }[self]


class Rank(Enum):
    """Card ranks, valued by their display code."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    def __str__(self) -> str:
        return self.value

    @property
    def base_value(self) -> int:
        """Return the base point value (Ace = 1, face cards = 10)."""
        if self == Rank.ACE:
            return 1
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def code(self) -> str:
        """Return the display code, rank followed by suit (e.g. '10H')."""
        return f"{self.rank.value}{self.suit.value}"

    @property
    def value(self) -> int:
        """Return the base point value; Aces count 1 here."""
        return self.rank.base_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @classmethod
    def from_code(cls, s: str) -> "Card":
        """Create a card from a code like 'AS', '10h' or 'K♥'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise InvalidCardError(f"Invalid card code: {s!r}")

        rank_str = s[:-1]
        suit_str = s[-1]

        if rank_str == "T":
            rank_str = "10"
        symbols = {"♥": "H", "♣": "C", "♦": "D", "♠": "S"}
        suit_str = symbols.get(suit_str, suit_str)

        try:
            rank = Rank(rank_str)
        except ValueError:
            raise InvalidCardError(f"Invalid rank: {rank_str}") from None
        try:
            suit = Suit(suit_str)
        except ValueError:
            raise InvalidCardError(f"Invalid suit: {suit_str}") from None

        return cls(rank, suit)


class Deck:
    """
    A single 52-card deck.

    The deck is rebuilt for every round, so it only ever shrinks between
    builds. Draws pick a uniformly random remaining card.
    """

    SIZE = 52

    def __init__(self, rng: Random | None = None) -> None:
        """Initialize a new, unshuffled deck."""
        self._rng = rng or Random()
        self._cards: list[Card] = self.build()

    @staticmethod
    def build() -> list[Card]:
        """Return a fresh list of all 52 cards in suit-major order."""
        return [Card(rank, suit) for suit in Suit for rank in Rank]

    def reset(self) -> None:
        """Restore all 52 cards in order."""
        self._cards = self.build()

    def shuffle(self) -> None:
        """Shuffle the remaining cards into a uniformly random order."""
        self._rng.shuffle(self._cards)

    def draw(self) -> Card:
        """
        Remove and return a uniformly random remaining card.

        Raises:
            DeckExhaustedError: if the deck is empty
        """
        if not self._cards:
            raise DeckExhaustedError("Cannot draw from empty deck")
        index = self._rng.randrange(len(self._cards))
        # Swap-remove keeps the draw O(1).
        self._cards[index], self._cards[-1] = self._cards[-1], self._cards[index]
        return self._cards.pop()

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __contains__(self, card: object) -> bool:
        return card in self._cards

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def codes(self) -> list[str]:
        """Return the codes of the remaining cards."""
        return [card.code for card in self._cards]


class StackedDeck(Deck):
    """
    A deck that deals a fixed sequence of cards first.

    Used to replay known deals. Cards named in ``order`` are removed from
    the remaining pool, so the 52-card uniqueness invariant still holds.
    """

    def __init__(self, order: list[Card], rng: Random | None = None) -> None:
        """
        Initialize a stacked deck.

        Args:
            order: Cards to deal first, in order
            rng: Random number generator for the rest of the deck
        """
        if len(set(order)) != len(order):
            raise ValueError("Stacked cards must be unique")
        self._order = list(order)
        self._queue: list[Card] = []
        super().__init__(rng=rng)
        self.reset()

    def reset(self) -> None:
        """Restore the full deck with the stacked cards on top."""
        self._queue = list(self._order)
        stacked = set(self._order)
        self._cards = [c for c in self.build() if c not in stacked]

    def shuffle(self) -> None:
        """Shuffle only the cards below the stacked sequence."""
        self._rng.shuffle(self._cards)

    def draw(self) -> Card:
        """Deal the next stacked card, then fall back to random draws."""
        if self._queue:
            return self._queue.pop(0)
        return super().draw()

    def __len__(self) -> int:
        return len(self._queue) + len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._queue + self._cards)

    def __contains__(self, card: object) -> bool:
        return card in self._queue or card in self._cards

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self)

    @property
    def codes(self) -> list[str]:
        """Return the codes of the remaining cards."""
        return [card.code for card in self]

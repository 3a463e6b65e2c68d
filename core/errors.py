"""Exceptions raised by the blackjack core."""


class BlackjackError(Exception):
    """Base class for core errors."""


class DeckExhaustedError(BlackjackError):
    """
    Raised when a card is drawn from an empty deck.

    A single round can never use all 52 cards, so this is an internal
    invariant violation rather than a user-facing condition.
    """


class InvalidCardError(BlackjackError, ValueError):
    """Raised when a card code cannot be parsed."""

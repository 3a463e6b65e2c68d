"""Pytest fixtures for blackjack engine tests."""

from random import Random

import pytest

from core.cards import Card, Deck, Rank, StackedDeck, Suit
from core.hand import Hand
from core.rules import RuleSet
from core.game import RoundEngine, SessionController


def cards(*codes: str) -> list[Card]:
    """Build cards from codes like 'AS', '10H'."""
    return [Card.from_code(code) for code in codes]


def hand_of(*codes: str) -> Hand:
    """Build a hand from card codes."""
    return Hand(cards(*codes))


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled deck."""
    d = Deck(rng=rng)
    d.shuffle()
    return d


@pytest.fixture
def empty_hand():
    """An empty hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return hand_of("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return hand_of("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return hand_of("10S", "6H")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return hand_of("10S", "6H", "KC")


@pytest.fixture
def rules():
    """Default ruleset."""
    return RuleSet()


@pytest.fixture
def stacked_session(rng):
    """
    Factory for a session dealt from a stacked deck.

    Deal order is player, player, dealer, dealer, then any hits in turn.
    """

    def _make(*codes: str, auto_dealer: bool = True, rules: RuleSet | None = None):
        deck = StackedDeck(cards(*codes), rng=rng)
        return SessionController(rules=rules, deck=deck, auto_dealer=auto_dealer)

    return _make


@pytest.fixture
def stacked_engine(rng):
    """Factory for a bare round engine dealt from a stacked deck."""

    def _make(*codes: str, auto_dealer: bool = True):
        deck = StackedDeck(cards(*codes), rng=rng)
        return RoundEngine(deck=deck, auto_dealer=auto_dealer)

    return _make


@pytest.fixture
def game(rng):
    """A new session with a seeded random deck."""
    return SessionController(rng=rng)


@pytest.fixture
def recorded_events():
    """Collect events emitted by a game: pass ``recorder.attach(game)``."""

    class Recorder:
        def __init__(self):
            self.events = []

        def attach(self, target):
            target.subscribe(self.events.append)
            return target

        @property
        def types(self):
            return [e.event_type for e in self.events]

    return Recorder()

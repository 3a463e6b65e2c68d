"""Core single-deck blackjack engine - 100% UI-agnostic."""

from core.cards import Card, Deck, Rank, Suit
from core.hand import Hand, Outcome, Resolution
from core.bankroll import BankrollLedger
from core.rules import RuleSet

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "Hand",
    "Outcome",
    "Resolution",
    "BankrollLedger",
    "RuleSet",
]

"""Tests for Hand evaluation and round resolution."""

from itertools import product

import pytest
from hypothesis import given
from hypothesis import strategies as st

from core.cards import Card, Rank, Suit
from core.hand import (
    Hand,
    Outcome,
    Resolution,
    hand_total,
    is_bust,
    is_natural_blackjack,
    resolve_outcome,
)

from conftest import cards, hand_of


@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def hand_strategy(draw, min_cards=2, max_cards=8):
    """Generate a random hand."""
    return Hand(draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards)))


class TestHandTotal:
    """Tests for the hand_total function."""

    def test_empty(self):
        """Test that no cards total zero."""
        assert hand_total([]) == 0

    def test_aces_fold_one_at_a_time(self):
        """Test multiple Aces where only one stays at 11."""
        assert hand_total(cards("AS", "AH", "9C")) == 21
        assert hand_total(cards("AS", "AH", "AC", "9D")) == 12

    def test_all_aces_as_one_when_busting(self):
        """Test a hand that busts even with every Ace at 1."""
        assert hand_total(cards("AS", "KH", "QC", "5D")) == 26

    def test_face_cards_count_ten(self):
        """Test face card values."""
        assert hand_total(cards("JS", "QH")) == 20
        assert hand_total(cards("KS", "10H", "2C")) == 22

    @given(hand=hand_strategy(min_cards=0))
    def test_total_is_best_ace_assignment(self, hand):
        """Test the total is the highest non-bust Ace assignment, else the lowest."""
        hard = sum(c.value for c in hand.cards)
        aces = sum(1 for c in hand.cards if c.is_ace)
        candidates = {hard + 10 * sum(bits) for bits in product((0, 1), repeat=aces)}
        safe = [t for t in candidates if t <= 21]
        expected = max(safe) if safe else min(candidates)
        assert hand_total(hand.cards) == expected

    def test_bust_threshold(self):
        """Test that only totals over 21 are busts."""
        assert not is_bust(21)
        assert is_bust(22)

    def test_natural_needs_two_cards(self):
        """Test that natural blackjack is 21 on exactly two cards."""
        assert is_natural_blackjack(cards("AS", "KH"), 21)
        assert not is_natural_blackjack(cards("7S", "7H", "7C"), 21)
        assert not is_natural_blackjack(cards("KS", "9H"), 19)


class TestHand:
    """Tests for the Hand class."""

    def test_empty_hand(self, empty_hand):
        """Test empty hand properties."""
        assert len(empty_hand) == 0
        assert empty_hand.value == 0
        assert not empty_hand.is_soft
        assert not empty_hand.is_blackjack
        assert not empty_hand.is_busted

    def test_add_card(self, empty_hand):
        """Test adding cards to hand."""
        empty_hand.add_card(Card(Rank.TEN, Suit.SPADES))
        assert len(empty_hand) == 1
        assert empty_hand.value == 10
        assert empty_hand.codes == ["10S"]

    def test_hard_hand_value(self, hard_16_hand):
        """Test hard hand value calculation."""
        assert hard_16_hand.value == 16
        assert not hard_16_hand.is_soft

    def test_soft_hand_value(self, soft_17_hand):
        """Test soft hand value calculation."""
        assert soft_17_hand.value == 17
        assert soft_17_hand.is_soft

    def test_blackjack(self, blackjack_hand):
        """Test blackjack detection."""
        assert blackjack_hand.is_blackjack
        assert blackjack_hand.value == 21
        assert "BLACKJACK" in str(blackjack_hand)

    def test_not_blackjack_three_cards(self):
        """Test that 21 with 3+ cards is not blackjack."""
        hand = hand_of("7S", "7H", "7C")
        assert hand.value == 21
        assert not hand.is_blackjack

    def test_bust(self, bust_hand):
        """Test bust detection."""
        assert bust_hand.is_busted
        assert bust_hand.value == 26
        assert "BUST" in str(bust_hand)

    def test_soft_to_hard_transition(self):
        """Test ace switching from 11 to 1."""
        hand = hand_of("AS")
        assert hand.value == 11
        assert hand.is_soft

        hand.add_card(Card(Rank.FIVE, Suit.HEARTS))
        assert hand.value == 16
        assert hand.is_soft

        hand.add_card(Card(Rank.EIGHT, Suit.CLUBS))
        # Ace now counts as 1
        assert hand.value == 14
        assert not hand.is_soft

    def test_multiple_aces(self):
        """Test hand with multiple aces."""
        hand = hand_of("AS", "AH")
        assert hand.value == 12
        assert hand.is_soft

        hand.add_card(Card(Rank.ACE, Suit.CLUBS))
        assert hand.value == 13

        hand.add_card(Card(Rank.NINE, Suit.DIAMONDS))
        # A-A-A-9 = 12 (1 + 1 + 1 + 9)
        assert hand.value == 12
        assert not hand.is_soft

    def test_clear_hand(self, blackjack_hand):
        """Test clearing a hand."""
        blackjack_hand.clear()
        assert len(blackjack_hand) == 0
        assert blackjack_hand.value == 0


class TestResolveOutcome:
    """Tests for round resolution order."""

    @pytest.mark.parametrize(
        "player, dealer, resolution",
        [
            # Player bust loses even when the dealer also busts
            (("10S", "6H", "KC"), ("10D", "6C", "QS"), Resolution.PLAYER_BUST),
            (("10S", "6H", "KC"), ("AD", "KD"), Resolution.PLAYER_BUST),
            (("10S", "7H"), ("10C", "6D", "KS"), Resolution.DEALER_BUST),
            (("AS", "KH"), ("AC", "QD"), Resolution.NATURAL_PUSH),
            # A natural beats a three-card 21
            (("AS", "KH"), ("7C", "7D", "7S"), Resolution.NATURAL_PLAYER),
            (("7C", "7D", "7S"), ("AS", "KH"), Resolution.NATURAL_DEALER),
            (("10S", "9H"), ("10C", "8D"), Resolution.TOTAL_WIN),
            (("10S", "7H"), ("10C", "9D"), Resolution.TOTAL_LOSE),
            (("10S", "8H"), ("10C", "8D"), Resolution.TOTAL_PUSH),
            (("7C", "7D", "7S"), ("6C", "5D", "QS"), Resolution.TOTAL_PUSH),
        ],
    )
    def test_resolution_rules(self, player, dealer, resolution):
        """Test each rule in priority order."""
        assert resolve_outcome(hand_of(*player), hand_of(*dealer)) == resolution

    def test_resolution_outcomes(self):
        """Test that each rule maps to the expected outcome."""
        assert Resolution.PLAYER_BUST.outcome == Outcome.LOSE
        assert Resolution.DEALER_BUST.outcome == Outcome.WIN
        assert Resolution.NATURAL_PUSH.outcome == Outcome.PUSH
        assert Resolution.NATURAL_PLAYER.outcome == Outcome.WIN
        assert Resolution.NATURAL_DEALER.outcome == Outcome.LOSE
        assert Resolution.TOTAL_WIN.outcome == Outcome.WIN
        assert Resolution.TOTAL_LOSE.outcome == Outcome.LOSE
        assert Resolution.TOTAL_PUSH.outcome == Outcome.PUSH

    def test_natural_flag(self):
        """Test which resolutions count as naturals."""
        naturals = {r for r in Resolution if r.is_natural}
        assert naturals == {
            Resolution.NATURAL_PUSH,
            Resolution.NATURAL_PLAYER,
            Resolution.NATURAL_DEALER,
        }

    @given(player=hand_strategy(), dealer=hand_strategy())
    def test_every_pair_of_hands_resolves(self, player, dealer):
        """Test that resolution is total and consistent with the hands."""
        resolution = resolve_outcome(player, dealer)
        if player.is_busted:
            assert resolution == Resolution.PLAYER_BUST
        elif resolution.outcome == Outcome.WIN:
            assert (
                dealer.is_busted
                or player.is_blackjack
                or player.value > dealer.value
            )

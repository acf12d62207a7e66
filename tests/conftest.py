"""Pytest fixtures for strategy trainer tests."""

from random import Random

import pytest

from core.cards import Card, Deck, Rank, StackedSupply, Suit
from core.game import EventEmitter
from core.hand import Hand
from core.strategy import load_optimal_strategy


def make_cards(text: str) -> list[Card]:
    """Build cards from a space separated string such as "A♠ T♥"."""
    return [Card.from_string(s) for s in text.split()]


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled deck."""
    return Deck(rng=rng)


@pytest.fixture
def stacked():
    """Factory for a supply that deals the given cards in order."""

    def _stacked(text: str) -> StackedSupply:
        return StackedSupply(make_cards(text))

    return _stacked


@pytest.fixture
def events():
    """An event emitter recording history."""
    return EventEmitter()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return Hand([Card(Rank.ACE, Suit.SPADES), Card(Rank.KING, Suit.HEARTS)])


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return Hand([Card(Rank.ACE, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)])


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return Hand([Card(Rank.TEN, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)])


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    return Hand([Card(Rank.EIGHT, Suit.SPADES), Card(Rank.EIGHT, Suit.HEARTS)])


@pytest.fixture
def stand17_strategy():
    """Optimal strategy, dealer stands on soft 17."""
    return load_optimal_strategy(hit_soft17=False)


@pytest.fixture
def hit17_strategy():
    """Optimal strategy, dealer hits soft 17."""
    return load_optimal_strategy(hit_soft17=True)


@pytest.fixture
def hand_of():
    """Factory for a hand holding the given cards."""

    def _hand_of(text: str) -> Hand:
        return Hand(make_cards(text))

    return _hand_of

"""Core blackjack trainer engine - 100% UI-agnostic."""

from core.cards import Card, CardSupply, Deck, RandomSupply, StackedSupply, Rank, Suit
from core.hand import Hand

__all__ = [
    "Card",
    "CardSupply",
    "Deck",
    "RandomSupply",
    "StackedSupply",
    "Rank",
    "Suit",
    "Hand",
]

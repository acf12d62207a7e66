"""Hand evaluation for blackjack."""

from typing import Any, Iterable, Iterator

from core.cards import Card
from core.errors import InvalidOperation


class Hand:
    """
    A blackjack hand with cached value calculation.

    Derived values are recomputed from scratch after every mutation, so the
    total is always the ace-minimized value of the current cards.
    """

    def __init__(self, cards: Iterable[Card] = ()) -> None:
        """
        Initialize a hand.

        Args:
            cards: Initial cards in draw order
        """
        self._cards: list[Card] = list(cards)
        self._total = 0
        self._soft = False
        self._blackjack = False
        self._pair = False
        self._calculate()

    def add(self, card: Card) -> None:
        """Add a card to the hand."""
        self._cards.append(card)
        self._calculate()

    def reset(self) -> None:
        """Remove all cards from the hand."""
        self._cards.clear()
        self._calculate()

    def split(self) -> "Hand":
        """
        Split a pair into two hands.

        Removes the second card and returns it inside a new hand.

        Raises:
            InvalidOperation: If the hand is not a pair
        """
        if not self._pair:
            raise InvalidOperation("Hand is not a pair")

        second = self._cards.pop(1)
        self._calculate()
        return Hand([second])

    def copy(self) -> "Hand":
        """Return an independent copy of this hand."""
        return Hand(self._cards)

    def _calculate(self) -> None:
        """Recompute total, softness, blackjack and pair status."""
        total = 0
        aces = 0

        for card in self._cards:
            total += card.value
            if card.is_ace:
                aces += 1

        # Reduce aces from 11 to 1 as needed
        while total > 21 and aces > 0:
            total -= 10
            aces -= 1

        self._total = total
        self._soft = aces > 0

        self._blackjack = False
        self._pair = False
        if len(self._cards) == 2:
            first, second = self._cards
            self._pair = first.value == second.value
            self._blackjack = first.value + second.value == 21

    @property
    def cards(self) -> tuple[Card, ...]:
        """Return the cards in draw order."""
        return tuple(self._cards)

    @property
    def total(self) -> int:
        """Return the best total, or the lowest bust value."""
        return self._total

    @property
    def is_soft(self) -> bool:
        """Check if an ace is still counted as 11."""
        return self._soft

    @property
    def is_hard(self) -> bool:
        """Check if the hand is hard (not soft)."""
        return not self._soft

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is a natural (21 with 2 cards)."""
        return self._blackjack

    @property
    def is_pair(self) -> bool:
        """Check if the hand is two cards of equal blackjack value."""
        return self._pair

    @property
    def pair_value(self) -> int:
        """
        Return the value of the paired cards.

        Raises:
            InvalidOperation: If the hand is not a pair
        """
        if not self._pair:
            raise InvalidOperation("Hand is not a pair")
        return self._cards[0].value

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self._total > 21

    def can_double(self) -> bool:
        """Check if the hand can be doubled down (exactly two cards)."""
        return len(self._cards) == 2

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {"cards": [card.to_dict() for card in self._cards]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Hand":
        """Create from a dict produced by to_dict()."""
        return cls(Card.from_dict(c) for c in data["cards"])

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self._cards)
        value_str = f"({self.total})"
        if self.is_soft:
            value_str = f"(soft {self.total})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self._cards!r}, total={self.total})"

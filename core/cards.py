"""Card values and card supplies."""

from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator, Protocol


class Suit(Enum):
    """Card suits."""

    DIAMONDS = auto()
    HEARTS = auto()
    SPADES = auto()
    CLUBS = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.HEARTS: "♥",
            Suit.SPADES: "♠",
        }
        return symbols[self]


class Rank(Enum):
    """Card ranks, numbered 1 (ace) to 13 (king)."""

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def __str__(self) -> str:
        if 2 <= self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self == Rank.ACE:
            return 11
        if self.value >= 10:
            return 10
        return self.value

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


# Ranks grouped by the blackjack value they carry
RANKS_BY_VALUE: dict[int, tuple[Rank, ...]] = {
    value: tuple(rank for rank in Rank if rank.blackjack_value == value)
    for value in range(2, 12)
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the blackjack point value, aces always as 11."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Kh'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        rank_map = {str(rank): rank for rank in Rank}
        rank_map["T"] = Rank.TEN

        suit_map = {
            "C": Suit.CLUBS,
            "♣": Suit.CLUBS,
            "D": Suit.DIAMONDS,
            "♦": Suit.DIAMONDS,
            "H": Suit.HEARTS,
            "♥": Suit.HEARTS,
            "S": Suit.SPADES,
            "♠": Suit.SPADES,
        }

        if rank_str not in rank_map:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in suit_map:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(rank_map[rank_str], suit_map[suit_str])

    def to_dict(self) -> dict[str, str]:
        """Convert to a JSON-friendly dict."""
        return {"rank": self.rank.name, "suit": self.suit.name}

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> "Card":
        """Create from a dict produced by to_dict()."""
        return cls(Rank[data["rank"]], Suit[data["suit"]])


def card_for_value(value: int, rng: Random) -> Card:
    """
    Build a card with the given blackjack value.

    The rank is picked uniformly among the ranks carrying that value
    (10 maps to 10, J, Q and K) and the suit uniformly at random.

    Args:
        value: Blackjack value, 2-11 (11 = Ace)
        rng: Random number generator to pick rank and suit

    Returns:
        A card worth exactly `value`
    """
    if value not in RANKS_BY_VALUE:
        raise ValueError(f"No card has blackjack value {value}")
    return Card(rng.choice(RANKS_BY_VALUE[value]), rng.choice(list(Suit)))


class CardSupply(Protocol):
    """
    Source of fresh cards.

    The engine only ever pulls from a supply; it never inspects or
    persists the supply's internal state.
    """

    def next_card(self) -> Card:
        """Draw the next card."""
        ...


class RandomSupply:
    """Infinite supply of fully random cards, each drawn independently."""

    def __init__(self, rng: Random | None = None) -> None:
        self._rng = rng or Random()

    def next_card(self) -> Card:
        """Draw a uniformly random card."""
        return Card(self._rng.choice(list(Rank)), self._rng.choice(list(Suit)))


class Deck:
    """A standard 52-card deck that reshuffles itself once exhausted."""

    def __init__(self, rng: Random | None = None) -> None:
        """Initialize and shuffle a new deck."""
        self._rng = rng or Random()
        self._cards: list[Card] = []
        self.shuffle()

    def reset(self) -> None:
        """Reset deck to all 52 cards in order."""
        self._cards = [Card(rank, suit) for suit in Suit for rank in Rank]

    def shuffle(self) -> None:
        """Collect all cards and shuffle the deck."""
        self.reset()
        self._rng.shuffle(self._cards)

    def next_card(self) -> Card:
        """Draw a card from the top of the deck."""
        if not self._cards:
            self.shuffle()
        return self._cards.pop()

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining before the next reshuffle."""
        return len(self._cards)


class StackedSupply:
    """Deterministic supply yielding a fixed sequence of cards in order."""

    def __init__(self, cards: Iterable[Card]) -> None:
        self._cards = list(cards)
        self._position = 0

    def next_card(self) -> Card:
        """Draw the next card of the sequence."""
        if self._position >= len(self._cards):
            raise IndexError("Stacked supply is exhausted")
        card = self._cards[self._position]
        self._position += 1
        return card

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards not drawn yet."""
        return len(self._cards) - self._position

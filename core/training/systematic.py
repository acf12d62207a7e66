"""Systematic drilling of every strategy cell until each is answered correctly."""

import logging
from dataclasses import dataclass
from random import Random
from typing import Any

from core.cards import CardSupply, card_for_value
from core.errors import InvalidOperation
from core.game.events import EventEmitter
from core.game.round import Round
from core.hand import Hand
from core.strategy.table import DEALER_RANGE, SUPPORTED_RANGES, MatrixKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellIndex:
    """One strategy cell: matrix, player index and dealer up-card value."""

    kind: MatrixKind
    player: int
    dealer: int

    def __str__(self) -> str:
        return f"{self.kind.name}({self.player}, {self.dealer})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {"kind": self.kind.name, "player": self.player, "dealer": self.dealer}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CellIndex":
        """Create from a dict produced by to_dict()."""
        return cls(MatrixKind[data["kind"]], data["player"], data["dealer"])


def all_cells() -> list[CellIndex]:
    """Return every supported cell of the three matrices, in table order."""
    dealer_low, dealer_high = DEALER_RANGE
    return [
        CellIndex(kind, player, dealer)
        for kind, (low, high) in SUPPORTED_RANGES.items()
        for player in range(low, high + 1)
        for dealer in range(dealer_low, dealer_high + 1)
    ]


class SystematicTrainer:
    """
    Work queue over all strategy cells.

    Starts with every cell once, shuffled. A cell answered wrongly is put
    back at a random later position, so it comes up again in the same
    session but never as the very next round.
    """

    def __init__(self, rng: Random | None = None) -> None:
        """
        Initialize with all cells in random order.

        Args:
            rng: Random number generator for shuffling, requeueing and dealing
        """
        self._rng = rng or Random()
        self._queue: list[CellIndex] = all_cells()
        self._rng.shuffle(self._queue)
        self.current: CellIndex | None = None

    @property
    def remaining_count(self) -> int:
        """Return the number of queued cells, for progress display."""
        return len(self._queue)

    @property
    def queue(self) -> tuple[CellIndex, ...]:
        """Return the queued cells, head first."""
        return tuple(self._queue)

    def get_next(
        self,
        supply: CardSupply,
        hit_soft17: bool,
        events: EventEmitter | None = None,
    ) -> Round | None:
        """
        Pop the head of the queue and deal a round for it.

        Returns:
            The round, or None once every cell has been trained
        """
        if not self._queue:
            return None

        logger.info("Training next entry, %d remaining.", self.remaining_count)
        self.current = self._queue.pop(0)
        return self.construct_round(self.current, supply, hit_soft17, events)

    def repeat(self) -> None:
        """
        Requeue the current cell at a random position after the head.

        Raises:
            InvalidOperation: If no round has been handed out yet
        """
        if self.current is None:
            raise InvalidOperation("No round yet there to repeat")
        logger.info("Repeating last %s.", self.current)

        position = self._rng.randint(1, len(self._queue)) if self._queue else 0
        self._queue.insert(position, self.current)

    def construct_round(
        self,
        cell: CellIndex,
        supply: CardSupply,
        hit_soft17: bool,
        events: EventEmitter | None = None,
    ) -> Round:
        """
        Deal a round whose starting hands land exactly on a cell.

        Hard totals use two different values from 2-10, except hard 21
        (ten and ace) and hard 20 (two tens, which plays as a pair).
        Soft totals pair an ace with the remainder; pairs get two cards of
        the pair value. The dealer gets a single up-card.
        """
        logger.debug("Constructing round for %s...", cell)

        dealer = Hand([card_for_value(cell.dealer, self._rng)])

        if cell.kind == MatrixKind.HARD:
            values = self._hard_values(cell.player)
        elif cell.kind == MatrixKind.SOFT:
            values = (cell.player - 11, 11)
        else:
            values = (cell.player, cell.player)

        player = Hand(card_for_value(v, self._rng) for v in values)
        return Round(player, dealer, supply, hit_soft17, events=events)

    def _hard_values(self, total: int) -> tuple[int, int]:
        if total == 21:
            return 10, 11
        if total == 20:
            return 10, 10
        candidates = [
            (first, total - first)
            for first in range(2, 11)
            if 2 <= total - first <= 10 and first != total - first
        ]
        if not candidates:
            raise ValueError(f"Hard total {total} has no two-card deal")
        return self._rng.choice(candidates)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict. The rng is not included."""
        return {
            "queue": [cell.to_dict() for cell in self._queue],
            "current": self.current.to_dict() if self.current else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], rng: Random | None = None) -> "SystematicTrainer":
        """Restore a trainer from a dict produced by to_dict()."""
        trainer = cls(rng)
        trainer._queue = [CellIndex.from_dict(c) for c in data["queue"]]
        current = data.get("current")
        trainer.current = CellIndex.from_dict(current) if current else None
        return trainer

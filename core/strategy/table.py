"""Strategy matrices mapping (player hand, dealer up-card) to a decision."""

import logging
from enum import Enum, auto
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, Sequence

from core.errors import ConflictError, FormatError, IncompleteTableError, StrategyLookupError
from core.hand import Hand
from core.strategy.source import (
    RuleGroup,
    StrategyDocument,
    parse_bounds,
    parse_document,
    read_document,
)

logger = logging.getLogger(__name__)


class MatrixEntry(Enum):
    """Cell contents, valued by the action code used in strategy documents."""

    UNSET = ""
    STAND = "S"
    HIT = "H"
    SPLIT = "SP"
    DOUBLE_HIT = "Dh"  # Double if allowed, else hit
    DOUBLE_STAND = "Ds"  # Double if allowed, else stand

    def __str__(self) -> str:
        return self.value


class MatrixKind(Enum):
    """The three strategy matrices."""

    HARD = auto()
    SOFT = auto()
    PAIR = auto()


class Decision(Enum):
    """A playable decision, with double-else-hit/stand already resolved."""

    STAND = auto()
    HIT = auto()
    SPLIT = auto()
    DOUBLE = auto()

    def __str__(self) -> str:
        return self.name.title()


# Player index ranges every loaded table must cover (pairs index by card value)
SUPPORTED_RANGES: dict[MatrixKind, tuple[int, int]] = {
    MatrixKind.HARD: (5, 21),
    MatrixKind.SOFT: (13, 21),
    MatrixKind.PAIR: (2, 11),
}

# Dealer up-card values, 11 = Ace
DEALER_RANGE: tuple[int, int] = (2, 11)

# Matrix dimensions; indices are stored untranslated, leaving low rows unused
_ROWS: dict[MatrixKind, int] = {
    MatrixKind.HARD: 22,
    MatrixKind.SOFT: 22,
    MatrixKind.PAIR: 12,
}
_COLUMNS = 12

_SECTIONS: dict[str, MatrixKind] = {
    "hard": MatrixKind.HARD,
    "soft": MatrixKind.SOFT,
    "pairs": MatrixKind.PAIR,
}

Matrix = list[list[MatrixEntry]]


def _empty_matrix(kind: MatrixKind) -> Matrix:
    return [[MatrixEntry.UNSET] * _COLUMNS for _ in range(_ROWS[kind])]


class StrategyTable:
    """
    Optimal decisions for hard totals, soft totals and pairs.

    Tables are filled from strategy documents: a base document in create
    mode, optionally followed by overlay documents in overwrite mode (for
    example the dealer-hits-soft-17 changes on top of the stand-17 table).
    """

    def __init__(self) -> None:
        """Construct a table with every cell unset."""
        self._matrices: dict[MatrixKind, Matrix] = {
            kind: _empty_matrix(kind) for kind in MatrixKind
        }

    def decide(self, player: Hand, dealer_up_total: int) -> Decision:
        """
        Look up the optimal decision.

        Pairs use the pair matrix; everything else the soft or hard matrix
        by the player's total. Double-else-hit/stand entries resolve on
        whether the hand can still double.

        Args:
            player: The player's hand
            dealer_up_total: Dealer up-card value (2-11, Ace = 11)

        Raises:
            StrategyLookupError: If the cell is out of range or unset
        """
        if player.is_pair:
            entry = self.entry(MatrixKind.PAIR, player.pair_value, dealer_up_total)
        elif player.is_soft:
            entry = self.entry(MatrixKind.SOFT, player.total, dealer_up_total)
        else:
            entry = self.entry(MatrixKind.HARD, player.total, dealer_up_total)

        if entry == MatrixEntry.UNSET:
            raise StrategyLookupError(
                f"No strategy entry for {player} against {dealer_up_total}"
            )
        return self._resolve(entry, player.can_double())

    @staticmethod
    def _resolve(entry: MatrixEntry, can_double: bool) -> Decision:
        """Resolve conditional doubles based on what's allowed."""
        if entry == MatrixEntry.DOUBLE_HIT:
            return Decision.DOUBLE if can_double else Decision.HIT
        if entry == MatrixEntry.DOUBLE_STAND:
            return Decision.DOUBLE if can_double else Decision.STAND
        return {
            MatrixEntry.STAND: Decision.STAND,
            MatrixEntry.HIT: Decision.HIT,
            MatrixEntry.SPLIT: Decision.SPLIT,
        }[entry]

    def entry(self, kind: MatrixKind, player: int, dealer: int) -> MatrixEntry:
        """
        Read one cell.

        Raises:
            StrategyLookupError: If the indices fall outside the matrix
        """
        matrix = self._matrices[kind]
        if not (0 <= player < len(matrix) and 0 <= dealer < _COLUMNS):
            raise StrategyLookupError(
                f"Cell ({player}, {dealer}) is outside the {kind.name} matrix"
            )
        return matrix[player][dealer]

    def get_matrix(self, kind: MatrixKind) -> Sequence[Sequence[MatrixEntry]]:
        """Return a read-only view of one matrix, indexed [player][dealer]."""
        return tuple(tuple(row) for row in self._matrices[kind])

    def load(
        self,
        source: StrategyDocument | Mapping[str, Any] | str | bytes | Path,
        overwrite: bool = False,
    ) -> None:
        """
        Fill cells from a strategy document.

        The table is only changed if the whole document applies cleanly.

        Args:
            source: Document model, decoded mapping, JSON text or path
            overwrite: Only replace cells that are already set, instead
                of only filling cells that are still unset

        Raises:
            FormatError: If the document or a bounds string is malformed
            ConflictError: If a group targets a cell in the wrong state
            IncompleteTableError: If supported cells remain unset afterwards
        """
        if isinstance(source, (str, bytes, Path)):
            document = read_document(source)
        else:
            document = parse_document(source)

        scratch = {kind: [row[:] for row in m] for kind, m in self._matrices.items()}
        for section, kind in _SECTIONS.items():
            for group in getattr(document, section):
                self._apply_group(scratch[kind], kind, group, overwrite)

        missing = _first_missing(scratch)
        if missing is not None:
            kind, player, dealer = missing
            raise IncompleteTableError(
                f"{kind.name} matrix has no entry for player {player} vs dealer {dealer}"
            )

        self._matrices = scratch
        logger.debug("Loaded strategy document (overwrite=%s)", overwrite)

    @staticmethod
    def _apply_group(
        matrix: Matrix,
        kind: MatrixKind,
        group: RuleGroup,
        overwrite: bool,
    ) -> None:
        player_low, player_high = parse_bounds(group.player)
        dealer_low, dealer_high = parse_bounds(group.dealer)
        if player_high >= len(matrix) or dealer_high >= _COLUMNS:
            raise FormatError(
                f"Group {group.player}/{group.dealer} exceeds the {kind.name} matrix"
            )

        value = MatrixEntry(group.action)
        for player in range(player_low, player_high + 1):
            for dealer in range(dealer_low, dealer_high + 1):
                current = matrix[player][dealer]
                if not overwrite and current != MatrixEntry.UNSET:
                    raise ConflictError(
                        f"{kind.name} cell ({player}, {dealer}) is already filled in"
                    )
                if overwrite and current == MatrixEntry.UNSET:
                    raise ConflictError(
                        f"{kind.name} cell ({player}, {dealer}) is overwritten but still empty"
                    )
                matrix[player][dealer] = value

    @property
    def is_complete(self) -> bool:
        """Check that every supported cell is set."""
        return _first_missing(self._matrices) is None


def _first_missing(matrices: Mapping[MatrixKind, Matrix]) -> tuple[MatrixKind, int, int] | None:
    for kind, (low, high) in SUPPORTED_RANGES.items():
        for player in range(low, high + 1):
            for dealer in range(DEALER_RANGE[0], DEALER_RANGE[1] + 1):
                if matrices[kind][player][dealer] == MatrixEntry.UNSET:
                    return kind, player, dealer
    return None


@lru_cache(maxsize=None)
def _bundled_document(name: str) -> StrategyDocument:
    text = (resources.files("core.strategy") / "data" / name).read_text(encoding="utf-8")
    return read_document(text)


def load_optimal_strategy(hit_soft17: bool) -> StrategyTable:
    """
    Build the bundled optimal strategy.

    Args:
        hit_soft17: Apply the dealer-hits-soft-17 overlay

    Returns:
        A fresh, complete table
    """
    table = StrategyTable()
    table.load(_bundled_document("stand17.json"))
    if hit_soft17:
        table.load(_bundled_document("hit17.json"), overwrite=True)
    return table

"""Compact strategy chart rows for display."""

from dataclasses import dataclass

from core.strategy.table import DEALER_RANGE, MatrixEntry, MatrixKind, StrategyTable

# Player rows shown per matrix; hard 21 and soft 21 are left off the chart
CHART_RANGES: dict[MatrixKind, tuple[int, int]] = {
    MatrixKind.HARD: (5, 20),
    MatrixKind.SOFT: (13, 20),
    MatrixKind.PAIR: (2, 11),
}


@dataclass(frozen=True)
class ChartRow:
    """One chart line: a player label and an entry per dealer up-card."""

    label: str
    entries: tuple[MatrixEntry, ...]


def row_label(kind: MatrixKind, player: int) -> str:
    """Return the display label of a single player index."""
    if kind == MatrixKind.HARD:
        return str(player)
    if kind == MatrixKind.SOFT:
        return f"A,{player - 11}"
    card = "A" if player == 11 else str(player)
    return f"{card},{card}"


def build_chart(table: StrategyTable, kind: MatrixKind) -> list[ChartRow]:
    """
    Build chart rows from the highest player index down.

    Consecutive rows with identical entries are merged into one row
    labelled with the covered range, e.g. "13-16" or "A,2-A,3".
    """
    matrix = table.get_matrix(kind)
    low, high = CHART_RANGES[kind]
    dealer_low, dealer_high = DEALER_RANGE

    rows: list[ChartRow] = []
    current: tuple[MatrixEntry, ...] | None = None
    top = bottom = ""

    for player in range(high, low - 1, -1):
        entries = tuple(matrix[player][dealer_low : dealer_high + 1])
        if entries != current:
            if current is not None:
                rows.append(ChartRow(_range_label(bottom, top), current))
            current = entries
            top = row_label(kind, player)
        bottom = row_label(kind, player)

    if current is not None:
        rows.append(ChartRow(_range_label(bottom, top), current))
    return rows


def _range_label(bottom: str, top: str) -> str:
    return bottom if bottom == top else f"{bottom}-{top}"

"""Strategy tables, their source documents and chart display."""

from core.strategy.table import (
    Decision,
    MatrixEntry,
    MatrixKind,
    StrategyTable,
    load_optimal_strategy,
)
from core.strategy.source import StrategyDocument, RuleGroup
from core.strategy.chart import ChartRow, build_chart

__all__ = [
    "Decision",
    "MatrixEntry",
    "MatrixKind",
    "StrategyTable",
    "load_optimal_strategy",
    "StrategyDocument",
    "RuleGroup",
    "ChartRow",
    "build_chart",
]

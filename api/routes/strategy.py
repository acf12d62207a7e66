"""Strategy chart API endpoints."""

from fastapi import APIRouter

from api.schemas import ChartRowResponse, StrategyChartResponse
from core.strategy import MatrixKind, StrategyTable, build_chart, load_optimal_strategy
from core.strategy.table import DEALER_RANGE

router = APIRouter()


def _chart_rows(table: StrategyTable, kind: MatrixKind) -> list[ChartRowResponse]:
    return [
        ChartRowResponse(label=row.label, entries=[e.value for e in row.entries])
        for row in build_chart(table, kind)
    ]


@router.get("/chart")
async def get_chart(hit_soft17: bool = False) -> StrategyChartResponse:
    """Get the optimal strategy chart for a soft-17 rule."""
    table = load_optimal_strategy(hit_soft17)
    low, high = DEALER_RANGE
    return StrategyChartResponse(
        hit_soft17=hit_soft17,
        dealer=list(range(low, high + 1)),
        hard=_chart_rows(table, MatrixKind.HARD),
        soft=_chart_rows(table, MatrixKind.SOFT),
        pairs=_chart_rows(table, MatrixKind.PAIR),
    )

"""Pydantic schemas for API requests and responses."""

from typing import Literal

from pydantic import BaseModel


# Training schemas
class NewSessionRequest(BaseModel):
    """Request to start a training session; omitted fields use configured defaults."""

    mode: Literal["free", "systematic"] | None = None
    hit_soft17: bool | None = None


class NewSessionResponse(BaseModel):
    """A freshly created session."""

    session_id: str


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double", "split"]


class CardResponse(BaseModel):
    """Card representation."""

    rank: str
    suit: str
    value: int


class HandResponse(BaseModel):
    """Hand representation."""

    cards: list[CardResponse]
    total: int
    is_soft: bool
    is_blackjack: bool
    is_busted: bool
    is_pair: bool


class RoundResponse(BaseModel):
    """Current round."""

    player: HandResponse
    dealer: HandResponse
    running: bool
    doubled: bool
    is_split_hand: bool
    can_double: bool
    can_split: bool
    result: str | None = None
    payout: float | None = None


class TrainingStateResponse(BaseModel):
    """Training session state."""

    mode: Literal["free", "systematic"]
    hit_soft17: bool
    round: RoundResponse | None
    pending_rounds: int
    total: float
    remaining: int | None
    finished: bool


class ActionResponse(BaseModel):
    """Outcome of a submitted decision."""

    accepted: bool
    optimal: Literal["STAND", "HIT", "SPLIT", "DOUBLE"]
    reason: Literal["suboptimal", "cannot_double", "cannot_split"] | None
    state: TrainingStateResponse


# Strategy schemas
class ChartRowResponse(BaseModel):
    """One merged chart row."""

    label: str
    entries: list[Literal["H", "S", "SP", "Dh", "Ds"]]


class StrategyChartResponse(BaseModel):
    """Optimal strategy chart for one soft-17 rule."""

    hit_soft17: bool
    dealer: list[int]
    hard: list[ChartRowResponse]
    soft: list[ChartRowResponse]
    pairs: list[ChartRowResponse]

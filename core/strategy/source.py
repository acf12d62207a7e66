"""Strategy source documents: rule groups over player and dealer ranges."""

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.errors import FormatError

# Action codes used in strategy documents
ActionCode = Literal["H", "S", "SP", "Dh", "Ds"]


class RuleGroup(BaseModel):
    """One block of cells sharing the same action."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    player: str = Field(..., description="Player index or inclusive range, e.g. '13-16'")
    dealer: str = Field(..., description="Dealer up-card value or range, e.g. '2-6'")
    action: ActionCode


class StrategyDocument(BaseModel):
    """A complete (or overlay) strategy: rule groups for the three matrices."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    hard: list[RuleGroup]
    soft: list[RuleGroup]
    pairs: list[RuleGroup]


def parse_bounds(text: str) -> tuple[int, int]:
    """
    Parse a bounds string.

    Accepts a single non-negative integer ("9") or an inclusive
    range ("13-16").

    Returns:
        (low, high) with low == high for a single number

    Raises:
        FormatError: If the string is malformed
    """
    low_str, dash, high_str = text.partition("-")
    if "-" in high_str:
        raise FormatError(f"Found two dashes in bounds: {text!r}")
    if not low_str:
        raise FormatError(f"No lower bound given: {text!r}")
    if dash and not high_str:
        raise FormatError(f"Dash but no upper bound given: {text!r}")
    if not low_str.isdigit() or (high_str and not high_str.isdigit()):
        raise FormatError(f"Invalid bounds string: {text!r}")
    if not low_str.isascii() or not high_str.isascii():
        raise FormatError(f"Invalid bounds string: {text!r}")

    low = int(low_str)
    high = int(high_str) if dash else low
    if low > high:
        raise FormatError(f"Lower bound exceeds upper bound: {text!r}")
    return low, high


def parse_document(data: Any) -> StrategyDocument:
    """
    Validate a decoded document.

    Args:
        data: A StrategyDocument, or a mapping as decoded from JSON

    Raises:
        FormatError: If the layout does not match the document schema
    """
    if isinstance(data, StrategyDocument):
        return data
    try:
        return StrategyDocument.model_validate(data)
    except ValidationError as exc:
        raise FormatError(f"Invalid strategy document: {exc}") from exc


def read_document(source: str | bytes | Path) -> StrategyDocument:
    """
    Read a strategy document from JSON text or a file path.

    Raises:
        FormatError: If the JSON is broken or does not match the schema
    """
    if isinstance(source, Path):
        source = source.read_text(encoding="utf-8")
    try:
        data = json.loads(source)
    except json.JSONDecodeError as exc:
        raise FormatError(f"Strategy document is not valid JSON: {exc}") from exc
    return parse_document(data)

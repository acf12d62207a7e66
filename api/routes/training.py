"""Strategy training API endpoints."""

import logging
import time
from random import Random
from typing import Annotated, Any

from fastapi import APIRouter, Header, HTTPException

from api.schemas import (
    ActionRequest,
    ActionResponse,
    CardResponse,
    HandResponse,
    NewSessionRequest,
    NewSessionResponse,
    RoundResponse,
    TrainingStateResponse,
)
from api.session import (
    create_session,
    delete_session,
    extract_session_id,
    get_session,
    update_session,
)
from config import config
from core.cards import CardSupply, RandomSupply
from core.game import Round
from core.hand import Hand
from core.strategy import Decision
from core.training import TrainingMode, TrainingSession

logger = logging.getLogger(__name__)

router = APIRouter()

# Session data keys
SESSION_KEY_TRAINING = "training"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"

_DECISIONS = {
    "hit": Decision.HIT,
    "stand": Decision.STAND,
    "double": Decision.DOUBLE,
    "split": Decision.SPLIT,
}


def _resolve_session_id(token: str) -> str:
    session_id = extract_session_id(token)
    if session_id is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    return session_id


def _make_supply() -> CardSupply:
    """Card supply for a session restored from the store."""
    return RandomSupply(Random())


async def _save_training(
    session_id: str,
    training: TrainingSession,
    session_data: dict[str, Any],
) -> None:
    """Write a training session back to the session store."""
    now = int(time.time())
    session_data[SESSION_KEY_TRAINING] = training.to_dict()
    session_data[SESSION_KEY_LAST_ACTIVITY] = now
    session_data.setdefault(SESSION_KEY_CREATED_AT, now)
    await update_session(session_id, session_data)


async def _get_training(token: str) -> tuple[str, dict[str, Any], TrainingSession]:
    """
    Restore the training session behind a signed token from the store.

    Raises:
        HTTPException: 404 if the token is invalid or the session expired
    """
    session_id = _resolve_session_id(token)
    session_data = await get_session(session_id)
    if not session_data or SESSION_KEY_TRAINING not in session_data:
        raise HTTPException(status_code=404, detail="Unknown session")

    training = TrainingSession.from_dict(
        session_data[SESSION_KEY_TRAINING], _make_supply(), Random()
    )
    return session_id, session_data, training


def _hand_to_response(hand: Hand) -> HandResponse:
    """Convert a Hand to HandResponse."""
    return HandResponse(
        cards=[
            CardResponse(
                rank=str(c.rank),
                suit=str(c.suit),
                value=c.value,
            )
            for c in hand.cards
        ],
        total=hand.total,
        is_soft=hand.is_soft,
        is_blackjack=hand.is_blackjack,
        is_busted=hand.is_busted,
        is_pair=hand.is_pair,
    )


def _round_to_response(round_: Round) -> RoundResponse:
    """Convert a Round to RoundResponse."""
    running = round_.running
    return RoundResponse(
        player=_hand_to_response(round_.player),
        dealer=_hand_to_response(round_.dealer),
        running=running,
        doubled=round_.doubled,
        is_split_hand=round_.is_split_hand,
        can_double=running and round_.can_double(),
        can_split=running and round_.can_split(),
        result=None if running else round_.result.name,
        payout=None if running else round_.payout,
    )


def _state_response(training: TrainingSession) -> TrainingStateResponse:
    """Convert training state to response."""
    return TrainingStateResponse(
        mode=training.mode.value,
        hit_soft17=training.hit_soft17,
        round=_round_to_response(training.current) if training.current else None,
        pending_rounds=len(training.pending),
        total=float(training.total),
        remaining=training.remaining_count,
        finished=training.finished,
    )


@router.post("/new")
async def new_training(request: NewSessionRequest | None = None) -> NewSessionResponse:
    """Create a training session and deal its first round."""
    request = request or NewSessionRequest()
    mode = TrainingMode(request.mode or config.trainer.mode)
    hit_soft17 = (
        config.trainer.hit_soft_17 if request.hit_soft17 is None else request.hit_soft17
    )

    rng = Random()
    training = TrainingSession(
        RandomSupply(rng),
        hit_soft17,
        mode,
        copy_dealer_on_split=config.trainer.copy_dealer_on_split,
        rng=rng,
    )
    training.start_round()

    now = int(time.time())
    token = await create_session(
        {
            SESSION_KEY_TRAINING: training.to_dict(),
            SESSION_KEY_CREATED_AT: now,
            SESSION_KEY_LAST_ACTIVITY: now,
        }
    )

    logger.info("Started %s training session (hit_soft17=%s)", mode.value, hit_soft17)
    return NewSessionResponse(session_id=token)


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TrainingStateResponse:
    """Get current training state."""
    _, _, training = await _get_training(session_id)
    return _state_response(training)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> ActionResponse:
    """Submit a decision for the current round."""
    raw_id, session_data, training = await _get_training(session_id)

    outcome = training.act(_DECISIONS[request.action])

    await _save_training(raw_id, training, session_data)
    return ActionResponse(
        accepted=outcome.accepted,
        optimal=outcome.optimal.name,
        reason=outcome.reason,
        state=_state_response(training),
    )


@router.post("/next")
async def next_round(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TrainingStateResponse:
    """Move on to the next round once the current one has finished."""
    raw_id, session_data, training = await _get_training(session_id)

    training.start_round()

    await _save_training(raw_id, training, session_data)
    return _state_response(training)


@router.delete("")
async def end_training(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TrainingStateResponse:
    """End a training session and return its final state."""
    raw_id, _, training = await _get_training(session_id)

    await delete_session(raw_id)

    logger.info("Ended training session with total %s", training.total)
    return _state_response(training)

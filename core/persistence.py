"""Save and restore rounds, trainers and sessions as opaque byte blobs.

Blobs are versioned UTF-8 JSON. Card supplies and random number
generators are never stored; they are attached again on restore.
"""

import json
from random import Random
from typing import Any

from core.cards import CardSupply
from core.errors import PersistenceError
from core.game.events import EventEmitter
from core.game.round import Round, rounds_from_dict, rounds_to_dict
from core.training.session import TrainingSession
from core.training.systematic import SystematicTrainer

FORMAT_VERSION = 1


def _encode(kind: str, payload: dict[str, Any]) -> bytes:
    envelope = {"kind": kind, "version": FORMAT_VERSION, "data": payload}
    return json.dumps(envelope, separators=(",", ":")).encode("utf-8")


def _decode(blob: bytes, kind: str) -> dict[str, Any]:
    try:
        envelope = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PersistenceError(f"Corrupt {kind} blob: {exc}") from exc

    if not isinstance(envelope, dict) or envelope.get("kind") != kind:
        raise PersistenceError(f"Blob does not contain a {kind}")
    if envelope.get("version") != FORMAT_VERSION:
        raise PersistenceError(f"Unsupported {kind} format version: {envelope.get('version')!r}")
    return envelope["data"]


def dump_rounds(rounds: list[Round]) -> bytes:
    """Save rounds together; split siblings sharing a dealer hand stay shared."""
    return _encode("rounds", rounds_to_dict(rounds))


def load_rounds(
    blob: bytes,
    supply: CardSupply | None = None,
    events: EventEmitter | None = None,
) -> list[Round]:
    """Restore rounds saved by dump_rounds()."""
    data = _decode(blob, "rounds")
    try:
        return rounds_from_dict(data, supply, events)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise PersistenceError(f"Invalid rounds data: {exc}") from exc


def dump_trainer(trainer: SystematicTrainer) -> bytes:
    """Save a trainer's queue and current cell."""
    return _encode("trainer", trainer.to_dict())


def load_trainer(blob: bytes, rng: Random | None = None) -> SystematicTrainer:
    """Restore a trainer saved by dump_trainer()."""
    data = _decode(blob, "trainer")
    try:
        return SystematicTrainer.from_dict(data, rng)
    except (KeyError, TypeError, ValueError) as exc:
        raise PersistenceError(f"Invalid trainer data: {exc}") from exc


def dump_session(session: TrainingSession) -> bytes:
    """Save a whole training session."""
    return _encode("session", session.to_dict())


def load_session(
    blob: bytes,
    supply: CardSupply,
    rng: Random | None = None,
) -> TrainingSession:
    """Restore a session saved by dump_session()."""
    data = _decode(blob, "session")
    try:
        return TrainingSession.from_dict(data, supply, rng)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise PersistenceError(f"Invalid session data: {exc}") from exc

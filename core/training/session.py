"""Training session: deals rounds and judges the player's decisions."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from random import Random
from typing import Any

from core.cards import CardSupply
from core.errors import InvalidOperation
from core.game.events import EventEmitter, EventType
from core.game.round import Round, rounds_from_dict, rounds_to_dict
from core.game.state import DealerPolicy
from core.hand import Hand
from core.strategy.table import Decision, StrategyTable, load_optimal_strategy
from core.training.systematic import SystematicTrainer

logger = logging.getLogger(__name__)


class TrainingMode(Enum):
    """Where new rounds come from."""

    FREE = "free"  # Random deals from the card supply
    SYSTEMATIC = "systematic"  # Every strategy cell in turn


@dataclass(frozen=True)
class ActionOutcome:
    """Result of submitting a decision."""

    accepted: bool
    optimal: Decision
    reason: str | None = None  # "suboptimal", "cannot_double" or "cannot_split"


class TrainingSession:
    """
    One user's training session.

    Only decisions matching the optimal strategy are played; a wrong one is
    rejected and reported. In systematic mode a wrong first decision puts
    the cell back into the trainer queue. Hands created by splitting are
    stacked and played before the next deal.
    """

    def __init__(
        self,
        supply: CardSupply,
        hit_soft17: bool = False,
        mode: TrainingMode = TrainingMode.FREE,
        *,
        copy_dealer_on_split: bool = True,
        rng: Random | None = None,
        trainer: SystematicTrainer | None = None,
        events: EventEmitter | None = None,
    ) -> None:
        """
        Initialize a session without dealing yet.

        Args:
            supply: Card supply for all rounds
            hit_soft17: Whether the dealer hits soft 17
            mode: Free play or systematic training
            copy_dealer_on_split: Give split hands independent dealer hands
            rng: Random number generator for a newly created trainer
            trainer: Restored trainer to continue with (systematic mode)
            events: Emitter for round and training events
        """
        self.supply = supply
        self.hit_soft17 = hit_soft17
        self.mode = mode
        self.copy_dealer_on_split = copy_dealer_on_split
        self.events = events or EventEmitter()
        self.trainer = trainer
        if self.trainer is None and mode == TrainingMode.SYSTEMATIC:
            self.trainer = SystematicTrainer(rng)

        self.current: Round | None = None
        self.pending: list[Round] = []
        self.total = Decimal("0")
        self.wrong_answer = False
        self.finished = False
        self._strategies: dict[bool, StrategyTable] = {}

    def strategy(self, hit_soft17: bool) -> StrategyTable:
        """Return the optimal strategy for a soft-17 rule, building it once."""
        if hit_soft17 not in self._strategies:
            self._strategies[hit_soft17] = load_optimal_strategy(hit_soft17)
        return self._strategies[hit_soft17]

    @property
    def remaining_count(self) -> int | None:
        """Return the trainer's remaining cells, or None in free mode."""
        return self.trainer.remaining_count if self.trainer else None

    def start_round(self) -> Round | None:
        """
        Move on to the next round.

        Pending split hands come first. Otherwise a new round is dealt, or
        taken from the trainer in systematic mode.

        Returns:
            The new current round, or None when systematic training is complete

        Raises:
            InvalidOperation: If the current round is still running
        """
        if self.current is not None and self.current.running:
            raise InvalidOperation("Current round is still running")

        if self.pending:
            self.current = self.pending.pop()
        elif self.trainer is not None:
            if self.wrong_answer:
                self.trainer.repeat()
            self.wrong_answer = False

            round_ = self.trainer.get_next(self.supply, self.hit_soft17, self.events)
            if round_ is None:
                logger.info("Systematic training finished.")
                self.current = None
                self.finished = True
                self.events.emit_new(EventType.TRAINING_FINISHED)
                return None
            self.current = round_
        else:
            self.current = self._deal()

        self.events.emit_new(
            EventType.ROUND_STARTED,
            player=str(self.current.player),
            dealer=str(self.current.dealer),
        )
        if not self.current.running and not self.current.is_split_hand:
            self._settle(self.current)
        return self.current

    def _deal(self) -> Round:
        player = Hand([self.supply.next_card(), self.supply.next_card()])
        dealer = Hand([self.supply.next_card()])
        return Round(player, dealer, self.supply, self.hit_soft17, events=self.events)

    def act(self, decision: Decision) -> ActionOutcome:
        """
        Submit a decision for the current round.

        Raises:
            InvalidOperation: If there is no running round
        """
        round_ = self.current
        if round_ is None or not round_.running:
            raise InvalidOperation("No running round")

        optimal = self.strategy(round_.hit_soft17).decide(round_.player, round_.dealer_up_total)

        if decision == Decision.DOUBLE and not round_.can_double():
            return self._not_allowed(optimal, "cannot_double")
        if decision == Decision.SPLIT and not round_.can_split():
            return self._not_allowed(optimal, "cannot_split")

        if decision != optimal:
            if round_.is_initial():
                self.wrong_answer = True
            self.events.emit_new(
                EventType.SUBOPTIMAL_DECISION,
                chosen=decision.name,
                optimal=optimal.name,
                counted=round_.is_initial(),
            )
            return ActionOutcome(False, optimal, "suboptimal")

        if decision == Decision.HIT:
            round_.hit()
        elif decision == Decision.STAND:
            round_.stand()
        elif decision == Decision.DOUBLE:
            round_.double()
        else:
            policy = (
                DealerPolicy.INDEPENDENT if self.copy_dealer_on_split else DealerPolicy.SHARED
            )
            sibling = round_.split(policy)
            self.pending.append(sibling)
            if not sibling.running:
                self._settle(sibling)

        if not round_.running:
            self._settle(round_)
        return ActionOutcome(True, optimal)

    def _not_allowed(self, optimal: Decision, reason: str) -> ActionOutcome:
        self.events.emit_new(EventType.ACTION_NOT_ALLOWED, reason=reason)
        return ActionOutcome(False, optimal, reason)

    def _settle(self, round_: Round) -> None:
        self.total += Decimal(str(round_.payout))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict. The supply and rng are not included."""
        rounds = ([self.current] if self.current else []) + self.pending
        return {
            "mode": self.mode.value,
            "hit_soft17": self.hit_soft17,
            "copy_dealer_on_split": self.copy_dealer_on_split,
            "total": str(self.total),
            "wrong_answer": self.wrong_answer,
            "finished": self.finished,
            "has_current": self.current is not None,
            "rounds": rounds_to_dict(rounds),
            "trainer": self.trainer.to_dict() if self.trainer else None,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        supply: CardSupply,
        rng: Random | None = None,
    ) -> "TrainingSession":
        """Restore a session, attaching the given supply to every round."""
        trainer = None
        if data["trainer"] is not None:
            trainer = SystematicTrainer.from_dict(data["trainer"], rng)

        session = cls(
            supply,
            data["hit_soft17"],
            TrainingMode(data["mode"]),
            copy_dealer_on_split=data["copy_dealer_on_split"],
            rng=rng,
            trainer=trainer,
        )
        session.total = Decimal(data["total"])
        session.wrong_answer = data["wrong_answer"]
        session.finished = data["finished"]

        rounds = rounds_from_dict(data["rounds"], supply, session.events)
        if data["has_current"]:
            session.current = rounds.pop(0)
        session.pending = rounds
        return session

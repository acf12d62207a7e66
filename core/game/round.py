"""A single blackjack round, driven by a state machine."""

from typing import Any

from transitions import Machine

from core.cards import CardSupply
from core.errors import InvalidOperation
from core.game.events import EventEmitter, EventType
from core.game.state import PAYOUTS, DealerPolicy, Ending, RoundState
from core.hand import Hand


class Round:
    """
    One player hand against the dealer, from the deal to the payout.

    The outcome is reclassified after every state-affecting action, so a
    blackjack or bust ends the round the moment it appears. Result and
    payout can only be read once the round has finished.
    """

    STATES = [s.value for s in RoundState]

    TRANSITIONS = [
        {
            "trigger": "finish",
            "source": RoundState.RUNNING.value,
            "dest": RoundState.FINISHED.value,
            "after": "_on_finished",
        },
    ]

    def __init__(
        self,
        player: Hand,
        dealer: Hand,
        supply: CardSupply | None,
        hit_soft17: bool,
        *,
        is_split_hand: bool = False,
        doubled: bool = False,
        events: EventEmitter | None = None,
        state: RoundState = RoundState.RUNNING,
    ) -> None:
        """
        Start a round from already dealt hands.

        Args:
            player: The player's hand
            dealer: The dealer's hand (usually the single up-card)
            supply: Card supply for all further draws; may be attached later
            hit_soft17: Whether the dealer draws on a soft 17
            is_split_hand: Whether this hand came out of a split
            doubled: Whether the bet was already doubled
            events: Optional emitter receiving round events
            state: Initial machine state, used when restoring
        """
        self.player = player
        self.dealer = dealer
        self.hit_soft17 = hit_soft17
        self.is_split_hand = is_split_hand
        self.doubled = doubled
        self.events = events
        self._supply = supply
        self._ending = Ending.PUSH
        self._payout = 0.0

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=state.value,
            auto_transitions=False,
            model_attribute="_machine_state",
        )

        self._classify()

    @property
    def state(self) -> RoundState:
        """Get current round state as enum."""
        return RoundState(self._machine_state)  # type: ignore[attr-defined]

    @property
    def running(self) -> bool:
        """Check if the round still waits for a player decision."""
        return self.state == RoundState.RUNNING

    @property
    def result(self) -> Ending:
        """
        Return how the round ended.

        Raises:
            InvalidOperation: If the round is still running
        """
        if self.running:
            raise InvalidOperation("Round is still running")
        return self._ending

    @property
    def payout(self) -> float:
        """
        Return the payout per unit bet (doubled if the player doubled).

        Raises:
            InvalidOperation: If the round is still running
        """
        if self.running:
            raise InvalidOperation("Round is still running")
        return self._payout

    def set_card_supply(self, supply: CardSupply) -> None:
        """Attach a card supply, e.g. after restoring a saved round."""
        self._supply = supply

    def hit(self) -> None:
        """Player takes another card."""
        self._require_running()
        self._deal(self.player)
        self._emit(EventType.PLAYER_HIT, total=self.player.total)
        self._classify()

    def stand(self) -> None:
        """Player keeps the hand; the dealer plays out and the round ends."""
        self._require_running()
        self._emit(EventType.PLAYER_STAND, total=self.player.total)
        self._play_dealer()

    def double(self) -> None:
        """
        Player doubles: exactly one more card, then the dealer plays out.

        Raises:
            InvalidOperation: If the round is over or the hand has more than two cards
        """
        self._require_running()
        if not self.player.can_double():
            raise InvalidOperation("Player can not double")

        self.doubled = True
        self._deal(self.player)
        self._emit(EventType.PLAYER_DOUBLE, total=self.player.total)
        self._classify()

        # A bust on the double card ends the round without dealer play
        if self.running:
            self._play_dealer()

    def split(self, dealer_policy: DealerPolicy) -> "Round":
        """
        Split a pair into this round and a new sibling round.

        Both hands are marked as split hands and each immediately receives
        a second card.

        Args:
            dealer_policy: Whether the sibling shares or copies the dealer hand

        Returns:
            The sibling round playing the second card

        Raises:
            InvalidOperation: If the round is over, the hand is not a pair
                or no card supply is attached
        """
        self._require_running()
        if not isinstance(dealer_policy, DealerPolicy):
            raise TypeError(f"dealer_policy must be a DealerPolicy, got {dealer_policy!r}")
        self._require_supply()

        sibling_hand = self.player.split()
        if dealer_policy is DealerPolicy.SHARED:
            sibling_dealer = self.dealer
        else:
            sibling_dealer = self.dealer.copy()

        sibling = Round(
            sibling_hand,
            sibling_dealer,
            self._supply,
            self.hit_soft17,
            is_split_hand=True,
            events=self.events,
        )
        self.is_split_hand = True
        self._emit(EventType.PLAYER_SPLIT, pair_value=sibling_hand.total)

        self._deal(self.player)
        self._classify()
        sibling._deal(sibling.player)
        sibling._classify()

        return sibling

    def can_double(self) -> bool:
        """
        Check whether the player may double now.

        Raises:
            InvalidOperation: If the round is over
        """
        self._require_running()
        return self.player.can_double()

    def can_split(self) -> bool:
        """
        Check whether the player may split now.

        Raises:
            InvalidOperation: If the round is over
        """
        self._require_running()
        return self.player.is_pair

    def is_initial(self) -> bool:
        """Check if the player has not moved yet (not split, still two cards)."""
        return not self.is_split_hand and len(self.player) == 2

    @property
    def dealer_up_total(self) -> int:
        """Return the value of the dealer's first card (Ace = 11)."""
        return self.dealer.cards[0].value

    def _require_running(self) -> None:
        if not self.running:
            raise InvalidOperation("Round is already finished")

    def _require_supply(self) -> None:
        if self._supply is None:
            raise InvalidOperation("No card supply attached")

    def _deal(self, hand: Hand) -> None:
        """Draw one card from the supply into a hand."""
        self._require_supply()
        card = self._supply.next_card()
        hand.add(card)
        self._emit(
            EventType.CARD_DEALT,
            card=str(card),
            hand="dealer" if hand is self.dealer else "player",
            total=hand.total,
        )

    def _play_dealer(self) -> None:
        """Dealer draws to 17 (and on soft 17 under H17), then the round ends."""
        while self._dealer_should_hit():
            self._deal(self.dealer)
            self._emit(EventType.DEALER_HITS, total=self.dealer.total)
        self._classify(final=True)

    def _dealer_should_hit(self) -> bool:
        total = self.dealer.total
        if total < 17:
            return True
        return total == 17 and self.dealer.is_soft and self.hit_soft17

    def _classify(self, final: bool = False) -> None:
        """
        Recompute the outcome from the current hands.

        Busts and blackjacks end the round immediately; a plain total
        comparison only ends it when `final` is set (after dealer play).
        """
        player_bj = not self.is_split_hand and self.player.is_blackjack
        dealer_bj = self.dealer.is_blackjack

        terminal = True
        if player_bj and dealer_bj:
            ending = Ending.PUSH
        elif self.player.total > 21:
            ending = Ending.PLAYER_BUSTED
        elif player_bj:
            ending = Ending.PLAYER_BLACKJACK
        elif self.dealer.total > 21:
            ending = Ending.DEALER_BUSTED
        elif dealer_bj:
            ending = Ending.DEALER_BLACKJACK
        else:
            terminal = final
            if self.player.total == self.dealer.total:
                ending = Ending.PUSH
            elif self.player.total > self.dealer.total:
                ending = Ending.PLAYER_WON
            else:
                ending = Ending.DEALER_WON

        payout = PAYOUTS[ending]
        if self.doubled:
            payout *= 2

        self._ending = ending
        self._payout = payout

        if terminal and self.running:
            self.finish()  # type: ignore[attr-defined]

    def _on_finished(self) -> None:
        self._emit(
            EventType.ROUND_ENDED,
            result=self._ending.name,
            payout=self._payout,
            player_total=self.player.total,
            dealer_total=self.dealer.total,
        )

    def _emit(self, event_type: EventType, **data: Any) -> None:
        if self.events is not None:
            self.events.emit_new(event_type, **data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict. The card supply is not included."""
        return {
            "player": self.player.to_dict(),
            "dealer": self.dealer.to_dict(),
            "hit_soft17": self.hit_soft17,
            "doubled": self.doubled,
            "is_split_hand": self.is_split_hand,
            "state": self.state.value,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        supply: CardSupply | None = None,
        *,
        dealer: Hand | None = None,
        events: EventEmitter | None = None,
    ) -> "Round":
        """
        Restore a round from a dict produced by to_dict().

        Args:
            data: Serialized round
            supply: Card supply to attach (can also be set later)
            dealer: Dealer hand instance to use instead of the serialized one,
                so restored split siblings can share it again
            events: Optional emitter for the restored round
        """
        return cls(
            Hand.from_dict(data["player"]),
            dealer if dealer is not None else Hand.from_dict(data["dealer"]),
            supply,
            data["hit_soft17"],
            is_split_hand=data["is_split_hand"],
            doubled=data["doubled"],
            events=events,
            state=RoundState(data["state"]),
        )

    def __repr__(self) -> str:
        return (
            f"Round(player={self.player!r}, dealer={self.dealer!r}, "
            f"state={self.state.name})"
        )


def rounds_to_dict(rounds: list[Round]) -> dict[str, Any]:
    """
    Serialize rounds together, keeping track of shared dealer hands.

    Each distinct dealer hand is stored once and referenced by index.
    """
    dealers: list[dict[str, Any]] = []
    index_of: dict[int, int] = {}
    encoded: list[dict[str, Any]] = []

    for round_ in rounds:
        key = id(round_.dealer)
        if key not in index_of:
            index_of[key] = len(dealers)
            dealers.append(round_.dealer.to_dict())
        data = round_.to_dict()
        del data["dealer"]
        data["dealer_ref"] = index_of[key]
        encoded.append(data)

    return {"dealers": dealers, "rounds": encoded}


def rounds_from_dict(
    data: dict[str, Any],
    supply: CardSupply | None = None,
    events: EventEmitter | None = None,
) -> list[Round]:
    """Restore rounds written by rounds_to_dict(), re-sharing dealer hands."""
    dealers = [Hand.from_dict(d) for d in data["dealers"]]
    return [
        Round.from_dict(r, supply, dealer=dealers[r["dealer_ref"]], events=events)
        for r in data["rounds"]
    ]

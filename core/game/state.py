"""Round states and endings."""

from enum import Enum, auto


class RoundState(Enum):
    """
    Round state machine states.

    Flow: RUNNING → FINISHED
    """

    # Waiting for the player's next decision
    RUNNING = "running"

    # Result and payout are final
    FINISHED = "finished"

    def __str__(self) -> str:
        return self.name.title()


class Ending(Enum):
    """Possible round outcomes."""

    PLAYER_BLACKJACK = auto()
    PLAYER_BUSTED = auto()
    PLAYER_WON = auto()  # Just higher total
    PUSH = auto()
    DEALER_BLACKJACK = auto()
    DEALER_BUSTED = auto()
    DEALER_WON = auto()  # Just higher total

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


# Payout factor per unit bet, before doubling
PAYOUTS: dict[Ending, float] = {
    Ending.PLAYER_BLACKJACK: 1.5,
    Ending.PLAYER_BUSTED: -1.0,
    Ending.PLAYER_WON: 1.0,
    Ending.PUSH: 0.0,
    Ending.DEALER_BLACKJACK: -1.0,
    Ending.DEALER_BUSTED: 1.0,
    Ending.DEALER_WON: -1.0,
}


class DealerPolicy(Enum):
    """
    How a split treats the dealer's hand.

    SHARED: parent and sibling round reference the same dealer hand, so
    both see identical dealer draws. The hand lives as long as the
    longest-lived of the two rounds; either may append cards to it, and
    each round reconciles its own total and terminal state.

    INDEPENDENT: the sibling gets a copy taken at split time, so each
    round's dealer plays out separately.
    """

    SHARED = auto()
    INDEPENDENT = auto()

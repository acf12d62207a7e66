"""Tests for the round state machine."""

import pytest

from core.errors import InvalidOperation
from core.game import DealerPolicy, Ending, EventEmitter, EventType, Round, RoundState
from core.game.round import rounds_from_dict, rounds_to_dict


class TestRoundFlow:
    """Tests for dealing, standing and dealer play."""

    def test_starts_running(self, hand_of, stacked):
        """Test that a plain deal waits for the player."""
        round_ = Round(hand_of("T♠ 6♥"), hand_of("9♣"), stacked(""), False)
        assert round_.state == RoundState.RUNNING
        assert round_.running
        assert round_.is_initial()

    def test_result_unavailable_while_running(self, hand_of, stacked):
        """Test that result and payout are only known once finished."""
        round_ = Round(hand_of("T♠ 6♥"), hand_of("9♣"), stacked(""), False)
        with pytest.raises(InvalidOperation):
            round_.result
        with pytest.raises(InvalidOperation):
            round_.payout

    def test_stand_dealer_draws_to_17(self, hand_of, stacked):
        """Test the dealer drawing until reaching 17."""
        round_ = Round(hand_of("T♠ 8♥"), hand_of("5♣"), stacked("2♦ 3♠ 7♥"), False)
        round_.stand()
        assert round_.dealer.total == 17
        assert len(round_.dealer) == 4
        assert round_.result == Ending.PLAYER_WON
        assert round_.payout == 1.0

    def test_dealer_wins_higher_total(self, hand_of, stacked):
        """Test a plain loss on totals."""
        round_ = Round(hand_of("T♠ 6♥"), hand_of("T♣"), stacked("7♦"), False)
        round_.stand()
        assert round_.result == Ending.DEALER_WON
        assert round_.payout == -1.0

    def test_push(self, hand_of, stacked):
        """Test equal totals."""
        round_ = Round(hand_of("T♠ 8♥"), hand_of("T♣"), stacked("8♦"), False)
        round_.stand()
        assert round_.result == Ending.PUSH
        assert round_.payout == 0.0

    def test_dealer_busts(self, hand_of, stacked):
        """Test the dealer going over 21."""
        round_ = Round(hand_of("T♠ 2♥"), hand_of("6♣"), stacked("T♦ 9♠"), False)
        round_.stand()
        assert round_.dealer.total == 25
        assert round_.result == Ending.DEALER_BUSTED
        assert round_.payout == 1.0

    def test_dealer_blackjack_after_stand(self, hand_of, stacked):
        """Test the dealer completing a blackjack with the hole card."""
        round_ = Round(hand_of("T♠ 9♥"), hand_of("A♣"), stacked("K♦"), False)
        round_.stand()
        assert round_.result == Ending.DEALER_BLACKJACK
        assert round_.payout == -1.0

    def test_dealer_stands_on_soft_17(self, hand_of, stacked):
        """Test that the dealer keeps soft 17 when standing on it."""
        round_ = Round(hand_of("T♠ 8♥"), hand_of("A♣"), stacked("6♦ 2♠"), False)
        round_.stand()
        assert round_.dealer.total == 17
        assert round_.result == Ending.PLAYER_WON

    def test_dealer_hits_soft_17(self, hand_of, stacked):
        """Test that the dealer draws on soft 17 when hitting it."""
        round_ = Round(hand_of("T♠ 8♥"), hand_of("A♣"), stacked("6♦ 2♠"), True)
        round_.stand()
        assert round_.dealer.total == 19
        assert round_.result == Ending.DEALER_WON

    def test_dealer_stands_on_hard_17(self, hand_of, stacked):
        """Test that hard 17 never draws, even when hitting soft 17."""
        round_ = Round(hand_of("T♠ 8♥"), hand_of("T♣"), stacked("7♦ 2♠"), True)
        round_.stand()
        assert round_.dealer.total == 17
        assert len(round_.dealer) == 2


class TestPlayerActions:
    """Tests for hit and double."""

    def test_hit(self, hand_of, stacked):
        """Test taking a card without busting."""
        round_ = Round(hand_of("T♠ 2♥"), hand_of("7♣"), stacked("4♦"), False)
        round_.hit()
        assert round_.player.total == 16
        assert round_.running
        assert not round_.is_initial()

    def test_hit_bust_ends_round(self, hand_of, stacked):
        """Test that a bust ends the round before the dealer plays."""
        round_ = Round(hand_of("T♠ 6♥"), hand_of("7♣"), stacked("K♦"), False)
        round_.hit()
        assert not round_.running
        assert round_.result == Ending.PLAYER_BUSTED
        assert round_.payout == -1.0
        assert len(round_.dealer) == 1

    def test_double(self, hand_of, stacked):
        """Test doubling: one card, dealer plays, payout doubled."""
        round_ = Round(hand_of("5♠ 6♥"), hand_of("6♣"), stacked("T♦ T♥ 8♣"), False)
        round_.double()
        assert round_.doubled
        assert len(round_.player) == 3
        assert round_.player.total == 21
        assert round_.result == Ending.DEALER_BUSTED
        assert round_.payout == 2.0

    def test_double_bust_skips_dealer(self, hand_of, stacked):
        """Test that busting on the double card ends without dealer play."""
        round_ = Round(hand_of("T♠ 2♥"), hand_of("6♣"), stacked("K♦"), False)
        round_.double()
        assert round_.result == Ending.PLAYER_BUSTED
        assert round_.payout == -2.0
        assert len(round_.dealer) == 1

    def test_double_after_hit_rejected(self, hand_of, stacked):
        """Test that only two-card hands may double."""
        round_ = Round(hand_of("2♠ 3♥"), hand_of("6♣"), stacked("2♦"), False)
        round_.hit()
        assert not round_.can_double()
        with pytest.raises(InvalidOperation):
            round_.double()

    def test_actions_after_finish_rejected(self, hand_of, stacked):
        """Test that a finished round takes no more actions."""
        round_ = Round(hand_of("T♠ 6♥"), hand_of("7♣"), stacked("K♦"), False)
        round_.hit()
        for action in (round_.hit, round_.stand, round_.double, round_.can_double):
            with pytest.raises(InvalidOperation):
                action()
        with pytest.raises(InvalidOperation):
            round_.split(DealerPolicy.SHARED)

    def test_no_supply_attached(self, hand_of, stacked):
        """Test drawing without a supply, then attaching one."""
        round_ = Round(hand_of("T♠ 2♥"), hand_of("7♣"), None, False)
        with pytest.raises(InvalidOperation):
            round_.hit()

        round_.set_card_supply(stacked("3♦"))
        round_.hit()
        assert round_.player.total == 15


class TestBlackjack:
    """Tests for blackjacks at the deal."""

    def test_player_blackjack_at_construction(self, blackjack_hand, hand_of, stacked):
        """Test that a natural ends the round immediately."""
        round_ = Round(blackjack_hand, hand_of("T♣"), stacked(""), False)
        assert not round_.running
        assert round_.result == Ending.PLAYER_BLACKJACK
        assert round_.payout == 1.5

    def test_both_blackjack_push(self, blackjack_hand, hand_of, stacked):
        """Test that two naturals push."""
        round_ = Round(blackjack_hand, hand_of("A♣ Q♦"), stacked(""), False)
        assert round_.result == Ending.PUSH
        assert round_.payout == 0.0


class TestSplit:
    """Tests for splitting pairs."""

    def test_split_shared_dealer(self, pair_8s_hand, hand_of, stacked):
        """Test a split where both hands play against one dealer hand."""
        round_ = Round(pair_8s_hand, hand_of("6♣"), stacked("3♠ 2♥"), False)
        sibling = round_.split(DealerPolicy.SHARED)

        assert round_.player.total == 11
        assert sibling.player.total == 10
        assert round_.is_split_hand and sibling.is_split_hand
        assert sibling.dealer is round_.dealer
        assert not round_.is_initial()

    def test_split_independent_dealer(self, pair_8s_hand, hand_of, stacked):
        """Test a split where the sibling gets its own dealer copy."""
        round_ = Round(pair_8s_hand, hand_of("6♣"), stacked("3♠ 2♥"), False)
        sibling = round_.split(DealerPolicy.INDEPENDENT)

        assert sibling.dealer is not round_.dealer
        assert sibling.dealer.cards == round_.dealer.cards

    def test_shared_dealer_plays_once(self, pair_8s_hand, hand_of, stacked):
        """Test that the second hand sees the dealer cards the first one drew."""
        supply = stacked("T♠ 9♥ T♦ 8♣")
        round_ = Round(pair_8s_hand, hand_of("6♣"), supply, False)
        sibling = round_.split(DealerPolicy.SHARED)

        round_.stand()
        assert round_.dealer.total == 24
        assert round_.result == Ending.DEALER_BUSTED

        sibling.stand()
        assert sibling.result == Ending.DEALER_BUSTED
        assert len(sibling.dealer) == 3

    def test_split_hand_21_is_not_blackjack(self, hand_of, stacked):
        """Test that ace plus ten after a split is a plain 21."""
        round_ = Round(hand_of("A♠ A♥"), hand_of("6♣"), stacked("K♠ 9♥ T♦ 5♣"), False)
        sibling = round_.split(DealerPolicy.INDEPENDENT)

        assert round_.player.total == 21
        assert round_.running
        assert sibling.player.total == 20

        round_.stand()
        assert round_.result == Ending.PUSH
        assert round_.payout == 0.0

    def test_split_non_pair_rejected(self, hard_16_hand, hand_of, stacked):
        """Test that only pairs can be split."""
        round_ = Round(hard_16_hand, hand_of("6♣"), stacked(""), False)
        assert not round_.can_split()
        with pytest.raises(InvalidOperation):
            round_.split(DealerPolicy.SHARED)

    def test_split_requires_policy(self, pair_8s_hand, hand_of, stacked):
        """Test that the dealer policy must be given explicitly."""
        round_ = Round(pair_8s_hand, hand_of("6♣"), stacked("3♠ 2♥"), False)
        with pytest.raises(TypeError):
            round_.split(True)

    def test_split_without_supply_keeps_hand(self, pair_8s_hand, hand_of, stacked):
        """Test that a restored round without a supply refuses to split."""
        round_ = Round(pair_8s_hand, hand_of("6♣"), stacked(""), False)
        (restored,) = rounds_from_dict(rounds_to_dict([round_]))

        with pytest.raises(InvalidOperation):
            restored.split(DealerPolicy.SHARED)
        assert len(restored.player) == 2
        assert restored.player.is_pair
        assert not restored.is_split_hand


class TestEvents:
    """Tests for emitted round events."""

    def test_round_ended_once(self, hand_of, stacked, events):
        """Test the end of a round is announced exactly once."""
        round_ = Round(
            hand_of("T♠ 6♥"), hand_of("T♣"), stacked("7♦"), False, events=events
        )
        round_.stand()

        ended = events.of_type(EventType.ROUND_ENDED)
        assert len(ended) == 1
        assert ended[0].data["result"] == "DEALER_WON"

    def test_card_events(self, hand_of, stacked, events):
        """Test that every drawn card is reported."""
        round_ = Round(
            hand_of("T♠ 2♥"), hand_of("5♣"), stacked("3♦ T♠ 4♥"), False, events=events
        )
        round_.hit()
        round_.stand()

        dealt = events.of_type(EventType.CARD_DEALT)
        assert [e.data["hand"] for e in dealt] == ["player", "dealer", "dealer"]
        assert len(events.of_type(EventType.DEALER_HITS)) == 2


class TestEventEmitter:
    """Tests for event subscriptions."""

    def test_typed_and_catch_all_handlers(self, events):
        """Test that handlers only see the events they subscribed to."""
        typed, everything = [], []
        events.subscribe(typed.append, EventType.PLAYER_HIT)
        events.subscribe(everything.append)

        events.emit_new(EventType.PLAYER_HIT, total=15)
        events.emit_new(EventType.PLAYER_STAND, total=15)

        assert [e.event_type for e in typed] == [EventType.PLAYER_HIT]
        assert len(everything) == 2

    def test_unsubscribe(self, events):
        """Test that a removed handler is no longer called."""
        seen = []
        events.subscribe(seen.append, EventType.ROUND_ENDED)
        events.unsubscribe(seen.append, EventType.ROUND_ENDED)

        events.emit_new(EventType.ROUND_ENDED)
        assert seen == []
        assert len(events.history) == 1

    def test_history_is_capped(self):
        """Test that only the most recent events are kept."""
        events = EventEmitter(max_history=3)
        for total in range(5):
            events.emit_new(EventType.PLAYER_HIT, total=total)

        assert [e.data["total"] for e in events.history] == [2, 3, 4]
        assert len(events.of_type(EventType.PLAYER_HIT)) == 3

    def test_clear_history(self, events):
        """Test clearing recorded events."""
        events.emit_new(EventType.CARD_DEALT)
        events.clear_history()
        assert events.history == []


class TestRoundSerialization:
    """Tests for saving and restoring rounds."""

    def test_round_dict(self, hand_of, stacked):
        """Test restoring a running round and continuing to play."""
        round_ = Round(hand_of("T♠ 2♥"), hand_of("7♣"), None, True)
        restored = Round.from_dict(round_.to_dict(), stacked("4♦"))

        assert restored.running
        assert restored.hit_soft17
        restored.hit()
        assert restored.player.total == 16

    def test_finished_round_keeps_result(self, hand_of, stacked):
        """Test that a finished round restores its outcome."""
        round_ = Round(hand_of("5♠ 6♥"), hand_of("T♣"), stacked("T♦ 8♥"), False)
        round_.double()
        restored = Round.from_dict(round_.to_dict())

        assert restored.state == RoundState.FINISHED
        assert restored.result == Ending.PLAYER_WON
        assert restored.payout == 2.0

    def test_shared_dealer_survives(self, pair_8s_hand, hand_of, stacked):
        """Test that split siblings share the dealer hand again after restoring."""
        round_ = Round(pair_8s_hand, hand_of("6♣"), stacked("3♠ 2♥"), False)
        sibling = round_.split(DealerPolicy.SHARED)

        restored = rounds_from_dict(rounds_to_dict([round_, sibling]))
        assert restored[0].dealer is restored[1].dealer
        assert restored[0].player.cards == round_.player.cards

    def test_independent_dealers_stay_apart(self, pair_8s_hand, hand_of, stacked):
        """Test that copied dealer hands stay separate after restoring."""
        round_ = Round(pair_8s_hand, hand_of("6♣"), stacked("3♠ 2♥"), False)
        sibling = round_.split(DealerPolicy.INDEPENDENT)

        data = rounds_to_dict([round_, sibling])
        assert len(data["dealers"]) == 2
        restored = rounds_from_dict(data)
        assert restored[0].dealer is not restored[1].dealer

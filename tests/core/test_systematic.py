"""Tests for the systematic trainer queue."""

import pytest
from random import Random

from core.cards import RandomSupply
from core.errors import InvalidOperation
from core.strategy import MatrixKind
from core.training import CellIndex, SystematicTrainer, all_cells


def _trainer_with(cells, rng=None):
    return SystematicTrainer.from_dict(
        {"queue": [c.to_dict() for c in cells], "current": None},
        rng or Random(0),
    )


class TestQueue:
    """Tests for the queue of cells."""

    def test_all_cells_count(self):
        """Test 17 hard rows, 9 soft rows and 10 pair rows of 10 columns each."""
        cells = all_cells()
        assert len(cells) == 170 + 90 + 100
        assert len(set(cells)) == len(cells)

    def test_new_trainer_holds_every_cell(self, rng):
        """Test that a new queue is a permutation of all cells."""
        trainer = SystematicTrainer(rng)
        assert trainer.remaining_count == 360
        assert sorted(trainer.queue, key=str) == sorted(all_cells(), key=str)

    def test_queue_is_shuffled(self):
        """Test that the queue does not come in table order."""
        trainer = SystematicTrainer(Random(42))
        assert list(trainer.queue) != all_cells()

    def test_get_next_pops_head(self, rng):
        """Test that rounds are handed out from the head of the queue."""
        trainer = SystematicTrainer(rng)
        head = trainer.queue[0]

        round_ = trainer.get_next(RandomSupply(rng), False)
        assert round_ is not None
        assert trainer.current == head
        assert trainer.remaining_count == 359

    def test_get_next_empty(self, rng):
        """Test that an empty queue yields no round."""
        trainer = _trainer_with([])
        assert trainer.get_next(RandomSupply(rng), False) is None

    def test_repeat_without_current(self):
        """Test that nothing can be repeated before the first round."""
        trainer = SystematicTrainer(Random(1))
        with pytest.raises(InvalidOperation):
            trainer.repeat()

    def test_repeat_requeues_behind_head(self, rng):
        """Test that a repeated cell is never handed out next."""
        cells = [
            CellIndex(MatrixKind.HARD, 16, 10),
            CellIndex(MatrixKind.HARD, 12, 4),
            CellIndex(MatrixKind.SOFT, 18, 4),
        ]
        for seed in range(20):
            trainer = _trainer_with(cells, Random(seed))
            trainer.get_next(RandomSupply(rng), False)
            trainer.repeat()

            assert trainer.remaining_count == 3
            assert trainer.queue[0] == cells[1]
            assert cells[0] in trainer.queue[1:]

    def test_repeat_last_cell(self, rng):
        """Test requeueing when nothing else is left."""
        cell = CellIndex(MatrixKind.PAIR, 8, 10)
        trainer = _trainer_with([cell])
        trainer.get_next(RandomSupply(rng), False)
        trainer.repeat()

        assert trainer.queue == (cell,)
        round_ = trainer.get_next(RandomSupply(rng), False)
        assert round_.player.pair_value == 8

    def test_dict_round_trip(self, rng):
        """Test restoring queue and current cell."""
        trainer = SystematicTrainer(rng)
        trainer.get_next(RandomSupply(rng), False)

        restored = SystematicTrainer.from_dict(trainer.to_dict())
        assert restored.queue == trainer.queue
        assert restored.current == trainer.current


class TestConstructRound:
    """Tests for dealing rounds that land on a cell."""

    @pytest.mark.parametrize("cell", all_cells(), ids=str)
    def test_lands_on_cell(self, cell):
        """Test that the dealt hands map to the requested cell."""
        rng = Random(str(cell))
        trainer = SystematicTrainer(rng)
        round_ = trainer.construct_round(cell, RandomSupply(rng), False)
        player = round_.player

        assert len(player) == 2
        assert len(round_.dealer) == 1
        assert round_.dealer_up_total == cell.dealer

        if cell.kind == MatrixKind.PAIR:
            assert player.is_pair
            assert player.pair_value == cell.player
        elif cell.kind == MatrixKind.SOFT:
            assert player.is_soft
            assert not player.is_pair
            assert player.total == cell.player
        elif cell.player == 20:
            assert player.pair_value == 10
        elif cell.player == 21:
            assert player.is_blackjack
        else:
            assert player.is_hard
            assert not player.is_pair
            assert player.total == cell.player

    def test_blackjack_cells_finish_at_deal(self, rng):
        """Test that 21 cells are dealt as a finished blackjack."""
        trainer = SystematicTrainer(rng)
        for kind in (MatrixKind.HARD, MatrixKind.SOFT):
            round_ = trainer.construct_round(CellIndex(kind, 21, 7), RandomSupply(rng), False)
            assert not round_.running

    def test_hit_soft17_passed_on(self, rng):
        """Test that the round carries the soft-17 rule."""
        trainer = SystematicTrainer(rng)
        round_ = trainer.construct_round(
            CellIndex(MatrixKind.HARD, 16, 10), RandomSupply(rng), True
        )
        assert round_.hit_soft17

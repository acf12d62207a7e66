"""Strategy training: systematic cell drilling and training sessions."""

from core.training.systematic import CellIndex, SystematicTrainer, all_cells
from core.training.session import ActionOutcome, TrainingMode, TrainingSession

__all__ = [
    "CellIndex",
    "SystematicTrainer",
    "all_cells",
    "ActionOutcome",
    "TrainingMode",
    "TrainingSession",
]

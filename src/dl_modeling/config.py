"""Training configuration."""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------


@dataclass
class TrainingConfig:
    """Configuration class for model training parameters.

    Args:
        epochs: Number of training epochs.
        batch_size: Size of training batches.
        validation_rate: Share of the training data held out for validation,
            ``0.0`` disables validation.
        shuffle: Shuffle the training data before every epoch.
        seed: Seed of the shuffling and of the validation split.
        verbose: Log per-epoch progress.
        eval_batch_size: Batch size of evaluation and prediction, defaults
            to ``batch_size``.
    """
    epochs: int = 5
    batch_size: int = 32
    validation_rate: float = 0.0
    shuffle: bool = True
    seed: Optional[int] = 12
    verbose: bool = True
    eval_batch_size: Optional[int] = None

    def __post_init__(self):
        if self.epochs <= 0:
            raise ValueError(f"epochs should be positive, received: epochs={self.epochs}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size should be positive, received: batch_size={self.batch_size}")
        if not 0.0 <= self.validation_rate < 1.0:
            raise ValueError(
                f"validation_rate should be in [0, 1), received: validation_rate={self.validation_rate}"
            )
        if self.eval_batch_size is None:
            self.eval_batch_size = self.batch_size

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "TrainingConfig":
        """Build a config from a dictionary, unknown keys are ignored with a warning."""
        if not isinstance(config, dict):
            raise ValueError("config must be a dictionary")
        known = {f.name for f in fields(cls)}
        for key in config:
            if key not in known:
                logger.warning(f"Ignoring unknown training config key [{key}]")
        return cls(**{k: v for k, v in config.items() if k in known})

# ---------------------------------------------------------------------

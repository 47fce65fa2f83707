"""
Training callbacks.

A callback receives lifecycle events from
:class:`~dl_modeling.models.model.GraphTrainableModel` during ``fit``,
``evaluate`` and ``predict``. Log dictionaries hold the current ``loss`` and
metric value, prefixed with ``val_`` for validation results.
"""

import numpy as np
from typing import Any, Dict, List, Optional

from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------


class Callback:
    """Base class of callbacks, every hook is a no-op."""

    def __init__(self):
        self.model = None

    def set_model(self, model) -> None:
        self.model = model

    def on_train_begin(self, logs: Optional[Dict[str, float]] = None) -> None:
        pass

    def on_train_end(self, logs: Optional[Dict[str, float]] = None) -> None:
        pass

    def on_epoch_begin(self, epoch: int, logs: Optional[Dict[str, float]] = None) -> None:
        pass

    def on_epoch_end(self, epoch: int, logs: Optional[Dict[str, float]] = None) -> None:
        pass

    def on_train_batch_begin(self, batch: int, logs: Optional[Dict[str, float]] = None) -> None:
        pass

    def on_train_batch_end(self, batch: int, logs: Optional[Dict[str, float]] = None) -> None:
        pass

    def on_test_begin(self, logs: Optional[Dict[str, float]] = None) -> None:
        pass

    def on_test_end(self, logs: Optional[Dict[str, float]] = None) -> None:
        pass

    def on_test_batch_end(self, batch: int, logs: Optional[Dict[str, float]] = None) -> None:
        pass

    def on_predict_batch_end(self, batch: int, logs: Optional[Dict[str, Any]] = None) -> None:
        pass

# ---------------------------------------------------------------------


class History(Callback):
    """Records the logs of every epoch and every training batch.

    Attributes:
        epochs: Index of every finished epoch.
        history: Per-epoch values keyed by log name, e.g. ``history["loss"]``.
        batch_history: Per-batch training values keyed by log name.
    """

    def __init__(self):
        super().__init__()
        self.epochs: List[int] = []
        self.history: Dict[str, List[float]] = {}
        self.batch_history: Dict[str, List[float]] = {}

    def on_train_begin(self, logs=None):
        self.epochs = []
        self.history = {}
        self.batch_history = {}

    def on_train_batch_end(self, batch, logs=None):
        for key, value in (logs or {}).items():
            self.batch_history.setdefault(key, []).append(float(value))

    def on_epoch_end(self, epoch, logs=None):
        self.epochs.append(epoch)
        for key, value in (logs or {}).items():
            self.history.setdefault(key, []).append(float(value))

    def last_epoch(self) -> Dict[str, float]:
        """Logs of the last finished epoch, empty before training."""
        return {key: values[-1] for key, values in self.history.items() if values}

    def __getitem__(self, key: str) -> List[float]:
        return self.history[key]

    def __len__(self) -> int:
        return len(self.epochs)

# ---------------------------------------------------------------------


class EarlyStopping(Callback):
    """Stop training when a monitored quantity has stopped improving.

    Args:
        monitor: Log name to monitor, e.g. ``"val_loss"``.
        min_delta: Minimum change counted as an improvement.
        patience: Number of epochs without improvement before stopping.
        mode: ``"min"``, ``"max"`` or ``"auto"`` (``max`` for accuracy like
            quantities, ``min`` otherwise).
        baseline: Value the monitored quantity has to beat.
        restore_best_weights: Restore the weights of the best epoch when
            stopping.
    """

    def __init__(
            self,
            monitor: str = "val_loss",
            min_delta: float = 0.0,
            patience: int = 0,
            mode: str = "auto",
            baseline: Optional[float] = None,
            restore_best_weights: bool = False):
        super().__init__()
        if patience < 0:
            raise ValueError(f"patience should be >= 0, received: patience={patience}")
        if mode not in ("auto", "min", "max"):
            raise ValueError(f"mode should be one of auto, min, max, received: mode={mode}")
        self.monitor = monitor
        self.min_delta = abs(min_delta)
        self.patience = patience
        self.baseline = baseline
        self.restore_best_weights = restore_best_weights
        if mode == "auto":
            mode = "max" if "acc" in monitor else "min"
        self.mode = mode
        self.wait = 0
        self.stopped_epoch = 0
        self.best = np.inf if mode == "min" else -np.inf
        self.best_weights = None

    def _is_improvement(self, value: float, reference: float) -> bool:
        if self.mode == "min":
            return value < reference - self.min_delta
        return value > reference + self.min_delta

    def on_train_begin(self, logs=None):
        self.wait = 0
        self.stopped_epoch = 0
        self.best = np.inf if self.mode == "min" else -np.inf
        self.best_weights = None

    def on_epoch_end(self, epoch, logs=None):
        value = (logs or {}).get(self.monitor)
        if value is None:
            logger.warning(
                f"Early stopping conditioned on [{self.monitor}] which is not available, "
                f"available logs: {list((logs or {}).keys())}"
            )
            return
        self.wait += 1
        if self._is_improvement(value, self.best):
            self.best = value
            if self.restore_best_weights:
                self.best_weights = self.model.get_weights()
            if self.baseline is None or self._is_improvement(value, self.baseline):
                self.wait = 0
            return
        if self.wait >= self.patience and epoch > 0:
            self.stopped_epoch = epoch
            self.model.stop_training = True
            logger.info(f"Epoch {epoch}: early stopping, best {self.monitor}={self.best:.5f}")
            if self.restore_best_weights and self.best_weights is not None:
                logger.info("Restoring model weights from the end of the best epoch")
                self.model.set_weights(self.best_weights)

# ---------------------------------------------------------------------

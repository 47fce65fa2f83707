"""
Loss functions.

A loss compares a batch of targets with a batch of model outputs and reduces
the per-sample values to the scalar that is differentiated during training.
Losses named ``*_WITH_LOGITS`` expect raw model outputs (logits) and know
how to turn them into probabilities, see :meth:`Loss.output_transform`.
"""

import math
import tensorflow as tf
from enum import Enum
from typing import Any, Dict, Union

from dl_modeling.constants import DEFAULT_EPSILON

# ---------------------------------------------------------------------


class Reduction(str, Enum):
    """How per-sample losses are reduced."""
    NONE = "none"
    SUM = "sum"
    SUM_OVER_BATCH_SIZE = "sum_over_batch_size"

# ---------------------------------------------------------------------


class Loss:
    """Base class of losses.

    Args:
        reduction: Reduction applied to the per-sample losses.
    """

    def __init__(self, reduction: Union[str, Reduction] = Reduction.SUM_OVER_BATCH_SIZE):
        self.reduction = Reduction(reduction)

    def per_sample(self, y_true: tf.Tensor, y_pred: tf.Tensor) -> tf.Tensor:
        raise NotImplementedError

    def output_transform(self, y_pred: tf.Tensor) -> tf.Tensor:
        """Map raw model outputs to the values predictions are reported in."""
        return y_pred

    def __call__(self, y_true, y_pred) -> tf.Tensor:
        y_pred = tf.convert_to_tensor(y_pred)
        y_true = tf.cast(y_true, y_pred.dtype)
        losses = self.per_sample(y_true, y_pred)
        if self.reduction == Reduction.NONE:
            return losses
        if self.reduction == Reduction.SUM:
            return tf.reduce_sum(losses)
        return tf.reduce_mean(losses)

    def get_config(self) -> Dict[str, Any]:
        return {"reduction": self.reduction.value}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(reduction={self.reduction.value})"

# ---------------------------------------------------------------------


class MAE(Loss):
    """``mean(abs(y_true - y_pred))``."""

    def per_sample(self, y_true, y_pred):
        return tf.reduce_mean(tf.abs(y_true - y_pred), axis=-1)


class MSE(Loss):
    """``mean(square(y_true - y_pred))``."""

    def per_sample(self, y_true, y_pred):
        return tf.reduce_mean(tf.square(y_true - y_pred), axis=-1)


class MSLE(Loss):
    """``mean(square(log(y_true + 1) - log(y_pred + 1)))``."""

    def per_sample(self, y_true, y_pred):
        first_log = tf.math.log(tf.maximum(y_pred, DEFAULT_EPSILON) + 1.0)
        second_log = tf.math.log(tf.maximum(y_true, DEFAULT_EPSILON) + 1.0)
        return tf.reduce_mean(tf.square(first_log - second_log), axis=-1)


class MAPE(Loss):
    """``100 * mean(abs((y_true - y_pred) / y_true))``."""

    def per_sample(self, y_true, y_pred):
        diff = tf.abs((y_true - y_pred) / tf.maximum(tf.abs(y_true), DEFAULT_EPSILON))
        return 100.0 * tf.reduce_mean(diff, axis=-1)


class Huber(Loss):
    """Quadratic for errors below ``delta``, linear above."""

    def __init__(self, delta: float = 1.0, reduction=Reduction.SUM_OVER_BATCH_SIZE):
        super().__init__(reduction)
        if delta <= 0.0:
            raise ValueError(f"delta should be positive, received: delta={delta}")
        self.delta = delta

    def per_sample(self, y_true, y_pred):
        error = tf.abs(y_pred - y_true)
        quadratic = 0.5 * tf.square(error)
        linear = self.delta * error - 0.5 * self.delta ** 2
        return tf.reduce_mean(tf.where(error <= self.delta, quadratic, linear), axis=-1)

    def get_config(self):
        config = super().get_config()
        config["delta"] = self.delta
        return config


class LogCosh(Loss):
    """``mean(log(cosh(y_pred - y_true)))``, computed without overflow."""

    def per_sample(self, y_true, y_pred):
        x = y_pred - y_true
        return tf.reduce_mean(x + tf.math.softplus(-2.0 * x) - math.log(2.0), axis=-1)


class Poisson(Loss):
    """``mean(y_pred - y_true * log(y_pred))``."""

    def per_sample(self, y_true, y_pred):
        return tf.reduce_mean(y_pred - y_true * tf.math.log(y_pred + DEFAULT_EPSILON), axis=-1)


def _to_signed_labels(y_true):
    # {0, 1} labels become {-1, 1}, signed labels are kept
    is_binary = tf.reduce_all(tf.logical_or(tf.equal(y_true, 0.0), tf.equal(y_true, 1.0)))
    return tf.cond(is_binary, lambda: 2.0 * y_true - 1.0, lambda: y_true)


class Hinge(Loss):
    """``mean(max(1 - y_true * y_pred, 0))`` with ``{0, 1}`` labels mapped to ``{-1, 1}``."""

    def per_sample(self, y_true, y_pred):
        y_true = _to_signed_labels(y_true)
        return tf.reduce_mean(tf.maximum(1.0 - y_true * y_pred, 0.0), axis=-1)


class SquaredHinge(Loss):
    def per_sample(self, y_true, y_pred):
        y_true = _to_signed_labels(y_true)
        return tf.reduce_mean(tf.square(tf.maximum(1.0 - y_true * y_pred, 0.0)), axis=-1)


class BinaryCrossentropy(Loss):
    """Cross entropy between binary targets and predicted probabilities."""

    def per_sample(self, y_true, y_pred):
        y_pred = tf.clip_by_value(y_pred, DEFAULT_EPSILON, 1.0 - DEFAULT_EPSILON)
        bce = y_true * tf.math.log(y_pred) + (1.0 - y_true) * tf.math.log(1.0 - y_pred)
        return -tf.reduce_mean(bce, axis=-1)


class SoftmaxCrossEntropyWithLogits(Loss):
    """Categorical cross entropy of one-hot targets and unscaled logits."""

    def per_sample(self, y_true, y_pred):
        return tf.nn.softmax_cross_entropy_with_logits(labels=y_true, logits=y_pred)

    def output_transform(self, y_pred):
        return tf.nn.softmax(y_pred)


class SigmoidCrossEntropyWithLogits(Loss):
    """Element-wise binary cross entropy of targets and unscaled logits."""

    def per_sample(self, y_true, y_pred):
        return tf.reduce_mean(
            tf.nn.sigmoid_cross_entropy_with_logits(labels=y_true, logits=y_pred), axis=-1)

    def output_transform(self, y_pred):
        return tf.math.sigmoid(y_pred)

# ---------------------------------------------------------------------


class Losses(str, Enum):
    """Catalog of losses, valued by their Keras identifier."""

    MAE = "mean_absolute_error"
    MSE = "mean_squared_error"
    MSLE = "mean_squared_logarithmic_error"
    MAPE = "mean_absolute_percentage_error"
    HUBER = "huber"
    LOG_COSH = "log_cosh"
    POISSON = "poisson"
    HINGE = "hinge"
    SQUARED_HINGE = "squared_hinge"
    BINARY_CROSSENTROPY = "binary_crossentropy"
    SOFT_MAX_CROSS_ENTROPY_WITH_LOGITS = "softmax_crossentropy_with_logits"
    SIGMOID_CROSS_ENTROPY_WITH_LOGITS = "sigmoid_crossentropy_with_logits"

    @classmethod
    def convert(cls, loss: Union[str, "Losses", Loss]) -> Loss:
        """Return the :class:`Loss` instance for an enum member or identifier."""
        if isinstance(loss, Loss):
            return loss
        key = str(loss.value if isinstance(loss, cls) else loss).strip().lower()
        key = _ALIASES.get(key, key)
        try:
            member = cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown loss: [{loss}]. Supported losses: {[m.value for m in cls]}"
            ) from None
        return _REGISTRY[member]()


_ALIASES = {
    "mae": Losses.MAE.value,
    "mse": Losses.MSE.value,
    "msle": Losses.MSLE.value,
    "mape": Losses.MAPE.value,
    "logcosh": Losses.LOG_COSH.value,
    "bce": Losses.BINARY_CROSSENTROPY.value,
}

_REGISTRY = {
    Losses.MAE: MAE,
    Losses.MSE: MSE,
    Losses.MSLE: MSLE,
    Losses.MAPE: MAPE,
    Losses.HUBER: Huber,
    Losses.LOG_COSH: LogCosh,
    Losses.POISSON: Poisson,
    Losses.HINGE: Hinge,
    Losses.SQUARED_HINGE: SquaredHinge,
    Losses.BINARY_CROSSENTROPY: BinaryCrossentropy,
    Losses.SOFT_MAX_CROSS_ENTROPY_WITH_LOGITS: SoftmaxCrossEntropyWithLogits,
    Losses.SIGMOID_CROSS_ENTROPY_WITH_LOGITS: SigmoidCrossEntropyWithLogits,
}

# ---------------------------------------------------------------------

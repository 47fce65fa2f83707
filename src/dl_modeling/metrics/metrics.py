import tensorflow as tf
from enum import Enum
from typing import Union

from dl_modeling.constants import DEFAULT_EPSILON

# ---------------------------------------------------------------------


def accuracy(y_true: tf.Tensor, y_pred: tf.Tensor) -> tf.Tensor:
    """Fraction of samples whose predicted class matches the target.

    One-hot targets are compared through ``argmax``, sparse integer targets
    directly against ``argmax(y_pred)``, single-unit outputs are thresholded
    at 0.5.
    """
    y_pred = tf.convert_to_tensor(y_pred)
    y_true = tf.convert_to_tensor(y_true)
    if y_pred.shape.rank is not None and y_pred.shape[-1] == 1:
        predicted = tf.cast(y_pred > 0.5, tf.float32)
        actual = tf.cast(tf.reshape(y_true, tf.shape(predicted)), tf.float32)
        return tf.reduce_mean(tf.cast(tf.equal(predicted, actual), tf.float32))
    predicted = tf.argmax(y_pred, axis=-1)
    if y_true.shape.rank == y_pred.shape.rank:
        actual = tf.argmax(y_true, axis=-1)
    else:
        actual = tf.cast(y_true, predicted.dtype)
    return tf.reduce_mean(tf.cast(tf.equal(predicted, actual), tf.float32))


def mean_absolute_error(y_true, y_pred):
    y_pred = tf.convert_to_tensor(y_pred)
    return tf.reduce_mean(tf.abs(tf.cast(y_true, y_pred.dtype) - y_pred))


def mean_squared_error(y_true, y_pred):
    y_pred = tf.convert_to_tensor(y_pred)
    return tf.reduce_mean(tf.square(tf.cast(y_true, y_pred.dtype) - y_pred))


def mean_squared_logarithmic_error(y_true, y_pred):
    y_pred = tf.convert_to_tensor(y_pred)
    y_true = tf.cast(y_true, y_pred.dtype)
    first_log = tf.math.log(tf.maximum(y_pred, DEFAULT_EPSILON) + 1.0)
    second_log = tf.math.log(tf.maximum(y_true, DEFAULT_EPSILON) + 1.0)
    return tf.reduce_mean(tf.square(first_log - second_log))

# ---------------------------------------------------------------------


class Metrics(str, Enum):
    """Catalog of evaluation metrics, valued by their Keras identifier."""

    ACCURACY = "accuracy"
    MAE = "mean_absolute_error"
    MSE = "mean_squared_error"
    MSLE = "mean_squared_logarithmic_error"

    @classmethod
    def from_identifier(cls, metric: Union[str, "Metrics"]) -> "Metrics":
        if isinstance(metric, cls):
            return metric
        key = str(metric).strip().lower()
        key = {"acc": "accuracy", "mae": cls.MAE.value, "mse": cls.MSE.value, "msle": cls.MSLE.value}.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown metric: [{metric}]. Supported metrics: {[m.value for m in cls]}"
            ) from None

    @classmethod
    def compute(cls, metric: Union[str, "Metrics"], y_true, y_pred) -> tf.Tensor:
        """Scalar value of ``metric`` on a batch."""
        return _FUNCTIONS[cls.from_identifier(metric)](y_true, y_pred)


_FUNCTIONS = {
    Metrics.ACCURACY: accuracy,
    Metrics.MAE: mean_absolute_error,
    Metrics.MSE: mean_squared_error,
    Metrics.MSLE: mean_squared_logarithmic_error,
}

# ---------------------------------------------------------------------

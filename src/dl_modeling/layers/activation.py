"""
Activation layers.

Parametrized activations that Keras exposes as layers rather than as
activation identifiers. :class:`PReLU` is the only one holding a variable.
"""

import tensorflow as tf
from typing import Any, Optional, Sequence

from dl_modeling.constants import ALPHA
from dl_modeling.initializers import get_initializer, serialize_initializer
from dl_modeling.regularizers import get_regularizer, serialize_regularizer
from .layer import Layer

# ---------------------------------------------------------------------


def common_relu(
        inputs: tf.Tensor,
        negative_slope: float = 0.0,
        max_value: Optional[float] = None,
        threshold: float = 0.0) -> tf.Tensor:
    """Generalized rectified linear unit.

    ```
    f(x) = max_value                         if x >= max_value
    f(x) = x                                 if threshold <= x < max_value
    f(x) = negative_slope * (x - threshold)  otherwise
    ```
    """
    if negative_slope == 0.0 and threshold == 0.0 and max_value is None:
        return tf.nn.relu(inputs)
    outputs = tf.where(inputs >= threshold, inputs, negative_slope * (inputs - threshold))
    if max_value is not None:
        outputs = tf.minimum(outputs, tf.cast(max_value, inputs.dtype))
    return outputs

# ---------------------------------------------------------------------


class ReLU(Layer):
    """Rectified linear unit with optional cap, leak and threshold.

    Args:
        max_value: Upper bound of the output, unbounded when ``None``.
        negative_slope: Slope below the threshold.
        threshold: Values below it are damped.
    """

    def __init__(
            self,
            max_value: Optional[float] = None,
            negative_slope: float = 0.0,
            threshold: float = 0.0,
            name: str = "",
            trainable: bool = True,
            **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        if max_value is not None and max_value < 0.0:
            raise ValueError(f"max_value should be >= 0.0, received: max_value={max_value}")
        if negative_slope < 0.0:
            raise ValueError(f"negative_slope should be >= 0.0, received: negative_slope={negative_slope}")
        self.max_value = None if max_value is None else float(max_value)
        self.negative_slope = float(negative_slope)
        self.threshold = float(threshold)

    def forward(self, inputs, training=False):
        return common_relu(inputs, self.negative_slope, self.max_value, self.threshold)

    def get_config(self):
        config = super().get_config()
        config.update({
            "max_value": self.max_value,
            "negative_slope": self.negative_slope,
            "threshold": self.threshold,
        })
        return config


class ThresholdedReLU(Layer):
    """Thresholded rectified linear unit.

    ```
    f(x) = x  if x > threshold
    f(x) = 0  otherwise
    ```

    Args:
        threshold: Threshold value, must be >= 0.0.
    """

    def __init__(self, threshold: float = 1.0, name: str = "", trainable: bool = True, **kwargs: Any):
        theta = kwargs.pop("theta", None)
        super().__init__(name=name, trainable=trainable, **kwargs)
        if theta is not None:
            threshold = theta
        if threshold < 0.0:
            raise ValueError(f"Threshold {threshold} should be >= 0.0.")
        self.threshold = float(threshold)

    def forward(self, inputs, training=False):
        return inputs * tf.cast(inputs > self.threshold, inputs.dtype)

    def get_config(self):
        config = super().get_config()
        config["theta"] = self.threshold
        return config

    @classmethod
    def from_config(cls, config):
        config = dict(config)
        if "theta" in config:
            config["threshold"] = config.pop("theta")
        return super().from_config(config)

    def __repr__(self):
        return f"ThresholdedReLU(theta={self.threshold})"


class LeakyReLU(Layer):
    """``x`` for ``x >= 0``, ``alpha * x`` otherwise."""

    def __init__(self, alpha: float = 0.3, name: str = "", trainable: bool = True, **kwargs: Any):
        negative_slope = kwargs.pop("negative_slope", None)
        super().__init__(name=name, trainable=trainable, **kwargs)
        if negative_slope is not None:
            alpha = negative_slope
        if alpha < 0.0:
            raise ValueError(f"alpha should be >= 0.0, received: alpha={alpha}")
        self.alpha = float(alpha)

    def forward(self, inputs, training=False):
        return tf.nn.leaky_relu(inputs, alpha=self.alpha)

    def get_config(self):
        config = super().get_config()
        config["alpha"] = self.alpha
        return config

    @classmethod
    def from_config(cls, config):
        config = dict(config)
        if "negative_slope" in config:
            config["alpha"] = config.pop("negative_slope")
        return super().from_config(config)


class ELU(Layer):
    """``x`` for ``x > 0``, ``alpha * (exp(x) - 1)`` otherwise."""

    def __init__(self, alpha: float = 1.0, name: str = "", trainable: bool = True, **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        self.alpha = float(alpha)

    def forward(self, inputs, training=False):
        if self.alpha == 1.0:
            return tf.nn.elu(inputs)
        return tf.where(inputs > 0.0, inputs, self.alpha * (tf.math.exp(inputs) - 1.0))

    def get_config(self):
        config = super().get_config()
        config["alpha"] = self.alpha
        return config


class PReLU(Layer):
    """Leaky ReLU whose slope is a trained variable.

    ``f(x) = max(0, x) + alpha * min(0, x)``

    Args:
        alpha_initializer: Initializer of the slopes.
        alpha_regularizer: Optional penalty on the slopes.
        shared_axes: Axes (1-based, batch excluded) along which the slope is shared.
    """

    def __init__(
            self,
            alpha_initializer="zeros",
            alpha_regularizer=None,
            shared_axes: Optional[Sequence[int]] = None,
            name: str = "",
            trainable: bool = True,
            **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        self.alpha_initializer = get_initializer(alpha_initializer)
        self.alpha_regularizer = get_regularizer(alpha_regularizer)
        if shared_axes is not None and not isinstance(shared_axes, (list, tuple)):
            shared_axes = [shared_axes]
        self.shared_axes = None if shared_axes is None else [int(a) for a in shared_axes]
        self.alpha = None

    def build(self, input_shape):
        param_shape = list(input_shape[1:])
        for axis in self.shared_axes or []:
            if axis < 1 or axis > len(param_shape):
                raise ValueError(f"shared axis {axis} is out of range for inputs {tuple(input_shape)}")
            param_shape[axis - 1] = 1
        if any(d is None for d in param_shape):
            raise ValueError(f"[{self.name}] needs fully defined non shared dimensions, got {tuple(input_shape)}")
        self.alpha = self.add_weight(ALPHA, param_shape, self.alpha_initializer, self.alpha_regularizer)
        super().build(input_shape)

    def forward(self, inputs, training=False):
        return tf.nn.relu(inputs) - self.alpha * tf.nn.relu(-inputs)

    def get_config(self):
        config = super().get_config()
        config.update({
            "alpha_initializer": serialize_initializer(self.alpha_initializer),
            "alpha_regularizer": None if self.alpha_regularizer is None else serialize_regularizer(
                self.alpha_regularizer),
            "alpha_constraint": None,
            "shared_axes": self.shared_axes,
        })
        return config


class Softmax(Layer):
    """Softmax along ``axis``."""

    def __init__(self, axis: int = -1, name: str = "", trainable: bool = True, **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        if isinstance(axis, (list, tuple)):
            if len(axis) != 1:
                raise ValueError(f"Softmax supports a single axis, received: axis={axis}")
            axis = axis[0]
        self.axis = int(axis)

    def forward(self, inputs, training=False):
        return tf.nn.softmax(inputs, axis=self.axis)

    def get_config(self):
        config = super().get_config()
        config["axis"] = self.axis
        return config

# ---------------------------------------------------------------------

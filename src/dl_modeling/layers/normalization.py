import tensorflow as tf
from typing import Any, Sequence, Union

from dl_modeling.constants import BETA, GAMMA, MOVING_MEAN, MOVING_VARIANCE
from dl_modeling.initializers import get_initializer, serialize_initializer
from dl_modeling.regularizers import get_regularizer, serialize_regularizer
from .layer import Layer

# ---------------------------------------------------------------------


class BatchNorm(Layer):
    """Batch normalization (Ioffe & Szegedy, 2015).

    During training the batch statistics normalize the inputs and update the
    moving mean and variance:

    ```
    moving = moving * momentum + batch_statistic * (1 - momentum)
    ```

    During inference the moving statistics are used instead.

    Args:
        axis: Features axis, the one that is not reduced.
        momentum: Momentum of the moving statistics.
        epsilon: Small float added to the variance.
        center: Whether to add the ``beta`` offset.
        scale: Whether to multiply by ``gamma``.
    """

    def __init__(
            self,
            axis: Union[int, Sequence[int]] = -1,
            momentum: float = 0.99,
            epsilon: float = 1e-3,
            center: bool = True,
            scale: bool = True,
            beta_initializer="zeros",
            gamma_initializer="ones",
            moving_mean_initializer="zeros",
            moving_variance_initializer="ones",
            beta_regularizer=None,
            gamma_regularizer=None,
            name: str = "",
            trainable: bool = True,
            **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        if isinstance(axis, (list, tuple)):
            if len(axis) != 1:
                raise ValueError(f"BatchNorm supports a single axis, received: axis={axis}")
            axis = axis[0]
        if not 0.0 <= momentum <= 1.0:
            raise ValueError(f"momentum should be in [0, 1], received: momentum={momentum}")
        if epsilon <= 0.0:
            raise ValueError(f"epsilon should be positive, received: epsilon={epsilon}")
        self.axis = int(axis)
        self.momentum = float(momentum)
        self.epsilon = float(epsilon)
        self.center = center
        self.scale = scale
        self.beta_initializer = get_initializer(beta_initializer)
        self.gamma_initializer = get_initializer(gamma_initializer)
        self.moving_mean_initializer = get_initializer(moving_mean_initializer)
        self.moving_variance_initializer = get_initializer(moving_variance_initializer)
        self.beta_regularizer = get_regularizer(beta_regularizer)
        self.gamma_regularizer = get_regularizer(gamma_regularizer)
        self.gamma = None
        self.beta = None
        self.moving_mean = None
        self.moving_variance = None

    def build(self, input_shape):
        rank = len(input_shape)
        axis = self.axis if self.axis >= 0 else rank + self.axis
        if not 0 < axis < rank:
            raise ValueError(f"Invalid axis {self.axis} for inputs of shape {tuple(input_shape)}")
        self._axis = axis
        self._reduction_axes = [i for i in range(rank) if i != axis]
        self._broadcast_shape = [1] * rank
        features = input_shape[axis]
        if features is None:
            raise ValueError(f"Axis {self.axis} of the inputs of [{self.name}] should be defined")
        self._broadcast_shape[axis] = features

        if self.scale:
            self.gamma = self.add_weight(GAMMA, (features,), self.gamma_initializer, self.gamma_regularizer)
        if self.center:
            self.beta = self.add_weight(BETA, (features,), self.beta_initializer, self.beta_regularizer)
        self.moving_mean = self.add_weight(
            MOVING_MEAN, (features,), self.moving_mean_initializer, trainable=False)
        self.moving_variance = self.add_weight(
            MOVING_VARIANCE, (features,), self.moving_variance_initializer, trainable=False)
        super().build(input_shape)

    def _broadcast(self, value):
        return None if value is None else tf.reshape(value, self._broadcast_shape)

    def forward(self, inputs, training=False):
        # frozen layers normalize with the moving statistics, as Keras does
        if training and self.trainable:
            mean, variance = tf.nn.moments(inputs, axes=self._reduction_axes)
            self.moving_mean.assign(self.moving_mean * self.momentum + mean * (1.0 - self.momentum))
            self.moving_variance.assign(
                self.moving_variance * self.momentum + variance * (1.0 - self.momentum))
        else:
            mean, variance = self.moving_mean, self.moving_variance
        return tf.nn.batch_normalization(
            inputs,
            self._broadcast(mean),
            self._broadcast(variance),
            offset=self._broadcast(self.beta),
            scale=self._broadcast(self.gamma),
            variance_epsilon=self.epsilon
        )

    def get_config(self):
        config = super().get_config()
        config.update({
            "axis": self.axis,
            "momentum": self.momentum,
            "epsilon": self.epsilon,
            "center": self.center,
            "scale": self.scale,
            "beta_initializer": serialize_initializer(self.beta_initializer),
            "gamma_initializer": serialize_initializer(self.gamma_initializer),
            "moving_mean_initializer": serialize_initializer(self.moving_mean_initializer),
            "moving_variance_initializer": serialize_initializer(self.moving_variance_initializer),
            "beta_regularizer": None if self.beta_regularizer is None else serialize_regularizer(
                self.beta_regularizer),
            "gamma_regularizer": None if self.gamma_regularizer is None else serialize_regularizer(
                self.gamma_regularizer),
            "beta_constraint": None,
            "gamma_constraint": None,
        })
        return config

# ---------------------------------------------------------------------

"""Gradient descent with momentum."""

import tensorflow as tf

from dl_modeling.constants import SLOT_MOMENTUM
from .optimizer import Optimizer, variable_name

# ---------------------------------------------------------------------


class Momentum(Optimizer):
    """Momentum optimizer.

    ```
    accumulator = momentum * accumulator + gradient
    variable -= learning_rate * accumulator
    ```

    With ``use_nesterov`` the look-ahead gradient is used instead.

    Args:
        learning_rate: Step size.
        momentum: Decay of the accumulated velocity.
        use_nesterov: Use Nesterov momentum.
        clip_gradient: Gradient clipping strategy.
    """

    def __init__(
            self,
            learning_rate: float = 0.001,
            momentum: float = 0.99,
            use_nesterov: bool = False,
            clip_gradient=None):
        super().__init__(learning_rate=learning_rate, clip_gradient=clip_gradient)
        if momentum < 0.0:
            raise ValueError(f"momentum should be >= 0, received: momentum={momentum}")
        self.momentum = float(momentum)
        self.use_nesterov = bool(use_nesterov)

    def _create_slots(self, variable):
        self.create_slot(variable, SLOT_MOMENTUM, 0.0)

    def _apply_dense(self, gradient, variable):
        accumulator = self.get_slot(variable_name(variable), SLOT_MOMENTUM)
        return tf.raw_ops.ResourceApplyMomentum(
            var=variable.handle,
            accum=accumulator.handle,
            lr=self._constant(self.learning_rate, variable),
            grad=gradient,
            momentum=self._constant(self.momentum, variable),
            use_nesterov=self.use_nesterov
        )

    def get_config(self):
        config = super().get_config()
        config.update({"momentum": self.momentum, "use_nesterov": self.use_nesterov})
        return config

# ---------------------------------------------------------------------

"""AdaDelta optimizer."""

import tensorflow as tf

from dl_modeling.constants import SLOT_ACCUMULATOR, SLOT_ACCUMULATOR_UPDATE
from .optimizer import Optimizer, variable_name

# ---------------------------------------------------------------------


class AdaDelta(Optimizer):
    """AdaDelta, step sizes adapted from a moving window of gradient updates.

    ```
    accumulator = rho * accumulator + (1 - rho) * gradient^2
    update = sqrt(accumulator_update + epsilon) / sqrt(accumulator + epsilon) * gradient
    accumulator_update = rho * accumulator_update + (1 - rho) * update^2
    variable -= learning_rate * update
    ```

    Args:
        learning_rate: Step size.
        rho: Decay rate of both accumulators.
        epsilon: Numerical stability constant.
        clip_gradient: Gradient clipping strategy.
    """

    def __init__(self, learning_rate: float = 0.1, rho: float = 0.95, epsilon: float = 1e-8, clip_gradient=None):
        super().__init__(learning_rate=learning_rate, clip_gradient=clip_gradient)
        if not 0.0 <= rho <= 1.0:
            raise ValueError(f"rho should be in [0, 1], received: rho={rho}")
        if epsilon <= 0.0:
            raise ValueError(f"epsilon should be positive, received: epsilon={epsilon}")
        self.rho = float(rho)
        self.epsilon = float(epsilon)

    def _create_slots(self, variable):
        self.create_slot(variable, SLOT_ACCUMULATOR, 0.0)
        self.create_slot(variable, SLOT_ACCUMULATOR_UPDATE, 0.0)

    def _apply_dense(self, gradient, variable):
        var_name = variable_name(variable)
        return tf.raw_ops.ResourceApplyAdadelta(
            var=variable.handle,
            accum=self.get_slot(var_name, SLOT_ACCUMULATOR).handle,
            accum_update=self.get_slot(var_name, SLOT_ACCUMULATOR_UPDATE).handle,
            lr=self._constant(self.learning_rate, variable),
            rho=self._constant(self.rho, variable),
            epsilon=self._constant(self.epsilon, variable),
            grad=gradient
        )

    def get_config(self):
        config = super().get_config()
        config.update({"rho": self.rho, "epsilon": self.epsilon})
        return config

# ---------------------------------------------------------------------

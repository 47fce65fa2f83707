"""AdaGrad optimizer."""

import tensorflow as tf

from dl_modeling.constants import SLOT_ACCUMULATOR
from .optimizer import Optimizer, variable_name

# ---------------------------------------------------------------------


class AdaGrad(Optimizer):
    """AdaGrad, per-parameter step sizes shrinking with the accumulated squared gradients.

    ```
    accumulator += gradient^2
    variable -= learning_rate * gradient / sqrt(accumulator)
    ```
    """

    def __init__(self, learning_rate: float = 0.1, initial_accumulator_value: float = 0.01, clip_gradient=None):
        super().__init__(learning_rate=learning_rate, clip_gradient=clip_gradient)
        if initial_accumulator_value < 0.0:
            raise ValueError(
                f"initial_accumulator_value should be >= 0, "
                f"received: initial_accumulator_value={initial_accumulator_value}"
            )
        self.initial_accumulator_value = float(initial_accumulator_value)

    def _create_slots(self, variable):
        self.create_slot(variable, SLOT_ACCUMULATOR, self.initial_accumulator_value)

    def _apply_dense(self, gradient, variable):
        return tf.raw_ops.ResourceApplyAdagrad(
            var=variable.handle,
            accum=self.get_slot(variable_name(variable), SLOT_ACCUMULATOR).handle,
            lr=self._constant(self.learning_rate, variable),
            grad=gradient,
            update_slots=True
        )

    def get_config(self):
        config = super().get_config()
        config["initial_accumulator_value"] = self.initial_accumulator_value
        return config

# ---------------------------------------------------------------------

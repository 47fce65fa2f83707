"""Adamax optimizer, Adam with the infinity norm."""

import tensorflow as tf

from dl_modeling.constants import BETA_ONE_POWER, DEFAULT_EPSILON, SLOT_FIRST_MOMENT, SLOT_SECOND_MOMENT
from .adam import validate_beta
from .optimizer import Optimizer, variable_name

# ---------------------------------------------------------------------


class Adamax(Optimizer):
    """Adamax.

    ```
    m = beta1 * m + (1 - beta1) * gradient
    v = max(beta2 * v, abs(gradient))
    variable -= learning_rate / (1 - beta1^t) * m / (v + epsilon)
    ```
    """

    def __init__(
            self,
            learning_rate: float = 0.001,
            beta1: float = 0.9,
            beta2: float = 0.999,
            epsilon: float = DEFAULT_EPSILON,
            clip_gradient=None):
        super().__init__(learning_rate=learning_rate, clip_gradient=clip_gradient)
        self.beta1 = validate_beta("beta1", beta1)
        self.beta2 = validate_beta("beta2", beta2)
        if epsilon <= 0.0:
            raise ValueError(f"epsilon should be positive, received: epsilon={epsilon}")
        self.epsilon = float(epsilon)

    def _create_slots(self, variable):
        self.create_slot(variable, SLOT_FIRST_MOMENT, 0.0)
        self.create_slot(variable, SLOT_SECOND_MOMENT, 0.0)

    def _create_non_slot_variables(self):
        self.create_non_slot_variable(BETA_ONE_POWER, self.beta1)

    def _apply_dense(self, gradient, variable):
        var_name = variable_name(variable)
        return tf.raw_ops.ResourceApplyAdaMax(
            var=variable.handle,
            m=self.get_slot(var_name, SLOT_FIRST_MOMENT).handle,
            v=self.get_slot(var_name, SLOT_SECOND_MOMENT).handle,
            beta1_power=tf.cast(self.get_non_slot_variable(BETA_ONE_POWER), variable.dtype),
            lr=self._constant(self.learning_rate, variable),
            beta1=self._constant(self.beta1, variable),
            beta2=self._constant(self.beta2, variable),
            epsilon=self._constant(self.epsilon, variable),
            grad=gradient
        )

    def _finish(self):
        beta1_power = self.get_non_slot_variable(BETA_ONE_POWER)
        return [beta1_power.assign(beta1_power * self.beta1)]

    def get_config(self):
        config = super().get_config()
        config.update({"beta1": self.beta1, "beta2": self.beta2, "epsilon": self.epsilon})
        return config

# ---------------------------------------------------------------------

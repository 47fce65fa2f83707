"""Adam optimizer."""

import tensorflow as tf

from dl_modeling.constants import (
    BETA_ONE_POWER, BETA_TWO_POWER, DEFAULT_EPSILON, SLOT_FIRST_MOMENT, SLOT_SECOND_MOMENT)
from .optimizer import Optimizer, variable_name

# ---------------------------------------------------------------------


def validate_beta(name: str, value: float) -> float:
    if not 0.0 < value < 1.0:
        raise ValueError(f"{name} should be in (0, 1), received: {name}={value}")
    return float(value)

# ---------------------------------------------------------------------


class Adam(Optimizer):
    """Adam, adaptive moment estimation.

    ```
    lr_t = learning_rate * sqrt(1 - beta2^t) / (1 - beta1^t)
    m = beta1 * m + (1 - beta1) * gradient
    v = beta2 * v + (1 - beta2) * gradient^2
    variable -= lr_t * m / (sqrt(v) + epsilon)
    ```

    ``beta1^t`` and ``beta2^t`` are non-slot variables starting at ``beta1``
    and ``beta2`` and multiplied by them after every apply.

    Args:
        learning_rate: Step size.
        beta1: Decay of the first moment estimate.
        beta2: Decay of the second moment estimate.
        epsilon: Numerical stability constant.
        use_nesterov: Use the Nesterov variant (NAdam).
        clip_gradient: Gradient clipping strategy.
    """

    def __init__(
            self,
            learning_rate: float = 0.001,
            beta1: float = 0.9,
            beta2: float = 0.999,
            epsilon: float = DEFAULT_EPSILON,
            use_nesterov: bool = False,
            clip_gradient=None):
        super().__init__(learning_rate=learning_rate, clip_gradient=clip_gradient)
        self.beta1 = validate_beta("beta1", beta1)
        self.beta2 = validate_beta("beta2", beta2)
        if epsilon <= 0.0:
            raise ValueError(f"epsilon should be positive, received: epsilon={epsilon}")
        self.epsilon = float(epsilon)
        self.use_nesterov = bool(use_nesterov)

    def _create_slots(self, variable):
        self.create_slot(variable, SLOT_FIRST_MOMENT, 0.0)
        self.create_slot(variable, SLOT_SECOND_MOMENT, 0.0)

    def _create_non_slot_variables(self):
        self.create_non_slot_variable(BETA_ONE_POWER, self.beta1)
        self.create_non_slot_variable(BETA_TWO_POWER, self.beta2)

    def _apply_dense(self, gradient, variable):
        var_name = variable_name(variable)
        beta1_power = self.get_non_slot_variable(BETA_ONE_POWER)
        beta2_power = self.get_non_slot_variable(BETA_TWO_POWER)
        return tf.raw_ops.ResourceApplyAdam(
            var=variable.handle,
            m=self.get_slot(var_name, SLOT_FIRST_MOMENT).handle,
            v=self.get_slot(var_name, SLOT_SECOND_MOMENT).handle,
            beta1_power=tf.cast(beta1_power, variable.dtype),
            beta2_power=tf.cast(beta2_power, variable.dtype),
            lr=self._constant(self.learning_rate, variable),
            beta1=self._constant(self.beta1, variable),
            beta2=self._constant(self.beta2, variable),
            epsilon=self._constant(self.epsilon, variable),
            grad=gradient,
            use_nesterov=self.use_nesterov
        )

    def _finish(self):
        beta1_power = self.get_non_slot_variable(BETA_ONE_POWER)
        beta2_power = self.get_non_slot_variable(BETA_TWO_POWER)
        return [
            beta1_power.assign(beta1_power * self.beta1),
            beta2_power.assign(beta2_power * self.beta2),
        ]

    def get_config(self):
        config = super().get_config()
        config.update({
            "beta1": self.beta1,
            "beta2": self.beta2,
            "epsilon": self.epsilon,
            "use_nesterov": self.use_nesterov,
        })
        return config

# ---------------------------------------------------------------------

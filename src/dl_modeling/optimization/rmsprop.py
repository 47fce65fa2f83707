"""RMSProp optimizer."""

import tensorflow as tf

from dl_modeling.constants import SLOT_MG, SLOT_MOMENTUM, SLOT_RMS
from .optimizer import Optimizer, variable_name

# ---------------------------------------------------------------------


class RMSProp(Optimizer):
    """RMSProp.

    ```
    rms = decay * rms + (1 - decay) * gradient^2
    momentum = momentum_coefficient * momentum + learning_rate * gradient / sqrt(rms + epsilon)
    variable -= momentum
    ```

    When ``centered`` the gradient variance is estimated with an extra
    ``mg`` slot holding the moving mean of the gradient.

    Args:
        learning_rate: Step size.
        decay: Discounting factor of the squared gradient average.
        momentum: Momentum coefficient.
        epsilon: Numerical stability constant.
        centered: Normalize by the estimated variance of the gradient.
        clip_gradient: Gradient clipping strategy.
    """

    def __init__(
            self,
            learning_rate: float = 0.001,
            decay: float = 0.9,
            momentum: float = 0.0,
            epsilon: float = 1e-10,
            centered: bool = False,
            clip_gradient=None):
        super().__init__(learning_rate=learning_rate, clip_gradient=clip_gradient)
        if not 0.0 <= decay <= 1.0:
            raise ValueError(f"decay should be in [0, 1], received: decay={decay}")
        if momentum < 0.0:
            raise ValueError(f"momentum should be >= 0, received: momentum={momentum}")
        if epsilon <= 0.0:
            raise ValueError(f"epsilon should be positive, received: epsilon={epsilon}")
        self.decay = float(decay)
        self.momentum = float(momentum)
        self.epsilon = float(epsilon)
        self.centered = bool(centered)

    def _create_slots(self, variable):
        self.create_slot(variable, SLOT_RMS, 1.0)
        self.create_slot(variable, SLOT_MOMENTUM, 0.0)
        if self.centered:
            self.create_slot(variable, SLOT_MG, 0.0)

    def _apply_dense(self, gradient, variable):
        var_name = variable_name(variable)
        kwargs = dict(
            var=variable.handle,
            ms=self.get_slot(var_name, SLOT_RMS).handle,
            mom=self.get_slot(var_name, SLOT_MOMENTUM).handle,
            lr=self._constant(self.learning_rate, variable),
            rho=self._constant(self.decay, variable),
            momentum=self._constant(self.momentum, variable),
            epsilon=self._constant(self.epsilon, variable),
            grad=gradient
        )
        if self.centered:
            return tf.raw_ops.ResourceApplyCenteredRMSProp(
                mg=self.get_slot(var_name, SLOT_MG).handle, **kwargs)
        return tf.raw_ops.ResourceApplyRMSProp(**kwargs)

    def get_config(self):
        config = super().get_config()
        config.update({
            "decay": self.decay,
            "momentum": self.momentum,
            "epsilon": self.epsilon,
            "centered": self.centered,
        })
        return config

# ---------------------------------------------------------------------

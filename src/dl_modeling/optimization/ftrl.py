"""Follow The Regularized Leader optimizer."""

import tensorflow as tf
from typing import Optional

from dl_modeling.constants import SLOT_ACCUMULATOR, SLOT_LINEAR_ACCUMULATOR
from .optimizer import Optimizer, variable_name

# ---------------------------------------------------------------------


class Ftrl(Optimizer):
    """FTRL-Proximal, as used for online click-through-rate models.

    Args:
        learning_rate: Step size.
        l1_regularization_strength: L1 penalty, must be >= 0.
        l2_regularization_strength: L2 penalty, must be >= 0.
        learning_rate_power: Controls how the learning rate decreases, must be <= 0.
        l2_shrinkage_regularization_strength: L2 shrinkage penalty applied to
            the gradient, must be >= 0.
        initial_accumulator_value: Start value of the accumulator, must be >= 0.
        clip_gradient: Gradient clipping strategy.
        l1: Short name of ``l1_regularization_strength``.
        l2: Short name of ``l2_regularization_strength``.
        l2_shrinkage: Short name of ``l2_shrinkage_regularization_strength``.
    """

    def __init__(
            self,
            learning_rate: float = 0.001,
            l1_regularization_strength: float = 0.0,
            l2_regularization_strength: float = 0.0,
            learning_rate_power: float = -0.5,
            l2_shrinkage_regularization_strength: float = 0.0,
            initial_accumulator_value: float = 0.1,
            clip_gradient=None,
            l1: Optional[float] = None,
            l2: Optional[float] = None,
            l2_shrinkage: Optional[float] = None):
        super().__init__(learning_rate=learning_rate, clip_gradient=clip_gradient)
        if l1 is not None:
            l1_regularization_strength = l1
        if l2 is not None:
            l2_regularization_strength = l2
        if l2_shrinkage is not None:
            l2_shrinkage_regularization_strength = l2_shrinkage
        for name, value in (
                ("l1_regularization_strength", l1_regularization_strength),
                ("l2_regularization_strength", l2_regularization_strength),
                ("l2_shrinkage_regularization_strength", l2_shrinkage_regularization_strength),
                ("initial_accumulator_value", initial_accumulator_value)):
            if value < 0.0:
                raise ValueError(f"{name} should be >= 0, received: {name}={value}")
        if learning_rate_power > 0.0:
            raise ValueError(
                f"learning_rate_power should be <= 0, received: learning_rate_power={learning_rate_power}"
            )
        self.l1_regularization_strength = float(l1_regularization_strength)
        self.l2_regularization_strength = float(l2_regularization_strength)
        self.learning_rate_power = float(learning_rate_power)
        self.l2_shrinkage_regularization_strength = float(l2_shrinkage_regularization_strength)
        self.initial_accumulator_value = float(initial_accumulator_value)

    def _create_slots(self, variable):
        self.create_slot(variable, SLOT_ACCUMULATOR, self.initial_accumulator_value)
        self.create_slot(variable, SLOT_LINEAR_ACCUMULATOR, 0.0)

    def _apply_dense(self, gradient, variable):
        var_name = variable_name(variable)
        return tf.raw_ops.ResourceApplyFtrlV2(
            var=variable.handle,
            accum=self.get_slot(var_name, SLOT_ACCUMULATOR).handle,
            linear=self.get_slot(var_name, SLOT_LINEAR_ACCUMULATOR).handle,
            grad=gradient,
            lr=self._constant(self.learning_rate, variable),
            l1=self._constant(self.l1_regularization_strength, variable),
            l2=self._constant(self.l2_regularization_strength, variable),
            l2_shrinkage=self._constant(self.l2_shrinkage_regularization_strength, variable),
            lr_power=self._constant(self.learning_rate_power, variable)
        )

    def get_config(self):
        config = super().get_config()
        config.update({
            "l1_regularization_strength": self.l1_regularization_strength,
            "l2_regularization_strength": self.l2_regularization_strength,
            "learning_rate_power": self.learning_rate_power,
            "l2_shrinkage_regularization_strength": self.l2_shrinkage_regularization_strength,
            "initial_accumulator_value": self.initial_accumulator_value,
        })
        return config

# ---------------------------------------------------------------------

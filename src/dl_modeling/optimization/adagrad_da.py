"""AdaGrad Dual Averaging optimizer."""

import tensorflow as tf
from typing import Optional

from dl_modeling.constants import GLOBAL_STEP, SLOT_ACCUMULATOR, SLOT_SQUARED_ACCUMULATOR
from .optimizer import Optimizer, variable_name

# ---------------------------------------------------------------------


class AdaGradDA(Optimizer):
    """AdaGrad Dual Averaging, suited to sparse linear models with L1/L2 penalties.

    Slots: a gradient accumulator starting at 0 and a squared gradient
    accumulator starting at ``initial_accumulator_value``. A ``global_step``
    non-slot counter, starting at 0, is incremented after every apply.

    ``l1`` and ``l2`` are accepted in place of ``l1_strength`` and ``l2_strength``.
    """

    def __init__(
            self,
            learning_rate: float = 0.1,
            initial_accumulator_value: float = 0.01,
            l1_strength: float = 0.0,
            l2_strength: float = 0.0,
            clip_gradient=None,
            l1: Optional[float] = None,
            l2: Optional[float] = None):
        super().__init__(learning_rate=learning_rate, clip_gradient=clip_gradient)
        if l1 is not None:
            l1_strength = l1
        if l2 is not None:
            l2_strength = l2
        if initial_accumulator_value <= 0.0:
            raise ValueError(
                f"initial_accumulator_value should be positive, "
                f"received: initial_accumulator_value={initial_accumulator_value}"
            )
        if l1_strength < 0.0 or l2_strength < 0.0:
            raise ValueError(
                f"l1_strength and l2_strength should be >= 0, "
                f"received: l1_strength={l1_strength}, l2_strength={l2_strength}"
            )
        self.initial_accumulator_value = float(initial_accumulator_value)
        self.l1_strength = float(l1_strength)
        self.l2_strength = float(l2_strength)

    def _create_slots(self, variable):
        self.create_slot(variable, SLOT_ACCUMULATOR, 0.0)
        self.create_slot(variable, SLOT_SQUARED_ACCUMULATOR, self.initial_accumulator_value)

    def _create_non_slot_variables(self):
        self.create_non_slot_variable(GLOBAL_STEP, 0, dtype=tf.int64)

    def _apply_dense(self, gradient, variable):
        var_name = variable_name(variable)
        global_step = self.get_non_slot_variable(GLOBAL_STEP)
        return tf.raw_ops.ResourceApplyAdagradDA(
            var=variable.handle,
            gradient_accumulator=self.get_slot(var_name, SLOT_ACCUMULATOR).handle,
            gradient_squared_accumulator=self.get_slot(var_name, SLOT_SQUARED_ACCUMULATOR).handle,
            grad=gradient,
            lr=self._constant(self.learning_rate, variable),
            l1=self._constant(self.l1_strength, variable),
            l2=self._constant(self.l2_strength, variable),
            global_step=global_step.read_value()
        )

    def _finish(self):
        return [self.get_non_slot_variable(GLOBAL_STEP).assign_add(1)]

    def get_config(self):
        config = super().get_config()
        config.update({
            "initial_accumulator_value": self.initial_accumulator_value,
            "l1_strength": self.l1_strength,
            "l2_strength": self.l2_strength,
        })
        return config

# ---------------------------------------------------------------------

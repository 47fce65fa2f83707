"""
Optimizer base with slot management.

Optimizers keep auxiliary per-variable state, called *slots* (momentum,
RMS accumulators, first and second moments ...). Slots are keyed by the name
of the variable they belong to and by the slot name, and live in variables
named ``{variable name}-{slot name}``. They are created lazily: either at
model compile time through :meth:`Optimizer.create_slots`, or on the first
:meth:`Optimizer.apply_gradients` call that sees a new variable.

State that is shared by every variable (``beta1_power``, ``global_step``) is
kept beside the slots as *non-slot* variables.

The update rules themselves are TensorFlow's fused training kernels
(``tf.raw_ops.ResourceApply*``); an optimizer only prepares their
arguments:

```
for variable, gradient in zip(variables, gradients):
    gradient = clip_gradient(gradient)
    apply_dense(gradient, variable)   # reads and updates the slots
finish()                              # updates the non-slot state
```
"""

import numpy as np
import tensorflow as tf
from typing import Any, Dict, List, Optional, Sequence

from dl_modeling.exceptions import SlotNotFoundError
from dl_modeling.utils.logger import logger
from .clip_gradient import ClipGradientAction, NoClipGradient, clip_gradient_from_config

# ---------------------------------------------------------------------


def variable_name(variable: tf.Variable) -> str:
    """Name of a variable without the ``:0`` output suffix."""
    return variable.name.split(":")[0]


def slot_variable_name(var_name: str, slot_name: str) -> str:
    return f"{var_name}-{slot_name}"

# ---------------------------------------------------------------------


class Optimizer:
    """Base class of optimizers.

    Args:
        learning_rate: Step size, must be positive.
        clip_gradient: Clipping strategy applied to each gradient.
    """

    def __init__(self, learning_rate: float, clip_gradient: Optional[ClipGradientAction] = None):
        if learning_rate <= 0.0:
            raise ValueError(f"learning_rate should be positive, received: learning_rate={learning_rate}")
        self.learning_rate = float(learning_rate)
        self.clip_gradient = clip_gradient or NoClipGradient()
        self._slots: Dict[str, Dict[str, tf.Variable]] = {}
        self._non_slot_variables: Dict[str, tf.Variable] = {}

    @property
    def optimizer_name(self) -> str:
        return self.__class__.__name__

    # -----------------------------------------------------------------
    # slots
    # -----------------------------------------------------------------

    def create_slot(self, variable: tf.Variable, slot_name: str, initial_value: float) -> tf.Variable:
        """Create the ``slot_name`` slot of ``variable``, filled with ``initial_value``.

        Creating an existing slot returns it untouched.
        """
        var_name = variable_name(variable)
        slots = self._slots.setdefault(var_name, {})
        if slot_name in slots:
            return slots[slot_name]
        slot = tf.Variable(
            tf.fill(tf.shape(variable), tf.cast(initial_value, variable.dtype)),
            name=slot_variable_name(var_name, slot_name),
            trainable=False,
            dtype=variable.dtype
        )
        slots[slot_name] = slot
        logger.debug(f"{self.optimizer_name}: created slot [{slot_variable_name(var_name, slot_name)}]")
        return slot

    def get_slot(self, var_name: str, slot_name: str) -> tf.Variable:
        """Look up a slot by variable name and slot name.

        Raises:
            SlotNotFoundError: If the slot was never created.
        """
        try:
            return self._slots[var_name][slot_name]
        except KeyError:
            raise SlotNotFoundError(
                f"{self.optimizer_name} has no slot [{slot_name}] for variable [{var_name}]"
            ) from None

    def get_slot_names(self, var_name: str) -> List[str]:
        return list(self._slots.get(var_name, {}))

    def has_slots(self, variable: tf.Variable) -> bool:
        return variable_name(variable) in self._slots

    def create_non_slot_variable(self, name: str, initial_value, dtype: tf.DType = tf.float32) -> tf.Variable:
        """Create a variable shared by every slot owner, idempotent."""
        if name not in self._non_slot_variables:
            self._non_slot_variables[name] = tf.Variable(
                tf.cast(initial_value, dtype), name=name, trainable=False, dtype=dtype)
        return self._non_slot_variables[name]

    def get_non_slot_variable(self, name: str) -> tf.Variable:
        try:
            return self._non_slot_variables[name]
        except KeyError:
            raise SlotNotFoundError(f"{self.optimizer_name} has no non-slot variable [{name}]") from None

    def create_slots(self, variables: Sequence[tf.Variable]) -> None:
        """Create the slots of every variable that does not have them yet."""
        created = 0
        for variable in variables:
            if not self.has_slots(variable):
                self._create_slots(variable)
                created += 1
        self._create_non_slot_variables()
        if created:
            logger.info(f"{self.optimizer_name}: created slots for {created} variables")

    def _create_slots(self, variable: tf.Variable) -> None:
        """Create the slots of one variable, stateless optimizers create none."""
        self._slots.setdefault(variable_name(variable), {})

    def _create_non_slot_variables(self) -> None:
        pass

    def slot_variables(self) -> Dict[str, tf.Variable]:
        """Every optimizer state variable keyed by its name."""
        result = {}
        for var_name, slots in self._slots.items():
            for slot_name, slot in slots.items():
                result[slot_variable_name(var_name, slot_name)] = slot
        result.update(self._non_slot_variables)
        return result

    def load_slot_values(self, values: Dict[str, np.ndarray]) -> int:
        """Assign saved state by variable name, returns the number of variables restored.

        Unknown names are skipped with a warning.
        """
        variables = self.slot_variables()
        restored = 0
        for name, value in values.items():
            if name not in variables:
                logger.warning(f"{self.optimizer_name}: no state variable named [{name}], skipping it")
                continue
            variables[name].assign(value)
            restored += 1
        return restored

    # -----------------------------------------------------------------
    # updates
    # -----------------------------------------------------------------

    def apply_gradients(
            self,
            variables: Sequence[tf.Variable],
            gradients: Sequence[Optional[tf.Tensor]]) -> List[Any]:
        """Apply one optimization step.

        Args:
            variables: Trainable variables.
            gradients: Gradient of the loss for each variable, ``None`` ones
                are skipped.

        Returns:
            The update operations.
        """
        if len(variables) != len(gradients):
            raise ValueError(
                f"Got {len(variables)} variables and {len(gradients)} gradients, they should match"
            )
        pairs = [(v, g) for v, g in zip(variables, gradients) if g is not None]
        self.create_slots([v for v, _ in pairs])

        targets = []
        for variable, gradient in pairs:
            if isinstance(gradient, tf.IndexedSlices):
                gradient = tf.convert_to_tensor(gradient)
            gradient = self.clip_gradient.clip_gradient(gradient)
            targets.append(self._apply_dense(gradient, variable))
        targets.extend(self._finish())
        return targets

    def _apply_dense(self, gradient: tf.Tensor, variable: tf.Variable):
        raise NotImplementedError

    def _finish(self) -> List[Any]:
        """Update the non-slot state once every variable is updated."""
        return []

    def _constant(self, value: float, variable: tf.Variable) -> tf.Tensor:
        return tf.constant(value, dtype=variable.dtype)

    # -----------------------------------------------------------------
    # serialization
    # -----------------------------------------------------------------

    def get_config(self) -> Dict[str, Any]:
        return {
            "learning_rate": self.learning_rate,
            "clip_gradient": self.clip_gradient.get_config(),
        }

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Optimizer":
        config = dict(config)
        config["clip_gradient"] = clip_gradient_from_config(config.get("clip_gradient"))
        return cls(**config)

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.get_config().items() if k != "clip_gradient")
        return f"{self.optimizer_name}({params})"

# ---------------------------------------------------------------------

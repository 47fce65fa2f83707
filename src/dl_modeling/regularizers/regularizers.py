"""
Weight regularizers.

A regularizer maps a weight tensor to a scalar penalty that is added to the
training loss of the model:

```
loss = l1 * reduce_sum(abs(x)) + l2 * reduce_sum(square(x))
```
"""

import math
import tensorflow as tf
from typing import Any, Dict, Optional, Union

from dl_modeling.constants import DEFAULT_PENALTY

# ---------------------------------------------------------------------


def validate_penalty(value, name: str) -> float:
    """Check a penalty factor, raise ValueError if it is not a finite, non negative float."""
    if (
        not isinstance(value, (float, int))
        or isinstance(value, bool)
        or math.isinf(value)
        or math.isnan(value)
    ):
        raise ValueError(
            f"Invalid value for argument {name}: expected a float. "
            f"Received: {name}={value}"
        )
    if value < 0:
        raise ValueError(f"{name} should be non negative. Received: {name}={value}")
    return float(value)

# ---------------------------------------------------------------------


class Regularizer:
    """Base class of weight regularizers."""

    def __call__(self, weights: tf.Tensor) -> tf.Tensor:
        raise NotImplementedError

    def get_config(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Regularizer":
        return cls(**config)

# ---------------------------------------------------------------------


class L2L1(Regularizer):
    """A regularizer that applies both L1 and L2 regularization penalties.

    The L1 penalty is ``l1 * reduce_sum(abs(x))``, the L2 penalty is
    ``l2 * reduce_sum(square(x))``. When both factors are zero the penalty is
    a constant zero and adds nothing to the gradient.

    Args:
        l1: L1 regularization factor.
        l2: L2 regularization factor.
    """

    def __init__(self, l1: float = 0.0, l2: float = 0.0):
        self.l1 = validate_penalty(l1, "l1")
        self.l2 = validate_penalty(l2, "l2")

    def __call__(self, weights):
        regularization = tf.constant(0.0, dtype=weights.dtype)
        if self.l1 == 0.0 and self.l2 == 0.0:
            return regularization
        if self.l1 != 0.0:
            regularization += self.l1 * tf.reduce_sum(tf.abs(weights))
        if self.l2 != 0.0:
            regularization += self.l2 * tf.reduce_sum(weights * weights)
        return regularization

    def get_config(self):
        return {"l1": self.l1, "l2": self.l2}

    def __repr__(self):
        return f"{self.__class__.__name__}(l1={self.l1}, l2={self.l2})"


class L1(L2L1):
    """L1 penalty only, ``loss = l1 * reduce_sum(abs(x))``.

    ``value`` is accepted in place of ``l1``.
    """

    def __init__(self, l1: float = DEFAULT_PENALTY, value: Optional[float] = None):
        super().__init__(l1=l1 if value is None else value)

    def get_config(self):
        return {"l1": self.l1}


class L2(L2L1):
    """L2 penalty only, ``loss = l2 * reduce_sum(square(x))``.

    ``value`` is accepted in place of ``l2``.
    """

    def __init__(self, l2: float = DEFAULT_PENALTY, value: Optional[float] = None):
        super().__init__(l2=l2 if value is None else value)

    def get_config(self):
        return {"l2": self.l2}

# ---------------------------------------------------------------------


_REGULARIZERS = {
    "L1": L1,
    "L2": L2,
    "L1L2": L2L1,
    "L2L1": L2L1,
}

_ALIASES = {
    "l1": "L1",
    "l2": "L2",
    "l1_l2": "L1L2",
    "l1l2": "L1L2",
}

# ---------------------------------------------------------------------


def get_regularizer(identifier: Union[str, Dict[str, Any], Regularizer, None]) -> Optional[Regularizer]:
    """Resolve a regularizer from an instance, a name or a Keras config dict.

    Raises:
        ValueError: If the regularizer is unknown.
    """
    if identifier is None or isinstance(identifier, Regularizer):
        return identifier
    if isinstance(identifier, dict):
        class_name = identifier.get("class_name")
        config = dict(identifier.get("config") or {})
    elif isinstance(identifier, str):
        class_name = identifier
        config = {}
    else:
        raise TypeError(f"Cannot interpret regularizer identifier: {identifier!r}")

    class_name = _ALIASES.get(class_name, class_name)
    if class_name not in _REGULARIZERS:
        raise ValueError(
            f"Unknown regularizer: [{class_name}]. "
            f"Supported regularizers: {sorted(_REGULARIZERS)}"
        )
    # Keras stores float32-rounded factors, keep them as plain floats
    config = {k: float(v) for k, v in config.items() if k in ("l1", "l2")}
    return _REGULARIZERS[class_name].from_config(config)


def serialize_regularizer(regularizer: Regularizer) -> Dict[str, Any]:
    """Keras style ``{"class_name", "config"}`` dict of a regularizer."""
    if isinstance(regularizer, L1):
        class_name = "L1"
    elif isinstance(regularizer, L2):
        class_name = "L2"
    elif isinstance(regularizer, L2L1):
        class_name = "L1L2"
    else:
        raise ValueError(f"Cannot serialize regularizer: {regularizer!r}")
    return {"class_name": class_name, "config": regularizer.get_config()}

# ---------------------------------------------------------------------

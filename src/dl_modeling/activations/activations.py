"""
Activation functions.

An activation function of a node defines the output of that node given an
input or set of inputs. Every member of :class:`Activations` carries the
identifier Keras uses in serialized model configs, so configs round-trip
without a translation table.

The functions only assemble TensorFlow ops, the runtime computes values and
gradients.
"""

import tensorflow as tf
from enum import Enum
from typing import Callable, Union

# ---------------------------------------------------------------------

SELU_ALPHA = 1.67326324
SELU_SCALE = 1.05070098

# ---------------------------------------------------------------------


class Activation:
    """Base class of every activation function."""

    def apply(self, features: tf.Tensor) -> tf.Tensor:
        raise NotImplementedError

    def __call__(self, features: tf.Tensor) -> tf.Tensor:
        return self.apply(features)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

# ---------------------------------------------------------------------


class LinearActivation(Activation):
    """Returns the input unmodified."""

    def apply(self, features):
        return tf.identity(features)


class SigmoidActivation(Activation):
    """``sigmoid(x) = 1 / (1 + exp(-x))``.

    For small values (< -5) the result is close to zero, for large values
    (> 5) it gets close to 1. Sigmoid is equivalent to a 2-element softmax
    where the second element is assumed to be zero.
    """

    def apply(self, features):
        return tf.math.sigmoid(features)


class TanhActivation(Activation):
    """``tanh(x) = (exp(x) - exp(-x)) / (exp(x) + exp(-x))``."""

    def apply(self, features):
        return tf.math.tanh(features)


class ReluActivation(Activation):
    """Rectified linear unit, ``max(x, 0)``."""

    def apply(self, features):
        return tf.nn.relu(features)


class Relu6Activation(Activation):
    """Rectified linear 6, ``min(max(x, 0), 6)``.

    See Krizhevsky, "Convolutional Deep Belief Networks on CIFAR-10".
    """

    def apply(self, features):
        return tf.nn.relu6(features)


class EluActivation(Activation):
    """Exponential linear unit with ``alpha = 1``.

    ``x`` if ``x > 0`` and ``exp(x) - 1`` otherwise. ELUs push mean
    activations closer to zero which speeds up learning
    (Clevert et al., 2016).
    """

    def apply(self, features):
        return tf.nn.elu(features)


class SeluActivation(Activation):
    """Scaled exponential linear unit.

    ``scale * x`` for ``x > 0`` and ``scale * alpha * (exp(x) - 1)``
    otherwise, with ``alpha = 1.67326324`` and ``scale = 1.05070098``
    (Klambauer et al., 2017). Pair it with the LeCun normal initializer.
    """

    def apply(self, features):
        return tf.nn.selu(features)


class SoftmaxActivation(Activation):
    """Softmax over the last axis.

    ``softmax[i, j] = exp(logits[i, j]) / sum_j(exp(logits[i, j]))``
    """

    def apply(self, features):
        return tf.nn.softmax(features)


class LogSoftmaxActivation(Activation):
    def apply(self, features):
        return tf.nn.log_softmax(features)


class ExponentialActivation(Activation):
    def apply(self, features):
        return tf.math.exp(features)


class SoftPlusActivation(Activation):
    """``softplus(x) = log(exp(x) + 1)``."""

    def apply(self, features):
        return tf.math.softplus(features)


class SoftSignActivation(Activation):
    """``softsign(x) = x / (abs(x) + 1)``."""

    def apply(self, features):
        return tf.nn.softsign(features)


class HardSigmoidActivation(Activation):
    """Piecewise linear approximation of the sigmoid.

    ``0`` if ``x < -2.5``, ``1`` if ``x > 2.5`` and ``0.2 * x + 0.5`` in
    between.
    """

    def apply(self, features):
        point_two = tf.constant(0.2, dtype=features.dtype)
        point_five = tf.constant(0.5, dtype=features.dtype)
        return tf.clip_by_value(features * point_two + point_five, 0.0, 1.0)


class SwishActivation(Activation):
    """``swish(x) = x * sigmoid(x)`` (Ramachandran et al., 2017)."""

    def apply(self, features):
        return features * tf.math.sigmoid(features)


class GeluActivation(Activation):
    """Gaussian error linear unit (Hendrycks & Gimpel, 2016)."""

    def __init__(self, approximate: bool = False):
        self.approximate = approximate

    def apply(self, features):
        return tf.nn.gelu(features, approximate=self.approximate)


class MishActivation(Activation):
    """``mish(x) = x * tanh(softplus(x))`` (Misra, 2019)."""

    def apply(self, features):
        return features * tf.math.tanh(tf.math.softplus(features))


class HardShrinkActivation(Activation):
    """``x`` outside of ``[lower, upper]``, ``0`` inside."""

    def __init__(self, lower: float = -0.5, upper: float = 0.5):
        if lower > upper:
            raise ValueError(f"lower [{lower}] should not be greater than upper [{upper}]")
        self.lower = lower
        self.upper = upper

    def apply(self, features):
        mask = tf.logical_or(features < self.lower, features > self.upper)
        return tf.where(mask, features, tf.zeros_like(features))


class LishtActivation(Activation):
    """``lisht(x) = x * tanh(x)``."""

    def apply(self, features):
        return features * tf.math.tanh(features)


class SnakeActivation(Activation):
    """``snake(x) = x + sin^2(frequency * x) / frequency`` (Ziyin et al., 2020)."""

    def __init__(self, frequency: float = 1.0):
        if frequency == 0.0:
            raise ValueError("frequency should not be zero")
        self.frequency = frequency

    def apply(self, features):
        sine = tf.math.sin(features * self.frequency)
        return features + sine * sine / self.frequency


class TanhShrinkActivation(Activation):
    """``tanh_shrink(x) = x - tanh(x)``."""

    def apply(self, features):
        return features - tf.math.tanh(features)

# ---------------------------------------------------------------------


class Activations(str, Enum):
    """Catalog of activation functions, valued by their Keras identifier."""

    LINEAR = "linear"
    SIGMOID = "sigmoid"
    TANH = "tanh"
    RELU = "relu"
    RELU6 = "relu6"
    ELU = "elu"
    SELU = "selu"
    SOFTMAX = "softmax"
    LOG_SOFTMAX = "log_softmax"
    EXPONENTIAL = "exponential"
    SOFTPLUS = "softplus"
    SOFTSIGN = "softsign"
    HARD_SIGMOID = "hard_sigmoid"
    SWISH = "swish"
    GELU = "gelu"
    MISH = "mish"
    HARD_SHRINK = "hard_shrink"
    LISHT = "lisht"
    SNAKE = "snake"
    TANH_SHRINK = "tanh_shrink"

    @classmethod
    def from_identifier(cls, identifier: Union[str, "Activations", None]) -> "Activations":
        """Resolve an enum member from a Keras identifier (``None`` is linear)."""
        if identifier is None:
            return cls.LINEAR
        if isinstance(identifier, cls):
            return identifier
        key = str(identifier).strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown activation: [{identifier}]. "
                f"Supported activations: {[a.value for a in cls]}"
            ) from None

    @classmethod
    def convert(
            cls,
            activation: Union[str, "Activations", Activation, Callable, None]) -> Activation:
        """Convert an activation identifier to the matching :class:`Activation`."""
        if isinstance(activation, Activation):
            return activation
        if callable(activation) and not isinstance(activation, (str, Enum)):
            return _CallableActivation(activation)
        return _REGISTRY[cls.from_identifier(activation)]()


class _CallableActivation(Activation):
    def __init__(self, fn: Callable):
        self.fn = fn

    def apply(self, features):
        return self.fn(features)

    def __repr__(self):
        return f"{self.__class__.__name__}({getattr(self.fn, '__name__', self.fn)})"

# ---------------------------------------------------------------------


_ALIASES = {
    "silu": Activations.SWISH.value,
    "hardsigmoid": Activations.HARD_SIGMOID.value,
    "logsoftmax": Activations.LOG_SOFTMAX.value,
    "tanhshrink": Activations.TANH_SHRINK.value,
    "hardshrink": Activations.HARD_SHRINK.value,
    "none": Activations.LINEAR.value,
}

_REGISTRY = {
    Activations.LINEAR: LinearActivation,
    Activations.SIGMOID: SigmoidActivation,
    Activations.TANH: TanhActivation,
    Activations.RELU: ReluActivation,
    Activations.RELU6: Relu6Activation,
    Activations.ELU: EluActivation,
    Activations.SELU: SeluActivation,
    Activations.SOFTMAX: SoftmaxActivation,
    Activations.LOG_SOFTMAX: LogSoftmaxActivation,
    Activations.EXPONENTIAL: ExponentialActivation,
    Activations.SOFTPLUS: SoftPlusActivation,
    Activations.SOFTSIGN: SoftSignActivation,
    Activations.HARD_SIGMOID: HardSigmoidActivation,
    Activations.SWISH: SwishActivation,
    Activations.GELU: GeluActivation,
    Activations.MISH: MishActivation,
    Activations.HARD_SHRINK: HardShrinkActivation,
    Activations.LISHT: LishtActivation,
    Activations.SNAKE: SnakeActivation,
    Activations.TANH_SHRINK: TanhShrinkActivation,
}

# ---------------------------------------------------------------------


def serialize_activation(activation: Union[str, Activations, Activation, None]) -> str:
    """Keras identifier of an activation, ``linear`` for custom callables."""
    if isinstance(activation, Activation):
        for member, activation_cls in _REGISTRY.items():
            if type(activation) is activation_cls:
                return member.value
        return Activations.LINEAR.value
    return Activations.from_identifier(activation).value

# ---------------------------------------------------------------------

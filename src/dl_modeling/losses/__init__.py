"""Loss functions.

Use :class:`Losses` members (or Keras identifiers such as ``"mse"``) when
compiling a model, or pass a :class:`Loss` instance for custom settings.
"""

from .losses import (
    Loss,
    Losses,
    Reduction,
    MAE,
    MSE,
    MSLE,
    MAPE,
    Huber,
    LogCosh,
    Poisson,
    Hinge,
    SquaredHinge,
    BinaryCrossentropy,
    SoftmaxCrossEntropyWithLogits,
    SigmoidCrossEntropyWithLogits,
)

__all__ = [
    "Loss",
    "Losses",
    "Reduction",
    "MAE",
    "MSE",
    "MSLE",
    "MAPE",
    "Huber",
    "LogCosh",
    "Poisson",
    "Hinge",
    "SquaredHinge",
    "BinaryCrossentropy",
    "SoftmaxCrossEntropyWithLogits",
    "SigmoidCrossEntropyWithLogits",
]

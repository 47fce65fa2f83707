"""Optimizers updating trainable variables through TensorFlow's fused training kernels."""

from .clip_gradient import (
    ClipGradientAction,
    NoClipGradient,
    ClipGradientByValue,
    ClipGradientByNorm,
    clip_gradient_from_config,
)
from .optimizer import Optimizer, variable_name, slot_variable_name
from .sgd import SGD
from .momentum import Momentum
from .adadelta import AdaDelta
from .adagrad import AdaGrad
from .adagrad_da import AdaGradDA
from .adam import Adam
from .adamax import Adamax
from .ftrl import Ftrl
from .rmsprop import RMSProp
from .builder import OptimizerType, optimizer_builder

__all__ = [
    "ClipGradientAction",
    "NoClipGradient",
    "ClipGradientByValue",
    "ClipGradientByNorm",
    "clip_gradient_from_config",
    "Optimizer",
    "variable_name",
    "slot_variable_name",
    "SGD",
    "Momentum",
    "AdaDelta",
    "AdaGrad",
    "AdaGradDA",
    "Adam",
    "Adamax",
    "Ftrl",
    "RMSProp",
    "OptimizerType",
    "optimizer_builder",
]

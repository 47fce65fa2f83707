"""Activation functions catalog.

Use :class:`Activations` members (or their Keras identifiers) wherever a layer
takes an ``activation`` argument, and :meth:`Activations.convert` to obtain
the callable object.
"""

from .activations import (
    Activation,
    Activations,
    LinearActivation,
    SigmoidActivation,
    TanhActivation,
    ReluActivation,
    Relu6Activation,
    EluActivation,
    SeluActivation,
    SoftmaxActivation,
    LogSoftmaxActivation,
    ExponentialActivation,
    SoftPlusActivation,
    SoftSignActivation,
    HardSigmoidActivation,
    SwishActivation,
    GeluActivation,
    MishActivation,
    HardShrinkActivation,
    LishtActivation,
    SnakeActivation,
    TanhShrinkActivation,
    serialize_activation,
)

__all__ = [
    "Activation",
    "Activations",
    "LinearActivation",
    "SigmoidActivation",
    "TanhActivation",
    "ReluActivation",
    "Relu6Activation",
    "EluActivation",
    "SeluActivation",
    "SoftmaxActivation",
    "LogSoftmaxActivation",
    "ExponentialActivation",
    "SoftPlusActivation",
    "SoftSignActivation",
    "HardSigmoidActivation",
    "SwishActivation",
    "GeluActivation",
    "MishActivation",
    "HardShrinkActivation",
    "LishtActivation",
    "SnakeActivation",
    "TanhShrinkActivation",
    "serialize_activation",
]

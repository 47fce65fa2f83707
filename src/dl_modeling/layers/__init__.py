"""Layer catalog.

Every layer is registered under the class name Keras writes into model
configs, see :data:`KERAS_LAYERS`, so that JSON configs saved by Keras can be
turned into layers of this package and back.
"""

from typing import Dict, Type

from .layer import Layer, variable_name
from .core import Input, Dense, Flatten, Reshape, Dropout, ActivationLayer
from .convolutional import Conv2D, DepthwiseConv2D, ZeroPadding2D, Cropping2D
from .pooling import MaxPool2D, AvgPool2D, GlobalAvgPool2D, GlobalMaxPool2D
from .activation import ReLU, ThresholdedReLU, LeakyReLU, ELU, PReLU, Softmax
from .normalization import BatchNorm
from .merge import Merge, Add, Subtract, Multiply, Average, Maximum, Minimum, Concatenate

# ---------------------------------------------------------------------

KERAS_LAYERS: Dict[str, Type[Layer]] = {
    "InputLayer": Input,
    "Dense": Dense,
    "Flatten": Flatten,
    "Reshape": Reshape,
    "Dropout": Dropout,
    "Activation": ActivationLayer,
    "Conv2D": Conv2D,
    "DepthwiseConv2D": DepthwiseConv2D,
    "ZeroPadding2D": ZeroPadding2D,
    "Cropping2D": Cropping2D,
    "MaxPooling2D": MaxPool2D,
    "AveragePooling2D": AvgPool2D,
    "GlobalAveragePooling2D": GlobalAvgPool2D,
    "GlobalMaxPooling2D": GlobalMaxPool2D,
    "ReLU": ReLU,
    "ThresholdedReLU": ThresholdedReLU,
    "LeakyReLU": LeakyReLU,
    "ELU": ELU,
    "PReLU": PReLU,
    "Softmax": Softmax,
    "BatchNormalization": BatchNorm,
    "Add": Add,
    "Subtract": Subtract,
    "Multiply": Multiply,
    "Average": Average,
    "Maximum": Maximum,
    "Minimum": Minimum,
    "Concatenate": Concatenate,
}

KERAS_LAYER_ALIASES: Dict[str, str] = {
    "Convolution2D": "Conv2D",
    "MaxPool2D": "MaxPooling2D",
    "AvgPool2D": "AveragePooling2D",
    "GlobalAvgPool2D": "GlobalAveragePooling2D",
    "GlobalMaxPool2D": "GlobalMaxPooling2D",
}


def keras_class_name(layer: Layer) -> str:
    """Keras class name under which ``layer`` is serialized."""
    for name, layer_cls in KERAS_LAYERS.items():
        if type(layer) is layer_cls:
            return name
    raise ValueError(f"Layer type {type(layer).__name__} has no Keras counterpart")

# ---------------------------------------------------------------------

__all__ = [
    "Layer",
    "variable_name",
    "Input",
    "Dense",
    "Flatten",
    "Reshape",
    "Dropout",
    "ActivationLayer",
    "Conv2D",
    "DepthwiseConv2D",
    "ZeroPadding2D",
    "Cropping2D",
    "MaxPool2D",
    "AvgPool2D",
    "GlobalAvgPool2D",
    "GlobalMaxPool2D",
    "ReLU",
    "ThresholdedReLU",
    "LeakyReLU",
    "ELU",
    "PReLU",
    "Softmax",
    "BatchNorm",
    "Merge",
    "Add",
    "Subtract",
    "Multiply",
    "Average",
    "Maximum",
    "Minimum",
    "Concatenate",
    "KERAS_LAYERS",
    "KERAS_LAYER_ALIASES",
    "keras_class_name",
]

import tensorflow as tf
from typing import Any, Optional, Sequence, Union

from dl_modeling.utils.shapes import conv_output_length
from .convolutional import normalize_padding, normalize_tuple
from .layer import Layer

# ---------------------------------------------------------------------


class _Pool2D(Layer):
    """Shared logic of windowed 2D pooling."""

    def __init__(
            self,
            pool_size: Union[int, Sequence[int]] = (2, 2),
            strides: Optional[Union[int, Sequence[int]]] = None,
            padding: str = "valid",
            name: str = "",
            trainable: bool = True,
            **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        self.pool_size = normalize_tuple(pool_size, 2, "pool_size")
        self.strides = self.pool_size if strides is None else normalize_tuple(strides, 2, "strides")
        self.padding = normalize_padding(padding)

    def build(self, input_shape):
        if len(input_shape) != 4:
            raise ValueError(f"[{self.name}] expects 4D inputs, received shape: {tuple(input_shape)}")
        super().build(input_shape)

    def compute_output_shape(self, input_shape):
        rows = conv_output_length(input_shape[1], self.pool_size[0], self.padding, self.strides[0])
        cols = conv_output_length(input_shape[2], self.pool_size[1], self.padding, self.strides[1])
        return (input_shape[0], rows, cols, input_shape[3])

    def get_config(self):
        config = super().get_config()
        config.update({
            "pool_size": list(self.pool_size),
            "padding": self.padding,
            "strides": list(self.strides),
            "data_format": "channels_last",
        })
        return config


class MaxPool2D(_Pool2D):
    """Max pooling over spatial windows."""

    def forward(self, inputs, training=False):
        return tf.nn.max_pool2d(inputs, self.pool_size, self.strides, self.padding.upper())


class AvgPool2D(_Pool2D):
    """Average pooling over spatial windows."""

    def forward(self, inputs, training=False):
        return tf.nn.avg_pool2d(inputs, self.pool_size, self.strides, self.padding.upper())

# ---------------------------------------------------------------------


class _GlobalPool2D(Layer):
    def __init__(self, keepdims: bool = False, name: str = "", trainable: bool = True, **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        self.keepdims = keepdims

    def compute_output_shape(self, input_shape):
        if self.keepdims:
            return (input_shape[0], 1, 1, input_shape[3])
        return (input_shape[0], input_shape[3])

    def get_config(self):
        config = super().get_config()
        config.update({"data_format": "channels_last", "keepdims": self.keepdims})
        return config


class GlobalAvgPool2D(_GlobalPool2D):
    """Average over the spatial dimensions."""

    def forward(self, inputs, training=False):
        return tf.reduce_mean(inputs, axis=[1, 2], keepdims=self.keepdims)


class GlobalMaxPool2D(_GlobalPool2D):
    """Maximum over the spatial dimensions."""

    def forward(self, inputs, training=False):
        return tf.reduce_max(inputs, axis=[1, 2], keepdims=self.keepdims)

# ---------------------------------------------------------------------

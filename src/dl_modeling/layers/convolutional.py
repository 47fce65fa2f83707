import tensorflow as tf
from typing import Any, Sequence, Tuple, Union

from dl_modeling.activations import Activation, Activations, serialize_activation
from dl_modeling.constants import BIAS, DEPTHWISE_KERNEL, KERNEL
from dl_modeling.initializers import get_initializer, serialize_initializer
from dl_modeling.regularizers import get_regularizer, serialize_regularizer
from dl_modeling.utils.shapes import conv_output_length
from .layer import Layer

# ---------------------------------------------------------------------

PADDINGS = ("same", "valid")

# ---------------------------------------------------------------------


def normalize_tuple(value: Union[int, Sequence[int]], n: int, name: str) -> Tuple[int, ...]:
    """Turn an int or a sequence of ``n`` ints into a tuple of ``n`` ints."""
    if isinstance(value, int):
        result = (value,) * n
    else:
        result = tuple(int(v) for v in value)
        if len(result) != n:
            raise ValueError(f"{name} should have {n} elements, received: {name}={value}")
    if any(v <= 0 for v in result):
        raise ValueError(f"{name} should contain positive integers, received: {name}={value}")
    return result


def normalize_padding(padding: str) -> str:
    padding = padding.lower()
    if padding not in PADDINGS:
        raise ValueError(f"Unknown padding: [{padding}]. Supported paddings: {list(PADDINGS)}")
    return padding


def normalize_cropping(value, name: str) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Turn ``int``, ``(sym_h, sym_w)`` or ``((top, bottom), (left, right))`` into the last form."""
    if isinstance(value, int):
        result = ((value, value), (value, value))
    elif len(value) == 2 and all(isinstance(v, int) for v in value):
        result = ((value[0], value[0]), (value[1], value[1]))
    elif len(value) == 2:
        result = (tuple(int(v) for v in value[0]), tuple(int(v) for v in value[1]))
    else:
        raise ValueError(f"Cannot interpret {name}: {value}")
    if any(v < 0 for pair in result for v in pair):
        raise ValueError(f"{name} should not be negative, received: {name}={value}")
    return result

# ---------------------------------------------------------------------


class Conv2D(Layer):
    """2D convolution over ``(batch, height, width, channels)`` inputs.

    Args:
        filters: Number of output channels.
        kernel_size: Height and width of the convolution window.
        strides: Strides along height and width.
        padding: ``"same"`` or ``"valid"``.
        dilation_rate: Dilation along height and width.
        activation: Activation applied to the output.
        use_bias: Whether the layer has a bias vector.
        kernel_initializer: Initializer of the kernel.
        bias_initializer: Initializer of the bias.
        kernel_regularizer: Optional kernel penalty.
        bias_regularizer: Optional bias penalty.
        activity_regularizer: Optional penalty on the layer output.
    """

    def __init__(
            self,
            filters: int = 32,
            kernel_size: Union[int, Sequence[int]] = (3, 3),
            strides: Union[int, Sequence[int]] = (1, 1),
            padding: str = "same",
            dilation_rate: Union[int, Sequence[int]] = (1, 1),
            activation: Union[str, Activations, Activation] = Activations.RELU,
            use_bias: bool = True,
            kernel_initializer="glorot_uniform",
            bias_initializer="zeros",
            kernel_regularizer=None,
            bias_regularizer=None,
            activity_regularizer=None,
            name: str = "",
            trainable: bool = True,
            **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        if filters <= 0:
            raise ValueError(f"filters should be positive, received: filters={filters}")
        self.filters = int(filters)
        self.kernel_size = normalize_tuple(kernel_size, 2, "kernel_size")
        self.strides = normalize_tuple(strides, 2, "strides")
        self.dilation_rate = normalize_tuple(dilation_rate, 2, "dilation_rate")
        self.padding = normalize_padding(padding)
        self.activation = Activations.convert(activation)
        self.use_bias = use_bias
        self.kernel_initializer = get_initializer(kernel_initializer)
        self.bias_initializer = get_initializer(bias_initializer)
        self.kernel_regularizer = get_regularizer(kernel_regularizer)
        self.bias_regularizer = get_regularizer(bias_regularizer)
        self.activity_regularizer = get_regularizer(activity_regularizer)
        self.kernel = None
        self.bias = None

    def build(self, input_shape):
        if len(input_shape) != 4:
            raise ValueError(f"[{self.name}] expects 4D inputs, received shape: {tuple(input_shape)}")
        channels = input_shape[-1]
        self.kernel = self.add_weight(
            KERNEL, self.kernel_size + (channels, self.filters), self.kernel_initializer, self.kernel_regularizer)
        if self.use_bias:
            self.bias = self.add_weight(
                BIAS, (self.filters,), self.bias_initializer, self.bias_regularizer)
        super().build(input_shape)

    def forward(self, inputs, training=False):
        outputs = tf.nn.conv2d(
            inputs,
            self.kernel,
            strides=(1,) + self.strides + (1,),
            padding=self.padding.upper(),
            dilations=(1,) + self.dilation_rate + (1,)
        )
        if self.use_bias:
            outputs = tf.nn.bias_add(outputs, self.bias)
        return self.activation(outputs)

    def compute_output_shape(self, input_shape):
        rows = conv_output_length(
            input_shape[1], self.kernel_size[0], self.padding, self.strides[0], self.dilation_rate[0])
        cols = conv_output_length(
            input_shape[2], self.kernel_size[1], self.padding, self.strides[1], self.dilation_rate[1])
        return (input_shape[0], rows, cols, self.filters)

    def get_config(self):
        config = super().get_config()
        config.update({
            "filters": self.filters,
            "kernel_size": list(self.kernel_size),
            "strides": list(self.strides),
            "padding": self.padding,
            "data_format": "channels_last",
            "dilation_rate": list(self.dilation_rate),
            "activation": serialize_activation(self.activation),
            "use_bias": self.use_bias,
            "kernel_initializer": serialize_initializer(self.kernel_initializer),
            "bias_initializer": serialize_initializer(self.bias_initializer),
            "kernel_regularizer": None if self.kernel_regularizer is None else serialize_regularizer(
                self.kernel_regularizer),
            "bias_regularizer": None if self.bias_regularizer is None else serialize_regularizer(
                self.bias_regularizer),
            "activity_regularizer": None if self.activity_regularizer is None else serialize_regularizer(
                self.activity_regularizer),
        })
        return config

# ---------------------------------------------------------------------


class DepthwiseConv2D(Layer):
    """Depthwise 2D convolution, each input channel gets its own filters.

    Produces ``channels * depth_multiplier`` output channels.
    """

    keras_weight_aliases = {KERNEL: DEPTHWISE_KERNEL}

    def __init__(
            self,
            kernel_size: Union[int, Sequence[int]] = (3, 3),
            strides: Union[int, Sequence[int]] = (1, 1),
            padding: str = "same",
            depth_multiplier: int = 1,
            dilation_rate: Union[int, Sequence[int]] = (1, 1),
            activation: Union[str, Activations, Activation] = Activations.RELU,
            use_bias: bool = True,
            depthwise_initializer="glorot_uniform",
            bias_initializer="zeros",
            depthwise_regularizer=None,
            bias_regularizer=None,
            activity_regularizer=None,
            name: str = "",
            trainable: bool = True,
            **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        if depth_multiplier <= 0:
            raise ValueError(f"depth_multiplier should be positive, received: {depth_multiplier}")
        self.kernel_size = normalize_tuple(kernel_size, 2, "kernel_size")
        self.strides = normalize_tuple(strides, 2, "strides")
        self.dilation_rate = normalize_tuple(dilation_rate, 2, "dilation_rate")
        if self.strides != (1, 1) and self.dilation_rate != (1, 1):
            raise ValueError("strides > 1 are not supported together with dilation_rate > 1")
        self.padding = normalize_padding(padding)
        self.depth_multiplier = int(depth_multiplier)
        self.activation = Activations.convert(activation)
        self.use_bias = use_bias
        self.depthwise_initializer = get_initializer(depthwise_initializer)
        self.bias_initializer = get_initializer(bias_initializer)
        self.depthwise_regularizer = get_regularizer(depthwise_regularizer)
        self.bias_regularizer = get_regularizer(bias_regularizer)
        self.activity_regularizer = get_regularizer(activity_regularizer)
        self.depthwise_kernel = None
        self.bias = None

    def build(self, input_shape):
        if len(input_shape) != 4:
            raise ValueError(f"[{self.name}] expects 4D inputs, received shape: {tuple(input_shape)}")
        channels = input_shape[-1]
        self.depthwise_kernel = self.add_weight(
            DEPTHWISE_KERNEL,
            self.kernel_size + (channels, self.depth_multiplier),
            self.depthwise_initializer,
            self.depthwise_regularizer
        )
        if self.use_bias:
            self.bias = self.add_weight(
                BIAS, (channels * self.depth_multiplier,), self.bias_initializer, self.bias_regularizer)
        super().build(input_shape)

    def forward(self, inputs, training=False):
        outputs = tf.nn.depthwise_conv2d(
            inputs,
            self.depthwise_kernel,
            strides=(1,) + self.strides + (1,),
            padding=self.padding.upper(),
            dilations=self.dilation_rate
        )
        if self.use_bias:
            outputs = tf.nn.bias_add(outputs, self.bias)
        return self.activation(outputs)

    def compute_output_shape(self, input_shape):
        rows = conv_output_length(
            input_shape[1], self.kernel_size[0], self.padding, self.strides[0], self.dilation_rate[0])
        cols = conv_output_length(
            input_shape[2], self.kernel_size[1], self.padding, self.strides[1], self.dilation_rate[1])
        return (input_shape[0], rows, cols, input_shape[3] * self.depth_multiplier)

    def get_config(self):
        config = super().get_config()
        config.update({
            "kernel_size": list(self.kernel_size),
            "strides": list(self.strides),
            "padding": self.padding,
            "depth_multiplier": self.depth_multiplier,
            "data_format": "channels_last",
            "dilation_rate": list(self.dilation_rate),
            "activation": serialize_activation(self.activation),
            "use_bias": self.use_bias,
            "depthwise_initializer": serialize_initializer(self.depthwise_initializer),
            "bias_initializer": serialize_initializer(self.bias_initializer),
            "depthwise_regularizer": None if self.depthwise_regularizer is None else serialize_regularizer(
                self.depthwise_regularizer),
            "bias_regularizer": None if self.bias_regularizer is None else serialize_regularizer(
                self.bias_regularizer),
            "activity_regularizer": None if self.activity_regularizer is None else serialize_regularizer(
                self.activity_regularizer),
        })
        return config

# ---------------------------------------------------------------------


class ZeroPadding2D(Layer):
    """Pads the rows and columns of an image with zeros."""

    def __init__(self, padding=(1, 1), name: str = "", trainable: bool = True, **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        self.padding = normalize_cropping(padding, "padding")

    def forward(self, inputs, training=False):
        (top, bottom), (left, right) = self.padding
        return tf.pad(inputs, [[0, 0], [top, bottom], [left, right], [0, 0]])

    def compute_output_shape(self, input_shape):
        (top, bottom), (left, right) = self.padding
        rows = None if input_shape[1] is None else input_shape[1] + top + bottom
        cols = None if input_shape[2] is None else input_shape[2] + left + right
        return (input_shape[0], rows, cols, input_shape[3])

    def get_config(self):
        config = super().get_config()
        config.update({"padding": [list(p) for p in self.padding], "data_format": "channels_last"})
        return config


class Cropping2D(Layer):
    """Crops rows and columns at the borders of an image."""

    def __init__(self, cropping=((0, 0), (0, 0)), name: str = "", trainable: bool = True, **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        self.cropping = normalize_cropping(cropping, "cropping")

    def build(self, input_shape):
        (top, bottom), (left, right) = self.cropping
        if input_shape[1] is not None and top + bottom >= input_shape[1]:
            raise ValueError(f"Cropping {self.cropping} removes every row of inputs {tuple(input_shape)}")
        if input_shape[2] is not None and left + right >= input_shape[2]:
            raise ValueError(f"Cropping {self.cropping} removes every column of inputs {tuple(input_shape)}")
        super().build(input_shape)

    def forward(self, inputs, training=False):
        (top, bottom), (left, right) = self.cropping
        height = tf.shape(inputs)[1]
        width = tf.shape(inputs)[2]
        return inputs[:, top:height - bottom, left:width - right, :]

    def compute_output_shape(self, input_shape):
        (top, bottom), (left, right) = self.cropping
        rows = None if input_shape[1] is None else input_shape[1] - top - bottom
        cols = None if input_shape[2] is None else input_shape[2] - left - right
        return (input_shape[0], rows, cols, input_shape[3])

    def get_config(self):
        config = super().get_config()
        config.update({"cropping": [list(c) for c in self.cropping], "data_format": "channels_last"})
        return config

# ---------------------------------------------------------------------

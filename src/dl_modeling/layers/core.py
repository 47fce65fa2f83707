import tensorflow as tf
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from dl_modeling.activations import Activation, Activations, serialize_activation
from dl_modeling.constants import BIAS, KERNEL
from dl_modeling.initializers import get_initializer, serialize_initializer
from dl_modeling.regularizers import get_regularizer, serialize_regularizer
from dl_modeling.utils.shapes import num_elements, to_shape
from .layer import Layer

# ---------------------------------------------------------------------


def _serialize_optional_regularizer(regularizer):
    return None if regularizer is None else serialize_regularizer(regularizer)

# ---------------------------------------------------------------------


class Input(Layer):
    """Entry point of a model, declares the shape of one sample.

    Args:
        *dims: Sample dimensions, without the batch dimension.
        name: Layer name.

    Example:
        >>> Input(28, 28, 1)  # MNIST images
    """

    def __init__(self, *dims: int, name: str = "", **kwargs: Any):
        batch_shape = kwargs.pop("batch_input_shape", None) or kwargs.pop("batch_shape", None)
        kwargs.pop("trainable", None)
        super().__init__(name=name, trainable=False, **kwargs)
        if batch_shape is not None:
            dims = tuple(batch_shape)[1:]
        if not dims:
            raise ValueError("Input requires at least one sample dimension")
        if any(d is not None and int(d) <= 0 for d in dims):
            raise ValueError(f"Input dimensions should be positive, received: {dims}")
        self.dims: Tuple[Optional[int], ...] = to_shape(dims)

    @property
    def batch_input_shape(self):
        return (None,) + self.dims

    def build(self, input_shape=None):
        super().build(self.batch_input_shape)

    def forward(self, inputs, training=False):
        return tf.cast(inputs, self.dtype)

    def compute_output_shape(self, input_shape=None):
        return self.batch_input_shape

    def get_config(self):
        config = super().get_config()
        config.pop("trainable")
        config.update({"batch_input_shape": list(self.batch_input_shape), "sparse": False, "ragged": False})
        return config

    @classmethod
    def from_config(cls, config):
        batch_shape = config.get("batch_input_shape") or config.get("batch_shape")
        if batch_shape is None:
            raise ValueError(f"InputLayer config has no batch shape: {config}")
        return cls(*tuple(batch_shape)[1:], name=config.get("name", ""))

# ---------------------------------------------------------------------


class Dense(Layer):
    """Densely connected layer, ``activation(inputs @ kernel + bias)``.

    Args:
        units: Dimensionality of the output space.
        activation: Activation applied to the output.
        use_bias: Whether the layer has a bias vector.
        kernel_initializer: Initializer of the kernel.
        bias_initializer: Initializer of the bias.
        kernel_regularizer: Optional kernel penalty.
        bias_regularizer: Optional bias penalty.
        activity_regularizer: Optional penalty on the layer output.
        name: Layer name.
        trainable: Whether the variables are trained.
    """

    def __init__(
            self,
            units: int = 128,
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
        if units <= 0:
            raise ValueError(f"units should be positive, received: units={units}")
        self.units = int(units)
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
        input_dim = input_shape[-1]
        if input_dim is None:
            raise ValueError(f"The last dimension of the inputs of [{self.name}] should be defined")
        self.kernel = self.add_weight(
            KERNEL, (input_dim, self.units), self.kernel_initializer, self.kernel_regularizer)
        if self.use_bias:
            self.bias = self.add_weight(
                BIAS, (self.units,), self.bias_initializer, self.bias_regularizer)
        super().build(input_shape)

    def forward(self, inputs, training=False):
        if inputs.shape.rank == 2:
            outputs = tf.matmul(inputs, self.kernel)
        else:
            outputs = tf.tensordot(inputs, self.kernel, axes=[[inputs.shape.rank - 1], [0]])
        if self.use_bias:
            outputs = tf.nn.bias_add(outputs, self.bias)
        return self.activation(outputs)

    def compute_output_shape(self, input_shape):
        return tuple(input_shape[:-1]) + (self.units,)

    def get_config(self):
        config = super().get_config()
        config.update({
            "units": self.units,
            "activation": serialize_activation(self.activation),
            "use_bias": self.use_bias,
            "kernel_initializer": serialize_initializer(self.kernel_initializer),
            "bias_initializer": serialize_initializer(self.bias_initializer),
            "kernel_regularizer": _serialize_optional_regularizer(self.kernel_regularizer),
            "bias_regularizer": _serialize_optional_regularizer(self.bias_regularizer),
            "activity_regularizer": _serialize_optional_regularizer(self.activity_regularizer),
            "kernel_constraint": None,
            "bias_constraint": None,
        })
        return config

# ---------------------------------------------------------------------


class Flatten(Layer):
    """Flattens every sample to a vector, keeps the batch dimension."""

    def forward(self, inputs, training=False):
        return tf.reshape(inputs, (tf.shape(inputs)[0], -1))

    def compute_output_shape(self, input_shape):
        return (input_shape[0], num_elements(input_shape[1:]))

    def get_config(self):
        config = super().get_config()
        config["data_format"] = "channels_last"
        return config


class Reshape(Layer):
    """Reshapes every sample to ``target_shape`` (one dimension may be ``-1``)."""

    def __init__(self, target_shape: Sequence[int] = (), name: str = "", trainable: bool = True, **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        if not target_shape:
            raise ValueError("target_shape should not be empty")
        if sum(1 for d in target_shape if d == -1) > 1:
            raise ValueError(f"Only one dimension of target_shape may be -1, received: {tuple(target_shape)}")
        self.target_shape = tuple(int(d) for d in target_shape)

    def forward(self, inputs, training=False):
        return tf.reshape(inputs, (tf.shape(inputs)[0],) + self.target_shape)

    def compute_output_shape(self, input_shape):
        target = list(self.target_shape)
        if -1 in target:
            known = num_elements(d for d in target if d != -1)
            target[target.index(-1)] = num_elements(input_shape[1:]) // known
        elif num_elements(input_shape[1:]) != num_elements(target):
            raise ValueError(
                f"Cannot reshape {tuple(input_shape[1:])} into {self.target_shape} in layer [{self.name}]"
            )
        return (input_shape[0],) + tuple(target)

    def get_config(self):
        config = super().get_config()
        config["target_shape"] = list(self.target_shape)
        return config


class Dropout(Layer):
    """Randomly zeroes a ``rate`` fraction of the inputs during training.

    Kept inputs are scaled by ``1 / (1 - rate)``, inference is the identity.
    """

    def __init__(self, rate: float = 0.1, seed: Optional[int] = None, name: str = "", trainable: bool = True,
                 **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        if not 0.0 <= rate < 1.0:
            raise ValueError(f"rate should be in [0, 1), received: rate={rate}")
        self.rate = float(rate)
        self.seed = seed

    def forward(self, inputs, training=False):
        if training and self.rate > 0.0:
            return tf.nn.dropout(inputs, rate=self.rate, seed=self.seed)
        return tf.identity(inputs)

    def get_config(self):
        config = super().get_config()
        config.update({"rate": self.rate, "noise_shape": None, "seed": self.seed})
        return config


class ActivationLayer(Layer):
    """Applies an activation function, Keras ``Activation`` layer."""

    def __init__(self, activation: Union[str, Activations, Activation] = Activations.RELU, name: str = "",
                 trainable: bool = True, **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        self.activation = Activations.convert(activation)

    def forward(self, inputs, training=False):
        return self.activation(inputs)

    def get_config(self):
        config = super().get_config()
        config["activation"] = serialize_activation(self.activation)
        return config

# ---------------------------------------------------------------------

"""
Base layer.

A layer owns its variables, knows how to infer its output shape from its
input shape and assembles the TensorFlow ops of its forward pass. Layers are
linked into graphs in two ways:

- a :class:`~dl_modeling.models.sequential.Sequential` model chains them in
  the order they are given;
- calling a layer on another layer (``Dense(10)(flatten)``) records the
  inbound connection, which the
  :class:`~dl_modeling.models.functional.Functional` model later sorts
  topologically.

Calling a layer on a tensor instead runs the forward pass, building the
layer first when needed.
"""

import inspect
import numpy as np
import tensorflow as tf
from typing import Any, Dict, List, Optional, Sequence, Union

from dl_modeling.constants import DEFAULT_DTYPE
from dl_modeling.exceptions import LayerNotBuiltError, WeightsMismatchError
from dl_modeling.initializers import Initializer, get_initializer
from dl_modeling.regularizers import Regularizer, get_regularizer
from dl_modeling.utils.logger import logger
from dl_modeling.utils.shapes import Shape, to_shape, unique_name

# ---------------------------------------------------------------------

# Keras config keys that carry no hyperparameter for this package
_IGNORED_CONFIG_KEYS = frozenset({
    "dtype",
    "kernel_constraint",
    "bias_constraint",
    "depthwise_constraint",
    "beta_constraint",
    "gamma_constraint",
    "alpha_constraint",
    "data_format",
    "batch_input_shape",
    "batch_shape",
    "sparse",
    "ragged",
    "synchronized",
    "lora_rank",
    "renorm",
    "renorm_clipping",
    "renorm_momentum",
    "fused",
    "virtual_batch_size",
    "adjustment",
    "groups",
    "noise_shape",
})

# ---------------------------------------------------------------------


def variable_name(variable: tf.Variable) -> str:
    """Name of a variable without the ``:0`` output suffix."""
    return variable.name.split(":")[0]

# ---------------------------------------------------------------------


class Layer:
    """Base class of every layer.

    Args:
        name: Layer name, generated from the class name when empty.
        trainable: Whether the layer variables are updated during training.
    """

    # weight kinds used by other Keras versions, mapped to the kinds of this layer
    keras_weight_aliases: Dict[str, str] = {}

    def __init__(self, name: str = "", trainable: bool = True, **kwargs: Any):
        for key in kwargs:
            if key not in _IGNORED_CONFIG_KEYS:
                raise TypeError(f"{self.__class__.__name__} got an unexpected keyword argument '{key}'")
        self.name = name or unique_name(self.__class__.__name__)
        self.trainable = trainable
        self.dtype = DEFAULT_DTYPE
        self.built = False
        self.input_shape: Optional[Union[Shape, List[Shape]]] = None
        self.output_shape: Optional[Shape] = None
        self.inbound_layers: List["Layer"] = []
        self.outbound_layers: List["Layer"] = []
        self.activity_regularizer: Optional[Regularizer] = None
        self._weights: Dict[str, tf.Variable] = {}
        self._trainable_weights: Dict[str, bool] = {}
        self._regularizers: Dict[str, Regularizer] = {}

    # -----------------------------------------------------------------
    # graph wiring
    # -----------------------------------------------------------------

    def __call__(self, inputs, training: bool = False):
        """Link this layer to inbound layers, or run it on a tensor."""
        if isinstance(inputs, Layer) or (
                isinstance(inputs, (list, tuple)) and inputs and all(isinstance(i, Layer) for i in inputs)):
            inbound = [inputs] if isinstance(inputs, Layer) else list(inputs)
            self.inbound_layers = inbound
            for layer in inbound:
                layer.outbound_layers.append(self)
            return self

        if isinstance(inputs, (list, tuple)):
            tensors = [tf.convert_to_tensor(i, dtype=self.dtype) for i in inputs]
            shape = [to_shape(t.shape) for t in tensors]
        else:
            tensors = tf.convert_to_tensor(inputs, dtype=self.dtype)
            shape = to_shape(tensors.shape)
        if not self.built:
            self.build(shape)
            self.output_shape = self.compute_output_shape(shape)
        return self.forward(tensors, training=training)

    # -----------------------------------------------------------------
    # lifecycle
    # -----------------------------------------------------------------

    def build(self, input_shape) -> None:
        """Create the layer variables for ``input_shape``.

        Subclasses create their weights with :meth:`add_weight` and then call
        ``super().build(input_shape)``.
        """
        self.input_shape = input_shape
        self.built = True

    def forward(self, inputs, training: bool = False) -> tf.Tensor:
        raise NotImplementedError

    def compute_output_shape(self, input_shape) -> Shape:
        return input_shape

    def add_weight(
            self,
            kind: str,
            shape: Sequence[int],
            initializer: Union[str, Dict[str, Any], Initializer],
            regularizer: Optional[Regularizer] = None,
            trainable: bool = True) -> tf.Variable:
        """Create a variable named ``{layer name}/{kind}``."""
        if kind in self._weights:
            raise ValueError(f"Layer [{self.name}] already has a [{kind}] weight")
        initializer = get_initializer(initializer)
        shape = tuple(int(d) for d in shape)
        variable = tf.Variable(
            initializer(shape, self.dtype),
            name=f"{self.name}/{kind}",
            trainable=trainable,
            dtype=self.dtype
        )
        self._weights[kind] = variable
        self._trainable_weights[kind] = trainable
        if regularizer is not None:
            self._regularizers[kind] = regularizer
        logger.debug(f"Created variable [{variable_name(variable)}] with shape {shape}")
        return variable

    # -----------------------------------------------------------------
    # variables
    # -----------------------------------------------------------------

    @property
    def weights(self) -> Dict[str, tf.Variable]:
        """Variables of the layer keyed by weight kind, in creation order."""
        return dict(self._weights)

    @property
    def variables(self) -> List[tf.Variable]:
        return list(self._weights.values())

    @property
    def trainable_variables(self) -> List[tf.Variable]:
        if not self.trainable:
            return []
        return [v for k, v in self._weights.items() if self._trainable_weights[k]]

    @property
    def non_trainable_variables(self) -> List[tf.Variable]:
        trainable = {id(v) for v in self.trainable_variables}
        return [v for v in self._weights.values() if id(v) not in trainable]

    @property
    def param_count(self) -> int:
        return int(sum(np.prod(v.shape) for v in self._weights.values()))

    def regularization_losses(self) -> List[tf.Tensor]:
        """Penalties of the regularized weights of this layer."""
        return [
            regularizer(self._weights[kind])
            for kind, regularizer in self._regularizers.items()
        ]

    def get_weights(self) -> Dict[str, np.ndarray]:
        self._check_built()
        return {kind: v.numpy() for kind, v in self._weights.items()}

    def set_weights(self, weights: Union[Dict[str, np.ndarray], Sequence[np.ndarray]]) -> None:
        """Assign new values to the layer variables.

        Args:
            weights: Arrays keyed by weight kind, or a sequence in creation order.

        Raises:
            WeightsMismatchError: On unknown kinds, wrong count or wrong shapes.
        """
        self._check_built()
        if not isinstance(weights, dict):
            weights = list(weights)
            if len(weights) != len(self._weights):
                raise WeightsMismatchError(
                    f"Layer [{self.name}] expects {len(self._weights)} weights, received {len(weights)}"
                )
            weights = dict(zip(self._weights.keys(), weights))
        for kind, value in weights.items():
            if kind not in self._weights:
                raise WeightsMismatchError(
                    f"Layer [{self.name}] has no [{kind}] weight, available: {list(self._weights)}"
                )
            variable = self._weights[kind]
            value = np.asarray(value)
            if tuple(value.shape) != tuple(variable.shape):
                raise WeightsMismatchError(
                    f"Weight [{variable_name(variable)}] has shape {tuple(variable.shape)}, "
                    f"received {tuple(value.shape)}"
                )
            variable.assign(value.astype(variable.dtype.as_numpy_dtype))

    def _check_built(self) -> None:
        if not self.built:
            raise LayerNotBuiltError(f"Layer [{self.name}] is not built yet")

    # -----------------------------------------------------------------
    # serialization
    # -----------------------------------------------------------------

    def get_config(self) -> Dict[str, Any]:
        """Keras compatible config of the layer."""
        return {"name": self.name, "trainable": self.trainable, "dtype": self.dtype.name}

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Layer":
        """Create a layer from a Keras config, dropping keys it has no use for."""
        parameters = inspect.signature(cls.__init__).parameters
        accepted = {}
        for key, value in config.items():
            if key in parameters and key not in ("self", "kwargs"):
                accepted[key] = value
            elif key not in _IGNORED_CONFIG_KEYS:
                logger.warning(f"Ignoring unsupported [{cls.__name__}] config key [{key}]")
        return cls(**accepted)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"

# ---------------------------------------------------------------------

"""Linear stack of layers."""

from pathlib import Path
from typing import Sequence, Union

from dl_modeling.layers import Input, Layer, Merge
from dl_modeling.utils.logger import logger
from .model import GraphTrainableModel

# ---------------------------------------------------------------------


class Sequential(GraphTrainableModel):
    """Model whose layers are applied one after the other.

    Example:
        >>> model = Sequential.of(
        ...     Input(28, 28, 1),
        ...     Flatten(),
        ...     Dense(128),
        ...     Dense(10, activation=Activations.LINEAR)
        ... )
    """

    def __init__(self, layers: Sequence[Layer], name: str = ""):
        layers = list(layers)
        if layers and not isinstance(layers[0], Input):
            raise ValueError(
                f"The first layer of a Sequential model should be an Input layer, received: {layers[0]!r}"
            )
        for layer in layers[1:]:
            if isinstance(layer, (Input, Merge)):
                raise ValueError(
                    f"Layer [{layer.name}] of type {type(layer).__name__} cannot be used in a Sequential model"
                )
        for previous, layer in zip(layers, layers[1:]):
            layer(previous)
        super().__init__(layers, name=name)
        logger.debug(f"Created Sequential model [{self.name}] with {len(layers)} layers")

    @classmethod
    def of(cls, input_layer: Input, *layers: Layer, name: str = "") -> "Sequential":
        return cls([input_layer, *layers], name=name)

    @classmethod
    def load_model_configuration(cls, path: Union[str, Path]) -> "Sequential":
        """Create a model from a Keras JSON config of a Sequential model."""
        from dl_modeling.inference.keras import load_model_configuration

        model = load_model_configuration(path)
        if not isinstance(model, cls):
            raise ValueError(f"[{path}] describes a {type(model).__name__} model, not a Sequential one")
        return model

# ---------------------------------------------------------------------

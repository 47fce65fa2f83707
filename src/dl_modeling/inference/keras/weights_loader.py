"""
Keras HDF5 weights to model variables.

Keras (2.x, and the legacy ``.h5`` format of 3.x) stores weights as::

    /                               or /model_weights when saved with the model
      attrs["layer_names"]          names of every layer
      /<layer name>
        attrs["weight_names"]       e.g. ["dense/kernel:0", "dense/bias:0"]
        /<layer name>/kernel:0      dataset

The last path component of a weight name, without the ``:0`` suffix, is the
weight kind of :class:`~dl_modeling.layers.Layer` variables.
"""

import h5py
import numpy as np
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from dl_modeling.constants import MODEL_WEIGHTS_GROUP, OPTIMIZER_WEIGHTS_GROUP
from dl_modeling.exceptions import ModelNotCompiledError, WeightsMismatchError
from dl_modeling.layers import Layer
from dl_modeling.models import GraphTrainableModel
from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------


def decode_names(values: Iterable) -> List[str]:
    """HDF5 string attributes come back as bytes or str depending on h5py and the writer."""
    return [v.decode("utf-8") if isinstance(v, bytes) else str(v) for v in values]


def weight_kind(weight_name: str) -> str:
    """``"block1_conv1/kernel:0"`` to ``"kernel"``."""
    return weight_name.split("/")[-1].split(":")[0]


def _weights_root(f: h5py.File) -> h5py.Group:
    return f[MODEL_WEIGHTS_GROUP] if MODEL_WEIGHTS_GROUP in f else f


def read_layer_weights(group: h5py.Group) -> Dict[str, np.ndarray]:
    """Arrays of one layer group keyed by weight kind."""
    names = decode_names(group.attrs.get("weight_names", []))
    return {weight_kind(name): np.asarray(group[name][()]) for name in names}


def resolve_weight_kinds(layer: Layer, weights: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
    """Rename the weight kinds the layer knows under another name, e.g. Keras 3 depthwise ``kernel``."""
    kinds = layer.weights
    return {
        kind if kind in kinds else layer.keras_weight_aliases.get(kind, kind): value
        for kind, value in weights.items()
    }

# ---------------------------------------------------------------------


def load_weights(
        model: GraphTrainableModel,
        path: Union[str, Path],
        layers: Optional[Iterable[str]] = None,
        missing_ok: bool = False) -> List[str]:
    """Assign Keras HDF5 weights to the variables of ``model``.

    The model is built first if needed.

    Args:
        model: Target model.
        path: HDF5 weights file.
        layers: Names of the layers to load, every layer with variables when ``None``.
        missing_ok: Skip layers absent from the file instead of failing.

    Returns:
        Names of the layers whose weights were loaded.

    Raises:
        WeightsMismatchError: If a layer is missing from the file or its
            weights do not match the layer variables.
    """
    model.build()
    selected = None if layers is None else set(layers)
    if selected is not None:
        unknown = selected - {layer.name for layer in model.layers}
        if unknown:
            raise ValueError(f"Unknown layers {sorted(unknown)}")

    loaded = []
    try:
        with h5py.File(path, "r") as f:
            root = _weights_root(f)
            file_layers = decode_names(root.attrs["layer_names"]) if "layer_names" in root.attrs else list(root.keys())
            for layer in model.layers:
                if not layer.variables or (selected is not None and layer.name not in selected):
                    continue
                if layer.name not in file_layers or layer.name not in root:
                    if missing_ok:
                        logger.warning(f"No weights for layer [{layer.name}] in [{path}], keeping initial values")
                        continue
                    raise WeightsMismatchError(f"No weights for layer [{layer.name}] in [{path}]")
                weights = resolve_weight_kinds(layer, read_layer_weights(root[layer.name]))
                if not weights:
                    raise WeightsMismatchError(f"Layer [{layer.name}] has no weights in [{path}]")
                layer.set_weights(weights)
                loaded.append(layer.name)
                logger.debug(f"Loaded weights {list(weights)} of layer [{layer.name}]")

            model_layers = {layer.name for layer in model.layers}
            for name in file_layers:
                if name not in model_layers:
                    logger.debug(f"Layer [{name}] of [{path}] is not part of the model")
    except OSError as e:
        logger.error(f"Error reading weights [{path}]: {e}")
        raise

    logger.info(f"Loaded weights of {len(loaded)} layers from [{path}]")
    return loaded


def load_weights_for_frozen_layers(model: GraphTrainableModel, path: Union[str, Path]) -> List[str]:
    """Load weights only into non-trainable layers, trainable ones keep their initial values."""
    frozen = [layer.name for layer in model.layers if not layer.trainable and layer.name != model.input_layer.name]
    return load_weights(model, path, layers=frozen)


def load_optimizer_state(model: GraphTrainableModel, path: Union[str, Path]) -> int:
    """Restore optimizer slot values saved with ``optimizer_state=True``.

    Returns:
        Number of restored state variables.

    Raises:
        ModelNotCompiledError: If the model has no optimizer yet.
        WeightsMismatchError: If the file holds no optimizer state.
    """
    if not model.is_compiled or model.optimizer is None:
        raise ModelNotCompiledError("The model should be compiled before its optimizer state is loaded")
    try:
        with h5py.File(path, "r") as f:
            if OPTIMIZER_WEIGHTS_GROUP not in f:
                raise WeightsMismatchError(f"[{path}] holds no optimizer state")
            group = f[OPTIMIZER_WEIGHTS_GROUP]
            saved_name = group.attrs.get("optimizer_name")
            if isinstance(saved_name, bytes):
                saved_name = saved_name.decode("utf-8")
            if saved_name is not None and saved_name != model.optimizer.optimizer_name:
                logger.warning(
                    f"Optimizer state of [{saved_name}] loaded into [{model.optimizer.optimizer_name}]"
                )
            values = {
                name: np.asarray(group[name][()])
                for name in decode_names(group.attrs.get("weight_names", []))
            }
    except OSError as e:
        logger.error(f"Error reading optimizer state [{path}]: {e}")
        raise
    restored = model.optimizer.load_slot_values(values)
    logger.info(f"Restored {restored} optimizer state variables from [{path}]")
    return restored

# ---------------------------------------------------------------------

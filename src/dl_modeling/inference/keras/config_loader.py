"""
Keras JSON model configs to models.

Both layouts written by Keras are read:

- Keras 2: functional inbound nodes are ``[[["layer", 0, 0, {}], ...]]``
  and input layers carry ``batch_input_shape``;
- Keras 3: inbound nodes are ``[{"args": [<keras tensor>], "kwargs": {}}]``
  where every keras tensor records its ``keras_history`` and input layers
  carry ``batch_shape``.

Keras HDF5 files of complete models are accepted as well, their config is
stored in the ``model_config`` attribute.
"""

import json
import h5py
from pathlib import Path
from typing import Any, Dict, List, Union

from dl_modeling.exceptions import UnsupportedLayerError
from dl_modeling.layers import Input, KERAS_LAYER_ALIASES, KERAS_LAYERS, Layer
from dl_modeling.models import Functional, GraphTrainableModel, Sequential
from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------

HDF5_SUFFIXES = (".h5", ".hdf5", ".keras5")
_FUNCTIONAL_CLASS_NAMES = ("Functional", "Model")

# ---------------------------------------------------------------------


def read_model_configuration(path: Union[str, Path]) -> Dict[str, Any]:
    """Read the model config dict stored in a JSON file or a Keras HDF5 file."""
    path = Path(path)
    try:
        if path.suffix.lower() in HDF5_SUFFIXES:
            with h5py.File(path, "r") as f:
                if "model_config" not in f.attrs:
                    raise ValueError(f"[{path}] holds no model_config attribute")
                raw = f.attrs["model_config"]
                raw = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
        else:
            raw = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Error reading model configuration [{path}]: {e}")
        raise
    return json.loads(raw)


def load_model_configuration(path: Union[str, Path]) -> GraphTrainableModel:
    """Create a model from a Keras model config file.

    Raises:
        UnsupportedLayerError: If the config uses a layer class with no
            counterpart in :mod:`dl_modeling.layers`.
        ValueError: If the config is not a Sequential or functional model.
    """
    model = model_from_config(read_model_configuration(path))
    logger.info(f"Loaded model configuration [{model.name}] with {len(model.layers)} layers from [{path}]")
    return model


def model_from_config(config: Dict[str, Any]) -> GraphTrainableModel:
    class_name = config.get("class_name")
    model_config = config.get("config") or {}
    name = model_config.get("name", "")
    entries = model_config.get("layers") or []
    if not entries:
        raise ValueError("Model config has no layers")

    if class_name == "Sequential":
        layers = [layer_from_config(entry) for entry in entries]
        if not isinstance(layers[0], Input):
            layers.insert(0, _implicit_input(entries[0], model_config))
        return Sequential(layers, name=name)

    if class_name in _FUNCTIONAL_CLASS_NAMES:
        return _functional_from_config(model_config, name)

    raise ValueError(f"Unsupported model class: [{class_name}], expected Sequential or Functional")


def layer_from_config(entry: Dict[str, Any]) -> Layer:
    """Create one layer from a ``{"class_name", "config"}`` entry."""
    class_name = entry.get("class_name")
    class_name = KERAS_LAYER_ALIASES.get(class_name, class_name)
    if class_name not in KERAS_LAYERS:
        raise UnsupportedLayerError(
            f"Layer type [{entry.get('class_name')}] is not supported. "
            f"Supported types: {sorted(KERAS_LAYERS)}"
        )
    return KERAS_LAYERS[class_name].from_config(dict(entry.get("config") or {}))

# ---------------------------------------------------------------------


def _implicit_input(first_entry: Dict[str, Any], model_config: Dict[str, Any]) -> Input:
    # Keras 2 Sequential configs may declare the input shape on the first layer only
    layer_config = first_entry.get("config") or {}
    batch_shape = (
            layer_config.get("batch_input_shape")
            or layer_config.get("batch_shape")
            or model_config.get("build_input_shape")
    )
    if not batch_shape:
        raise ValueError("Sequential config declares no input shape")
    return Input(*tuple(batch_shape)[1:])


def _history_names(value: Any) -> List[str]:
    """Names of the layers referenced by Keras 3 tensors nested in ``value``."""
    if isinstance(value, dict):
        if value.get("class_name") == "__keras_tensor__":
            return [value["config"]["keras_history"][0]]
        return [name for item in value.values() for name in _history_names(item)]
    if isinstance(value, (list, tuple)):
        return [name for item in value for name in _history_names(item)]
    return []


def inbound_layer_names(entry: Dict[str, Any]) -> List[str]:
    """Names of the inbound layers of a functional layer entry, in call order."""
    nodes = entry.get("inbound_nodes") or []
    if not nodes:
        return []
    if len(nodes) > 1:
        raise ValueError(f"Layer [{entry.get('name')}] is shared between several calls, which is not supported")
    node = nodes[0]
    if isinstance(node, dict):
        return _history_names(node.get("args", []))
    return [str(inbound[0]) for inbound in node]


def _single_layer_name(value: Any, key: str) -> str:
    # [["name", 0, 0]] or ["name", 0, 0]
    if value and isinstance(value[0], str):
        return value[0]
    if not value or len(value) != 1:
        raise ValueError(f"Functional models with several {key} are not supported, received: {value}")
    return value[0][0]


def _functional_from_config(model_config: Dict[str, Any], name: str) -> Functional:
    layers: Dict[str, Layer] = {}
    inbound: Dict[str, List[str]] = {}
    for entry in model_config["layers"]:
        layer = layer_from_config(entry)
        layer_name = entry.get("name") or layer.name
        layer.name = layer_name
        layers[layer_name] = layer
        inbound[layer_name] = inbound_layer_names(entry)

    for layer_name, inbound_names in inbound.items():
        if not inbound_names:
            continue
        missing = [n for n in inbound_names if n not in layers]
        if missing:
            raise ValueError(f"Layer [{layer_name}] references unknown layers {missing}")
        inbound_layers = [layers[n] for n in inbound_names]
        layers[layer_name](inbound_layers[0] if len(inbound_layers) == 1 else inbound_layers)

    if "input_layers" in model_config:
        _single_layer_name(model_config["input_layers"], "input_layers")
    output_name = _single_layer_name(model_config.get("output_layers") or [], "output_layers")
    if output_name not in layers:
        raise ValueError(f"Output layer [{output_name}] is not defined in the config")
    return Functional.from_output(layers[output_name], name=name)

# ---------------------------------------------------------------------

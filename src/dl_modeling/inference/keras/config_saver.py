"""Models to Keras JSON model configs."""

import json
from pathlib import Path
from typing import Any, Dict, Union

from dl_modeling.constants import BACKEND, KERAS_VERSION
from dl_modeling.layers import keras_class_name
from dl_modeling.models import Functional, GraphTrainableModel
from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------


def model_to_config(model: GraphTrainableModel) -> Dict[str, Any]:
    """Keras 2 style config of ``model``, readable by Keras and by :func:`model_from_config`."""
    functional = isinstance(model, Functional)
    entries = []
    for layer in model.layers:
        entry = {"class_name": keras_class_name(layer), "config": layer.get_config()}
        if functional:
            entry["name"] = layer.name
            entry["inbound_nodes"] = (
                [[[inbound.name, 0, 0, {}] for inbound in layer.inbound_layers]]
                if layer.inbound_layers else []
            )
        entries.append(entry)

    model_config: Dict[str, Any] = {"name": model.name, "layers": entries}
    if functional:
        model_config["input_layers"] = [[model.input_layer.name, 0, 0]]
        model_config["output_layers"] = [[model.output_layer.name, 0, 0]]
    return {
        "class_name": "Functional" if functional else "Sequential",
        "config": model_config,
        "keras_version": KERAS_VERSION,
        "backend": BACKEND,
    }


def save_model_configuration(model: GraphTrainableModel, path: Union[str, Path]) -> None:
    """Write the Keras JSON config of ``model`` to ``path``."""
    path = Path(path)
    try:
        path.write_text(json.dumps(model_to_config(model), indent=2), encoding="utf-8")
    except OSError as e:
        logger.error(f"Error writing model configuration [{path}]: {e}")
        raise
    logger.info(f"Saved model configuration [{model.name}] to [{path}]")

# ---------------------------------------------------------------------

"""Model variables to Keras HDF5 weights."""

import json
import h5py
import numpy as np
from pathlib import Path
from typing import List, Union

from dl_modeling.constants import BACKEND, KERAS_VERSION, MODEL_WEIGHTS_GROUP, OPTIMIZER_WEIGHTS_GROUP
from dl_modeling.models import GraphTrainableModel
from dl_modeling.utils.logger import logger
from .config_saver import model_to_config

# ---------------------------------------------------------------------


def _encode_names(names: List[str]) -> np.ndarray:
    return np.array([name.encode("utf-8") for name in names], dtype="S")


def save_weights(model: GraphTrainableModel, path: Union[str, Path], optimizer_state: bool = False) -> None:
    """Write the weights of ``model`` in the Keras HDF5 layout.

    Args:
        model: Built model.
        path: Target file, overwritten.
        optimizer_state: Also write the optimizer slots under ``optimizer_weights``.
    """
    model.build()
    try:
        with h5py.File(path, "w") as f:
            f.attrs["keras_version"] = KERAS_VERSION
            f.attrs["backend"] = BACKEND
            f.attrs["model_config"] = json.dumps(model_to_config(model))

            root = f.create_group(MODEL_WEIGHTS_GROUP)
            root.attrs["layer_names"] = _encode_names([layer.name for layer in model.layers])
            root.attrs["keras_version"] = KERAS_VERSION
            root.attrs["backend"] = BACKEND
            for layer in model.layers:
                group = root.create_group(layer.name)
                weight_names = []
                for kind, value in (layer.get_weights().items() if layer.built else []):
                    weight_name = f"{layer.name}/{kind}:0"
                    group.create_dataset(weight_name, data=value)
                    weight_names.append(weight_name)
                group.attrs["weight_names"] = _encode_names(weight_names)

            if optimizer_state:
                optimizer = model.optimizer
                group = f.create_group(OPTIMIZER_WEIGHTS_GROUP)
                group.attrs["optimizer_name"] = optimizer.optimizer_name
                group.attrs["optimizer_config"] = json.dumps(optimizer.get_config())
                variables = optimizer.slot_variables()
                for name, variable in variables.items():
                    group.create_dataset(name, data=variable.numpy())
                group.attrs["weight_names"] = _encode_names(list(variables))
    except OSError as e:
        logger.error(f"Error writing weights [{path}]: {e}")
        raise
    logger.info(f"Saved weights of model [{model.name}] to [{path}]")

# ---------------------------------------------------------------------

from .config_loader import (
    load_model_configuration,
    model_from_config,
    layer_from_config,
    read_model_configuration,
    inbound_layer_names,
)
from .config_saver import model_to_config, save_model_configuration
from .weights_loader import (
    load_weights,
    load_weights_for_frozen_layers,
    load_optimizer_state,
    read_layer_weights,
    resolve_weight_kinds,
    weight_kind,
)
from .weights_saver import save_weights

__all__ = [
    "load_model_configuration",
    "model_from_config",
    "layer_from_config",
    "read_model_configuration",
    "inbound_layer_names",
    "model_to_config",
    "save_model_configuration",
    "load_weights",
    "load_weights_for_frozen_layers",
    "load_optimizer_state",
    "read_layer_weights",
    "resolve_weight_kinds",
    "weight_kind",
    "save_weights",
]

"""Gradient clipping actions applied to every gradient before the update."""

import tensorflow as tf
from typing import Any, Dict, Optional

# ---------------------------------------------------------------------


class ClipGradientAction:
    """Base class of gradient clipping strategies."""

    def clip_gradient(self, gradient: tf.Tensor) -> tf.Tensor:
        raise NotImplementedError

    def __call__(self, gradient: tf.Tensor) -> tf.Tensor:
        return self.clip_gradient(gradient)

    def get_config(self) -> Dict[str, Any]:
        return {"type": _TYPES_BY_CLASS[type(self)]}


class NoClipGradient(ClipGradientAction):
    """Leaves gradients untouched."""

    def clip_gradient(self, gradient):
        return gradient


class ClipGradientByValue(ClipGradientAction):
    """Clips every gradient element into ``[-clip_value, clip_value]``."""

    def __init__(self, clip_value: float):
        if clip_value <= 0.0:
            raise ValueError(f"clip_value should be positive, received: clip_value={clip_value}")
        self.clip_value = float(clip_value)

    def clip_gradient(self, gradient):
        return tf.clip_by_value(gradient, -self.clip_value, self.clip_value)

    def get_config(self):
        config = super().get_config()
        config["clip_value"] = self.clip_value
        return config


class ClipGradientByNorm(ClipGradientAction):
    """Rescales a gradient so that its L2 norm is at most ``clip_norm``."""

    def __init__(self, clip_norm: float):
        if clip_norm <= 0.0:
            raise ValueError(f"clip_norm should be positive, received: clip_norm={clip_norm}")
        self.clip_norm = float(clip_norm)

    def clip_gradient(self, gradient):
        return tf.clip_by_norm(gradient, self.clip_norm)

    def get_config(self):
        config = super().get_config()
        config["clip_norm"] = self.clip_norm
        return config

# ---------------------------------------------------------------------


_TYPES_BY_CLASS = {
    NoClipGradient: "none",
    ClipGradientByValue: "value",
    ClipGradientByNorm: "norm",
}


def clip_gradient_from_config(config: Optional[Dict[str, Any]]) -> ClipGradientAction:
    """Rebuild a clipping action from :meth:`ClipGradientAction.get_config` output."""
    if not config or config.get("type", "none") == "none":
        return NoClipGradient()
    clip_type = config["type"]
    if clip_type == "value":
        return ClipGradientByValue(config["clip_value"])
    if clip_type == "norm":
        return ClipGradientByNorm(config["clip_norm"])
    raise ValueError(f"Unknown gradient clipping type: [{clip_type}]. Supported types: {list(_TYPES_BY_CLASS.values())}")

# ---------------------------------------------------------------------

"""
Optimizer builder.

Builds any optimizer of this package from a plain configuration dictionary,
so that training setups can be described in JSON or YAML files:

```python
optimizer = optimizer_builder({
    "type": "adam",
    "learning_rate": 0.001,
    "beta1": 0.9,
    "clip_gradient_by_norm": 1.0
})
```

Supported optimizers:
- sgd: Plain stochastic gradient descent
- momentum: Gradient descent with (Nesterov) momentum
- adadelta: Adaptive learning rate from a window of updates
- adagrad: Accumulated squared gradient scaling
- adagrad_da: AdaGrad dual averaging
- adam: Adaptive moment estimation
- adamax: Adam with the infinity norm
- ftrl: Follow the regularized leader
- rmsprop: Root mean square propagation, optionally centered

Every optimizer supports one gradient clipping option:
- By value (clip_gradient_by_value): Clip each gradient element to a range
- By norm (clip_gradient_by_norm): Rescale each gradient to a maximum L2 norm
"""

from enum import Enum
from typing import Any, Dict, Type

from dl_modeling.utils.logger import logger
from .adadelta import AdaDelta
from .adagrad import AdaGrad
from .adagrad_da import AdaGradDA
from .adam import Adam
from .adamax import Adamax
from .clip_gradient import ClipGradientAction, ClipGradientByNorm, ClipGradientByValue, NoClipGradient
from .ftrl import Ftrl
from .momentum import Momentum
from .optimizer import Optimizer
from .rmsprop import RMSProp
from .sgd import SGD

# ---------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------


class OptimizerType(str, Enum):
    """Enumeration of available optimizer types."""
    SGD = "sgd"
    MOMENTUM = "momentum"
    ADADELTA = "adadelta"
    ADAGRAD = "adagrad"
    ADAGRAD_DA = "adagrad_da"
    ADAM = "adam"
    ADAMAX = "adamax"
    FTRL = "ftrl"
    RMSPROP = "rmsprop"


_OPTIMIZERS: Dict[OptimizerType, Type[Optimizer]] = {
    OptimizerType.SGD: SGD,
    OptimizerType.MOMENTUM: Momentum,
    OptimizerType.ADADELTA: AdaDelta,
    OptimizerType.ADAGRAD: AdaGrad,
    OptimizerType.ADAGRAD_DA: AdaGradDA,
    OptimizerType.ADAM: Adam,
    OptimizerType.ADAMAX: Adamax,
    OptimizerType.FTRL: Ftrl,
    OptimizerType.RMSPROP: RMSProp,
}

_CLIPPING_KEYS = ("clip_gradient_by_value", "clip_gradient_by_norm")

# ---------------------------------------------------------------------
# Main Functions
# ---------------------------------------------------------------------


def optimizer_builder(config: Dict[str, Any]) -> Optimizer:
    """Build and configure an optimizer from a configuration dictionary.

    Args:
        config: Configuration dictionary containing optimizer settings.
            Required keys:
                - type: Optimizer type, see :class:`OptimizerType`
            Optional keys:
                - learning_rate: Step size, the optimizer default when missing
                - Optimizer-specific hyperparameters (beta1, rho, momentum, etc.)
                - clip_gradient_by_value: Clip gradients by absolute value
                - clip_gradient_by_norm: Clip gradients by L2 norm

    Returns:
        Configured optimizer instance.

    Raises:
        ValueError: If config is not a dictionary, the optimizer type is
            unknown, both clipping options are given or a hyperparameter
            is not accepted by the optimizer.
    """
    if not isinstance(config, dict):
        raise ValueError("config must be a dictionary")

    optimizer_type = config.get("type")
    if not optimizer_type:
        raise ValueError("optimizer type must be specified in config")

    optimizer_type = optimizer_type.strip().lower()
    try:
        optimizer_cls = _OPTIMIZERS[OptimizerType(optimizer_type)]
    except ValueError:
        raise ValueError(
            f"Unknown optimizer_type: [{optimizer_type}]. "
            f"Supported types: {[t.value for t in OptimizerType]}"
        ) from None

    clip_gradient = _build_clip_gradient(config)
    params = {
        key: value
        for key, value in config.items()
        if key != "type" and key not in _CLIPPING_KEYS
    }

    logger.info(
        f"Building optimizer: [{optimizer_type}] with gradient clipping: [{type(clip_gradient).__name__}]"
    )

    try:
        optimizer = optimizer_cls(clip_gradient=clip_gradient, **params)
    except TypeError as e:
        raise ValueError(f"Invalid parameters for optimizer [{optimizer_type}]: {e}") from e

    logger.info(f"Successfully built {optimizer!r} optimizer")
    return optimizer

# ---------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------


def _build_clip_gradient(config: Dict[str, Any]) -> ClipGradientAction:
    clip_value = config.get("clip_gradient_by_value")
    clip_norm = config.get("clip_gradient_by_norm")
    if clip_value is not None and clip_norm is not None:
        raise ValueError("only one of clip_gradient_by_value and clip_gradient_by_norm can be set")
    if clip_value is not None:
        return ClipGradientByValue(clip_value)
    if clip_norm is not None:
        return ClipGradientByNorm(clip_norm)
    return NoClipGradient()

# ---------------------------------------------------------------------

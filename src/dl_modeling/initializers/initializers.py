"""
Weight initializers.

Initializers produce the initial value of a layer variable for a given shape.
Fan-in and fan-out follow the Keras convention: for kernels of rank > 2 the
receptive field size multiplies the last two dimensions.
"""

import math
import inspect
import numpy as np
import tensorflow as tf
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from dl_modeling.constants import DEFAULT_DTYPE
from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------

TRUNCATED_NORMAL_STDDEV_CORRECTION = 0.87962566103423978

# ---------------------------------------------------------------------


def compute_fans(shape: Sequence[int]) -> Tuple[float, float]:
    """Compute ``(fan_in, fan_out)`` for a weight shape."""
    shape = tuple(int(d) for d in shape)
    if len(shape) < 1:
        fan_in = fan_out = 1
    elif len(shape) == 1:
        fan_in = fan_out = shape[0]
    elif len(shape) == 2:
        fan_in, fan_out = shape
    else:
        receptive_field_size = int(np.prod(shape[:-2]))
        fan_in = shape[-2] * receptive_field_size
        fan_out = shape[-1] * receptive_field_size
    return float(fan_in), float(fan_out)

# ---------------------------------------------------------------------


class Initializer:
    """Base class of weight initializers."""

    def __call__(self, shape: Sequence[int], dtype: tf.DType = DEFAULT_DTYPE) -> tf.Tensor:
        raise NotImplementedError

    def get_config(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Initializer":
        """Create an initializer from a Keras config, dropping keys it has no use for."""
        parameters = inspect.signature(cls.__init__).parameters
        accepted = {}
        for key, value in config.items():
            if key in parameters and key not in ("self", "kwargs"):
                accepted[key] = value
            elif value is not None:
                logger.warning(f"Ignoring unsupported [{cls.__name__}] config key [{key}]")
        return cls(**accepted)

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.get_config().items())
        return f"{self.__class__.__name__}({params})"


class Zeros(Initializer):
    def __call__(self, shape, dtype=DEFAULT_DTYPE):
        return tf.zeros(shape, dtype=dtype)


class Ones(Initializer):
    def __call__(self, shape, dtype=DEFAULT_DTYPE):
        return tf.ones(shape, dtype=dtype)


class Constant(Initializer):
    """Fills the tensor with a constant value."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def __call__(self, shape, dtype=DEFAULT_DTYPE):
        return tf.fill(shape, tf.cast(self.value, dtype))

    def get_config(self):
        return {"value": self.value}


class RandomNormal(Initializer):
    """Draws samples from a normal distribution."""

    def __init__(self, mean: float = 0.0, stddev: float = 0.05, seed: Optional[int] = None):
        self.mean = mean
        self.stddev = stddev
        self.seed = seed

    def __call__(self, shape, dtype=DEFAULT_DTYPE):
        return tf.random.normal(shape, mean=self.mean, stddev=self.stddev, dtype=dtype, seed=self.seed)

    def get_config(self):
        return {"mean": self.mean, "stddev": self.stddev, "seed": self.seed}


class RandomUniform(Initializer):
    """Draws samples from a uniform distribution in ``[minval, maxval)``."""

    def __init__(self, minval: float = -0.05, maxval: float = 0.05, seed: Optional[int] = None):
        if minval >= maxval:
            raise ValueError(f"minval [{minval}] should be lower than maxval [{maxval}]")
        self.minval = minval
        self.maxval = maxval
        self.seed = seed

    def __call__(self, shape, dtype=DEFAULT_DTYPE):
        return tf.random.uniform(shape, minval=self.minval, maxval=self.maxval, dtype=dtype, seed=self.seed)

    def get_config(self):
        return {"minval": self.minval, "maxval": self.maxval, "seed": self.seed}


class TruncatedNormal(Initializer):
    """Normal samples re-drawn when more than two stddev away from the mean."""

    def __init__(self, mean: float = 0.0, stddev: float = 0.05, seed: Optional[int] = None):
        self.mean = mean
        self.stddev = stddev
        self.seed = seed

    def __call__(self, shape, dtype=DEFAULT_DTYPE):
        return tf.random.truncated_normal(shape, mean=self.mean, stddev=self.stddev, dtype=dtype, seed=self.seed)

    def get_config(self):
        return {"mean": self.mean, "stddev": self.stddev, "seed": self.seed}


class VarianceScaling(Initializer):
    """Adapts the sample scale to the shape of the weights.

    With ``distribution="truncated_normal"`` or ``"untruncated_normal"``
    samples are drawn with ``stddev = sqrt(scale / n)``, with
    ``distribution="uniform"`` within ``[-limit, limit]`` where
    ``limit = sqrt(3 * scale / n)``. ``n`` is fan-in, fan-out or their
    average depending on ``mode``.
    """

    MODES = ("fan_in", "fan_out", "fan_avg")
    DISTRIBUTIONS = ("truncated_normal", "untruncated_normal", "uniform")

    def __init__(
            self,
            scale: float = 1.0,
            mode: str = "fan_in",
            distribution: str = "truncated_normal",
            seed: Optional[int] = None):
        if scale <= 0.0:
            raise ValueError(f"scale must be positive, received: scale={scale}")
        if distribution == "normal":
            distribution = "truncated_normal"
        if mode not in self.MODES:
            raise ValueError(f"Unknown mode: [{mode}]. Supported modes: {list(self.MODES)}")
        if distribution not in self.DISTRIBUTIONS:
            raise ValueError(
                f"Unknown distribution: [{distribution}]. "
                f"Supported distributions: {list(self.DISTRIBUTIONS)}"
            )
        self.scale = scale
        self.mode = mode
        self.distribution = distribution
        self.seed = seed

    def __call__(self, shape, dtype=DEFAULT_DTYPE):
        fan_in, fan_out = compute_fans(shape)
        if self.mode == "fan_in":
            n = fan_in
        elif self.mode == "fan_out":
            n = fan_out
        else:
            n = (fan_in + fan_out) / 2.0
        scale = self.scale / max(1.0, n)

        if self.distribution == "truncated_normal":
            stddev = math.sqrt(scale) / TRUNCATED_NORMAL_STDDEV_CORRECTION
            return tf.random.truncated_normal(shape, 0.0, stddev, dtype=dtype, seed=self.seed)
        if self.distribution == "untruncated_normal":
            return tf.random.normal(shape, 0.0, math.sqrt(scale), dtype=dtype, seed=self.seed)
        limit = math.sqrt(3.0 * scale)
        return tf.random.uniform(shape, -limit, limit, dtype=dtype, seed=self.seed)

    def get_config(self):
        return {
            "scale": self.scale,
            "mode": self.mode,
            "distribution": self.distribution,
            "seed": self.seed,
        }


class _FixedVarianceScaling(VarianceScaling):
    _SCALE = 1.0
    _MODE = "fan_in"
    _DISTRIBUTION = "truncated_normal"

    def __init__(self, seed: Optional[int] = None):
        super().__init__(
            scale=self._SCALE,
            mode=self._MODE,
            distribution=self._DISTRIBUTION,
            seed=seed
        )

    def get_config(self):
        return {"seed": self.seed}


class GlorotNormal(_FixedVarianceScaling):
    """Xavier normal initializer (Glorot & Bengio, 2010)."""
    _MODE = "fan_avg"


class GlorotUniform(_FixedVarianceScaling):
    """Xavier uniform initializer (Glorot & Bengio, 2010)."""
    _MODE = "fan_avg"
    _DISTRIBUTION = "uniform"


class HeNormal(_FixedVarianceScaling):
    """He normal initializer (He et al., 2015)."""
    _SCALE = 2.0


class HeUniform(_FixedVarianceScaling):
    _SCALE = 2.0
    _DISTRIBUTION = "uniform"


class LeCunNormal(_FixedVarianceScaling):
    """LeCun normal initializer, the recommended companion of SELU."""


class LeCunUniform(_FixedVarianceScaling):
    _DISTRIBUTION = "uniform"


class Identity(Initializer):
    """Identity matrix scaled by ``gain``, for 2D shapes only."""

    def __init__(self, gain: float = 1.0):
        self.gain = gain

    def __call__(self, shape, dtype=DEFAULT_DTYPE):
        if len(shape) != 2:
            raise ValueError(f"Identity initializer requires a 2D shape, received: {tuple(shape)}")
        return self.gain * tf.eye(shape[0], shape[1], dtype=dtype)

    def get_config(self):
        return {"gain": self.gain}


class Orthogonal(Initializer):
    """Orthogonal matrix obtained from the QR decomposition of a normal sample."""

    def __init__(self, gain: float = 1.0, seed: Optional[int] = None):
        self.gain = gain
        self.seed = seed

    def __call__(self, shape, dtype=DEFAULT_DTYPE):
        if len(shape) < 2:
            raise ValueError(f"Orthogonal initializer requires at least a 2D shape, received: {tuple(shape)}")
        num_rows = int(np.prod(shape[:-1]))
        num_cols = int(shape[-1])
        flat_shape = (max(num_cols, num_rows), min(num_cols, num_rows))
        sample = tf.random.normal(flat_shape, dtype=dtype, seed=self.seed)
        q, r = tf.linalg.qr(sample, full_matrices=False)
        # make the decomposition unique
        q *= tf.sign(tf.linalg.diag_part(r))
        if num_rows < num_cols:
            q = tf.transpose(q)
        return self.gain * tf.reshape(q, shape)

    def get_config(self):
        return {"gain": self.gain, "seed": self.seed}

# ---------------------------------------------------------------------


_INITIALIZERS = {
    "Zeros": Zeros,
    "Ones": Ones,
    "Constant": Constant,
    "RandomNormal": RandomNormal,
    "RandomUniform": RandomUniform,
    "TruncatedNormal": TruncatedNormal,
    "VarianceScaling": VarianceScaling,
    "GlorotNormal": GlorotNormal,
    "GlorotUniform": GlorotUniform,
    "HeNormal": HeNormal,
    "HeUniform": HeUniform,
    "LecunNormal": LeCunNormal,
    "LecunUniform": LeCunUniform,
    "Identity": Identity,
    "Orthogonal": Orthogonal,
}

_ALIASES = {
    "zeros": "Zeros",
    "zero": "Zeros",
    "ones": "Ones",
    "one": "Ones",
    "constant": "Constant",
    "random_normal": "RandomNormal",
    "random_uniform": "RandomUniform",
    "truncated_normal": "TruncatedNormal",
    "variance_scaling": "VarianceScaling",
    "glorot_normal": "GlorotNormal",
    "glorot_uniform": "GlorotUniform",
    "he_normal": "HeNormal",
    "he_uniform": "HeUniform",
    "lecun_normal": "LecunNormal",
    "lecun_uniform": "LecunUniform",
    "identity": "Identity",
    "orthogonal": "Orthogonal",
}

# ---------------------------------------------------------------------


def get_initializer(identifier: Union[str, Dict[str, Any], Initializer, None]) -> Optional[Initializer]:
    """Resolve an initializer from an instance, a name or a Keras config dict.

    Args:
        identifier: ``Initializer`` instance, Keras name (``"glorot_uniform"``
            or ``"GlorotUniform"``) or ``{"class_name": ..., "config": {...}}``.

    Returns:
        The initializer, ``None`` if ``identifier`` is ``None``.

    Raises:
        ValueError: If the initializer is unknown.
    """
    if identifier is None or isinstance(identifier, Initializer):
        return identifier
    if isinstance(identifier, dict):
        class_name = identifier.get("class_name")
        config = dict(identifier.get("config") or {})
    elif isinstance(identifier, str):
        class_name = identifier
        config = {}
    else:
        raise TypeError(f"Cannot interpret initializer identifier: {identifier!r}")

    class_name = _ALIASES.get(class_name, class_name)
    if class_name not in _INITIALIZERS:
        raise ValueError(
            f"Unknown initializer: [{class_name}]. "
            f"Supported initializers: {sorted(_INITIALIZERS)}"
        )
    initializer_cls = _INITIALIZERS[class_name]
    # Keras writes a "dtype" key in some versions, it is not a hyperparameter
    config.pop("dtype", None)
    return initializer_cls.from_config(config)


def serialize_initializer(initializer: Initializer) -> Dict[str, Any]:
    """Keras style ``{"class_name", "config"}`` dict of an initializer."""
    for name, initializer_cls in _INITIALIZERS.items():
        if type(initializer) is initializer_cls:
            return {"class_name": name, "config": initializer.get_config()}
    raise ValueError(f"Cannot serialize initializer: {initializer!r}")

# ---------------------------------------------------------------------

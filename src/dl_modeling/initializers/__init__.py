"""Weight initializers.

Available Initializers:
-   constant: `Zeros`, `Ones`, `Constant`, `Identity`
-   random: `RandomNormal`, `RandomUniform`, `TruncatedNormal`, `Orthogonal`
-   variance scaling: `VarianceScaling`, `GlorotNormal`, `GlorotUniform`,
    `HeNormal`, `HeUniform`, `LeCunNormal`, `LeCunUniform`

`get_initializer` resolves any of them from a Keras name or config dict.
"""

from .initializers import (
    Initializer,
    Zeros,
    Ones,
    Constant,
    RandomNormal,
    RandomUniform,
    TruncatedNormal,
    VarianceScaling,
    GlorotNormal,
    GlorotUniform,
    HeNormal,
    HeUniform,
    LeCunNormal,
    LeCunUniform,
    Identity,
    Orthogonal,
    compute_fans,
    get_initializer,
    serialize_initializer,
)

__all__ = [
    "Initializer",
    "Zeros",
    "Ones",
    "Constant",
    "RandomNormal",
    "RandomUniform",
    "TruncatedNormal",
    "VarianceScaling",
    "GlorotNormal",
    "GlorotUniform",
    "HeNormal",
    "HeUniform",
    "LeCunNormal",
    "LeCunUniform",
    "Identity",
    "Orthogonal",
    "compute_fans",
    "get_initializer",
    "serialize_initializer",
]

"""Weight regularizers.

Available Regularizers:
-   `L2L1`: both L1 and L2 penalties.
-   `L1`: ``l1 * reduce_sum(abs(x))``.
-   `L2`: ``l2 * reduce_sum(square(x))``.
"""

from .regularizers import (
    Regularizer,
    L2L1,
    L1,
    L2,
    get_regularizer,
    serialize_regularizer,
    validate_penalty,
)

__all__ = [
    "Regularizer",
    "L2L1",
    "L1",
    "L2",
    "get_regularizer",
    "serialize_regularizer",
    "validate_penalty",
]

import re
import numpy as np
import tensorflow as tf
from collections import defaultdict
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

# ---------------------------------------------------------------------

Shape = Tuple[Optional[int], ...]

_NAME_COUNTERS: Dict[str, int] = defaultdict(int)

# ---------------------------------------------------------------------


def to_shape(shape: Union[Sequence[Optional[int]], tf.TensorShape, None]) -> Shape:
    """Normalize a shape-like value to a tuple of ints / ``None``."""
    if shape is None:
        return tuple()
    if isinstance(shape, tf.TensorShape):
        return tuple(shape.as_list()) if shape.rank is not None else tuple()
    return tuple(None if d is None else int(d) for d in shape)


def tail(shape: Sequence[Optional[int]]) -> Shape:
    """Return the shape without its leading (batch) dimension."""
    return tuple(shape)[1:]


def num_elements(shape: Iterable[Optional[int]]) -> int:
    """Number of elements in a fully defined shape.

    Raises:
        ValueError: If some dimension is unknown.
    """
    count = 1
    for dim in shape:
        if dim is None:
            raise ValueError(f"Shape {tuple(shape)} is not fully defined")
        count *= int(dim)
    return count


def shape_to_string(shape: Sequence[Optional[int]]) -> str:
    """Render a shape the way model summaries show it, e.g. ``(None, 28, 28, 1)``."""
    dims = ", ".join("None" if d is None else str(d) for d in shape)
    if len(shape) == 1:
        dims += ","
    return f"({dims})"


def conv_output_length(
        length: Optional[int],
        kernel_size: int,
        padding: str,
        stride: int,
        dilation: int = 1) -> Optional[int]:
    """Spatial output length of a convolution or pooling window."""
    if length is None:
        return None
    dilated = kernel_size + (kernel_size - 1) * (dilation - 1)
    if padding == "same":
        output_length = length
    elif padding == "valid":
        output_length = length - dilated + 1
    else:
        raise ValueError(f"Unknown padding: [{padding}], expected 'same' or 'valid'")
    return (output_length + stride - 1) // stride


def to_numpy(data) -> np.ndarray:
    """Convert tensors and array-likes to a float32 numpy array."""
    if isinstance(data, (tf.Tensor, tf.Variable)):
        data = data.numpy()
    return np.asarray(data, dtype=np.float32)

# ---------------------------------------------------------------------


def _snake_case(name: str) -> str:
    name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def unique_name(class_name: str) -> str:
    """Generate a process-unique layer name in the Keras manner.

    ``Dense`` gives ``dense``, then ``dense_1``, ``dense_2`` and so on.
    """
    base = _snake_case(class_name)
    count = _NAME_COUNTERS[base]
    _NAME_COUNTERS[base] += 1
    return base if count == 0 else f"{base}_{count}"


def reset_names() -> None:
    """Reset the automatic layer name counters."""
    _NAME_COUNTERS.clear()

# ---------------------------------------------------------------------

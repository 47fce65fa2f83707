"""ImageNet class labels and top-k predictions."""

import json
import numpy as np
from pathlib import Path
from typing import Dict, Tuple, Union

from dl_modeling.models import GraphTrainableModel
from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------

IMAGENET_CLASS_INDEX_URL = (
    "https://storage.googleapis.com/download.tensorflow.org/data/imagenet_class_index.json"
)
IMAGENET_CLASS_INDEX_FILE_NAME = "imagenet_class_index.json"

# ---------------------------------------------------------------------


def load_class_labels(path: Union[str, Path]) -> Dict[int, str]:
    """Read ``imagenet_class_index.json`` (``{"0": ["n01440764", "tench"], ...}``) into ``{0: "tench", ...}``."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            index = json.load(f)
    except OSError as e:
        logger.error(f"Error reading class labels [{path}]: {e}")
        raise
    labels = {}
    for key, value in index.items():
        labels[int(key)] = value[-1] if isinstance(value, (list, tuple)) else str(value)
    return labels


def fetch_class_labels(cache_dir: Union[str, Path, None] = None) -> Dict[int, str]:
    """Download (once) and read the ImageNet class index."""
    from keras.utils import get_file

    path = get_file(
        IMAGENET_CLASS_INDEX_FILE_NAME,
        IMAGENET_CLASS_INDEX_URL,
        cache_subdir="models",
        cache_dir=None if cache_dir is None else str(cache_dir)
    )
    return load_class_labels(path)


def predict_top_k_labels(
        model: GraphTrainableModel,
        x: np.ndarray,
        labels: Dict[int, str],
        k: int = 5) -> Dict[int, Tuple[str, float]]:
    """The ``k`` most probable labels of a single sample.

    Returns:
        ``{rank: (label, probability)}`` with ranks starting at 1.
    """
    if k <= 0:
        raise ValueError(f"k should be positive, received: k={k}")
    probabilities = np.asarray(model.predict_softly(x)).reshape(-1)
    top = np.argsort(-probabilities, kind="stable")[:k]
    return {
        rank: (labels.get(int(index), str(int(index))), float(probabilities[index]))
        for rank, index in enumerate(top, start=1)
    }

# ---------------------------------------------------------------------

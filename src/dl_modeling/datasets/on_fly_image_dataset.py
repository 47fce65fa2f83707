"""Dataset of images decoded and preprocessed only when a batch is requested."""

import numpy as np
from typing import List, Optional, Sequence

from dl_modeling.utils.logger import logger
from .dataset import Dataset, to_one_hot
from .preprocessing import Preprocessing

# ---------------------------------------------------------------------


class OnFlyImageDataset(Dataset):
    """Images on disk, run through a :class:`Preprocessing` pipeline per batch.

    Args:
        paths: Image file paths, one per element.
        labels: Labels aligned with ``paths``.
        preprocessing: Pipeline turning a path into a feature array.
    """

    def __init__(self, paths: Sequence[str], labels: np.ndarray, preprocessing: Preprocessing):
        labels = np.asarray(labels, dtype=np.float32)
        if len(paths) != labels.shape[0]:
            raise ValueError(
                f"Found {len(paths)} images but {labels.shape[0]} labels, they should match"
            )
        if labels.ndim == 1:
            labels = labels.reshape(-1, 1)
        self.paths: List[str] = list(paths)
        self.labels = labels
        self.preprocessing = preprocessing

    @classmethod
    def create(
            cls,
            preprocessing: Preprocessing,
            labels: np.ndarray,
            num_classes: Optional[int] = None) -> "OnFlyImageDataset":
        """Create a dataset of every image in the loading directory, sorted by file name."""
        paths = preprocessing.loading.file_paths()
        if num_classes is not None:
            labels = to_one_hot(labels, num_classes)
        logger.info(f"Found {len(paths)} images in [{preprocessing.loading.path_to_data}]")
        return cls(paths, labels, preprocessing)

    def x_size(self):
        return len(self.paths)

    def get_x(self, index):
        return self.preprocessing(self.paths[index])

    def get_y(self, index):
        return self.labels[index]

    def subset(self, indices):
        indices = [int(i) for i in indices]
        return OnFlyImageDataset(
            [self.paths[i] for i in indices],
            self.labels[np.asarray(indices, dtype=np.int64)],
            self.preprocessing
        )

# ---------------------------------------------------------------------

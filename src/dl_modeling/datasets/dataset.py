"""
Datasets feeding models batch by batch.

A dataset exposes features and one-hot (or regression) labels by index and
slices itself into :class:`DataBatch` objects. ``fit`` splits and shuffles
datasets without copying the underlying storage when it can.
"""

import numpy as np
from keras import utils
from typing import Callable, Iterator, NamedTuple, Optional, Sequence, Tuple

from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------


class DataBatch(NamedTuple):
    """A batch of features and labels.

    Attributes:
        x: Features, shape ``(batch, *element_shape)``.
        y: Labels, shape ``(batch, *label_shape)``.
    """
    x: np.ndarray
    y: np.ndarray

    @property
    def size(self) -> int:
        return int(self.x.shape[0])

# ---------------------------------------------------------------------


def to_one_hot(labels: np.ndarray, num_classes: int) -> np.ndarray:
    """One-hot encode integer class labels.

    Raises:
        ValueError: If a label falls outside ``[0, num_classes)``.
    """
    labels = np.asarray(labels).reshape(-1)
    if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
        raise ValueError(
            f"labels should be in [0, {num_classes}), received range [{labels.min()}, {labels.max()}]"
        )
    return utils.to_categorical(labels, num_classes).astype(np.float32)

# ---------------------------------------------------------------------


class Dataset:
    """Base class of datasets."""

    def x_size(self) -> int:
        """Number of elements."""
        raise NotImplementedError

    def get_x(self, index: int) -> np.ndarray:
        raise NotImplementedError

    def get_y(self, index: int) -> np.ndarray:
        raise NotImplementedError

    def subset(self, indices: Sequence[int]) -> "Dataset":
        """New dataset made of the elements at ``indices``, in that order."""
        raise NotImplementedError

    def get_batch(self, indices: Sequence[int]) -> DataBatch:
        x = np.stack([self.get_x(i) for i in indices]).astype(np.float32)
        y = np.stack([self.get_y(i) for i in indices]).astype(np.float32)
        return DataBatch(x, y)

    def __len__(self) -> int:
        return self.x_size()

    def batch_iterator(self, batch_size: int) -> Iterator[DataBatch]:
        """Iterate over consecutive batches, the last one may be smaller."""
        if batch_size <= 0:
            raise ValueError(f"batch_size should be positive, received: batch_size={batch_size}")
        size = self.x_size()
        for start in range(0, size, batch_size):
            yield self.get_batch(range(start, min(start + batch_size, size)))

    def batch_count(self, batch_size: int) -> int:
        return -(-self.x_size() // batch_size)

    def split(self, split_ratio: float) -> Tuple["Dataset", "Dataset"]:
        """Split into a first dataset of ``split_ratio`` of the elements and a second one with the rest."""
        if not 0.0 < split_ratio < 1.0:
            raise ValueError(f"split_ratio should be in (0, 1), received: split_ratio={split_ratio}")
        size = self.x_size()
        boundary = int(round(size * split_ratio))
        if boundary == 0 or boundary == size:
            raise ValueError(
                f"split_ratio={split_ratio} leaves one side of a {size} element dataset empty"
            )
        return self.subset(range(boundary)), self.subset(range(boundary, size))

    def hold_out(self, validation_rate: float) -> Tuple["Dataset", "Dataset"]:
        """Split off the last ``validation_rate`` of the elements for validation.

        At least one element is held out whatever the rate, and at least one is
        left for training.
        """
        if not 0.0 < validation_rate < 1.0:
            raise ValueError(f"validation_rate should be in (0, 1), received: validation_rate={validation_rate}")
        size = self.x_size()
        validation_size = max(1, int(round(size * validation_rate)))
        if validation_size >= size:
            raise ValueError(
                f"validation_rate={validation_rate} leaves no training data in a {size} element dataset"
            )
        boundary = size - validation_size
        return self.subset(range(boundary)), self.subset(range(boundary, size))

    def shuffle(self, seed: Optional[int] = None) -> "Dataset":
        """Shuffled copy of the dataset."""
        permutation = np.random.default_rng(seed).permutation(self.x_size())
        return self.subset(permutation)

    def element_shape(self) -> Tuple[int, ...]:
        """Shape of one element of the features."""
        if self.x_size() == 0:
            raise ValueError("Dataset is empty")
        return tuple(np.shape(self.get_x(0)))

# ---------------------------------------------------------------------


class OnHeapDataset(Dataset):
    """Dataset kept in memory as two numpy arrays.

    Args:
        x: Features, first axis indexes the elements.
        y: Labels, first axis indexes the elements.
    """

    def __init__(self, x: np.ndarray, y: np.ndarray):
        x = np.asarray(x, dtype=np.float32)
        y = np.asarray(y, dtype=np.float32)
        if x.shape[0] != y.shape[0]:
            raise ValueError(
                f"features and labels should have the same length, received {x.shape[0]} and {y.shape[0]}"
            )
        if y.ndim == 1:
            y = y.reshape(-1, 1)
        self.x = x
        self.y = y

    @classmethod
    def create(
            cls,
            features: np.ndarray,
            labels: np.ndarray,
            num_classes: Optional[int] = None) -> "OnHeapDataset":
        """Create a dataset, one-hot encoding integer ``labels`` when ``num_classes`` is given."""
        if num_classes is not None:
            labels = to_one_hot(labels, num_classes)
        dataset = cls(features, labels)
        logger.debug(f"Created dataset with {dataset.x_size()} elements of shape {dataset.element_shape()}")
        return dataset

    @classmethod
    def create_from_files(
            cls,
            features_path: str,
            labels_path: str,
            features_loader: Callable[[str], np.ndarray],
            labels_loader: Callable[[str], np.ndarray],
            num_classes: Optional[int] = None) -> "OnHeapDataset":
        """Create a dataset from files read by user supplied loaders.

        Args:
            features_path: Path handed to ``features_loader``.
            labels_path: Path handed to ``labels_loader``.
            features_loader: Reads features into an array.
            labels_loader: Reads labels into an array.
            num_classes: One-hot encode the labels into this many classes.
        """
        logger.info(f"Loading features from [{features_path}] and labels from [{labels_path}]")
        try:
            features = features_loader(features_path)
            labels = labels_loader(labels_path)
        except OSError as e:
            logger.error(f"Error reading dataset files: {e}")
            raise
        return cls.create(features, labels, num_classes)

    def x_size(self):
        return int(self.x.shape[0])

    def get_x(self, index):
        return self.x[index]

    def get_y(self, index):
        return self.y[index]

    def get_batch(self, indices):
        indices = np.asarray(list(indices), dtype=np.int64)
        return DataBatch(self.x[indices], self.y[indices])

    def subset(self, indices):
        indices = np.asarray(list(indices), dtype=np.int64)
        return OnHeapDataset(self.x[indices], self.y[indices])

# ---------------------------------------------------------------------

"""Normalization of image batches the way ImageNet models were trained."""

import numpy as np
from enum import Enum
from typing import Union

# ---------------------------------------------------------------------

CAFFE_MEAN = np.array([103.939, 116.779, 123.68], dtype=np.float32)
TORCH_MEAN = np.array([0.485, 0.456, 0.406], dtype=np.float32)
TORCH_STD = np.array([0.229, 0.224, 0.225], dtype=np.float32)

# ---------------------------------------------------------------------


class InputType(str, Enum):
    """Input normalization conventions.

    - TF: scales pixels from ``[0, 255]`` to ``[-1, 1]``.
    - CAFFE: subtracts the ImageNet mean of each channel, images are
      expected in BGR order.
    - TORCH: scales to ``[0, 1]`` then standardizes each channel with the
      ImageNet mean and standard deviation.
    """
    TF = "tf"
    CAFFE = "caffe"
    TORCH = "torch"


def preprocess_input(data: np.ndarray, mode: Union[str, InputType] = InputType.TF) -> np.ndarray:
    """Normalize a channels-last image or batch of images in ``[0, 255]``.

    Raises:
        ValueError: For CAFFE and TORCH modes when the last axis is not 3 channels.
    """
    mode = InputType(mode)
    data = np.asarray(data, dtype=np.float32)
    if mode == InputType.TF:
        return data / 127.5 - 1.0
    if data.shape[-1] != 3:
        raise ValueError(f"{mode.name} preprocessing expects 3 channels, received shape {data.shape}")
    if mode == InputType.CAFFE:
        return data - CAFFE_MEAN
    return (data / 255.0 - TORCH_MEAN) / TORCH_STD

# ---------------------------------------------------------------------

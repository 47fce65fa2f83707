"""Image shape, channel order and image loading."""

import numpy as np
from enum import Enum
from pathlib import Path
from dataclasses import dataclass
from typing import List, Optional, Union
from keras.utils import img_to_array, load_img

from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".gif")

# ---------------------------------------------------------------------


class ColorOrder(str, Enum):
    """Channel order of loaded color images."""
    RGB = "rgb"
    BGR = "bgr"


@dataclass(frozen=True)
class ImageShape:
    """Width, height and channel count of an image, ``None`` for unknown."""
    width: Optional[int] = None
    height: Optional[int] = None
    channels: int = 3

    def __post_init__(self):
        if self.channels not in (1, 3):
            raise ValueError(f"channels should be 1 or 3, received: channels={self.channels}")

    @property
    def num_elements(self) -> int:
        if self.width is None or self.height is None:
            raise ValueError(f"{self} is not fully defined")
        return self.width * self.height * self.channels

# ---------------------------------------------------------------------


class Loading:
    """Decodes image files into ``(height, width, channels)`` float32 arrays.

    Args:
        path_to_data: Image file, or directory of image files.
        image_shape: Expected image shape, its channel count selects
            grayscale (1) or color (3) decoding.
        color_mode: Channel order of color images.
    """

    def __init__(
            self,
            path_to_data: Optional[Union[str, Path]] = None,
            image_shape: Optional[ImageShape] = None,
            color_mode: ColorOrder = ColorOrder.BGR):
        self.path_to_data = Path(path_to_data) if path_to_data is not None else None
        self.image_shape = image_shape or ImageShape()
        self.color_mode = ColorOrder(color_mode)

    def file_paths(self) -> List[str]:
        """Image files under ``path_to_data``, sorted by name."""
        if self.path_to_data is None:
            raise ValueError("path_to_data is not set")
        if self.path_to_data.is_file():
            return [str(self.path_to_data)]
        if not self.path_to_data.is_dir():
            raise FileNotFoundError(f"No such file or directory: [{self.path_to_data}]")
        return sorted(
            str(p) for p in self.path_to_data.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
        )

    def load(self, path: Union[str, Path]) -> np.ndarray:
        grayscale = self.image_shape.channels == 1
        try:
            image = load_img(str(path), color_mode="grayscale" if grayscale else "rgb")
        except OSError as e:
            logger.error(f"Error loading image [{path}]: {e}")
            raise
        array = img_to_array(image, dtype="float32")
        if not grayscale and self.color_mode == ColorOrder.BGR:
            array = array[..., ::-1]
        width, height = self.image_shape.width, self.image_shape.height
        if (width is not None and array.shape[1] != width) or (height is not None and array.shape[0] != height):
            logger.debug(
                f"Image [{path}] has size {array.shape[1]}x{array.shape[0]}, expected {width}x{height}"
            )
        return np.ascontiguousarray(array)

    def __call__(self, path: Union[str, Path]) -> np.ndarray:
        return self.load(path)

# ---------------------------------------------------------------------

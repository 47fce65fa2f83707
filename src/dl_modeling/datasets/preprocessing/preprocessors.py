"""
Image preprocessors.

Every preprocessor maps a ``(height, width, channels)`` float32 array to a
new array. They are chained by :class:`Preprocessing` after an image is
loaded:

```python
preprocessing = Preprocessing(
    loading=Loading("images/", ImageShape(224, 224, 3), ColorOrder.BGR),
    preprocessors=[
        Cropping(left=12, right=12, top=12, bottom=12),
        Rotate(Degrees.R_90),
        Resize(height=34, width=34, interpolation=InterpolationType.NEAREST),
        Rescaling(255.0),
    ]
)
image = preprocessing("images/cat.jpg")
```
"""

import numpy as np
import tensorflow as tf
from enum import Enum
from typing import List, Optional, Sequence

from .image import Loading

# ---------------------------------------------------------------------


class ImagePreprocessor:
    """Base class of image preprocessors."""

    def apply(self, image: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def __call__(self, image: np.ndarray) -> np.ndarray:
        return self.apply(np.asarray(image, dtype=np.float32))

# ---------------------------------------------------------------------


class Rescaling(ImagePreprocessor):
    """Divides every value by ``scaling_coefficient``."""

    def __init__(self, scaling_coefficient: float = 255.0):
        if scaling_coefficient == 0.0:
            raise ValueError("scaling_coefficient should not be 0")
        self.scaling_coefficient = float(scaling_coefficient)

    def apply(self, image):
        return image / self.scaling_coefficient


class Normalization(ImagePreprocessor):
    """Min-max rescales the image values into ``[new_min, new_max]``.

    A constant image is mapped to ``new_min``.
    """

    def __init__(self, new_min: float = 0.0, new_max: float = 1.0):
        if new_max <= new_min:
            raise ValueError(
                f"new_max should be greater than new_min, received: new_min={new_min}, new_max={new_max}"
            )
        self.new_min = float(new_min)
        self.new_max = float(new_max)

    def apply(self, image):
        low, high = float(image.min()), float(image.max())
        if high == low:
            return np.full_like(image, self.new_min)
        return (image - low) / (high - low) * (self.new_max - self.new_min) + self.new_min


class Cropping(ImagePreprocessor):
    """Removes the given number of pixels from each border."""

    def __init__(self, left: int = 0, right: int = 0, top: int = 0, bottom: int = 0):
        for name, value in (("left", left), ("right", right), ("top", top), ("bottom", bottom)):
            if value < 0:
                raise ValueError(f"{name} should be >= 0, received: {name}={value}")
        self.left, self.right, self.top, self.bottom = left, right, top, bottom

    def apply(self, image):
        height, width = image.shape[0], image.shape[1]
        if self.top + self.bottom >= height or self.left + self.right >= width:
            raise ValueError(
                f"Cropping {self.left, self.right, self.top, self.bottom} removes the whole "
                f"{width}x{height} image"
            )
        return image[self.top:height - self.bottom, self.left:width - self.right]


class Degrees(int, Enum):
    """Clockwise rotation angles."""
    R_90 = 90
    R_180 = 180
    R_270 = 270


class Rotate(ImagePreprocessor):
    """Rotates the image clockwise by a multiple of 90 degrees."""

    def __init__(self, degrees: Degrees = Degrees.R_90):
        self.degrees = Degrees(degrees)

    def apply(self, image):
        return np.ascontiguousarray(np.rot90(image, k=-(self.degrees.value // 90), axes=(0, 1)))


class InterpolationType(str, Enum):
    """Resampling methods, valued by their ``tf.image.ResizeMethod`` name."""
    NEAREST = "nearest"
    BILINEAR = "bilinear"
    BICUBIC = "bicubic"
    AREA = "area"


class Resize(ImagePreprocessor):
    """Resizes the image to ``height`` x ``width``."""

    def __init__(
            self,
            height: int = 224,
            width: int = 224,
            interpolation: InterpolationType = InterpolationType.BILINEAR):
        if height <= 0 or width <= 0:
            raise ValueError(f"height and width should be positive, received: height={height}, width={width}")
        self.height = int(height)
        self.width = int(width)
        self.interpolation = InterpolationType(interpolation)

    def apply(self, image):
        resized = tf.image.resize(image, (self.height, self.width), method=self.interpolation.value)
        return resized.numpy().astype(np.float32)

# ---------------------------------------------------------------------


class Preprocessing:
    """Loads an image and runs it through ``preprocessors`` in order.

    Args:
        loading: Image loader.
        preprocessors: Preprocessors applied after loading.
    """

    def __init__(self, loading: Loading, preprocessors: Optional[Sequence[ImagePreprocessor]] = None):
        self.loading = loading
        self.preprocessors: List[ImagePreprocessor] = list(preprocessors or [])

    def apply(self, image: np.ndarray) -> np.ndarray:
        for preprocessor in self.preprocessors:
            image = preprocessor(image)
        return image

    def __call__(self, path) -> np.ndarray:
        return self.apply(self.loading(path))

# ---------------------------------------------------------------------

from .image import ColorOrder, ImageShape, Loading, IMAGE_EXTENSIONS
from .preprocessors import (
    ImagePreprocessor,
    Rescaling,
    Normalization,
    Cropping,
    Degrees,
    Rotate,
    InterpolationType,
    Resize,
    Preprocessing,
)
from .preprocess_input import InputType, preprocess_input

__all__ = [
    "ColorOrder",
    "ImageShape",
    "Loading",
    "IMAGE_EXTENSIONS",
    "ImagePreprocessor",
    "Rescaling",
    "Normalization",
    "Cropping",
    "Degrees",
    "Rotate",
    "InterpolationType",
    "Resize",
    "Preprocessing",
    "InputType",
    "preprocess_input",
]

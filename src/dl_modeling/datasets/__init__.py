from .dataset import DataBatch, Dataset, OnHeapDataset, to_one_hot
from .on_fly_image_dataset import OnFlyImageDataset

__all__ = [
    "DataBatch",
    "Dataset",
    "OnHeapDataset",
    "OnFlyImageDataset",
    "to_one_hot",
]

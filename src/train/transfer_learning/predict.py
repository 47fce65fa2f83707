"""
ImageNet predictions with a pretrained Keras model.

Loads a Keras JSON model config and HDF5 weights (for example VGG16 saved
with ``model.to_json()`` and ``model.save_weights("vgg16.h5")``), then logs
the top-5 ImageNet labels of every image in a folder.

Usage:
    python predict.py --config vgg16.json --weights vgg16.h5 --images images/ [--mode caffe]
"""

import argparse
import numpy as np
from pathlib import Path

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_modeling.datasets.preprocessing import (
    ColorOrder, ImageShape, InputType, InterpolationType, Loading, Preprocessing, Resize, preprocess_input)
from dl_modeling.inference import fetch_class_labels, load_class_labels, predict_top_k_labels
from dl_modeling.inference.keras import load_model_configuration
from dl_modeling.losses import Losses
from dl_modeling.metrics import Metrics
from dl_modeling.optimization import Adam
from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------


def predict(args: argparse.Namespace) -> None:
    mode = InputType(args.mode)
    labels = load_class_labels(args.labels) if args.labels else fetch_class_labels()

    with load_model_configuration(args.config) as model:
        # the config already ends with softmax, keep the outputs untouched
        model.compile(optimizer=Adam(), loss=Losses.MAE, metric=Metrics.ACCURACY)
        model.load_weights(args.weights)
        model.summary()

        height, width = model.input_dimensions[0], model.input_dimensions[1]
        preprocessing = Preprocessing(
            loading=Loading(
                args.images,
                image_shape=ImageShape(width, height, 3),
                color_mode=ColorOrder.BGR if mode == InputType.CAFFE else ColorOrder.RGB
            ),
            preprocessors=[Resize(height=height, width=width, interpolation=InterpolationType.BILINEAR)]
        )

        for path in preprocessing.loading.file_paths():
            image = preprocess_input(preprocessing(path), mode)
            top_k = predict_top_k_labels(model, np.asarray(image), labels, k=args.top_k)
            logger.info(f"{Path(path).name}:")
            for rank, (label, probability) in top_k.items():
                logger.info(f"  {rank}. {label} ({probability:.4f})")


def main():
    """Main function with argument parsing."""
    parser = argparse.ArgumentParser(description="Top-k ImageNet predictions of a pretrained Keras model")

    parser.add_argument("--config", type=str, required=True,
                        help="Keras JSON model config")
    parser.add_argument("--weights", type=str, required=True,
                        help="Keras HDF5 weights")
    parser.add_argument("--images", type=str, required=True,
                        help="Image file or folder of images")
    parser.add_argument("--labels", type=str, default=None,
                        help="imagenet_class_index.json, downloaded when missing")
    parser.add_argument("--mode", type=str, default=InputType.CAFFE.value,
                        choices=[t.value for t in InputType],
                        help="Input preprocessing convention of the model (default: caffe)")
    parser.add_argument("--top-k", type=int, default=5,
                        help="Number of labels per image (default: 5)")

    args = parser.parse_args()

    try:
        predict(args)
    except KeyboardInterrupt:
        logger.info("Prediction interrupted by user")
    except Exception as e:
        logger.error(f"Prediction failed with error: {e}")
        raise


if __name__ == "__main__":
    main()

"""
LeNet-5 on MNIST.

Trains the classic LeNet-5 convolutional network on MNIST, evaluates it on
the test split and saves it as a Keras JSON config plus HDF5 weights.

Usage:
    python train.py [--epochs 3] [--batch-size 100] [--optimizer adam] [--output-dir lenet]
"""

import argparse
import numpy as np
from keras import datasets

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_modeling.activations import Activations
from dl_modeling.callbacks import EarlyStopping
from dl_modeling.config import TrainingConfig
from dl_modeling.datasets import OnHeapDataset
from dl_modeling.datasets.preprocessing import Rescaling
from dl_modeling.layers import AvgPool2D, Conv2D, Dense, Flatten, Input
from dl_modeling.losses import Losses
from dl_modeling.metrics import Metrics
from dl_modeling.models import Sequential
from dl_modeling.optimization import optimizer_builder
from dl_modeling.utils.logger import logger

# ---------------------------------------------------------------------

NUM_CLASSES = 10
IMAGE_SIZE = 28
SEED = 12

# ---------------------------------------------------------------------


def create_lenet() -> Sequential:
    """LeNet-5 with ``tanh`` activations and average pooling, outputs logits."""
    return Sequential.of(
        Input(IMAGE_SIZE, IMAGE_SIZE, 1, name="input"),
        Conv2D(filters=6, kernel_size=(5, 5), padding="same", activation=Activations.TANH, name="conv2d_1"),
        AvgPool2D(pool_size=(2, 2), name="avg_pool_1"),
        Conv2D(filters=16, kernel_size=(5, 5), padding="valid", activation=Activations.TANH, name="conv2d_2"),
        AvgPool2D(pool_size=(2, 2), name="avg_pool_2"),
        Flatten(name="flatten"),
        Dense(120, activation=Activations.TANH, name="dense_1"),
        Dense(84, activation=Activations.TANH, name="dense_2"),
        Dense(NUM_CLASSES, activation=Activations.LINEAR, name="logits"),
        name="lenet5"
    )


def load_mnist():
    """MNIST train and test datasets, pixels scaled to ``[0, 1]`` and one-hot labels."""
    logger.info("Loading MNIST dataset...")
    (x_train, y_train), (x_test, y_test) = datasets.mnist.load_data()
    rescaling = Rescaling(255.0)
    x_train = rescaling(np.expand_dims(x_train, -1))
    x_test = rescaling(np.expand_dims(x_test, -1))
    return (
        OnHeapDataset.create(x_train, y_train, num_classes=NUM_CLASSES),
        OnHeapDataset.create(x_test, y_test, num_classes=NUM_CLASSES),
    )


def train_model(args: argparse.Namespace) -> None:
    train, test = load_mnist()
    config = TrainingConfig(
        epochs=args.epochs,
        batch_size=args.batch_size,
        validation_rate=args.validation_rate,
        seed=SEED
    )
    optimizer = optimizer_builder({
        "type": args.optimizer,
        "learning_rate": args.learning_rate,
        "clip_gradient_by_value": args.clip_value
    })

    with create_lenet() as model:
        model.compile(
            optimizer=optimizer,
            loss=Losses.SOFT_MAX_CROSS_ENTROPY_WITH_LOGITS,
            metric=Metrics.ACCURACY
        )
        model.summary()
        callbacks = []
        if config.validation_rate > 0.0:
            callbacks.append(EarlyStopping(monitor="val_loss", patience=args.patience))
        history = model.fit(train, config=config, callbacks=callbacks)
        logger.info(f"Trained for {len(history)} epochs")

        results = model.evaluate(test, batch_size=1000)
        logger.info(f"Test loss: {results['loss']:.4f}, test accuracy: {results[Metrics.ACCURACY.value]:.4f}")

        if args.output_dir:
            model.save(args.output_dir, save_optimizer_state=args.save_optimizer_state)


def main():
    """Main function with argument parsing."""
    parser = argparse.ArgumentParser(description="Train LeNet-5 on MNIST")

    # Training arguments
    parser.add_argument("--epochs", type=int, default=3,
                        help="Number of training epochs (default: 3)")
    parser.add_argument("--batch-size", type=int, default=100,
                        help="Training batch size (default: 100)")
    parser.add_argument("--validation-rate", type=float, default=0.0,
                        help="Fraction of training data used for validation (default: 0.0)")
    parser.add_argument("--optimizer", type=str, default="adam",
                        help="Optimizer type (default: adam)")
    parser.add_argument("--learning-rate", type=float, default=0.001,
                        help="Learning rate (default: 0.001)")
    parser.add_argument("--clip-value", type=float, default=None,
                        help="Clip gradients by value (default: no clipping)")
    parser.add_argument("--patience", type=int, default=2,
                        help="Early stopping patience, used with validation (default: 2)")

    # Output arguments
    parser.add_argument("--output-dir", type=str, default="lenet5",
                        help="Directory of the saved model, empty to skip saving (default: lenet5)")
    parser.add_argument("--save-optimizer-state", action="store_true",
                        help="Also save the optimizer slots")

    args = parser.parse_args()

    try:
        train_model(args)
    except KeyboardInterrupt:
        logger.info("Training interrupted by user")
    except Exception as e:
        logger.error(f"Training failed with error: {e}")
        raise


if __name__ == "__main__":
    main()

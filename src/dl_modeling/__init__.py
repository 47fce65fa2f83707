"""Keras-like layers, models and optimizers on top of TensorFlow."""

__version__ = "0.1.0"

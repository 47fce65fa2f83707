"""Stochastic gradient descent."""

import tensorflow as tf

from .optimizer import Optimizer

# ---------------------------------------------------------------------


class SGD(Optimizer):
    """``variable -= learning_rate * gradient``, no slots.

    Args:
        learning_rate: Step size.
        clip_gradient: Gradient clipping strategy.
    """

    def __init__(self, learning_rate: float = 0.01, clip_gradient=None):
        super().__init__(learning_rate=learning_rate, clip_gradient=clip_gradient)

    def _apply_dense(self, gradient, variable):
        return tf.raw_ops.ResourceApplyGradientDescent(
            var=variable.handle,
            alpha=self._constant(self.learning_rate, variable),
            delta=gradient
        )

# ---------------------------------------------------------------------

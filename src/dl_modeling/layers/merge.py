"""
Merge layers.

Merge layers combine the outputs of several inbound layers and are the
reason a functional model is a DAG rather than a chain.
"""

import tensorflow as tf
from typing import Any, List

from dl_modeling.utils.shapes import Shape
from .layer import Layer

# ---------------------------------------------------------------------


class Merge(Layer):
    """Base class of element-wise merge layers."""

    def build(self, input_shape):
        if not isinstance(input_shape, list) or len(input_shape) < 2:
            raise ValueError(f"[{self.name}] should be called on a list of at least 2 inputs")
        first = tuple(input_shape[0])
        for shape in input_shape[1:]:
            if len(shape) != len(first) or any(
                    a is not None and b is not None and a != b for a, b in zip(shape[1:], first[1:])):
                raise ValueError(
                    f"[{self.name}] requires inputs with matching shapes, received: {input_shape}"
                )
        super().build(input_shape)

    def merge(self, inputs: List[tf.Tensor]) -> tf.Tensor:
        raise NotImplementedError

    def forward(self, inputs, training=False):
        return self.merge(list(inputs))

    def compute_output_shape(self, input_shape: List[Shape]) -> Shape:
        return tuple(input_shape[0])


class Add(Merge):
    def merge(self, inputs):
        return tf.add_n(inputs)


class Subtract(Merge):
    """Subtracts the second input from the first one."""

    def build(self, input_shape):
        if isinstance(input_shape, list) and len(input_shape) != 2:
            raise ValueError(f"[{self.name}] should be called on exactly 2 inputs")
        super().build(input_shape)

    def merge(self, inputs):
        return tf.subtract(inputs[0], inputs[1])


class Multiply(Merge):
    def merge(self, inputs):
        outputs = inputs[0]
        for tensor in inputs[1:]:
            outputs = outputs * tensor
        return outputs


class Average(Merge):
    def merge(self, inputs):
        return tf.add_n(inputs) / float(len(inputs))


class Maximum(Merge):
    def merge(self, inputs):
        outputs = inputs[0]
        for tensor in inputs[1:]:
            outputs = tf.maximum(outputs, tensor)
        return outputs


class Minimum(Merge):
    def merge(self, inputs):
        outputs = inputs[0]
        for tensor in inputs[1:]:
            outputs = tf.minimum(outputs, tensor)
        return outputs

# ---------------------------------------------------------------------


class Concatenate(Merge):
    """Concatenates its inputs along ``axis``, other dimensions must match."""

    def __init__(self, axis: int = -1, name: str = "", trainable: bool = True, **kwargs: Any):
        super().__init__(name=name, trainable=trainable, **kwargs)
        self.axis = int(axis)

    def build(self, input_shape):
        if not isinstance(input_shape, list) or len(input_shape) < 2:
            raise ValueError(f"[{self.name}] should be called on a list of at least 2 inputs")
        rank = len(input_shape[0])
        axis = self.axis if self.axis >= 0 else rank + self.axis
        for shape in input_shape[1:]:
            if len(shape) != rank:
                raise ValueError(f"[{self.name}] requires inputs of the same rank, received: {input_shape}")
            for i, (a, b) in enumerate(zip(shape, input_shape[0])):
                if i not in (0, axis) and a is not None and b is not None and a != b:
                    raise ValueError(
                        f"[{self.name}] requires matching shapes except on axis {self.axis}, "
                        f"received: {input_shape}"
                    )
        self._axis = axis
        Layer.build(self, input_shape)

    def merge(self, inputs):
        return tf.concat(inputs, axis=self.axis)

    def compute_output_shape(self, input_shape):
        rank = len(input_shape[0])
        axis = self.axis if self.axis >= 0 else rank + self.axis
        output = list(input_shape[0])
        sizes = [shape[axis] for shape in input_shape]
        output[axis] = None if any(s is None for s in sizes) else sum(sizes)
        return tuple(output)

    def get_config(self):
        config = super().get_config()
        config["axis"] = self.axis
        return config

# ---------------------------------------------------------------------

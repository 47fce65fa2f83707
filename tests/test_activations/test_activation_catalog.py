import pytest
import numpy as np
import tensorflow as tf

from dl_modeling.activations import (
    Activation,
    Activations,
    HardShrinkActivation,
    HardSigmoidActivation,
    LinearActivation,
    SnakeActivation,
    SwishActivation,
    serialize_activation,
)


class TestActivationFormulas:
    """Activation outputs against numpy references."""

    @pytest.fixture
    def x(self) -> np.ndarray:
        return np.array([-3.0, -1.0, -0.25, 0.0, 0.25, 1.0, 3.0, 7.0], dtype=np.float32)

    @pytest.mark.parametrize("activation, reference", [
        (Activations.LINEAR, lambda x: x),
        (Activations.SIGMOID, lambda x: 1.0 / (1.0 + np.exp(-x))),
        (Activations.TANH, np.tanh),
        (Activations.RELU, lambda x: np.maximum(x, 0.0)),
        (Activations.RELU6, lambda x: np.clip(x, 0.0, 6.0)),
        (Activations.ELU, lambda x: np.where(x > 0, x, np.exp(x) - 1.0)),
        (Activations.EXPONENTIAL, np.exp),
        (Activations.SOFTPLUS, lambda x: np.log1p(np.exp(x))),
        (Activations.SOFTSIGN, lambda x: x / (np.abs(x) + 1.0)),
        (Activations.SWISH, lambda x: x / (1.0 + np.exp(-x))),
        (Activations.MISH, lambda x: x * np.tanh(np.log1p(np.exp(x)))),
        (Activations.LISHT, lambda x: x * np.tanh(x)),
        (Activations.TANH_SHRINK, lambda x: x - np.tanh(x)),
    ])
    def test_element_wise(self, x, activation, reference):
        output = Activations.convert(activation)(tf.constant(x)).numpy()
        np.testing.assert_allclose(output, reference(x), rtol=1e-5, atol=1e-6)

    def test_selu(self, x):
        alpha, scale = 1.6732632423543772, 1.0507009873554805
        expected = scale * np.where(x > 0, x, alpha * (np.exp(x) - 1.0))
        output = Activations.convert(Activations.SELU)(tf.constant(x)).numpy()
        np.testing.assert_allclose(output, expected, rtol=1e-5)

    def test_softmax_sums_to_one(self):
        logits = tf.constant([[1.0, 2.0, 3.0], [0.0, 0.0, 0.0]])
        output = Activations.convert("softmax")(logits).numpy()
        np.testing.assert_allclose(output.sum(axis=-1), [1.0, 1.0], rtol=1e-6)
        np.testing.assert_allclose(output[1], [1 / 3, 1 / 3, 1 / 3], rtol=1e-6)

    def test_log_softmax(self):
        logits = np.array([[1.0, 2.0, 3.0]], dtype=np.float32)
        output = Activations.convert(Activations.LOG_SOFTMAX)(tf.constant(logits)).numpy()
        expected = logits - np.log(np.exp(logits).sum(axis=-1, keepdims=True))
        np.testing.assert_allclose(output, expected, rtol=1e-5)

    def test_hard_sigmoid_is_clipped(self, x):
        output = HardSigmoidActivation()(tf.constant(x)).numpy()
        np.testing.assert_allclose(output, np.clip(0.2 * x + 0.5, 0.0, 1.0), rtol=1e-6)
        assert output.min() >= 0.0
        assert output.max() <= 1.0

    def test_hard_shrink(self, x):
        output = HardShrinkActivation(lower=-0.5, upper=0.5)(tf.constant(x)).numpy()
        expected = np.where((x < -0.5) | (x > 0.5), x, 0.0)
        np.testing.assert_allclose(output, expected)

    def test_hard_shrink_invalid_bounds(self):
        with pytest.raises(ValueError):
            HardShrinkActivation(lower=1.0, upper=0.0)

    def test_snake(self, x):
        output = SnakeActivation(frequency=2.0)(tf.constant(x)).numpy()
        expected = x + np.sin(2.0 * x) ** 2 / 2.0
        np.testing.assert_allclose(output, expected, rtol=1e-5, atol=1e-6)

    def test_gelu(self, x):
        output = Activations.convert(Activations.GELU)(tf.constant(x)).numpy()
        np.testing.assert_allclose(output, tf.nn.gelu(x).numpy(), rtol=1e-6)


class TestActivationsCatalog:
    """Identifier resolution and serialization."""

    def test_none_is_linear(self):
        assert Activations.from_identifier(None) is Activations.LINEAR
        assert isinstance(Activations.convert(None), LinearActivation)

    def test_keras_identifiers(self):
        assert Activations.from_identifier("relu") is Activations.RELU
        assert Activations.from_identifier("  Sigmoid ") is Activations.SIGMOID
        assert Activations.from_identifier("silu") is Activations.SWISH

    def test_unknown_identifier(self):
        with pytest.raises(ValueError, match="Unknown activation"):
            Activations.from_identifier("not_an_activation")

    def test_convert_keeps_instances(self):
        activation = SwishActivation()
        assert Activations.convert(activation) is activation

    def test_convert_wraps_callables(self):
        activation = Activations.convert(lambda t: t * 2.0)
        assert isinstance(activation, Activation)
        np.testing.assert_allclose(activation(tf.constant([1.0, 2.0])).numpy(), [2.0, 4.0])

    @pytest.mark.parametrize("member", list(Activations))
    def test_serialization_round_trip(self, member):
        activation = Activations.convert(member)
        assert serialize_activation(activation) == member.value
        assert Activations.from_identifier(serialize_activation(activation)) is member

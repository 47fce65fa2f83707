import pytest
import numpy as np
import tensorflow as tf

from dl_modeling.layers import ELU, BatchNorm, LeakyReLU, PReLU, ReLU, Softmax, ThresholdedReLU


@pytest.fixture
def x() -> np.ndarray:
    return np.array([[-2.0, -0.5, 0.0, 0.5, 1.0, 3.0, 8.0]], dtype=np.float32)


class TestReLUFamily:

    def test_plain_relu(self, x):
        np.testing.assert_allclose(ReLU()(x).numpy(), np.maximum(x, 0.0))

    def test_relu_with_cap_slope_and_threshold(self, x):
        output = ReLU(max_value=6.0, negative_slope=0.1, threshold=1.0)(x).numpy()
        expected = np.minimum(np.where(x >= 1.0, x, 0.1 * (x - 1.0)), 6.0)
        np.testing.assert_allclose(output, expected, rtol=1e-6)

    def test_relu_invalid(self):
        with pytest.raises(ValueError):
            ReLU(max_value=-1.0)
        with pytest.raises(ValueError):
            ReLU(negative_slope=-0.1)

    def test_thresholded_relu(self, x):
        output = ThresholdedReLU(threshold=0.5)(x).numpy()
        np.testing.assert_allclose(output, np.where(x > 0.5, x, 0.0))

    def test_thresholded_relu_keras_theta(self):
        layer = ThresholdedReLU.from_config({"name": "t", "trainable": True, "dtype": "float32", "theta": 2.0})
        assert layer.threshold == 2.0
        assert layer.get_config()["theta"] == 2.0

    def test_thresholded_relu_negative(self):
        with pytest.raises(ValueError):
            ThresholdedReLU(threshold=-1.0)

    def test_leaky_relu(self, x):
        np.testing.assert_allclose(LeakyReLU(0.2)(x).numpy(), np.where(x >= 0, x, 0.2 * x), rtol=1e-6)

    def test_leaky_relu_keras3_config(self):
        layer = LeakyReLU.from_config({"name": "l", "negative_slope": 0.1})
        assert layer.alpha == pytest.approx(0.1)

    def test_elu(self, x):
        np.testing.assert_allclose(ELU(0.5)(x).numpy(), np.where(x > 0, x, 0.5 * (np.exp(x) - 1.0)), rtol=1e-6)


class TestPReLU:

    def test_initial_slope_is_zero(self, x):
        np.testing.assert_allclose(PReLU()(x).numpy(), np.maximum(x, 0.0))

    def test_shared_axes(self):
        layer = PReLU(alpha_initializer={"class_name": "Constant", "config": {"value": 0.25}}, shared_axes=[1, 2])
        images = -np.ones((2, 4, 4, 3), dtype=np.float32)
        output = layer(images).numpy()
        assert layer.alpha.shape == (1, 1, 3)
        np.testing.assert_allclose(output, -0.25 * np.ones_like(images))

    def test_shared_axis_out_of_range(self):
        with pytest.raises(ValueError):
            PReLU(shared_axes=[3]).build((None, 4, 4))


def test_softmax_layer():
    output = Softmax(axis=-1)(tf.constant([[1.0, 1.0], [0.0, np.log(3.0)]])).numpy()
    np.testing.assert_allclose(output, [[0.5, 0.5], [0.25, 0.75]], rtol=1e-6)


class TestBatchNorm:

    @pytest.fixture
    def batch(self) -> np.ndarray:
        rng = np.random.default_rng(0)
        return rng.normal(3.0, 2.0, size=(64, 5)).astype(np.float32)

    def test_training_normalizes_with_batch_statistics(self, batch):
        layer = BatchNorm(epsilon=1e-5)
        output = layer(batch, training=True).numpy()
        np.testing.assert_allclose(output.mean(axis=0), np.zeros(5), atol=1e-4)
        np.testing.assert_allclose(output.std(axis=0), np.ones(5), atol=1e-2)

    def test_moving_statistics_update(self, batch):
        layer = BatchNorm(momentum=0.9)
        layer(batch, training=True)
        expected_mean = 0.1 * batch.mean(axis=0)
        np.testing.assert_allclose(layer.moving_mean.numpy(), expected_mean, rtol=1e-4)

    def test_inference_uses_moving_statistics(self, batch):
        layer = BatchNorm(epsilon=1e-3)
        output = layer(batch, training=False).numpy()
        np.testing.assert_allclose(output, batch / np.sqrt(1.0 + 1e-3), rtol=1e-5)

    def test_frozen_layer_keeps_statistics(self, batch):
        layer = BatchNorm(trainable=False)
        layer(batch, training=True)
        np.testing.assert_allclose(layer.moving_mean.numpy(), np.zeros(5))

    def test_variables(self):
        layer = BatchNorm(name="bn")
        layer.build((None, 8, 8, 4))
        assert list(layer.weights) == ["gamma", "beta", "moving_mean", "moving_variance"]
        assert len(layer.trainable_variables) == 2

    @pytest.mark.parametrize("kwargs", [{"momentum": 1.5}, {"epsilon": 0.0}, {"axis": [1, 2]}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            BatchNorm(**kwargs)

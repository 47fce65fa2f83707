import pytest
import numpy as np
import tensorflow as tf

from dl_modeling.layers import (
    AvgPool2D,
    Conv2D,
    Cropping2D,
    DepthwiseConv2D,
    GlobalAvgPool2D,
    GlobalMaxPool2D,
    MaxPool2D,
    ZeroPadding2D,
)


@pytest.fixture
def images() -> np.ndarray:
    return np.arange(2 * 6 * 6 * 3, dtype=np.float32).reshape((2, 6, 6, 3)) / 100.0


class TestConv2D:

    @pytest.mark.parametrize("padding, strides, expected", [
        ("same", (1, 1), (None, 6, 6, 4)),
        ("valid", (1, 1), (None, 4, 4, 4)),
        ("same", (2, 2), (None, 3, 3, 4)),
        ("valid", (2, 2), (None, 2, 2, 4)),
    ])
    def test_output_shape(self, images, padding, strides, expected):
        layer = Conv2D(4, (3, 3), strides=strides, padding=padding)
        assert layer.compute_output_shape((None, 6, 6, 3)) == expected
        assert layer(images).shape[1:] == expected[1:]

    def test_matches_keras_semantics(self, images):
        layer = Conv2D(2, 1, activation="linear", kernel_initializer="ones", bias_initializer="zeros")
        output = layer(images).numpy()
        np.testing.assert_allclose(output[..., 0], images.sum(axis=-1), rtol=1e-5)
        assert layer.kernel.shape == (1, 1, 3, 2)

    def test_requires_4d(self):
        with pytest.raises(ValueError):
            Conv2D(2).build((None, 6, 3))

    @pytest.mark.parametrize("kwargs", [
        {"filters": 0},
        {"kernel_size": (3, 3, 3)},
        {"padding": "full"},
        {"strides": 0},
    ])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            Conv2D(**kwargs)


class TestDepthwiseConv2D:

    def test_output_channels(self, images):
        layer = DepthwiseConv2D((3, 3), depth_multiplier=2)
        assert layer(images).shape == (2, 6, 6, 6)
        assert layer.depthwise_kernel.shape == (3, 3, 3, 2)
        assert layer.bias.shape == (6,)

    def test_strides_with_dilation(self):
        with pytest.raises(ValueError):
            DepthwiseConv2D(strides=2, dilation_rate=2)


class TestPadding:

    def test_zero_padding(self, images):
        layer = ZeroPadding2D(((1, 2), (0, 1)))
        output = layer(images)
        assert output.shape == (2, 9, 7, 3)
        assert layer.compute_output_shape((None, 6, 6, 3)) == (None, 9, 7, 3)
        np.testing.assert_array_equal(output.numpy()[:, 0], 0.0)

    def test_cropping(self, images):
        layer = Cropping2D(((1, 0), (2, 1)))
        output = layer(images).numpy()
        np.testing.assert_array_equal(output, images[:, 1:, 2:5, :])

    def test_cropping_everything(self):
        with pytest.raises(ValueError):
            Cropping2D(3).build((None, 6, 6, 3))


class TestPooling:

    def test_max_pool(self):
        x = np.array([[1, 2, 5, 6], [3, 4, 7, 8], [0, 0, 1, 1], [0, 9, 1, 1]], dtype=np.float32)
        output = MaxPool2D((2, 2))(x.reshape(1, 4, 4, 1)).numpy()
        np.testing.assert_array_equal(output.reshape(2, 2), [[4, 8], [9, 1]])

    def test_avg_pool(self):
        x = np.array([[1, 2, 5, 6], [3, 4, 7, 8], [0, 0, 1, 1], [0, 8, 1, 1]], dtype=np.float32)
        output = AvgPool2D(2)(x.reshape(1, 4, 4, 1)).numpy()
        np.testing.assert_allclose(output.reshape(2, 2), [[2.5, 6.5], [2.0, 1.0]])

    def test_default_strides(self):
        layer = MaxPool2D((3, 3))
        assert layer.strides == (3, 3)
        assert layer.compute_output_shape((None, 9, 9, 2)) == (None, 3, 3, 2)

    def test_global_pooling(self, images):
        np.testing.assert_allclose(GlobalAvgPool2D()(images).numpy(), images.mean(axis=(1, 2)), rtol=1e-5)
        np.testing.assert_allclose(GlobalMaxPool2D()(images).numpy(), images.max(axis=(1, 2)))
        assert GlobalAvgPool2D(keepdims=True).compute_output_shape((None, 6, 6, 3)) == (None, 1, 1, 3)

    def test_pool_config_round_trip(self):
        layer = AvgPool2D((2, 2), strides=1, padding="same", name="pool")
        restored = AvgPool2D.from_config(layer.get_config())
        assert restored.get_config() == layer.get_config()

import pytest
import numpy as np
import tensorflow as tf

from dl_modeling.regularizers import (
    L1,
    L2,
    L2L1,
    get_regularizer,
    serialize_regularizer,
    validate_penalty,
)


@pytest.fixture
def weights() -> tf.Tensor:
    return tf.constant([[1.0, -2.0], [0.5, -0.5]])


class TestL2L1:

    def test_combined_penalty(self, weights):
        penalty = L2L1(l1=0.1, l2=0.01)(weights).numpy()
        expected = 0.1 * 4.0 + 0.01 * (1.0 + 4.0 + 0.25 + 0.25)
        np.testing.assert_allclose(penalty, expected, rtol=1e-6)

    def test_zero_factors_give_zero(self, weights):
        assert float(L2L1()(weights)) == 0.0

    def test_l1_default(self, weights):
        regularizer = L1()
        assert regularizer.l1 == 0.01
        assert regularizer.l2 == 0.0
        np.testing.assert_allclose(regularizer(weights).numpy(), 0.04, rtol=1e-6)

    def test_l2(self, weights):
        np.testing.assert_allclose(L2(0.5)(weights).numpy(), 0.5 * 5.5, rtol=1e-6)

    def test_value_keyword(self, weights):
        assert L1(value=0.2).l1 == 0.2
        assert L2(value=0.3).l2 == 0.3
        np.testing.assert_allclose(L1(value=0.2)(weights).numpy(), 0.8, rtol=1e-6)
        with pytest.raises(ValueError):
            L2(value=-1.0)

    @pytest.mark.parametrize("value", [-0.1, float("nan"), float("inf"), "0.1", True])
    def test_invalid_penalty(self, value):
        with pytest.raises(ValueError):
            validate_penalty(value, "l1")

    def test_invalid_constructor(self):
        with pytest.raises(ValueError):
            L2L1(l1=-1.0)


class TestRegularizerResolution:

    def test_names(self):
        assert isinstance(get_regularizer("l1"), L1)
        assert isinstance(get_regularizer("L2"), L2)
        assert get_regularizer(None) is None

    def test_keras_l1l2_config(self):
        regularizer = get_regularizer({"class_name": "L1L2", "config": {"l1": 0.0, "l2": 0.0005}})
        assert type(regularizer) is L2L1
        assert regularizer.l2 == pytest.approx(0.0005)

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_regularizer("elastic")

    @pytest.mark.parametrize("regularizer, class_name", [
        (L1(0.2), "L1"),
        (L2(0.3), "L2"),
        (L2L1(0.1, 0.2), "L1L2"),
    ])
    def test_serialize(self, regularizer, class_name):
        config = serialize_regularizer(regularizer)
        assert config["class_name"] == class_name
        restored = get_regularizer(config)
        assert restored.get_config() == regularizer.get_config()

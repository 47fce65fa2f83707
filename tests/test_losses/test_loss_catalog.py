import pytest
import numpy as np
import tensorflow as tf

from dl_modeling.losses import (
    MSE,
    BinaryCrossentropy,
    Hinge,
    Huber,
    Losses,
    Reduction,
    SigmoidCrossEntropyWithLogits,
    SoftmaxCrossEntropyWithLogits,
)


@pytest.fixture
def regression():
    y_true = np.array([[1.0, 2.0], [3.0, 4.0]], dtype=np.float32)
    y_pred = np.array([[1.5, 1.0], [3.0, 6.0]], dtype=np.float32)
    return y_true, y_pred


class TestRegressionLosses:

    @pytest.mark.parametrize("identifier, reference", [
        ("mae", lambda t, p: np.mean(np.abs(t - p))),
        ("mse", lambda t, p: np.mean((t - p) ** 2)),
        ("msle", lambda t, p: np.mean((np.log1p(p) - np.log1p(t)) ** 2)),
        ("mape", lambda t, p: 100.0 * np.mean(np.abs((t - p) / t))),
        ("log_cosh", lambda t, p: np.mean(np.log(np.cosh(p - t)))),
        ("poisson", lambda t, p: np.mean(p - t * np.log(p + 1e-7))),
    ])
    def test_against_numpy(self, regression, identifier, reference):
        y_true, y_pred = regression
        loss = Losses.convert(identifier)
        np.testing.assert_allclose(loss(y_true, y_pred).numpy(), reference(y_true, y_pred), rtol=1e-5)

    def test_huber(self, regression):
        y_true, y_pred = regression
        error = np.abs(y_pred - y_true)
        expected = np.mean(np.where(error <= 1.0, 0.5 * error ** 2, error - 0.5))
        np.testing.assert_allclose(Huber(delta=1.0)(y_true, y_pred).numpy(), expected, rtol=1e-6)

    def test_huber_invalid_delta(self):
        with pytest.raises(ValueError):
            Huber(delta=0.0)

    def test_reductions(self, regression):
        y_true, y_pred = regression
        per_sample = MSE(reduction=Reduction.NONE)(y_true, y_pred).numpy()
        np.testing.assert_allclose(per_sample, [0.625, 2.0])
        np.testing.assert_allclose(MSE(reduction="sum")(y_true, y_pred).numpy(), 2.625)


class TestClassificationLosses:

    def test_softmax_cross_entropy(self):
        labels = np.array([[0.0, 1.0, 0.0], [1.0, 0.0, 0.0]], dtype=np.float32)
        logits = np.array([[1.0, 2.0, 0.5], [0.0, 0.0, 0.0]], dtype=np.float32)
        probabilities = np.exp(logits) / np.exp(logits).sum(axis=-1, keepdims=True)
        expected = np.mean(-np.log((labels * probabilities).sum(axis=-1)))
        loss = SoftmaxCrossEntropyWithLogits()
        np.testing.assert_allclose(loss(labels, logits).numpy(), expected, rtol=1e-5)
        np.testing.assert_allclose(loss.output_transform(tf.constant(logits)).numpy(), probabilities, rtol=1e-5)

    def test_sigmoid_cross_entropy(self):
        labels = np.array([[1.0], [0.0]], dtype=np.float32)
        logits = np.array([[2.0], [-1.0]], dtype=np.float32)
        p = 1.0 / (1.0 + np.exp(-logits))
        expected = np.mean(-(labels * np.log(p) + (1 - labels) * np.log(1 - p)))
        loss = SigmoidCrossEntropyWithLogits()
        np.testing.assert_allclose(loss(labels, logits).numpy(), expected, rtol=1e-5)
        np.testing.assert_allclose(loss.output_transform(tf.constant(logits)).numpy(), p, rtol=1e-6)

    def test_binary_crossentropy(self):
        labels = np.array([[1.0, 0.0]], dtype=np.float32)
        probabilities = np.array([[0.8, 0.3]], dtype=np.float32)
        expected = -np.mean([np.log(0.8), np.log(0.7)])
        np.testing.assert_allclose(BinaryCrossentropy()(labels, probabilities).numpy(), expected, rtol=1e-5)

    def test_hinge_maps_binary_labels(self):
        labels = np.array([[1.0, 0.0]], dtype=np.float32)
        outputs = np.array([[0.5, 0.5]], dtype=np.float32)
        # targets become [1, -1]
        np.testing.assert_allclose(Hinge()(labels, outputs).numpy(), np.mean([0.5, 1.5]))

    def test_output_transform_is_identity_by_default(self):
        values = tf.constant([[0.2, 3.0]])
        np.testing.assert_array_equal(MSE().output_transform(values).numpy(), values.numpy())


class TestLossesCatalog:

    def test_aliases(self):
        assert isinstance(Losses.convert("MSE"), MSE)
        assert isinstance(Losses.convert(Losses.SOFT_MAX_CROSS_ENTROPY_WITH_LOGITS), SoftmaxCrossEntropyWithLogits)

    def test_instances_pass_through(self):
        loss = Huber(delta=2.0)
        assert Losses.convert(loss) is loss

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown loss"):
            Losses.convert("triplet")

    @pytest.mark.parametrize("member", list(Losses))
    def test_every_member_converts(self, member):
        assert Losses.convert(member) is not None

import pytest

from dl_modeling.optimization import (
    SGD,
    AdaGradDA,
    Adam,
    ClipGradientByNorm,
    ClipGradientByValue,
    Ftrl,
    Momentum,
    NoClipGradient,
    OptimizerType,
    RMSProp,
    clip_gradient_from_config,
    optimizer_builder,
)


class TestOptimizerBuilder:

    @pytest.mark.parametrize("optimizer_type", [t.value for t in OptimizerType])
    def test_every_type_builds(self, optimizer_type):
        optimizer = optimizer_builder({"type": optimizer_type})
        assert isinstance(optimizer.clip_gradient, NoClipGradient)

    def test_hyperparameters(self):
        optimizer = optimizer_builder({"type": "Adam", "learning_rate": 0.01, "beta1": 0.8})
        assert isinstance(optimizer, Adam)
        assert optimizer.learning_rate == 0.01
        assert optimizer.beta1 == 0.8

    def test_clipping(self):
        optimizer = optimizer_builder({"type": "sgd", "clip_gradient_by_value": 0.5})
        assert isinstance(optimizer, SGD)
        assert isinstance(optimizer.clip_gradient, ClipGradientByValue)
        optimizer = optimizer_builder({"type": "rmsprop", "clip_gradient_by_norm": 2.0, "centered": True})
        assert isinstance(optimizer, RMSProp)
        assert isinstance(optimizer.clip_gradient, ClipGradientByNorm)
        assert optimizer.centered

    def test_short_penalty_names(self):
        optimizer = optimizer_builder({"type": "adagrad_da", "l1": 0.1, "l2": 0.2})
        assert isinstance(optimizer, AdaGradDA)
        assert (optimizer.l1_strength, optimizer.l2_strength) == (0.1, 0.2)
        optimizer = optimizer_builder({"type": "ftrl", "l1": 0.1, "l2": 0.2, "l2_shrinkage": 0.3})
        assert isinstance(optimizer, Ftrl)
        assert optimizer.l1_regularization_strength == 0.1
        assert optimizer.l2_regularization_strength == 0.2
        assert optimizer.l2_shrinkage_regularization_strength == 0.3
        with pytest.raises(ValueError):
            Ftrl(l2_shrinkage=-1.0)

    def test_both_clipping_options(self):
        with pytest.raises(ValueError):
            optimizer_builder({"type": "sgd", "clip_gradient_by_value": 0.5, "clip_gradient_by_norm": 1.0})

    @pytest.mark.parametrize("config, message", [
        ("adam", "config must be a dictionary"),
        ({}, "optimizer type must be specified"),
        ({"type": "lion"}, "Unknown optimizer_type"),
        ({"type": "sgd", "momentum": 0.9}, "Invalid parameters"),
    ])
    def test_invalid_config(self, config, message):
        with pytest.raises(ValueError, match=message):
            optimizer_builder(config)

    def test_invalid_hyperparameter_value(self):
        with pytest.raises(ValueError):
            optimizer_builder({"type": "adam", "beta1": 1.5})


class TestOptimizerConfig:

    @pytest.mark.parametrize("optimizer", [
        Momentum(0.05, momentum=0.5, use_nesterov=True),
        Adam(0.002, clip_gradient=ClipGradientByNorm(3.0)),
        Ftrl(0.1, l1_regularization_strength=0.01),
        AdaGradDA(0.2, l2_strength=0.1, clip_gradient=ClipGradientByValue(1.0)),
    ])
    def test_round_trip(self, optimizer):
        restored = type(optimizer).from_config(optimizer.get_config())
        assert restored.get_config() == optimizer.get_config()

    def test_clip_config(self):
        assert isinstance(clip_gradient_from_config(None), NoClipGradient)
        assert clip_gradient_from_config({"type": "value", "clip_value": 0.3}).clip_value == 0.3
        with pytest.raises(ValueError):
            clip_gradient_from_config({"type": "percentile"})

    def test_repr(self):
        assert repr(SGD(0.5)) == "SGD(learning_rate=0.5)"

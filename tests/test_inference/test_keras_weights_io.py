import json
import h5py
import pytest
import numpy as np

from dl_modeling.activations import Activations
from dl_modeling.constants import MODEL_CONFIG_FILE_NAME, MODEL_WEIGHTS_FILE_NAME
from dl_modeling.exceptions import ModelNotCompiledError, WeightsMismatchError
from dl_modeling.inference.keras import (
    load_optimizer_state,
    load_weights,
    load_weights_for_frozen_layers,
    read_model_configuration,
    resolve_weight_kinds,
    save_weights,
    weight_kind,
)
from dl_modeling.layers import Dense, DepthwiseConv2D, Input
from dl_modeling.models import Sequential
from dl_modeling.optimization import Adam

# ---------------------------------------------------------------------


def make_model(hidden_units: int = 4) -> Sequential:
    return Sequential.of(
        Input(3, name="features"),
        Dense(hidden_units, activation=Activations.RELU, name="hidden"),
        Dense(2, activation=Activations.LINEAR, name="logits"),
        name="tiny"
    )


def assert_same_weights(first: Sequential, second: Sequential):
    for name in ("hidden", "logits"):
        expected = first.get_layer(name).get_weights()
        actual = second.get_layer(name).get_weights()
        assert expected.keys() == actual.keys()
        for kind in expected:
            np.testing.assert_allclose(actual[kind], expected[kind])

# ---------------------------------------------------------------------


class TestWeightNames:

    @pytest.mark.parametrize("name,kind", [
        ("block1_conv1/kernel:0", "kernel"),
        ("dense/bias:0", "bias"),
        ("bn/moving_mean", "moving_mean"),
    ])
    def test_weight_kind(self, name, kind):
        assert weight_kind(name) == kind


class TestSaveAndLoad:

    def test_round_trip(self, tmp_path):
        source = make_model()
        source.build()
        path = tmp_path / "weights.h5"
        save_weights(source, path)

        target = make_model()
        loaded = load_weights(target, path)
        assert loaded == ["hidden", "logits"]
        assert_same_weights(source, target)

    def test_file_layout(self, tmp_path):
        model = make_model()
        path = tmp_path / "weights.h5"
        save_weights(model, path)
        with h5py.File(path, "r") as f:
            root = f["model_weights"]
            layer_names = [n.decode("utf-8") for n in root.attrs["layer_names"]]
            assert layer_names == ["features", "hidden", "logits"]
            weight_names = [n.decode("utf-8") for n in root["hidden"].attrs["weight_names"]]
            assert weight_names == ["hidden/kernel:0", "hidden/bias:0"]
            assert root["hidden"]["hidden/kernel:0"].shape == (3, 4)
        assert read_model_configuration(path)["class_name"] == "Sequential"

    def test_selected_layers(self, tmp_path):
        source = make_model()
        path = tmp_path / "weights.h5"
        save_weights(source, path)

        target = make_model()
        target.build()
        initial_logits = target.get_layer("logits").get_weights()
        assert load_weights(target, path, layers=["hidden"]) == ["hidden"]
        np.testing.assert_allclose(
            target.get_layer("hidden").get_weights()["kernel"],
            source.get_layer("hidden").get_weights()["kernel"])
        np.testing.assert_allclose(target.get_layer("logits").get_weights()["kernel"], initial_logits["kernel"])

    def test_unknown_selected_layer(self, tmp_path):
        path = tmp_path / "weights.h5"
        save_weights(make_model(), path)
        with pytest.raises(ValueError):
            load_weights(make_model(), path, layers=["nope"])

    def test_missing_layer(self, tmp_path):
        source = Sequential.of(Input(3, name="features"), Dense(4, name="hidden"), name="partial")
        path = tmp_path / "weights.h5"
        save_weights(source, path)

        with pytest.raises(WeightsMismatchError):
            load_weights(make_model(), path)
        assert load_weights(make_model(), path, missing_ok=True) == ["hidden"]

    def test_shape_mismatch(self, tmp_path):
        path = tmp_path / "weights.h5"
        save_weights(make_model(hidden_units=4), path)
        with pytest.raises(WeightsMismatchError):
            load_weights(make_model(hidden_units=5), path)

    def test_keras_file_without_model_weights_group(self, tmp_path):
        kernel = np.arange(6, dtype=np.float32).reshape(3, 2)
        bias = np.array([0.5, -0.5], dtype=np.float32)
        path = tmp_path / "keras_weights.h5"
        with h5py.File(path, "w") as f:
            f.attrs["layer_names"] = np.array([b"dense"], dtype="S")
            group = f.create_group("dense")
            group.attrs["weight_names"] = np.array([b"dense/kernel:0", b"dense/bias:0"], dtype="S")
            group.create_dataset("dense/kernel:0", data=kernel)
            group.create_dataset("dense/bias:0", data=bias)

        model = Sequential.of(Input(3), Dense(2, activation=Activations.LINEAR, name="dense"))
        load_weights(model, path)
        output = model.get_layer("dense")(np.ones((1, 3), dtype=np.float32)).numpy()
        np.testing.assert_allclose(output, [[6.5, 8.5]])

    def test_keras3_depthwise_kernel_name(self, tmp_path):
        kernel = np.random.default_rng(0).normal(size=(3, 3, 2, 1)).astype(np.float32)
        bias = np.array([0.1, -0.1], dtype=np.float32)
        path = tmp_path / "keras3_weights.h5"
        with h5py.File(path, "w") as f:
            root = f.create_group("model_weights")
            root.attrs["layer_names"] = np.array([b"dw"], dtype="S")
            group = root.create_group("dw")
            group.attrs["weight_names"] = np.array([b"dw/kernel", b"dw/bias"], dtype="S")
            group.create_dataset("dw/kernel", data=kernel)
            group.create_dataset("dw/bias", data=bias)

        model = Sequential.of(
            Input(4, 4, 2), DepthwiseConv2D(kernel_size=3, padding="valid", activation=Activations.LINEAR, name="dw"))
        assert load_weights(model, path) == ["dw"]
        weights = model.get_layer("dw").get_weights()
        np.testing.assert_allclose(weights["depthwise_kernel"], kernel)
        np.testing.assert_allclose(weights["bias"], bias)

    def test_weight_kinds_are_resolved_per_layer(self):
        layer = DepthwiseConv2D(kernel_size=1, name="dw")
        layer.build((None, 2, 2, 1))
        dense = Dense(1, name="d")
        dense.build((None, 1))
        value = np.zeros((1, 1, 1, 1))
        assert list(resolve_weight_kinds(layer, {"kernel": value, "bias": value})) == ["depthwise_kernel", "bias"]
        assert list(resolve_weight_kinds(dense, {"kernel": value})) == ["kernel"]

    def test_frozen_layers_only(self, tmp_path):
        source = make_model()
        path = tmp_path / "weights.h5"
        save_weights(source, path)

        target = make_model()
        target.get_layer("hidden").trainable = False
        assert load_weights_for_frozen_layers(target, path) == ["hidden"]

# ---------------------------------------------------------------------


class TestModelSave:

    def test_save_directory(self, tmp_path):
        model = make_model()
        model.save(tmp_path / "saved")
        assert (tmp_path / "saved" / MODEL_CONFIG_FILE_NAME).exists()
        assert (tmp_path / "saved" / MODEL_WEIGHTS_FILE_NAME).exists()

        restored = Sequential.load_model_configuration(tmp_path / "saved" / MODEL_CONFIG_FILE_NAME)
        restored.load_weights(tmp_path / "saved" / MODEL_WEIGHTS_FILE_NAME)
        assert_same_weights(model, restored)

        config = json.loads((tmp_path / "saved" / MODEL_CONFIG_FILE_NAME).read_text())
        assert config["config"]["name"] == "tiny"

    def test_no_overwrite(self, tmp_path):
        model = make_model()
        model.save(tmp_path)
        with pytest.raises(FileExistsError):
            model.save(tmp_path, overwrite=False)

    def test_optimizer_state_requires_compile(self, tmp_path):
        with pytest.raises(ModelNotCompiledError):
            make_model().save(tmp_path, save_optimizer_state=True)

# ---------------------------------------------------------------------


class TestOptimizerState:

    def test_round_trip(self, tmp_path):
        source = make_model()
        source.compile(optimizer=Adam(learning_rate=0.01))
        slots = source.optimizer.slot_variables()
        slots["hidden/kernel-m"].assign(np.full((3, 4), 0.25, dtype=np.float32))
        slots["beta1_power"].assign(0.5)
        source.save(tmp_path, save_optimizer_state=True)

        with h5py.File(tmp_path / MODEL_WEIGHTS_FILE_NAME, "r") as f:
            assert f["optimizer_weights"].attrs["optimizer_name"] == "Adam"

        target = make_model()
        target.compile(optimizer=Adam(learning_rate=0.01))
        restored = load_optimizer_state(target, tmp_path / MODEL_WEIGHTS_FILE_NAME)
        assert restored == len(slots)
        restored_slots = target.optimizer.slot_variables()
        np.testing.assert_allclose(restored_slots["hidden/kernel-m"].numpy(), 0.25)
        assert restored_slots["beta1_power"].numpy() == pytest.approx(0.5)

    def test_requires_compiled_model(self, tmp_path):
        path = tmp_path / "weights.h5"
        save_weights(make_model(), path)
        with pytest.raises(ModelNotCompiledError):
            load_optimizer_state(make_model(), path)

    def test_file_without_state(self, tmp_path):
        path = tmp_path / "weights.h5"
        save_weights(make_model(), path)
        model = make_model()
        model.compile()
        with pytest.raises(WeightsMismatchError):
            load_optimizer_state(model, path)

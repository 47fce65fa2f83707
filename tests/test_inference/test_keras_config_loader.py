import json
import h5py
import pytest

from dl_modeling.exceptions import UnsupportedLayerError
from dl_modeling.inference.keras import (
    inbound_layer_names,
    layer_from_config,
    load_model_configuration,
    model_from_config,
    model_to_config,
    save_model_configuration,
)
from dl_modeling.layers import Add, Conv2D, Dense, Flatten, Input, MaxPool2D, ThresholdedReLU
from dl_modeling.models import Functional, Sequential
from dl_modeling.regularizers import L2L1

# ---------------------------------------------------------------------

KERAS2_SEQUENTIAL = {
    "class_name": "Sequential",
    "config": {
        "name": "lenet",
        "layers": [
            {"class_name": "Conv2D", "config": {
                "name": "conv2d", "trainable": True, "batch_input_shape": [None, 28, 28, 1],
                "dtype": "float32", "filters": 6, "kernel_size": [5, 5], "strides": [1, 1],
                "padding": "same", "data_format": "channels_last", "dilation_rate": [1, 1],
                "activation": "tanh", "use_bias": True,
                "kernel_initializer": {"class_name": "GlorotUniform", "config": {"seed": None}},
                "bias_initializer": {"class_name": "Zeros", "config": {}},
                "kernel_regularizer": {"class_name": "L1L2", "config": {"l1": 0.0, "l2": 0.0005}},
                "bias_regularizer": None, "activity_regularizer": None,
                "kernel_constraint": None, "bias_constraint": None}},
            {"class_name": "MaxPooling2D", "config": {
                "name": "max_pooling2d", "trainable": True, "dtype": "float32", "pool_size": [2, 2],
                "padding": "valid", "strides": [2, 2], "data_format": "channels_last"}},
            {"class_name": "Flatten", "config": {
                "name": "flatten", "trainable": True, "dtype": "float32", "data_format": "channels_last"}},
            {"class_name": "Dense", "config": {
                "name": "dense", "trainable": True, "dtype": "float32", "units": 10,
                "activation": "linear", "use_bias": True,
                "kernel_initializer": {"class_name": "HeNormal", "config": {"seed": None}},
                "bias_initializer": {"class_name": "Zeros", "config": {}},
                "kernel_regularizer": None, "bias_regularizer": None, "activity_regularizer": None,
                "kernel_constraint": None, "bias_constraint": None}},
        ]
    },
    "keras_version": "2.4.0",
    "backend": "tensorflow"
}

KERAS2_FUNCTIONAL = {
    "class_name": "Functional",
    "config": {
        "name": "residual",
        "layers": [
            {"class_name": "InputLayer", "name": "input_1", "inbound_nodes": [], "config": {
                "batch_input_shape": [None, 4], "dtype": "float32", "sparse": False, "ragged": False,
                "name": "input_1"}},
            {"class_name": "Dense", "name": "a", "inbound_nodes": [[["input_1", 0, 0, {}]]],
             "config": {"name": "a", "trainable": True, "units": 4, "activation": "relu"}},
            {"class_name": "Dense", "name": "b", "inbound_nodes": [[["a", 0, 0, {}]]],
             "config": {"name": "b", "trainable": True, "units": 4, "activation": "relu"}},
            {"class_name": "Add", "name": "add", "inbound_nodes": [[["a", 0, 0, {}], ["b", 0, 0, {}]]],
             "config": {"name": "add", "trainable": True}},
            {"class_name": "Dense", "name": "out", "inbound_nodes": [[["add", 0, 0, {}]]],
             "config": {"name": "out", "trainable": True, "units": 2, "activation": "linear"}},
        ],
        "input_layers": [["input_1", 0, 0]],
        "output_layers": [["out", 0, 0]],
    },
    "keras_version": "2.4.0",
    "backend": "tensorflow"
}


def keras3_tensor(name: str, shape):
    return {
        "class_name": "__keras_tensor__",
        "config": {"shape": shape, "dtype": "float32", "keras_history": [name, 0, 0]}
    }


KERAS3_FUNCTIONAL = {
    "module": "keras.src.models.functional",
    "class_name": "Functional",
    "config": {
        "name": "k3",
        "trainable": True,
        "layers": [
            {"module": "keras.layers", "class_name": "InputLayer", "name": "pixels", "inbound_nodes": [],
             "config": {"batch_shape": [None, 8, 8, 3], "dtype": "float32", "sparse": False, "name": "pixels"}},
            {"module": "keras.layers", "class_name": "Conv2D", "name": "conv",
             "config": {"name": "conv", "trainable": True,
                        "dtype": {"module": "keras", "class_name": "DTypePolicy", "config": {"name": "float32"}},
                        "filters": 2, "kernel_size": [3, 3], "strides": [1, 1], "padding": "valid",
                        "data_format": "channels_last", "dilation_rate": [1, 1], "groups": 1,
                        "activation": "relu", "use_bias": True,
                        "kernel_initializer": {"module": "keras.initializers", "class_name": "GlorotUniform",
                                               "config": {"seed": None}, "registered_name": None},
                        "bias_initializer": {"module": "keras.initializers", "class_name": "Zeros",
                                             "config": {}, "registered_name": None},
                        "kernel_regularizer": None, "bias_regularizer": None, "activity_regularizer": None,
                        "kernel_constraint": None, "bias_constraint": None},
             "inbound_nodes": [{"args": [keras3_tensor("pixels", [None, 8, 8, 3])], "kwargs": {}}]},
            {"module": "keras.layers", "class_name": "Flatten", "name": "flatten",
             "config": {"name": "flatten", "trainable": True, "dtype": "float32", "data_format": "channels_last"},
             "inbound_nodes": [{"args": [keras3_tensor("conv", [None, 6, 6, 2])], "kwargs": {}}]},
            {"module": "keras.layers", "class_name": "Dense", "name": "head",
             "config": {"name": "head", "trainable": True, "dtype": "float32", "units": 3,
                        "activation": "softmax", "use_bias": True, "lora_rank": None},
             "inbound_nodes": [{"args": [keras3_tensor("flatten", [None, 72])], "kwargs": {}}]},
        ],
        "input_layers": ["pixels", 0, 0],
        "output_layers": ["head", 0, 0],
    },
}

# ---------------------------------------------------------------------


class TestKeras2Configs:

    def test_sequential_with_implicit_input(self):
        model = model_from_config(KERAS2_SEQUENTIAL)
        assert isinstance(model, Sequential)
        assert model.name == "lenet"
        assert model.input_dimensions == (28, 28, 1)
        assert [type(l) for l in model.layers[1:]] == [Conv2D, MaxPool2D, Flatten, Dense]
        conv = model.get_layer("conv2d")
        assert conv.filters == 6
        assert isinstance(conv.kernel_regularizer, L2L1)
        model.build()
        assert model.output_layer.output_shape == (None, 10)

    def test_functional(self):
        model = model_from_config(KERAS2_FUNCTIONAL)
        assert isinstance(model, Functional)
        assert [l.name for l in model.layers] == ["input_1", "a", "b", "add", "out"]
        assert [l.name for l in model.get_layer("add").inbound_layers] == ["a", "b"]
        assert isinstance(model.get_layer("add"), Add)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "model.json"
        path.write_text(json.dumps(KERAS2_FUNCTIONAL))
        assert isinstance(load_model_configuration(path), Functional)
        assert isinstance(Functional.load_model_configuration(path), Functional)
        with pytest.raises(ValueError):
            Sequential.load_model_configuration(path)

    def test_load_from_hdf5_attribute(self, tmp_path):
        path = tmp_path / "model.h5"
        with h5py.File(path, "w") as f:
            f.attrs["model_config"] = json.dumps(KERAS2_SEQUENTIAL)
        assert isinstance(Sequential.load_model_configuration(path), Sequential)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_model_configuration(tmp_path / "missing.json")


class TestKeras3Configs:

    def test_functional(self):
        model = model_from_config(KERAS3_FUNCTIONAL)
        assert [l.name for l in model.layers] == ["pixels", "conv", "flatten", "head"]
        assert model.input_dimensions == (8, 8, 3)
        model.build()
        assert model.get_layer("flatten").output_shape == (None, 72)

    def test_inbound_names(self):
        entry = {"inbound_nodes": [{"args": [[keras3_tensor("a", [None, 2]), keras3_tensor("b", [None, 2])]],
                                    "kwargs": {}}]}
        assert inbound_layer_names(entry) == ["a", "b"]

    def test_sequential_with_input_layer(self):
        config = {
            "class_name": "Sequential",
            "config": {"name": "seq", "layers": [
                {"class_name": "InputLayer", "config": {"batch_shape": [None, 5], "name": "input_layer"}},
                {"class_name": "Dense", "config": {"name": "dense", "units": 1, "activation": "sigmoid"}},
            ]},
        }
        model = model_from_config(config)
        assert model.input_layer.name == "input_layer"
        assert model.input_dimensions == (5,)


class TestConfigErrors:

    def test_unsupported_layer(self):
        with pytest.raises(UnsupportedLayerError):
            layer_from_config({"class_name": "LSTM", "config": {"units": 4}})

    def test_shared_layer(self):
        entry = {"name": "shared", "inbound_nodes": [[["a", 0, 0, {}]], [["b", 0, 0, {}]]]}
        with pytest.raises(ValueError):
            inbound_layer_names(entry)

    def test_unknown_model_class(self):
        with pytest.raises(ValueError):
            model_from_config({"class_name": "Subclassed", "config": {"layers": [{"class_name": "Dense"}]}})

    def test_no_input_shape(self):
        config = {"class_name": "Sequential", "config": {"layers": [
            {"class_name": "Dense", "config": {"name": "d", "units": 2}}]}}
        with pytest.raises(ValueError):
            model_from_config(config)

    def test_aliases_and_keras_argument_names(self):
        layer = layer_from_config({"class_name": "ThresholdedReLU", "config": {"name": "t", "theta": 0.5}})
        assert isinstance(layer, ThresholdedReLU)
        assert layer.threshold == 0.5
        assert isinstance(layer_from_config({"class_name": "MaxPool2D", "config": {}}), MaxPool2D)


class TestConfigSaver:

    def test_sequential_round_trip(self, tmp_path):
        model = model_from_config(KERAS2_SEQUENTIAL)
        path = tmp_path / "saved.json"
        save_model_configuration(model, path)
        saved = json.loads(path.read_text())
        assert saved["class_name"] == "Sequential"
        assert saved["config"]["layers"][0]["class_name"] == "InputLayer"
        restored = load_model_configuration(path)
        assert [l.name for l in restored.layers] == [l.name for l in model.layers]
        assert [l.get_config() for l in restored.layers] == [l.get_config() for l in model.layers]

    def test_functional_round_trip(self):
        inputs = Input(3, name="x")
        left = Dense(2, name="left")(inputs)
        right = Dense(2, name="right")(inputs)
        merged = Add(name="merge")([left, right])
        model = Functional.from_output(merged, name="diamond")
        config = model_to_config(model)
        assert config["class_name"] == "Functional"
        assert config["config"]["output_layers"] == [["merge", 0, 0]]
        merge_entry = [e for e in config["config"]["layers"] if e["name"] == "merge"][0]
        assert merge_entry["inbound_nodes"] == [[["left", 0, 0, {}], ["right", 0, 0, {}]]]
        restored = model_from_config(json.loads(json.dumps(config)))
        assert [l.name for l in restored.get_layer("merge").inbound_layers] == ["left", "right"]

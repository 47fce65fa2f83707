import json
import pytest
import numpy as np

from dl_modeling.activations import Activations
from dl_modeling.inference import imagenet
from dl_modeling.inference.imagenet import fetch_class_labels, load_class_labels, predict_top_k_labels
from dl_modeling.layers import Dense, Input
from dl_modeling.models import Sequential

# ---------------------------------------------------------------------

CLASS_INDEX = {
    "0": ["n01440764", "tench"],
    "1": ["n01443537", "goldfish"],
    "2": ["n01484850", "great_white_shark"],
}


@pytest.fixture
def class_index_file(tmp_path):
    path = tmp_path / "imagenet_class_index.json"
    path.write_text(json.dumps(CLASS_INDEX))
    return path


@pytest.fixture
def identity_model():
    model = Sequential.of(Input(3), Dense(3, activation=Activations.LINEAR, name="logits"))
    model.compile()
    model.get_layer("logits").set_weights({"kernel": np.eye(3, dtype=np.float32),
                                           "bias": np.zeros(3, dtype=np.float32)})
    return model

# ---------------------------------------------------------------------


class TestClassLabels:

    def test_load(self, class_index_file):
        assert load_class_labels(class_index_file) == {0: "tench", 1: "goldfish", 2: "great_white_shark"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_class_labels(tmp_path / "missing.json")

    def test_fetch_uses_keras_cache(self, class_index_file, monkeypatch):
        import keras.utils

        calls = []

        def fake_get_file(fname, origin, **kwargs):
            calls.append((fname, origin))
            return str(class_index_file)

        monkeypatch.setattr(keras.utils, "get_file", fake_get_file)
        assert fetch_class_labels()[1] == "goldfish"
        assert calls == [(imagenet.IMAGENET_CLASS_INDEX_FILE_NAME, imagenet.IMAGENET_CLASS_INDEX_URL)]


class TestTopK:

    def test_ranking(self, identity_model, class_index_file):
        labels = load_class_labels(class_index_file)
        top = predict_top_k_labels(identity_model, np.array([0.0, 2.0, 1.0]), labels, k=2)
        assert list(top) == [1, 2]
        assert top[1][0] == "goldfish"
        assert top[2][0] == "great_white_shark"
        assert top[1][1] > top[2][1]
        expected = np.exp(2.0) / np.sum(np.exp([0.0, 2.0, 1.0]))
        assert top[1][1] == pytest.approx(expected, rel=1e-5)

    def test_k_larger_than_classes(self, identity_model):
        top = predict_top_k_labels(identity_model, np.array([3.0, 2.0, 1.0]), {0: "a"}, k=10)
        assert len(top) == 3
        assert top[1][0] == "a"
        assert top[2][0] == "1"

    @pytest.mark.parametrize("k", [0, -1])
    def test_invalid_k(self, identity_model, k):
        with pytest.raises(ValueError):
            predict_top_k_labels(identity_model, np.zeros(3), {}, k=k)

import pytest

from dl_modeling.config import TrainingConfig


def test_defaults():
    config = TrainingConfig()
    assert config.epochs == 5
    assert config.batch_size == 32
    assert config.validation_rate == 0.0
    assert config.eval_batch_size == 32


def test_eval_batch_size_follows_batch_size():
    assert TrainingConfig(batch_size=64).eval_batch_size == 64
    assert TrainingConfig(batch_size=64, eval_batch_size=500).eval_batch_size == 500


@pytest.mark.parametrize("kwargs", [
    {"epochs": 0},
    {"batch_size": -3},
    {"validation_rate": 1.0},
    {"validation_rate": -0.1},
])
def test_invalid(kwargs):
    with pytest.raises(ValueError):
        TrainingConfig(**kwargs)


def test_from_dict_ignores_unknown_keys():
    config = TrainingConfig.from_dict({"epochs": 2, "validation_rate": 0.2, "learning_rate": 0.1})
    assert config.epochs == 2
    assert config.validation_rate == 0.2


def test_from_dict_requires_dict():
    with pytest.raises(ValueError):
        TrainingConfig.from_dict([("epochs", 2)])

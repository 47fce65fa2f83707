import pytest
import numpy as np

from dl_modeling.callbacks import Callback, EarlyStopping, History


class FakeModel:
    """Stands in for a model, records weight snapshots as integers."""

    def __init__(self):
        self.stop_training = False
        self.current = 0
        self.restored = None

    def get_weights(self):
        return self.current

    def set_weights(self, weights):
        self.restored = weights


def run_epochs(callback, values, monitor="val_loss", model=None):
    model = model or FakeModel()
    callback.set_model(model)
    callback.on_train_begin()
    for epoch, value in enumerate(values, start=1):
        model.current = epoch
        callback.on_epoch_end(epoch, {monitor: value})
        if model.stop_training:
            break
    return model


class TestHistory:

    def test_records_epochs_and_batches(self):
        history = History()
        history.on_train_begin()
        history.on_train_batch_end(0, {"loss": 1.0})
        history.on_train_batch_end(1, {"loss": 0.5})
        history.on_epoch_end(1, {"loss": 0.75, "accuracy": 0.5})
        history.on_epoch_end(2, {"loss": 0.25, "accuracy": 0.9})
        assert history.epochs == [1, 2]
        assert history["loss"] == [0.75, 0.25]
        assert history.batch_history["loss"] == [1.0, 0.5]
        assert history.last_epoch() == {"loss": 0.25, "accuracy": 0.9}
        assert len(history) == 2

    def test_reset_on_train_begin(self):
        history = History()
        history.on_epoch_end(1, {"loss": 1.0})
        history.on_train_begin()
        assert len(history) == 0
        assert history.last_epoch() == {}


class TestEarlyStopping:

    def test_stops_after_patience(self):
        callback = EarlyStopping(patience=2)
        model = run_epochs(callback, [1.0, 0.8, 0.9, 0.85, 0.7])
        assert model.stop_training
        assert callback.stopped_epoch == 4
        assert callback.best == 0.8

    def test_keeps_training_while_improving(self):
        model = run_epochs(EarlyStopping(patience=0), [1.0, 0.9, 0.8, 0.7])
        assert not model.stop_training

    def test_min_delta(self):
        callback = EarlyStopping(patience=1, min_delta=0.1)
        model = run_epochs(callback, [1.0, 0.95, 0.92])
        assert model.stop_training
        assert callback.stopped_epoch == 2

    def test_auto_mode_maximizes_accuracy(self):
        callback = EarlyStopping(monitor="val_accuracy", patience=1)
        assert callback.mode == "max"
        model = run_epochs(callback, [0.5, 0.6, 0.55], monitor="val_accuracy")
        assert model.stop_training
        assert callback.best == 0.6

    def test_restore_best_weights(self):
        callback = EarlyStopping(patience=1, restore_best_weights=True)
        model = run_epochs(callback, [1.0, 0.5, 0.7, 0.9])
        assert model.stop_training
        assert model.restored == 2

    def test_baseline_must_be_beaten(self):
        callback = EarlyStopping(patience=2, baseline=0.1)
        model = run_epochs(callback, [0.5, 0.6, 0.7])
        assert model.stop_training
        assert callback.stopped_epoch == 2

    def test_missing_monitor_is_ignored(self):
        callback = EarlyStopping(monitor="val_loss")
        model = run_epochs(callback, [1.0, 2.0, 3.0], monitor="loss")
        assert not model.stop_training

    @pytest.mark.parametrize("kwargs", [{"patience": -1}, {"mode": "median"}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            EarlyStopping(**kwargs)


def test_base_callback_hooks_are_no_ops():
    callback = Callback()
    callback.set_model("model")
    callback.on_train_begin()
    callback.on_epoch_begin(1)
    callback.on_train_batch_begin(0)
    callback.on_test_batch_end(0, {"loss": np.float32(1.0)})
    callback.on_predict_batch_end(0, {"outputs": np.zeros(2)})
    callback.on_train_end()
    assert callback.model == "model"

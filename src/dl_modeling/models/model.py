"""
Trainable layer graph.

:class:`GraphTrainableModel` owns a topologically sorted list of layers and
drives their lifecycle:

1. ``compile`` builds every layer once, propagating shapes from the input
   layer, creates the optimizer slots of every trainable variable and traces
   the train, eval and predict steps with ``tf.function``;
2. ``fit`` runs the train step batch by batch: forward pass, loss plus
   regularization penalties, gradients from ``tf.GradientTape`` and one
   optimizer update;
3. ``evaluate``, ``predict`` and ``predict_softly`` run the forward pass in
   inference mode.

Subclasses decide how layers are ordered:
:class:`~dl_modeling.models.sequential.Sequential` keeps the given order,
:class:`~dl_modeling.models.functional.Functional` sorts a DAG.
"""

import numpy as np
import tensorflow as tf
from pathlib import Path
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from dl_modeling.callbacks import Callback, History
from dl_modeling.config import TrainingConfig
from dl_modeling.constants import MODEL_CONFIG_FILE_NAME, MODEL_WEIGHTS_FILE_NAME
from dl_modeling.datasets import Dataset
from dl_modeling.exceptions import ModelAlreadyCompiledError, ModelClosedError, ModelNotCompiledError
from dl_modeling.layers import Input, Layer
from dl_modeling.losses import Loss, Losses
from dl_modeling.metrics import Metrics
from dl_modeling.optimization import Adam, Optimizer, optimizer_builder
from dl_modeling.utils.logger import logger
from dl_modeling.utils.shapes import shape_to_string, unique_name

# ---------------------------------------------------------------------

_SUMMARY_WIDTH = 65

# ---------------------------------------------------------------------


class GraphTrainableModel:
    """Base class of models built from a graph of layers.

    Args:
        layers: Layers in topological order, the first one is the
            :class:`~dl_modeling.layers.Input` layer and the last one
            produces the model output.
        name: Model name.

    Raises:
        ValueError: If the layer list is empty, does not start with an input
            layer or holds two layers with the same name.
    """

    def __init__(self, layers: Sequence[Layer], name: str = ""):
        layers = list(layers)
        if not layers:
            raise ValueError("A model requires at least an input layer")
        if not isinstance(layers[0], Input):
            raise ValueError(
                f"The first layer of a model should be an Input layer, received: {layers[0]!r}"
            )
        seen = set()
        for layer in layers:
            if layer.name in seen:
                raise ValueError(f"Layer names should be unique in a model, [{layer.name}] is repeated")
            seen.add(layer.name)

        self.name = name or unique_name(self.__class__.__name__)
        self._layers: List[Layer] = layers
        self.optimizer: Optional[Optimizer] = None
        self.loss: Optional[Loss] = None
        self.metric: Optional[Metrics] = None
        self.is_compiled = False
        self.is_closed = False
        self.stop_training = False
        self._train_step = None
        self._eval_step = None
        self._predict_step = None

    # -----------------------------------------------------------------
    # layers
    # -----------------------------------------------------------------

    @property
    def layers(self) -> List[Layer]:
        return list(self._layers)

    @property
    def input_layer(self) -> Input:
        return self._layers[0]

    @property
    def output_layer(self) -> Layer:
        return self._layers[-1]

    @property
    def input_dimensions(self) -> Tuple[Optional[int], ...]:
        return self.input_layer.dims

    def get_layer(self, name: str) -> Layer:
        self._check_open()
        for layer in self._layers:
            if layer.name == name:
                return layer
        raise ValueError(f"No such layer: [{name}]. Existing layers: {[l.name for l in self._layers]}")

    def freeze(self) -> None:
        """Make every layer non-trainable."""
        self._check_open()
        for layer in self._layers:
            layer.trainable = False
        if self.is_compiled:
            self._make_step_functions()
        logger.info(f"Model [{self.name}] frozen")

    @property
    def trainable_variables(self) -> List[tf.Variable]:
        return [v for layer in self._layers for v in layer.trainable_variables]

    @property
    def variables(self) -> List[tf.Variable]:
        return [v for layer in self._layers for v in layer.variables]

    def get_weights(self) -> Dict[str, Dict[str, np.ndarray]]:
        """Weights of every built layer with variables, keyed by layer name and weight kind."""
        self._check_open()
        return {layer.name: layer.get_weights() for layer in self._layers if layer.built and layer.variables}

    def set_weights(self, weights: Dict[str, Dict[str, np.ndarray]]) -> None:
        for layer_name, layer_weights in weights.items():
            self.get_layer(layer_name).set_weights(layer_weights)

    # -----------------------------------------------------------------
    # graph
    # -----------------------------------------------------------------

    def _inbound_value(self, layer: Layer, values: Dict[str, Any]):
        inbound = [values[l.name] for l in layer.inbound_layers]
        return inbound[0] if len(inbound) == 1 else inbound

    def build(self) -> None:
        """Build every layer, propagating shapes from the input layer.

        Layers that are already built keep their variables.
        """
        self._check_open()
        shapes: Dict[str, Any] = {}
        for layer in self._layers:
            input_shape = None if isinstance(layer, Input) else self._inbound_value(layer, shapes)
            if not layer.built:
                layer.build(input_shape)
            layer.output_shape = layer.compute_output_shape(input_shape)
            shapes[layer.name] = layer.output_shape
            logger.debug(f"Layer [{layer.name}] output shape: {shape_to_string(layer.output_shape)}")

    def _forward(self, x: tf.Tensor, training: bool) -> Tuple[tf.Tensor, List[tf.Tensor]]:
        """Run every layer in order, returns the output and the activity penalties."""
        values: Dict[str, tf.Tensor] = {}
        penalties = []
        for layer in self._layers:
            if isinstance(layer, Input):
                outputs = layer.forward(x, training=training)
            else:
                outputs = layer.forward(self._inbound_value(layer, values), training=training)
            if layer.activity_regularizer is not None:
                penalties.append(layer.activity_regularizer(outputs))
            values[layer.name] = outputs
        return values[self.output_layer.name], penalties

    def _regularization_loss(self, penalties: List[tf.Tensor], batch_size: tf.Tensor) -> tf.Tensor:
        total = tf.constant(0.0)
        for layer in self._layers:
            for penalty in layer.regularization_losses():
                total += penalty
        for penalty in penalties:
            total += penalty / batch_size
        return total

    # -----------------------------------------------------------------
    # compile
    # -----------------------------------------------------------------

    def compile(
            self,
            optimizer: Union[Optimizer, Dict[str, Any], None] = None,
            loss: Union[str, Losses, Loss] = Losses.SOFT_MAX_CROSS_ENTROPY_WITH_LOGITS,
            metric: Union[str, Metrics] = Metrics.ACCURACY) -> None:
        """Build the model and trace its train, eval and predict steps.

        Args:
            optimizer: Optimizer instance or :func:`optimizer_builder`
                config, :class:`Adam` when ``None``.
            loss: Loss instance or identifier.
            metric: Metric identifier.

        Raises:
            ModelAlreadyCompiledError: If the model is already compiled.
        """
        self._check_open()
        if self.is_compiled:
            raise ModelAlreadyCompiledError(f"Model [{self.name}] is already compiled")
        if optimizer is None:
            optimizer = Adam()
        elif isinstance(optimizer, dict):
            optimizer = optimizer_builder(optimizer)
        if not isinstance(optimizer, Optimizer):
            raise TypeError(f"optimizer should be an Optimizer or a dict, received: {type(optimizer).__name__}")

        self.optimizer = optimizer
        self.loss = Losses.convert(loss)
        self.metric = Metrics.from_identifier(metric)

        self.build()
        self._make_step_functions()
        self.is_compiled = True
        logger.info(
            f"Model [{self.name}] compiled with optimizer [{self.optimizer!r}], "
            f"loss [{self.loss!r}], metric [{self.metric.value}]"
        )

    def _make_step_functions(self) -> None:
        variables = self.trainable_variables
        self.optimizer.create_slots(variables)
        loss_fn = self.loss
        metric = self.metric

        def train_step(x, y):
            batch_size = tf.cast(tf.shape(x)[0], tf.float32)
            with tf.GradientTape() as tape:
                outputs, penalties = self._forward(x, training=True)
                loss = loss_fn(y, outputs) + self._regularization_loss(penalties, batch_size)
            gradients = tape.gradient(loss, variables)
            self.optimizer.apply_gradients(variables, gradients)
            return loss, Metrics.compute(metric, y, loss_fn.output_transform(outputs))

        def eval_step(x, y):
            batch_size = tf.cast(tf.shape(x)[0], tf.float32)
            outputs, penalties = self._forward(x, training=False)
            loss = loss_fn(y, outputs) + self._regularization_loss(penalties, batch_size)
            return loss, Metrics.compute(metric, y, loss_fn.output_transform(outputs))

        def predict_step(x):
            outputs, _ = self._forward(x, training=False)
            return loss_fn.output_transform(outputs)

        self._train_step = tf.function(train_step, reduce_retracing=True)
        self._eval_step = tf.function(eval_step, reduce_retracing=True)
        self._predict_step = tf.function(predict_step, reduce_retracing=True)

    def _check_open(self) -> None:
        if self.is_closed:
            raise ModelClosedError(f"Model [{self.name}] is closed")

    def _check_compiled(self) -> None:
        self._check_open()
        if not self.is_compiled:
            raise ModelNotCompiledError(f"Model [{self.name}] should be compiled first")

    def _check_dataset(self, dataset: Dataset) -> None:
        if dataset.x_size() == 0:
            raise ValueError("Dataset is empty")
        element_shape = dataset.element_shape()
        expected = self.input_dimensions
        if len(element_shape) != len(expected) or any(
                e is not None and e != a for e, a in zip(expected, element_shape)):
            raise ValueError(
                f"Data shape {element_shape} does not match model input shape {expected}"
            )

    # -----------------------------------------------------------------
    # training and inference
    # -----------------------------------------------------------------

    def fit(
            self,
            dataset: Dataset,
            config: Optional[TrainingConfig] = None,
            validation_dataset: Optional[Dataset] = None,
            callbacks: Optional[Sequence[Callback]] = None,
            **kwargs: Any) -> History:
        """Train the model.

        Args:
            dataset: Training data.
            config: Training settings, see :class:`TrainingConfig`.
            validation_dataset: Data evaluated after every epoch. When
                missing and ``validation_rate`` is positive, it is split off
                the end of ``dataset``.
            callbacks: Extra callbacks.
            **kwargs: Overrides of ``config`` fields, e.g. ``epochs=10``.

        Returns:
            The training history.
        """
        self._check_compiled()
        config = TrainingConfig(**{**asdict(config or TrainingConfig()), **kwargs})
        self._check_dataset(dataset)

        train_dataset = dataset
        if validation_dataset is None and config.validation_rate > 0.0:
            train_dataset, validation_dataset = dataset.hold_out(config.validation_rate)
        if validation_dataset is not None:
            self._check_dataset(validation_dataset)

        history = History()
        callbacks = [history] + list(callbacks or [])
        for callback in callbacks:
            callback.set_model(self)

        metric_name = self.metric.value
        self.stop_training = False
        logger.info(
            f"Training [{self.name}] on {train_dataset.x_size()} samples for {config.epochs} epochs, "
            f"batch size {config.batch_size}"
        )
        for callback in callbacks:
            callback.on_train_begin()

        for epoch in range(1, config.epochs + 1):
            if self.stop_training:
                break
            for callback in callbacks:
                callback.on_epoch_begin(epoch)

            epoch_dataset = train_dataset
            if config.shuffle:
                epoch_dataset = train_dataset.shuffle(None if config.seed is None else config.seed + epoch)

            loss_sum, metric_sum, seen = 0.0, 0.0, 0
            for batch_index, batch in enumerate(epoch_dataset.batch_iterator(config.batch_size)):
                for callback in callbacks:
                    callback.on_train_batch_begin(batch_index)
                loss, metric = self._train_step(batch.x, batch.y)
                loss, metric = float(loss), float(metric)
                logger.debug(f"epoch {epoch} batch {batch_index}: loss={loss:.5f} {metric_name}={metric:.5f}")
                loss_sum += loss * batch.size
                metric_sum += metric * batch.size
                seen += batch.size
                logs = {"loss": loss, metric_name: metric}
                for callback in callbacks:
                    callback.on_train_batch_end(batch_index, logs)

            logs = {"loss": loss_sum / seen, metric_name: metric_sum / seen}
            if validation_dataset is not None:
                results = self._evaluate(validation_dataset, config.eval_batch_size, [])
                logs.update({f"val_{key}": value for key, value in results.items()})
            if config.verbose:
                message = " ".join(f"{key}: {value:.4f}" for key, value in logs.items())
                logger.info(f"epochs: {epoch}/{config.epochs} {message}")
            for callback in callbacks:
                callback.on_epoch_end(epoch, logs)

        for callback in callbacks:
            callback.on_train_end(history.last_epoch())
        return history

    def evaluate(
            self,
            dataset: Dataset,
            batch_size: int = 256,
            callbacks: Optional[Sequence[Callback]] = None) -> Dict[str, float]:
        """Compute the loss and the metric on ``dataset``.

        Returns:
            ``{"loss": ..., <metric name>: ...}`` averaged over every sample.
        """
        self._check_compiled()
        self._check_dataset(dataset)
        callbacks = list(callbacks or [])
        for callback in callbacks:
            callback.set_model(self)
        return self._evaluate(dataset, batch_size, callbacks)

    def _evaluate(self, dataset: Dataset, batch_size: int, callbacks: List[Callback]) -> Dict[str, float]:
        metric_name = self.metric.value
        for callback in callbacks:
            callback.on_test_begin()
        loss_sum, metric_sum, seen = 0.0, 0.0, 0
        for batch_index, batch in enumerate(dataset.batch_iterator(batch_size)):
            loss, metric = self._eval_step(batch.x, batch.y)
            loss_sum += float(loss) * batch.size
            metric_sum += float(metric) * batch.size
            seen += batch.size
            for callback in callbacks:
                callback.on_test_batch_end(batch_index, {"loss": float(loss), metric_name: float(metric)})
        results = {"loss": loss_sum / seen, metric_name: metric_sum / seen}
        for callback in callbacks:
            callback.on_test_end(results)
        return results

    def predict_softly(
            self,
            data: Union[Dataset, np.ndarray],
            batch_size: int = 256,
            callbacks: Optional[Sequence[Callback]] = None) -> np.ndarray:
        """Output vectors of the model, probabilities for ``*_WITH_LOGITS`` losses.

        Args:
            data: A dataset, a batch of samples or a single sample.
            batch_size: Number of samples per forward pass.
            callbacks: Callbacks notified after every batch.

        Returns:
            One output vector per sample, or a single vector for a single sample.
        """
        self._check_compiled()
        callbacks = list(callbacks or [])
        if isinstance(data, Dataset):
            self._check_dataset(data)
            batches = (batch.x for batch in data.batch_iterator(batch_size))
            single = False
        else:
            data = np.asarray(data, dtype=np.float32)
            single = data.ndim == len(self.input_dimensions)
            if single:
                data = data[np.newaxis, ...]
            batches = (data[i:i + batch_size] for i in range(0, data.shape[0], batch_size))

        results = []
        for batch_index, x in enumerate(batches):
            outputs = self._predict_step(x).numpy()
            for callback in callbacks:
                callback.on_predict_batch_end(batch_index, {"outputs": outputs})
            results.append(outputs)
        results = np.concatenate(results, axis=0)
        return results[0] if single else results

    def predict(
            self,
            data: Union[Dataset, np.ndarray],
            batch_size: int = 256,
            callbacks: Optional[Sequence[Callback]] = None) -> Union[int, np.ndarray]:
        """Predicted class index of every sample, or of a single sample."""
        outputs = self.predict_softly(data, batch_size, callbacks)
        if outputs.shape[-1] == 1:
            classes = (outputs[..., 0] > 0.5).astype(np.int64)
        else:
            classes = np.argmax(outputs, axis=-1)
        return int(classes) if np.ndim(classes) == 0 else classes

    # -----------------------------------------------------------------
    # description and persistence
    # -----------------------------------------------------------------

    def _summary_rows(self) -> List[List[str]]:
        return [
            [f"{layer.name} ({type(layer).__name__})", shape_to_string(layer.output_shape), str(layer.param_count)]
            for layer in self._layers
        ]

    def _summary_widths(self) -> List[int]:
        return [29, 26, 10]

    def summary(self) -> str:
        """Describe layers, output shapes and parameter counts, Keras style.

        The description is logged and returned.
        """
        self._check_open()
        if any(not layer.built for layer in self._layers):
            self.build()
        widths = self._summary_widths()
        header = ["Layer (type)", "Output Shape", "Param #", "Connected to"][:len(widths)]
        width = max(_SUMMARY_WIDTH, sum(widths))

        def row(cells):
            return "".join(cell.ljust(w) for cell, w in zip(cells, widths)).rstrip()

        total = sum(layer.param_count for layer in self._layers)
        trainable = sum(int(np.prod(v.shape)) for v in self.trainable_variables)
        lines = [f'Model: "{self.name}"', "_" * width, row(header), "=" * width]
        for index, cells in enumerate(self._summary_rows()):
            if index:
                lines.append("_" * width)
            lines.append(row(cells))
        lines += [
            "=" * width,
            f"Total params: {total}",
            f"Trainable params: {trainable}",
            f"Non-trainable params: {total - trainable}",
            "_" * width,
        ]
        for line in lines:
            logger.info(line)
        return "\n".join(lines)

    def save(
            self,
            directory: Union[str, Path],
            save_optimizer_state: bool = False,
            overwrite: bool = True) -> None:
        """Write the Keras JSON config and the HDF5 weights into ``directory``.

        Raises:
            FileExistsError: If ``overwrite`` is false and the directory holds a saved model.
        """
        from dl_modeling.inference.keras import save_model_configuration, save_weights

        self._check_open()
        directory = Path(directory)
        config_path = directory / MODEL_CONFIG_FILE_NAME
        weights_path = directory / MODEL_WEIGHTS_FILE_NAME
        if not overwrite and (config_path.exists() or weights_path.exists()):
            raise FileExistsError(f"A model is already saved in [{directory}]")
        if save_optimizer_state and not self.is_compiled:
            raise ModelNotCompiledError("Optimizer state can be saved only for compiled models")
        directory.mkdir(parents=True, exist_ok=True)
        self.build()
        save_model_configuration(self, config_path)
        save_weights(self, weights_path, optimizer_state=save_optimizer_state)
        logger.info(f"Model [{self.name}] saved to [{directory}]")

    def load_weights(self, path: Union[str, Path], **kwargs: Any) -> None:
        """Load Keras HDF5 weights, see :func:`dl_modeling.inference.keras.load_weights`."""
        from dl_modeling.inference.keras import load_weights

        self._check_open()
        load_weights(self, path, **kwargs)

    # -----------------------------------------------------------------
    # resources
    # -----------------------------------------------------------------

    def close(self) -> None:
        """Release the traced functions and the optimizer state, the model is unusable afterwards."""
        if self.is_closed:
            return
        self._train_step = None
        self._eval_step = None
        self._predict_step = None
        self.optimizer = None
        self.is_closed = True
        logger.debug(f"Model [{self.name}] closed")

    def __enter__(self) -> "GraphTrainableModel":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, layers={len(self._layers)})"

# ---------------------------------------------------------------------

"""Exceptions raised on model lifecycle and serialization misuse."""


class DLModelingError(Exception):
    """Base class of every error raised by dl_modeling."""


class ModelNotCompiledError(DLModelingError, RuntimeError):
    """Raised when training or inference is requested before ``compile``."""


class ModelAlreadyCompiledError(DLModelingError, RuntimeError):
    """Raised when ``compile`` is called on an already compiled model."""


class LayerNotBuiltError(DLModelingError, RuntimeError):
    """Raised when variables of a layer are requested before ``build``."""


class SlotNotFoundError(DLModelingError, KeyError):
    """Raised when an optimizer slot is looked up but was never created."""


class GraphCycleError(DLModelingError, ValueError):
    """Raised when a functional layer graph is not a DAG."""


class UnsupportedLayerError(DLModelingError, ValueError):
    """Raised when a model config references an unknown layer class."""


class WeightsMismatchError(DLModelingError, ValueError):
    """Raised when serialized weights do not fit the target layer."""


class ModelClosedError(DLModelingError, RuntimeError):
    """Raised when a closed model is used again."""

from .callback import Callback, History, EarlyStopping

__all__ = ["Callback", "History", "EarlyStopping"]

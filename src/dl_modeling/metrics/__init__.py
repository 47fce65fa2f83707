from .metrics import (
    Metrics,
    accuracy,
    mean_absolute_error,
    mean_squared_error,
    mean_squared_logarithmic_error,
)

__all__ = [
    "Metrics",
    "accuracy",
    "mean_absolute_error",
    "mean_squared_error",
    "mean_squared_logarithmic_error",
]

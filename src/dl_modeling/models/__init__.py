from .model import GraphTrainableModel
from .sequential import Sequential
from .functional import Functional, topological_sort, collect_ancestors

__all__ = [
    "GraphTrainableModel",
    "Sequential",
    "Functional",
    "topological_sort",
    "collect_ancestors",
]

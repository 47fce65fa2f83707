"""
Models whose layers form a directed acyclic graph.

Layers are linked by calling a layer on its inbound layer(s):

```python
input = Input(28, 28, 1)
conv_1 = Conv2D(32)(input)
conv_2 = Conv2D(32)(conv_1)
add = Add()([conv_1, conv_2])
output = Dense(10, activation=Activations.LINEAR)(Flatten()(add))
model = Functional.from_output(output)
```

The layers are then sorted with Kahn's algorithm so that every layer runs
after all of its inbound layers. Exactly one input and one output layer are
supported.
"""

from collections import deque
from pathlib import Path
from typing import Dict, List, Sequence, Union

from dl_modeling.exceptions import GraphCycleError
from dl_modeling.layers import Input, Layer
from dl_modeling.utils.logger import logger
from .model import GraphTrainableModel

# ---------------------------------------------------------------------


def topological_sort(layers: Sequence[Layer]) -> List[Layer]:
    """Order ``layers`` so that inbound layers come first.

    Ties keep the given order.

    Raises:
        ValueError: If a layer has an inbound layer outside ``layers``.
        GraphCycleError: If the layers contain a cycle.
    """
    members = {layer.name: layer for layer in layers}
    in_degree: Dict[str, int] = {}
    for layer in layers:
        for inbound in layer.inbound_layers:
            if members.get(inbound.name) is not inbound:
                raise ValueError(
                    f"Layer [{layer.name}] depends on [{inbound.name}] which is not part of the model"
                )
        in_degree[layer.name] = len(layer.inbound_layers)

    queue = deque(layer for layer in layers if in_degree[layer.name] == 0)
    ordered: List[Layer] = []
    while queue:
        layer = queue.popleft()
        ordered.append(layer)
        visited_outbound = set()
        for outbound in layer.outbound_layers:
            if members.get(outbound.name) is not outbound or id(outbound) in visited_outbound:
                continue
            visited_outbound.add(id(outbound))
            in_degree[outbound.name] -= sum(1 for l in outbound.inbound_layers if l is layer)
            if in_degree[outbound.name] == 0:
                queue.append(outbound)

    if len(ordered) != len(layers):
        remaining = [layer.name for layer in layers if layer not in ordered]
        raise GraphCycleError(f"Layers {remaining} form a cycle")
    return ordered


def collect_ancestors(output: Layer) -> List[Layer]:
    """``output`` and every layer it transitively depends on."""
    visited: Dict[int, Layer] = {}
    stack = [output]
    while stack:
        layer = stack.pop()
        if id(layer) in visited:
            continue
        visited[id(layer)] = layer
        stack.extend(layer.inbound_layers)
    return list(reversed(list(visited.values())))

# ---------------------------------------------------------------------


class Functional(GraphTrainableModel):
    """Model built from a DAG of layers with a single input and a single output."""

    def __init__(self, layers: Sequence[Layer], name: str = ""):
        layers = list(layers)
        if len({layer.name for layer in layers}) != len(layers):
            seen, duplicates = set(), []
            for layer in layers:
                if layer.name in seen:
                    duplicates.append(layer.name)
                seen.add(layer.name)
            raise ValueError(f"Layer names should be unique in a model, repeated: {duplicates}")
        ordered = topological_sort(layers)

        inputs = [layer for layer in ordered if isinstance(layer, Input)]
        if len(inputs) != 1:
            raise ValueError(f"A Functional model requires exactly one Input layer, found {len(inputs)}")
        for layer in ordered:
            if not isinstance(layer, Input) and not layer.inbound_layers:
                raise ValueError(f"Layer [{layer.name}] is not connected to any inbound layer")

        members = {id(layer) for layer in ordered}
        outputs = [
            layer for layer in ordered
            if not any(id(outbound) in members for outbound in layer.outbound_layers)
        ]
        if len(outputs) != 1:
            raise ValueError(
                f"A Functional model requires exactly one output layer, found {[l.name for l in outputs]}"
            )
        super().__init__(ordered, name=name)
        logger.debug(f"Created Functional model [{self.name}] with {len(ordered)} layers")

    @classmethod
    def of(cls, *layers: Layer, name: str = "") -> "Functional":
        """Model made of already linked ``layers``, in any order."""
        return cls(layers, name=name)

    @classmethod
    def from_output(cls, output: Layer, name: str = "") -> "Functional":
        """Model made of ``output`` and every layer it depends on."""
        return cls(collect_ancestors(output), name=name)

    @classmethod
    def load_model_configuration(cls, path: Union[str, Path]) -> "Functional":
        """Create a model from a Keras JSON config of a functional model."""
        from dl_modeling.inference.keras import load_model_configuration

        model = load_model_configuration(path)
        if not isinstance(model, cls):
            raise ValueError(f"[{path}] describes a {type(model).__name__} model, not a Functional one")
        return model

    def _summary_widths(self):
        return [29, 26, 10, 30]

    def _summary_rows(self):
        rows = super()._summary_rows()
        for row, layer in zip(rows, self._layers):
            row.append(", ".join(inbound.name for inbound in layer.inbound_layers))
        return rows

# ---------------------------------------------------------------------

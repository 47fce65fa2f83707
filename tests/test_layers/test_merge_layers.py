import pytest
import numpy as np

from dl_modeling.layers import (
    Add,
    Average,
    Concatenate,
    Dense,
    Input,
    Maximum,
    Minimum,
    Multiply,
    Subtract,
)


@pytest.fixture
def pair():
    a = np.array([[1.0, -2.0, 3.0]], dtype=np.float32)
    b = np.array([[0.5, 4.0, -1.0]], dtype=np.float32)
    return a, b


@pytest.mark.parametrize("layer_cls, reference", [
    (Add, lambda a, b: a + b),
    (Subtract, lambda a, b: a - b),
    (Multiply, lambda a, b: a * b),
    (Average, lambda a, b: (a + b) / 2.0),
    (Maximum, np.maximum),
    (Minimum, np.minimum),
])
def test_element_wise_merge(pair, layer_cls, reference):
    a, b = pair
    np.testing.assert_allclose(layer_cls()([a, b]).numpy(), reference(a, b))


def test_add_three_inputs(pair):
    a, b = pair
    np.testing.assert_allclose(Add()([a, b, a]).numpy(), 2 * a + b)


def test_subtract_requires_two_inputs(pair):
    a, b = pair
    with pytest.raises(ValueError):
        Subtract()([a, b, a])


def test_merge_requires_matching_shapes():
    with pytest.raises(ValueError):
        Add().build([(None, 3), (None, 4)])


def test_merge_requires_list():
    with pytest.raises(ValueError):
        Add().build((None, 3))


class TestConcatenate:

    def test_forward(self, pair):
        a, b = pair
        np.testing.assert_allclose(Concatenate()([a, b]).numpy(), np.concatenate([a, b], axis=-1))

    def test_output_shape(self):
        layer = Concatenate(axis=1)
        assert layer.compute_output_shape([(None, 3, 2), (None, 5, 2)]) == (None, 8, 2)

    def test_mismatch(self):
        with pytest.raises(ValueError):
            Concatenate(axis=-1).build([(None, 3, 2), (None, 4, 2)])


def test_calling_on_layers_links_the_graph():
    inputs = Input(4, name="in")
    left = Dense(2, name="left")(inputs)
    right = Dense(2, name="right")(inputs)
    merged = Add(name="sum")([left, right])
    assert merged.inbound_layers == [left, right]
    assert inputs.outbound_layers == [left, right]
    assert left.outbound_layers == [merged]

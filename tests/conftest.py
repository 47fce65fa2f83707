import os
import sys
from pathlib import Path

os.environ['TF_CPP_MIN_LOG_LEVEL'] = '3'

# Add src to Python path
src_path = str(Path(__file__).parent.parent / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

import pytest
import numpy as np
import tensorflow as tf

from dl_modeling.utils.shapes import reset_names


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


@pytest.fixture(autouse=True)
def fresh_state():
    """Reset automatic layer names and seed the random generators for every test."""
    reset_names()
    np.random.seed(42)
    tf.random.set_seed(42)
    yield

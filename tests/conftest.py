import numpy as np
import pytest

from scalargrad.engine import Value


@pytest.fixture
def rng():
    """Seeded numpy Generator so model initialization is reproducible."""
    return np.random.default_rng(1337)


@pytest.fixture
def tiny_dataset():
    """Four 3-feature samples with +/-1 targets."""
    xs = [
        [2.0, 3.0, -1.0],
        [3.0, -1.0, 0.5],
        [0.5, 1.0, 1.0],
        [1.0, 1.0, -1.0],
    ]
    ys = [1.0, -1.0, -1.0, 1.0]
    return xs, ys


@pytest.fixture
def diamond():
    """a feeds both b = a*a and c = b + a."""
    a = Value(3.0, name='a')
    b = a * a
    c = b + a
    return a, b, c

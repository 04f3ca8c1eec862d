"""
Fixtures shared by the tests of the matching stage.
"""

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(seed=72)


@pytest.fixture
def descriptor_clouds(rng):
    """Two random 33-dimensional descriptor clouds of different sizes."""
    return rng.random((120, 33)), rng.random((80, 33))


@pytest.fixture
def small_clouds():
    """source = [d0 (valid), d1 (NaN), d2 (valid)], target = [t0, t1]."""
    source = np.array([[0.0, 0.0], [np.nan, 1.0], [10.0, 10.0]])
    target = np.array([[1.0, 0.0], [10.0, 11.0]])
    return source, target


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "matching.yaml"
    path.write_text(
        "matching:\n"
        "  keep_fraction: 0.5\n"
        "  index_type: balltree\n"
        "  descriptor_kind: generic\n"
        "  n_workers: 2\n"
    )
    return path

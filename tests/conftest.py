import os
import sys

import numpy as np
import pytest

# Make project root importable
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import matplotlib
matplotlib.use('Agg')


@pytest.fixture
def rng():
    return np.random.default_rng(12345)

"""
Shared fixtures: the default array and its shielded variant.

The overlap check is switched off here; it has its own tests.
"""

import numpy as np
import pytest

from scint_array import ArraySpec, build_array


@pytest.fixture(scope="session")
def default_geometry():
    return build_array(ArraySpec.from_config(check_overlaps=False))


@pytest.fixture(scope="session")
def shielded_geometry():
    return build_array(ArraySpec.from_config(shield_mode="BGO", check_overlaps=False))


@pytest.fixture
def rng():
    return np.random.default_rng(20240501)

# tests/conftest.py
from __future__ import annotations

import numpy as np
import pytest
from loguru import logger

from fmcoef.coefficients import FmCoefficients


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def example_coeffs() -> FmCoefficients:
    """
    3 features, 3 interaction features, 2 factors, all orders enabled
    """
    return FmCoefficients.from_values(
        1.5,
        [0.1, 0.0, -0.2],
        [[0.3, -0.1], [0.0, 0.2], [-0.05, 0.4]],
        True,
        True,
        True,
    )


@pytest.fixture
def make_coeffs():
    """
    Factory fixture for random coefficients with chosen flags.

    Usage:
        coeffs = make_coeffs()
        coeffs = make_coeffs(k1=False, seed=7)
    """

    def _make(
        k0: bool = True,
        k1: bool = True,
        k2: bool = True,
        num_features: int = 5,
        num_interact_features: int = 4,
        num_factors: int = 3,
        seed: int = 42,
    ) -> FmCoefficients:
        rng = np.random.default_rng(seed)
        return FmCoefficients.from_values(
            float(rng.normal()),
            rng.normal(size=num_features),
            rng.normal(size=(num_interact_features, num_factors)),
            k0,
            k1,
            k2,
        )

    return _make

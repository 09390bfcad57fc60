# fmcoef/utils/gaussian_random.py
from __future__ import annotations

import numpy as np


class GaussianRandom:
    """
    Gaussian initializer for fresh (untrained) coefficients.
    """

    @staticmethod
    def generator(seed: int | None = None) -> np.random.Generator:
        return np.random.default_rng(seed)

    @staticmethod
    def rand(mean: float, stdev: float, rng: np.random.Generator | None = None) -> float:
        rng = rng if rng is not None else np.random.default_rng()
        return float(rng.normal(mean, stdev))

    @staticmethod
    def rand_matrix(
        mean: float,
        stdev: float,
        rows: int,
        cols: int,
        rng: np.random.Generator | None = None,
    ) -> np.ndarray:
        rng = rng if rng is not None else np.random.default_rng()
        return rng.normal(mean, stdev, size=(rows, cols)).astype(np.float64)

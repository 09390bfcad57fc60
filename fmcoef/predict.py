# fmcoef/predict.py
from __future__ import annotations

from typing import Mapping

import numpy as np

from fmcoef.coefficients.blocks import BIAS, INTERACTION, LINEAR
from fmcoef.coefficients.fm_coefficients import FmCoefficients


def fm_score(coeffs: FmCoefficients, features: Mapping[int, float]) -> float:
    """
    FM 打分（只读访问系数）

        y = w0 + sum(w_i * x_i) + 0.5 * sum_f((sum_i v_if x_i)^2 - sum_i v_if^2 x_i^2)

    features 是稀疏特征 {index: value}；下标 >= num_interact_features 的特征
    只参与一阶项。
    """
    indices = np.fromiter(features.keys(), dtype=np.int64, count=len(features))
    values = np.fromiter(features.values(), dtype=np.float64, count=len(features))

    score = 0.0
    if coeffs.enabled(BIAS):
        score += float(coeffs.bias)

    if coeffs.enabled(LINEAR) and indices.size:
        score += float(np.dot(coeffs.linear[indices], values))

    if coeffs.enabled(INTERACTION) and indices.size:
        mask = indices < coeffs.num_interact_features
        # (n, num_factors)
        weighted = coeffs.interaction[indices[mask]] * values[mask, None]
        sum_square = np.square(weighted.sum(axis=0))
        square_sum = np.square(weighted).sum(axis=0)
        score += 0.5 * float(np.sum(sum_square - square_sum))

    return score

# fmcoef/coefficients/blocks.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Block:
    """
    参数块描述符

    name  : FmCoefficients 上的属性名
    order : 阶数，同时是 k 开关和 reg 数组的下标
    """

    name: str
    order: int


BIAS = Block("bias", 0)
LINEAR = Block("linear", 1)
INTERACTION = Block("interaction", 2)

BLOCKS = (BIAS, LINEAR, INTERACTION)

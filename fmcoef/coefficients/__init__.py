from .base import Coefficients
from .blocks import BIAS, BLOCKS, INTERACTION, LINEAR, Block
from .fm_coefficients import FmCoefficients, FmCoefficientsMeta

__all__ = [
    "Coefficients",
    "FmCoefficients",
    "FmCoefficientsMeta",
    "Block",
    "BIAS",
    "LINEAR",
    "INTERACTION",
    "BLOCKS",
]

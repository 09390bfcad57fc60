from .base import CoefficientStorage
from .arrow import ArrowStorage
from .local import LocalStorage

__all__ = ["CoefficientStorage", "ArrowStorage", "LocalStorage"]

#!filepath: fmcoef/__init__.py

from .utils.logger import Logging, logs, init_logging
from .utils.retry import Retry
from .utils.filesystem import FileSystem
from .config.app_config import AppConfig
from .coefficients import Coefficients, FmCoefficients
from .storage import ArrowStorage, CoefficientStorage, LocalStorage
from .checkpoint import publish_checkpoint
from .predict import fm_score

# alias 简化调用
retry = Retry
fs = FileSystem

__all__ = [
    "logs", "Logging", "init_logging",
    "retry",
    "fs",
    "AppConfig",
    "Coefficients", "FmCoefficients",
    "CoefficientStorage", "ArrowStorage", "LocalStorage",
    "publish_checkpoint",
    "fm_score",
]

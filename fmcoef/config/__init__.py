from .app_config import AppConfig
from .log_config import LogConfig
from .model_config import CoefficientsConfig, RegularizationConfig
from .storage_config import StorageConfig

__all__ = [
    "AppConfig",
    "LogConfig",
    "CoefficientsConfig",
    "RegularizationConfig",
    "StorageConfig",
]

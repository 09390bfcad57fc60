#!filepath: fmcoef/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from .log_config import LogConfig
from .model_config import CoefficientsConfig, RegularizationConfig
from .storage_config import StorageConfig


def project_root() -> str:
    """
    fmcoef/config/app_config.py → fmcoef/config → fmcoef → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


def default_config_path() -> str:
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "base.yml")


class AppConfig(BaseModel):
    log: LogConfig = LogConfig()
    coefficients: CoefficientsConfig
    regularization: RegularizationConfig = RegularizationConfig()
    storage: StorageConfig = StorageConfig()

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 fmcoef/config/base.yml
        - FMCOEF_STORAGE_URI / FMCOEF_LOG_LEVEL 环境变量覆盖 YAML
        """
        load_dotenv(os.path.join(project_root(), ".env"))

        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        storage_uri = os.getenv("FMCOEF_STORAGE_URI")
        if storage_uri:
            raw.setdefault("storage", {})["uri"] = storage_uri

        log_level = os.getenv("FMCOEF_LOG_LEVEL")
        if log_level:
            raw.setdefault("log", {})["level"] = log_level

        return cls(**raw)

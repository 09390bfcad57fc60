#!filepath: tests/base_test/test_app_config.py
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from fmcoef.config import AppConfig, CoefficientsConfig, RegularizationConfig
from fmcoef.storage import ArrowStorage, LocalStorage


def _write_yaml(path: Path, raw: dict) -> str:
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    return str(path)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("FMCOEF_STORAGE_URI", raising=False)
    monkeypatch.delenv("FMCOEF_LOG_LEVEL", raising=False)


def test_load_default_base_yml():
    cfg = AppConfig.load()

    assert cfg.coefficients.num_factors == 8
    assert cfg.regularization.as_tuple() == (0.0001, 0.0001, 0.001)
    assert cfg.storage.backend == "local"
    assert isinstance(cfg.storage.build_storage(), LocalStorage)


def test_load_custom_yaml_with_defaults(tmp_path: Path):
    path = _write_yaml(
        tmp_path / "fm.yml",
        {"coefficients": {"num_features": 100, "num_interact_features": 50, "k2": False}},
    )

    cfg = AppConfig.load(path)

    assert cfg.coefficients.num_features == 100
    assert cfg.coefficients.num_interact_features == 50
    assert cfg.coefficients.k2 is False
    assert cfg.log.level == "INFO"
    assert cfg.regularization.as_tuple() == (0.0, 0.0, 0.0)


def test_env_overrides_yaml(tmp_path: Path, monkeypatch):
    path = _write_yaml(
        tmp_path / "fm.yml",
        {
            "coefficients": {"num_features": 1, "num_interact_features": 1},
            "storage": {"backend": "arrow", "uri": "file:///unused"},
        },
    )
    monkeypatch.setenv("FMCOEF_STORAGE_URI", tmp_path.as_uri())
    monkeypatch.setenv("FMCOEF_LOG_LEVEL", "DEBUG")

    cfg = AppConfig.load(path)

    assert cfg.storage.uri == tmp_path.as_uri()
    assert cfg.log.level == "DEBUG"
    assert isinstance(cfg.storage.build_storage(), ArrowStorage)


def test_missing_config_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        AppConfig.load(str(tmp_path / "nope.yml"))


def test_arrow_backend_requires_uri():
    cfg = AppConfig(
        coefficients=CoefficientsConfig(num_features=1, num_interact_features=1),
        storage={"backend": "arrow"},
    )

    with pytest.raises(ValueError):
        cfg.storage.build_storage()


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        CoefficientsConfig(num_features=-1, num_interact_features=1)

    with pytest.raises(ValidationError):
        CoefficientsConfig(num_features=1, num_interact_features=1, num_factors=0)

    with pytest.raises(ValidationError):
        RegularizationConfig(reg1=-0.1)

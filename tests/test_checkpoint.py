# tests/test_checkpoint.py
from pathlib import Path

import pytest

from fmcoef.checkpoint import publish_checkpoint
from fmcoef.coefficients import FmCoefficients
from fmcoef.storage import LocalStorage
from fmcoef.utils.errors import MalformedPersistedError, StorageIOError


class FlakyStorage(LocalStorage):
    """前 failures 次 write_values 失败"""

    def __init__(self, failures: int):
        self.failures = failures
        self.failed_paths = []

    def write_values(self, path, values):
        if self.failures:
            self.failures -= 1
            self.failed_paths.append(path)
            raise StorageIOError(f"disk full at {path}")
        super().write_values(path, values)


class BrokenPayloadStorage(LocalStorage):
    """write_values 写出坏数据"""

    def write_values(self, path, values):
        super().write_values(path, values)
        raise MalformedPersistedError(f"bad payload at {path}")


class FailingSwapStorage(LocalStorage):
    """armed 后，把临时目录移到正式位置的 move 失败"""

    def __init__(self):
        self.armed = False

    def move(self, src, dst):
        if self.armed and ".tmp-" in src:
            raise StorageIOError(f"rename {src} failed")
        super().move(src, dst)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("time.sleep", lambda s: None)


def test_publish_writes_location(tmp_path: Path, example_coeffs):
    location = str(tmp_path / "ckpt")

    assert publish_checkpoint(example_coeffs, LocalStorage(), location) == location

    assert FmCoefficients.load_local(location) == example_coeffs
    assert sorted(p.name for p in tmp_path.iterdir()) == ["ckpt"]


def test_publish_replaces_previous_checkpoint(tmp_path: Path, example_coeffs):
    location = str(tmp_path / "ckpt")
    publish_checkpoint(example_coeffs, LocalStorage(), location)

    updated = example_coeffs.scale(2.0)
    publish_checkpoint(updated, LocalStorage(), location)

    assert FmCoefficients.load_local(location) == updated
    assert sorted(p.name for p in tmp_path.iterdir()) == ["ckpt"]


def test_publish_retries_with_fresh_location(tmp_path: Path, example_coeffs):
    storage = FlakyStorage(failures=2)
    location = str(tmp_path / "ckpt")

    publish_checkpoint(example_coeffs, storage, location, max_attempts=3)

    assert FmCoefficients.load_local(location) == example_coeffs
    # 每次失败都用了不同的临时目录，且都已清理
    tmp_roots = {Path(p).parents[1] for p in storage.failed_paths}
    assert len(tmp_roots) == 2
    assert all(not root.exists() for root in tmp_roots)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["ckpt"]


def test_publish_gives_up_after_max_attempts(tmp_path: Path, example_coeffs):
    storage = FlakyStorage(failures=5)
    location = tmp_path / "ckpt"

    with pytest.raises(StorageIOError):
        publish_checkpoint(example_coeffs, storage, str(location), max_attempts=2)

    assert not location.exists()
    assert list(tmp_path.iterdir()) == []


def test_failed_swap_restores_previous_checkpoint(tmp_path: Path, example_coeffs):
    storage = FailingSwapStorage()
    location = str(tmp_path / "ckpt")
    publish_checkpoint(example_coeffs, storage, location)

    storage.armed = True
    with pytest.raises(StorageIOError):
        publish_checkpoint(example_coeffs.scale(2.0), storage, location)

    assert FmCoefficients.load_local(location) == example_coeffs
    assert sorted(p.name for p in tmp_path.iterdir()) == ["ckpt"]


def test_failed_first_swap_cleans_temp_location(tmp_path: Path, example_coeffs):
    storage = FailingSwapStorage()
    storage.armed = True

    with pytest.raises(StorageIOError):
        publish_checkpoint(example_coeffs, storage, str(tmp_path / "ckpt"))

    assert list(tmp_path.iterdir()) == []


def test_malformed_write_cleans_temp_location_without_retry(tmp_path: Path, example_coeffs):
    location = tmp_path / "ckpt"

    with pytest.raises(MalformedPersistedError):
        publish_checkpoint(example_coeffs, BrokenPayloadStorage(), str(location))

    assert list(tmp_path.iterdir()) == []

# fmcoef/storage/local.py
from __future__ import annotations

from pathlib import Path

import numpy as np
import pyarrow.parquet as pq

from fmcoef.storage.base import (
    PART_PREFIX,
    PART_TEXT,
    PART_VALUES,
    CoefficientStorage,
    concat_values,
    is_part_file,
    storage_errors,
    table_to_values,
    values_to_table,
)
from fmcoef.utils.filesystem import FileSystem
from fmcoef.utils.parquet_utils import ParquetAtomicWriter


class LocalStorage(CoefficientStorage):
    """
    本地文件系统后端（无分布式环境时使用）
    """

    def write_text(self, path: str, text: str) -> None:
        with storage_errors("write_text", path):
            FileSystem.safe_write(Path(path) / PART_TEXT, text.encode("utf-8"))

    def read_text(self, path: str) -> str:
        with storage_errors("read_text", path):
            parts = self._parts(path)
            return "".join(p.read_text(encoding="utf-8") for p in parts)

    def write_values(self, path: str, values: np.ndarray) -> None:
        with storage_errors("write_values", path):
            ParquetAtomicWriter.write_table(values_to_table(values), Path(path) / PART_VALUES)

    def read_values(self, path: str) -> np.ndarray:
        with storage_errors("read_values", path):
            parts = self._parts(path, suffix=".parquet")
            return concat_values(table_to_values(pq.read_table(p), str(p)) for p in parts)

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def remove(self, path: str) -> None:
        with storage_errors("remove", path):
            FileSystem.remove(path)

    def move(self, src: str, dst: str) -> None:
        with storage_errors("move", src):
            FileSystem.ensure_dir(Path(dst).parent)
            Path(src).rename(dst)

    @staticmethod
    def _parts(path: str, suffix: str = "") -> list[Path]:
        if not Path(path).is_dir():
            raise FileNotFoundError(f"directory not found: {path}")
        parts = [p for p in FileSystem.scan_dir(path, prefix=PART_PREFIX) if is_part_file(p.name, suffix)]
        if not parts:
            raise FileNotFoundError(f"no {PART_PREFIX}*{suffix} file under {path}")
        return parts

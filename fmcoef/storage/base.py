# fmcoef/storage/base.py
from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterable, Iterator

import numpy as np
import pyarrow as pa

from fmcoef.utils.errors import CoefficientsError, MalformedPersistedError, StorageIOError
from fmcoef.utils.logger import logs

# 单分区文件名（与 Spark saveAsTextFile / DataFrame.write.parquet 的命名一致）
PART_PREFIX = "part-"
PART_TEXT = "part-00000"
PART_VALUES = "part-00000.parquet"
VALUE_COLUMN = "value"


@contextmanager
def storage_errors(op: str, path: str) -> Iterator[None]:
    """
    统一后端异常：
      - ArrowInvalid（坏文件 / schema 不符）→ MalformedPersistedError
      - OSError / 其他 ArrowException   → StorageIOError
    """
    try:
        yield
    except CoefficientsError:
        raise
    except pa.ArrowInvalid as e:
        raise MalformedPersistedError(f"[Storage] {op} {path}: {e}") from e
    except (OSError, pa.ArrowException) as e:
        logs.error(f"[Storage] {op} failed at {path}: {e}")
        raise StorageIOError(f"[Storage] {op} {path}: {e}") from e


def is_part_file(name: str, suffix: str = "") -> bool:
    return name.startswith(PART_PREFIX) and name.endswith(suffix) and not name.endswith(".tmp")


def values_to_table(values: np.ndarray) -> pa.Table:
    flat = np.asarray(values, dtype=np.float64).reshape(-1)
    return pa.table({VALUE_COLUMN: pa.array(flat, type=pa.float64())})


def table_to_values(table: pa.Table, path: str) -> np.ndarray:
    if VALUE_COLUMN not in table.column_names:
        raise MalformedPersistedError(
            f"[Storage] column '{VALUE_COLUMN}' missing in {path}, got {table.column_names}"
        )
    column = table.column(VALUE_COLUMN)
    if column.null_count:
        raise MalformedPersistedError(f"[Storage] {column.null_count} null values in {path}")
    return np.asarray(column.to_numpy(), dtype=np.float64)


def concat_values(chunks: Iterable[np.ndarray]) -> np.ndarray:
    chunks = list(chunks)
    if not chunks:
        return np.zeros(0, dtype=np.float64)
    return np.concatenate(chunks)


class CoefficientStorage(ABC):
    """
    系数持久化后端（分布式 / 本地）的统一接口

    语义：
      - path 永远指向一个目录
      - 文本记录写成 <path>/part-00000
      - 数值列写成 <path>/part-00000.parquet（单列 value, float64）
      - 读取时接受任意个 part-* 文件，按文件名顺序拼接
    """

    @staticmethod
    def join(*parts: str) -> str:
        return posixpath.join(*[str(p) for p in parts])

    @abstractmethod
    def write_text(self, path: str, text: str) -> None:
        ...

    @abstractmethod
    def read_text(self, path: str) -> str:
        ...

    @abstractmethod
    def write_values(self, path: str, values: np.ndarray) -> None:
        ...

    @abstractmethod
    def read_values(self, path: str) -> np.ndarray:
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def remove(self, path: str) -> None:
        ...

    @abstractmethod
    def move(self, src: str, dst: str) -> None:
        ...

# fmcoef/storage/arrow.py
from __future__ import annotations

import numpy as np
import pyarrow.fs as pafs
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
from fmcoef.utils.logger import logs


class ArrowStorage(CoefficientStorage):
    """
    分布式存储后端：任意 pyarrow.fs.FileSystem（HDFS / S3 / GCS / local）

    filesystem 由调用方显式注入，不依赖任何全局 session。
    """

    def __init__(self, filesystem: pafs.FileSystem):
        self.filesystem = filesystem

    @classmethod
    def from_uri(cls, uri: str) -> "ArrowStorage":
        """
        hdfs://namenode:8020/models  → SubTreeFileSystem(/models, HadoopFileSystem)
        之后所有 path 都相对于 uri 的根目录
        """
        filesystem, root = pafs.FileSystem.from_uri(uri)
        logs.info(f"[Storage] arrow filesystem={filesystem.type_name} root={root}")
        return cls(pafs.SubTreeFileSystem(root, filesystem))

    def write_text(self, path: str, text: str) -> None:
        with storage_errors("write_text", path):
            self.filesystem.create_dir(path, recursive=True)
            with self.filesystem.open_output_stream(self.join(path, PART_TEXT)) as out:
                out.write(text.encode("utf-8"))

    def read_text(self, path: str) -> str:
        with storage_errors("read_text", path):
            chunks = []
            for part in self._parts(path):
                with self.filesystem.open_input_stream(part) as stream:
                    chunks.append(stream.read().decode("utf-8"))
            return "".join(chunks)

    def write_values(self, path: str, values: np.ndarray) -> None:
        with storage_errors("write_values", path):
            self.filesystem.create_dir(path, recursive=True)
            pq.write_table(
                values_to_table(values),
                self.join(path, PART_VALUES),
                filesystem=self.filesystem,
            )

    def read_values(self, path: str) -> np.ndarray:
        with storage_errors("read_values", path):
            return concat_values(
                table_to_values(pq.read_table(part, filesystem=self.filesystem), part)
                for part in self._parts(path, suffix=".parquet")
            )

    def exists(self, path: str) -> bool:
        with storage_errors("exists", path):
            return self.filesystem.get_file_info(path).type != pafs.FileType.NotFound

    def remove(self, path: str) -> None:
        with storage_errors("remove", path):
            info = self.filesystem.get_file_info(path)
            if info.type == pafs.FileType.Directory:
                self.filesystem.delete_dir(path)
            elif info.type == pafs.FileType.File:
                self.filesystem.delete_file(path)

    def move(self, src: str, dst: str) -> None:
        with storage_errors("move", src):
            self.filesystem.move(src, dst)

    def _parts(self, path: str, suffix: str = "") -> list[str]:
        # 目录不存在时 FileSelector 抛 FileNotFoundError
        infos = self.filesystem.get_file_info(pafs.FileSelector(path))
        parts = sorted(
            info.path
            for info in infos
            if info.type == pafs.FileType.File and is_part_file(info.base_name, suffix)
        )
        if not parts:
            raise FileNotFoundError(f"no {PART_PREFIX}*{suffix} file under {path}")
        return parts

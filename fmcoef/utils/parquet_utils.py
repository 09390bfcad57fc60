# fmcoef/utils/parquet_utils.py
import os
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from fmcoef.utils.filesystem import FileSystem


class ParquetAtomicWriter:
    """
    Parquet 原子写工具

    语义：
      - 永远写到 *.tmp
      - 成功后 rename → 正式 parquet
    """

    @staticmethod
    def write_table(table: pa.Table, output_path: Path, **kwargs) -> None:
        output_path = Path(output_path)
        FileSystem.ensure_dir(output_path.parent)

        tmp_path = output_path.with_suffix(output_path.suffix + ".tmp")

        pq.write_table(table, tmp_path, **kwargs)

        with open(tmp_path, "rb") as f:
            os.fsync(f.fileno())

        tmp_path.replace(output_path)

# fmcoef/config/storage_config.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class StorageConfig(BaseModel):
    """
    backend:
      - local : 本地文件系统（pathlib + pyarrow.parquet）
      - arrow : 任意 pyarrow.fs 文件系统（hdfs://, s3://, file://）
    """

    backend: Literal["local", "arrow"] = "local"
    uri: Optional[str] = None

    def build_storage(self):
        # 延迟 import，config 层不依赖 storage 的加载顺序
        from fmcoef.storage import ArrowStorage, LocalStorage

        if self.backend == "local":
            return LocalStorage()

        if self.uri is None:
            raise ValueError("[StorageConfig] backend=arrow requires uri")
        return ArrowStorage.from_uri(self.uri)

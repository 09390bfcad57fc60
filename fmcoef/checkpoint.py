# fmcoef/checkpoint.py
from __future__ import annotations

import uuid

from fmcoef.coefficients.base import Coefficients
from fmcoef.storage.base import CoefficientStorage
from fmcoef.utils.errors import StorageIOError
from fmcoef.utils.logger import logs
from fmcoef.utils.retry import Retry


def publish_checkpoint(
    coeffs: Coefficients,
    storage: CoefficientStorage,
    location: str,
    *,
    max_attempts: int = 3,
    delay: float = 1.0,
) -> str:
    """
    原子发布 checkpoint

    语义：
      - 每次尝试都写到全新的临时目录 <location>.tmp-<id>
      - 写入失败：删除该临时目录，换一个新的临时目录重试
      - 写入成功：rename → location（覆盖旧 checkpoint）
    """

    def write_fresh_location() -> str:
        tmp = f"{location}.tmp-{uuid.uuid4().hex[:8]}"
        try:
            coeffs.save(storage, tmp)
        except Exception:
            _discard(storage, tmp)
            raise
        return tmp

    tmp = Retry.run(
        write_fresh_location,
        exceptions=(StorageIOError,),
        max_attempts=max_attempts,
        delay=delay,
    )

    _swap_into_place(storage, tmp, location)
    logs.info(f"[Checkpoint] published {location}")
    return location


def _discard(storage: CoefficientStorage, tmp: str) -> None:
    try:
        storage.remove(tmp)
    except StorageIOError as e:
        logs.warning(f"[Checkpoint] partial location left behind: {tmp} ({e})")


def _swap_into_place(storage: CoefficientStorage, tmp: str, location: str) -> None:
    if not storage.exists(location):
        try:
            storage.move(tmp, location)
        except Exception:
            _discard(storage, tmp)
            raise
        return

    retired = f"{location}.old-{uuid.uuid4().hex[:8]}"
    storage.move(location, retired)
    try:
        storage.move(tmp, location)
    except Exception:
        # 回滚：旧 checkpoint 放回原位
        storage.move(retired, location)
        _discard(storage, tmp)
        raise
    storage.remove(retired)

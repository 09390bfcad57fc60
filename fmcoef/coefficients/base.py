# fmcoef/coefficients/base.py
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Sequence

from fmcoef.storage.base import CoefficientStorage
from fmcoef.utils.errors import MalformedPersistedError
from fmcoef.utils.logger import logs

# 持久化命名
NAMING_COEFF_TYPE = "coeffType"
NAMING_META_FILE = "meta"
NAMING_DATA_FILE = "data"


class Coefficients(ABC):
    """
    模型系数（与具体模型无关的代数 / 正则 / 持久化契约）

    运算符约定：
      - a += b / a -= b   : 系数对应相加 / 相减（原地）
      - a + c / a * c / a / c : 与实数运算（返回拷贝）
      - a == b            : 结构 + 数值完全相等
    """

    # ----------------------------------------------------------
    # copy
    # ----------------------------------------------------------
    @abstractmethod
    def copy_empty(self) -> "Coefficients":
        """只复制结构（形状、开关），不复制内容"""

    @abstractmethod
    def copy(self) -> "Coefficients":
        """同时复制结构和内容（深拷贝）"""

    # ----------------------------------------------------------
    # algebra
    # ----------------------------------------------------------
    @abstractmethod
    def add_in_place(self, other: "Coefficients") -> "Coefficients":
        ...

    @abstractmethod
    def subtract_in_place(self, other: "Coefficients") -> "Coefficients":
        ...

    @abstractmethod
    def add_scalar(self, addend: float) -> "Coefficients":
        ...

    @abstractmethod
    def scale(self, multiplier: float) -> "Coefficients":
        ...

    @abstractmethod
    def divide(self, dividend: float) -> "Coefficients":
        ...

    @abstractmethod
    def norm(self) -> float:
        ...

    # ----------------------------------------------------------
    # regularization
    # ----------------------------------------------------------
    @abstractmethod
    def l2_penalty_value(self, reg: Sequence[float]) -> float:
        ...

    @abstractmethod
    def l2_penalty_gradient(self, reg: Sequence[float]) -> "Coefficients":
        ...

    @abstractmethod
    def l1_penalty_value(self, reg: Sequence[float]) -> float:
        ...

    @abstractmethod
    def l1_shrink(self, reg: Sequence[float], step_size: float) -> "Coefficients":
        ...

    # ----------------------------------------------------------
    # equality
    # ----------------------------------------------------------
    @abstractmethod
    def equals(self, other: object) -> bool:
        ...

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    # 可变对象，不可哈希
    __hash__ = None

    # ----------------------------------------------------------
    # operators
    # ----------------------------------------------------------
    def __iadd__(self, other: "Coefficients") -> "Coefficients":
        return self.add_in_place(other)

    def __isub__(self, other: "Coefficients") -> "Coefficients":
        return self.subtract_in_place(other)

    def __add__(self, addend: float) -> "Coefficients":
        return self.add_scalar(addend)

    def __mul__(self, multiplier: float) -> "Coefficients":
        return self.scale(multiplier)

    __rmul__ = __mul__

    def __truediv__(self, dividend: float) -> "Coefficients":
        return self.divide(dividend)

    # ----------------------------------------------------------
    # persistence
    # ----------------------------------------------------------
    @abstractmethod
    def save_meta(self, storage: CoefficientStorage, location: str) -> None:
        ...

    @abstractmethod
    def save_data(self, storage: CoefficientStorage, location: str) -> None:
        ...

    def save(self, storage: CoefficientStorage, location: str) -> None:
        """
        location/
          meta/part-00000      元数据（单行 JSON）
          data/...             数值列
        """
        logs.info(f"[{type(self).__name__}] save → {location}")
        self.save_meta(storage, storage.join(location, NAMING_META_FILE))
        self.save_data(storage, storage.join(location, NAMING_DATA_FILE))

    @staticmethod
    def read_meta_record(storage: CoefficientStorage, location: str, coeff_type: str) -> Dict[str, Any]:
        """
        读取 location/meta 下的第一条 JSON 记录，并校验 coeffType
        """
        text = storage.read_text(storage.join(location, NAMING_META_FILE))
        lines = [line for line in text.splitlines() if line.strip()]
        if not lines:
            raise MalformedPersistedError(f"[Coefficients] empty metadata at {location}")

        try:
            record = json.loads(lines[0])
        except json.JSONDecodeError as e:
            raise MalformedPersistedError(f"[Coefficients] metadata is not JSON at {location}: {e}") from e

        if not isinstance(record, dict):
            raise MalformedPersistedError(f"[Coefficients] metadata is not an object at {location}")

        found = record.get(NAMING_COEFF_TYPE)
        if found != coeff_type:
            raise MalformedPersistedError(
                f"[Coefficients] {NAMING_COEFF_TYPE} mismatch at {location}: "
                f"expected {coeff_type!r}, got {found!r}"
            )
        return record

# fmcoef/coefficients/fm_coefficients.py
from __future__ import annotations

import json
from typing import Callable, Iterator, Optional, Sequence, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, ValidationError

from fmcoef.coefficients.base import NAMING_COEFF_TYPE, NAMING_DATA_FILE, Coefficients
from fmcoef.coefficients.blocks import BIAS, BLOCKS, INTERACTION, LINEAR, Block
from fmcoef.storage.base import CoefficientStorage
from fmcoef.storage.local import LocalStorage
from fmcoef.utils.errors import MalformedPersistedError, ShapeMismatchError
from fmcoef.utils.gaussian_random import GaussianRandom
from fmcoef.utils.logger import logs

COEFF_TYPE = "FmCoefficients"


class FmCoefficientsMeta(BaseModel):
    """
    元数据记录（单行 JSON）
    """

    model_config = ConfigDict(populate_by_name=True)

    coeff_type: str = Field(alias=NAMING_COEFF_TYPE)
    # strict：类型不符直接失败，不做隐式转换
    intercept: Union[StrictFloat, StrictInt]
    w_size: StrictInt = Field(ge=0)
    v_rows: StrictInt = Field(ge=0)
    v_cols: StrictInt = Field(ge=0)
    k0: StrictBool
    k1: StrictBool
    k2: StrictBool


def soft_threshold(values, threshold: float) -> np.ndarray:
    """
    L1 近端算子: sign(x) * max(0, |x| - threshold)
    """
    shrunk = np.sign(values) * np.maximum(0.0, np.abs(values) - threshold)
    # 收缩到 0 的元素统一存成 +0.0，不计入 active
    return np.where(shrunk == 0.0, 0.0, shrunk)


def _reg_tuple(reg: Sequence[float]) -> Tuple[float, float, float]:
    if hasattr(reg, "as_tuple"):
        reg = reg.as_tuple()
    reg = tuple(float(r) for r in reg)
    if len(reg) != 3:
        raise ValueError(f"[FmCoefficients] reg needs 3 entries (reg0, reg1, reg2), got {len(reg)}")
    return reg


class FmCoefficients(Coefficients):
    """
    Factorization Machine 模型系数

    bias        : 0 阶（标量）
    linear      : 1 阶，shape = (num_features,)
    interaction : 2 阶因子，shape = (num_interact_features, num_factors)

    k0 / k1 / k2 在构造时固定；关闭的参数块不参与任何代数 / 正则 / 收缩运算，
    也不计入任何标量结果，但仍然被分配。
    """

    def __init__(
        self,
        init_mean: float,
        init_stdev: float,
        num_features: int,
        num_interact_features: int,
        num_factors: int,
        k0: bool,
        k1: bool,
        k2: bool,
        seed: Optional[int] = None,
    ):
        self.init_mean = init_mean
        self.init_stdev = init_stdev
        self.k0 = k0
        self.k1 = k1
        self.k2 = k2

        rng = GaussianRandom.generator(seed)
        self.bias = np.float64(GaussianRandom.rand(init_mean, init_stdev, rng))
        self.linear = np.zeros(num_features, dtype=np.float64)
        self.interaction = GaussianRandom.rand_matrix(
            init_mean, init_stdev, num_interact_features, num_factors, rng
        )

    # ==========================================================
    # construction
    # ==========================================================
    @classmethod
    def from_values(
        cls,
        bias: float,
        linear,
        interaction,
        k0: bool,
        k1: bool,
        k2: bool,
        init_mean: float = 0.0,
        init_stdev: float = 0.0,
    ) -> "FmCoefficients":
        """
        用给定的 bias / 向量 / 矩阵构造（深拷贝，不共享内存）；
        维度由输入的形状推出。
        """
        linear = np.array(linear, dtype=np.float64, copy=True)
        interaction = np.array(interaction, dtype=np.float64, copy=True)
        if linear.ndim != 1:
            raise ShapeMismatchError(f"[FmCoefficients] linear must be 1-D, got shape {linear.shape}")
        if interaction.ndim != 2:
            raise ShapeMismatchError(
                f"[FmCoefficients] interaction must be 2-D, got shape {interaction.shape}"
            )

        # 不走 __init__：跳过随机初始化
        coeffs = cls.__new__(cls)
        coeffs.init_mean = init_mean
        coeffs.init_stdev = init_stdev
        coeffs.k0 = k0
        coeffs.k1 = k1
        coeffs.k2 = k2
        coeffs.bias = np.float64(bias)
        coeffs.linear = linear
        coeffs.interaction = interaction
        return coeffs

    @classmethod
    def from_config(cls, cfg) -> "FmCoefficients":
        return cls(
            cfg.init_mean,
            cfg.init_stdev,
            cfg.num_features,
            cfg.num_interact_features,
            cfg.num_factors,
            cfg.k0,
            cfg.k1,
            cfg.k2,
            seed=cfg.seed,
        )

    # ==========================================================
    # shapes / blocks
    # ==========================================================
    @property
    def num_features(self) -> int:
        return self.linear.shape[0]

    @property
    def num_interact_features(self) -> int:
        return self.interaction.shape[0]

    @property
    def num_factors(self) -> int:
        return self.interaction.shape[1]

    @property
    def flags(self) -> Tuple[bool, bool, bool]:
        return (self.k0, self.k1, self.k2)

    def enabled(self, block: Block) -> bool:
        return self.flags[block.order]

    def active_blocks(self) -> Iterator[Block]:
        for block in BLOCKS:
            if self.enabled(block):
                yield block

    def _get(self, block: Block):
        return getattr(self, block.name)

    def _set(self, block: Block, value) -> None:
        if block is BIAS:
            setattr(self, block.name, np.float64(value))
        else:
            setattr(self, block.name, np.asarray(value, dtype=np.float64))

    def _update(self, fn: Callable[[Block, np.ndarray], np.ndarray]) -> "FmCoefficients":
        # 唯一的写入口：只遍历打开的参数块
        for block in self.active_blocks():
            self._set(block, fn(block, self._get(block)))
        return self

    def _reduce(self, fn: Callable[[Block, np.ndarray], float]) -> float:
        return float(sum(fn(block, self._get(block)) for block in self.active_blocks()))

    def active_size(self, block: Block) -> int:
        """
        非零元素个数（稀疏结构中实际保留的元素数）
        """
        return int(np.count_nonzero(self._get(block)))

    @property
    def linear_active_size(self) -> int:
        return self.active_size(LINEAR)

    @property
    def interaction_active_size(self) -> int:
        return self.active_size(INTERACTION)

    # ==========================================================
    # copy
    # ==========================================================
    def copy_empty(self) -> "FmCoefficients":
        return FmCoefficients.from_values(
            0.0,
            np.zeros(self.num_features),
            np.zeros((self.num_interact_features, self.num_factors)),
            self.k0,
            self.k1,
            self.k2,
            init_mean=self.init_mean,
            init_stdev=self.init_stdev,
        )

    def copy(self) -> "FmCoefficients":
        return FmCoefficients.from_values(
            self.bias,
            self.linear,
            self.interaction,
            self.k0,
            self.k1,
            self.k2,
            init_mean=self.init_mean,
            init_stdev=self.init_stdev,
        )

    # ==========================================================
    # algebra
    # ==========================================================
    def _check_operand(self, other: object) -> "FmCoefficients":
        if not isinstance(other, FmCoefficients):
            raise ShapeMismatchError(
                f"[FmCoefficients] operand must be FmCoefficients, got {type(other).__name__}"
            )
        if (self.linear.shape, self.interaction.shape) != (other.linear.shape, other.interaction.shape):
            raise ShapeMismatchError(
                f"[FmCoefficients] shape mismatch: "
                f"linear {self.linear.shape} vs {other.linear.shape}, "
                f"interaction {self.interaction.shape} vs {other.interaction.shape}"
            )
        return other

    def add_in_place(self, other: "FmCoefficients") -> "FmCoefficients":
        other = self._check_operand(other)
        return self._update(lambda block, x: x + other._get(block))

    def subtract_in_place(self, other: "FmCoefficients") -> "FmCoefficients":
        other = self._check_operand(other)
        return self._update(lambda block, x: x - other._get(block))

    def add_scalar(self, addend: float) -> "FmCoefficients":
        return self.copy()._update(lambda block, x: x + addend)

    def scale(self, multiplier: float) -> "FmCoefficients":
        return self.copy()._update(lambda block, x: x * multiplier)

    def divide(self, dividend: float) -> "FmCoefficients":
        # dividend == 0 不做保护：按浮点语义得到 inf / nan
        return self.copy()._update(lambda block, x: x / np.float64(dividend))

    def norm(self) -> float:
        """
        sum(abs(A).^p)^(1/p) where p=2，所有打开的参数块合并计算
        """
        return float(np.sqrt(self._reduce(lambda block, x: np.sum(np.square(x)))))

    # ==========================================================
    # regularization
    # ==========================================================
    def l2_penalty_value(self, reg: Sequence[float]) -> float:
        reg = _reg_tuple(reg)
        return 0.5 * self._reduce(lambda block, x: reg[block.order] * np.sum(np.square(x)))

    def l2_penalty_gradient(self, reg: Sequence[float]) -> "FmCoefficients":
        reg = _reg_tuple(reg)
        return self.copy()._update(lambda block, x: x * reg[block.order])

    def l1_penalty_value(self, reg: Sequence[float]) -> float:
        reg = _reg_tuple(reg)
        return self._reduce(lambda block, x: reg[block.order] * np.sum(np.abs(x)))

    def l1_shrink(self, reg: Sequence[float], step_size: float) -> "FmCoefficients":
        """
        用 L1 近端算子原地稀疏化系数，返回 self

        阈值：
          bias        : reg0 * step_size
          linear      : reg1 * step_size
          interaction : reg2 * step_size / num_factors
        """
        reg = _reg_tuple(reg)

        def threshold(block: Block) -> float:
            value = reg[block.order] * step_size
            if block is INTERACTION and self.num_factors:
                value /= self.num_factors
            return value

        self._update(lambda block, x: soft_threshold(x, threshold(block)))

        logs.debug(
            f"[FmCoefficients] l1_shrink step={step_size} "
            f"linear active={self.linear_active_size}/{self.linear.size} "
            f"interaction active={self.interaction_active_size}/{self.interaction.size}"
        )
        return self

    # ==========================================================
    # equality
    # ==========================================================
    def equals(self, other: object) -> bool:
        if not isinstance(other, FmCoefficients):
            return False
        return (
            bool(self.bias == other.bias)
            and np.array_equal(self.linear, other.linear)
            and np.array_equal(self.interaction, other.interaction)
        )

    def __repr__(self) -> str:
        return (
            f"FmCoefficients(bias={float(self.bias)!r}, "
            f"num_features={self.num_features}, "
            f"num_interact_features={self.num_interact_features}, "
            f"num_factors={self.num_factors}, "
            f"k0={self.k0}, k1={self.k1}, k2={self.k2})"
        )

    # ==========================================================
    # persistence
    # ==========================================================
    def to_meta(self) -> FmCoefficientsMeta:
        return FmCoefficientsMeta(
            coeff_type=COEFF_TYPE,
            intercept=float(self.bias),
            w_size=self.num_features,
            v_rows=self.num_interact_features,
            v_cols=self.num_factors,
            k0=self.k0,
            k1=self.k1,
            k2=self.k2,
        )

    def save_meta(self, storage: CoefficientStorage, location: str) -> None:
        record = self.to_meta().model_dump(by_alias=True)
        storage.write_text(location, json.dumps(record, separators=(",", ":")) + "\n")

    def save_data(self, storage: CoefficientStorage, location: str) -> None:
        storage.write_values(storage.join(location, "w"), self.linear)
        # v 按列优先（行下标变化最快）展开
        storage.write_values(storage.join(location, "v"), self.interaction.flatten(order="F"))

    @logs.catch(msg="failed to save coefficients", log_time=True)
    def save(self, storage: CoefficientStorage, location: str) -> None:
        super().save(storage, location)
        logs.info(
            f"[FmCoefficients] saved w_size={self.num_features} "
            f"v={self.num_interact_features}x{self.num_factors} flags={self.flags}"
        )

    @classmethod
    @logs.catch(msg="failed to load coefficients", log_time=True)
    def load(cls, storage: CoefficientStorage, location: str) -> "FmCoefficients":
        """
        从持久化目录重建系数；元数据缺失 / 类型错误 / 长度不符一律视为致命错误
        """
        record = cls.read_meta_record(storage, location, COEFF_TYPE)
        try:
            meta = FmCoefficientsMeta.model_validate(record)
        except ValidationError as e:
            raise MalformedPersistedError(f"[FmCoefficients] bad metadata at {location}: {e}") from e

        data_dir = storage.join(location, NAMING_DATA_FILE)
        w = storage.read_values(storage.join(data_dir, "w"))
        v = storage.read_values(storage.join(data_dir, "v"))

        if w.size != meta.w_size:
            raise MalformedPersistedError(
                f"[FmCoefficients] w has {w.size} values, metadata declares w_size={meta.w_size}"
            )
        if v.size != meta.v_rows * meta.v_cols:
            raise MalformedPersistedError(
                f"[FmCoefficients] v has {v.size} values, metadata declares "
                f"{meta.v_rows}x{meta.v_cols}"
            )

        coeffs = cls.from_values(
            meta.intercept,
            w,
            v.reshape((meta.v_rows, meta.v_cols), order="F"),
            meta.k0,
            meta.k1,
            meta.k2,
        )
        logs.info(f"[FmCoefficients] loaded {coeffs!r} from {location}")
        return coeffs

    @classmethod
    def load_local(cls, location: str) -> "FmCoefficients":
        return cls.load(LocalStorage(), location)

# fmcoef/config/model_config.py
from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, Field


class CoefficientsConfig(BaseModel):
    """
    Shape / flags / initializer of a fresh FM coefficient store.
    """

    # initializer
    init_mean: float = 0.0
    init_stdev: float = Field(default=0.0001, ge=0.0)
    seed: Optional[int] = None

    # shapes
    num_features: int = Field(ge=0)
    num_interact_features: int = Field(ge=0)
    num_factors: int = Field(default=8, ge=1)

    # per-order switches
    k0: bool = True
    k1: bool = True
    k2: bool = True


class RegularizationConfig(BaseModel):
    reg0: float = Field(default=0.0, ge=0.0)
    reg1: float = Field(default=0.0, ge=0.0)
    reg2: float = Field(default=0.0, ge=0.0)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.reg0, self.reg1, self.reg2)

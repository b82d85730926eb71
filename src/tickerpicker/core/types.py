"""
Closed enumerations and data contracts shared by the allocation engine.

Moods, fill-price conventions and archive datasets are closed ``str``
enums: anything outside the enumeration is rejected with a
``ConfigurationError`` that names the offending value, instead of falling
through a chain of string comparisons.
"""
from enum import Enum
from typing import List

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from src.tickerpicker.errors import ConfigurationError


def _parse_choice(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            f"Invalid {label} specified: {value!r}. Valid options are: {valid}."
        ) from None


class Mood(str, Enum):
    """Investor risk attitude; selects the preference table and its lambda."""

    OPTIMISTIC = "optimistic"
    NEUTRAL = "neutral"
    PESSIMISTIC = "pessimistic"

    @classmethod
    def parse(cls, value) -> "Mood":
        return _parse_choice(cls, value, "mood")


class FillPriceConvention(str, Enum):
    """Which intraday statistic is used as the executed trade price."""

    RANDOM = "random"
    OPEN = "open"
    CLOSE = "close"
    HIGH = "high"
    LOW = "low"
    VOLUME_WEIGHTED_AVERAGE_PRICE = "volume_weighted_average_price"

    @classmethod
    def parse(cls, value) -> "FillPriceConvention":
        return _parse_choice(cls, value, "fillpriceconvention")


class Dataset(str, Enum):
    """Fixed market-data archives; the value is the archive sub-directory."""

    TRAINING = "training"
    TESTING = "testing"

    @classmethod
    def parse(cls, value) -> "Dataset":
        return _parse_choice(cls, value, "dataset")


class SingleIndexParameters(BaseModel):
    """Intercept and market sensitivity of a ticker's single-index model."""

    model_config = ConfigDict(frozen=True)

    alpha: float = Field(..., description="Intercept (excess return unexplained by the market)")
    beta: float = Field(..., description="Sensitivity to the market factor")


class AllocationConfig(BaseModel):
    """Options accepted by ``shares``; splat in with ``**config.model_dump()``."""

    model_config = ConfigDict(frozen=True)

    fillpriceconvention: FillPriceConvention = Field(
        FillPriceConvention.VOLUME_WEIGHTED_AVERAGE_PRICE,
        description="Price column used as the fill price",
    )
    cutoff: float = Field(
        0.5, ge=0.0, le=1.0,
        description="Buy-probability above which a ticker earns the preference weight",
    )
    penalty: float = Field(
        -100.0,
        description="Preference weight applied at or below the cutoff",
    )


class AllocationResult(BaseModel):
    """Output of one ``shares`` call; every list is aligned to ``tickers``."""

    shares: List[float]
    price: List[float]
    gamma: List[float]
    tickers: List[str]
    cash: float

    @property
    def total_spent(self) -> float:
        return float(sum(n * p for n, p in zip(self.shares, self.price)))

    def to_frame(self) -> pd.DataFrame:
        """Tabulate the allocation, one row per ticker."""
        df = pd.DataFrame(
            {"shares": self.shares, "price": self.price, "gamma": self.gamma},
            index=pd.Index(self.tickers, name="ticker"),
        )
        df["cost"] = df["shares"] * df["price"]
        return df

"""
Immutable model records for the ticker-picker problem.

Three records are defined here:
  - ``WorldModel``: the risk-aware single-index world the bandit explores.
  - ``BanditModel``: per-arm success / failure counts of the ticker picker.
  - ``InvestorContextModel``: everything the allocation engine reads.

Records are frozen pydantic models built in one step by
``src.tickerpicker.core.factory.build``.  The engine assumes they are
complete; it never fills defaults or checks cross-field consistency.
"""
from abc import ABC, abstractmethod
from typing import Dict, List

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from src.tickerpicker.core.types import SingleIndexParameters
from src.tickerpicker.errors import MissingDataError


class RewardModel(ABC):
    """Capability that scores an action taken in a world."""

    @abstractmethod
    def reward(self, action: int, world: "WorldModel") -> float:
        """Return the reward for choosing arm *action* (a ticker index) in *world*."""


class SingleIndexExcessReturn(RewardModel):
    """Risk-adjusted SIM expected excess return of the chosen ticker.

    ``r = alpha + beta * G_m - risk_aversion * risk[ticker]``
    """

    def __init__(self, risk_aversion: float = 1.0):
        self.risk_aversion = risk_aversion

    def reward(self, action: int, world: "WorldModel") -> float:
        if not 0 <= action < len(world.tickers):
            raise MissingDataError(
                f"Action {action} is outside the ticker universe "
                f"(0..{len(world.tickers) - 1})"
            )

        ticker = world.tickers[action]
        if ticker not in world.parameters:
            raise MissingDataError(f"No single-index parameters for {ticker}")

        if ticker not in world.risk:
            raise MissingDataError(f"No risk score for {ticker}")

        sim = world.parameters[ticker]
        expected = sim.alpha + sim.beta * world.market_factor
        return expected - self.risk_aversion * world.risk[ticker]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class WorldModel(_Record):
    """Risk-aware ticker-picker world driven by a single-index model."""

    tickers: List[str] = Field(..., description="Ticker symbols explored by the picker")
    risk_free_rate: float
    world: RewardModel = Field(..., description="Reward capability for an action")
    dt: float = Field(..., description="Time step of the world model")
    market_factor: float = Field(..., description="Expected excess market return")
    parameters: Dict[str, SingleIndexParameters]
    buffersize: int = Field(..., description="Days kept in the observation buffer")
    risk: Dict[str, float] = Field(..., description="Risk score per ticker")

    def reward(self, action: int) -> float:
        return self.world.reward(action, self)


class BanditModel(_Record):
    """Epsilon-sampling multi-armed bandit state (storage only)."""

    alpha: List[float] = Field(..., description="Successful pulls per arm")
    beta: List[float] = Field(..., description="Unsuccessful pulls per arm")
    K: int = Field(..., description="Number of arms")
    epsilon: float = Field(..., description="Exploration parameter, 0 = greedy, 1 = random")


class InvestorContextModel(_Record):
    """Budget, universe, data and attitude consumed by ``shares``."""

    budget: float = Field(..., description="Total budget in USD")
    tickers: List[str]
    marketdata: Dict[str, pd.DataFrame] = Field(
        ..., description="OHLC + VWAP table per ticker, one row per trading day"
    )
    preferences: Dict[str, pd.DataFrame] = Field(
        ..., description="Preference table (ticker, probability, lambda) per mood"
    )
    market_factor: float = Field(..., description="Expected excess market return")
    risk_free_rate: float
    single_index_parameters: Dict[str, SingleIndexParameters]
    preference_weight: float = Field(..., description="Weight of the buy-probability in the score")
    # Validated by the engine, not here.
    mood: str
    min_trade_size: float = Field(..., description="Smallest forced share purchase")

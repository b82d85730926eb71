"""Shared fixtures: a three-ticker investor context built in memory."""
import numpy as np
import pandas as pd
import pytest

from src.tickerpicker.core.factory import build
from src.tickerpicker.core.models import InvestorContextModel
from src.tickerpicker.core.types import SingleIndexParameters

TICKERS = ["AAA", "BBB", "CCC"]
N_DAYS = 5


def price_table(base: float, n_days: int = N_DAYS) -> pd.DataFrame:
    """OHLC + VWAP history whose prices drift up by 1.0 per day."""
    drift = np.arange(n_days, dtype=float)
    df = pd.DataFrame(
        {
            "open": base + drift,
            "high": base + 2.0 + drift,
            "low": base - 1.0 + drift,
            "close": base + 1.0 + drift,
            "volume_weighted_average_price": base + 0.5 + drift,
        }
    )
    df.index = pd.RangeIndex(1, n_days + 1, name="t")
    return df


def preference_table(probabilities: dict, lam: float = 1.0) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "ticker": list(probabilities),
            "probability": list(probabilities.values()),
            "lambda": lam,
        }
    )


@pytest.fixture
def context_bundle():
    # beta = 1 and lambda = 1 reduce the raw score to alpha + G_m + xi_i * p.
    # AAA: 0.2 + 0.5 * 0.9 = 0.65, BBB: 0.1 + 0.5 * 0.7 = 0.45,
    # CCC: 0.3 - 100 * 0.2 = -19.7.
    neutral = {"AAA": 0.9, "BBB": 0.7, "CCC": 0.2}
    return {
        "budget": 1000.0,
        "tickers": list(TICKERS),
        "marketdata": {
            "AAA": price_table(10.0),
            "BBB": price_table(20.0),
            "CCC": price_table(40.0),
        },
        "preferences": {
            "optimistic": preference_table({"AAA": 0.95, "BBB": 0.9, "CCC": 0.8}),
            "neutral": preference_table(neutral),
            "pessimistic": preference_table({"AAA": 0.4, "BBB": 0.3, "CCC": 0.1}),
        },
        "market_factor": 0.0,
        "risk_free_rate": 0.04,
        "single_index_parameters": {
            "AAA": SingleIndexParameters(alpha=0.2, beta=1.0),
            "BBB": SingleIndexParameters(alpha=0.1, beta=1.0),
            "CCC": SingleIndexParameters(alpha=0.3, beta=1.0),
        },
        "preference_weight": 0.5,
        "mood": "neutral",
        "min_trade_size": 1.0,
    }


@pytest.fixture
def context(context_bundle) -> InvestorContextModel:
    return build(InvestorContextModel, context_bundle)


@pytest.fixture
def make_context(context_bundle):
    """Build a context from the default bundle with some fields replaced."""

    def _make(**overrides) -> InvestorContextModel:
        return build(InvestorContextModel, {**context_bundle, **overrides})

    return _make

"""
Preference-blended share allocation engine.

For trading day ``t`` the engine:
  1. Scores every ticker by blending its single-index-model (SIM)
     expectation with the mood's buy-probability, bounded with ``tanh``.
  2. Picks a fill price per ticker from that day's OHLC + VWAP row.
  3. Splits the budget across positively-scored tickers in proportion to
     their score.
  4. Reports the unspent budget as cash.

Every lookup is checked up front, so a bad mood, convention, ticker or day
fails before any share is computed.  The investor context is only read.
"""
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from loguru import logger

from src.tickerpicker.core.models import InvestorContextModel
from src.tickerpicker.core.types import (
    AllocationResult,
    FillPriceConvention,
    Mood,
    SingleIndexParameters,
)
from src.tickerpicker.errors import MissingDataError, ScoreDomainError

# Column read for every deterministic convention.  RANDOM interpolates
# between high and low instead.
_PRICE_COLUMNS: Dict[FillPriceConvention, str] = {
    FillPriceConvention.OPEN: "open",
    FillPriceConvention.CLOSE: "close",
    FillPriceConvention.HIGH: "high",
    FillPriceConvention.LOW: "low",
    FillPriceConvention.VOLUME_WEIGHTED_AVERAGE_PRICE: "volume_weighted_average_price",
}

# tanh saturates to exactly +/-1.0 in float64 for |R| > ~19; clip inside.
_GAMMA_BOUND = float(np.nextafter(1.0, 0.0))


def shares(
    t: int,
    model: InvestorContextModel,
    fillpriceconvention: Union[FillPriceConvention, str] = FillPriceConvention.VOLUME_WEIGHTED_AVERAGE_PRICE,
    cutoff: float = 0.5,
    penalty: float = -100.0,
    rng: Optional[np.random.Generator] = None,
) -> AllocationResult:
    """Compute the share allocation for trading day *t*.

    Args:
        t: 1-based trading-day position into every ticker's market data.
        model: Investor context (budget, tickers, market data, preference
               tables, SIM parameters, mood, minimum trade size).
        fillpriceconvention: Price used as the fill price.  ``random`` draws
                             uniformly between the day's low and high.
        cutoff: Buy-probability at or below which a ticker gets *penalty*
                instead of the context's preference weight.
        penalty: Preference weight for tickers at or below *cutoff*.
        rng: Generator for the ``random`` convention; a fresh default
             generator is used when omitted.

    Returns:
        ``AllocationResult`` with the share vector, fill prices, bounded
        scores, ticker order and leftover cash.

    Raises:
        ConfigurationError: Unknown mood or fill-price convention.
        MissingDataError: Missing preference table / row, SIM parameters,
                          market data, price column, or *t* out of range.
        ScoreDomainError: SIM parameters and lambda give no finite score.
    """
    mood = Mood.parse(model.mood)
    convention = FillPriceConvention.parse(fillpriceconvention)
    tickers = list(model.tickers)

    logger.debug(
        f"Allocating day {t} | mood={mood.value} | convention={convention.value} "
        f"| cutoff={cutoff} | penalty={penalty} | {len(tickers)} tickers"
    )

    table = _preference_table(model.preferences, mood)
    lam = float(table["lambda"].iloc[0])  # identical on every row
    probability = _buy_probabilities(table, tickers, mood)
    alpha, beta = _sim_arrays(model.single_index_parameters, tickers)
    rows = _market_rows(model.marketdata, tickers, t, convention)

    gamma = preference_scores(
        alpha,
        beta,
        probability,
        lam=lam,
        market_factor=model.market_factor,
        preference_weight=model.preference_weight,
        cutoff=cutoff,
        penalty=penalty,
        tickers=tickers,
    )
    price = fill_prices(rows, convention, rng=rng)

    # Only positively scored tickers are candidates for purchase.
    candidates = np.flatnonzero(gamma > 0)
    n = allocate(gamma, price, model.budget, candidates, model.min_trade_size)

    total_spent = float(np.sum(n * price))
    cash = model.budget - total_spent

    logger.debug(
        f"Day {t}: bought {len(candidates)}/{len(tickers)} tickers, "
        f"spent {total_spent:,.2f}, cash {cash:,.2f}"
    )

    return AllocationResult(
        shares=n.tolist(),
        price=price.tolist(),
        gamma=gamma.tolist(),
        tickers=tickers,
        cash=cash,
    )


def preference_scores(
    alpha: np.ndarray,
    beta: np.ndarray,
    probability: np.ndarray,
    lam: float,
    market_factor: float,
    preference_weight: float,
    cutoff: float = 0.5,
    penalty: float = -100.0,
    tickers: Optional[Sequence[str]] = None,
) -> np.ndarray:
    """Bounded preference score per ticker.

    ``R = alpha / beta^lam + (beta / beta^lam) * G_m + xi_i * p``, with
    ``xi_i = preference_weight`` when ``p > cutoff`` and ``penalty``
    otherwise; ``gamma = tanh(R)`` kept strictly inside (-1, 1).

    Raises:
        ScoreDomainError: If R is not finite for some ticker, e.g. a
                          negative beta with fractional lam, or beta = 0.
                          *tickers* only labels the error message.
    """
    alpha = np.asarray(alpha, dtype=float)
    beta = np.asarray(beta, dtype=float)
    probability = np.asarray(probability, dtype=float)

    xi = np.where(probability > cutoff, preference_weight, penalty)
    with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
        scale = np.power(beta, lam)
        raw = alpha / scale + (beta / scale) * market_factor + xi * probability

    bad = np.flatnonzero(~np.isfinite(raw))
    if bad.size:
        labels = list(tickers) if tickers is not None else [str(i) for i in range(len(raw))]
        details = "; ".join(
            f"{labels[i]}: alpha={alpha[i]}, beta={beta[i]}, lambda={lam}" for i in bad
        )
        logger.error(f"Single-index score is not finite for {details}")
        raise ScoreDomainError(f"Single-index score is not finite for {details}")

    return np.clip(np.tanh(raw), -_GAMMA_BOUND, _GAMMA_BOUND)


def fill_prices(
    rows: pd.DataFrame,
    convention: FillPriceConvention,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Fill price per row of *rows* (one row per ticker, day already selected)."""
    if convention is FillPriceConvention.RANDOM:
        rng = rng if rng is not None else np.random.default_rng()
        f = rng.uniform(0.0, 1.0, size=len(rows))
        high = rows["high"].to_numpy(dtype=float)
        low = rows["low"].to_numpy(dtype=float)
        return f * high + (1.0 - f) * low

    return rows[_PRICE_COLUMNS[convention]].to_numpy(dtype=float)


def allocate(
    gamma: np.ndarray,
    price: np.ndarray,
    budget: float,
    candidates: Sequence[int],
    min_trade_size: float,
) -> np.ndarray:
    """Split *budget* across *candidates* in proportion to their score.

    Two regimes:
      - **All preferred** (no candidate has ``gamma < 0``): candidate ``s``
        gets ``(gamma_s / sum(gamma)) * budget / price_s``.
      - **Mixed**: negative-score candidates are fixed at *min_trade_size*
        shares, their cost comes out of the budget, and the remainder is
        split over the non-negative candidates as above.

    Tickers outside *candidates* get zero shares.  ``shares`` passes the
    positive-score set, for which the mixed regime never triggers.
    """
    gamma = np.asarray(gamma, dtype=float)
    price = np.asarray(price, dtype=float)
    candidates = np.asarray(candidates, dtype=int)
    n = np.zeros(len(gamma))

    if candidates.size == 0:
        logger.warning("No ticker has a positive preference score; holding the full budget in cash.")
        return n

    if not np.any(gamma[candidates] < 0):
        gamma_bar = gamma[candidates].sum()
        n[candidates] = (gamma[candidates] / gamma_bar) * (budget / price[candidates])
        return n

    forced = candidates[gamma[candidates] < 0]
    preferred = candidates[gamma[candidates] >= 0]
    logger.debug(f"Mixed regime: {forced.size} forced at minimum size, {preferred.size} preferred")

    n[forced] = min_trade_size
    distributable = budget - min_trade_size * price[forced].sum()

    gamma_bar = gamma[preferred].sum()
    if gamma_bar <= 0:
        logger.warning("No positively scored candidate left; remaining budget stays in cash.")
        return n

    n[preferred] = (gamma[preferred] / gamma_bar) * (distributable / price[preferred])
    return n


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def _preference_table(preferences: Dict[str, pd.DataFrame], mood: Mood) -> pd.DataFrame:
    tables = {getattr(key, "value", key): df for key, df in preferences.items()}
    table = tables.get(mood.value)
    if table is None:
        logger.error(f"No preference table for mood '{mood.value}'. Available: {list(tables)}")
        raise MissingDataError(f"No preference table for mood '{mood.value}'")

    missing = {"ticker", "probability", "lambda"} - set(table.columns)
    if missing:
        raise MissingDataError(
            f"Preference table for mood '{mood.value}' is missing columns {sorted(missing)}"
        )
    if table.empty:
        raise MissingDataError(f"Preference table for mood '{mood.value}' is empty")

    return table


def _buy_probabilities(table: pd.DataFrame, tickers: List[str], mood: Mood) -> np.ndarray:
    by_ticker = table.drop_duplicates("ticker").set_index("ticker")["probability"]

    missing = [ticker for ticker in tickers if ticker not in by_ticker.index]
    if missing:
        logger.error(f"Preference table '{mood.value}' has no row for {missing}")
        raise MissingDataError(f"No preference row for {missing} under mood '{mood.value}'")

    return by_ticker.reindex(tickers).to_numpy(dtype=float)


def _sim_arrays(
    parameters: Dict[str, SingleIndexParameters],
    tickers: List[str],
) -> Tuple[np.ndarray, np.ndarray]:
    missing = [ticker for ticker in tickers if ticker not in parameters]
    if missing:
        logger.error(f"Single-index parameters missing for {missing}")
        raise MissingDataError(f"No single-index parameters for {missing}")

    alpha = np.array([parameters[ticker].alpha for ticker in tickers], dtype=float)
    beta = np.array([parameters[ticker].beta for ticker in tickers], dtype=float)
    return alpha, beta


def _market_rows(
    marketdata: Dict[str, pd.DataFrame],
    tickers: List[str],
    t: int,
    convention: FillPriceConvention,
) -> pd.DataFrame:
    """Row ``t`` (1-based) of each ticker's table, restricted to the needed columns."""
    if convention is FillPriceConvention.RANDOM:
        columns = ["high", "low"]
    else:
        columns = [_PRICE_COLUMNS[convention]]

    records = []
    for ticker in tickers:
        firm_data = marketdata.get(ticker)
        if firm_data is None:
            logger.error(f"No market data for {ticker}")
            raise MissingDataError(f"No market data for {ticker}")

        if not 1 <= t <= len(firm_data):
            logger.error(f"Day {t} is outside the history of {ticker} (1..{len(firm_data)})")
            raise MissingDataError(
                f"Day {t} is outside the history of {ticker} (1..{len(firm_data)})"
            )

        absent = [c for c in columns if c not in firm_data.columns]
        if absent:
            raise MissingDataError(f"Market data for {ticker} is missing columns {absent}")

        records.append(firm_data[columns].iloc[t - 1].to_numpy(dtype=float))

    return pd.DataFrame(records, index=tickers, columns=columns)

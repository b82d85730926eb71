"""
Abstract base class for market-data providers.

A provider hands the engine three kinds of read-only data:
  - per-ticker OHLC + VWAP history for a fixed dataset,
  - the ticker-picker preference table for each mood,
  - per-ticker single-index-model parameters.

The base class also provides ``validate_schema``, a final check on every
price table before it reaches the allocation engine.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import pandas as pd
from loguru import logger

from src.tickerpicker.core.types import Dataset, Mood, SingleIndexParameters
from src.tickerpicker.errors import MissingDataError

PRICE_COLUMNS = ("open", "high", "low", "close", "volume_weighted_average_price")


class MarketDataProvider(ABC):
    """Contract that every data source must satisfy."""

    @abstractmethod
    def load_market_data(
        self,
        dataset: Dataset,
        tickers: Optional[List[str]] = None,
    ) -> Dict[str, pd.DataFrame]:
        """Return ticker -> OHLC + VWAP table, indexed by trading day 1..N.

        Args:
            dataset: Which fixed archive to read.
            tickers: Restrict loading to these tickers; all when ``None``.
        """

    @abstractmethod
    def load_preferences(self, mood: Mood) -> pd.DataFrame:
        """Return the preference table (``ticker``, ``probability``, ``lambda``) for *mood*."""

    @abstractmethod
    def load_single_index_parameters(self) -> Dict[str, SingleIndexParameters]:
        """Return ticker -> single-index-model parameters."""

    def load_preference_tables(self) -> Dict[str, pd.DataFrame]:
        """Load the preference table of every mood, keyed by mood value."""
        return {mood.value: self.load_preferences(mood) for mood in Mood}

    def validate_schema(self, df: pd.DataFrame, ticker: str) -> bool:
        """Verify that a price table carries every column the engine reads
        and that its prices are usable.

        Returns:
            ``True`` if validation passes.

        Raises:
            MissingDataError: If one or more price columns are missing.
            ValueError: If a price is non-positive or a high is below its low.
        """
        df_cols = set(df.columns)
        missing = set(PRICE_COLUMNS) - df_cols
        if missing:
            logger.critical(f"Data schema violation for {ticker}! Missing columns: {sorted(missing)}")
            logger.debug(f"Columns present: {sorted(df_cols)}")
            raise MissingDataError(
                f"Market data for {ticker} violates schema. Missing: {sorted(missing)}"
            )

        prices = df[list(PRICE_COLUMNS)]
        if (prices <= 0).any().any() or prices.isnull().any().any():
            logger.critical(f"Non-positive or missing prices in {ticker}")
            raise ValueError(f"Market data for {ticker} contains non-positive or missing prices")

        if (df["high"] < df["low"]).any():
            bad_days = df.index[df["high"] < df["low"]].tolist()
            logger.critical(f"High below low for {ticker} on days {bad_days[:5]}")
            raise ValueError(f"Market data for {ticker} has high < low on {len(bad_days)} day(s)")

        return True

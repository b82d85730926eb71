"""
File-backed market-data archive.

Reads a directory of CSV files laid out as::

    <root>/<dataset>/<TICKER>.csv          OHLC + VWAP, one row per trading day
    <root>/preferences/<mood>.csv          ticker, probability, lambda
    <root>/single_index_parameters.csv     ticker, alpha, beta

Rows of each price table keep their on-disk order and are re-labelled
1..N so that trading day ``t`` is row label ``t``.
"""
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
from loguru import logger

from src.tickerpicker.core.types import Dataset, Mood, SingleIndexParameters
from src.tickerpicker.data.base import MarketDataProvider
from src.tickerpicker.errors import MissingDataError


class ArchiveDataProvider(MarketDataProvider):
    """Concrete MarketDataProvider backed by a local CSV archive."""

    PREFERENCES_DIR = "preferences"
    PARAMETERS_FILE = "single_index_parameters.csv"

    def __init__(self, root: Union[str, Path] = "data"):
        """
        Args:
            root: Archive root directory.

        Raises:
            MissingDataError: If *root* does not exist.
        """
        self.root = Path(root)
        if not self.root.is_dir():
            logger.critical(f"Archive root not found at: {self.root}")
            raise MissingDataError(f"Missing data archive: {self.root}")

    def load_market_data(
        self,
        dataset: Dataset,
        tickers: Optional[List[str]] = None,
    ) -> Dict[str, pd.DataFrame]:
        dataset = Dataset.parse(dataset)
        folder = self.root / dataset.value
        if not folder.is_dir():
            logger.critical(f"Dataset '{dataset.value}' not found at {folder}")
            raise MissingDataError(f"Missing dataset directory: {folder}")

        if tickers is None:
            paths = {p.stem: p for p in sorted(folder.glob("*.csv"))}
        else:
            paths = {ticker: folder / f"{ticker}.csv" for ticker in tickers}
            missing = [ticker for ticker, p in paths.items() if not p.exists()]
            if missing:
                logger.error(f"No '{dataset.value}' history for {missing}")
                raise MissingDataError(f"No '{dataset.value}' history for {missing}")

        logger.info(f"Loading {len(paths)} tickers from dataset '{dataset.value}'...")

        data: Dict[str, pd.DataFrame] = {}
        for ticker, path in paths.items():
            df = pd.read_csv(path)
            df.columns = [c.strip().lower() for c in df.columns]
            self.validate_schema(df, ticker)

            df = df.reset_index(drop=True)
            df.index = pd.RangeIndex(1, len(df) + 1, name="t")
            data[ticker] = df

        logger.success(f"Loaded market data for {len(data)} tickers.")
        return data

    def load_preferences(self, mood: Mood) -> pd.DataFrame:
        mood = Mood.parse(mood)
        path = self.root / self.PREFERENCES_DIR / f"{mood.value}.csv"
        if not path.exists():
            logger.error(f"Preference table not found: {path}")
            raise MissingDataError(f"No preference table for mood '{mood.value}' at {path}")

        df = pd.read_csv(path)
        missing = {"ticker", "probability", "lambda"} - set(df.columns)
        if missing:
            logger.critical(f"Preference table {path.name} missing columns: {sorted(missing)}")
            raise MissingDataError(f"Preference table {path} is missing columns {sorted(missing)}")

        logger.info(f"Loaded '{mood.value}' preferences for {len(df)} tickers")
        return df

    def load_single_index_parameters(self) -> Dict[str, SingleIndexParameters]:
        path = self.root / self.PARAMETERS_FILE
        if not path.exists():
            logger.error(f"Single-index parameter file not found: {path}")
            raise MissingDataError(f"Missing single-index parameter file: {path}")

        df = pd.read_csv(path)
        missing = {"ticker", "alpha", "beta"} - set(df.columns)
        if missing:
            raise MissingDataError(f"{path} is missing columns {sorted(missing)}")

        parameters = {
            row.ticker: SingleIndexParameters(alpha=row.alpha, beta=row.beta)
            for row in df.itertuples(index=False)
        }
        logger.info(f"Loaded single-index parameters for {len(parameters)} tickers")
        return parameters

"""
Portfolio definition loader.

Reads a JSON file that maps portfolio names to ordered ticker lists and
caches it in memory.  The file is loaded eagerly so configuration errors
surface before any data is read.  List order is the ticker order used by
the allocation engine.

Expected JSON structure::

    {
      "mag_seven": ["AAPL", "MSFT", "GOOGL", "AMZN", "NVDA", "META", "TSLA"],
      "default":   ["SPY"]
    }
"""
import json
from pathlib import Path
from typing import Dict, List, Union

from loguru import logger

from src.tickerpicker.errors import ConfigurationError


class PortfolioLoader:
    """Loads and caches portfolio -> ticker mappings from a JSON file."""

    def __init__(self, portfolio_file: Union[str, Path] = "portfolios/portfolios.json"):
        """
        Args:
            portfolio_file: Path to the portfolio definitions file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the file is not valid JSON.
        """
        self.file_path = Path(portfolio_file)
        self._cache: Dict[str, List[str]] = {}
        self._load_portfolios()

    def _load_portfolios(self) -> None:
        if not self.file_path.exists():
            logger.critical(f"Portfolio file not found at: {self.file_path}")
            raise FileNotFoundError(f"Missing portfolio definition file: {self.file_path}")

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                self._cache = json.load(f)
        except json.JSONDecodeError as e:
            logger.critical(f"Invalid JSON in portfolio file: {e}")
            raise ConfigurationError("Corrupted portfolio definition file") from e

        logger.info(f"Loaded portfolio definitions from {self.file_path.name}")

    def get_tickers(self, portfolio_name: str) -> List[str]:
        """Return the ticker list of *portfolio_name*.

        Raises:
            ConfigurationError: If the portfolio is unknown or lists a
                                ticker twice.
        """
        if portfolio_name not in self._cache:
            available = list(self._cache.keys())
            logger.error(f"Portfolio '{portfolio_name}' not found. Available: {available}")
            raise ConfigurationError(f"Unknown portfolio: {portfolio_name}")

        tickers = list(self._cache[portfolio_name])
        if len(set(tickers)) != len(tickers):
            duplicates = sorted({t for t in tickers if tickers.count(t) > 1})
            raise ConfigurationError(
                f"Portfolio '{portfolio_name}' lists tickers more than once: {duplicates}"
            )

        logger.info(f"Selected portfolio '{portfolio_name}': {len(tickers)} assets")
        return tickers

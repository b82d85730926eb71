"""
Multi-day allocation sweep.

Calls the allocation engine for a sequence of trading days against one
investor context and tabulates both a per-day summary and the share
vectors.  Days are processed strictly in order; parallelise across
independent contexts, not across the days of one sweep.
"""
from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from src.tickerpicker.core.engine import shares
from src.tickerpicker.core.models import InvestorContextModel
from src.tickerpicker.core.types import AllocationConfig


class AllocationSweep:
    """Runs ``shares`` for each day of a window."""

    def __init__(
        self,
        context: InvestorContextModel,
        config: Optional[AllocationConfig] = None,
        seed: Optional[int] = None,
    ):
        """
        Args:
            context: Investor context reused unchanged for every day.
            config: Engine options applied to every day; defaults when omitted.
            seed: Seed for the ``random`` fill-price convention.
        """
        self.context = context
        self.config = config if config is not None else AllocationConfig()
        self.rng = np.random.default_rng(seed)

    def run(self, days: Iterable[int]) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Allocate every day in *days*.

        Returns:
            A tuple of:
              - Summary DataFrame indexed by day with ``spent``, ``cash``
                and ``n_selected`` columns.
              - Shares DataFrame indexed by day, one column per ticker.

        Raises:
            ConfigurationError, MissingDataError: Propagated from the engine
            on the first failing day.
        """
        days = list(days)
        logger.info(f"Starting allocation sweep over {len(days)} days...")

        summary = []
        share_rows = []
        for i, t in enumerate(days):
            result = shares(t, self.context, rng=self.rng, **self.config.model_dump())

            summary.append(
                {
                    "t": t,
                    "spent": result.total_spent,
                    "cash": result.cash,
                    "n_selected": int(np.count_nonzero(result.shares)),
                }
            )
            share_rows.append(dict(zip(result.tickers, result.shares), t=t))

            if i % 20 == 0:
                logger.info(f"Day {t}: spent {result.total_spent:,.2f}, cash {result.cash:,.2f}")

        summary_df = pd.DataFrame(summary, columns=["t", "spent", "cash", "n_selected"]).set_index("t")
        shares_df = pd.DataFrame(share_rows, columns=["t", *self.context.tickers]).set_index("t")

        logger.success(f"Sweep complete: {len(summary_df)} days allocated.")
        return summary_df, shares_df

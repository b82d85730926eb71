"""
Daily allocation entry point.

Runs the ticker-picker allocation for one trading day or a window of days:
  1. Load the portfolio's tickers.
  2. Load market data, preference tables and single-index parameters from
     the archive.
  3. Build the investor context.
  4. Compute the share allocation (single day) or sweep the window.
  5. Archive all outputs to a timestamped folder.

Usage::

    uv run main.py --portfolio mag_seven --mood neutral --budget 10000 --day 5
    uv run main.py --portfolio mag_seven --mood optimistic --budget 10000 \
        --day 1 --end-day 60 --fill-price random --seed 7
"""
import argparse
import json
import os
import shutil
import sys
from datetime import datetime
from pathlib import Path

import numpy as np
from dotenv import load_dotenv
from loguru import logger

from src.tickerpicker.analysis.sweep import AllocationSweep
from src.tickerpicker.core.engine import shares
from src.tickerpicker.core.factory import build
from src.tickerpicker.core.models import InvestorContextModel
from src.tickerpicker.core.types import (
    AllocationConfig,
    Dataset,
    FillPriceConvention,
    Mood,
)
from src.tickerpicker.data.archive import ArchiveDataProvider
from src.tickerpicker.utils.logger import current_log_file, setup_logger
from src.tickerpicker.utils.portfolio_loader import PortfolioLoader

load_dotenv()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def create_outcome_dir(portfolio: str, mood: str) -> str:
    """Create and return a timestamped output directory under ``outcomes/``."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    target_dir = os.path.join("outcomes", f"{timestamp}_{portfolio}_{mood}")
    os.makedirs(target_dir, exist_ok=True)

    logger.info(f"Output directory created: {target_dir}")
    return target_dir


def save_json(data: dict, folder: str, filename: str) -> Path:
    """Write *data* as indented JSON to *folder*/*filename* and return the path."""
    path = Path(folder) / filename
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.success(f"Saved {path.name}")
    return path


def archive_current_log(target_dir: str) -> None:
    """Copy today's log file into *target_dir* for post-mortem analysis."""
    src_log = current_log_file()

    try:
        if src_log.exists():
            dst_log = os.path.join(target_dir, "execution.log")
            shutil.copy2(src_log, dst_log)
            logger.info(f"Archived execution log to {dst_log}")
        else:
            logger.warning("Log file not found for archiving.")
    except OSError as e:
        logger.warning(f"Failed to archive log: {e}")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ticker-Picker Allocation Engine")
    parser.add_argument("--portfolio", type=str, required=True, help="Portfolio ID (e.g. mag_seven)")
    parser.add_argument(
        "--mood", type=str, default=Mood.NEUTRAL.value,
        choices=[m.value for m in Mood],
        help="Investor risk attitude",
    )
    parser.add_argument("--budget", type=float, required=True, help="Total budget in USD")
    parser.add_argument("--day", type=int, required=True, help="Trading day (1-based)")
    parser.add_argument("--end-day", type=int, default=None, help="Sweep up to this day (inclusive)")
    parser.add_argument(
        "--dataset", type=str, default=Dataset.TESTING.value,
        choices=[d.value for d in Dataset],
    )
    parser.add_argument(
        "--fill-price", type=str,
        default=FillPriceConvention.VOLUME_WEIGHTED_AVERAGE_PRICE.value,
        choices=[c.value for c in FillPriceConvention],
    )
    parser.add_argument("--cutoff", type=float, default=0.5)
    parser.add_argument("--penalty", type=float, default=-100.0)
    parser.add_argument("--market-factor", type=float, default=0.0, help="Expected excess market return")
    parser.add_argument("--risk-free-rate", type=float, default=0.0)
    parser.add_argument("--preference-weight", type=float, default=1.0)
    parser.add_argument("--min-trade-size", type=float, default=0.0)
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random fill price")
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Terminal log level (the log file always records DEBUG)",
    )
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Main pipeline
# ---------------------------------------------------------------------------

def main(argv=None) -> None:
    args = parse_args(argv)
    setup_logger(level=args.log_level)
    output_dir = create_outcome_dir(args.portfolio, args.mood)

    try:
        config = AllocationConfig(
            fillpriceconvention=args.fill_price,
            cutoff=args.cutoff,
            penalty=args.penalty,
        )

        # ---- Load tickers & archive data ----
        tickers = PortfolioLoader().get_tickers(args.portfolio)
        logger.info(f"Target assets: {tickers}")

        provider = ArchiveDataProvider(os.getenv("TICKERPICKER_DATA_DIR", "data"))
        marketdata = provider.load_market_data(Dataset.parse(args.dataset), tickers=tickers)

        # ---- Build the investor context ----
        context = build(
            InvestorContextModel,
            {
                "budget": args.budget,
                "tickers": tickers,
                "marketdata": marketdata,
                "preferences": provider.load_preference_tables(),
                "market_factor": args.market_factor,
                "risk_free_rate": args.risk_free_rate,
                "single_index_parameters": provider.load_single_index_parameters(),
                "preference_weight": args.preference_weight,
                "mood": args.mood,
                "min_trade_size": args.min_trade_size,
            },
        )

        # ---- Allocate ----
        if args.end_day is None:
            rng = np.random.default_rng(args.seed)
            result = shares(args.day, context, rng=rng, **config.model_dump())
            logger.info(f"Allocation for day {args.day}:\n{result.to_frame().round(4)}")
            save_json(
                {"day": args.day, "mood": args.mood, "config": config.model_dump(mode="json"),
                 **result.model_dump()},
                output_dir,
                "allocation.json",
            )
        else:
            sweep = AllocationSweep(context, config=config, seed=args.seed)
            summary, share_table = sweep.run(range(args.day, args.end_day + 1))
            summary.to_csv(os.path.join(output_dir, "sweep_summary.csv"))
            share_table.to_csv(os.path.join(output_dir, "sweep_shares.csv"))
            logger.success("Saved sweep_summary.csv and sweep_shares.csv")

        logger.success("-" * 30)
        logger.success("ALLOCATION RUN COMPLETE")
        logger.success(f"Results archived to: {output_dir}")
        logger.success("-" * 30)

        archive_current_log(output_dir)

    except Exception as e:
        logger.exception(f"Pipeline failed: {e}")
        archive_current_log(output_dir)
        sys.exit(1)


if __name__ == "__main__":
    main()

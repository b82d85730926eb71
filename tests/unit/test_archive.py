import pandas as pd
import pytest

from src.tickerpicker.core.engine import shares
from src.tickerpicker.core.factory import build
from src.tickerpicker.core.models import InvestorContextModel
from src.tickerpicker.core.types import Dataset, Mood
from src.tickerpicker.data.archive import ArchiveDataProvider
from src.tickerpicker.errors import ConfigurationError, MissingDataError


@pytest.fixture
def archive_root(tmp_path, context_bundle):
    testing = tmp_path / "testing"
    testing.mkdir()
    for ticker, frame in context_bundle["marketdata"].items():
        frame.to_csv(testing / f"{ticker}.csv", index=False)

    preferences = tmp_path / "preferences"
    preferences.mkdir()
    for mood, frame in context_bundle["preferences"].items():
        frame.to_csv(preferences / f"{mood}.csv", index=False)

    pd.DataFrame(
        {
            "ticker": ["AAA", "BBB", "CCC"],
            "alpha": [0.2, 0.1, 0.3],
            "beta": [1.0, 1.0, 1.0],
        }
    ).to_csv(tmp_path / "single_index_parameters.csv", index=False)
    return tmp_path


def test_market_data_is_indexed_by_trading_day(archive_root, context_bundle):
    data = ArchiveDataProvider(archive_root).load_market_data(Dataset.TESTING)

    assert sorted(data) == ["AAA", "BBB", "CCC"]
    assert list(data["AAA"].index) == [1, 2, 3, 4, 5]
    assert data["BBB"].loc[3, "close"] == context_bundle["marketdata"]["BBB"]["close"].iloc[2]


def test_market_data_subset(archive_root):
    data = ArchiveDataProvider(archive_root).load_market_data("testing", tickers=["CCC", "AAA"])

    assert list(data) == ["CCC", "AAA"]


def test_requested_ticker_without_history_is_missing_data(archive_root):
    provider = ArchiveDataProvider(archive_root)

    with pytest.raises(MissingDataError, match="ZZZ"):
        provider.load_market_data(Dataset.TESTING, tickers=["AAA", "ZZZ"])


def test_absent_dataset_directory_is_missing_data(archive_root):
    with pytest.raises(MissingDataError):
        ArchiveDataProvider(archive_root).load_market_data(Dataset.TRAINING)


def test_unknown_dataset_is_configuration_error(archive_root):
    with pytest.raises(ConfigurationError, match="validation"):
        ArchiveDataProvider(archive_root).load_market_data("validation")


def test_missing_archive_root_is_missing_data(tmp_path):
    with pytest.raises(MissingDataError):
        ArchiveDataProvider(tmp_path / "nowhere")


def test_price_table_without_vwap_violates_schema(archive_root, context_bundle):
    frame = context_bundle["marketdata"]["AAA"].drop(columns="volume_weighted_average_price")
    frame.to_csv(archive_root / "testing" / "AAA.csv", index=False)

    with pytest.raises(MissingDataError, match="volume_weighted_average_price"):
        ArchiveDataProvider(archive_root).load_market_data(Dataset.TESTING)


def test_non_positive_price_is_rejected(archive_root, context_bundle):
    frame = context_bundle["marketdata"]["AAA"].copy()
    frame.loc[2, "low"] = -1.0
    frame.to_csv(archive_root / "testing" / "AAA.csv", index=False)

    with pytest.raises(ValueError, match="AAA"):
        ArchiveDataProvider(archive_root).load_market_data(Dataset.TESTING)


def test_high_below_low_is_rejected(archive_root, context_bundle):
    frame = context_bundle["marketdata"]["BBB"].copy()
    frame.loc[4, "high"] = 1.0
    frame.to_csv(archive_root / "testing" / "BBB.csv", index=False)

    with pytest.raises(ValueError, match="high < low"):
        ArchiveDataProvider(archive_root).load_market_data(Dataset.TESTING)


def test_preference_tables_for_every_mood(archive_root):
    tables = ArchiveDataProvider(archive_root).load_preference_tables()

    assert set(tables) == {m.value for m in Mood}
    neutral = tables["neutral"].set_index("ticker")["probability"]
    assert neutral["AAA"] == pytest.approx(0.9)


def test_missing_preference_file_is_missing_data(archive_root):
    (archive_root / "preferences" / "pessimistic.csv").unlink()

    with pytest.raises(MissingDataError, match="pessimistic"):
        ArchiveDataProvider(archive_root).load_preferences(Mood.PESSIMISTIC)


def test_single_index_parameters(archive_root):
    parameters = ArchiveDataProvider(archive_root).load_single_index_parameters()

    assert parameters["CCC"].alpha == pytest.approx(0.3)
    assert parameters["CCC"].beta == pytest.approx(1.0)


def test_archive_feeds_allocation(archive_root, context_bundle):
    provider = ArchiveDataProvider(archive_root)
    context = build(
        InvestorContextModel,
        {
            **context_bundle,
            "marketdata": provider.load_market_data(Dataset.TESTING, tickers=context_bundle["tickers"]),
            "preferences": provider.load_preference_tables(),
            "single_index_parameters": provider.load_single_index_parameters(),
        },
    )

    from_archive = shares(2, context)
    in_memory = shares(2, build(InvestorContextModel, context_bundle))

    assert from_archive.shares == pytest.approx(in_memory.shares)
    assert from_archive.cash == pytest.approx(in_memory.cash)

import pytest
from pydantic import ValidationError

from src.tickerpicker.analysis.sweep import AllocationSweep
from src.tickerpicker.core.types import AllocationConfig
from src.tickerpicker.errors import MissingDataError


def test_sweep_tabulates_each_day(context):
    summary, share_table = AllocationSweep(context).run(range(1, 6))

    assert list(summary.index) == [1, 2, 3, 4, 5]
    assert list(summary.columns) == ["spent", "cash", "n_selected"]
    assert list(share_table.columns) == ["AAA", "BBB", "CCC"]
    assert (summary["spent"] + summary["cash"]).tolist() == pytest.approx([1000.0] * 5)
    assert (summary["n_selected"] == 2).all()
    assert (share_table["CCC"] == 0.0).all()


def test_sweep_prices_drift_changes_share_counts(context):
    _, share_table = AllocationSweep(context).run([1, 5])

    # Prices rise every day, so the same budget buys fewer shares.
    assert share_table.loc[5, "AAA"] < share_table.loc[1, "AAA"]


def test_seeded_random_sweep_is_reproducible(context):
    config = AllocationConfig(fillpriceconvention="random")

    first, _ = AllocationSweep(context, config=config, seed=3).run(range(1, 4))
    second, _ = AllocationSweep(context, config=config, seed=3).run(range(1, 4))

    assert first.equals(second)


def test_sweep_stops_on_out_of_range_day(context):
    with pytest.raises(MissingDataError):
        AllocationSweep(context).run(range(4, 8))


def test_default_config_is_not_shared_between_sweeps(context):
    first = AllocationSweep(context)
    second = AllocationSweep(context)

    assert first.config is not second.config
    with pytest.raises(ValidationError):
        first.config.cutoff = 0.95

    summary, _ = AllocationSweep(context).run([1])
    assert summary.loc[1, "n_selected"] == 2

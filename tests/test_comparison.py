import matplotlib.pyplot as plt
import numpy as np
import pytest
from matplotlib.colors import to_rgba

import pheno_tools.comparison.comparison as comparison_module
from pheno_tools.comparison import (
    FALLING_COLOUR,
    RISING_COLOUR,
    UNCHANGED_COLOUR,
    ComparisonData,
    ModelRuns,
    arrow_colours,
    arrow_plot,
    change_direction,
    comparison_plot,
    family_colour,
    model_comparison,
    run_rmse,
    select_models,
)
from pheno_tools.config.space import bundled_parameter_ranges
from pheno_tools.model import null_prediction
from pheno_tools.utils.errors import ConfigurationError, UnknownModelError
from pheno_tools.utils.metric import null_rmse


@pytest.fixture
def three_records():
    return ComparisonData(
        measured=[100.0, 110.0, 120.0],
        modelled={
            "TT": ModelRuns([[100.0], [110.0], [120.0]], [[1, 5, 300]]),
            "PTT": ModelRuns([[105.0], [110.0], [115.0]], [[1, 4, 150]]),
            "M1": ModelRuns([[98.0, 102.0], [111.0, 111.0], [119.0, 121.0]], [[1, 5, 1, 300]] * 2),
        },
    )


def test_arrow_colouring(three_records):
    a = three_records.modelled["TT"].mean_prediction
    b = three_records.modelled["PTT"].mean_prediction

    direction = change_direction(a, b)
    assert direction.tolist() == [1, 0, -1]

    colours = arrow_colours(direction)
    assert colours[0] == to_rgba(RISING_COLOUR)
    assert colours[1] == UNCHANGED_COLOUR
    assert colours[2] == to_rgba(FALLING_COLOUR)


def test_default_selection_equals_first_two(three_records):
    assert select_models(three_records) == select_models(three_records, ["TT", "PTT"])

    _, (ax1, ax2) = plt.subplots(1, 2)
    arrow_plot(three_records, ax=ax1)
    arrow_plot(three_records, models=["TT", "PTT"], ax=ax2)
    assert ax1.get_title() == ax2.get_title()
    assert ax1.get_ylim() == ax2.get_ylim()
    plt.close("all")


def test_selection_errors(three_records):
    single = ComparisonData([100.0], {"TT": ModelRuns([[100.0]], [[1, 5, 300]])})
    with pytest.raises(ConfigurationError):
        select_models(single)
    with pytest.raises(ConfigurationError):
        arrow_plot(single)
    with pytest.raises(ConfigurationError):
        select_models(three_records, ["TT", "PTT", "M1"])
    with pytest.raises(UnknownModelError):
        select_models(three_records, ["TT", "AT"])


def test_arrow_plot_draws_changed_records_only(three_records):
    fig, ax = plt.subplots()
    arrow_plot(three_records, models=["TT", "PTT"], ax=ax)

    # one arrow per changed record, one grey point for the unchanged one
    assert len(ax.texts) == 2
    assert ax.collections[0].get_offsets().shape == (1, 2)
    assert ax.get_ylim() == (90.0, 130.0)
    plt.close(fig)


def test_mean_prediction_across_runs(three_records):
    assert three_records.modelled["M1"].mean_prediction.tolist() == [100.0, 111.0, 120.0]
    frame = three_records.mean_predictions()
    assert list(frame.columns) == ["TT", "PTT", "M1"]


def test_mismatched_records_raise():
    with pytest.raises(ValueError):
        ComparisonData([100.0, 110.0], {"TT": ModelRuns([[100.0]], [[1, 5, 300]])})
    with pytest.raises(ValueError):
        ModelRuns([[100.0, 101.0]], [[1, 5, 300]])


def test_run_rmse(three_records):
    stats = run_rmse(three_records)
    assert stats["TT"].dropna().tolist() == [0.0]
    assert stats["PTT"].iloc[0] == pytest.approx(np.sqrt(50 / 3))
    assert stats["M1"].notna().sum() == 2


def test_comparison_plot(three_records):
    fig, ax = plt.subplots()
    comparison_plot(three_records, ax=ax)

    baseline = null_rmse(three_records.measured)
    assert ax.get_ylim() == pytest.approx((0, 1.25 * baseline))
    assert [t.get_text() for t in ax.get_xticklabels()] == ["TT", "PTT", "M1"]
    assert ax.get_ylabel() == "RMSE (days)"
    plt.close(fig)


def test_comparison_plot_options(three_records):
    fig, ax = plt.subplots()
    comparison_plot(three_records, ylab="cost", names=False, ylim=(0, 50), ax=ax)
    assert ax.get_ylim() == (0, 50)
    assert all(t.get_text() == "" for t in ax.get_xticklabels())
    plt.close(fig)


def test_family_colours():
    assert family_colour("NULL") == "black"
    assert family_colour("M1s") == RISING_COLOUR
    assert family_colour("AT") == FALLING_COLOUR


def test_model_comparison(tt_data, ranges, fast_control):
    kwargs = dict(
        models=["TT", "PTT"],
        method="genetic",
        control=fast_control["genetic"],
        par_ranges=ranges,
        n_runs=2,
        seed=10,
    )
    parallel = model_comparison(tt_data, workers=2, **kwargs)
    sequential = model_comparison(tt_data, workers=1, **kwargs)

    assert parallel.models == ["TT", "PTT"]
    assert parallel.modelled["TT"].predicted_values.shape == (tt_data.n_records, 2)
    assert parallel.modelled["PTT"].parameters.shape == (2, 3)
    assert np.array_equal(parallel.measured, tt_data.transition_dates, equal_nan=True)
    for name in ("TT", "PTT"):
        assert np.array_equal(parallel.modelled[name].parameters, sequential.modelled[name].parameters)


def test_model_comparison_checks_ranges_first(tt_data, ranges, monkeypatch):
    calls = []
    monkeypatch.setattr(comparison_module, "model_calibration", lambda **k: calls.append(k))

    with pytest.raises(UnknownModelError):
        model_comparison(tt_data, models=["TT", "M1"], par_ranges=ranges)
    assert calls == []


def test_model_comparison_argument_errors(tt_data, ranges):
    with pytest.raises(ConfigurationError):
        model_comparison(tt_data, models=[], par_ranges=ranges)
    with pytest.raises(ConfigurationError):
        model_comparison(tt_data, models=["TT", "TT"], par_ranges=ranges)
    with pytest.raises(ConfigurationError):
        model_comparison(tt_data, models=["TT"], par_ranges=ranges, n_runs=0)


def test_model_comparison_with_null_model(tt_data, fast_control):
    comparison = model_comparison(
        tt_data,
        models=["NULL", "TT"],
        method="genetic",
        control=fast_control["genetic"],
        par_ranges=bundled_parameter_ranges(),
        n_runs=2,
        seed=3,
    )
    null = comparison.modelled["NULL"]
    assert null.parameters.shape == (2, 0)
    assert np.all(null.predicted_values == null_prediction(tt_data.transition_dates))

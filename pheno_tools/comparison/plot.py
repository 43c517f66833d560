"""Plots for comparing phenology models.

This module provides two views of a ComparisonData object:

- an arrow plot showing, per record, how the mean prediction moves when
  switching from one model to another;
- a boxplot of the per-run RMSE of every model against the null model.

Typical usage example:

    import matplotlib.pyplot as plt
    from pheno_tools.comparison import arrow_plot, comparison_plot

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 4))
    arrow_plot(comparison, models=["TT", "PTT"], ax=ax1)
    comparison_plot(comparison, ax=ax2)
    fig.savefig("comparison.png")
"""

import logging

import numpy as np
import pandas as pd

# Plotting
import matplotlib.pyplot as plt
from matplotlib.colors import to_rgba

from pheno_tools.utils.errors import ConfigurationError, UnknownModelError
from pheno_tools.utils.metric import rmse, null_rmse
from .comparison import ComparisonData


RISING_COLOUR = "#ef8a62"
FALLING_COLOUR = "#67a9cf"
UNCHANGED_COLOUR = (0.0, 0.0, 0.0, 0.0)

# Models without a forcing threshold are drawn in black, the thermal time
# family in orange, everything else in blue.
_REFERENCE_MODELS = ("NULL", "LIN")
_THERMAL_TIME_MODELS = ("TT", "TTs", "PTT", "PTTs", "M1", "M1s")


def family_colour(model: str) -> str:
    """Boxplot colour of a model identifier."""
    if model in _REFERENCE_MODELS:
        return "black"
    if model in _THERMAL_TIME_MODELS:
        return RISING_COLOUR
    return FALLING_COLOUR


def select_models(data: ComparisonData, models=None) -> list[str]:
    """
    Choose the two models to compare.

    Args:
        data (ComparisonData): Comparison dataset.
        models (Sequence[str], optional): Two model identifiers. Defaults
            to the first two models of `data`.

    Returns:
        list[str]: The selected pair, in order.

    Raises:
        ConfigurationError: If `data` holds fewer than two models or
            `models` does not name exactly two.
        UnknownModelError: If a named model is not in `data`.
    """
    available = data.models
    if len(available) < 2:
        raise ConfigurationError(
            f"Only {len(available)} model found in the comparison data, need at least two"
        )

    if models is None:
        logging.info("No models specified for comparison, first two are selected: %s", available[:2])
        return available[:2]

    models = list(models)
    if len(models) != 2:
        raise ConfigurationError(
            f"Exactly two models can be compared at a time, got {len(models)}"
        )
    missing = [m for m in models if m not in data.modelled]
    if missing:
        raise UnknownModelError(f"Models {missing} are not in the comparison data")
    return models


def change_direction(a, b) -> np.ndarray:
    """
    Direction of change from prediction `a` to prediction `b` per record.

    Returns:
        np.ndarray: +1 where `b > a`, -1 where `b < a`, 0 where unchanged.
    """
    return np.sign(np.asarray(b, dtype=float) - np.asarray(a, dtype=float)).astype(int)


def arrow_colours(direction) -> list[tuple[float, float, float, float]]:
    """Map change directions to RGBA colours (unchanged records are transparent)."""
    rising, falling = to_rgba(RISING_COLOUR), to_rgba(FALLING_COLOUR)
    return [
        rising if d > 0 else falling if d < 0 else UNCHANGED_COLOUR
        for d in np.asarray(direction)
    ]


def arrow_plot(
    data: ComparisonData,
    models=None,
    lwd: float = 1.3,
    length: float = 0.03,
    ax=None,
):
    """
    Arrow plot of the change in mean prediction between two models.

    For each record an arrow is drawn at the measured date, from the mean
    prediction of the first model to that of the second. Rising arrows are
    orange, falling arrows blue. Records whose prediction does not change
    are drawn as small grey points instead.

    Args:
        data (ComparisonData): Comparison dataset.
        models (Sequence[str], optional): Pair of models, see `select_models`.
        lwd (float): Arrow line width. Defaults to 1.3.
        length (float): Arrow head length in inches. Defaults to 0.03.
        ax (matplotlib.axes.Axes, optional): Axes to draw on.

    Returns:
        matplotlib.axes.Axes: The axes drawn on.
    """
    first, second = select_models(data, models)
    a = data.modelled[first].mean_prediction
    b = data.modelled[second].mean_prediction
    measured = data.measured

    direction = change_direction(a, b)
    colours = arrow_colours(direction)

    if ax is None:
        _, ax = plt.subplots()

    both = np.concatenate([a, b])
    ax.set_xlim(np.nanmin(measured) - 5, np.nanmax(measured) + 5)
    ax.set_ylim(both.min() - 10, both.max() + 10)
    ax.set_title(f"Directional change from model: {first} to {second}")
    ax.set_xlabel("Measured values (DOY)")
    ax.set_ylabel("Estimated values (DOY)")
    ax.tick_params(direction="in")
    ax.axline((0, 0), slope=1, color="black", linestyle="--", linewidth=1)

    unchanged = (direction == 0) & ~np.isnan(measured)
    ax.scatter(measured[unchanged], a[unchanged], color=(0, 0, 0, 0.5), s=4)

    # head length in points
    mutation_scale = length * 72 / 0.4
    for x, y0, y1, d, c in zip(measured, a, b, direction, colours):
        if d == 0 or np.isnan(x):
            continue
        ax.annotate(
            "",
            xy=(x, y1),
            xytext=(x, y0),
            arrowprops=dict(arrowstyle="->", color=c, lw=lwd, mutation_scale=mutation_scale,
                            shrinkA=0, shrinkB=0),
        )
    return ax


def run_rmse(data: ComparisonData) -> pd.DataFrame:
    """
    RMSE of every calibration run.

    Returns:
        pd.DataFrame: One column per model, one row per run. Models with
            fewer runs are padded with NaN.
    """
    return pd.DataFrame({
        name: pd.Series([
            rmse(data.measured, runs.predicted_values[:, i]) for i in range(runs.n_runs)
        ])
        for name, runs in data.modelled.items()
    })


def comparison_plot(
    data: ComparisonData,
    ylab: str = "RMSE (days)",
    names: bool = True,
    ylim=None,
    ax=None,
):
    """
    Boxplot of per-run RMSE per model with the null model as reference.

    Boxes are coloured by model family and a dashed horizontal line marks
    the RMSE of the null model.

    Args:
        data (ComparisonData): Comparison dataset.
        ylab (str): Y axis label. Defaults to "RMSE (days)".
        names (bool): Label boxes with model names. Defaults to True.
        ylim (tuple[float, float], optional): Y limits. Defaults to
            (0, 1.25 * null RMSE).
        ax (matplotlib.axes.Axes, optional): Axes to draw on.

    Returns:
        matplotlib.axes.Axes: The axes drawn on.
    """
    stats = run_rmse(data)
    baseline = null_rmse(data.measured)
    colours = [family_colour(m) for m in stats.columns]

    if ax is None:
        _, ax = plt.subplots()

    positions = np.arange(1, stats.shape[1] + 1)
    bp = ax.boxplot(
        [stats[m].dropna().to_numpy() for m in stats.columns],
        positions=positions,
        showfliers=False,
    )
    for i, c in enumerate(colours):
        bp["boxes"][i].set_color(c)
        bp["medians"][i].set_color(c)
        for artist in bp["whiskers"][2 * i:2 * i + 2] + bp["caps"][2 * i:2 * i + 2]:
            artist.set_color(c)

    ax.set_xticks(positions, list(stats.columns) if names else [""] * len(positions), rotation=90)
    ax.set_ylabel(ylab)
    ax.set_ylim(ylim if ylim is not None else (0, baseline * 1.25))
    ax.tick_params(direction="in")
    ax.axhline(baseline, color="black", linestyle="--")
    return ax


__all__ = [
    "RISING_COLOUR",
    "FALLING_COLOUR",
    "UNCHANGED_COLOUR",
    "family_colour",
    "select_models",
    "change_direction",
    "arrow_colours",
    "arrow_plot",
    "run_rmse",
    "comparison_plot",
]

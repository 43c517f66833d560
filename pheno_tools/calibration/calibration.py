"""Single model calibration.

This module ties the pieces of a calibration together: it normalizes the
dataset, looks up the model's parameter bounds, runs the optimizer and
scores the fitted model against the measured transition dates and the
null model.

Typical usage example:

    from pheno_tools.calibration import model_calibration
    from pheno_tools.config.space import bundled_parameter_ranges

    result = model_calibration(
        "TT", data,
        method="anneal",
        control={"max_call": 5000},
        par_ranges=bundled_parameter_ranges(),
        seed=1,
    )
    print(result.parameters, result.rmse, result.aic.aicc)
"""

from os import PathLike
import logging

import numpy as np
from scipy.stats import linregress

# Plotting
import matplotlib.pyplot as plt

from pheno_tools.data import PhenologyData, SiteData, flat_format
from pheno_tools.model import estimate_phenology
from pheno_tools.config.space import ParameterRanges
from pheno_tools.optimization import optimize_parameters, ControlConfig
from pheno_tools.utils.errors import ConfigurationError
from pheno_tools.utils.metric import rmse, null_rmse, aicc, valid_pairs
from pheno_tools.utils.results import CalibrationResult


def load_parameter_ranges(par_ranges) -> ParameterRanges:
    """Accept a ParameterRanges table, a `{model: bounds}` mapping or a CSV path."""
    if par_ranges is None:
        raise ConfigurationError(
            "par_ranges is required, pass bundled_parameter_ranges() for the default table"
        )
    if isinstance(par_ranges, ParameterRanges):
        return par_ranges
    if isinstance(par_ranges, dict):
        return ParameterRanges.from_dict(par_ranges)
    return ParameterRanges.from_csv(par_ranges)


def _log_regression(model: str, measured: np.ndarray, predicted: np.ndarray):
    obs, pred = valid_pairs(measured, predicted)
    if obs.size < 3 or np.ptp(pred) == 0:
        logging.info("Regression of measured on predicted dates undefined for '%s'", model)
        return
    fit = linregress(pred, obs)
    logging.info(
        "Regression of measured on predicted dates for '%s': "
        "slope %.3f (se %.3f), intercept %.2f (se %.2f), r^2 %.3f, p %.3g, n %d",
        model, fit.slope, fit.stderr, fit.intercept, fit.intercept_stderr,
        fit.rvalue ** 2, fit.pvalue, obs.size,
    )


def plot_calibration(result: CalibrationResult, measured: np.ndarray, ax=None):
    """
    Scatter of measured against predicted dates with a 1:1 line.

    The RMSE, null model RMSE and AICc are annotated on the axes.

    Args:
        result (CalibrationResult): Calibration to plot.
        measured (np.ndarray): Measured dates used for the calibration.
        ax (matplotlib.axes.Axes, optional): Axes to draw on. A new figure
            is created when None.

    Returns:
        matplotlib.axes.Axes: The axes drawn on.
    """
    if ax is None:
        _, ax = plt.subplots()

    ax.scatter(measured, result.predicted, color="black", s=12)
    ax.axline((0, 0), slope=1, color="black", linewidth=1)
    ax.set_title(f"{result.model}, method: {result.method}")
    ax.set_xlabel("onset DOY Measured")
    ax.set_ylabel("onset DOY Modelled")
    ax.tick_params(direction="in")

    ax.text(0.02, 0.98, f"RMSE: {result.rmse:.0f}", transform=ax.transAxes, va="top", ha="left")
    ax.text(0.5, 0.98, f"RMSE NULL: {result.rmse_null:.0f}", transform=ax.transAxes, va="top", ha="center")
    ax.text(0.98, 0.02, f"AICc: {result.aic.aicc:.0f}", transform=ax.transAxes, va="bottom", ha="right")
    return ax


def model_calibration(
    model: str = "TT",
    data: PhenologyData | SiteData | list[SiteData] = None,
    method: str = "anneal",
    control: dict | ControlConfig | None = None,
    par_ranges: ParameterRanges | str | PathLike | dict = None,
    plot: bool = False,
    seed: int | None = None,
    ax=None,
) -> CalibrationResult:
    """
    Calibrate a phenology model and score the fit.

    Steps:
        1. Normalize `data` with `flat_format`.
        2. Look up the model's bounds in `par_ranges`.
        3. Optimize the parameters within the bounds.
        4. Predict transition dates at the fitted parameters.
        5. Compute RMSE, null model RMSE and AICc, and log a regression of
           measured on predicted dates.

    Args:
        model (str): Registered model identifier. Defaults to "TT".
        data: Flat dataset or nested per-site records.
        method (str): Optimizer method, "anneal", "genetic" or "bayesian".
            Defaults to "anneal".
        control (dict | ControlConfig | None): Backend settings.
        par_ranges: Parameter range table, a path to its CSV file, or a
            `{model: [(name, lower, upper), ...]}` mapping. Use
            `bundled_parameter_ranges()` for the table shipped with the
            package.
        plot (bool): Draw a measured vs predicted scatter. Defaults to False.
        seed (int | None): Seed for reproducible optimization.
        ax (matplotlib.axes.Axes, optional): Axes for the plot.

    Returns:
        CalibrationResult: Immutable calibration outcome.

    Raises:
        UnknownModelError: If the model is missing from the range table;
            raised before the optimizer is called.
        ConfigurationError: For invalid ranges, method or control.
        EvaluationError: If the model fails during optimization.

    Example:
        ```python
        result = model_calibration("M1", data, par_ranges="ranges.csv", plot=True)
        result.to_json("m1.json")
        ```
    """
    if data is None:
        raise ConfigurationError("data is required")
    data = flat_format(data)

    ranges = load_parameter_ranges(par_ranges)
    lower, upper = ranges.bounds(model)

    logging.info("Calibrating model %s with %s on %d records", model, method, data.n_records)
    optimization = optimize_parameters(
        model, data, lower, upper, method=method, control=control, seed=seed
    )

    predicted = estimate_phenology(data, model, optimization.par)
    measured = data.transition_dates

    result = CalibrationResult(
        model=model,
        method=optimization.method,
        param_names=ranges.param_names(model),
        par=optimization.par,
        predicted=predicted,
        rmse=rmse(measured, predicted),
        rmse_null=null_rmse(measured),
        aic=aicc(measured, predicted, k=optimization.par.size),
        optimization=optimization,
    )

    logging.info(
        "Model %s: RMSE %.2f, null RMSE %.2f, AICc %.2f",
        model, result.rmse, result.rmse_null, result.aic.aicc,
    )
    _log_regression(model, measured, predicted)

    if plot:
        plot_calibration(result, measured, ax=ax)

    return result


calibrate = model_calibration
"""Alias of `model_calibration`."""


__all__ = ["model_calibration", "calibrate", "plot_calibration", "load_parameter_ranges"]

"""Model comparison across repeated calibrations.

This module runs several calibrations per model, each with its own seed,
and collects the predictions and parameters into a ComparisonData object
used by the comparison plots.

Typical usage example:

    from pheno_tools.comparison import model_comparison

    comparison = model_comparison(
        data,
        models=["TT", "PTT", "M1"],
        par_ranges=bundled_parameter_ranges(),
        n_runs=5,
        seed=1,
        workers=4,
    )
    print(comparison.mean_predictions())
"""

from dataclasses import dataclass
from typing import Sequence
import logging

import numpy as np
import pandas as pd

# Parallel execution
from tqdm import tqdm
from concurrent.futures import ThreadPoolExecutor, as_completed

from pheno_tools.data import flat_format
from pheno_tools.config.space import ParameterRanges
from pheno_tools.calibration.calibration import model_calibration, load_parameter_ranges
from pheno_tools.utils.errors import ConfigurationError
from pheno_tools.utils.results import CalibrationResult


@dataclass(frozen=True)
class ModelRuns:
    """
    Predictions and parameters of one model across calibration runs.

    Attributes:
        predicted_values (np.ndarray): Predicted dates, shape (n_records, n_runs).
        parameters (np.ndarray): Fitted parameters, shape (n_runs, k).
    """
    predicted_values: np.ndarray
    parameters: np.ndarray

    def __post_init__(self):
        predicted = np.array(self.predicted_values, dtype=float)
        if predicted.ndim == 1:
            predicted = predicted[:, None]
        parameters = np.array(self.parameters, dtype=float)
        if parameters.ndim == 1:
            parameters = parameters[None, :]
        if predicted.ndim != 2 or parameters.ndim != 2:
            raise ValueError("predicted_values and parameters must be two dimensional")
        if parameters.shape[0] != predicted.shape[1]:
            raise ValueError(
                f"{predicted.shape[1]} runs of predictions but {parameters.shape[0]} parameter sets"
            )
        predicted.flags.writeable = False
        parameters.flags.writeable = False
        object.__setattr__(self, "predicted_values", predicted)
        object.__setattr__(self, "parameters", parameters)

    @property
    def n_runs(self) -> int:
        return self.predicted_values.shape[1]

    @property
    def mean_prediction(self) -> np.ndarray:
        """Mean prediction per record across runs."""
        return self.predicted_values.mean(axis=1)


class ComparisonData:
    """
    Predictions of several models for one shared set of measured dates.

    Models keep their insertion order; the first two are the default pair
    of the arrow plot.

    Attributes:
        measured (np.ndarray): Measured transition dates, shape (n_records,).
        modelled (dict[str, ModelRuns]): Runs per model identifier.

    Example:
        ```python
        data = ComparisonData(
            measured=[120, 131, 127],
            modelled={
                "TT": ModelRuns([[118], [133], [127]], [[1, 5, 150]]),
                "PTT": ModelRuns([[121], [133], [125]], [[1, 4, 90]]),
            },
        )
        ```
    """

    def __init__(self, measured, modelled: dict[str, ModelRuns]):
        measured = np.array(measured, dtype=float)
        if measured.ndim != 1:
            raise ValueError("measured must be one dimensional")
        measured.flags.writeable = False

        modelled = {
            name: runs if isinstance(runs, ModelRuns) else ModelRuns(**runs)
            for name, runs in modelled.items()
        }
        for name, runs in modelled.items():
            if runs.predicted_values.shape[0] != measured.size:
                raise ValueError(
                    f"Model '{name}' has {runs.predicted_values.shape[0]} predicted records, "
                    f"expected {measured.size}"
                )

        self.measured = measured
        self.modelled = modelled

    @classmethod
    def from_results(cls, measured, results: dict[str, Sequence[CalibrationResult]]) -> "ComparisonData":
        """
        Build a comparison dataset from calibration results.

        Args:
            measured: Measured dates the calibrations were run against.
            results (dict[str, Sequence[CalibrationResult]]): Calibration
                results per model, one per run.

        Returns:
            ComparisonData: Dataset with one prediction column per run.
        """
        modelled = {}
        for name, runs in results.items():
            runs = list(runs)
            if not runs:
                raise ConfigurationError(f"No calibration runs for model '{name}'")
            modelled[name] = ModelRuns(
                predicted_values=np.column_stack([r.predicted for r in runs]),
                parameters=np.vstack([r.par for r in runs]),
            )
        return cls(measured, modelled)

    @property
    def models(self) -> list[str]:
        return list(self.modelled)

    def mean_predictions(self) -> pd.DataFrame:
        """Mean prediction per record (rows) and model (columns)."""
        return pd.DataFrame({name: runs.mean_prediction for name, runs in self.modelled.items()})

    def __len__(self):
        return len(self.modelled)

    def __repr__(self):
        return f"ComparisonData(n_records={self.measured.size}, models={self.models})"


def model_comparison(
    data,
    models: Sequence[str] = ("TT", "PTT", "M1", "AT"),
    method: str = "anneal",
    control: dict | None = None,
    par_ranges: ParameterRanges | str = None,
    n_runs: int = 3,
    seed: int = 0,
    workers: int = 1,
) -> ComparisonData:
    """
    Calibrate several models repeatedly and collect their predictions.

    Run `i` of every model uses the seed `seed + i`, so results are
    reproducible and independent of the number of workers.

    Args:
        data: Flat dataset or nested per-site records.
        models (Sequence[str]): Model identifiers, in plotting order.
        method (str): Optimizer method. Defaults to "anneal".
        control (dict | None): Backend settings shared by all runs.
        par_ranges: Parameter range table or path to its CSV file.
        n_runs (int): Calibrations per model. Defaults to 3.
        seed (int): Seed of the first run. Defaults to 0.
        workers (int): Threads used to run calibrations. Defaults to 1.

    Returns:
        ComparisonData: Predictions and parameters of every run.

    Raises:
        ConfigurationError: If no models are given or `n_runs` < 1, or any
            model lacks parameter ranges. Raised before any calibration.
        PhenoToolsError: Any failure of an individual run is re-raised.
    """
    models = list(models)
    if not models:
        raise ConfigurationError("No models given for comparison")
    if len(set(models)) != len(models):
        raise ConfigurationError(f"Duplicate models in comparison: {models}")
    if n_runs < 1:
        raise ConfigurationError(f"n_runs must be at least 1, got {n_runs}")

    data = flat_format(data)
    ranges = load_parameter_ranges(par_ranges)
    for name in models:
        ranges.get_bounds(name)

    tasks = [(name, run) for name in models for run in range(n_runs)]
    res: dict[str, list] = {name: [None] * n_runs for name in models}

    logging.info(
        "Comparing %d models with %d runs each (%s, %d workers)",
        len(models), n_runs, method, workers,
    )

    pbar = tqdm(total=len(tasks))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(
                model_calibration,
                model=name,
                data=data,
                method=method,
                control=control,
                par_ranges=ranges,
                seed=seed + run,
            ): (name, run)
            for name, run in tasks
        }

        try:
            for future in as_completed(futures):
                pbar.update(1)
                name, run = futures[future]
                res[name][run] = future.result()
        except Exception:
            for f in futures:
                f.cancel()
            raise
        finally:
            pbar.close()

    return ComparisonData.from_results(data.transition_dates, res)


__all__ = ["ModelRuns", "ComparisonData", "model_comparison"]

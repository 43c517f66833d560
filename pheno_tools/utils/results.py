"""
# Results Management

This module provides the data structures returned by the optimizer adapter
and the calibration orchestrator, and their serialization.

## Classes

- `AICcResult`: Corrected Akaike Information Criterion and its components
- `PointEstimate`: Optimizer result holding a best parameter vector only
- `PosteriorEstimate`: Optimizer result with a posterior sample set
- `CalibrationResult`: Fitted parameters and goodness-of-fit statistics

## Type Aliases

- `OptimizationResult`: `PointEstimate | PosteriorEstimate`

## Example Usage

```python
from pheno_tools.calibration import model_calibration
from pheno_tools.utils.results import PosteriorEstimate

result = model_calibration("TT", data, method="bayesian", par_ranges=ranges)

match result.optimization:
    case PosteriorEstimate(samples=samples):
        print(f"{len(samples)} posterior samples")
    case _:
        print("point estimate only")

result.to_json("tt_fit.json")
```
"""

from dataclasses import dataclass, field, asdict
from typing import Any
import numpy as np
import json


def _frozen_array(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.flags.writeable = False
    return arr


def _jsonable(value):
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return _jsonable(value.item())
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, float) and not np.isfinite(value):
        return str(value)
    return value


@dataclass(frozen=True)
class AICcResult:
    """
    Corrected Akaike Information Criterion.

    Attributes:
        aic (float): Standard AIC, 2k + n * log(RSS / n).
        aicc (float): AIC plus the small-sample correction.
        correction (float): 2k(k + 1) / (n - k - 1), infinite if n <= k + 1.
        n (int): Number of records with a measurement.
        k (int): Number of fitted parameters.
        rss (float): Residual sum of squares.
    """
    aic: float
    aicc: float
    correction: float
    n: int
    k: int
    rss: float

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True, eq=False)
class PointEstimate:
    """
    Best parameter vector found by a point-estimating optimizer.

    Attributes:
        par (np.ndarray): Best parameters, ordered as the bounds.
        method (str): Optimizer method identifier.
        value (float): Objective value (RMSE) at `par`.
        diagnostics (dict): Backend specific information such as the number
            of evaluations and the termination message.
    """
    par: np.ndarray
    method: str
    value: float
    diagnostics: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "par", _frozen_array(self.par))

    def to_dict(self):
        return {
            "par": self.par.tolist(),
            "method": self.method,
            "value": self.value,
            "diagnostics": _jsonable(self.diagnostics),
        }


@dataclass(frozen=True, eq=False)
class PosteriorEstimate(PointEstimate):
    """
    Point estimate plus posterior samples from a Bayesian sampler.

    Attributes:
        samples (np.ndarray): Post burn-in samples, shape (n_samples, n_par).
        log_prob (np.ndarray): Log-posterior of each sample, shape (n_samples,).
    """
    samples: np.ndarray = None
    log_prob: np.ndarray = None

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "samples", _frozen_array(np.atleast_2d(self.samples)))
        object.__setattr__(self, "log_prob", _frozen_array(np.atleast_1d(self.log_prob)))

    @property
    def mean(self) -> np.ndarray:
        return self.samples.mean(axis=0)

    def credible_interval(self, level: float = 0.95) -> np.ndarray:
        """
        Equal-tailed credible interval per parameter.

        Returns:
            np.ndarray: Array of shape (n_par, 2) with lower and upper limits.
        """
        tail = (1 - level) / 2 * 100
        return np.percentile(self.samples, [tail, 100 - tail], axis=0).T

    def to_dict(self):
        out = super().to_dict()
        out["samples"] = self.samples.tolist()
        out["log_prob"] = self.log_prob.tolist()
        return out


OptimizationResult = PointEstimate | PosteriorEstimate
"""Type alias for the tagged optimizer result."""


@dataclass(frozen=True, eq=False)
class CalibrationResult:
    """
    Outcome of a single model calibration.

    Instances are immutable; arrays are read-only.

    Attributes:
        model (str): Model identifier.
        method (str): Optimizer method identifier.
        param_names (tuple[str, ...]): Ordered parameter names.
        par (np.ndarray): Fitted parameters.
        predicted (np.ndarray): Predicted dates at `par`, one per record.
        rmse (float): RMSE of the fit.
        rmse_null (float): RMSE of the null model.
        aic (AICcResult): Corrected AIC and components.
        optimization (OptimizationResult): Raw optimizer result, including
            the posterior samples for Bayesian calibration.
    """
    model: str
    method: str
    param_names: tuple[str, ...]
    par: np.ndarray
    predicted: np.ndarray
    rmse: float
    rmse_null: float
    aic: AICcResult
    optimization: OptimizationResult

    def __post_init__(self):
        object.__setattr__(self, "par", _frozen_array(self.par))
        object.__setattr__(self, "predicted", _frozen_array(self.predicted))
        object.__setattr__(self, "param_names", tuple(self.param_names))

    @property
    def parameters(self) -> dict[str, float]:
        """Fitted parameters keyed by name."""
        return {name: float(v) for name, v in zip(self.param_names, self.par)}

    @property
    def samples(self) -> np.ndarray | None:
        """Posterior samples when the optimizer produced them."""
        if isinstance(self.optimization, PosteriorEstimate):
            return self.optimization.samples
        return None

    def to_dict(self):
        """
        Convert the result to a JSON compatible dictionary.

        Returns:
            dict: Nested dictionary with arrays converted to lists.
        """
        return {
            "model": self.model,
            "method": self.method,
            "parameters": self.parameters,
            "predicted": self.predicted.tolist(),
            "rmse": self.rmse,
            "rmse_null": self.rmse_null,
            "aic": _jsonable(self.aic.to_dict()),
            "optimization": self.optimization.to_dict(),
        }

    def to_json(self, outfile: str):
        """
        Save the result to a JSON file.

        Args:
            outfile (str): Path to the output JSON file.

        Note:
            Uses the "+x" mode to create a new file, will fail if file already exists.
        """
        with open(outfile, "+x") as f:
            json.dump(self.to_dict(), f)


__all__ = [
    "AICcResult",
    "PointEstimate",
    "PosteriorEstimate",
    "OptimizationResult",
    "CalibrationResult",
]

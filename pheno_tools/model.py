"""
# Phenology Models

This module provides the abstract base class for phenology models, a set of
reference spring onset models and the registry used to look them up by
identifier.

## Classes

- `PhenologyModel`: Abstract base class defining the model interface
- `ForcingModel`: Base class for models driven by accumulated daily forcing
- `NullModel`, `LinearModel`: Reference predictors
- `ThermalTime`, `ThermalTimeSigmoid`, `PhotoThermalTime`,
  `PhotoThermalTimeSigmoid`, `M1`, `M1Sigmoid`: Forcing models
- `AlternatingModel`: Chilling dependent forcing threshold

## Functions

- `register_model`, `get_model`, `list_models`: Model registry
- `estimate_phenology`: Predict transition dates for a registered model

## Example Usage

```python
from pheno_tools import estimate_phenology, get_model

model = get_model("TT")
print(model.param_names)  # ('t0', 'T_base', 'F_crit')

# data is a pheno_tools.data.PhenologyData instance
predicted = estimate_phenology(data, "TT", [1, 5, 150])
```

All forcing models accumulate a daily rate from day `t0` onwards and return
the first day-of-year at which the accumulated forcing exceeds `F_crit`.
Records for which the threshold is never reached receive `NOT_REACHED`.
"""

# Basic data utils
import numpy as np
from typing import Sequence
from numpy.typing import ArrayLike
from abc import abstractmethod, ABC

import logging

from pheno_tools.data import PhenologyData
from pheno_tools.utils.errors import UnknownModelError


NOT_REACHED = 9999
"""Predicted day-of-year for records where the forcing threshold is never met."""

SPRING_DOY = (1, 90)
"""Inclusive day-of-year window averaged by the linear model."""


def null_prediction(measured: ArrayLike) -> float:
    """
    Constant prediction of the null model.

    The null model predicts the rounded mean of all non-missing measured
    transition dates for every record. It is the skill floor used for the
    baseline RMSE in calibration and model comparison.

    Args:
        measured (ArrayLike): Measured transition dates, NaN for missing.

    Returns:
        float: Rounded mean of the non-missing measurements, NaN if none.
    """
    measured = np.asarray(measured, dtype=float)
    valid = measured[~np.isnan(measured)]
    if valid.size == 0:
        return np.nan
    return float(np.round(np.mean(valid)))


class PhenologyModel(ABC):
    """
    Abstract base class for phenology models.

    Subclasses declare the ordered parameter names and implement `predict`.
    Parameter vectors are always positional and follow `param_names`.

    Attributes:
        name (str): Model identifier used by the registry.
        param_names (tuple[str, ...]): Ordered parameter names.

    Example:
        ```python
        class Constant(PhenologyModel):
            name = "CONST"
            param_names = ("doy",)

            def predict(self, par, data):
                return np.full(data.n_records, par[0])
        ```
    """
    name: str = ""
    param_names: tuple[str, ...] = ()

    @property
    def n_parameters(self) -> int:
        return len(self.param_names)

    def check_parameters(self, par: ArrayLike) -> np.ndarray:
        """
        Convert a parameter vector to a float array and check its arity.

        Raises:
            ValueError: If the number of values does not match `param_names`.
        """
        par = np.atleast_1d(np.asarray(par, dtype=float))
        if par.shape != (self.n_parameters,):
            raise ValueError(
                f"Model '{self.name}' expects {self.n_parameters} parameters "
                f"{self.param_names}, got {par.size}"
            )
        return par

    def __call__(self, par: ArrayLike, data: PhenologyData) -> np.ndarray:
        return self.predict(self.check_parameters(par), data)

    @abstractmethod
    def predict(self, par: np.ndarray, data: PhenologyData) -> np.ndarray:
        """
        Predict transition dates.

        Args:
            par (np.ndarray): Parameter vector ordered as `param_names`.
            data (PhenologyData): Driver data.

        Returns:
            np.ndarray: Predicted day-of-year per record, shape (n_records,).
        """
        pass


class NullModel(PhenologyModel):
    """Predicts the rounded mean measured date for every record."""
    name = "NULL"
    param_names = ()

    def predict(self, par, data):
        return np.full(data.n_records, null_prediction(data.transition_dates))


class LinearModel(PhenologyModel):
    """
    Linear response to mean spring temperature.

    Formula: doy = a * mean(Ti over SPRING_DOY) + b
    """
    name = "LIN"
    param_names = ("a", "b")

    def predict(self, par, data):
        a, b = par
        window = (data.doy >= SPRING_DOY[0]) & (data.doy <= SPRING_DOY[1])
        if not window.any():
            raise ValueError("day-of-year axis does not cover the spring window")
        T_mean = data.Ti[window, :].mean(axis=0)
        return a * T_mean + b


def _sigmoid(Ti: np.ndarray, b: float, c: float) -> np.ndarray:
    # exp overflow saturates the response at zero
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-b * (Ti - c)))


def _growing_degrees(Ti: np.ndarray, T_base: float) -> np.ndarray:
    return np.maximum(Ti - T_base, 0.0)


def threshold_date(rate: np.ndarray, doy: np.ndarray, t0: float, F_crit: float) -> np.ndarray:
    """
    First day at which forcing accumulated from `t0` exceeds `F_crit`.

    Args:
        rate (np.ndarray): Daily forcing rate, shape (n_days, n_records).
        doy (np.ndarray): Day-of-year axis, shape (n_days,).
        t0 (float): Start of accumulation (day-of-year).
        F_crit (float): Forcing requirement.

    Returns:
        np.ndarray: Day-of-year per record, `NOT_REACHED` where the
            requirement is never met.
    """
    rate = np.where((doy < t0)[:, None], 0.0, rate)
    reached = np.cumsum(rate, axis=0) > F_crit
    first = reached.argmax(axis=0)
    out = doy[first].astype(float)
    out[~reached.any(axis=0)] = NOT_REACHED
    return out


class ForcingModel(PhenologyModel):
    """
    Base class for spring forcing models.

    Subclasses implement `rate`, the daily forcing for the parameters that
    follow `t0` and precede `F_crit` in `param_names`.
    """

    @abstractmethod
    def rate(self, par: np.ndarray, data: PhenologyData) -> np.ndarray:
        pass

    def predict(self, par, data):
        t0, F_crit = par[0], par[-1]
        return threshold_date(self.rate(par[1:-1], data), data.doy, t0, F_crit)


class ThermalTime(ForcingModel):
    """Growing degree days above `T_base`."""
    name = "TT"
    param_names = ("t0", "T_base", "F_crit")

    def rate(self, par, data):
        return _growing_degrees(data.Ti, par[0])


class ThermalTimeSigmoid(ForcingModel):
    """Sigmoid temperature response with slope `b` and inflection `c`."""
    name = "TTs"
    param_names = ("t0", "b", "c", "F_crit")

    def rate(self, par, data):
        b, c = par
        return _sigmoid(data.Ti, b, c)


class PhotoThermalTime(ForcingModel):
    """Growing degree days scaled by relative daylength."""
    name = "PTT"
    param_names = ("t0", "T_base", "F_crit")

    def rate(self, par, data):
        return _growing_degrees(data.Ti, par[0]) * data.Li / 24.0


class PhotoThermalTimeSigmoid(ForcingModel):
    name = "PTTs"
    param_names = ("t0", "b", "c", "F_crit")

    def rate(self, par, data):
        b, c = par
        return _sigmoid(data.Ti, b, c) * data.Li / 24.0


class M1(ForcingModel):
    """
    Photoperiod weighted thermal time (Blümel & Chmielewski 2012).

    Formula: rate = (Li / 10) ** k * max(Ti - T_base, 0)
    """
    name = "M1"
    param_names = ("t0", "T_base", "k", "F_crit")

    def rate(self, par, data):
        T_base, k = par
        return (data.Li / 10.0) ** k * _growing_degrees(data.Ti, T_base)


class M1Sigmoid(ForcingModel):
    name = "M1s"
    param_names = ("t0", "b", "c", "k", "F_crit")

    def rate(self, par, data):
        b, c, k = par
        return (data.Li / 10.0) ** k * _sigmoid(data.Ti, b, c)


class AlternatingModel(PhenologyModel):
    """
    Alternating model (Cannell & Smith 1983).

    Chill days (Ti < T_base) and growing degree days are counted from `t0`.
    The forcing requirement decays with accumulated chilling:

    Formula: F_crit = a + b * exp(c * chill_days)
    """
    name = "AT"
    param_names = ("t0", "T_base", "a", "b", "c")

    def predict(self, par, data):
        t0, T_base, a, b, c = par
        active = (data.doy >= t0)[:, None]
        chill = np.cumsum(np.where(active, data.Ti < T_base, False), axis=0)
        forcing = np.cumsum(np.where(active, _growing_degrees(data.Ti, T_base), 0.0), axis=0)

        reached = forcing > a + b * np.exp(c * chill)
        first = reached.argmax(axis=0)
        out = data.doy[first].astype(float)
        out[~reached.any(axis=0)] = NOT_REACHED
        return out


# Global registry: {name: model instance}
_models: dict[str, PhenologyModel] = {}


def register_model(model: PhenologyModel) -> PhenologyModel:
    """
    Register a model instance under its `name`.

    Args:
        model (PhenologyModel): Model instance to register. An existing
            model with the same name is replaced.

    Returns:
        PhenologyModel: The registered model.

    Raises:
        TypeError: If `model` is not a PhenologyModel.
        ValueError: If the model has no name.
    """
    if not isinstance(model, PhenologyModel):
        raise TypeError(f"Expected a PhenologyModel instance, got {type(model).__name__}")
    if not model.name:
        raise ValueError("Model must define a name")
    _models[model.name] = model
    logging.debug("Registered phenology model '%s'", model.name)
    return model


def get_model(name: str) -> PhenologyModel:
    """
    Get a registered model by identifier.

    Raises:
        UnknownModelError: If the model is not registered.
    """
    if name not in _models:
        available = ", ".join(sorted(_models)) or "(none)"
        raise UnknownModelError(f"Unknown model '{name}'. Available models: {available}")
    return _models[name]


def list_models() -> list[str]:
    """Return the identifiers of all registered models in registration order."""
    return list(_models)


def estimate_phenology(data: PhenologyData, model: str, par: Sequence[float]) -> np.ndarray:
    """
    Predict transition dates for a registered model.

    Args:
        data (PhenologyData): Flat driver dataset.
        model (str): Registered model identifier.
        par (Sequence[float]): Parameter vector ordered as the model's
            `param_names`.

    Returns:
        np.ndarray: Predicted day-of-year per record.

    Raises:
        UnknownModelError: If the model is not registered.
        ValueError: If the parameter vector has the wrong arity.
    """
    return get_model(model)(par, data)


for _cls in (
    NullModel,
    LinearModel,
    ThermalTime,
    ThermalTimeSigmoid,
    PhotoThermalTime,
    PhotoThermalTimeSigmoid,
    M1,
    M1Sigmoid,
    AlternatingModel,
):
    register_model(_cls())


__all__ = [
    "NOT_REACHED",
    "PhenologyModel",
    "ForcingModel",
    "NullModel",
    "LinearModel",
    "ThermalTime",
    "ThermalTimeSigmoid",
    "PhotoThermalTime",
    "PhotoThermalTimeSigmoid",
    "M1",
    "M1Sigmoid",
    "AlternatingModel",
    "null_prediction",
    "threshold_date",
    "register_model",
    "get_model",
    "list_models",
    "estimate_phenology",
]

"""
# Parameter Space Configuration

This module provides the parameter range table that bounds the optimizer's
search space for each phenology model.

## Classes

- `ParameterBounds`: Name and lower/upper limit of a single parameter
- `ParameterRanges`: Mapping from model identifier to ordered bounds

## Functions

- `bundled_parameter_ranges`: Path of the range table shipped with the package

## File Format

A comma separated table with columns `model`, `bound` and one positional
column per parameter. Each model occupies two rows, `bound == "lower"` and
`bound == "upper"`. Columns beyond the model's parameter count are left
blank:

```
model,bound,par1,par2,par3,par4,par5
TT,lower,1,-5,0,,
TT,upper,100,10,2000,,
```

## Example Usage

```python
from pheno_tools.config.space import ParameterRanges, bundled_parameter_ranges

ranges = ParameterRanges.from_csv(bundled_parameter_ranges())
lower, upper = ranges.bounds("TT")
print([b.name for b in ranges["TT"]])  # ['t0', 'T_base', 'F_crit']
```
"""

from dataclasses import dataclass
from importlib import resources
import logging

import numpy as np
import pandas as pd

from pheno_tools.model import get_model, list_models
from pheno_tools.utils.errors import ConfigurationError, UnknownModelError


MISSING_VALUES = ["", "NA", "NaN", "nan"]
"""Cell contents read as a blank bound in the range table."""


@dataclass(frozen=True)
class ParameterBounds:
    """
    Search interval of a single model parameter.

    Attributes:
        name (str): Parameter name.
        lower (float): Lower bound (inclusive).
        upper (float): Upper bound (inclusive). Equal to `lower` for a
            parameter held fixed during calibration.
    """
    name: str
    lower: float
    upper: float

    def __post_init__(self):
        if not (np.isfinite(self.lower) and np.isfinite(self.upper)):
            raise ConfigurationError(f"Bounds for '{self.name}' must be finite")
        if self.lower > self.upper:
            raise ConfigurationError(
                f"Lower bound must not exceed upper bound for '{self.name}': "
                f"{self.lower} > {self.upper}"
            )

    def unpack(self):
        return (self.lower, self.upper)


def _registered(model: str):
    return get_model(model) if model in list_models() else None


def _parameter_names(model: str, n: int) -> tuple[str, ...]:
    registered = _registered(model)
    if registered is None:
        return tuple(f"p{i + 1}" for i in range(n))
    if registered.n_parameters != n:
        raise ConfigurationError(
            f"Model '{model}' has {registered.n_parameters} parameters "
            f"{registered.param_names}, range table declares {n}"
        )
    return registered.param_names


def _declared_values(row: pd.Series, model: str, bound: str) -> list[float]:
    values = row.to_numpy(dtype=float)
    present = ~np.isnan(values)
    n = int(present.sum())
    # only trailing columns may be blank
    if not present[:n].all():
        raise ConfigurationError(
            f"Blank value between declared {bound} bounds for model '{model}'"
        )
    return values[:n].tolist()


class ParameterRanges(dict[str, tuple[ParameterBounds, ...]]):
    """
    Parameter range table keyed by model identifier.

    Every entry is validated on construction: bounds are finite, ordered,
    and for registered models their number matches the model's parameters.
    The table is read-only after loading; any attempt to add, replace or
    remove an entry raises TypeError.

    Example:
        ```python
        ranges = ParameterRanges.from_dict({
            "TT": [("t0", 1, 100), ("T_base", -5, 10), ("F_crit", 0, 2000)],
        })
        lower, upper = ranges.bounds("TT")
        ```
    """

    def _readonly(self, *args, **kwargs):
        raise TypeError("ParameterRanges is read-only, build a new table with from_dict")

    __setitem__ = __delitem__ = __ior__ = _readonly
    update = setdefault = pop = popitem = clear = _readonly

    def __reduce__(self):
        return (self.__class__, (dict(self),))

    @classmethod
    def from_dict(cls, data: dict) -> "ParameterRanges":
        """
        Create a table from `{model: [(name, lower, upper), ...]}`.

        Raises:
            ConfigurationError: If any entry is malformed.
        """
        table = {}
        for model, entries in data.items():
            bounds = tuple(
                b if isinstance(b, ParameterBounds) else ParameterBounds(str(b[0]), float(b[1]), float(b[2]))
                for b in entries
            )
            registered = _registered(model)
            if registered is not None and registered.n_parameters != len(bounds):
                raise ConfigurationError(
                    f"Model '{model}' has {registered.n_parameters} parameters, "
                    f"{len(bounds)} bounds given"
                )
            table[model] = bounds
        return cls(table)

    @classmethod
    def from_csv(cls, infile) -> "ParameterRanges":
        """
        Load and validate a range table from a CSV file.

        Args:
            infile: Path or file-like object in the format described in the
                module documentation.

        Returns:
            ParameterRanges: Validated table.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If a model lacks a lower or upper row, is
                listed more than once, has blank values between declared
                bounds, has lower > upper, or declares a parameter count
                different from the registered model.
        """
        # "NULL" is a model identifier, not a missing value
        df = pd.read_csv(infile, skipinitialspace=True, keep_default_na=False, na_values=MISSING_VALUES)
        missing = {"model", "bound"} - set(df.columns)
        if missing:
            raise ConfigurationError(f"Parameter range table lacks columns: {sorted(missing)}")

        df["model"] = df["model"].astype(str).str.strip()
        df["bound"] = df["bound"].astype(str).str.strip().str.lower()
        value_columns = [c for c in df.columns if c not in ("model", "bound")]

        table = {}
        for model, rows in df.groupby("model", sort=False):
            if sorted(rows["bound"]) != ["lower", "upper"]:
                raise ConfigurationError(
                    f"Model '{model}' needs exactly one 'lower' and one 'upper' row, "
                    f"got {rows['bound'].tolist()}"
                )
            lower_row = rows.loc[rows["bound"] == "lower", value_columns].iloc[0]
            upper_row = rows.loc[rows["bound"] == "upper", value_columns].iloc[0]
            lower = _declared_values(lower_row, model, "lower")
            upper = _declared_values(upper_row, model, "upper")
            if len(lower) != len(upper):
                raise ConfigurationError(
                    f"Model '{model}' declares {len(lower)} lower and {len(upper)} upper bounds"
                )

            names = _parameter_names(model, len(lower))
            table[model] = tuple(
                ParameterBounds(name, lo, hi) for name, lo, hi in zip(names, lower, upper)
            )

        logging.info("Loaded parameter ranges for %d models", len(table))
        return cls(table)

    def get_bounds(self, model: str) -> tuple[ParameterBounds, ...]:
        """
        Ordered bounds of a model.

        Raises:
            UnknownModelError: If the model has no entry in the table.
        """
        if model not in self:
            raise UnknownModelError(
                f"Parameters for model '{model}' are not specified in the parameter range table."
            )
        return self[model]

    def bounds(self, model: str) -> tuple[np.ndarray, np.ndarray]:
        """
        Lower and upper bound arrays of a model, in parameter order.

        Raises:
            UnknownModelError: If the model has no entry in the table.
        """
        entries = self.get_bounds(model)
        lower = np.array([b.lower for b in entries], dtype=float)
        upper = np.array([b.upper for b in entries], dtype=float)
        return lower, upper

    def param_names(self, model: str) -> tuple[str, ...]:
        return tuple(b.name for b in self.get_bounds(model))

    def to_frame(self) -> pd.DataFrame:
        """Convert the table back to the two-rows-per-model CSV layout."""
        width = max((len(v) for v in self.values()), default=0)
        rows = []
        for model, entries in self.items():
            for bound in ("lower", "upper"):
                values = [getattr(b, bound) for b in entries]
                values += [np.nan] * (width - len(values))
                rows.append([model, bound] + values)
        columns = ["model", "bound"] + [f"par{i + 1}" for i in range(width)]
        return pd.DataFrame(rows, columns=columns)


def bundled_parameter_ranges():
    """
    Path to the parameter range table distributed with pheno_tools.

    The bounds follow the ranges commonly used for spring phenology model
    comparisons (Basler 2016). Callers pass the path explicitly to
    `ParameterRanges.from_csv` or to the calibration functions.
    """
    return resources.files("pheno_tools").joinpath("resources", "parameter_ranges.csv")


__all__ = ["ParameterBounds", "ParameterRanges", "bundled_parameter_ranges"]

"""
# Exceptions

Exception hierarchy shared by the calibration, optimization and comparison
modules. Every error raised on purpose by pheno_tools derives from
`PhenoToolsError`, and also from the builtin type callers would expect
(`ValueError` for bad input, `RuntimeError` for failures during a run).

## Classes

- `PhenoToolsError`: Base class for all package errors
- `ConfigurationError`: Invalid model, method, bounds or control settings
- `UnknownModelError`: Model identifier not registered or not in the range table
- `UnknownMethodError`: Optimizer method outside the supported set
- `BoundsMismatchError`: Lower and upper bounds of different length
- `EvaluationError`: The phenology model failed on a parameter vector
- `ConstraintViolationError`: An optimizer returned parameters outside the bounds
- `InsufficientDataError`: No usable measured values remain
"""


class PhenoToolsError(Exception):
    """Base class for all pheno_tools exceptions."""


class ConfigurationError(PhenoToolsError, ValueError):
    """Invalid configuration (model, method, bounds, control or range table)."""


class UnknownModelError(ConfigurationError, KeyError):
    """Model identifier is not registered or has no parameter ranges."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message
        return str(self.args[0]) if self.args else ""


class UnknownMethodError(ConfigurationError):
    """Optimizer method identifier is not supported."""


class BoundsMismatchError(ConfigurationError):
    """Lower and upper bound sequences differ in length."""


class EvaluationError(PhenoToolsError, RuntimeError):
    """The phenology model raised while evaluating a parameter vector."""


class ConstraintViolationError(PhenoToolsError, RuntimeError):
    """Optimizer output violates the parameter bounds."""


class InsufficientDataError(PhenoToolsError, ValueError):
    """No non-missing measured values are available."""


__all__ = [
    "PhenoToolsError",
    "ConfigurationError",
    "UnknownModelError",
    "UnknownMethodError",
    "BoundsMismatchError",
    "EvaluationError",
    "ConstraintViolationError",
    "InsufficientDataError",
]

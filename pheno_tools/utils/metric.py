"""
# Goodness-of-fit Metrics

This module provides the statistics used to score phenology model fits:
root-mean-squared error against measurements, the RMSE of the null model
and the small-sample corrected Akaike Information Criterion.

Missing measured values (NaN) are excluded from every statistic. An empty
set of valid values is an error rather than a NaN result.

## Functions

- `valid_pairs`: Drop records without a measured value
- `rmse`: Root-mean-squared error
- `null_rmse`: RMSE of the constant null model
- `aicc`: Corrected Akaike Information Criterion

## Example Usage

```python
import numpy as np
from pheno_tools.utils.metric import rmse, aicc

measured = np.array([120.0, np.nan, 131.0, 127.0])
predicted = np.array([118.0, 140.0, 133.0, 127.0])

print(rmse(measured, predicted))   # 1.633
print(aicc(measured, predicted, k=3).aicc)
```
"""

import numpy as np
from numpy.typing import ArrayLike

# Metrics
from sklearn.metrics import root_mean_squared_error

from pheno_tools.model import null_prediction
from pheno_tools.utils.errors import InsufficientDataError
from pheno_tools.utils.results import AICcResult


def valid_pairs(measured: ArrayLike, predicted: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    """
    Align measured and predicted values and drop missing measurements.

    Args:
        measured (ArrayLike): Measured values, NaN for missing.
        predicted (ArrayLike): Predicted values, same length.

    Returns:
        tuple[np.ndarray, np.ndarray]: Measured and predicted values for
            records with a measurement.

    Raises:
        ValueError: If the inputs differ in length.
        InsufficientDataError: If no measured value is present.
    """
    measured = np.asarray(measured, dtype=float).ravel()
    predicted = np.asarray(predicted, dtype=float).ravel()
    if measured.shape != predicted.shape:
        raise ValueError(
            f"measured ({measured.size}) and predicted ({predicted.size}) differ in length"
        )

    mask = ~np.isnan(measured)
    if not mask.any():
        raise InsufficientDataError("no non-missing measured values")
    return measured[mask], predicted[mask]


def rmse(measured: ArrayLike, predicted: ArrayLike) -> float:
    """
    Root-mean-squared error, ignoring missing measurements.

    Formula: RMSE = √((1/n) * Σ(measured - predicted)²)

    Returns:
        float: Non-negative error, zero only for an exact match.
    """
    obs, pred = valid_pairs(measured, predicted)
    return float(root_mean_squared_error(obs, pred))


def null_rmse(measured: ArrayLike) -> float:
    """
    RMSE of the null model.

    The null model predicts the rounded mean of the non-missing
    measurements for every record (see `pheno_tools.model.null_prediction`).
    """
    measured = np.asarray(measured, dtype=float)
    return rmse(measured, np.full(measured.shape, null_prediction(measured)))


def aicc(measured: ArrayLike, predicted: ArrayLike, k: int) -> AICcResult:
    """
    Corrected Akaike Information Criterion for a least-squares fit.

    Formula:
        AIC  = 2k + n * log(RSS / n)
        AICc = AIC + 2k(k + 1) / (n - k - 1)

    where n counts the records with a measurement. The correction term
    vanishes as n grows; it is infinite when n <= k + 1.

    Args:
        measured (ArrayLike): Measured values, NaN for missing.
        predicted (ArrayLike): Predicted values.
        k (int): Number of fitted parameters.

    Returns:
        AICcResult: AIC, AICc and their components.

    Raises:
        ValueError: If k is negative.
        InsufficientDataError: If no measured value is present.
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")

    obs, pred = valid_pairs(measured, predicted)
    n = obs.size
    rss = float(np.sum((obs - pred) ** 2))

    # a perfect fit gives log(0) = -inf
    with np.errstate(divide="ignore"):
        aic = 2 * k + n * float(np.log(rss / n))

    denominator = n - k - 1
    if denominator > 0:
        correction = (2 * k * (k + 1)) / denominator
        corrected = aic + correction
    else:
        # too few records, also for a perfect fit where aic is -inf
        correction = np.inf
        corrected = np.inf

    return AICcResult(
        aic=aic,
        aicc=corrected,
        correction=correction,
        n=n,
        k=k,
        rss=rss,
    )


__all__ = ["valid_pairs", "rmse", "null_rmse", "aicc"]

"""
# Utilities

This module provides goodness-of-fit metrics, result containers and the
exception hierarchy shared by the pheno_tools package.

## Components

- **metric**: RMSE, null model RMSE and corrected AIC
- **results**: Optimization and calibration results
- **errors**: Exceptions rooted at `PhenoToolsError`

## Example Usage

```python
from pheno_tools.utils.metric import rmse, aicc
from pheno_tools.utils.errors import InsufficientDataError

try:
    score = rmse(measured, predicted)
    information = aicc(measured, predicted, k=3)
except InsufficientDataError:
    print("no measured dates")
```
"""

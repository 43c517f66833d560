"""
# Model Comparison

This module compares calibrated phenology models across repeated runs and
visualizes how model structure changes the predicted dates.

## Components

- `model_comparison`: Calibrate several models with multiple seeds
- `ComparisonData`, `ModelRuns`: Predictions and parameters per model
- `arrow_plot`: Direction of change between two models per record
- `comparison_plot`: Per-run RMSE boxplot against the null model

## Example Usage

```python
from pheno_tools.comparison import model_comparison, arrow_plot, comparison_plot
from pheno_tools.config.space import bundled_parameter_ranges

comparison = model_comparison(
    data,
    models=["TT", "PTT", "M1", "AT"],
    par_ranges=bundled_parameter_ranges(),
    n_runs=5,
    workers=4,
)

arrow_plot(comparison, models=["TT", "M1"])
comparison_plot(comparison)
```
"""

from .comparison import *
from .plot import *

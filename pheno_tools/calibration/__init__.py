"""
# Model Calibration

This module fits a phenology model to measured transition dates and scores
the fit.

## Components

- `model_calibration` (alias `calibrate`): Calibrate one model
- `plot_calibration`: Measured vs predicted scatter of a calibration
- `CalibrationConfig`: JSON serializable calibration settings

## Example Usage

```python
from pheno_tools.calibration import CalibrationConfig, model_calibration
from pheno_tools.config.space import bundled_parameter_ranges

result = model_calibration(
    "TT", data,
    method="genetic",
    par_ranges=bundled_parameter_ranges(),
    seed=3,
)
print(f"RMSE {result.rmse:.2f} vs null {result.rmse_null:.2f}")

config = CalibrationConfig(model="PTT", method="bayesian", par_ranges="ranges.csv")
posterior = config.run(data).samples
```
"""

from .calibration import *
from .config import *

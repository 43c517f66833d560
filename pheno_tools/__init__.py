"""
# Pheno Tools

A toolkit for calibrating and comparing phenology models against observed
transition dates, providing functionality for:

- **Observation Data**: Flat and per-site containers for measured dates and drivers
- **Model Interface**: Abstract base class, reference spring models and a model registry
- **Optimization**: Bounded parameter fitting with simulated annealing, differential evolution or MCMC
- **Calibration**: Fitted parameters with RMSE, null model RMSE and AICc
- **Comparison**: Repeated calibrations of several models, arrow plots and RMSE boxplots

## Main Components

- `PhenologyData`, `flat_format`: Dataset containers
- `PhenologyModel`, `get_model`, `estimate_phenology`: Model interface
- `optimization`: Optimizer adapter and backend settings
- `calibration`: `model_calibration` and `CalibrationConfig`
- `comparison`: `model_comparison` and comparison plots
- `config`: Parameter range tables
- `utils`: Metrics, results and exceptions

## Example Usage

```python
from pheno_tools import model_calibration
from pheno_tools.config.space import bundled_parameter_ranges
from pheno_tools.comparison import model_comparison, comparison_plot

ranges = bundled_parameter_ranges()

# Calibrate a single model
result = model_calibration("TT", data, method="anneal", par_ranges=ranges, seed=1)
print(result.parameters, result.rmse, result.aic.aicc)

# Compare several models over repeated runs
comparison = model_comparison(data, models=["TT", "PTT", "M1"], par_ranges=ranges, n_runs=5)
comparison_plot(comparison)
```
"""

from .data import *
from .model import *
from .utils.errors import *
from .calibration import model_calibration, calibrate

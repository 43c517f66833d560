"""
# Optimization Framework

This module provides bounded parameter optimization for phenology models
using scipy's global optimizers and emcee's ensemble sampler.

## Components

- `optimize_parameters`: Fit a model's parameters within box bounds
- `rmse_cost`: Objective function minimized by every method
- `Method`: Supported methods (`anneal`, `genetic`, `bayesian`)
- `AnnealControl`, `GeneticControl`, `BayesianControl`: Backend settings

## Example Usage

```python
from pheno_tools.config.space import ParameterRanges, bundled_parameter_ranges
from pheno_tools.optimization import optimize_parameters, PosteriorEstimate

ranges = ParameterRanges.from_csv(bundled_parameter_ranges())
lower, upper = ranges.bounds("TT")

result = optimize_parameters(
    "TT", data, lower, upper,
    method="bayesian",
    control={"n_steps": 1000, "burn_in": 200},
    seed=42,
)

print(f"Best parameters: {result.par}")
if isinstance(result, PosteriorEstimate):
    print(f"95% interval: {result.credible_interval(0.95)}")
```
"""

from .optimizer import *
from .config import *
from pheno_tools.utils.results import PointEstimate, PosteriorEstimate, OptimizationResult

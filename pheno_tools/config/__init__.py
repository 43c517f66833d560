"""
# Configuration Management

This module provides the parameter range table that bounds the search
space of every calibration.

## Components

- **ParameterRanges**: Per-model parameter bounds loaded from a CSV table
- **ParameterBounds**: Name and limits of a single parameter

Optimizer settings live in `pheno_tools.optimization` and calibration
settings in `pheno_tools.calibration`.

## Example Usage

```python
from pheno_tools.config import ParameterRanges, bundled_parameter_ranges

# Table shipped with the package
ranges = ParameterRanges.from_csv(bundled_parameter_ranges())

# Custom bounds, fixing t0 at day 1
custom = ParameterRanges.from_dict({
    "TT": [("t0", 1, 1), ("T_base", -5, 10), ("F_crit", 0, 2000)],
})
```
"""

from .space import *

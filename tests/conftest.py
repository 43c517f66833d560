import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from pheno_tools.data import PhenologyData
from pheno_tools.model import estimate_phenology
from pheno_tools.config.space import ParameterRanges


TT_PAR = np.array([1.0, 5.0, 300.0])


def make_dataset(n_records: int = 12, seed: int = 7, par=TT_PAR) -> PhenologyData:
    """Warming spring temperatures with dates generated by the TT model."""
    rng = np.random.default_rng(seed)
    doy = np.arange(1, 201)
    offset = rng.uniform(-3, 3, n_records)
    Ti = -5 + 0.2 * doy[:, None] + offset[None, :] + rng.normal(0, 2, (doy.size, n_records))
    Li = 12 + 3 * np.sin((doy[:, None] - 80) / 365 * 2 * np.pi) * np.ones(n_records)

    drivers = PhenologyData(
        doy=doy,
        transition_dates=np.zeros(n_records),
        Ti=Ti,
        Li=Li,
        site=[f"site{i % 3}" for i in range(n_records)],
        year=2000 + np.arange(n_records),
    )
    dates = estimate_phenology(drivers, "TT", par)
    return PhenologyData(
        doy=doy,
        transition_dates=dates,
        Ti=Ti,
        Li=Li,
        site=drivers.site,
        year=drivers.year,
    )


@pytest.fixture
def tt_data():
    return make_dataset()


@pytest.fixture
def tt_par():
    return TT_PAR.copy()


@pytest.fixture
def ranges():
    return ParameterRanges.from_dict({
        "TT": [("t0", 1, 60), ("T_base", 0, 10), ("F_crit", 100, 600)],
        "PTT": [("t0", 1, 60), ("T_base", 0, 10), ("F_crit", 50, 400)],
        "LIN": [("a", -20, 10), ("b", 0, 300)],
    })


@pytest.fixture
def fast_control():
    return {
        "anneal": {"max_call": 300, "max_iter": 50},
        "genetic": {"max_iter": 10, "pop_size": 5, "polish": False},
        "bayesian": {"n_walkers": 8, "n_steps": 60, "burn_in": 20},
    }

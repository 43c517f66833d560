import numpy as np
import pytest

from pheno_tools.model import PhenologyModel
from pheno_tools.data import PhenologyData
import pheno_tools.optimization.optimizer as optimizer_module
from pheno_tools.optimization import (
    AnnealControl,
    BayesianControl,
    GeneticControl,
    Method,
    PointEstimate,
    PosteriorEstimate,
    optimize_parameters,
    rmse_cost,
)
from pheno_tools.utils.errors import (
    BoundsMismatchError,
    ConfigurationError,
    ConstraintViolationError,
    EvaluationError,
    InsufficientDataError,
    UnknownMethodError,
    UnknownModelError,
)


LOWER = np.array([1.0, 0.0, 100.0])
UPPER = np.array([60.0, 10.0, 600.0])


class Broken(PhenologyModel):
    name = "BROKEN"
    param_names = ("a",)

    def predict(self, par, data):
        raise RuntimeError("numerical failure")


@pytest.mark.parametrize("method", ["anneal", "genetic", "bayesian"])
def test_result_within_bounds(tt_data, fast_control, method):
    res = optimize_parameters(
        "TT", tt_data, LOWER, UPPER, method=method, control=fast_control[method], seed=1
    )

    assert res.par.shape == LOWER.shape
    assert ((res.par >= LOWER) & (res.par <= UPPER)).all()
    assert res.method == method
    assert res.value == pytest.approx(rmse_cost(res.par, tt_data, "TT"))


@pytest.mark.parametrize("method", ["anneal", "genetic", "bayesian"])
def test_degenerate_bounds_return_lower(tt_data, tt_par, method):
    res = optimize_parameters("TT", tt_data, tt_par, tt_par, method=method, seed=1)

    assert np.array_equal(res.par, tt_par)
    assert res.value == rmse_cost(tt_par, tt_data, "TT")
    assert res.value == 0


def test_degenerate_bayesian_has_single_sample(tt_data, tt_par):
    res = optimize_parameters("TT", tt_data, tt_par, tt_par, method="bayesian")
    assert isinstance(res, PosteriorEstimate)
    assert res.samples.shape == (1, 3)


def test_fixed_parameters_are_kept(tt_data, fast_control):
    lower, upper = LOWER.copy(), UPPER.copy()
    lower[0] = upper[0] = 1.0
    res = optimize_parameters("TT", tt_data, lower, upper, control=fast_control["anneal"], seed=2)
    assert res.par[0] == 1.0


def test_bayesian_returns_posterior(tt_data, fast_control):
    res = optimize_parameters(
        "TT", tt_data, LOWER, UPPER, method="bayesian", control=fast_control["bayesian"], seed=3
    )

    assert isinstance(res, PosteriorEstimate)
    # 8 walkers, 40 steps after burn-in
    assert res.samples.shape == (320, 3)
    assert res.log_prob.shape == (320,)
    assert ((res.samples >= LOWER) & (res.samples <= UPPER)).all()
    assert np.array_equal(res.par, res.samples[np.argmax(res.log_prob)])
    assert res.credible_interval(0.9).shape == (3, 2)


def test_point_methods_return_point_estimate(tt_data, fast_control):
    res = optimize_parameters("TT", tt_data, LOWER, UPPER, method="genetic", control=fast_control["genetic"])
    assert isinstance(res, PointEstimate)
    assert not isinstance(res, PosteriorEstimate)


def test_seed_makes_runs_reproducible(tt_data, fast_control):
    runs = [
        optimize_parameters("TT", tt_data, LOWER, UPPER, method="genetic", control=fast_control["genetic"], seed=5)
        for _ in range(2)
    ]
    assert np.array_equal(runs[0].par, runs[1].par)


def test_result_is_read_only(tt_data, tt_par):
    res = optimize_parameters("TT", tt_data, tt_par, tt_par)
    with pytest.raises(ValueError):
        res.par[0] = 0


def test_unknown_method_raises(tt_data):
    with pytest.raises(UnknownMethodError) as exc:
        optimize_parameters("TT", tt_data, LOWER, UPPER, method="simplex")
    assert "Unknown optimizer method" in str(exc.value)


def test_method_names_are_case_insensitive():
    assert Method.from_name("Genetic") is Method.GENETIC
    assert Method.from_name(Method.ANNEAL) is Method.ANNEAL


def test_bounds_of_different_length_raise(tt_data):
    with pytest.raises(BoundsMismatchError):
        optimize_parameters("TT", tt_data, LOWER, UPPER[:2])


def test_bounds_must_match_model_parameters(tt_data):
    with pytest.raises(BoundsMismatchError):
        optimize_parameters("TT", tt_data, LOWER[:2], UPPER[:2])


def test_lower_above_upper_raises(tt_data):
    with pytest.raises(ConfigurationError):
        optimize_parameters("TT", tt_data, UPPER, LOWER)


def test_unknown_model_raises(tt_data):
    with pytest.raises(UnknownModelError):
        optimize_parameters("XYZ", tt_data, LOWER, UPPER)


def test_unknown_control_option_raises(tt_data):
    with pytest.raises(ConfigurationError):
        optimize_parameters("TT", tt_data, LOWER, UPPER, control={"max.call": 100})


def test_model_failure_raises_evaluation_error(tt_data):
    with pytest.raises(EvaluationError) as exc:
        optimize_parameters(Broken(), tt_data, [0.0], [1.0], seed=1)
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_missing_measurements_raise(tt_data):
    empty = PhenologyData(
        doy=tt_data.doy,
        transition_dates=np.full(tt_data.n_records, np.nan),
        Ti=tt_data.Ti,
        Li=tt_data.Li,
    )
    with pytest.raises(InsufficientDataError):
        optimize_parameters("TT", empty, LOWER, UPPER)


def test_control_from_dict():
    assert AnnealControl.from_dict(None) == AnnealControl()
    assert GeneticControl.from_dict({"mutation": [0.3, 0.9]}).mutation == (0.3, 0.9)

    with pytest.raises(ConfigurationError):
        BayesianControl.from_dict({"n_steps": 10, "burn_in": 10})
    with pytest.raises(ConfigurationError):
        AnnealControl.from_dict(GeneticControl())
    with pytest.raises(ConfigurationError):
        BayesianControl(n_walkers=4).walkers(3)


def test_backend_result_outside_bounds_raises(tt_data, monkeypatch):
    monkeypatch.setattr(optimizer_module, "_anneal", lambda *a, **k: (np.array([1000.0, 5.0, 300.0]), {}))
    with pytest.raises(ConstraintViolationError) as exc:
        optimize_parameters("TT", tt_data, LOWER, UPPER, seed=1)
    assert "outside bounds" in str(exc.value)


def test_backend_result_of_wrong_arity_raises(tt_data, monkeypatch):
    monkeypatch.setattr(optimizer_module, "_genetic", lambda *a, **k: (np.array([10.0, 5.0]), {}))
    with pytest.raises(ConstraintViolationError):
        optimize_parameters("TT", tt_data, LOWER, UPPER, method="genetic", seed=1)


def test_sampler_result_of_wrong_shape_raises(tt_data, monkeypatch):
    monkeypatch.setattr(
        optimizer_module, "_bayesian", lambda *a, **k: (np.full((4, 2), 10.0), np.zeros(4), {})
    )
    with pytest.raises(ConstraintViolationError):
        optimize_parameters("TT", tt_data, LOWER, UPPER, method="bayesian", seed=1)

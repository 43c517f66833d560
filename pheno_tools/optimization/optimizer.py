"""Parameter optimization for phenology models.

This module fits a phenology model to measured transition dates by
minimizing the RMSE between measured and predicted dates within box bounds.
Three black-box global search methods are available, each delegating to an
established library:

    anneal    scipy.optimize.dual_annealing (generalized simulated annealing)
    genetic   scipy.optimize.differential_evolution
    bayesian  emcee.EnsembleSampler (affine invariant MCMC)

Parameters whose lower and upper bound coincide are held fixed and are not
part of the search space.

Typical usage example:

    from pheno_tools.optimization import optimize_parameters

    lower, upper = ranges.bounds("TT")
    result = optimize_parameters("TT", data, lower, upper, method="genetic", seed=1)
    print(result.par, result.value)
"""

from enum import Enum
from typing import Callable
import logging

import numpy as np
from numpy.typing import ArrayLike

# Optimizer backends
from scipy.optimize import dual_annealing, differential_evolution
import emcee

from pheno_tools.data import PhenologyData
from pheno_tools.model import PhenologyModel, get_model
from pheno_tools.utils.errors import (
    BoundsMismatchError,
    ConfigurationError,
    ConstraintViolationError,
    EvaluationError,
    InsufficientDataError,
    UnknownMethodError,
)
from pheno_tools.utils.metric import rmse
from pheno_tools.utils.results import PointEstimate, PosteriorEstimate, OptimizationResult
from .config import ControlConfig, AnnealControl, GeneticControl, BayesianControl


class Method(str, Enum):
    """Optimization methods understood by `optimize_parameters`."""

    ANNEAL = "anneal"
    GENETIC = "genetic"
    BAYESIAN = "bayesian"

    @classmethod
    def from_name(cls, name) -> "Method":
        """
        Resolve a method from its name, case-insensitively.

        Raises:
            UnknownMethodError: If the name is not a known method.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise UnknownMethodError(
                f"Unknown optimizer method '{name}'. Valid methods: {valid}"
            ) from None

    @property
    def control_class(self) -> type[ControlConfig]:
        return {
            Method.ANNEAL: AnnealControl,
            Method.GENETIC: GeneticControl,
            Method.BAYESIAN: BayesianControl,
        }[self]


def _resolve_model(model: str | PhenologyModel) -> PhenologyModel:
    if isinstance(model, PhenologyModel):
        return model
    return get_model(model)


def rmse_cost(par: ArrayLike, data: PhenologyData, model: str | PhenologyModel) -> float:
    """
    Objective function: RMSE of the model at `par`.

    Args:
        par (ArrayLike): Full parameter vector of the model.
        data (PhenologyData): Flat dataset with measured dates.
        model (str | PhenologyModel): Model instance or registered identifier.

    Returns:
        float: RMSE over records with a measured date.

    Raises:
        EvaluationError: If the model evaluation fails.
        InsufficientDataError: If no measured date is present.
    """
    model = _resolve_model(model)
    try:
        predicted = model(par, data)
    except Exception as e:
        raise EvaluationError(
            f"Evaluation of model '{model.name}' failed at {list(np.atleast_1d(par))}: {e}"
        ) from e
    return rmse(data.transition_dates, predicted)


def _check_bounds(lower: ArrayLike, upper: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    lower = np.atleast_1d(np.asarray(lower, dtype=float))
    upper = np.atleast_1d(np.asarray(upper, dtype=float))
    if lower.shape != upper.shape or lower.ndim != 1:
        raise BoundsMismatchError(
            f"Bounds mismatch: {lower.size} lower and {upper.size} upper bounds"
        )
    if not (np.isfinite(lower).all() and np.isfinite(upper).all()):
        raise ConfigurationError("Bounds must be finite")
    if (lower > upper).any():
        bad = np.flatnonzero(lower > upper).tolist()
        raise ConfigurationError(f"Lower bound exceeds upper bound at positions {bad}")
    return lower, upper


def _check_free(x, n_free: int) -> np.ndarray:
    x = np.atleast_1d(np.asarray(x, dtype=float))
    if x.shape != (n_free,):
        raise ConstraintViolationError(
            f"Optimizer returned {x.size} free parameters, expected {n_free}"
        )
    return x


def _check_result(par: np.ndarray, lower: np.ndarray, upper: np.ndarray):
    if par.shape != lower.shape:
        raise ConstraintViolationError(
            f"Optimizer returned {par.size} parameters, expected {lower.size}"
        )
    outside = (par < lower) | (par > upper) | ~np.isfinite(par)
    if outside.any():
        raise ConstraintViolationError(
            f"Optimizer result outside bounds at positions {np.flatnonzero(outside).tolist()}: "
            f"{par.tolist()}"
        )


def _anneal(objective: Callable, bounds: list, control: AnnealControl, seed) -> tuple[np.ndarray, dict]:
    res = dual_annealing(
        objective,
        bounds=bounds,
        maxiter=control.max_iter,
        maxfun=control.max_call,
        initial_temp=control.initial_temp,
        no_local_search=control.no_local_search,
        rng=seed,
    )
    return res.x, {"nfev": int(res.nfev), "nit": int(res.nit), "message": str(res.message)}


def _genetic(objective: Callable, bounds: list, control: GeneticControl, seed) -> tuple[np.ndarray, dict]:
    res = differential_evolution(
        objective,
        bounds,
        maxiter=control.max_iter,
        popsize=control.pop_size,
        tol=control.tol,
        mutation=control.mutation,
        recombination=control.recombination,
        polish=control.polish,
        disp=False,
        workers=1,
        rng=seed,
    )
    return res.x, {
        "nfev": int(res.nfev),
        "nit": int(res.nit),
        "success": bool(res.success),
        "message": str(res.message),
    }


def _bayesian(
    objective: Callable,
    lower: np.ndarray,
    upper: np.ndarray,
    n_obs: int,
    control: BayesianControl,
    seed,
) -> tuple[np.ndarray, np.ndarray, dict]:
    ndim = lower.size
    n_walkers = control.walkers(ndim)
    tiny = np.finfo(float).tiny

    def log_prob(x):
        # uniform prior on the bounds
        if np.any(x < lower) or np.any(x > upper):
            return -np.inf
        # Gaussian likelihood with the error variance profiled out:
        # -n/2 * log(RSS / n) == -n * log(RMSE)
        value = -n_obs * np.log(max(objective(x), tiny))
        return value if np.isfinite(value) else -np.inf

    rng = np.random.default_rng(seed)
    pos = rng.uniform(lower, upper, size=(n_walkers, ndim))

    sampler = emcee.EnsembleSampler(n_walkers, ndim, log_prob)
    if seed is not None:
        sampler.random_state = np.random.RandomState(seed).get_state()
    sampler.run_mcmc(pos, control.n_steps, progress=False)

    samples = np.asarray(sampler.get_chain(discard=control.burn_in, thin=control.thin, flat=True))
    lp = np.asarray(sampler.get_log_prob(discard=control.burn_in, thin=control.thin, flat=True))
    diagnostics = {
        "n_walkers": n_walkers,
        "n_steps": control.n_steps,
        "burn_in": control.burn_in,
        "acceptance_fraction": float(np.mean(sampler.acceptance_fraction)),
    }
    return samples, lp, diagnostics


def optimize_parameters(
    model: str | PhenologyModel,
    data: PhenologyData,
    lower: ArrayLike,
    upper: ArrayLike,
    method: str | Method = "anneal",
    control: dict | ControlConfig | None = None,
    seed: int | None = None,
) -> OptimizationResult:
    """
    Find the parameters of `model` that minimize RMSE on `data`.

    Args:
        model (str | PhenologyModel): Model instance or registered identifier.
        data (PhenologyData): Flat dataset with measured dates.
        lower (ArrayLike): Lower bound per parameter.
        upper (ArrayLike): Upper bound per parameter.
        method (str | Method): "anneal", "genetic" or "bayesian".
            Defaults to "anneal".
        control (dict | ControlConfig | None): Backend settings, validated
            against the method's control class. Defaults to None.
        seed (int | None): Seed for reproducible runs. Defaults to None.

    Returns:
        OptimizationResult: `PointEstimate` for "anneal" and "genetic",
            `PosteriorEstimate` for "bayesian". The parameter vector always
            has the arity of the bounds and lies within them.

    Raises:
        BoundsMismatchError: If the bounds differ in length from each other
            or from the model's parameters.
        ConfigurationError: If a lower bound exceeds its upper bound or the
            control contains unknown options.
        UnknownModelError: If the model is not registered.
        UnknownMethodError: If the method is not known.
        InsufficientDataError: If `data` has no measured dates.
        EvaluationError: If the model fails during the search.
        ConstraintViolationError: If the backend result breaks the bounds.
    """
    method = Method.from_name(method)
    control = method.control_class.from_dict(control)
    model = _resolve_model(model)
    lower, upper = _check_bounds(lower, upper)
    if lower.size != model.n_parameters:
        raise BoundsMismatchError(
            f"Bounds mismatch: model '{model.name}' has {model.n_parameters} parameters, "
            f"{lower.size} bounds given"
        )

    n_obs = int(np.count_nonzero(data.valid))
    if n_obs == 0:
        raise InsufficientDataError("no non-missing measured transition dates")

    free = lower < upper
    logging.info(
        "Optimizing %d of %d parameters of model '%s' with %s",
        int(free.sum()), lower.size, model.name, method.value,
    )

    def expand(x):
        par = lower.copy()
        par[free] = x
        return par

    def objective(x):
        return rmse_cost(expand(x), data, model)

    if not free.any():
        par = lower.copy()
        value = rmse_cost(par, data, model)
        diagnostics = {"fixed": True}
        if method is Method.BAYESIAN:
            lp = -n_obs * np.log(max(value, np.finfo(float).tiny))
            result = PosteriorEstimate(
                par=par, method=method.value, value=value, diagnostics=diagnostics,
                samples=par[None, :], log_prob=[lp],
            )
        else:
            result = PointEstimate(par=par, method=method.value, value=value, diagnostics=diagnostics)
        _check_result(result.par, lower, upper)
        return result

    lo, hi = lower[free], upper[free]
    match method:
        case Method.ANNEAL:
            x, diagnostics = _anneal(objective, list(zip(lo, hi)), control, seed)
            par = expand(_check_free(x, lo.size))
            result = PointEstimate(
                par=par, method=method.value, value=rmse_cost(par, data, model), diagnostics=diagnostics
            )
        case Method.GENETIC:
            x, diagnostics = _genetic(objective, list(zip(lo, hi)), control, seed)
            par = expand(_check_free(x, lo.size))
            result = PointEstimate(
                par=par, method=method.value, value=rmse_cost(par, data, model), diagnostics=diagnostics
            )
        case Method.BAYESIAN:
            samples, lp, diagnostics = _bayesian(objective, lo, hi, n_obs, control, seed)
            if samples.ndim != 2 or samples.shape[1] != lo.size:
                raise ConstraintViolationError(
                    f"Sampler returned samples of shape {samples.shape}, expected (n, {lo.size})"
                )
            best = int(np.argmax(lp))
            full = np.tile(lower, (samples.shape[0], 1))
            full[:, free] = samples
            par = full[best].copy()
            result = PosteriorEstimate(
                par=par,
                method=method.value,
                value=rmse_cost(par, data, model),
                diagnostics=diagnostics,
                samples=full,
                log_prob=lp,
            )

    _check_result(result.par, lower, upper)
    logging.info("Optimization of '%s' finished, RMSE %.3f", model.name, result.value)
    return result


__all__ = ["Method", "rmse_cost", "optimize_parameters"]

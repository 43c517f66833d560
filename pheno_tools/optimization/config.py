"""Control settings for the optimizer backends.

This module provides one configuration dataclass per optimization method.
Controls are usually given as plain dictionaries (for example read from a
JSON calibration file) and validated with `from_dict`, which rejects keys
the selected method does not understand.

Typical usage example:

    from pheno_tools.optimization import Method

    control = Method.from_name("anneal").control_class.from_dict({"max_call": 5000})
"""

from dataclasses import dataclass, asdict, fields

from pheno_tools.utils.errors import ConfigurationError


@dataclass
class ControlConfig:
    """Base class for optimizer control settings."""

    @classmethod
    def from_dict(cls, data: dict | None):
        """Create a control instance from a dictionary.

        Args:
            data (dict | None): Control values keyed by field name. None or
                an empty dict gives the defaults.

        Returns:
            ControlConfig: Instance of the calling subclass.

        Raises:
            ConfigurationError: If the dictionary contains unknown keys or
                values that fail validation.
        """
        if data is None:
            return cls()
        if isinstance(data, cls):
            return data
        if isinstance(data, ControlConfig):
            raise ConfigurationError(
                f"{type(data).__name__} cannot be used where {cls.__name__} is expected"
            )

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown control options for {cls.__name__}: {sorted(unknown)}. "
                f"Valid options: {sorted(known)}"
            )
        return cls(**data)

    def to_dict(self):
        return asdict(self)

    def _require_positive(self, *names: str):
        for name in names:
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")


@dataclass
class AnnealControl(ControlConfig):
    """Control settings for generalized simulated annealing.

    Attributes:
        max_call (int): Maximum number of objective evaluations. Defaults to 2000.
        max_iter (int): Maximum number of global search iterations. Defaults to 1000.
        initial_temp (float): Initial temperature of the annealing schedule.
            Defaults to 5230.
        no_local_search (bool): Skip the local L-BFGS-B search, giving
            classical simulated annealing. Defaults to False.
    """

    max_call: int = 2000
    max_iter: int = 1000
    initial_temp: float = 5230.0
    no_local_search: bool = False

    def __post_init__(self):
        self._require_positive("max_call", "max_iter", "initial_temp")


@dataclass
class GeneticControl(ControlConfig):
    """Control settings for differential evolution.

    Attributes:
        max_iter (int): Maximum number of generations. Defaults to 100.
        pop_size (int): Population size multiplier (population is
            `pop_size * n_free_parameters`). Defaults to 15.
        tol (float): Relative convergence tolerance. Defaults to 0.01.
        mutation (float | tuple[float, float]): Differential weight, or a
            dithering range. Defaults to (0.5, 1).
        recombination (float): Crossover probability. Defaults to 0.7.
        polish (bool): Refine the best member with L-BFGS-B, a derivative
            based local search. Defaults to True.
    """

    max_iter: int = 100
    pop_size: int = 15
    tol: float = 0.01
    mutation: float | tuple[float, float] = (0.5, 1.0)
    recombination: float = 0.7
    polish: bool = True

    def __post_init__(self):
        self._require_positive("max_iter", "pop_size")
        if isinstance(self.mutation, list):
            self.mutation = tuple(self.mutation)
        if not 0 <= self.recombination <= 1:
            raise ConfigurationError(
                f"recombination must lie in [0, 1], got {self.recombination}"
            )


@dataclass
class BayesianControl(ControlConfig):
    """Control settings for affine invariant MCMC sampling.

    Attributes:
        n_walkers (int | None): Number of ensemble walkers. None uses
            `max(32, 4 * n_free_parameters)`. Must be at least twice the
            number of free parameters.
        n_steps (int): Steps per walker. Defaults to 2000.
        burn_in (int): Steps per walker discarded before collecting
            samples. Defaults to 500.
        thin (int): Keep every `thin`-th step. Defaults to 1.
    """

    n_walkers: int | None = None
    n_steps: int = 2000
    burn_in: int = 500
    thin: int = 1

    def __post_init__(self):
        self._require_positive("n_walkers", "n_steps", "thin")
        if self.burn_in < 0 or self.burn_in >= self.n_steps:
            raise ConfigurationError(
                f"burn_in must lie in [0, n_steps), got {self.burn_in} for n_steps={self.n_steps}"
            )

    def walkers(self, ndim: int) -> int:
        if self.n_walkers is None:
            return max(32, 4 * ndim)
        if self.n_walkers < 2 * ndim:
            raise ConfigurationError(
                f"n_walkers must be at least {2 * ndim} for {ndim} free parameters, "
                f"got {self.n_walkers}"
            )
        return self.n_walkers


__all__ = ["ControlConfig", "AnnealControl", "GeneticControl", "BayesianControl"]

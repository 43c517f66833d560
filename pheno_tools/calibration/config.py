"""Configuration for calibration runs.

This module provides the CalibrationConfig dataclass, which stores every
setting of a `model_calibration` call apart from the data so that a
calibration can be described in a JSON file and repeated.

Typical usage example:

    config = CalibrationConfig.from_json("tt_anneal.json")
    result = config.run(data)
"""

import json
from dataclasses import dataclass, asdict, field

from pheno_tools.optimization import Method
from pheno_tools.utils.results import CalibrationResult
from .calibration import model_calibration


@dataclass
class CalibrationConfig:
    """Settings of a single model calibration.

    Attributes:
        model (str): Registered model identifier. Defaults to "TT".
        method (str): Optimizer method. Defaults to "anneal".
        control (dict): Backend settings for the method. Defaults to {}.
        par_ranges (str | None): Path to the parameter range CSV file. None
            means the table must be passed to `run`.
        seed (int | None): Seed for reproducible optimization.
        plot (bool): Draw the diagnostic scatter. Defaults to False.

    Example:
        ```python
        config = CalibrationConfig(model="M1", method="genetic", control={"max_iter": 200})
        config.to_json("m1_genetic.json")

        loaded = CalibrationConfig.from_json("m1_genetic.json")
        ```
    """

    model: str = "TT"
    method: str = "anneal"
    control: dict = field(default_factory=dict)
    par_ranges: str | None = None
    seed: int | None = None
    plot: bool = False

    def __post_init__(self):
        # fail on unknown methods and control keys at load time
        method = Method.from_name(self.method)
        method.control_class.from_dict(self.control)
        self.method = method.value

    @classmethod
    def from_json(cls, infile: str):
        """Create a CalibrationConfig from a JSON file.

        Args:
            infile (str): Path to the JSON file.

        Returns:
            CalibrationConfig: Validated configuration.

        Raises:
            FileNotFoundError: If the file does not exist.
            json.JSONDecodeError: If the file contains invalid JSON.
            TypeError: If the file contains unknown top level keys.
            ConfigurationError: If the method or control is invalid.
        """
        with open(infile, "r") as f:
            data = json.load(f)
        return cls(**data)

    def to_json(self, outfile: str):
        """Serialize the configuration to a JSON file.

        Note:
            Uses the "+x" mode to create a new file, will fail if file already exists.
        """
        with open(outfile, "+x") as f:
            json.dump(asdict(self), f)

    def run(self, data, par_ranges=None, ax=None) -> CalibrationResult:
        """Run `model_calibration` with these settings.

        Args:
            data: Flat dataset or nested per-site records.
            par_ranges (optional): Range table overriding `self.par_ranges`.
            ax (matplotlib.axes.Axes, optional): Axes for the plot.

        Returns:
            CalibrationResult: Calibration outcome.
        """
        return model_calibration(
            model=self.model,
            data=data,
            method=self.method,
            control=self.control,
            par_ranges=par_ranges if par_ranges is not None else self.par_ranges,
            plot=self.plot,
            seed=self.seed,
            ax=ax,
        )


__all__ = ["CalibrationConfig"]

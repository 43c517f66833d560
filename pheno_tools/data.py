"""
# Observation Data

Containers for phenological observations and the driver series consumed
by the phenology models.

## Classes

- `PhenologyData`: Flat dataset, one column per site-year record
- `SiteData`: Nested per-site container with one column per year

## Functions

- `flat_format`: Normalize nested site records into a `PhenologyData`

## Example Usage

```python
import numpy as np
from pheno_tools.data import SiteData, flat_format

doy = np.arange(-110, 255)
site = SiteData(
    site="harvard",
    doy=doy,
    year=np.array([2010, 2011]),
    transition_dates=np.array([128.0, 121.0]),
    Ti=np.random.default_rng(1).normal(8, 5, (len(doy), 2)),
    Li=np.full((len(doy), 2), 12.0),
)

data = flat_format([site])
print(data.n_records)  # 2
```
"""

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np
import pandas as pd


def _as_matrix(values, n_days: int, n_cols: int, name: str) -> np.ndarray:
    arr = np.array(values, dtype=float)
    if arr.ndim == 1:
        # a single series shared by every record (e.g. daylength at one site)
        arr = np.repeat(arr[:, None], n_cols, axis=1)
    if arr.shape != (n_days, n_cols):
        raise ValueError(
            f"{name} must have shape ({n_days}, {n_cols}), got {arr.shape}"
        )
    return arr


@dataclass(frozen=True)
class PhenologyData:
    """
    Flat phenology dataset.

    Every column of the driver matrices corresponds to one site-year record
    and to one entry of `transition_dates`. All records share the same
    day-of-year axis `doy`, which may start in the previous calendar year
    (negative values).

    Attributes:
        doy (np.ndarray): Day-of-year axis, shape (n_days,).
        transition_dates (np.ndarray): Measured transition dates, shape
            (n_records,). Missing observations are NaN.
        Ti (np.ndarray): Daily mean temperature in °C, shape (n_days, n_records).
        Li (np.ndarray): Daylength in hours, shape (n_days, n_records).
        site (np.ndarray): Site name per record.
        year (np.ndarray): Year per record.
    """
    doy: np.ndarray
    transition_dates: np.ndarray
    Ti: np.ndarray
    Li: np.ndarray
    site: np.ndarray = field(default=None)
    year: np.ndarray = field(default=None)

    def __post_init__(self):
        doy = np.array(self.doy, dtype=int)
        dates = np.array(self.transition_dates, dtype=float)
        if doy.ndim != 1 or dates.ndim != 1:
            raise ValueError("doy and transition_dates must be one dimensional")

        n_days, n_records = len(doy), len(dates)
        Ti = _as_matrix(self.Ti, n_days, n_records, "Ti")
        Li = _as_matrix(self.Li, n_days, n_records, "Li")

        site = self.site
        site = np.full(n_records, "", dtype=object) if site is None else np.array(site, dtype=object)
        year = self.year
        year = np.zeros(n_records, dtype=int) if year is None else np.array(year, dtype=int)
        if len(site) != n_records or len(year) != n_records:
            raise ValueError("site and year must have one entry per record")

        for arr in (doy, dates, Ti, Li, site, year):
            arr.flags.writeable = False

        # frozen dataclass, bypass __setattr__ for the normalized arrays
        object.__setattr__(self, "doy", doy)
        object.__setattr__(self, "transition_dates", dates)
        object.__setattr__(self, "Ti", Ti)
        object.__setattr__(self, "Li", Li)
        object.__setattr__(self, "site", site)
        object.__setattr__(self, "year", year)

    @property
    def n_records(self) -> int:
        return len(self.transition_dates)

    @property
    def valid(self) -> np.ndarray:
        """Boolean mask of records with a measured transition date."""
        return ~np.isnan(self.transition_dates)

    def subset(self, index) -> "PhenologyData":
        """
        Select a subset of records.

        Args:
            index: Any numpy index (boolean mask, integer positions or slice)
                along the record axis.

        Returns:
            PhenologyData: New dataset sharing the day-of-year axis.
        """
        return PhenologyData(
            doy=self.doy,
            transition_dates=self.transition_dates[index],
            Ti=self.Ti[:, index],
            Li=self.Li[:, index],
            site=self.site[index],
            year=self.year[index],
        )

    def to_frame(self) -> pd.DataFrame:
        """Record metadata and measured dates as a DataFrame."""
        return pd.DataFrame({
            "site": self.site,
            "year": self.year,
            "transition_date": self.transition_dates,
        })


@dataclass
class SiteData:
    """
    Observations for one site across several years.

    This is the nested layout produced by site-level formatting tools. The
    driver matrices hold one column per year; daylength may be given as a
    single series when it does not change between years.

    Attributes:
        site (str): Site name.
        doy (np.ndarray): Day-of-year axis, shape (n_days,).
        year (np.ndarray): Years, shape (n_years,).
        transition_dates (np.ndarray): Measured dates, shape (n_years,).
        Ti (np.ndarray): Temperature, shape (n_days, n_years).
        Li (np.ndarray): Daylength, shape (n_days,) or (n_days, n_years).
    """
    site: str
    doy: np.ndarray
    year: np.ndarray
    transition_dates: np.ndarray
    Ti: np.ndarray
    Li: np.ndarray


def flat_format(data: PhenologyData | SiteData | Iterable[SiteData]) -> PhenologyData:
    """
    Normalize a dataset into the flat record format used for calibration.

    Args:
        data (PhenologyData | SiteData | Iterable[SiteData]): Either an
            already flat dataset (returned unchanged), a single site, or a
            sequence of sites sharing the same day-of-year axis.

    Returns:
        PhenologyData: Flat dataset with sites concatenated in input order.

    Raises:
        ValueError: If no sites are given or their day-of-year axes differ.
    """
    if isinstance(data, PhenologyData):
        return data
    if isinstance(data, SiteData):
        data = [data]

    sites = list(data)
    if not sites:
        raise ValueError("no site data provided")

    doy = np.asarray(sites[0].doy, dtype=int)
    dates, Ti, Li, names, years = [], [], [], [], []
    for s in sites:
        if not np.array_equal(np.asarray(s.doy, dtype=int), doy):
            raise ValueError(f"site {s.site} uses a different day-of-year axis")
        n = len(np.atleast_1d(s.transition_dates))
        dates.append(np.atleast_1d(np.asarray(s.transition_dates, dtype=float)))
        Ti.append(_as_matrix(s.Ti, len(doy), n, "Ti"))
        Li.append(_as_matrix(s.Li, len(doy), n, "Li"))
        names.extend([s.site] * n)
        years.append(np.atleast_1d(np.asarray(s.year, dtype=int)))

    return PhenologyData(
        doy=doy,
        transition_dates=np.concatenate(dates),
        Ti=np.hstack(Ti),
        Li=np.hstack(Li),
        site=np.array(names, dtype=object),
        year=np.concatenate(years),
    )


__all__ = ["PhenologyData", "SiteData", "flat_format"]

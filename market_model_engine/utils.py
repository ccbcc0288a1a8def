from __future__ import annotations

import math

import numpy as np
import pandas as pd
from typing import Iterable

from .exceptions import ConstructionError, NonFiniteValueError


def yearfrac(start: pd.Timestamp, end: pd.Timestamp, convention: str) -> float:
    """
    Year fraction between two dates under a day count convention.

    Supported:
    - ACT/365, ACT/365F
    - ACT/360
    - 30/360, 30/360US (US bond basis)
    """
    start = pd.Timestamp(start)
    end = pd.Timestamp(end)

    convention = convention.upper().replace(" ", "")
    if end < start:
        raise ValueError(f"end < start: {start=} {end=}")

    if convention in ("ACT/365", "ACT/365F"):
        return (end - start).days / 365.0

    if convention == "ACT/360":
        return (end - start).days / 360.0

    if convention in ("30/360", "30/360US"):
        y1, m1, d1 = start.year, start.month, start.day
        y2, m2, d2 = end.year, end.month, end.day

        if d1 == 31:
            d1 = 30
        if d2 == 31 and d1 == 30:
            d2 = 30

        return ((y2 - y1) * 360 + (m2 - m1) * 30 + (d2 - d1)) / 360.0

    raise ValueError(f"Unsupported day count convention: {convention}")


def rate_times_from_dates(
    val_date: pd.Timestamp,
    dates: Iterable[pd.Timestamp],
    day_count: str = "ACT/365",
) -> np.ndarray:
    """Year fractions from val_date to each date, in the given order."""
    val_date = pd.Timestamp(val_date)
    taus = np.array([yearfrac(val_date, pd.Timestamp(d), day_count) for d in dates], dtype=float)
    if np.any(taus <= 0.0):
        raise ConstructionError("All grid dates must be after the valuation date.")
    return taus


def as_time_grid(values: Iterable[float], name: str) -> np.ndarray:
    """Copy to a read-only float array, rejecting empty, non-finite or non-increasing grids."""
    grid = np.array(list(values), dtype=float)
    if grid.ndim != 1 or grid.size == 0:
        raise ConstructionError(f"{name} must be a non-empty 1D sequence.")
    if not np.all(np.isfinite(grid)):
        raise ConstructionError(f"{name} contains non-finite entries.")
    if grid[0] < 0.0:
        raise ConstructionError(f"{name} must start at or after time zero.")
    if np.any(np.diff(grid) <= 0.0):
        raise ConstructionError(f"{name} must be strictly increasing.")
    grid.setflags(write=False)
    return grid


def require_finite(value: float, what: str) -> float:
    if not math.isfinite(value):
        raise NonFiniteValueError(f"Non-finite {what}: {value!r}")
    return value

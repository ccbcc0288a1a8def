from __future__ import annotations

import numpy as np
from dataclasses import dataclass, field
from typing import Iterable

from .exceptions import ConstructionError, NonFiniteValueError
from .utils import as_time_grid


@dataclass(frozen=True)
class ForwardRateCurveState:
    """
    Snapshot of simply compounded forward rates f_0..f_{N-1} on a rate grid
    T_0..T_N, with f_i accruing over [T_i, T_{i+1}].

    Discount bonds are stored relative to T_0:
        P(T_{i+1}) / P(T_i) = 1 / (1 + tau_i f_i)

    so any ratio between grid dates is available without a short-end curve.
    """
    rate_times: np.ndarray
    forwards: np.ndarray
    _bonds: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        rate_times = as_time_grid(self.rate_times, "rate_times")
        forwards = np.array(self.forwards, dtype=float)
        if forwards.ndim != 1 or forwards.size != rate_times.size - 1:
            raise ConstructionError(
                f"Need {rate_times.size - 1} forwards for {rate_times.size} rate times, got {forwards.size}."
            )
        if not np.all(np.isfinite(forwards)):
            raise NonFiniteValueError("Curve state contains non-finite forwards.")

        growth = 1.0 + np.diff(rate_times) * forwards
        if np.any(growth <= 0.0):
            raise ConstructionError("1 + tau * f must be positive for every forward rate.")

        bonds = np.empty(rate_times.size, dtype=float)
        bonds[0] = 1.0
        bonds[1:] = np.cumprod(1.0 / growth)

        forwards.setflags(write=False)
        bonds.setflags(write=False)
        object.__setattr__(self, "rate_times", rate_times)
        object.__setattr__(self, "forwards", forwards)
        object.__setattr__(self, "_bonds", bonds)

    @classmethod
    def from_discount_factors(cls, rate_times: Iterable[float], discount_factors: Iterable[float]) -> "ForwardRateCurveState":
        """Forwards implied by discount factors on the rate grid (any common scaling)."""
        rt = np.asarray(list(rate_times), dtype=float)
        dfs = np.asarray(list(discount_factors), dtype=float)
        if dfs.shape != rt.shape:
            raise ConstructionError("rate_times and discount_factors must have the same length.")
        if np.any(dfs <= 0.0):
            raise ConstructionError("Discount factors must be positive.")
        forwards = (dfs[:-1] / dfs[1:] - 1.0) / np.diff(rt)
        return cls(rt, forwards)

    @property
    def number_of_rates(self) -> int:
        return self.forwards.size

    def discount_bonds(self) -> np.ndarray:
        """P(T_i) / P(T_0) for every rate time."""
        return self._bonds

    def forward_rate(self, i: int) -> float:
        return float(self.forwards[i])

    def discount_ratio(self, from_index: int, to_index: int) -> float:
        """Forward discount factor P(T_to) / P(T_from)."""
        last = self._bonds.size - 1
        if not (0 <= from_index <= last and 0 <= to_index <= last):
            raise IndexError(f"discount_ratio({from_index}, {to_index}) outside rate grid [0, {last}]")
        if from_index == to_index:
            return 1.0
        return float(self._bonds[to_index] / self._bonds[from_index])

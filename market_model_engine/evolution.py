from __future__ import annotations

import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .exceptions import ConstructionError
from .utils import as_time_grid, rate_times_from_dates


@dataclass(frozen=True)
class EvolutionDescription:
    """
    Rate grid, evolution steps and the numeraire bond used at each step.

    - rate_times: N+1 strictly increasing times T_0..T_N bounding N forward rates.
    - evolution_times: one time per step, strictly increasing, none after T_N.
      Defaults to T_0..T_{N-1}.
    - numeraires: index into rate_times of the numeraire bond per step, plus
      one trailing entry read as the lookahead after the last step.
      Defaults to the money-market (spot) measure.

    Immutable after construction, safe to share across workers.
    """
    rate_times: np.ndarray
    evolution_times: Optional[np.ndarray] = None
    numeraires: Optional[np.ndarray] = None
    _numeraires_tuple: tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        rate_times = as_time_grid(self.rate_times, "rate_times")
        if rate_times.size < 2:
            raise ConstructionError("rate_times needs at least two entries (one forward rate).")

        if self.evolution_times is None:
            evolution_times = as_time_grid(rate_times[:-1], "evolution_times")
        else:
            evolution_times = as_time_grid(self.evolution_times, "evolution_times")
        if evolution_times[-1] > rate_times[-1]:
            raise ConstructionError("evolution_times must not extend beyond the last rate time.")

        if self.numeraires is None:
            numeraires = money_market_measure(evolution_times, rate_times)
        else:
            raw = np.asarray(list(self.numeraires), dtype=float)
            if not np.all(np.isfinite(raw)) or not np.array_equal(raw, np.round(raw)):
                raise ConstructionError(f"numeraire indices must be whole numbers, got {list(self.numeraires)}.")
            numeraires = raw.astype(int)
        if numeraires.ndim != 1 or numeraires.size != evolution_times.size + 1:
            raise ConstructionError(
                f"numeraires must have number_of_steps + 1 = {evolution_times.size + 1} entries, "
                f"got {numeraires.size}."
            )
        if np.any(numeraires < 0) or np.any(numeraires > rate_times.size - 1):
            raise ConstructionError(f"numeraire indices must lie in [0, {rate_times.size - 1}].")
        numeraires.setflags(write=False)

        object.__setattr__(self, "rate_times", rate_times)
        object.__setattr__(self, "evolution_times", evolution_times)
        object.__setattr__(self, "numeraires", numeraires)
        object.__setattr__(self, "_numeraires_tuple", tuple(int(n) for n in numeraires))

    @property
    def number_of_rates(self) -> int:
        return self.rate_times.size - 1

    @property
    def number_of_steps(self) -> int:
        return self.evolution_times.size

    @property
    def rate_taus(self) -> np.ndarray:
        return np.diff(self.rate_times)

    def numeraire_at(self, step: int) -> int:
        """Plain-int lookup; raises IndexError outside [0, number_of_steps]."""
        if step < 0:
            raise IndexError(step)
        return self._numeraires_tuple[step]

    def first_alive_rate(self, step: int) -> int:
        """Index of the first forward rate not yet fixed at the end of ``step``."""
        return int(np.searchsorted(self.rate_times, self.evolution_times[step], side="left"))

    @classmethod
    def from_dates(
        cls,
        val_date: pd.Timestamp,
        rate_dates: Iterable[pd.Timestamp],
        evolution_dates: Optional[Iterable[pd.Timestamp]] = None,
        numeraires: Optional[Sequence[int]] = None,
        day_count: str = "ACT/365",
    ) -> "EvolutionDescription":
        rate_times = rate_times_from_dates(val_date, rate_dates, day_count)
        evolution_times = None
        if evolution_dates is not None:
            evolution_times = rate_times_from_dates(val_date, evolution_dates, day_count)
        return cls(rate_times, evolution_times, numeraires)


def money_market_measure(evolution_times: Iterable[float], rate_times: Iterable[float]) -> np.ndarray:
    """
    Discretely compounded money-market account: at each step the numeraire is
    the first bond maturing at or after the step time. The trailing lookahead
    entry repeats the last step's numeraire.
    """
    ev = np.asarray(list(evolution_times), dtype=float)
    rt = np.asarray(list(rate_times), dtype=float)
    idx = np.searchsorted(rt, ev, side="left").astype(int)
    if np.any(idx > rt.size - 1):
        raise ConstructionError("evolution time beyond the last rate time.")
    return np.append(idx, idx[-1])


def terminal_measure(evolution: EvolutionDescription) -> np.ndarray:
    """Numeraire fixed on the longest bond T_N for every step."""
    return np.full(evolution.number_of_steps + 1, evolution.number_of_rates, dtype=int)


def check_numeraire_compatibility(evolution: EvolutionDescription) -> None:
    """Raise if any step's numeraire bond has matured before the step time."""
    for step in range(evolution.number_of_steps):
        n = evolution.numeraire_at(step)
        if evolution.rate_times[n] < evolution.evolution_times[step]:
            raise ConstructionError(
                f"step {step}: numeraire bond {n} matures at {evolution.rate_times[n]} "
                f"before the step time {evolution.evolution_times[step]}."
            )

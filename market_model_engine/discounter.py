from __future__ import annotations

import numpy as np
from dataclasses import dataclass
from typing import Iterable, List, TYPE_CHECKING

from .exceptions import ConstructionError

if TYPE_CHECKING:
    from .interfaces import CurveState


@dataclass(frozen=True, init=False)
class Discounter:
    """
    Converts a unit cash flow paid at a fixed time into numeraire bonds.

    value_in_bonds = P(t, T_pay) / P(t, T_numeraire)

    Between rate times the discount factor is interpolated log-linearly,
    with weight w on the bracketing rate time T_b <= T_pay:

        w = 1 - (T_pay - T_b) / (T_{b+1} - T_b)
        P(T_pay) = P(T_b)^w * P(T_{b+1})^(1 - w)

    Payment times outside [T_0, T_N] are rejected: there is no extrapolation.
    """

    payment_time: float
    before: int
    before_weight: float

    def __init__(self, payment_time: float, rate_times: Iterable[float]):
        rt = np.asarray(list(rate_times), dtype=float)
        payment_time = float(payment_time)

        if not np.isfinite(payment_time):
            raise ConstructionError(f"Non-finite payment time: {payment_time!r}")
        if rt.size < 2:
            raise ConstructionError("rate_times needs at least two entries.")
        if payment_time < rt[0]:
            raise ConstructionError(f"Payment time {payment_time} before first rate time {rt[0]}.")
        if payment_time > rt[-1]:
            raise ConstructionError(
                f"Payment time {payment_time} beyond last rate time {rt[-1]} (no long-end extrapolation)."
            )

        before = int(np.searchsorted(rt, payment_time, side="right")) - 1
        if before == rt.size - 1 or payment_time == rt[before]:
            weight = 1.0
        else:
            weight = 1.0 - (payment_time - rt[before]) / (rt[before + 1] - rt[before])

        object.__setattr__(self, "payment_time", payment_time)
        object.__setattr__(self, "before", before)
        object.__setattr__(self, "before_weight", weight)

    def value_in_bonds(self, curve_state: CurveState, numeraire: int) -> float:
        pre = curve_state.discount_ratio(numeraire, self.before)
        if self.before_weight == 1.0:
            return pre
        post = curve_state.discount_ratio(numeraire, self.before + 1)
        return pre ** self.before_weight * post ** (1.0 - self.before_weight)

    def __repr__(self) -> str:
        return f"Discounter(payment_time={self.payment_time!r})"


def build_discounters(cash_flow_times: Iterable[float], rate_times: Iterable[float]) -> List[Discounter]:
    """One discounter per possible cash-flow time, in the same order."""
    rt = np.asarray(list(rate_times), dtype=float)
    return [Discounter(t, rt) for t in cash_flow_times]

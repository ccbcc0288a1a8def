from __future__ import annotations

import numpy as np
import pandas as pd
from typing import Dict, List, NamedTuple, Sequence, Tuple, TYPE_CHECKING

from .exceptions import ConstructionError

if TYPE_CHECKING:
    from .interfaces import CurveState


class CashFlow(NamedTuple):
    """Amount paid at possible_cash_flow_times()[time_index]. Negative amounts are outflows."""
    time_index: int
    amount: float


SCHEDULE_COLUMNS = ["product", "step", "time_index", "amount"]


class ScheduledCashFlowProduct:
    """
    Deterministic product: every flow is fixed in advance by (product, step).

    The schedule is a DataFrame with columns product, step, time_index, amount.
    Steps are 0-based and counted by the product itself; the path is complete
    after step number_of_steps - 1.
    """

    def __init__(
        self,
        schedule: pd.DataFrame,
        cash_flow_times: Sequence[float],
        number_of_steps: int,
        number_of_products: int = 1,
    ):
        missing = set(SCHEDULE_COLUMNS) - set(schedule.columns)
        if missing:
            raise ConstructionError(f"Schedule missing columns: {sorted(missing)}")
        if number_of_steps <= 0:
            raise ConstructionError("number_of_steps must be positive.")
        if number_of_products <= 0:
            raise ConstructionError("number_of_products must be positive.")

        times = np.asarray(list(cash_flow_times), dtype=float)
        times.setflags(write=False)

        df = schedule[SCHEDULE_COLUMNS].copy()
        df["product"] = df["product"].astype(int)
        df["step"] = df["step"].astype(int)
        df["time_index"] = df["time_index"].astype(int)
        df["amount"] = df["amount"].astype(float)

        if ((df["product"] < 0) | (df["product"] >= number_of_products)).any():
            raise ConstructionError("Schedule references an unknown product.")
        if ((df["step"] < 0) | (df["step"] >= number_of_steps)).any():
            raise ConstructionError("Schedule references a step outside the evolution.")
        if ((df["time_index"] < 0) | (df["time_index"] >= times.size)).any():
            raise ConstructionError("Schedule references an unknown cash-flow time.")
        if not np.all(np.isfinite(df["amount"].to_numpy())):
            raise ConstructionError("Schedule contains non-finite amounts.")

        flows: Dict[Tuple[int, int], List[CashFlow]] = {}
        for r in df.itertuples(index=False):
            key = (int(r.step), int(r.product))
            flows.setdefault(key, []).append(CashFlow(int(r.time_index), float(r.amount)))

        self._times = times
        self._number_of_steps = int(number_of_steps)
        self._number_of_products = int(number_of_products)
        self._flows = flows
        self._max_per_step = max((len(v) for v in flows.values()), default=0)
        self._current_step = 0

    def number_of_products(self) -> int:
        return self._number_of_products

    def max_cash_flows_per_product_per_step(self) -> int:
        return self._max_per_step

    def possible_cash_flow_times(self) -> np.ndarray:
        return self._times

    def reset(self) -> None:
        self._current_step = 0

    def next_step(
        self,
        curve_state: CurveState,
        counts: np.ndarray,
        cash_flows: List[List[CashFlow]],
    ) -> bool:
        step = self._current_step
        for i in range(self._number_of_products):
            generated = self._flows.get((step, i), ())
            counts[i] = len(generated)
            for j, cf in enumerate(generated):
                cash_flows[i][j] = cf
        self._current_step += 1
        return self._current_step >= self._number_of_steps

"""
Single-path accounting for market-model Monte Carlo.

Every cash flow is converted into numeraire bonds when it is generated. The
holdings are kept in units of the *initial* numeraire portfolio: whenever the
numeraire changes between steps, the portfolio is rolled into the next
numeraire bond (self-financing, value unchanged) and the principal tracks how
many bonds of the current numeraire one original unit is worth.
"""

from __future__ import annotations

import logging
import math
import operator

import numpy as np
from typing import List, Optional, Tuple

from .config import EngineSettings
from .discounter import Discounter, build_discounters
from .evolution import EvolutionDescription
from .exceptions import (
    CashFlowBufferError,
    ConstructionError,
    DiscounterLookupError,
    NumeraireIndexError,
    StepOverflowError,
)
from .interfaces import MarketModelEvolver, MarketModelProduct
from .products import CashFlow
from .utils import require_finite

logger = logging.getLogger(__name__)


class AccountingEngine:
    """
    Values one path of a multi-product market-model product.

    The evolver, product and evolution description are shared handles: the
    engine reads them but never replaces them. Scratch buffers are owned by
    the engine and reused across paths, so one instance must not run two
    paths at the same time.
    """

    def __init__(
        self,
        evolver: MarketModelEvolver,
        product: MarketModelProduct,
        evolution: EvolutionDescription,
        initial_numeraire_value: float,
        settings: Optional[EngineSettings] = None,
    ):
        if evolver is None or product is None or evolution is None:
            raise ConstructionError("evolver, product and evolution are all required.")

        initial_numeraire_value = float(initial_numeraire_value)
        if not math.isfinite(initial_numeraire_value) or initial_numeraire_value <= 0.0:
            raise ConstructionError(
                f"initial_numeraire_value must be finite and positive, got {initial_numeraire_value!r}"
            )

        n_products = int(product.number_of_products())
        if n_products <= 0:
            raise ConstructionError("product must declare at least one product.")
        capacity = int(product.max_cash_flows_per_product_per_step())
        if capacity < 0:
            raise ConstructionError("max_cash_flows_per_product_per_step must be non-negative.")

        self.evolver = evolver
        self.product = product
        self.evolution = evolution
        self.initial_numeraire_value = initial_numeraire_value
        self.settings = settings if settings is not None else EngineSettings()

        self.number_of_products = n_products
        self.max_steps = self.settings.max_steps or evolution.number_of_steps

        self.discounters: Tuple[Discounter, ...] = tuple(
            build_discounters(product.possible_cash_flow_times(), evolution.rate_times)
        )

        self.numeraires_held = np.zeros(n_products, dtype=float)
        self._cash_flow_counts = np.zeros(n_products, dtype=int)
        self._cash_flows: List[List[CashFlow]] = [
            [CashFlow(0, 0.0)] * capacity for _ in range(n_products)
        ]

        logger.debug(
            "AccountingEngine: %d products, %d cash-flow times, capacity %d, max_steps %d",
            n_products, len(self.discounters), capacity, self.max_steps,
        )

    def _numeraire(self, step: int) -> int:
        try:
            return self.evolution.numeraire_at(step)
        except IndexError:
            raise NumeraireIndexError(
                f"no numeraire for step {step}; evolution has {len(self.evolution.numeraires)} entries"
            ) from None

    def _discounter(self, time_index: int) -> Discounter:
        try:
            time_index = operator.index(time_index)
        except TypeError:
            raise DiscounterLookupError(
                f"cash-flow time index must be an integer, got {time_index!r}"
            ) from None
        if not 0 <= time_index < len(self.discounters):
            raise DiscounterLookupError(
                f"cash-flow time index {time_index} outside [0, {len(self.discounters)})"
            )
        return self.discounters[time_index]

    def single_path_values(self, out_values: np.ndarray) -> float:
        """
        Run one path, write each product's value into ``out_values`` and
        return the path weight for the caller's weighted averaging.
        """
        if len(out_values) != self.number_of_products:
            raise ConstructionError(
                f"out_values must have {self.number_of_products} entries, got {len(out_values)}"
            )

        check = self.settings.check_finite
        held = self.numeraires_held
        counts = self._cash_flow_counts
        cash_flows = self._cash_flows

        held.fill(0.0)
        weight = self.evolver.start_new_path()
        self.product.reset()
        principal = 1.0

        done = False
        steps_taken = 0
        while not done:
            if steps_taken >= self.max_steps:
                raise StepOverflowError(
                    f"product did not complete within {self.max_steps} steps"
                )
            weight *= self.evolver.advance_step()
            if check:
                require_finite(weight, "path weight")
            steps_taken += 1

            curve_state = self.evolver.current_state()
            counts.fill(0)
            done = self.product.next_step(curve_state, counts, cash_flows)

            step = self.evolver.current_step()
            numeraire = self._numeraire(step)

            for i in range(self.number_of_products):
                n_flows = int(counts[i])
                if n_flows < 0 or n_flows > len(cash_flows[i]):
                    raise CashFlowBufferError(
                        f"product {i} reported {n_flows} cash flows, capacity is {len(cash_flows[i])}"
                    )
                for j in range(n_flows):
                    cf = cash_flows[i][j]
                    bonds = cf.amount * self._discounter(cf.time_index).value_in_bonds(curve_state, numeraire)
                    if check:
                        require_finite(bonds, f"bond value of product {i} flow {j}")
                    held[i] += bonds / principal

            if not done:
                # roll the numeraire portfolio into next step's numeraire bond
                next_numeraire = self._numeraire(step + 1)
                principal *= curve_state.discount_ratio(next_numeraire, numeraire)
                if check:
                    require_finite(principal, "numeraire principal")

        out_values[:] = held * self.initial_numeraire_value
        logger.debug("path complete after %d steps, weight %g", steps_taken, weight)
        return weight

    def path_values(self) -> Tuple[np.ndarray, float]:
        values = np.empty(self.number_of_products, dtype=float)
        weight = self.single_path_values(values)
        return values, weight

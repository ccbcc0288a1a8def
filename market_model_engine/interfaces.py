"""
Protocol-based contracts for the collaborators the accounting engine drives.

Any class implementing the listed methods can be injected into the engine
without inheriting from anything here (structural subtyping). The engine only
reads through these methods and never replaces a collaborator.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence, runtime_checkable

import numpy as np

from .products import CashFlow


@runtime_checkable
class CurveState(Protocol):
    """Immutable snapshot of the forward-rate curve after one evolution step."""

    def discount_ratio(self, from_index: int, to_index: int) -> float:
        """
        Forward discount factor P(t, T_to) / P(t, T_from) between two
        rate-grid dates. Must be exactly 1.0 when the indices are equal.
        """
        ...


@runtime_checkable
class MarketModelEvolver(Protocol):
    """Advances the simulated curve one step at a time. Holds mutable path state."""

    def start_new_path(self) -> float:
        """Reset to time zero and return the initial path weight."""
        ...

    def advance_step(self) -> float:
        """Evolve one step and return that step's weight factor."""
        ...

    def current_state(self) -> CurveState:
        ...

    def current_step(self) -> int:
        """0-based index of the step just completed."""
        ...


@runtime_checkable
class MarketModelProduct(Protocol):
    """Emits cash flows per step for one or more products sharing an evolution."""

    def number_of_products(self) -> int:
        ...

    def max_cash_flows_per_product_per_step(self) -> int:
        ...

    def possible_cash_flow_times(self) -> Sequence[float]:
        ...

    def reset(self) -> None:
        ...

    def next_step(
        self,
        curve_state: CurveState,
        counts: np.ndarray,
        cash_flows: List[List[CashFlow]],
    ) -> bool:
        """
        Write this step's flows into the caller's buffers and return True
        once the path is complete.

        ``counts[i]`` must be set for every product i, including zero, and
        only the first ``counts[i]`` slots of ``cash_flows[i]`` are read.
        """
        ...

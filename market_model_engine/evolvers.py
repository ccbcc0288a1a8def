from __future__ import annotations

import logging

import numpy as np
from typing import Iterable, List, Optional, Sequence

from .curves import ForwardRateCurveState
from .evolution import EvolutionDescription, check_numeraire_compatibility
from .exceptions import ConstructionError, StepOverflowError
from .interfaces import CurveState

logger = logging.getLogger(__name__)


class ScriptedEvolver:
    """
    Replays a fixed sequence of curve states, one per step, with optional
    per-step weight factors. Every path is identical.
    """

    def __init__(
        self,
        states: Sequence[CurveState],
        weights: Optional[Sequence[float]] = None,
        initial_weight: float = 1.0,
    ):
        if len(states) == 0:
            raise ConstructionError("ScriptedEvolver needs at least one state.")
        if weights is None:
            weights = [1.0] * len(states)
        if len(weights) != len(states):
            raise ConstructionError("weights and states must have the same length.")
        self._states: List[CurveState] = list(states)
        self._weights = [float(w) for w in weights]
        self._initial_weight = float(initial_weight)
        self._step = -1

    def start_new_path(self) -> float:
        self._step = -1
        return self._initial_weight

    def advance_step(self) -> float:
        if self._step + 1 >= len(self._states):
            raise StepOverflowError(f"ScriptedEvolver exhausted after {len(self._states)} steps.")
        self._step += 1
        return self._weights[self._step]

    def current_state(self) -> CurveState:
        if self._step < 0:
            raise StepOverflowError("No step taken yet on this path.")
        return self._states[self._step]

    def current_step(self) -> int:
        return self._step


class LogNormalForwardEvolver:
    """
    Lognormal forward-rate evolution, log-Euler scheme with the drift taken
    at the start of each step.

    Under the measure of numeraire bond P(T_n), with
    g_j = tau_j sigma_j f_j / (1 + tau_j f_j):

        k >= n:  mu_k =  sigma_k * sum_{j=n}^{k}     rho_kj g_j
        k <  n:  mu_k = -sigma_k * sum_{j=k+1}^{n-1} rho_kj g_j

        f_k <- f_k * exp((mu_k - sigma_k^2 / 2) dt + sigma_k sqrt(dt) Z_k)

    The numeraire for each step comes from the evolution description. Rates
    fixed before the end of a step are frozen. Path weights are always 1.
    """

    def __init__(
        self,
        evolution: EvolutionDescription,
        initial_forwards: Iterable[float],
        volatilities: Iterable[float],
        correlation: Optional[np.ndarray] = None,
        seed: Optional[int] = None,
    ):
        check_numeraire_compatibility(evolution)
        n_rates = evolution.number_of_rates

        f0 = np.asarray(list(initial_forwards), dtype=float)
        if f0.shape != (n_rates,):
            raise ConstructionError(f"Need {n_rates} initial forwards, got {f0.size}.")

        vols = np.asarray(list(volatilities), dtype=float)
        if vols.ndim == 1:
            vols = np.tile(vols, (evolution.number_of_steps, 1))
        if vols.shape != (evolution.number_of_steps, n_rates):
            raise ConstructionError(
                f"volatilities must have shape ({n_rates},) or ({evolution.number_of_steps}, {n_rates})."
            )
        if np.any(vols < 0.0) or not np.all(np.isfinite(vols)):
            raise ConstructionError("volatilities must be finite and non-negative.")

        if correlation is None:
            correlation = np.eye(n_rates)
        rho = np.asarray(correlation, dtype=float)
        if rho.shape != (n_rates, n_rates):
            raise ConstructionError(f"correlation must be {n_rates}x{n_rates}.")
        try:
            chol = np.linalg.cholesky(rho)
        except np.linalg.LinAlgError as exc:
            raise ConstructionError("correlation matrix is not positive definite.") from exc

        self.evolution = evolution
        self._f0 = f0
        self._vols = vols
        self._rho = rho
        self._chol = chol
        self._taus = evolution.rate_taus
        self._alive = [evolution.first_alive_rate(s) for s in range(evolution.number_of_steps)]
        self._rng = np.random.default_rng(seed)

        self._forwards = f0.copy()
        self._state = ForwardRateCurveState(evolution.rate_times, f0)
        self._step = -1
        logger.debug(
            "LogNormalForwardEvolver: %d rates, %d steps, seed=%s",
            n_rates, evolution.number_of_steps, seed,
        )

    def start_new_path(self) -> float:
        self._forwards = self._f0.copy()
        self._state = ForwardRateCurveState(self.evolution.rate_times, self._forwards)
        self._step = -1
        return 1.0

    def _drifts(self, step: int, alive: int) -> np.ndarray:
        n = self.evolution.numeraire_at(step)
        f = self._forwards
        sigma = self._vols[step]
        g = self._taus * sigma * f / (1.0 + self._taus * f)

        mu = np.zeros_like(f)
        for k in range(alive, f.size):
            if k >= n:
                mu[k] = sigma[k] * np.dot(self._rho[k, n:k + 1], g[n:k + 1])
            else:
                mu[k] = -sigma[k] * np.dot(self._rho[k, k + 1:n], g[k + 1:n])
        return mu

    def advance_step(self) -> float:
        step = self._step + 1
        if step >= self.evolution.number_of_steps:
            raise StepOverflowError(
                f"LogNormalForwardEvolver has only {self.evolution.number_of_steps} steps."
            )

        t_start = self.evolution.evolution_times[step - 1] if step > 0 else 0.0
        dt = self.evolution.evolution_times[step] - t_start
        alive = self._alive[step]

        mu = self._drifts(step, alive)
        sigma = self._vols[step]
        z = self._chol @ self._rng.standard_normal(self._forwards.size)

        log_growth = (mu - 0.5 * sigma ** 2) * dt + sigma * np.sqrt(dt) * z
        self._forwards[alive:] = self._forwards[alive:] * np.exp(log_growth[alive:])

        self._state = ForwardRateCurveState(self.evolution.rate_times, self._forwards)
        self._step = step
        return 1.0

    def current_state(self) -> ForwardRateCurveState:
        return self._state

    def current_step(self) -> int:
        return self._step

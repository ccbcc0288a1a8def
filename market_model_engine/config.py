"""
Frozen engine settings.

Settings are immutable so a run can be reproduced from its configuration.
The iteration cap can be overridden with the MARKET_MODEL_MAX_STEPS
environment variable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConstructionError

MAX_STEPS_ENV_VAR = "MARKET_MODEL_MAX_STEPS"


def _resolve_max_steps() -> Optional[int]:
    """
    Iteration cap from the environment, or None to use the number of
    evolution steps.
    """
    raw = os.environ.get(MAX_STEPS_ENV_VAR)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConstructionError(f"{MAX_STEPS_ENV_VAR} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConstructionError(f"{MAX_STEPS_ENV_VAR} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class EngineSettings:
    """
    Immutable accounting engine configuration.

    Attributes
    ----------
    max_steps : int, optional
        Hard cap on steps per path. None reads MARKET_MODEL_MAX_STEPS, and
        if that is unset, falls back to the number of steps in the
        evolution description (the evolver cannot go further anyway).
    check_finite : bool
        Fail fast on NaN/inf weights, amounts and bond values.
    """

    max_steps: Optional[int] = None
    check_finite: bool = True

    def __post_init__(self) -> None:
        # Frozen dataclass: resolve the env override with object.__setattr__
        if self.max_steps is None:
            object.__setattr__(self, "max_steps", _resolve_max_steps())
        if self.max_steps is not None and self.max_steps <= 0:
            raise ConstructionError("max_steps must be positive")

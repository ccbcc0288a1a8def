from __future__ import annotations

import logging

import numpy as np
import pandas as pd
from scipy.stats import norm

from .engine import AccountingEngine
from .exceptions import ConstructionError

logger = logging.getLogger(__name__)


def multiple_path_values(engine: AccountingEngine, n_paths: int, confidence: float = 0.95) -> pd.DataFrame:
    """
    Run n_paths sequential paths and summarise each product.

    Returns one row per product with the weighted mean, its standard error
    and a normal confidence interval. Weights are the path weights returned
    by the engine.
    """
    if n_paths < 2:
        raise ConstructionError("n_paths must be at least 2 to estimate an error.")
    if not (0.0 < confidence < 1.0):
        raise ConstructionError("confidence must be in (0, 1).")

    values = np.empty((n_paths, engine.number_of_products), dtype=float)
    weights = np.empty(n_paths, dtype=float)
    for p in range(n_paths):
        weights[p] = engine.single_path_values(values[p])

    w_sum = weights.sum()
    if w_sum <= 0.0:
        raise ConstructionError("path weights must sum to a positive number.")

    mean = weights @ values / w_sum
    var = weights @ (values - mean) ** 2 / w_sum * n_paths / (n_paths - 1)
    std_error = np.sqrt(var / n_paths)
    z = norm.ppf(0.5 + confidence / 2.0)

    out = pd.DataFrame(
        {
            "product": np.arange(engine.number_of_products),
            "mean": mean,
            "std_error": std_error,
            "ci_low": mean - z * std_error,
            "ci_high": mean + z * std_error,
            "n_paths": n_paths,
        }
    )
    logger.info("multiple_path_values: %d paths, %d products", n_paths, engine.number_of_products)
    return out

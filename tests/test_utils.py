import pandas as pd
import pytest

from market_model_engine.config import MAX_STEPS_ENV_VAR, EngineSettings
from market_model_engine.exceptions import ConstructionError, NonFiniteValueError
from market_model_engine.utils import as_time_grid, rate_times_from_dates, require_finite, yearfrac


def test_yearfrac_conventions():
    start = pd.Timestamp("2026-01-31")
    end = pd.Timestamp("2026-07-31")
    assert yearfrac(start, end, "ACT/365") == pytest.approx(181 / 365.0)
    assert yearfrac(start, end, "ACT/360") == pytest.approx(181 / 360.0)
    assert yearfrac(start, end, "30/360") == pytest.approx(0.5)
    with pytest.raises(ValueError):
        yearfrac(end, start, "ACT/365")
    with pytest.raises(ValueError):
        yearfrac(start, end, "BUS/252")


def test_rate_times_from_dates_keeps_order():
    val = pd.Timestamp("2026-02-13")
    taus = rate_times_from_dates(val, [pd.Timestamp("2026-05-14"), pd.Timestamp("2026-08-12")], "ACT/360")
    assert taus[0] == pytest.approx(90 / 360.0)
    assert taus[1] == pytest.approx(180 / 360.0)


def test_as_time_grid_rejects_bad_grids():
    assert list(as_time_grid([0.0, 1.0], "t")) == [0.0, 1.0]
    for bad in ([], [1.0, float("nan")], [-1.0, 1.0], [2.0, 1.0]):
        with pytest.raises(ConstructionError):
            as_time_grid(bad, "t")


def test_require_finite():
    assert require_finite(1.5, "x") == 1.5
    with pytest.raises(NonFiniteValueError):
        require_finite(float("inf"), "x")


def test_settings_defaults_and_env_override(monkeypatch):
    monkeypatch.delenv(MAX_STEPS_ENV_VAR, raising=False)
    default = EngineSettings()
    assert default.max_steps is None
    assert default.check_finite

    monkeypatch.setenv(MAX_STEPS_ENV_VAR, "12")
    assert EngineSettings().max_steps == 12
    assert EngineSettings(max_steps=4).max_steps == 4, "Explicit cap wins over the environment"

    monkeypatch.setenv(MAX_STEPS_ENV_VAR, "zero")
    with pytest.raises(ConstructionError):
        EngineSettings()

    monkeypatch.setenv(MAX_STEPS_ENV_VAR, "-2")
    with pytest.raises(ConstructionError):
        EngineSettings()

    monkeypatch.delenv(MAX_STEPS_ENV_VAR)
    assert EngineSettings().max_steps is None

    with pytest.raises(ConstructionError):
        EngineSettings(max_steps=0)

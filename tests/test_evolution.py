import numpy as np
import pandas as pd
import pytest

from market_model_engine.evolution import (
    EvolutionDescription,
    check_numeraire_compatibility,
    money_market_measure,
    terminal_measure,
)
from market_model_engine.exceptions import ConstructionError


@pytest.fixture(scope="module")
def rate_times():
    return [0.5, 1.0, 1.5, 2.0, 2.5]


def test_defaults_follow_rate_grid(rate_times):
    ev = EvolutionDescription(rate_times)
    assert ev.number_of_rates == 4
    assert ev.number_of_steps == 4
    assert np.allclose(ev.evolution_times, rate_times[:-1])
    assert list(ev.numeraires) == [0, 1, 2, 3, 3]
    assert len(ev.numeraires) == ev.number_of_steps + 1


def test_money_market_measure_picks_first_unexpired_bond(rate_times):
    numeraires = money_market_measure([0.25, 0.5, 0.75, 1.6], rate_times)
    assert list(numeraires) == [0, 0, 1, 3, 3]


def test_terminal_measure_uses_last_bond(rate_times):
    ev = EvolutionDescription(rate_times)
    assert list(terminal_measure(ev)) == [4] * 5


def test_numeraire_sequence_needs_trailing_entry(rate_times):
    with pytest.raises(ConstructionError):
        EvolutionDescription(rate_times, [0.5, 1.0], [0, 1])
    ev = EvolutionDescription(rate_times, [0.5, 1.0], [0, 1, 1])
    assert ev.numeraire_at(2) == 1
    with pytest.raises(IndexError):
        ev.numeraire_at(3)
    with pytest.raises(IndexError):
        ev.numeraire_at(-1)


def test_numeraire_indices_bounded(rate_times):
    with pytest.raises(ConstructionError):
        EvolutionDescription(rate_times, [0.5], [0, 5])
    with pytest.raises(ConstructionError):
        EvolutionDescription(rate_times, [0.5], [-1, 0])


@pytest.mark.parametrize("numeraires", [[0, 1.7, 2], [0, 1, 2.9], [0, np.nan, 2], [0, np.inf, 2]])
def test_fractional_or_non_finite_numeraires_rejected(rate_times, numeraires):
    with pytest.raises(ConstructionError):
        EvolutionDescription(rate_times, [0.5, 1.0], numeraires)


def test_whole_float_numeraires_accepted(rate_times):
    ev = EvolutionDescription(rate_times, [0.5, 1.0], [0.0, 1.0, 2.0])
    assert list(ev.numeraires) == [0, 1, 2]
    assert ev.numeraire_at(1) == 1


def test_grids_validated(rate_times):
    with pytest.raises(ConstructionError):
        EvolutionDescription([1.0])
    with pytest.raises(ConstructionError):
        EvolutionDescription([1.0, 1.0, 2.0])
    with pytest.raises(ConstructionError):
        EvolutionDescription(rate_times, [0.5, 3.0])
    with pytest.raises(ConstructionError):
        EvolutionDescription(rate_times, [1.0, 0.5])


def test_description_is_read_only(rate_times):
    ev = EvolutionDescription(rate_times)
    with pytest.raises(ValueError):
        ev.rate_times[0] = 0.0
    with pytest.raises(ValueError):
        ev.numeraires[0] = 3


def test_first_alive_rate(rate_times):
    ev = EvolutionDescription(rate_times, [0.25, 0.5, 1.2])
    assert [ev.first_alive_rate(s) for s in range(3)] == [0, 0, 2]


def test_compatibility_rejects_matured_numeraire(rate_times):
    check_numeraire_compatibility(EvolutionDescription(rate_times))
    with pytest.raises(ConstructionError):
        check_numeraire_compatibility(EvolutionDescription(rate_times, [0.5, 1.0], [0, 0, 0]))


def test_from_dates_uses_day_count():
    val_date = pd.Timestamp("2026-02-13")
    dates = [pd.Timestamp("2026-08-13"), pd.Timestamp("2027-02-13"), pd.Timestamp("2027-08-13")]
    ev = EvolutionDescription.from_dates(val_date, dates, day_count="ACT/365")
    assert ev.rate_times[0] == pytest.approx(181 / 365.0)
    assert ev.rate_times[1] == pytest.approx(1.0)
    assert ev.number_of_steps == 2

    with pytest.raises(ConstructionError):
        EvolutionDescription.from_dates(val_date, [val_date, dates[0]])

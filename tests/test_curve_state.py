import numpy as np
import pytest

from market_model_engine.curves import ForwardRateCurveState
from market_model_engine.exceptions import ConstructionError, NonFiniteValueError


@pytest.fixture(scope="module")
def rate_times():
    return [0.5, 1.0, 1.5, 2.0, 3.0]


@pytest.fixture(scope="module")
def state(rate_times):
    return ForwardRateCurveState(rate_times, [0.02, 0.025, 0.03, 0.045])


def test_discount_ratio_identity_is_exact(state, rate_times):
    for n in range(len(rate_times)):
        assert state.discount_ratio(n, n) == 1.0


def test_discount_ratio_from_forwards(state):
    assert state.discount_ratio(0, 1) == pytest.approx(1.0 / (1.0 + 0.5 * 0.02), rel=1e-15)
    assert state.discount_ratio(3, 4) == pytest.approx(1.0 / (1.0 + 1.0 * 0.045), rel=1e-15)


def test_discount_ratio_chains_and_inverts(state):
    assert state.discount_ratio(0, 2) * state.discount_ratio(2, 4) == pytest.approx(state.discount_ratio(0, 4), rel=1e-14)
    assert state.discount_ratio(1, 3) * state.discount_ratio(3, 1) == pytest.approx(1.0, rel=1e-14)


def test_discount_bonds_positive_and_decreasing(state):
    bonds = state.discount_bonds()
    assert bonds[0] == 1.0
    assert np.all(bonds > 0.0)
    assert np.all(np.diff(bonds) < 0.0), "Positive forwards must give decreasing bonds"


def test_from_discount_factors_recovers_forwards(state, rate_times):
    scaled = 0.98 * state.discount_bonds()
    rebuilt = ForwardRateCurveState.from_discount_factors(rate_times, scaled)
    assert np.allclose(rebuilt.forwards, state.forwards, rtol=0.0, atol=1e-14)


def test_snapshot_is_immutable(rate_times):
    forwards = np.array([0.01, 0.02, 0.03, 0.04])
    s = ForwardRateCurveState(rate_times, forwards)
    forwards[0] = 0.5
    assert s.forward_rate(0) == 0.01
    with pytest.raises(ValueError):
        s.forwards[0] = 0.5


def test_out_of_range_index_raises(state):
    with pytest.raises(IndexError):
        state.discount_ratio(0, 5)
    with pytest.raises(IndexError):
        state.discount_ratio(-1, 2)


def test_invalid_curves_rejected(rate_times):
    with pytest.raises(ConstructionError):
        ForwardRateCurveState(rate_times, [0.01, 0.02])
    with pytest.raises(ConstructionError):
        ForwardRateCurveState(rate_times, [0.01, -3.0, 0.02, 0.03])
    with pytest.raises(NonFiniteValueError):
        ForwardRateCurveState(rate_times, [0.01, np.nan, 0.02, 0.03])
    with pytest.raises(ConstructionError):
        ForwardRateCurveState([1.0, 0.5, 2.0], [0.01, 0.02])

from __future__ import annotations

import numpy as np
import pytest

from scipy.optimize import OptimizeResult

from svm_rank import (
    InvalidArgumentError,
    NumericalError,
    Oca,
    OcaConfig,
    RankingRiskOracle,
    TerminationStatus,
)
from svm_rank.oca import CuttingPlane, PlaneBundle, solve_restricted_qp


def test_cutting_plane_touches_risk_at_its_point():
    w = np.array([0.5, -1.0])
    plane = CuttingPlane.at(w, risk=2.0, subgradient=np.array([1.0, 3.0]))

    assert plane(w) == pytest.approx(2.0)
    assert plane.offset == pytest.approx(2.0 - (0.5 - 3.0))


def test_plane_bundle_is_append_only():
    bundle = PlaneBundle(dim=2)
    assert len(bundle) == 0
    assert bundle.model(np.zeros(2)) == 0.0

    bundle.add(CuttingPlane(np.array([1.0, 0.0]), 1.0))
    bundle.add(CuttingPlane(np.array([0.0, -1.0]), 0.5))

    assert len(bundle) == 2
    assert bundle.subgradients.shape == (2, 2)
    assert bundle.offsets.tolist() == [1.0, 0.5]
    assert bundle.model(np.array([-3.0, 0.0])) == pytest.approx(0.5)
    assert bundle.model(np.array([-3.0, 2.0])) == 0.0

    with pytest.raises(ValueError):
        bundle.add(CuttingPlane(np.zeros(3), 0.0))


def test_restricted_qp_single_plane():
    bundle = PlaneBundle(dim=2)
    bundle.add(CuttingPlane(np.array([-1.0, 1.0]), 1.0))

    solution = solve_restricted_qp(bundle, C=1.0)

    np.testing.assert_allclose(solution.w, [0.5, -0.5], atol=1e-5)
    assert solution.lower_bound == pytest.approx(0.25, abs=1e-6)


def test_restricted_qp_nonnegative_orthant():
    bundle = PlaneBundle(dim=2)
    bundle.add(CuttingPlane(np.array([-1.0, 1.0]), 1.0))

    solution = solve_restricted_qp(bundle, C=1.0, nonnegative=True)

    assert np.all(solution.w >= 0)
    np.testing.assert_allclose(solution.w, [1.0, 0.0], atol=1e-5)
    assert solution.lower_bound == pytest.approx(0.5, abs=1e-6)


def test_restricted_qp_weights_stay_feasible():
    rng = np.random.default_rng(0)
    bundle = PlaneBundle(dim=3)
    for _ in range(6):
        bundle.add(CuttingPlane(rng.normal(size=3), float(rng.uniform(0.0, 2.0))))

    solution = solve_restricted_qp(bundle, C=4.0)

    assert np.all(solution.weights >= 0)
    assert solution.weights.sum() <= 1.0 + 1e-12
    # weak duality against the model objective at the returned point
    primal = 0.5 * np.dot(solution.w, solution.w) + 4.0 * bundle.model(solution.w)
    assert solution.lower_bound <= primal + 1e-9


def test_oca_converges_on_separable_pair(separable_pair):
    oracle = RankingRiskOracle([separable_pair])
    result = Oca().solve(oracle, dim=2, C=1.0, epsilon=0.001, max_iterations=100)

    assert result.status is TerminationStatus.CONVERGED
    assert result.converged
    assert result.gap <= 0.001
    assert result.lower_bound <= result.upper_bound
    assert result.w[0] > result.w[1]


def test_oca_iteration_limit_is_a_soft_stop(separable_pair):
    oracle = RankingRiskOracle([separable_pair])
    result = Oca().solve(oracle, dim=2, C=1.0, epsilon=0.001, max_iterations=1)

    assert result.status is TerminationStatus.ITERATION_LIMIT_REACHED
    assert result.iterations == 1
    assert result.w.tolist() == [0.0, 0.0]
    assert result.gap > 0.001
    assert len(result.history) == 1


def test_oca_rejects_bad_arguments(separable_pair):
    oracle = RankingRiskOracle([separable_pair])
    with pytest.raises(InvalidArgumentError):
        Oca().solve(oracle, dim=2, C=0.0, epsilon=0.001, max_iterations=10)
    with pytest.raises(InvalidArgumentError):
        Oca().solve(oracle, dim=2, C=1.0, epsilon=-1.0, max_iterations=10)
    with pytest.raises(InvalidArgumentError):
        Oca().solve(oracle, dim=2, C=1.0, epsilon=0.001, max_iterations=0)


def test_oca_config_validation():
    with pytest.raises(InvalidArgumentError):
        OcaConfig(sub_eps=0.0)
    with pytest.raises(InvalidArgumentError):
        OcaConfig(sub_max_iter=0)


def _single_plane_bundle():
    bundle = PlaneBundle(2)
    bundle.add(CuttingPlane(subgradient=np.array([-1.0, 1.0]), offset=1.0))
    return bundle


def _stalled_solver(x):
    def fake_minimize(fun, x0, **kwargs):
        return OptimizeResult(x=x(x0), success=False, message='Iteration limit reached')
    return fake_minimize


def test_restricted_qp_non_finite_solver_output_raises(monkeypatch):
    monkeypatch.setattr('svm_rank.oca.minimize', _stalled_solver(lambda x0: np.full_like(x0, np.nan)))

    with pytest.raises(NumericalError):
        solve_restricted_qp(_single_plane_bundle(), C=1.0)


def test_restricted_qp_keeps_warm_start_when_solver_does_worse(monkeypatch):
    monkeypatch.setattr('svm_rank.oca.minimize', _stalled_solver(np.zeros_like))

    solution = solve_restricted_qp(_single_plane_bundle(), C=1.0, warm_start=np.array([0.5]))

    np.testing.assert_allclose(solution.weights, [0.5])
    np.testing.assert_allclose(solution.w, [0.5, -0.5])
    assert solution.lower_bound == pytest.approx(0.25)
    assert solution.solver_success is False
    assert solution.message == 'Iteration limit reached'


def test_oca_verbose_warns_when_inner_solver_stops_early(monkeypatch, capsys, separable_pair):
    monkeypatch.setattr('svm_rank.oca.minimize', _stalled_solver(np.zeros_like))
    oracle = RankingRiskOracle([separable_pair])

    result = Oca().solve(oracle, dim=2, C=1.0, epsilon=1e-3, max_iterations=2, verbose=True)

    out = capsys.readouterr().out
    assert "Warning: inner QP solver stopped early: Iteration limit reached" in out
    assert result.lower_bound >= 0.0

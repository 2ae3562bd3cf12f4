"""一般化中点則による時間積分のテスト.

テスト方針:
  - α の規約（α=0 で現時刻レート、α=1 で前時刻レート）
  - 変形勾配の発展を mode 1/2、α = 0, 0.5, 1 の参照値と比較
  - 全てのヤコビアンを中心差分と比較
  - 不正な mode・α・サイズの拒否
"""

from __future__ import annotations

import numpy as np
import pytest

from contools.core.errors import InvalidDomainError, ShapeMismatchError, SingularMatrixError
from contools.evolution import (
    evolve_f,
    evolve_f_jacobian,
    midpoint_evolution,
    midpoint_evolution_jacobian,
)
from contools.verification import JacobianCheckConfig, check_jacobian

DT = 2.7
F_PREV = np.array(
    [0.69646919, 0.28613933, 0.22685145,
     0.55131477, 0.71946897, 0.42310646,
     0.98076420, 0.68482974, 0.4809319]
)  # fmt: skip
L_PREV = np.array(
    [0.69006282, 0.0462321, 0.88086378,
     0.8153887, 0.54987134, 0.72085876,
     0.66559485, 0.63708462, 0.54378588]
)  # fmt: skip
L = np.array(
    [0.57821272, 0.27720263, 0.45555826,
     0.82144027, 0.83961342, 0.95322334,
     0.4768852, 0.93771539, 0.1056616]
)  # fmt: skip

EXPECTED_F = {
    (1, 1.0): [
        4.39551129, 2.53782698, 1.84614498,
        4.81201673, 3.75047725, 2.48674399,
        4.62070491, 3.44211354, 2.32252023,
    ],
    (1, 0.0): [
        0.63522182, -0.1712192, -0.00846781,
        -0.81250979, -0.19375022, -0.20193394,
        -0.36163914, -0.03662069, -0.05769288,
    ],
    (1, 0.5): [
        0.20004929, -0.4409338, -0.18955924,
        -3.59005736, -2.17210401, -1.55661536,
        -1.88391214, -1.13150095, -0.80579654,
    ],
    (2, 1.0): [
        3.03173544, 1.1881084, 2.77327313,
        3.92282144, 2.58424672, 3.75584617,
        5.18006647, 2.65125419, 4.85252662,
    ],
    (2, 0.0): [
        0.65045472, -0.42475879, -0.09274688,
        -0.25411831, -0.08867872, -0.16467241,
        0.45611733, -0.45427799, -0.17799727,
    ],
    (2, 0.5): [
        -0.02066217, -1.43862233, -0.42448874,
        -0.96426544, -1.72139966, -0.83831629,
        -0.59802055, -2.37943476, -0.88998505,
    ],
}  # fmt: skip

CHECK = JacobianCheckConfig(rtol=1e-5, atol=1e-5)


def _assert_jacobian(func, x, analytic):
    result = check_jacobian(func, x, analytic, CHECK)
    assert result.passed, (
        f"max_abs={result.max_abs_error:.3e}, max_rel={result.max_rel_error:.3e}"
    )


class TestMidpointEvolution:
    """成分ごとの中点則."""

    dt = 2.5
    A_prev = np.array([9.0, 10.0, 11.0, 12.0])
    Adot_prev = np.array([1.0, 2.0, 3.0, 4.0])
    Adot = np.array([5.0, 6.0, 7.0, 8.0])

    def test_alpha_zero_uses_current_rate(self):
        dA, A = midpoint_evolution(self.dt, self.A_prev, self.Adot_prev, self.Adot, 0.0)
        np.testing.assert_allclose(A, self.A_prev + self.dt * self.Adot)
        np.testing.assert_allclose(dA, self.dt * self.Adot)

    def test_alpha_one_uses_previous_rate(self):
        _, A = midpoint_evolution(self.dt, self.A_prev, self.Adot_prev, self.Adot, 1.0)
        np.testing.assert_allclose(A, self.A_prev + self.dt * self.Adot_prev)

    def test_trapezoidal_default(self):
        _, A = midpoint_evolution(self.dt, self.A_prev, self.Adot_prev, self.Adot)
        np.testing.assert_allclose(A, self.A_prev + 0.5 * self.dt * (self.Adot + self.Adot_prev))

    def test_per_component_alpha(self):
        _, A = midpoint_evolution(
            self.dt, self.A_prev, self.Adot_prev, self.Adot, [0.1, 0.2, 0.3, 0.4]
        )
        np.testing.assert_allclose(A, [20.5, 23.0, 25.5, 28.0])

    def test_jacobian(self):
        alpha = np.array([0.1, 0.2, 0.3, 0.4])
        res = midpoint_evolution_jacobian(self.dt, self.A_prev, self.Adot_prev, self.Adot, alpha)
        np.testing.assert_allclose(res.A, [20.5, 23.0, 25.5, 28.0])
        np.testing.assert_allclose(res.dAdAdot, np.diag(self.dt * (1.0 - alpha)))
        np.testing.assert_allclose(res.dAdAdot_prev, np.diag(self.dt * alpha))

    @pytest.mark.parametrize("alpha", [-0.1, 1.5, [0.1, 0.2, 0.3, 1.1]])
    def test_alpha_out_of_range(self, alpha):
        with pytest.raises(InvalidDomainError, match="alpha"):
            midpoint_evolution(self.dt, self.A_prev, self.Adot_prev, self.Adot, alpha)

    def test_size_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            midpoint_evolution(self.dt, self.A_prev, self.Adot_prev[:3], self.Adot)
        with pytest.raises(ShapeMismatchError):
            midpoint_evolution(self.dt, self.A_prev, self.Adot_prev, self.Adot, [0.5, 0.5])

    def test_jacobian_wraps_error(self):
        with pytest.raises(InvalidDomainError) as exc:
            midpoint_evolution_jacobian(self.dt, self.A_prev, self.Adot_prev, self.Adot, 2.0)
        assert exc.value.operation == "midpoint_evolution_jacobian"
        assert exc.value.root_cause.operation == "midpoint_evolution"


class TestEvolveF:
    """変形勾配の発展."""

    @pytest.mark.parametrize("mode, alpha", list(EXPECTED_F))
    def test_reference(self, mode, alpha):
        dF, F = evolve_f(DT, F_PREV, L_PREV, L, alpha, mode)
        np.testing.assert_allclose(F, EXPECTED_F[(mode, alpha)], rtol=1e-6, atol=1e-6)
        np.testing.assert_allclose(dF, F - F_PREV, atol=1e-12)

    @pytest.mark.parametrize("mode, alpha", list(EXPECTED_F))
    def test_jacobian_values_match(self, mode, alpha):
        value = evolve_f(DT, F_PREV, L_PREV, L, alpha, mode)
        res = evolve_f_jacobian(DT, F_PREV, L_PREV, L, alpha, mode)
        np.testing.assert_array_equal(res.F, value.F)
        np.testing.assert_array_equal(res.dF, value.dF)
        np.testing.assert_array_equal(res.dFdFp, np.eye(9) + res.ddFdFp)

    @pytest.mark.parametrize("mode", [1, 2])
    @pytest.mark.parametrize("alpha", [0.0, 0.5, 1.0])
    def test_jacobians(self, mode, alpha):
        res = evolve_f_jacobian(DT, F_PREV, L_PREV, L, alpha, mode)
        _assert_jacobian(lambda x: evolve_f(DT, F_PREV, L_PREV, x, alpha, mode).F, L, res.dFdL)
        _assert_jacobian(lambda x: evolve_f(DT, x, L_PREV, L, alpha, mode).F, F_PREV, res.dFdFp)
        _assert_jacobian(lambda x: evolve_f(DT, x, L_PREV, L, alpha, mode).dF, F_PREV, res.ddFdFp)
        _assert_jacobian(lambda x: evolve_f(DT, F_PREV, x, L, alpha, mode).F, L_PREV, res.dFdLp)

    def test_alpha_one_is_explicit(self):
        """α = 1 では F = F_prev + Δt L_prev F_prev（mode 1）."""
        _, F = evolve_f(DT, F_PREV, L_PREV, L, 1.0, 1)
        expected = F_PREV.reshape(3, 3) + DT * L_PREV.reshape(3, 3) @ F_PREV.reshape(3, 3)
        np.testing.assert_allclose(F, expected.ravel(), atol=1e-12)

    def test_2d(self):
        Fp = np.array([1.0, 0.1, 0.0, 0.9])
        Lp = np.array([0.1, 0.2, -0.1, 0.05])
        Lc = np.array([0.2, 0.1, 0.0, -0.1])
        res = evolve_f_jacobian(0.1, Fp, Lp, Lc, 0.5, 1, dim=2)
        assert res.dFdL.shape == (4, 4)
        _assert_jacobian(lambda x: evolve_f(0.1, Fp, Lp, x, 0.5, 1, dim=2).F, Lc, res.dFdL)

    @pytest.mark.parametrize("mode", [0, 3])
    def test_invalid_mode(self, mode):
        with pytest.raises(InvalidDomainError, match="mode"):
            evolve_f(DT, F_PREV, L_PREV, L, 0.5, mode)

    @pytest.mark.parametrize("alpha", [-0.5, 1.01])
    def test_invalid_alpha(self, alpha):
        with pytest.raises(InvalidDomainError, match="alpha"):
            evolve_f(DT, F_PREV, L_PREV, L, alpha, 1)

    def test_size_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            evolve_f(DT, F_PREV[:4], L_PREV, L)

    def test_singular_lhs(self):
        with pytest.raises(SingularMatrixError) as exc:
            evolve_f(1.0, F_PREV, L_PREV, np.eye(3).ravel(), 0.0, 1)
        assert exc.value.operation == "evolve_f"

"""補助スカラー関数（WLF・Macaulay 括弧・二次熱膨張）のテスト."""

from __future__ import annotations

import math

import numpy as np
import pytest

from contools.auxiliary import (
    mac,
    mac_jacobian,
    quadratic_thermal_expansion,
    quadratic_thermal_expansion_jacobian,
    wlf,
    wlf_jacobian,
)
from contools.core.errors import InvalidDomainError, ShapeMismatchError
from contools.verification import JacobianCheckConfig, check_jacobian

WLF_PARAMS = (27.5, 18.2, 282.7)


class TestWLF:
    """WLF シフト係数."""

    def test_value(self):
        T = 145.0
        Tr, C1, C2 = WLF_PARAMS
        expected = 10.0 ** (-C1 * (T - Tr) / (C2 + T - Tr))
        assert wlf(T, WLF_PARAMS) == pytest.approx(expected, rel=1e-12)

    def test_reference_temperature(self):
        assert wlf(27.5, WLF_PARAMS) == pytest.approx(1.0)

    def test_jacobian(self):
        T = 145.0
        factor, dfactor = wlf_jacobian(T, WLF_PARAMS)
        assert factor == wlf(T, WLF_PARAMS)
        result = check_jacobian(
            lambda x: wlf(float(x[0]), WLF_PARAMS),
            [T],
            dfactor,
            JacobianCheckConfig(rtol=1e-6, atol=1e-12),
        )
        assert result.passed

    def test_jacobian_closed_form(self):
        T = 145.0
        Tr, C1, C2 = WLF_PARAMS
        factor, dfactor = wlf_jacobian(T, WLF_PARAMS)
        expected = math.log(10.0) * factor * (-C1 * C2 / (C2 + T - Tr) ** 2)
        assert dfactor == pytest.approx(expected, rel=1e-10)

    def test_wrong_parameter_count(self):
        with pytest.raises(ShapeMismatchError, match="3 要素"):
            wlf(145.0, (27.5, 18.2))

    def test_zero_denominator(self):
        """C2 + T − Tr = 0."""
        with pytest.raises(InvalidDomainError, match="分母"):
            wlf(27.5 - 282.7, WLF_PARAMS)

    def test_jacobian_wraps_error(self):
        with pytest.raises(ShapeMismatchError) as exc:
            wlf_jacobian(145.0, (1.0,))
        assert exc.value.operation == "wlf_jacobian"
        assert exc.value.root_cause.operation == "wlf"


class TestMacaulay:
    """Macaulay 括弧."""

    def test_values(self):
        assert mac(1.0) == 1.0
        assert mac(-1.0) == 0.0
        assert mac(0.0) == 0.0

    @pytest.mark.parametrize("x, expected", [(2.0, 1.0), (-2.0, 0.0), (0.0, 1.0)])
    def test_derivative(self, x, expected):
        value, dmac = mac_jacobian(x)
        assert value == mac(x)
        assert dmac == expected


class TestQuadraticThermalExpansion:
    """二次熱膨張ひずみ."""

    T = 283.15
    Tr = 273.15
    a = np.array([1.0, 2.0, 3.0, 4.0])
    b = np.array([5.0, 6.0, 7.0, 8.0])

    def test_value(self):
        strain = quadratic_thermal_expansion(self.T, self.Tr, self.a, self.b)
        expected = self.a * (self.T - self.Tr) + self.b * (self.T**2 - self.Tr**2)
        np.testing.assert_allclose(strain, expected, rtol=1e-10)

    def test_zero_at_reference(self):
        strain = quadratic_thermal_expansion(self.Tr, self.Tr, self.a, self.b)
        np.testing.assert_allclose(strain, np.zeros(4), atol=1e-9)

    def test_jacobian(self):
        strain, dstrain = quadratic_thermal_expansion_jacobian(self.T, self.Tr, self.a, self.b)
        np.testing.assert_allclose(dstrain, self.a + 2.0 * self.b * self.T)
        np.testing.assert_array_equal(
            strain, quadratic_thermal_expansion(self.T, self.Tr, self.a, self.b)
        )
        result = check_jacobian(
            lambda x: quadratic_thermal_expansion(float(x[0]), self.Tr, self.a, self.b),
            [self.T],
            dstrain,
            JacobianCheckConfig(rtol=1e-6, atol=1e-6),
        )
        assert result.passed

    def test_coefficient_size_mismatch(self):
        with pytest.raises(ShapeMismatchError, match="要素数"):
            quadratic_thermal_expansion(self.T, self.Tr, self.a, self.b[:3])

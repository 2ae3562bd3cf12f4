"""温度依存・区分線形の補助スカラー関数.

- WLF（Williams-Landel-Ferry）シフト係数
- Macaulay 括弧 <x>
- 二次の熱膨張ひずみ
"""

from __future__ import annotations

import math

import numpy as np

from contools.core.errors import (
    InvalidDomainError,
    ShapeMismatchError,
    wrap_errors,
)
from contools.core.results import ScalarJacobianResult, ThermalExpansionResult
from contools.math.tensor import fuzzy_equals


def wlf(temperature: float, params) -> float:
    """WLF シフト係数 a_T = 10^(−C1(T−Tr)/(C2+T−Tr)).

    Args:
        temperature: 温度 T
        params: (Tr, C1, C2) 基準温度と WLF 定数

    Returns:
        factor: シフト係数

    Raises:
        ShapeMismatchError: params が 3 要素でない場合
        InvalidDomainError: C2 + T − Tr がゼロの場合
    """
    p = np.asarray(params, dtype=float).ravel()
    if p.size != 3:
        raise ShapeMismatchError(
            "wlf", f"パラメータは (Tr, C1, C2) の 3 要素（受け取った要素数: {p.size}）"
        )
    Tr, C1, C2 = (float(v) for v in p)
    denom = C2 + (temperature - Tr)
    if fuzzy_equals(denom, 0.0):
        raise InvalidDomainError(
            "wlf", f"分母 C2 + T - Tr がゼロです (T={temperature}, Tr={Tr}, C2={C2})"
        )
    return 10.0 ** (-C1 * (temperature - Tr) / denom)


def wlf_jacobian(temperature: float, params) -> ScalarJacobianResult:
    """WLF シフト係数と温度微分."""
    with wrap_errors("wlf_jacobian", "シフト係数の評価に失敗しました"):
        factor = wlf(temperature, params)
    Tr, C1, C2 = (float(v) for v in np.asarray(params, dtype=float).ravel())
    dT = temperature - Tr
    denom = C2 + dT
    dfactor = math.log(10.0) * factor * (-C1 / denom + C1 * dT / denom**2)
    return ScalarJacobianResult(factor, dfactor)


def mac(x: float) -> float:
    """Macaulay 括弧 <x> = (|x| + x)/2."""
    return 0.5 * (abs(x) + x)


def mac_jacobian(x: float) -> ScalarJacobianResult:
    """Macaulay 括弧と導関数. x = 0 での導関数は 1."""
    return ScalarJacobianResult(mac(x), 1.0 if x >= 0.0 else 0.0)


def quadratic_thermal_expansion(
    temperature: float,
    reference_temperature: float,
    linear,
    quadratic,
) -> np.ndarray:
    """二次熱膨張ひずみ ε = a(T−Tr) + b(T²−Tr²).

    Args:
        temperature: 温度 T
        reference_temperature: 基準温度 Tr
        linear: (m,) 一次係数 a
        quadratic: (m,) 二次係数 b

    Returns:
        strain: (m,) 成分ごとの熱ひずみ
    """
    a = np.asarray(linear, dtype=float).ravel()
    b = np.asarray(quadratic, dtype=float).ravel()
    if a.size != b.size:
        raise ShapeMismatchError(
            "quadratic_thermal_expansion",
            f"一次係数と二次係数の要素数が一致しません ({a.size} != {b.size})",
        )
    T = temperature
    Tr = reference_temperature
    return a * T + b * T * T - a * Tr - b * Tr * Tr


def quadratic_thermal_expansion_jacobian(
    temperature: float,
    reference_temperature: float,
    linear,
    quadratic,
) -> ThermalExpansionResult:
    """二次熱膨張ひずみと温度微分 a + 2bT."""
    with wrap_errors("quadratic_thermal_expansion_jacobian", "熱ひずみの評価に失敗しました"):
        strain = quadratic_thermal_expansion(
            temperature, reference_temperature, linear, quadratic
        )
    a = np.asarray(linear, dtype=float).ravel()
    b = np.asarray(quadratic, dtype=float).ravel()
    return ThermalExpansionResult(strain, a + 2.0 * b * temperature)

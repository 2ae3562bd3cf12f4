"""演算の戻り値の型定義.

``*_jacobian`` 演算が返すデータ構造を NamedTuple で統一的に定義する。
NamedTuple を採用する理由:
  - 名前付きフィールドアクセス（result.F, result.dFdL 等）
  - タプルアンパッキング（dF, F, dFdL, *_ = evolve_f_jacobian(...)）
  - 不変（immutable）

ヤコビアンは全て入れ子形式 (n_out, n_in) の 2 次元配列。
4 階テンソルでは行 n*i + j、列 n*k + l が ∂A_ij/∂B_kl に対応する。
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

# ---------------------------------------------------------------------------
# スカラー関数
# ---------------------------------------------------------------------------


class ScalarJacobianResult(NamedTuple):
    """スカラー関数の値と導関数.

    Attributes:
        value: 関数値
        derivative: 引数に関する導関数
    """

    value: float
    derivative: float


class ThermalExpansionResult(NamedTuple):
    """二次熱膨張ひずみと温度微分.

    Attributes:
        strain: (m,) 成分ごとの熱ひずみ
        d_strain_dT: (m,) 成分ごとの温度微分
    """

    strain: np.ndarray
    d_strain_dT: np.ndarray


# ---------------------------------------------------------------------------
# 運動学量
# ---------------------------------------------------------------------------


class TensorJacobianResult(NamedTuple):
    """2 階テンソルの値と単一引数に関するヤコビアン.

    rotate 以外の 1 入力演算（右 Cauchy-Green、Green-Lagrange、対称部分、
    変形勾配、単位法線）で共通に使う。

    Attributes:
        value: (n*n,) 値（単位法線では (m,)）
        jacobian: (n*n, n*n) ∂value/∂input
    """

    value: np.ndarray
    jacobian: np.ndarray


class StrainDecomposition(NamedTuple):
    """Green-Lagrange ひずみの等容・体積分解.

    Attributes:
        Ebar: (9,) 等容部分のひずみ
        J: 体積比 det(F)
    """

    Ebar: np.ndarray
    J: float


class StrainDecompositionJacobian(NamedTuple):
    """Green-Lagrange ひずみの等容・体積分解とそのヤコビアン.

    Attributes:
        Ebar: (9,) 等容部分のひずみ
        J: 体積比
        dEbardE: (9, 9) ∂Ebar/∂E
        dJdE: (9,) ∂J/∂E
    """

    Ebar: np.ndarray
    J: float
    dEbardE: np.ndarray
    dJdE: np.ndarray


class DeformationRateJacobian(NamedTuple):
    """変形勾配の時間微分 Ḟ = L F とそのヤコビアン.

    Attributes:
        dFdt: (n*n,) Ḟ
        dFdtdL: (n*n, n*n) ∂Ḟ/∂L
        dFdtdF: (n*n, n*n) ∂Ḟ/∂F
    """

    dFdt: np.ndarray
    dFdtdL: np.ndarray
    dFdtdF: np.ndarray


# ---------------------------------------------------------------------------
# 配置間の写像
# ---------------------------------------------------------------------------


class MappingJacobianResult(NamedTuple):
    """配置間写像の値とヤコビアン.

    Attributes:
        value: (n*n,) 写像後のテンソル
        d_value_d_tensor: (n*n, n*n) 写像前のテンソルに関するヤコビアン
        d_value_d_F: (n*n, n*n) 変形勾配に関するヤコビアン
    """

    value: np.ndarray
    d_value_d_tensor: np.ndarray
    d_value_d_F: np.ndarray


# ---------------------------------------------------------------------------
# 時間積分
# ---------------------------------------------------------------------------


class MidpointResult(NamedTuple):
    """一般化中点則による成分ごとの更新.

    Attributes:
        dA: (m,) 増分
        A: (m,) 更新後の値
    """

    dA: np.ndarray
    A: np.ndarray


class MidpointJacobianResult(NamedTuple):
    """一般化中点則の更新とヤコビアン.

    ∂A/∂A_prev は単位行列なので返さない。

    Attributes:
        dA: (m,) 増分
        A: (m,) 更新後の値
        dAdAdot: (m, m) ∂A/∂Ȧ
        dAdAdot_prev: (m, m) ∂A/∂Ȧ_prev
    """

    dA: np.ndarray
    A: np.ndarray
    dAdAdot: np.ndarray
    dAdAdot_prev: np.ndarray


class EvolveFResult(NamedTuple):
    """変形勾配の時間発展.

    Attributes:
        dF: (n*n,) 増分
        F: (n*n,) 現時刻の変形勾配
    """

    dF: np.ndarray
    F: np.ndarray


class EvolveFJacobianResult(NamedTuple):
    """変形勾配の時間発展とヤコビアン.

    Attributes:
        dF: (n*n,) 増分
        F: (n*n,) 現時刻の変形勾配
        dFdL: (n*n, n*n) ∂F/∂L
        ddFdFp: (n*n, n*n) ∂dF/∂F_prev
        dFdFp: (n*n, n*n) ∂F/∂F_prev
        dFdLp: (n*n, n*n) ∂F/∂L_prev
    """

    dF: np.ndarray
    F: np.ndarray
    dFdL: np.ndarray
    ddFdFp: np.ndarray
    dFdFp: np.ndarray
    dFdLp: np.ndarray


# ---------------------------------------------------------------------------
# 接線検証
# ---------------------------------------------------------------------------


class JacobianCheckResult(NamedTuple):
    """解析ヤコビアンと差分ヤコビアンの比較結果.

    Attributes:
        passed: 全成分が許容誤差内なら True
        max_abs_error: 最大絶対誤差
        max_rel_error: 最大相対誤差（解析値の絶対値で正規化）
        fd_jacobian: (m, n) 差分ヤコビアン
    """

    passed: bool
    max_abs_error: float
    max_rel_error: float
    fd_jacobian: np.ndarray

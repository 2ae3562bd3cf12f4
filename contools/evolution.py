"""一般化中点則（θ 法）による時間積分.

重み α の規約:
  α = 0: 現時刻のレートのみを使う（このコードベースでは「陰的」）
  α = 1: 前時刻のレートのみを使う（このコードベースでは「陽的」）
  α = 0.5: 台形則

一般的な θ 法の θ とは逆向きの定義であることに注意。

変形勾配の発展（速度勾配 L による Ḟ = L F または Ḟ = F L）:
  A = I − Δt(1−α) L
  L^(t+α) = α L_prev + (1−α) L
  mode 1（現配置の速度勾配）: dF = A⁻¹ Δt L^(t+α) F_prev
  mode 2（基準配置の速度勾配）: dF = Δt F_prev L^(t+α) A⁻¹
  F = F_prev + dF
A の逆行列は 1 回の呼び出しにつき 1 回だけ計算する。
"""

from __future__ import annotations

import numpy as np

from contools.core.errors import (
    InvalidDomainError,
    ShapeMismatchError,
    wrap_errors,
)
from contools.core.results import (
    EvolveFJacobianResult,
    EvolveFResult,
    MidpointJacobianResult,
    MidpointResult,
)
from contools.math.tensor import as_tensor, identity, inverse

_EVOLVE_F_MODES = (1, 2)

# ---------------------------------------------------------------------------
# 成分ごとの中点則
# ---------------------------------------------------------------------------


def _midpoint_operands(A_prev, Adot_prev, Adot, alpha, operation: str):
    Ap = np.asarray(A_prev, dtype=float).ravel()
    Adp = np.asarray(Adot_prev, dtype=float).ravel()
    Ad = np.asarray(Adot, dtype=float).ravel()
    if not (Ap.size == Adp.size == Ad.size):
        raise ShapeMismatchError(
            operation,
            f"A_prev, Adot_prev, Adot の要素数が一致しません ({Ap.size}, {Adp.size}, {Ad.size})",
        )
    if np.ndim(alpha) == 0:
        a = np.full(Ap.size, float(alpha))
    else:
        a = np.asarray(alpha, dtype=float).ravel()
        if a.size != Ap.size:
            raise ShapeMismatchError(
                operation, f"alpha の要素数 {a.size} が A_prev の要素数 {Ap.size} と異なります"
            )
    if not np.all((a >= 0.0) & (a <= 1.0)):
        raise InvalidDomainError(operation, f"alpha は [0, 1] の範囲である必要があります: {alpha}")
    return Ap, Adp, Ad, a


def midpoint_evolution(dt: float, A_prev, Adot_prev, Adot, alpha=0.5) -> MidpointResult:
    """一般化中点則で成分ごとに値を更新する.

    dA_i = Δt (α_i Ȧ_prev,i + (1−α_i) Ȧ_i)
    A_i = A_prev,i + dA_i

    Args:
        dt: 時間増分 Δt
        A_prev: (m,) 前時刻の値
        Adot_prev: (m,) 前時刻のレート
        Adot: (m,) 現時刻のレート
        alpha: 重み α（スカラーまたは (m,)）

    Returns:
        MidpointResult: (dA, A)

    Raises:
        ShapeMismatchError: 要素数が一致しない場合
        InvalidDomainError: α が [0, 1] の範囲外の場合
    """
    Ap, Adp, Ad, a = _midpoint_operands(A_prev, Adot_prev, Adot, alpha, "midpoint_evolution")
    dA = dt * (a * Adp + (1.0 - a) * Ad)
    return MidpointResult(dA, Ap + dA)


def midpoint_evolution_jacobian(
    dt: float, A_prev, Adot_prev, Adot, alpha=0.5
) -> MidpointJacobianResult:
    """一般化中点則の更新と ∂A/∂Ȧ = diag(Δt(1−α)), ∂A/∂Ȧ_prev = diag(Δt α).

    ∂A/∂A_prev は単位行列なので返さない。
    """
    with wrap_errors("midpoint_evolution_jacobian", "中点則の更新に失敗しました"):
        dA, A = midpoint_evolution(dt, A_prev, Adot_prev, Adot, alpha)
    *_, a = _midpoint_operands(A_prev, Adot_prev, Adot, alpha, "midpoint_evolution_jacobian")
    return MidpointJacobianResult(dA, A, np.diag(dt * (1.0 - a)), np.diag(dt * a))


# ---------------------------------------------------------------------------
# 変形勾配の発展
# ---------------------------------------------------------------------------


def _evolve_f_terms(dt, F_prev, L_prev, L, alpha, mode, dim, operation):
    """(dF, F, A⁻¹, L^(t+α), F_prev) を計算する."""
    if mode not in _EVOLVE_F_MODES:
        raise InvalidDomainError(operation, f"mode は 1 または 2 である必要があります: {mode}")
    alpha = float(alpha)
    if not 0.0 <= alpha <= 1.0:
        raise InvalidDomainError(operation, f"alpha は [0, 1] の範囲である必要があります: {alpha}")
    Fp = as_tensor(F_prev, dim, name="F_prev", operation=operation).reshape(dim, dim)
    Lp = as_tensor(L_prev, dim, name="L_prev", operation=operation).reshape(dim, dim)
    Lc = as_tensor(L, dim, name="L", operation=operation).reshape(dim, dim)

    L_alpha = alpha * Lp + (1.0 - alpha) * Lc
    lhs = identity(dim) - dt * (1.0 - alpha) * Lc.ravel()
    with wrap_errors(operation, "I - dt(1-alpha)L の逆行列が存在しません"):
        lhs_inv = inverse(lhs, dim).reshape(dim, dim)

    if mode == 1:
        dF = dt * lhs_inv @ L_alpha @ Fp
    else:
        dF = dt * Fp @ L_alpha @ lhs_inv
    return dF, Fp + dF, lhs_inv, L_alpha, Fp


def evolve_f(
    dt: float,
    F_prev,
    L_prev,
    L,
    alpha: float = 0.5,
    mode: int = 1,
    *,
    dim: int = 3,
) -> EvolveFResult:
    """速度勾配から変形勾配を 1 ステップ進める.

    Args:
        dt: 時間増分 Δt
        F_prev: (dim*dim,) 前時刻の変形勾配
        L_prev: (dim*dim,) 前時刻の速度勾配
        L: (dim*dim,) 現時刻の速度勾配
        alpha: 重み α ∈ [0, 1]
        mode: 1 なら L は現配置（Ḟ = L F）、2 なら基準配置（Ḟ = F L）
        dim: 空間次元

    Returns:
        EvolveFResult: (dF, F)

    Raises:
        InvalidDomainError: mode が 1, 2 以外、または α が範囲外の場合
        ShapeMismatchError: テンソルが dim x dim でない場合
        SingularMatrixError: I − Δt(1−α)L が特異な場合
    """
    dF, F, *_ = _evolve_f_terms(dt, F_prev, L_prev, L, alpha, mode, dim, "evolve_f")
    return EvolveFResult(dF.ravel(), F.ravel())


def evolve_f_jacobian(
    dt: float,
    F_prev,
    L_prev,
    L,
    alpha: float = 0.5,
    mode: int = 1,
    *,
    dim: int = 3,
) -> EvolveFJacobianResult:
    """変形勾配の発展と ∂F/∂L, ∂dF/∂F_prev, ∂F/∂F_prev, ∂F/∂L_prev.

    mode 1:
      ∂F_jI/∂L_kl      = Δt(1−α) A⁻¹_jk F_lI
      ∂dF_jI/∂Fp_kK    = Δt (A⁻¹ L^(t+α))_jk δ_IK
      ∂F_jI/∂Lp_kl     = Δt α A⁻¹_jk Fp_lI
    mode 2:
      ∂F_jI/∂L_KL      = Δt(1−α) F_jK A⁻¹_LI
      ∂dF_jI/∂Fp_kK    = Δt δ_jk (L^(t+α) A⁻¹)_KI
      ∂F_jI/∂Lp_KL     = Δt α Fp_jK A⁻¹_LI
    ∂F/∂F_prev = I + ∂dF/∂F_prev
    """
    dF, F, lhs_inv, L_alpha, Fp = _evolve_f_terms(
        dt, F_prev, L_prev, L, alpha, mode, dim, "evolve_f_jacobian"
    )
    alpha = float(alpha)
    eye = np.eye(dim)
    n2 = dim * dim

    if mode == 1:
        dFdL = dt * (1.0 - alpha) * np.einsum("jk,lI->jIkl", lhs_inv, F)
        dFdLp = dt * alpha * np.einsum("jk,lI->jIkl", lhs_inv, Fp)
        ddFdFp = dt * np.einsum("jk,IK->jIkK", lhs_inv @ L_alpha, eye)
    else:
        dFdL = dt * (1.0 - alpha) * np.einsum("jK,LI->jIKL", F, lhs_inv)
        dFdLp = dt * alpha * np.einsum("jK,LI->jIKL", Fp, lhs_inv)
        ddFdFp = dt * np.einsum("jk,KI->jIkK", eye, L_alpha @ lhs_inv)

    ddFdFp = ddFdFp.reshape(n2, n2)
    return EvolveFJacobianResult(
        dF.ravel(),
        F.ravel(),
        dFdL.reshape(n2, n2),
        ddFdFp,
        np.eye(n2) + ddFdFp,
        dFdLp.reshape(n2, n2),
    )

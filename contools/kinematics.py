"""有限変形の運動学量と解析ヤコビアン.

規約:
  - 2 階テンソルは行優先の平坦配列 (n*n,)
  - ヤコビアンは入れ子形式 (n*n, n*n)、∂A_ij/∂B_kl は行 n*i + j・列 n*k + l
  - 大文字添字は基準配置、小文字添字は現配置

提供する量:
  F = I + ∂u/∂X            （基準配置の変位勾配）
  F = (I − ∂u/∂x)⁻¹        （現配置の変位勾配）
  C = FᵀF                  右 Cauchy-Green テンソル
  E = (C − I)/2            Green-Lagrange ひずみ
  Ebar, J                  E の等容・体積分解
  Ḟ = L F                  変形勾配の時間微分
"""

from __future__ import annotations

import numpy as np

from contools.core.errors import (
    NegativeJacobianDeterminantError,
    ShapeMismatchError,
    wrap_errors,
)
from contools.core.results import (
    DeformationRateJacobian,
    StrainDecomposition,
    StrainDecompositionJacobian,
    TensorJacobianResult,
)
from contools.math.tensor import (
    as_tensor,
    as_vector,
    determinant,
    fuzzy_equals,
    identity,
    inner,
    inverse,
)


def delta_dirac(i: int, j: int) -> float:
    """Kronecker のデルタ δ_ij."""
    return 1.0 if i == j else 0.0


def rotate_matrix(A, Q, *, dim: int = 3) -> np.ndarray:
    """2 階テンソルの回転 A' = QᵀAQ（A'_ij = Q_Ii A_IJ Q_Jj）.

    Args:
        A: (dim*dim,) 回転するテンソル
        Q: (dim*dim,) 回転行列
        dim: 空間次元

    Returns:
        A_rot: (dim*dim,) 回転後のテンソル
    """
    a_size = np.size(A)
    q_size = np.size(Q)
    if a_size != q_size:
        raise ShapeMismatchError(
            "rotate_matrix", f"A と Q の要素数が一致しません ({a_size} != {q_size})"
        )
    a = as_tensor(A, dim, name="A", operation="rotate_matrix").reshape(dim, dim)
    q = as_tensor(Q, dim, name="Q", operation="rotate_matrix").reshape(dim, dim)
    return (q.T @ a @ q).ravel()


# ---------------------------------------------------------------------------
# 変形勾配
# ---------------------------------------------------------------------------


def deformation_gradient(grad_u, is_current: bool = False, *, dim: int = 3) -> np.ndarray:
    """変位勾配から変形勾配を計算する.

    Args:
        grad_u: (dim*dim,) 変位勾配。is_current=False なら ∂u/∂X、True なら ∂u/∂x
        is_current: 変位勾配が現配置に関するものか
        dim: 空間次元

    Returns:
        F: (dim*dim,) 変形勾配

    Raises:
        SingularMatrixError: 現配置の場合に I − ∂u/∂x が特異
    """
    H = as_tensor(grad_u, dim, name="grad_u", operation="deformation_gradient")
    if not is_current:
        return identity(dim) + H
    with wrap_errors("deformation_gradient", "I - grad_u の逆行列が存在しません"):
        return inverse(identity(dim) - H, dim)


def deformation_gradient_jacobian(
    grad_u, is_current: bool = False, *, dim: int = 3
) -> TensorJacobianResult:
    """変形勾配と変位勾配に関するヤコビアン.

    現配置の場合 ∂F_ij/∂H_kl = F_ik F_lj。基準配置の場合は単位テンソル。
    """
    with wrap_errors("deformation_gradient_jacobian", "変形勾配の計算に失敗しました"):
        F = deformation_gradient(grad_u, is_current, dim=dim)
    n2 = dim * dim
    if not is_current:
        return TensorJacobianResult(F, np.eye(n2))
    Fm = F.reshape(dim, dim)
    dFdH = np.einsum("ik,lj->ijkl", Fm, Fm).reshape(n2, n2)
    return TensorJacobianResult(F, dFdH)


# ---------------------------------------------------------------------------
# ひずみ
# ---------------------------------------------------------------------------


def right_cauchy_green(F, *, dim: int = 3) -> np.ndarray:
    """右 Cauchy-Green テンソル C = FᵀF."""
    Fm = as_tensor(F, dim, name="F", operation="right_cauchy_green").reshape(dim, dim)
    return (Fm.T @ Fm).ravel()


def _d_right_cauchy_green_dF(F: np.ndarray, dim: int) -> np.ndarray:
    # ∂C_IJ/∂F_kK = δ_IK F_kJ + δ_JK F_kI
    Fm = F.reshape(dim, dim)
    eye = np.eye(dim)
    dCdF = np.einsum("IK,kJ->IJkK", eye, Fm) + np.einsum("JK,kI->IJkK", eye, Fm)
    return dCdF.reshape(dim * dim, dim * dim)


def right_cauchy_green_jacobian(F, *, dim: int = 3) -> TensorJacobianResult:
    """右 Cauchy-Green テンソルと ∂C/∂F."""
    with wrap_errors("right_cauchy_green_jacobian", "C の計算に失敗しました"):
        C = right_cauchy_green(F, dim=dim)
    return TensorJacobianResult(C, _d_right_cauchy_green_dF(as_tensor(F, dim), dim))


def green_lagrange_strain(F, *, dim: int = 3) -> np.ndarray:
    """Green-Lagrange ひずみ E = (FᵀF − I)/2.

    Args:
        F: (dim*dim,) 変形勾配
        dim: 空間次元

    Returns:
        E: (dim*dim,) Green-Lagrange ひずみ
    """
    with wrap_errors("green_lagrange_strain", "C の計算に失敗しました"):
        C = right_cauchy_green(F, dim=dim)
    return 0.5 * (C - identity(dim))


def d_green_lagrange_strain_dF(F, *, dim: int = 3) -> np.ndarray:
    """∂E_IJ/∂F_kK = (δ_IK F_kJ + F_kI δ_JK)/2 を (dim², dim²) で返す."""
    Fv = as_tensor(F, dim, name="F", operation="d_green_lagrange_strain_dF")
    return 0.5 * _d_right_cauchy_green_dF(Fv, dim)


def green_lagrange_strain_jacobian(F, *, dim: int = 3) -> TensorJacobianResult:
    """Green-Lagrange ひずみと ∂E/∂F."""
    with wrap_errors("green_lagrange_strain_jacobian", "E の計算に失敗しました"):
        E = green_lagrange_strain(F, dim=dim)
        dEdF = d_green_lagrange_strain_dF(F, dim=dim)
    return TensorJacobianResult(E, dEdF)


def decompose_green_lagrange_strain(E) -> StrainDecomposition:
    """Green-Lagrange ひずみを等容部分と体積比に分解する（3 次元のみ）.

    J = sqrt(det(2E + I))
    Ebar = E/J^(2/3) + (J^(-2/3) − 1) I/2

    Ebar は Fbar = J^(-1/3) F の Green-Lagrange ひずみに等しい。

    Args:
        E: (9,) Green-Lagrange ひずみ

    Returns:
        StrainDecomposition: (Ebar, J)

    Raises:
        ShapeMismatchError: E が 3x3 でない場合
        NegativeJacobianDeterminantError: det(2E + I) ≤ 0 の場合
    """
    Ev = as_tensor(E, 3, name="E", operation="decompose_green_lagrange_strain")
    Jsq = determinant(2.0 * Ev + identity(3), 3)
    if Jsq <= 0.0:
        raise NegativeJacobianDeterminantError(
            "decompose_green_lagrange_strain",
            f"det(2E + I) = {Jsq} が正でないため J を定義できません",
        )
    J = float(np.sqrt(Jsq))
    Ebar = Ev / J ** (2.0 / 3.0) + 0.5 * (J ** (-2.0 / 3.0) - 1.0) * identity(3)
    return StrainDecomposition(Ebar, J)


def decompose_green_lagrange_strain_jacobian(E) -> StrainDecompositionJacobian:
    """等容・体積分解と ∂Ebar/∂E, ∂J/∂E.

    ∂J/∂E = J (2E + I)⁻ᵀ
    ∂Ebar_ij/∂E_kl = J^(-2/3) δ_ik δ_jl
                     − J^(-5/3) (δ_ij/3 + 2 E_ij/3) ∂J/∂E_kl
    """
    with wrap_errors(
        "decompose_green_lagrange_strain_jacobian", "ひずみの分解に失敗しました"
    ):
        Ebar, J = decompose_green_lagrange_strain(E)
        Ev = as_tensor(E, 3)
        C_inv = inverse(2.0 * Ev + identity(3), 3).reshape(3, 3)
    dJdE = J * C_inv.T.ravel()
    J23 = J ** (-2.0 / 3.0)
    J53 = J ** (-5.0 / 3.0)
    dEbardE = (
        J23 * np.eye(9)
        - (J53 / 3.0) * np.outer(identity(3), dJdE)
        - (2.0 * J53 / 3.0) * np.outer(Ev, dJdE)
    )
    return StrainDecompositionJacobian(Ebar, J, dEbardE, dJdE)


# ---------------------------------------------------------------------------
# 対称部分・単位法線
# ---------------------------------------------------------------------------


def symmetric_part(A, *, dim: int = 3) -> np.ndarray:
    """対称部分 (A + Aᵀ)/2."""
    Am = as_tensor(A, dim, name="A", operation="symmetric_part").reshape(dim, dim)
    return (0.5 * (Am + Am.T)).ravel()


def symmetric_part_jacobian(A, *, dim: int = 3) -> TensorJacobianResult:
    """対称部分と ∂sym(A)_ij/∂A_kl = (δ_ik δ_jl + δ_jk δ_il)/2."""
    with wrap_errors("symmetric_part_jacobian", "対称部分の計算に失敗しました"):
        sym = symmetric_part(A, dim=dim)
    eye = np.eye(dim)
    dsym = 0.5 * (np.einsum("ik,jl->ijkl", eye, eye) + np.einsum("jk,il->ijkl", eye, eye))
    return TensorJacobianResult(sym, dsym.reshape(dim * dim, dim * dim))


def unit_normal(A) -> np.ndarray:
    """L2 ノルムで正規化した A/‖A‖（任意長）.

    ‖A‖ がゼロとみなせる場合は零ベクトルを返す（例外は送出しない）。
    """
    a = as_vector(A, name="A", operation="unit_normal")
    norm = np.sqrt(inner(a, a))
    if fuzzy_equals(norm, 0.0):
        return np.zeros_like(a)
    return a / norm


def unit_normal_jacobian(A) -> TensorJacobianResult:
    """単位法線と ∂n/∂A = (I − n⊗n)/‖A‖.

    ‖A‖ がゼロとみなせる場合、ヤコビアンは未定義で NaN で埋めて返す。
    """
    with wrap_errors("unit_normal_jacobian", "単位法線の計算に失敗しました"):
        n = unit_normal(A)
    a = as_vector(A)
    norm = np.sqrt(inner(a, a))
    if fuzzy_equals(norm, 0.0):
        return TensorJacobianResult(n, np.full((a.size, a.size), np.nan))
    dndA = (np.eye(a.size) - np.outer(n, n)) / norm
    return TensorJacobianResult(n, dndA)


# ---------------------------------------------------------------------------
# 変形勾配の時間微分
# ---------------------------------------------------------------------------


def deformation_gradient_rate(L, F, *, dim: int = 3) -> np.ndarray:
    """変形勾配の時間微分 Ḟ_iI = L_ij F_jI.

    Args:
        L: (dim*dim,) 現配置の速度勾配
        F: (dim*dim,) 変形勾配
        dim: 空間次元

    Returns:
        dFdt: (dim*dim,) Ḟ
    """
    Lm = as_tensor(L, dim, name="L", operation="deformation_gradient_rate")
    Fm = as_tensor(F, dim, name="F", operation="deformation_gradient_rate")
    return (Lm.reshape(dim, dim) @ Fm.reshape(dim, dim)).ravel()


def deformation_gradient_rate_jacobian(L, F, *, dim: int = 3) -> DeformationRateJacobian:
    """Ḟ と ∂Ḟ_iI/∂L_kl = δ_ik F_lI, ∂Ḟ_iI/∂F_kK = L_ik δ_IK."""
    with wrap_errors("deformation_gradient_rate_jacobian", "Ḟ の計算に失敗しました"):
        dFdt = deformation_gradient_rate(L, F, dim=dim)
    Lm = as_tensor(L, dim).reshape(dim, dim)
    Fm = as_tensor(F, dim).reshape(dim, dim)
    eye = np.eye(dim)
    n2 = dim * dim
    dFdtdL = np.einsum("ik,lI->iIkl", eye, Fm).reshape(n2, n2)
    dFdtdF = np.einsum("ik,IK->iIkK", Lm, eye).reshape(n2, n2)
    return DeformationRateJacobian(dFdt, dFdtdL, dFdtdF)

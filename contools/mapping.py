"""基準配置と現配置の間のテンソル写像.

変形勾配 F（J = det F）による push-forward / pull-back と解析ヤコビアン:

  σ = F S Fᵀ / J           第 2 Piola-Kirchhoff 応力 → Cauchy 応力
  S = J F⁻¹ σ F⁻ᵀ          Cauchy 応力 → 第 2 Piola-Kirchhoff 応力
  e = F⁻ᵀ E F⁻¹            Green-Lagrange ひずみ → Almansi ひずみ
  E = Fᵀ e F               Almansi ひずみ → Green-Lagrange ひずみ
  L̄ = F⁻¹ L F              速度勾配の引き戻し

ヤコビアンは入れ子形式 (n*n, n*n)。大文字添字は基準配置、小文字添字は現配置。
"""

from __future__ import annotations

import numpy as np

from contools.core.errors import wrap_errors
from contools.core.results import MappingJacobianResult
from contools.math.tensor import as_tensor, determinant, inverse


def _operands(tensor, F, dim: int, operation: str, name: str):
    t = as_tensor(tensor, dim, name=name, operation=operation).reshape(dim, dim)
    Fm = as_tensor(F, dim, name="F", operation=operation).reshape(dim, dim)
    return t, Fm


def _inverse_and_det(Fm: np.ndarray, dim: int, operation: str):
    with wrap_errors(operation, "変形勾配 F が特異です"):
        J = determinant(Fm, dim, nonsingular=True)
        Finv = inverse(Fm, dim).reshape(dim, dim)
    return Finv, J


# ---------------------------------------------------------------------------
# 応力
# ---------------------------------------------------------------------------


def push_forward_pk2_stress(S, F, *, dim: int = 3) -> np.ndarray:
    """第 2 Piola-Kirchhoff 応力を Cauchy 応力に写す σ = F S Fᵀ / J.

    Args:
        S: (dim*dim,) 第 2 Piola-Kirchhoff 応力
        F: (dim*dim,) 変形勾配
        dim: 空間次元

    Returns:
        sigma: (dim*dim,) Cauchy 応力

    Raises:
        ShapeMismatchError: S または F が dim x dim でない場合
        SingularMatrixError: det(F) = 0 の場合
    """
    Sm, Fm = _operands(S, F, dim, "push_forward_pk2_stress", "S")
    with wrap_errors("push_forward_pk2_stress", "変形勾配 F が特異です"):
        J = determinant(Fm, dim, nonsingular=True)
    return (Fm @ Sm @ Fm.T / J).ravel()


def map_pk2_to_cauchy(S, F, *, dim: int = 3) -> np.ndarray:
    """第 2 Piola-Kirchhoff 応力から Cauchy 応力への写像（値のみ）."""
    with wrap_errors("map_pk2_to_cauchy", "応力の push-forward に失敗しました"):
        return push_forward_pk2_stress(S, F, dim=dim)


def push_forward_pk2_stress_jacobian(S, F, *, dim: int = 3) -> MappingJacobianResult:
    """σ = F S Fᵀ / J と ∂σ/∂S, ∂σ/∂F.

    ∂σ_ij/∂S_AB = F_iA F_jB / J
    ∂σ_ij/∂F_AB = −σ_ij F⁻¹_BA + (δ_iA S_BI F_jI + F_iI S_IB δ_jA) / J
    """
    with wrap_errors("push_forward_pk2_stress_jacobian", "応力の push-forward に失敗しました"):
        sigma = push_forward_pk2_stress(S, F, dim=dim)
        Sm, Fm = _operands(S, F, dim, "push_forward_pk2_stress_jacobian", "S")
    Finv, J = _inverse_and_det(Fm, dim, "push_forward_pk2_stress_jacobian")
    sig = sigma.reshape(dim, dim)
    eye = np.eye(dim)
    n2 = dim * dim

    dsigdS = np.einsum("iA,jB->ijAB", Fm, Fm) / J
    dsigdF = (
        -np.einsum("ij,BA->ijAB", sig, Finv)
        + np.einsum("iA,Bj->ijAB", eye, Sm @ Fm.T) / J
        + np.einsum("iB,jA->ijAB", Fm @ Sm, eye) / J
    )
    return MappingJacobianResult(sigma, dsigdS.reshape(n2, n2), dsigdF.reshape(n2, n2))


def pull_back_cauchy_stress(sigma, F, *, dim: int = 3) -> np.ndarray:
    """Cauchy 応力を第 2 Piola-Kirchhoff 応力に戻す S = J F⁻¹ σ F⁻ᵀ."""
    sig, Fm = _operands(sigma, F, dim, "pull_back_cauchy_stress", "sigma")
    Finv, J = _inverse_and_det(Fm, dim, "pull_back_cauchy_stress")
    return (J * Finv @ sig @ Finv.T).ravel()


def pull_back_cauchy_stress_jacobian(sigma, F, *, dim: int = 3) -> MappingJacobianResult:
    """S = J F⁻¹ σ F⁻ᵀ と ∂S/∂σ, ∂S/∂F.

    ∂S_AB/∂σ_kl = J F⁻¹_Ak F⁻¹_Bl
    ∂S_AB/∂F_kl = F⁻¹_lk S_AB − F⁻¹_Ak S_lB − F⁻¹_Bk S_Al
    """
    with wrap_errors("pull_back_cauchy_stress_jacobian", "応力の pull-back に失敗しました"):
        S = pull_back_cauchy_stress(sigma, F, dim=dim)
        _, Fm = _operands(sigma, F, dim, "pull_back_cauchy_stress_jacobian", "sigma")
    Finv, J = _inverse_and_det(Fm, dim, "pull_back_cauchy_stress_jacobian")
    Sm = S.reshape(dim, dim)
    n2 = dim * dim

    dSdsig = J * np.einsum("Ak,Bl->ABkl", Finv, Finv)
    dSdF = (
        np.einsum("lk,AB->ABkl", Finv, Sm)
        - np.einsum("Ak,lB->ABkl", Finv, Sm)
        - np.einsum("Bk,Al->ABkl", Finv, Sm)
    )
    return MappingJacobianResult(S, dSdsig.reshape(n2, n2), dSdF.reshape(n2, n2))


# ---------------------------------------------------------------------------
# ひずみ
# ---------------------------------------------------------------------------


def push_forward_green_lagrange_strain(E, F, *, dim: int = 3) -> np.ndarray:
    """Green-Lagrange ひずみを Almansi ひずみに写す e = F⁻ᵀ E F⁻¹."""
    Em, Fm = _operands(E, F, dim, "push_forward_green_lagrange_strain", "E")
    Finv, _ = _inverse_and_det(Fm, dim, "push_forward_green_lagrange_strain")
    return (Finv.T @ Em @ Finv).ravel()


def push_forward_green_lagrange_strain_jacobian(
    E, F, *, dim: int = 3
) -> MappingJacobianResult:
    """e = F⁻ᵀ E F⁻¹ と ∂e/∂E, ∂e/∂F.

    ∂e_ij/∂E_KL = F⁻¹_Ki F⁻¹_Lj
    ∂e_ij/∂F_KL = −F⁻¹_Li e_Kj − F⁻¹_Lj e_iK
    """
    with wrap_errors(
        "push_forward_green_lagrange_strain_jacobian", "ひずみの push-forward に失敗しました"
    ):
        e = push_forward_green_lagrange_strain(E, F, dim=dim)
        _, Fm = _operands(E, F, dim, "push_forward_green_lagrange_strain_jacobian", "E")
    Finv, _ = _inverse_and_det(Fm, dim, "push_forward_green_lagrange_strain_jacobian")
    em = e.reshape(dim, dim)
    n2 = dim * dim

    dedE = np.einsum("Ki,Lj->ijKL", Finv, Finv)
    dedF = -np.einsum("Li,Kj->ijKL", Finv, em) - np.einsum("Lj,iK->ijKL", Finv, em)
    return MappingJacobianResult(e, dedE.reshape(n2, n2), dedF.reshape(n2, n2))


def pull_back_almansi_strain(e, F, *, dim: int = 3) -> np.ndarray:
    """Almansi ひずみを Green-Lagrange ひずみに戻す E = Fᵀ e F."""
    em, Fm = _operands(e, F, dim, "pull_back_almansi_strain", "e")
    with wrap_errors("pull_back_almansi_strain", "変形勾配 F が特異です"):
        determinant(Fm, dim, nonsingular=True)
    return (Fm.T @ em @ Fm).ravel()


def pull_back_almansi_strain_jacobian(e, F, *, dim: int = 3) -> MappingJacobianResult:
    """E = Fᵀ e F と ∂E/∂e, ∂E/∂F.

    ∂E_IJ/∂e_KL = F_KI F_LJ
    ∂E_IJ/∂F_KL = δ_IL (e F)_KJ + (Fᵀ e)_IK δ_JL
    """
    with wrap_errors("pull_back_almansi_strain_jacobian", "ひずみの pull-back に失敗しました"):
        E = pull_back_almansi_strain(e, F, dim=dim)
    em, Fm = _operands(e, F, dim, "pull_back_almansi_strain_jacobian", "e")
    eye = np.eye(dim)
    n2 = dim * dim

    dEde = np.einsum("KI,LJ->IJKL", Fm, Fm)
    dEdF = np.einsum("IL,KJ->IJKL", eye, em @ Fm) + np.einsum("JL,IK->IJKL", eye, Fm.T @ em)
    return MappingJacobianResult(E, dEde.reshape(n2, n2), dEdF.reshape(n2, n2))


# ---------------------------------------------------------------------------
# 速度勾配
# ---------------------------------------------------------------------------


def pull_back_velocity_gradient(L, F, *, dim: int = 3) -> np.ndarray:
    """現配置の速度勾配を基準配置に戻す L̄ = F⁻¹ L F."""
    Lm, Fm = _operands(L, F, dim, "pull_back_velocity_gradient", "L")
    Finv, _ = _inverse_and_det(Fm, dim, "pull_back_velocity_gradient")
    return (Finv @ Lm @ Fm).ravel()


def pull_back_velocity_gradient_jacobian(L, F, *, dim: int = 3) -> MappingJacobianResult:
    """L̄ = F⁻¹ L F と ∂L̄/∂L, ∂L̄/∂F.

    ∂L̄_IJ/∂L_kl = F⁻¹_Ik F_lJ
    ∂L̄_IJ/∂F_kK = −F⁻¹_Ik L̄_KJ + (F⁻¹L)_Ik δ_JK
    """
    with wrap_errors(
        "pull_back_velocity_gradient_jacobian", "速度勾配の pull-back に失敗しました"
    ):
        Lbar = pull_back_velocity_gradient(L, F, dim=dim)
        Lm, Fm = _operands(L, F, dim, "pull_back_velocity_gradient_jacobian", "L")
    Finv, _ = _inverse_and_det(Fm, dim, "pull_back_velocity_gradient_jacobian")
    Lbm = Lbar.reshape(dim, dim)
    eye = np.eye(dim)
    n2 = dim * dim

    dLbardL = np.einsum("Ik,lJ->IJkl", Finv, Fm)
    dLbardF = -np.einsum("Ik,KJ->IJkK", Finv, Lbm) + np.einsum("Ik,JK->IJkK", Finv @ Lm, eye)
    return MappingJacobianResult(Lbar, dLbardL.reshape(n2, n2), dLbardF.reshape(n2, n2))

"""小規模密テンソルの線形代数モジュール.

構成則の運動学・写像・時間積分が共通で使う 2 階/4 階テンソル演算を提供する。

規約:
  - 2 階テンソル A は行優先の平坦配列 (n*n,)。A_ij = A[n*i + j]
  - 4 階テンソル（ヤコビアン）は入れ子形式 (n*n, n*n)。
    ∂A_ij/∂B_kl は行 n*i + j、列 n*k + l
  - 平坦形式 ((n*n)*(n*n),) との変換は flatten / inflate で行い、
    変換は値を一切変えない

行列式・逆行列は scipy.linalg を使う。
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import scipy.linalg as la

from contools.core.errors import (
    InvalidDomainError,
    ShapeMismatchError,
    SingularMatrixError,
)

# ---------------------------------------------------------------------------
# 入力の正規化
# ---------------------------------------------------------------------------


def as_tensor(
    A,
    dim: int = 3,
    *,
    name: str = "A",
    operation: str = "as_tensor",
) -> np.ndarray:
    """2 階テンソルを (dim*dim,) の float 配列に正規化する.

    Args:
        A: (dim*dim,) または (dim, dim) の配列様オブジェクト
        dim: 空間次元
        name: エラーメッセージに使う引数名
        operation: エラーを報告する演算名

    Returns:
        a: (dim*dim,) float 配列（入力とは独立なコピー）

    Raises:
        ShapeMismatchError: 要素数が dim*dim でない場合
    """
    a = np.array(A, dtype=float).ravel()
    if a.size != dim * dim:
        raise ShapeMismatchError(
            operation,
            f"{name} は {dim}x{dim} テンソル（要素数 {dim * dim}）である必要があります"
            f"（受け取った要素数: {a.size}）",
        )
    return a


def as_vector(A, *, name: str = "A", operation: str = "as_vector") -> np.ndarray:
    """任意長のベクトルを 1 次元 float 配列に正規化する."""
    a = np.array(A, dtype=float).ravel()
    if a.size == 0:
        raise ShapeMismatchError(operation, f"{name} が空です")
    return a


def _square(a: np.ndarray, dim: int) -> np.ndarray:
    return a.reshape(dim, dim)


# ---------------------------------------------------------------------------
# 基本演算
# ---------------------------------------------------------------------------


def identity(dim: int = 3) -> np.ndarray:
    """単位テンソル δ_ij を (dim*dim,) で返す."""
    return np.eye(dim).ravel()


def matmul(
    A,
    B,
    dim: int = 3,
    *,
    transpose_a: bool = False,
    transpose_b: bool = False,
) -> np.ndarray:
    """2 階テンソルの積 op(A)·op(B).

    Args:
        A, B: (dim*dim,) テンソル
        dim: 空間次元
        transpose_a: True なら A の転置を使う
        transpose_b: True なら B の転置を使う

    Returns:
        C: (dim*dim,) 積
    """
    a = _square(as_tensor(A, dim, name="A", operation="matmul"), dim)
    b = _square(as_tensor(B, dim, name="B", operation="matmul"), dim)
    if transpose_a:
        a = a.T
    if transpose_b:
        b = b.T
    return (a @ b).ravel()


def transpose(A, dim: int = 3) -> np.ndarray:
    """転置 A^T."""
    a = as_tensor(A, dim, operation="transpose")
    return _square(a, dim).T.ravel()


def determinant(A, dim: int = 3, *, nonsingular: bool = False) -> float:
    """行列式 det(A).

    Args:
        A: (dim*dim,) テンソル
        dim: 空間次元
        nonsingular: True なら det(A) = 0 を SingularMatrixError とする

    Returns:
        det: 行列式
    """
    a = as_tensor(A, dim, operation="determinant")
    det = float(la.det(_square(a, dim)))
    if nonsingular and (det == 0.0 or not np.isfinite(det)):
        raise SingularMatrixError("determinant", f"行列式が {det} です")
    return det


def inverse(A, dim: int = 3) -> np.ndarray:
    """逆テンソル A⁻¹.

    Raises:
        ShapeMismatchError: 要素数が dim*dim でない場合
        SingularMatrixError: A が特異な場合
    """
    a = _square(as_tensor(A, dim, operation="inverse"), dim)
    det = la.det(a)
    if det == 0.0 or not np.isfinite(det):
        raise SingularMatrixError("inverse", f"行列式が {det} のため逆行列が存在しません")
    try:
        inv = la.inv(a)
    except la.LinAlgError as err:
        raise SingularMatrixError("inverse", f"逆行列の計算に失敗しました: {err}") from err
    if not np.all(np.isfinite(inv)):
        raise SingularMatrixError("inverse", "逆行列に非有限値が含まれます")
    return inv.ravel()


def d_determinant_dA(A, dim: int = 3) -> np.ndarray:
    """行列式の微分 ∂det(A)/∂A = det(A)·A⁻ᵀ を (dim*dim,) で返す."""
    a = as_tensor(A, dim, operation="d_determinant_dA")
    det = determinant(a, dim, nonsingular=True)
    return det * _square(inverse(a, dim), dim).T.ravel()


def dyadic(a, b) -> np.ndarray:
    """二項積 a ⊗ b を (len(a), len(b)) で返す."""
    return np.outer(np.asarray(a, dtype=float), np.asarray(b, dtype=float))


def inner(a, b) -> float:
    """全成分の内積 a : b."""
    a = np.asarray(a, dtype=float).ravel()
    b = np.asarray(b, dtype=float).ravel()
    if a.size != b.size:
        raise ShapeMismatchError("inner", f"要素数が一致しません ({a.size} != {b.size})")
    return float(np.dot(a, b))


# ---------------------------------------------------------------------------
# ヤコビアンの平坦形式 ⇔ 入れ子形式
# ---------------------------------------------------------------------------


def inflate(flat, rows: int, cols: int) -> np.ndarray:
    """平坦配列を (rows, cols) の入れ子形式に戻す.

    Raises:
        ShapeMismatchError: 要素数が rows*cols でない場合
    """
    a = np.array(flat, dtype=float).ravel()
    if a.size != rows * cols:
        raise ShapeMismatchError(
            "inflate", f"要素数 {a.size} を ({rows}, {cols}) に変換できません"
        )
    return a.reshape(rows, cols)


def flatten(nested) -> np.ndarray:
    """入れ子形式のヤコビアンを行優先の平坦配列にする."""
    return np.array(nested, dtype=float).ravel()


# ---------------------------------------------------------------------------
# 許容誤差付き比較
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FuzzyTolerance:
    """許容誤差付き比較の閾値.

    |a - b| <= atol + rtol·|b| のとき a と b を等しいとみなす。

    Attributes:
        rtol: 相対許容誤差
        atol: 絶対許容誤差
    """

    rtol: float = 1e-6
    atol: float = 1e-6

    def __post_init__(self) -> None:
        if self.rtol < 0.0:
            raise InvalidDomainError("FuzzyTolerance", f"rtol は非負: {self.rtol}")
        if self.atol < 0.0:
            raise InvalidDomainError("FuzzyTolerance", f"atol は非負: {self.atol}")


DEFAULT_TOLERANCE = FuzzyTolerance()


def fuzzy_equals(a, b, tol: FuzzyTolerance = DEFAULT_TOLERANCE) -> bool:
    """a と b が全成分で許容誤差内に等しいか.

    形状が異なる場合は False。NaN は何とも等しくない。
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.shape != b.shape:
        return False
    return bool(np.all(np.abs(a - b) <= tol.atol + tol.rtol * np.abs(b)))

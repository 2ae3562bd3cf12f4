"""構成則ツール群の例外定義.

全ての例外は ConstitutiveToolsError（ValueError の派生）を基底とし、
ErrorKind で失敗の種別を表す。

エラーチェーン:
  上位の演算が下位の演算の失敗を受け取った場合、
  ``raise err.wrap(operation, message) from err`` で自身の演算名を付けて
  再送出する。種別（kind）は保持され、``__cause__`` がチェーンを構成する。

    try:
        F = deformation_gradient(grad_u, is_current=True)
    except ConstitutiveToolsError as err:
        for e in err.iter_chain():
            print(e.operation, e.message)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum


class ErrorKind(Enum):
    """失敗の種別."""

    SHAPE_MISMATCH = "shape_mismatch"
    INVALID_DOMAIN = "invalid_domain"
    SINGULAR_MATRIX = "singular_matrix"
    NEGATIVE_JACOBIAN_DETERMINANT = "negative_jacobian_determinant"


class ConstitutiveToolsError(ValueError):
    """構成則ツール群の例外基底クラス.

    Attributes:
        kind: 失敗の種別
        operation: 失敗を報告した演算名
        message: 人間可読の説明
    """

    kind: ErrorKind | None = None

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message

    def wrap(self, operation: str, message: str) -> ConstitutiveToolsError:
        """同じ種別で上位の演算名を持つ例外を生成する.

        生成した例外は ``raise ... from self`` で送出すること。
        """
        return type(self)(operation, message)

    @property
    def cause(self) -> ConstitutiveToolsError | None:
        """直下の原因（下位演算の例外）. なければ None."""
        cause = self.__cause__
        if isinstance(cause, ConstitutiveToolsError):
            return cause
        return None

    def iter_chain(self) -> Iterator[ConstitutiveToolsError]:
        """自身から根本原因までを順に返す."""
        err: ConstitutiveToolsError | None = self
        while err is not None:
            yield err
            err = err.cause

    @property
    def root_cause(self) -> ConstitutiveToolsError:
        """チェーン末端（最初に失敗した演算）の例外."""
        *_, last = self.iter_chain()
        return last

    def format_chain(self) -> str:
        """チェーン全体を1行1演算の文字列にする."""
        return "\n".join(f"{e.operation}: {e.message}" for e in self.iter_chain())


class ShapeMismatchError(ConstitutiveToolsError):
    """サイズの不整合（非正方・長さ不一致・パラメータ数不正）."""

    kind = ErrorKind.SHAPE_MISMATCH


class InvalidDomainError(ConstitutiveToolsError):
    """定義域外の入力（α ∉ [0,1]、未対応モード、ゼロ分母など）."""

    kind = ErrorKind.INVALID_DOMAIN


class SingularMatrixError(ConstitutiveToolsError):
    """逆行列が存在しない演算子."""

    kind = ErrorKind.SINGULAR_MATRIX


class NegativeJacobianDeterminantError(InvalidDomainError):
    """det(2E + I) ≤ 0 で体積比 J が定義できない."""

    kind = ErrorKind.NEGATIVE_JACOBIAN_DETERMINANT


@contextmanager
def wrap_errors(operation: str, message: str) -> Iterator[None]:
    """ブロック内の下位演算の失敗に演算名を付けて再送出する.

    Args:
        operation: 呼び出し側の演算名
        message: 呼び出し側から見た失敗内容

    Raises:
        ConstitutiveToolsError: 下位の例外と同じ種別。``__cause__`` に下位の例外。
    """
    try:
        yield
    except ConstitutiveToolsError as err:
        raise err.wrap(operation, message) from err

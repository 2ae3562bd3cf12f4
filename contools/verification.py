"""差分による解析ヤコビアンの検証.

構成則の consistent tangent を実装したら、まず差分ヤコビアンと比較する。

    result = check_jacobian(
        lambda F: green_lagrange_strain(F),
        F0,
        green_lagrange_strain_jacobian(F0).jacobian,
        JacobianCheckConfig(verbose=True),
    )
    assert result.passed

摂動量は成分ごとに δ_i = eps·|x_i| + eps。
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

import numpy as np

from contools.core.errors import InvalidDomainError, ShapeMismatchError
from contools.core.results import JacobianCheckResult
from contools.math.tensor import FuzzyTolerance, fuzzy_equals


@dataclass
class JacobianCheckConfig:
    """差分ヤコビアン検証の設定.

    Attributes:
        eps: 摂動量の係数
        scheme: "central"（中心差分）または "forward"（前進差分）
        rtol: 相対許容誤差
        atol: 絶対許容誤差
        verbose: True なら結果を 1 行で表示する
    """

    eps: float = 1e-6
    scheme: Literal["central", "forward"] = "central"
    rtol: float = 1e-5
    atol: float = 1e-5
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.eps <= 0.0:
            raise InvalidDomainError("JacobianCheckConfig", f"eps は正: {self.eps}")
        if self.scheme not in ("central", "forward"):
            raise InvalidDomainError(
                "JacobianCheckConfig", f"未対応の差分スキーム: {self.scheme}"
            )
        if self.rtol < 0.0 or self.atol < 0.0:
            raise InvalidDomainError(
                "JacobianCheckConfig", f"許容誤差は非負: rtol={self.rtol}, atol={self.atol}"
            )


def finite_difference_jacobian(
    func: Callable[[np.ndarray], np.ndarray | float],
    x,
    config: JacobianCheckConfig | None = None,
) -> np.ndarray:
    """ベクトル値関数の差分ヤコビアン.

    Args:
        func: x (n,) を受け取り (m,) またはスカラーを返す関数
        x: (n,) 評価点
        config: 差分設定

    Returns:
        J: (m, n) 差分ヤコビアン
    """
    cfg = config or JacobianCheckConfig()
    x0 = np.array(x, dtype=float).ravel()
    f0 = np.atleast_1d(np.asarray(func(x0.copy()), dtype=float)).ravel()
    jac = np.zeros((f0.size, x0.size))

    for i in range(x0.size):
        delta = cfg.eps * abs(x0[i]) + cfg.eps
        xp = x0.copy()
        xp[i] += delta
        fp = np.atleast_1d(np.asarray(func(xp), dtype=float)).ravel()
        if cfg.scheme == "forward":
            jac[:, i] = (fp - f0) / delta
        else:
            xm = x0.copy()
            xm[i] -= delta
            fm = np.atleast_1d(np.asarray(func(xm), dtype=float)).ravel()
            jac[:, i] = (fp - fm) / (2.0 * delta)
    return jac


def check_jacobian(
    func: Callable[[np.ndarray], np.ndarray | float],
    x,
    analytic,
    config: JacobianCheckConfig | None = None,
) -> JacobianCheckResult:
    """解析ヤコビアンを差分ヤコビアンと比較する.

    判定は fuzzy_equals と同じ |fd − analytic| ≤ atol + rtol·|analytic|。

    Args:
        func: 検証対象の関数
        x: (n,) 評価点
        analytic: (m, n) 解析ヤコビアン（スカラー関数では導関数の値でもよい）
        config: 差分設定

    Returns:
        JacobianCheckResult

    Raises:
        ShapeMismatchError: analytic の要素数が m*n でない場合
    """
    cfg = config or JacobianCheckConfig()
    fd = finite_difference_jacobian(func, x, cfg)
    an = np.asarray(analytic, dtype=float)
    if an.size != fd.size:
        raise ShapeMismatchError(
            "check_jacobian",
            f"解析ヤコビアンの要素数 {an.size} が差分ヤコビアン {fd.shape} と一致しません",
        )
    an = an.reshape(fd.shape)

    abs_err = np.abs(fd - an)
    scale = np.abs(an)
    rel_err = np.divide(abs_err, scale, out=np.zeros_like(abs_err), where=scale > 0.0)
    max_abs = float(abs_err.max()) if abs_err.size else 0.0
    max_rel = float(rel_err.max()) if rel_err.size else 0.0
    passed = fuzzy_equals(fd, an, FuzzyTolerance(rtol=cfg.rtol, atol=cfg.atol))

    if cfg.verbose:
        print(
            f"[check_jacobian] shape={fd.shape}, scheme={cfg.scheme}, "
            f"max_abs={max_abs:.3e}, max_rel={max_rel:.3e}, passed={passed}"
        )
    return JacobianCheckResult(passed, max_abs, max_rel, fd)

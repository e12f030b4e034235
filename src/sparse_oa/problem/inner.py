from __future__ import annotations

from typing import Tuple

import numpy as np

from .losses import LossFunction


def inner_op(loss: LossFunction, Y: np.ndarray, X: np.ndarray, s: np.ndarray, gamma: float) -> Tuple[float, np.ndarray]:
    """Value and gradient of the partial minimization over w restricted to s.

        c(s) = min_w  sum_i l(y_i, x_i^T w) + 1/(2 gamma) ||w||^2,  w_j = 0 if s_j = 0

    With b = dl/dz at the restricted optimum, the gradient in s is
        dc/ds_j = -gamma/2 (X_j^T b)^2
    which is defined for every feature, selected or not.
    """
    s = np.asarray(s, dtype=float)
    idx = np.flatnonzero(s > 0.5)
    w = loss.fit(Y, X[:, idx], gamma)
    z = X[:, idx] @ w if idx.size else np.zeros(X.shape[0])
    value = loss.value(Y, z) + float(w @ w) / (2.0 * gamma)
    b = loss.derivative(Y, z)
    grad = -0.5 * gamma * (X.T @ b) ** 2
    return float(value), np.asarray(grad, dtype=float)


def recover_primal(loss: LossFunction, Y: np.ndarray, X: np.ndarray, gamma: float) -> np.ndarray:
    """Refit ridge-regularized coefficients on the selected columns of X."""
    return loss.fit(Y, X, gamma)


__all__ = ["inner_op", "recover_primal"]

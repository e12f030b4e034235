from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np
from scipy.optimize import minimize
from scipy.special import expit

log = logging.getLogger(__name__)


class LossFunction(ABC):
    """Separable loss sum_i l(y_i, z_i) over predictions z = X w.

    Subclasses provide the loss value and its derivative in z; the
    ridge-regularized fit on a restricted design is shared.
    """

    name: str = ""
    max_iter: int = 500
    tol: float = 1e-8

    @abstractmethod
    def value(self, y: np.ndarray, z: np.ndarray) -> float:
        """Total loss sum_i l(y_i, z_i)."""

    @abstractmethod
    def derivative(self, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        """Vector of dl/dz evaluated at (y_i, z_i)."""

    def validate_targets(self, y: np.ndarray) -> None:
        if not np.all(np.isfinite(y)):
            raise ValueError("targets must be finite")

    def fit(self, y: np.ndarray, X: np.ndarray, gamma: float) -> np.ndarray:
        """Minimize sum_i l(y_i, x_i^T w) + ||w||^2 / (2 gamma) over w."""
        d = X.shape[1]
        if d == 0:
            return np.zeros(0)

        def _objective(w: np.ndarray):
            z = X @ w
            f = self.value(y, z) + float(w @ w) / (2.0 * gamma)
            g = X.T @ self.derivative(y, z) + w / gamma
            return f, g

        res = minimize(
            _objective,
            np.zeros(d),
            jac=True,
            method="L-BFGS-B",
            options={"maxiter": self.max_iter, "gtol": self.tol},
        )
        if not res.success:
            log.debug("%s fit stopped early: %s", self.name, res.message)
        return np.asarray(res.x, dtype=float)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LeastSquares(LossFunction):
    """l(y, z) = 1/2 (y - z)^2, fitted in closed form."""

    name = "least_squares"

    def value(self, y: np.ndarray, z: np.ndarray) -> float:
        r = y - z
        return 0.5 * float(r @ r)

    def derivative(self, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        return z - y

    def fit(self, y: np.ndarray, X: np.ndarray, gamma: float) -> np.ndarray:
        n, d = X.shape
        if d == 0:
            return np.zeros(0)
        if n < d:
            # Kernel form: w = gamma X^T (I + gamma X X^T)^-1 y
            alpha = np.linalg.solve(np.eye(n) + gamma * (X @ X.T), y)
            return gamma * (X.T @ alpha)
        return np.linalg.solve(np.eye(d) / gamma + X.T @ X, X.T @ y)


class _MarginLoss(LossFunction):
    def validate_targets(self, y: np.ndarray) -> None:
        super().validate_targets(y)
        if not np.all(np.isin(y, (-1.0, 1.0))):
            raise ValueError(f"{self.name} loss expects labels in {{-1, +1}}")


class Logistic(_MarginLoss):
    """l(y, z) = log(1 + exp(-y z))"""

    name = "logistic"

    def value(self, y: np.ndarray, z: np.ndarray) -> float:
        return float(np.logaddexp(0.0, -y * z).sum())

    def derivative(self, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        return -y * expit(-y * z)


class SquaredHinge(_MarginLoss):
    """l(y, z) = max(0, 1 - y z)^2"""

    name = "squared_hinge"

    def value(self, y: np.ndarray, z: np.ndarray) -> float:
        m = np.maximum(0.0, 1.0 - y * z)
        return float(m @ m)

    def derivative(self, y: np.ndarray, z: np.ndarray) -> np.ndarray:
        return -2.0 * y * np.maximum(0.0, 1.0 - y * z)


_LOSSES: dict[str, type[LossFunction]] = {
    "least_squares": LeastSquares,
    "ols": LeastSquares,
    "logistic": Logistic,
    "logreg": Logistic,
    "squared_hinge": SquaredHinge,
    "l2svm": SquaredHinge,
}


def get_loss(name: str | LossFunction) -> LossFunction:
    if isinstance(name, LossFunction):
        return name
    key = str(name).strip().lower().replace("-", "_")
    try:
        return _LOSSES[key]()
    except KeyError:
        raise ValueError(
            f"Unknown loss '{name}'. Available: {', '.join(sorted(_LOSSES))}"
        ) from None


__all__ = [
    "LossFunction",
    "LeastSquares",
    "Logistic",
    "SquaredHinge",
    "get_loss",
]

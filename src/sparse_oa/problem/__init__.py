from .losses import LossFunction, LeastSquares, Logistic, SquaredHinge, get_loss
from .inner import inner_op, recover_primal

__all__ = [
    "LossFunction",
    "LeastSquares",
    "Logistic",
    "SquaredHinge",
    "get_loss",
    "inner_op",
    "recover_primal",
]

"""sparse_oa

Cardinality-constrained sparse regression and classification,

    min  sum_i l(y_i, x_i^T w) + 1/(2 gamma) ||w||^2   s.t.  ||w||_0 <= k,

solved by outer approximation over binary feature-selection variables.
The package provides:

- The outer-approximation core: master model, lazy separation procedure,
  incumbent tracker and driver (`sparse_oa.oa`)
- Pyomo backends for the discrete search: an iterative cutting-plane loop
  for any MIP solver, and a single branch-and-bound run with Gurobi lazy
  constraints
- Default convex oracle and primal recovery for several losses
  (`sparse_oa.problem`)
- A small CLI and YAML-based configuration
"""

from .oa.driver import OuterApproximation, solve
from .oa.types import OAResult, SolveStatus
from .runner import run

__all__ = [
    "__version__",
    "OuterApproximation",
    "OAResult",
    "SolveStatus",
    "solve",
    "run",
]

__version__ = "0.1.0"

import numpy as np
import pytest

from sparse_oa.oa.backends import IterativeBackend, LazyGurobiBackend


@pytest.fixture
def highs_backend():
    backend = IterativeBackend(solver="appsi_highs")
    if not backend.available():
        pytest.skip("appsi_highs (highspy) not available")
    return backend


@pytest.fixture
def gurobi_backend():
    pytest.importorskip("gurobipy")
    backend = LazyGurobiBackend()
    if not backend.available():
        pytest.skip("gurobi_persistent not available")
    return backend


@pytest.fixture
def informative_data():
    """p=5 design where only features 0 and 3 drive the response."""
    rng = np.random.default_rng(7)
    n, p = 60, 5
    X = rng.standard_normal((n, p))
    y = 3.0 * X[:, 0] - 2.0 * X[:, 3] + 0.1 * rng.standard_normal(n)
    return X, y


@pytest.fixture
def random_data():
    rng = np.random.default_rng(11)
    n, p = 40, 6
    X = rng.standard_normal((n, p))
    y = X @ rng.standard_normal(p) + 0.5 * rng.standard_normal(n)
    return X, y


@pytest.fixture(params=["highs_backend", "gurobi_backend"])
def mip_backend(request):
    """Each available discrete-search backend in turn."""
    return request.getfixturevalue(request.param)


@pytest.fixture
def wide_data():
    """p=12 design with four informative features and moderate noise."""
    rng = np.random.default_rng(21)
    n, p = 50, 12
    X = rng.standard_normal((n, p))
    y = X[:, :4] @ np.array([1.5, -1.0, 0.8, -0.6]) + 0.5 * rng.standard_normal(n)
    return X, y


@pytest.fixture
def hard_data():
    """p=40 design whose response is pure noise, so bounds close slowly."""
    rng = np.random.default_rng(31)
    n, p = 60, 40
    return rng.standard_normal((n, p)), rng.standard_normal(n)

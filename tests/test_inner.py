import numpy as np
import pytest

from sparse_oa.problem.inner import inner_op, recover_primal
from sparse_oa.problem.losses import LeastSquares, Logistic, SquaredHinge, get_loss


def _relaxed_ls_value(y, X, s, gamma):
    # c(s) = 1/2 y^T (I + gamma sum_j s_j X_j X_j^T)^-1 y, defined for fractional s
    K = (X * s) @ X.T
    return 0.5 * float(y @ np.linalg.solve(np.eye(len(y)) + gamma * K, y))


def _random_support(rng, p):
    return (rng.random(p) < 0.5).astype(float)


def test_least_squares_value_matches_primal_objective(random_data):
    X, y = random_data
    gamma = 0.7
    s = np.array([1, 0, 1, 0, 0, 1], dtype=float)
    value, grad = inner_op(LeastSquares(), y, X, s, gamma)

    Xs = X[:, [0, 2, 5]]
    w = np.linalg.solve(np.eye(3) / gamma + Xs.T @ Xs, Xs.T @ y)
    r = y - Xs @ w
    expected = 0.5 * r @ r + w @ w / (2 * gamma)
    assert value == pytest.approx(expected, rel=1e-10)
    assert value == pytest.approx(_relaxed_ls_value(y, X, s, gamma), rel=1e-10)
    assert grad.shape == (6,)
    assert np.all(grad <= 0.0)


def test_least_squares_gradient_matches_finite_differences(random_data):
    X, y = random_data
    gamma = 1.3
    s = np.array([0, 1, 1, 0, 1, 0], dtype=float)
    _, grad = inner_op(LeastSquares(), y, X, s, gamma)
    h = 1e-6
    for j in range(X.shape[1]):
        e = np.zeros_like(s)
        e[j] = h
        fd = (_relaxed_ls_value(y, X, s + e, gamma) - _relaxed_ls_value(y, X, s - e, gamma)) / (2 * h)
        assert grad[j] == pytest.approx(fd, rel=1e-4, abs=1e-6)


def test_empty_support():
    rng = np.random.default_rng(1)
    X = rng.standard_normal((10, 3))
    y = rng.standard_normal(10)
    value, grad = inner_op(LeastSquares(), y, X, np.zeros(3), 2.0)
    assert value == pytest.approx(0.5 * y @ y)
    assert np.allclose(grad, -0.5 * 2.0 * (X.T @ y) ** 2)


@pytest.mark.parametrize("loss", [LeastSquares(), Logistic(), SquaredHinge()])
def test_cuts_lower_bound_the_oracle_everywhere(loss):
    rng = np.random.default_rng(5)
    n, p, gamma = 30, 7, 0.8
    X = rng.standard_normal((n, p))
    z = X[:, 0] - X[:, 4] + 0.3 * rng.standard_normal(n)
    y = z if isinstance(loss, LeastSquares) else np.where(z >= 0, 1.0, -1.0)

    for _ in range(15):
        s0 = _random_support(rng, p)
        c0, g0 = inner_op(loss, y, X, s0, gamma)
        for _ in range(5):
            s1 = _random_support(rng, p)
            c1, _ = inner_op(loss, y, X, s1, gamma)
            assert c0 + g0 @ (s1 - s0) <= c1 + 1e-4 * max(1.0, abs(c1))


def test_recover_primal_matches_ridge(random_data):
    X, y = random_data
    Xs = X[:, [1, 4]]
    w = recover_primal(LeastSquares(), y, Xs, 0.5)
    assert w.shape == (2,)
    assert np.allclose(w, np.linalg.solve(np.eye(2) / 0.5 + Xs.T @ Xs, Xs.T @ y))
    assert recover_primal(LeastSquares(), y, X[:, []], 0.5).shape == (0,)


def test_kernel_form_used_when_features_outnumber_samples():
    rng = np.random.default_rng(2)
    X = rng.standard_normal((5, 12))
    y = rng.standard_normal(5)
    gamma = 0.3
    w = LeastSquares().fit(y, X, gamma)
    assert np.allclose(w, np.linalg.solve(np.eye(12) / gamma + X.T @ X, X.T @ y))


def test_logistic_fit_is_stationary():
    rng = np.random.default_rng(4)
    X = rng.standard_normal((50, 3))
    y = np.where(X[:, 0] + 0.2 * rng.standard_normal(50) > 0, 1.0, -1.0)
    loss, gamma = Logistic(), 2.0
    w = loss.fit(y, X, gamma)
    grad = X.T @ loss.derivative(y, X @ w) + w / gamma
    assert np.linalg.norm(grad) < 1e-4


def test_get_loss_and_label_validation():
    assert isinstance(get_loss("ols"), LeastSquares)
    assert isinstance(get_loss("Logistic"), Logistic)
    assert isinstance(get_loss("l2svm"), SquaredHinge)
    loss = Logistic()
    assert get_loss(loss) is loss
    with pytest.raises(ValueError):
        get_loss("huber")
    with pytest.raises(ValueError):
        Logistic().validate_targets(np.array([0.0, 1.0]))
    LeastSquares().validate_targets(np.array([0.0, 3.5]))

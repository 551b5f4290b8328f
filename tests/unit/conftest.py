"""Shared pytest fixtures for unit tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator."""
    return np.random.default_rng(42)


@pytest.fixture
def linear_model():
    """2D discrete-time linear model with a scalar input and one measurement."""
    A = np.array([[1.0, 0.1], [-0.2, 0.95]])
    G = np.array([0.0, 0.1])
    C = np.array([[1.0, 0.0]])
    Q = 0.01 * np.eye(2)
    R = np.array([[0.05]])
    m0 = np.zeros(2)
    P0 = np.eye(2)

    def f(x, u):
        return x @ A.T + u * G

    def h(x):
        return x @ C.T

    return {'f': f, 'h': h, 'A': A, 'G': G, 'C': C, 'Q': Q, 'R': R, 'm0': m0, 'P0': P0}


@pytest.fixture
def linear_ssm(rng, linear_model):
    """Simulated trajectory of the linear model."""
    T = 50
    m = linear_model
    us = np.sin(0.3 * np.arange(T))

    xs = np.zeros((T, 2))
    ys = np.zeros((T, 1))
    x = rng.multivariate_normal(m['m0'], m['P0'])
    for t in range(T):
        x = m['f'](x, us[t]) + rng.multivariate_normal(np.zeros(2), m['Q'])
        xs[t] = x
        ys[t] = m['h'](x) + rng.normal(0.0, np.sqrt(m['R'][0, 0]), size=1)

    return {**m, 'xs': xs, 'ys': ys, 'us': us, 'T': T}


@pytest.fixture
def nonlinear_model():
    """Pendulum-like 2D model with a range measurement."""
    Q = 0.01 * np.eye(2)
    R = np.array([[0.05]])
    m0 = np.array([1.0, 0.5])
    P0 = np.array([[0.2, 0.05], [0.05, 0.2]])

    def f(x, u):
        return np.stack([x[..., 1], -np.sin(x[..., 0]) - 0.1 * x[..., 1] + u], axis=-1)

    def h(x):
        return np.sqrt(x[..., 0]**2 + x[..., 1]**2)

    return {'f': f, 'h': h, 'Q': Q, 'R': R, 'm0': m0, 'P0': P0}


def check_psd(matrix, tol=1e-10):
    """Check if matrix is positive semi-definite."""
    return np.all(np.linalg.eigvalsh(matrix) >= -tol)

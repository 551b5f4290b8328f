"""Kalman Filter (KF) for linear models with a known input."""
import numpy as np
from scipy import linalg as sla

from .common import (
    ConfigurationError, as_sequences, check_covariance, joseph_update, standard_update,
)


def _solve_lu(S, B):
    """Solve S @ X = B using LU factorization (np.linalg.solve)."""
    return np.linalg.solve(S, B)


def _solve_cholesky(S, B):
    """Solve S @ X = B using Cholesky factorization (assumes S is SPD)."""
    L = sla.cholesky(S, lower=True)
    return sla.cho_solve((L, True), B)


_SOLVERS = {'lu': _solve_lu, 'cholesky': _solve_cholesky}


def kalman_filter(A, C, Q, R, m0, P0, ys, us=None, G=None, joseph=True, solver='cholesky'):
    """
    Kalman Filter for the linear Gaussian model

        x_t = A x_{t-1} + G u_t + v_t,   v_t ~ N(0, Q)
        y_t = C x_t + w_t,               w_t ~ N(0, R)

    Parameters
    ----------
    A : ndarray [n_x, n_x]
        State transition matrix
    C : ndarray [n_y, n_x]
        Observation matrix
    Q : ndarray [n_x, n_x]
        Process noise covariance
    R : ndarray [n_y, n_y]
        Observation noise covariance
    m0 : ndarray [n_x]
        Initial mean
    P0 : ndarray [n_x, n_x]
        Initial covariance
    ys : ndarray [T, n_y]
        Observations
    us : ndarray [T, n_u], optional
        Inputs (zero when omitted)
    G : ndarray [n_x, n_u], optional
        Input matrix (required with us)
    joseph : bool
        Use Joseph stabilized covariance update (default: True)
    solver : str
        Solver for Kalman gain: 'lu' or 'cholesky' (default: 'cholesky')

    Returns
    -------
    m_filt : ndarray [T, n_x]
        Filtered state means
    P_filt : ndarray [T, n_x, n_x]
        Filtered state covariances
    cond_nums : ndarray [T]
        Condition numbers of P
    """
    if solver not in _SOLVERS:
        raise ConfigurationError(f"unknown solver '{solver}'")
    solve_fn = _SOLVERS[solver]

    A, C = np.atleast_2d(A), np.atleast_2d(C)
    n_x = A.shape[0]
    if us is None:
        us = np.zeros(len(ys))
        G = np.zeros((n_x, 1))
    elif G is None:
        raise ConfigurationError("input matrix G is required when inputs are given")
    ys, us = as_sequences(ys, us)
    G = np.asarray(G, dtype=float).reshape(n_x, us.shape[1])
    Q = check_covariance('Q', Q, n_x)
    R = check_covariance('R', R, ys.shape[1])
    P0 = check_covariance('P0', P0, n_x)

    T = ys.shape[0]
    m, P = np.asarray(m0, dtype=float).copy(), P0.copy()
    m_filt = np.zeros((T, n_x))
    P_filt = np.zeros((T, n_x, n_x))
    cond_nums = np.zeros(T)

    for t in range(T):
        # Predict
        m_pred = A @ m + G @ us[t]
        P_pred = A @ P @ A.T + Q

        # Update: K = P_pred @ C.T @ S^{-1}
        S = C @ P_pred @ C.T + R
        K = solve_fn(S.T, C @ P_pred.T).T
        m = m_pred + K @ (ys[t] - C @ m_pred)
        P = joseph_update(P_pred, K, C, R) if joseph else standard_update(P_pred, K, C)

        m_filt[t], P_filt[t] = m, P
        cond_nums[t] = np.linalg.cond(P)

    return m_filt, P_filt, cond_nums

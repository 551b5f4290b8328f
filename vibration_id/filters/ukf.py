"""Unscented Kalman Filter (UKF) for joint state and parameter estimation."""
import logging
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from scipy.linalg import cho_factor as cholesky_factor, cho_solve as cholesky_solve

from .common import (
    ConfigurationError, FilterStatus, as_sequences, check_covariance,
    check_measurement_size, input_at, map_states, psd_sqrt, symmetrize,
)
from .propagator import make_discrete

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UKFConfig:
    """
    Scaled unscented transform parameters.

    alpha sets the sigma point spread, beta folds in prior knowledge of the
    distribution (2 is optimal for Gaussians) and kappa is the secondary
    scaling parameter.
    """
    alpha: float = 1.0
    beta: float = 2.0
    kappa: float = 0.0


class UKFResult(NamedTuple):
    """
    Output trajectory of run_ukf.

    Arrays hold the first n_steps time steps only; when status is not
    COMPLETED they end at the last step that produced a valid posterior.
    """
    means: np.ndarray
    covariances: np.ndarray
    cond_nums: np.ndarray
    status: FilterStatus
    n_steps: int
    psd_corrections: int
    message: str = ''

    @property
    def ok(self):
        return self.status is FilterStatus.COMPLETED


class _InstabilityDetected(Exception):
    pass


def run_ukf(F, H, x0, P0, ys, us, Q, R, step, config=UKFConfig(),
            max_condition=1e12, should_stop=None, executor=None):
    """
    Unscented Kalman Filter over an augmented state.

    Parameters
    ----------
    F : callable
        Vector field F(x, u) -> dx/dt, or a step map F(x, u) -> x_next
        when step is None
    H : callable
        Measurement function H(x) -> y
    x0 : ndarray [n_x]
        Initial mean
    P0 : ndarray [n_x, n_x]
        Initial covariance
    ys : ndarray [T, n_y] or [T]
        Measurements
    us : ndarray [T, n_u] or [T]
        Exogenous inputs; us[t] drives the transition into step t
    Q : ndarray [n_x, n_x]
        Process noise covariance (per step)
    R : ndarray [n_y, n_y]
        Measurement noise covariance
    step : float or None
        Integration step for the RK4 propagator
    config : UKFConfig
        Unscented transform scaling
    max_condition : float
        Largest condition number accepted for the innovation and posterior
        covariances before the run is declared numerically unstable
    should_stop : callable, optional
        should_stop(t) -> bool, polled before each step
    executor : concurrent.futures.Executor, optional
        Evaluates sigma points concurrently

    Returns
    -------
    UKFResult
    """
    x0 = np.asarray(x0, dtype=float).ravel()
    n_x = x0.shape[0]
    P0 = check_covariance('P0', P0, n_x)
    Q = check_covariance('Q', Q, n_x)
    ys, us = as_sequences(ys, us)
    R = check_covariance('R', R, ys.shape[1])
    check_measurement_size(H, x0, ys.shape[1])
    f = make_discrete(F, step)
    W_m, W_c, gamma = _ukf_weights(n_x, config.alpha, config.beta, config.kappa)

    T = ys.shape[0]
    m_filt = np.zeros((T, n_x))
    P_filt = np.zeros((T, n_x, n_x))
    cond_nums = np.zeros(T)

    m, P = x0.copy(), P0.copy()
    status, message = FilterStatus.COMPLETED, ''
    corrections = 0
    t = 0
    for t in range(T):
        if should_stop is not None and should_stop(t):
            status, message = FilterStatus.ABORTED, f'stopped before step {t}'
            break

        u = input_at(us, t)
        # Predict
        sigma, corrected = _sigma_points(m, P, gamma)
        corrections += corrected
        sigma_pred = map_states(lambda s: f(s, u), sigma, executor)
        if not np.all(np.isfinite(sigma_pred)):
            status = FilterStatus.PROPAGATION_FAILURE
            message = f'non-finite sigma points at step {t}'
            break
        m_pred, P_pred = _recombine(sigma_pred, W_m, W_c, Q)

        # Update
        try:
            m_new, P_new, corrected = _update(
                m_pred, P_pred, ys[t], H, R, W_m, W_c, gamma, max_condition, executor
            )
        except _InstabilityDetected as e:
            status, message = FilterStatus.NUMERICAL_INSTABILITY, f'step {t}: {e}'
            break
        corrections += corrected

        m, P = m_new, P_new
        m_filt[t], P_filt[t] = m, P
        cond_nums[t] = np.linalg.cond(P)
    else:
        t = T

    if status is not FilterStatus.COMPLETED:
        logger.warning("UKF stopped (%s): %s", status.value, message)
    if corrections:
        logger.debug("UKF applied %d covariance floor corrections", corrections)

    return UKFResult(m_filt[:t], P_filt[:t], cond_nums[:t], status, t, corrections, message)


def _ukf_weights(n_x, alpha, beta, kappa):
    """Compute UKF weights and scaling factor."""
    spread = alpha**2 * (n_x + kappa)
    if not spread > 0:
        raise ConfigurationError(
            f"alpha={alpha}, kappa={kappa} give n + lambda = {spread} for n = {n_x}"
        )
    lam = spread - n_x
    gamma = np.sqrt(spread)

    W_m = np.full(2 * n_x + 1, 1 / (2 * spread))
    W_c = W_m.copy()
    W_m[0] = lam / spread
    W_c[0] = lam / spread + (1 - alpha**2 + beta)

    return W_m, W_c, gamma


def _sigma_points(m, P, gamma):
    """Generate sigma points; also reports whether P needed a PSD floor."""
    n_x = len(m)
    sqrt_P, corrected = psd_sqrt(P)

    sigma = np.zeros((2 * n_x + 1, n_x))
    sigma[0] = m
    sigma[1:n_x + 1] = m + gamma * sqrt_P.T
    sigma[n_x + 1:] = m - gamma * sqrt_P.T
    return sigma, corrected


def _recombine(points, W_m, W_c, noise):
    """Weighted mean and covariance of transformed points plus noise."""
    mean = W_m @ points
    d = points - mean
    cov = d.T @ (W_c[:, None] * d) + noise
    return mean, symmetrize(cov)


def unscented_transform(m, P, fn, config=UKFConfig(), noise=None):
    """
    Propagate (m, P) through fn with the unscented transform.

    Parameters
    ----------
    m : ndarray [n]
    P : ndarray [n, n]
    fn : callable
        fn(x) -> ndarray [k]
    config : UKFConfig
    noise : ndarray [k, k], optional
        Additive noise covariance

    Returns
    -------
    mean : ndarray [k]
    cov : ndarray [k, k]
    """
    W_m, W_c, gamma = _ukf_weights(len(m), config.alpha, config.beta, config.kappa)
    sigma, _ = _sigma_points(m, P, gamma)
    points = np.array([np.atleast_1d(fn(s)) for s in sigma])
    if noise is None:
        noise = np.zeros((points.shape[1], points.shape[1]))
    return _recombine(points, W_m, W_c, noise)


def ukf_predict(m, P, f, u, Q, config=UKFConfig()):
    """UKF prediction step for a step map f(x, u) -> x_next."""
    W_m, W_c, gamma = _ukf_weights(len(m), config.alpha, config.beta, config.kappa)
    sigma, _ = _sigma_points(m, P, gamma)
    sigma_pred = np.array([f(s, u) for s in sigma])
    return _recombine(sigma_pred, W_m, W_c, Q)


def ukf_update(m_pred, P_pred, y, h, R, config=UKFConfig(), max_condition=1e12):
    """
    UKF update step.

    Raises
    ------
    numpy.linalg.LinAlgError
        If the innovation covariance is singular or the posterior covariance
        lost positive definiteness
    """
    W_m, W_c, gamma = _ukf_weights(len(m_pred), config.alpha, config.beta, config.kappa)
    try:
        m, P, _ = _update(m_pred, P_pred, np.atleast_1d(y), h, np.atleast_2d(R),
                          W_m, W_c, gamma, max_condition)
    except _InstabilityDetected as e:
        raise np.linalg.LinAlgError(str(e)) from None
    return m, P


def _update(m_pred, P_pred, y, h, R, W_m, W_c, gamma, max_condition, executor=None):
    sigma, corrected = _sigma_points(m_pred, P_pred, gamma)
    sigma_obs = map_states(lambda s: np.atleast_1d(h(s)), sigma, executor)
    if not np.all(np.isfinite(sigma_obs)):
        raise _InstabilityDetected('non-finite predicted measurements')

    y_pred = W_m @ sigma_obs
    dy = sigma_obs - y_pred
    P_yy = dy.T @ (W_c[:, None] * dy) + R
    P_xy = (sigma - m_pred).T @ (W_c[:, None] * dy)

    if not np.all(np.isfinite(P_yy)) or np.linalg.cond(P_yy) > max_condition:
        raise _InstabilityDetected('singular innovation covariance')
    try:
        L, lower = cholesky_factor(P_yy)
    except np.linalg.LinAlgError:
        raise _InstabilityDetected('innovation covariance is not positive definite') from None
    K = cholesky_solve((L, lower), P_xy.T).T

    m = m_pred + K @ (y - y_pred)
    P = symmetrize(P_pred - K @ P_yy @ K.T)

    eigvals = np.linalg.eigvalsh(P)
    if not np.all(np.isfinite(eigvals)) or eigvals.min() <= eigvals.max() / max_condition:
        raise _InstabilityDetected(
            f'posterior covariance degenerate (eigenvalues {eigvals.min():.3e} to {eigvals.max():.3e})'
        )
    return m, P, corrected

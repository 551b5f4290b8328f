"""Common utilities for Kalman filter variants and particle filters."""
import enum
import time

import numpy as np


class ConfigurationError(ValueError):
    """Raised before any recursion starts when filter inputs are inconsistent."""


class FilterStatus(enum.Enum):
    """Termination state of a filter run."""
    COMPLETED = 'completed'
    ABORTED = 'aborted'
    NUMERICAL_INSTABILITY = 'numerical_instability'
    PROPAGATION_FAILURE = 'propagation_failure'


def joseph_update(P_pred, K, H, R):
    """
    Compute Joseph-stabilized covariance update.

    Parameters
    ----------
    P_pred : ndarray [n_x, n_x]
        Predicted covariance
    K : ndarray [n_x, n_y]
        Kalman gain
    H : ndarray [n_y, n_x]
        Observation matrix
    R : ndarray [n_y, n_y]
        Observation noise covariance

    Returns
    -------
    ndarray [n_x, n_x]
        Updated covariance
    """
    IKH = np.eye(P_pred.shape[0]) - K @ H
    return IKH @ P_pred @ IKH.T + K @ R @ K.T


def standard_update(P_pred, K, H):
    """Covariance update P = (I - KH) P_pred."""
    return (np.eye(P_pred.shape[0]) - K @ H) @ P_pred


def symmetrize(P):
    """Average a matrix with its transpose."""
    return 0.5 * (P + P.T)


def nearest_psd(P, floor=1e-10):
    """
    Symmetrize and floor the eigenvalues of a covariance matrix.

    Parameters
    ----------
    P : ndarray [n, n]
        Covariance that failed a Cholesky factorization
    floor : float
        Smallest eigenvalue kept, relative to the largest one

    Returns
    -------
    ndarray [n, n]
        Symmetric positive definite matrix
    """
    eigvals, eigvecs = np.linalg.eigh(symmetrize(P))
    scale = max(np.max(np.abs(eigvals)), 1.0)
    eigvals = np.maximum(eigvals, floor * scale)
    return (eigvecs * eigvals) @ eigvecs.T


def psd_sqrt(P, floor=1e-10):
    """
    Lower-triangular square root of a covariance matrix.

    Falls back to the symmetrize-and-floor correction when the Cholesky
    factorization fails on round-off.

    Returns
    -------
    L : ndarray [n, n]
        Matrix with L @ L.T approximately equal to P
    corrected : bool
        True when the eigenvalue floor had to be applied
    """
    try:
        return np.linalg.cholesky(P), False
    except np.linalg.LinAlgError:
        return np.linalg.cholesky(nearest_psd(P, floor)), True


def is_psd(M, tol=1e-10):
    """Check if matrix is symmetric positive semi-definite."""
    if not np.all(np.isfinite(M)):
        return False
    if not np.allclose(M, M.T, rtol=1e-8, atol=tol):
        return False
    eigvals = np.linalg.eigvalsh(symmetrize(M))
    return bool(eigvals.min() >= -tol * max(1.0, np.abs(eigvals).max()))


def check_covariance(name, M, n):
    """
    Validate a covariance argument.

    Parameters
    ----------
    name : str
        Argument name used in the error message
    M : array_like
        Candidate covariance (scalar accepted when n == 1)
    n : int
        Expected dimension

    Returns
    -------
    ndarray [n, n]

    Raises
    ------
    ConfigurationError
        If M has the wrong shape or is not symmetric PSD
    """
    M = np.atleast_2d(np.asarray(M, dtype=float))
    if M.shape != (n, n):
        raise ConfigurationError(f"{name} must have shape ({n}, {n}), got {M.shape}")
    if not is_psd(M):
        raise ConfigurationError(f"{name} must be symmetric positive semi-definite")
    return M


def as_sequences(ys, us):
    """
    Coerce measurement and input sequences to 2-D arrays of equal length.

    Returns
    -------
    ys : ndarray [T, n_y]
    us : ndarray [T, n_u]
    """
    ys = np.asarray(ys, dtype=float)
    us = np.asarray(us, dtype=float)
    if ys.ndim == 1:
        ys = ys.reshape(-1, 1)
    if us.ndim == 1:
        us = us.reshape(-1, 1)
    if ys.ndim != 2 or us.ndim != 2:
        raise ConfigurationError("measurements and inputs must be 1-D or 2-D sequences")
    if ys.shape[0] != us.shape[0]:
        raise ConfigurationError(
            f"got {ys.shape[0]} measurements but {us.shape[0]} inputs"
        )
    return ys, us


def input_at(us, t):
    """Input for step t; single-channel inputs are passed as scalars."""
    u = us[t]
    return u[0] if u.shape[0] == 1 else u


def check_step(step):
    """Validate the integration step (None means a pre-discretized model)."""
    if step is not None and not step > 0:
        raise ConfigurationError(f"step must be positive, got {step}")


def check_measurement_size(H, x, n_y):
    """Evaluate H once on a single state and compare its size with the data."""
    size = np.size(H(x))
    if size != n_y:
        raise ConfigurationError(
            f"measurement function returns {size} channels, measurements have {n_y}"
        )


def map_states(fn, states, executor=None):
    """Evaluate fn on each row of states, optionally on an executor."""
    if executor is None:
        return np.array([fn(s) for s in states])
    return np.array(list(executor.map(fn, states)))


def wall_clock_budget(seconds):
    """
    Build a should_stop callback that aborts once the budget is spent.

    The clock starts when the callback is created.
    """
    deadline = time.monotonic() + seconds

    def should_stop(t):
        return time.monotonic() > deadline

    return should_stop

"""
Metrics for evaluating filter performance.
"""
import numpy as np


def compute_mse(estimated, true):
    """Mean squared error."""
    return np.mean((estimated - true)**2)


def compute_rmse(estimated, true):
    """Root mean squared error."""
    return np.sqrt(compute_mse(estimated, true))


def compute_nees(m_filt, P_filt, xs, regularize=1e-8):
    """
    Compute Normalized Estimation Error Squared (NEES).

    NEES = (x - m)' * P^{-1} * (x - m)

    For a consistent filter, NEES should follow chi-squared(n_x) distribution.

    Parameters
    ----------
    m_filt : ndarray [T, n_x]
        Filtered means
    P_filt : ndarray [T, n_x, n_x]
        Filtered covariances
    xs : ndarray [T, n_x]
        True states
    regularize : float
        Small value added to diagonal for numerical stability

    Returns
    -------
    ndarray [T]
        NEES values at each time step
    """
    T, n_x = m_filt.shape
    nees = np.zeros(T)

    for t in range(T):
        error = xs[t] - m_filt[t]
        P_reg = P_filt[t] + regularize * np.eye(n_x)
        try:
            nees[t] = error @ np.linalg.solve(P_reg, error)
        except np.linalg.LinAlgError:
            # Fallback to pseudo-inverse for singular matrices
            nees[t] = error @ np.linalg.lstsq(P_reg, error, rcond=None)[0]

    return nees


def stability_summary(cond_nums, mse=None):
    """
    Summary statistics for numerical stability metrics.

    Returns
    -------
    dict
        mean_cond, max_cond and, if given, mse
    """
    summary = {
        'mean_cond': np.mean(cond_nums),
        'max_cond': np.max(cond_nums),
    }
    if mse is not None:
        summary['mse'] = mse
    return summary


def compute_symmetry_error(P_filt):
    """
    Relative symmetry error ||P - P'||_F / ||P||_F over all time steps.

    Parameters
    ----------
    P_filt : ndarray [T, n_x, n_x]

    Returns
    -------
    ndarray [T]
    """
    norms = np.linalg.norm(P_filt, axis=(1, 2))
    asym = np.linalg.norm(P_filt - np.swapaxes(P_filt, 1, 2), axis=(1, 2))
    return np.divide(asym, norms, out=np.zeros_like(asym), where=norms > 0)


def compute_min_eigenvalues(P_filt):
    """
    Minimum eigenvalue of P at each time step.

    Negative values indicate loss of positive semi-definiteness.
    """
    return np.array([np.linalg.eigvalsh(P).min() for P in P_filt])


def standard_deviations(P_filt):
    """Per-step standard deviations sqrt(diag(P)), shape [T, n_x]."""
    return np.sqrt(np.maximum(np.diagonal(P_filt, axis1=1, axis2=2), 0.0))


def relative_error_stats(estimated, true):
    """
    Relative error statistics of an estimated signal.

    Samples where the true value is exactly zero are skipped.

    Parameters
    ----------
    estimated : ndarray [T]
    true : ndarray [T]

    Returns
    -------
    dict
        mean, var and mean_square (var + mean^2) of (estimated - true) / true
    """
    estimated, true = np.asarray(estimated), np.asarray(true)
    mask = true != 0
    err = (estimated[mask] - true[mask]) / true[mask]
    mean = float(np.mean(err))
    var = float(np.var(err, ddof=1)) if err.size > 1 else 0.0
    return {'mean': mean, 'var': var, 'mean_square': var + mean**2}


def parameter_estimate(means, indices, start=0):
    """
    Time average of parameter estimates from step start onwards.

    Parameters
    ----------
    means : ndarray [T, n_x]
        Filtered augmented-state means
    indices : sequence of int
        Columns holding the parameters
    start : int
        First step included in the average

    Returns
    -------
    ndarray [len(indices)]
    """
    means = np.asarray(means)
    if start >= means.shape[0]:
        raise ValueError(f"start={start} is past the end of a {means.shape[0]}-step trajectory")
    return means[start:, list(indices)].mean(axis=0)


def parameter_relative_errors(estimate, true):
    """Absolute relative errors |estimate - true| / |true|."""
    true = np.asarray(true, dtype=float)
    return np.abs(np.asarray(estimate) - true) / np.abs(true)

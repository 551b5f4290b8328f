"""Truth simulation, measurement noise and noise covariance construction."""
import numpy as np
from scipy.linalg import block_diag

from ..filters.propagator import rk4_step


def simulate_response(rhs, x0, us, dt):
    """
    Simulate the response with fixed-step RK4.

    Parameters
    ----------
    rhs : callable
        rhs(x, u) -> dx/dt
    x0 : ndarray [n_x]
        Initial state
    us : ndarray [T]
        Input sequence; us[t] drives the step from xs[t] to xs[t + 1]
    dt : float
        Step size

    Returns
    -------
    xs : ndarray [T + 1, n_x]
        States, xs[0] = x0
    """
    x0 = np.asarray(x0, dtype=float)
    T = len(us)
    xs = np.zeros((T + 1, x0.shape[0]))
    xs[0] = x0
    for t in range(T):
        xs[t + 1] = rk4_step(rhs, xs[t], us[t], dt)
    return xs


def add_measurement_noise(signal, noise_ratio, rng):
    """
    Add white noise scaled to the RMS of each channel.

    Parameters
    ----------
    signal : ndarray [T] or [T, n_y]
        Noise-free measurements
    noise_ratio : float
        Noise standard deviation as a fraction of the channel RMS
    rng : np.random.Generator

    Returns
    -------
    ndarray
        Noisy measurements, same shape as signal
    """
    signal = np.asarray(signal, dtype=float)
    rms = np.sqrt(np.mean(signal**2, axis=0))
    return signal + noise_ratio * rms * rng.standard_normal(signal.shape)


def soft_discretize(state_var, param_var, n_state, n_param, dt):
    """
    Process noise covariance blkdiag(state_var I, param_var I) * dt.

    Returns
    -------
    ndarray [n_state + n_param, n_state + n_param]
    """
    return block_diag(state_var * np.eye(n_state), param_var * np.eye(n_param)) * dt


def measurement_covariance(r, n_obs, dt):
    """Measurement noise covariance r I / dt."""
    return r * np.eye(n_obs) / dt


def augmented_prior(x0_state, theta0, state_var, param_var):
    """
    Initial mean and covariance of the augmented state.

    Returns
    -------
    m0 : ndarray [n]
    P0 : ndarray [n, n]
    """
    x0_state, theta0 = np.atleast_1d(x0_state), np.atleast_1d(theta0)
    m0 = np.concatenate([x0_state, theta0]).astype(float)
    P0 = block_diag(state_var * np.eye(len(x0_state)), param_var * np.eye(len(theta0)))
    return m0, P0

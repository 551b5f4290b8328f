"""Bootstrap Particle Filter for joint state and parameter estimation."""
import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np
from scipy.linalg import solve_triangular

from .common import (
    ConfigurationError, FilterStatus, as_sequences, check_covariance,
    check_measurement_size, input_at, map_states,
)
from .propagator import make_discrete

logger = logging.getLogger(__name__)

RESAMPLE_MODES = ('always', 'ess', 'never')
# Steps whose ESS is within this of 1 count as degenerate
DEGENERATE_ESS_TOL = 1e-6


@dataclass(frozen=True)
class ResamplePolicy:
    """
    When and how to resample.

    mode='always' resamples every step, 'ess' only when the effective sample
    size falls below threshold * N, 'never' runs plain sequential importance
    sampling. scheme is one of 'systematic', 'stratified' or 'multinomial'.
    """
    mode: str = 'always'
    threshold: float = 0.5
    scheme: str = 'systematic'

    def should_resample(self, ess, n_particles):
        if self.mode == 'always':
            return True
        if self.mode == 'ess':
            return ess < self.threshold * n_particles
        return False


class ParticleFilterResult(NamedTuple):
    """
    Output trajectory of run_particle_filter.

    particles and weights hold the weighted population of each step before
    resampling; both are None when the clouds were not kept. degenerate marks
    steps where every weight vanished (previous weights were kept) or where
    the ESS fell to a single particle.
    """
    means: np.ndarray
    covariances: np.ndarray
    particles: Optional[np.ndarray]
    weights: Optional[np.ndarray]
    ess: np.ndarray
    resampled: np.ndarray
    degenerate: np.ndarray
    status: FilterStatus
    n_steps: int
    message: str = ''

    @property
    def ok(self):
        return self.status is FilterStatus.COMPLETED


def sample_initial_particles(m0, P0, N_particles, rng):
    """Draw N_particles from N(m0, P0); returns particles [N, n_x] and uniform weights."""
    if N_particles <= 0:
        raise ConfigurationError(f"N_particles must be positive, got {N_particles}")
    m0 = np.asarray(m0, dtype=float)
    particles = rng.multivariate_normal(m0, np.atleast_2d(P0), size=N_particles)
    weights = np.full(N_particles, 1.0 / N_particles)
    return particles, weights


def run_particle_filter(F, H, particles0, weights0, ys, us, Q, R, step,
                        resample_policy=ResamplePolicy(), rng=None,
                        vectorized=False, keep_particles=True, should_stop=None,
                        executor=None):
    """
    Bootstrap Particle Filter with Gaussian process and measurement noise.

    Parameters
    ----------
    F : callable
        Vector field F(x, u) -> dx/dt, or a step map when step is None.
        With vectorized=True, F and H receive the whole particle array
        [N, n_x] and must index state components as x[..., i].
    H : callable
        Measurement function H(x) -> y
    particles0 : ndarray [N, n_x]
        Initial particles
    weights0 : ndarray [N]
        Initial weights (normalized internally)
    ys : ndarray [T, n_y] or [T]
        Measurements
    us : ndarray [T, n_u] or [T]
        Exogenous inputs
    Q : ndarray [n_x, n_x]
        Process noise covariance (per step)
    R : ndarray [n_y, n_y]
        Measurement noise covariance, must be positive definite
    step : float or None
        Integration step for the RK4 propagator
    resample_policy : ResamplePolicy
    rng : np.random.Generator
    vectorized : bool
        Evaluate F and H on the whole particle array at once
    keep_particles : bool
        Store the weighted particle cloud of every step
    should_stop : callable, optional
        should_stop(t) -> bool, polled before each step
    executor : concurrent.futures.Executor, optional
        Evaluates per-particle functions concurrently

    Returns
    -------
    ParticleFilterResult
    """
    if rng is None:
        rng = np.random.default_rng()

    particles = np.array(particles0, dtype=float, ndmin=2)
    N, n_x = particles.shape
    if N <= 0:
        raise ConfigurationError("at least one particle is required")
    w = _check_weights(weights0, N)
    _check_policy(resample_policy)
    Q = check_covariance('Q', Q, n_x)
    ys, us = as_sequences(ys, us)
    n_y = ys.shape[1]
    R = check_covariance('R', R, n_y)
    check_measurement_size(H, particles[0], n_y)
    try:
        L_R = np.linalg.cholesky(R)
    except np.linalg.LinAlgError:
        raise ConfigurationError("R must be positive definite for the likelihood") from None
    L_Q = _noise_factor(Q)
    f = make_discrete(F, step)
    log_norm = -np.sum(np.log(np.diag(L_R))) - 0.5 * n_y * np.log(2 * np.pi)

    T = ys.shape[0]
    m_filt = np.zeros((T, n_x))
    P_filt = np.zeros((T, n_x, n_x))
    ess = np.zeros(T)
    resampled = np.zeros(T, dtype=bool)
    degenerate = np.zeros(T, dtype=bool)
    clouds = np.zeros((T, N, n_x)) if keep_particles else None
    cloud_weights = np.zeros((T, N)) if keep_particles else None

    status, message = FilterStatus.COMPLETED, ''
    t = 0
    for t in range(T):
        if should_stop is not None and should_stop(t):
            status, message = FilterStatus.ABORTED, f'stopped before step {t}'
            break

        # Propagate
        u = input_at(us, t)
        noise = rng.standard_normal((N, n_x)) @ L_Q.T
        particles = _propagate(f, particles, u, vectorized, executor) + noise
        if not np.all(np.isfinite(particles)):
            status = FilterStatus.PROPAGATION_FAILURE
            message = f'non-finite particles at step {t}'
            break

        # Weight
        y_pred = _measure(H, particles, vectorized, executor)
        z = solve_triangular(L_R, (ys[t] - y_pred).T, lower=True)
        log_lik = log_norm - 0.5 * np.sum(z**2, axis=0)
        with np.errstate(divide='ignore'):
            log_w = np.log(w) + log_lik
        log_w[np.isnan(log_w)] = -np.inf
        max_log_w = np.max(log_w)
        if np.isfinite(max_log_w):
            w = np.exp(log_w - max_log_w)
            w /= w.sum()
        else:
            degenerate[t] = True
            logger.warning("PF weights collapsed at step %d; keeping previous weights", t)
        ess[t] = 1.0 / np.sum(w**2)
        if N > 1 and ess[t] < 1.0 + DEGENERATE_ESS_TOL:
            degenerate[t] = True
            logger.debug("PF weight concentrated on a single particle at step %d", t)

        # Estimate
        m_filt[t] = w @ particles
        diff = particles - m_filt[t]
        P_filt[t] = np.einsum('i,ij,ik->jk', w, diff, diff)
        if keep_particles:
            clouds[t], cloud_weights[t] = particles, w

        # Resample
        if resample_policy.should_resample(ess[t], N):
            idx = resample(w, rng, resample_policy.scheme)
            particles = particles[idx]
            w = np.full(N, 1.0 / N)
            resampled[t] = True
    else:
        t = T

    if status is not FilterStatus.COMPLETED:
        logger.warning("PF stopped (%s): %s", status.value, message)
    if degenerate.any():
        logger.warning("PF weight degeneracy at %d of %d steps", degenerate.sum(), t)

    return ParticleFilterResult(
        m_filt[:t], P_filt[:t],
        clouds[:t] if keep_particles else None,
        cloud_weights[:t] if keep_particles else None,
        ess[:t], resampled[:t], degenerate[:t], status, t, message,
    )


def _check_weights(weights0, N):
    w = np.asarray(weights0, dtype=float).ravel()
    if w.shape[0] != N:
        raise ConfigurationError(f"got {w.shape[0]} weights for {N} particles")
    if np.any(w < 0) or not np.all(np.isfinite(w)) or w.sum() <= 0:
        raise ConfigurationError("weights must be finite, non-negative and not all zero")
    return w / w.sum()


def _check_policy(policy):
    if policy.mode not in RESAMPLE_MODES:
        raise ConfigurationError(f"unknown resampling mode '{policy.mode}'")
    if policy.scheme not in _SCHEMES:
        raise ConfigurationError(f"unknown resampling scheme '{policy.scheme}'")
    if policy.mode == 'ess' and not 0 < policy.threshold <= 1:
        raise ConfigurationError("ESS threshold must lie in (0, 1]")


def _noise_factor(Q):
    """Matrix L with L @ L.T == Q, valid for singular PSD Q."""
    try:
        return np.linalg.cholesky(Q)
    except np.linalg.LinAlgError:
        eigvals, eigvecs = np.linalg.eigh(Q)
        return eigvecs * np.sqrt(np.maximum(eigvals, 0.0))


def _propagate(f, particles, u, vectorized, executor):
    if vectorized:
        return np.asarray(f(particles, u))
    return map_states(lambda p: f(p, u), particles, executor)


def _measure(H, particles, vectorized, executor):
    if vectorized:
        return np.asarray(H(particles)).reshape(particles.shape[0], -1)
    return map_states(lambda p: np.atleast_1d(H(p)), particles, executor)


def systematic_resample(w, rng):
    """Systematic resampling (low variance)."""
    N = len(w)
    cumsum = np.cumsum(w)
    u = rng.uniform(0, 1.0 / N) + np.arange(N) / N
    return np.clip(np.searchsorted(cumsum, u), 0, N - 1)


def stratified_resample(w, rng):
    """Stratified resampling: one uniform draw per stratum."""
    N = len(w)
    cumsum = np.cumsum(w)
    u = (rng.uniform(size=N) + np.arange(N)) / N
    return np.clip(np.searchsorted(cumsum, u), 0, N - 1)


def multinomial_resample(w, rng):
    """Multinomial resampling: N independent draws."""
    N = len(w)
    return np.clip(np.searchsorted(np.cumsum(w), rng.uniform(size=N)), 0, N - 1)


_SCHEMES = {
    'systematic': systematic_resample,
    'stratified': stratified_resample,
    'multinomial': multinomial_resample,
}


def resample(w, rng, scheme='systematic'):
    """Resampled particle indices for normalized weights w."""
    return _SCHEMES[scheme](w, rng)


def effective_sample_size(w):
    """Effective sample size 1 / sum(w^2) of normalized weights."""
    return 1.0 / np.sum(np.asarray(w)**2)


def particle_percentiles(particles, weights, q=(15.87, 84.13)):
    """
    Weighted percentiles of a particle cloud, per state component.

    Parameters
    ----------
    particles : ndarray [N, n_x]
    weights : ndarray [N]
    q : sequence of float
        Percentiles in [0, 100]

    Returns
    -------
    ndarray [len(q), n_x]
    """
    particles = np.asarray(particles)
    w = np.asarray(weights, dtype=float)
    w = w / w.sum()
    q = np.asarray(q, dtype=float) / 100.0
    out = np.zeros((len(q), particles.shape[1]))
    for j in range(particles.shape[1]):
        order = np.argsort(particles[:, j])
        order = order[w[order] > 0]
        cdf = np.cumsum(w[order])
        # Midpoint (Hazen) plotting positions
        cdf_mid = cdf - 0.5 * w[order]
        out[:, j] = np.interp(q, cdf_mid, particles[order, j])
    return out


def percentile_bands(result, q=(15.87, 84.13)):
    """
    Weighted percentile bands over a stored particle trajectory.

    Parameters
    ----------
    result : ParticleFilterResult
        Must have been produced with keep_particles=True
    q : sequence of float

    Returns
    -------
    ndarray [T, len(q), n_x]
    """
    if result.particles is None:
        raise ValueError("particle clouds were not kept; rerun with keep_particles=True")
    if len(result.particles) == 0:
        return np.empty((0, len(q), result.particles.shape[2]))
    return np.array([
        particle_percentiles(p, w, q)
        for p, w in zip(result.particles, result.weights)
    ])

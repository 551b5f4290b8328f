"""Ground acceleration records and synthetic forcing."""
import logging

import numpy as np

logger = logging.getLogger(__name__)

GRAVITY = 9.82


def load_excitation(path, gravity=GRAVITY):
    """
    Load a two-column accelerogram (time [s], acceleration [g]).

    Parameters
    ----------
    path : str or Path
        Whitespace separated text file, e.g. the El Centro NS record
    gravity : float
        Conversion factor from g to m/s^2

    Returns
    -------
    t : ndarray [T]
        Sample times
    x_g : ndarray [T]
        Ground acceleration in m/s^2

    Raises
    ------
    ValueError
        If the record is not two columns or is not uniformly sampled
    """
    data = np.loadtxt(path, ndmin=2)
    if data.shape[1] != 2 or data.shape[0] < 2:
        raise ValueError(f"{path}: expected at least two rows of (time, acceleration)")

    t, x_g = data[:, 0], gravity * data[:, 1]
    dts = np.diff(t)
    if np.any(dts <= 0) or not np.allclose(dts, dts[0], rtol=1e-6, atol=1e-9):
        raise ValueError(f"{path}: samples must be uniformly spaced in time")

    logger.info("Loaded %d excitation samples (dt=%.4g s) from %s", len(t), dts[0], path)
    return t, x_g


def harmonic_excitation(n_steps, dt, frequencies=(0.3, 0.5, 0.8, 1.3), amplitudes=None,
                        ramp_time=0.0):
    """
    Deterministic multi-sine ground acceleration.

    Parameters
    ----------
    n_steps : int
        Number of samples
    dt : float
        Sample spacing (s)
    frequencies : sequence of float
        Component frequencies (Hz)
    amplitudes : sequence of float, optional
        Component amplitudes (m/s^2), ones by default
    ramp_time : float
        Length of a linear amplitude ramp from zero (s)

    Returns
    -------
    t : ndarray [n_steps]
    x_g : ndarray [n_steps]
    """
    t = dt * np.arange(1, n_steps + 1)
    if amplitudes is None:
        amplitudes = np.ones(len(frequencies))
    # Phases spread out so the components do not all peak together
    phases = np.pi * np.arange(len(frequencies)) / max(len(frequencies), 1)
    x_g = sum(a * np.sin(2 * np.pi * f * t + p) for f, a, p in zip(frequencies, amplitudes, phases))
    x_g = np.asarray(x_g, dtype=float)
    if ramp_time > 0:
        x_g *= np.minimum(t / ramp_time, 1.0)
    return t, x_g


def white_noise_excitation(n_steps, dt, rng, std=1.0, envelope=None):
    """
    Band-unlimited random ground acceleration.

    Parameters
    ----------
    n_steps : int
    dt : float
    rng : np.random.Generator
    std : float
        Standard deviation (m/s^2)
    envelope : callable, optional
        envelope(t) -> gain applied sample-wise, e.g. a build-up/decay shape

    Returns
    -------
    t : ndarray [n_steps]
    x_g : ndarray [n_steps]
    """
    t = dt * np.arange(1, n_steps + 1)
    x_g = std * rng.standard_normal(n_steps)
    if envelope is not None:
        x_g *= envelope(t)
    return t, x_g

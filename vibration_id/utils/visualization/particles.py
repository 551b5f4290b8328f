"""
Visualization utilities for particle filter results.
"""
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np

from .filters import _finish


DEFAULT_COLORS = {'UKF': '#1f77b4', 'PF': '#2ca02c'}


def plot_percentile_estimates(t, xs_true, means, bands, state_idx, labels, n_particles,
                              q=(15.87, 84.13), save_path=None):
    """
    Plot PF means with weighted percentile bands.

    Parameters
    ----------
    t : ndarray [T]
    xs_true : ndarray [T, n_state] or None
        True states; None for parameter-only plots
    means : ndarray [T, n_x]
    bands : ndarray [T, 2, n_x]
        Lower and upper percentiles (from percentile_bands)
    state_idx : sequence of int
    labels : sequence of str
    n_particles : int
    q : tuple
        Percentiles shown in the legend
    save_path : str, optional
    """
    fig, axes = plt.subplots(len(state_idx), 1, figsize=(12, 3.5 * len(state_idx)), squeeze=False)
    for ax, i, label in zip(axes[:, 0], state_idx, labels):
        ax.fill_between(t, bands[:, 0, i], bands[:, 1, i], color=(0.8, 0.8, 1.0),
                        label=f'$P_{{{q[0]}}}$ and $P_{{{q[1]}}}$')
        ax.plot(t, means[:, i], 'b-', linewidth=1, label=f'PF N = {n_particles}')
        if xs_true is not None:
            ax.plot(t, xs_true[:, i], 'r--', linewidth=1, label='True signal')
        ax.set_xlabel('Time [s]')
        ax.set_ylabel(label)
        ax.grid(True, alpha=0.3)
    axes[0, 0].legend(loc='lower right', ncol=3)
    _finish(fig, save_path)


def plot_ess(t, ess: Dict[str, np.ndarray], n_particles: int, save_path: Optional[str] = None,
             colors: Optional[Dict[str, str]] = None):
    """
    Plot effective sample size traces.

    Parameters
    ----------
    t : ndarray [T]
    ess : dict
        Label -> ESS array [T]
    n_particles : int
        Drawn as the upper reference line
    save_path : str, optional
    colors : dict, optional
    """
    colors = colors or DEFAULT_COLORS
    fig, ax = plt.subplots(figsize=(10, 4))
    for name, values in ess.items():
        ax.plot(t, values, color=colors.get(name), linewidth=1, label=name)
    ax.axhline(n_particles, color='k', linestyle=':', linewidth=1)
    ax.set_yscale('log')
    ax.set_xlabel('Time [s]')
    ax.set_ylabel('Effective sample size')
    ax.legend()
    ax.grid(True, alpha=0.3)
    _finish(fig, save_path)

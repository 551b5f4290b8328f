"""
Visualization functions for UKF results and filter comparisons.
"""
import numpy as np
import matplotlib.pyplot as plt


def _finish(fig, save_path):
    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
    else:
        plt.show()


def plot_measurements(t, acc_true, ys, save_path=None, zoom=None, channel_labels=None):
    """
    Plot noise-free accelerations against the noisy measurements.

    Parameters
    ----------
    t : ndarray [T]
        Time array
    acc_true : ndarray [T] or [T, n_y]
        Noise-free accelerations
    ys : ndarray [T] or [T, n_y]
        Measurements
    save_path : str, optional
        Path to save figure
    zoom : tuple, optional
        (t_start, t_end) window drawn in an inset
    channel_labels : list of str, optional
    """
    acc_true = acc_true.reshape(len(t), -1)
    ys = ys.reshape(len(t), -1)
    n_y = acc_true.shape[1]
    if channel_labels is None:
        channel_labels = [f'Floor {i+1}' for i in range(n_y)] if n_y > 1 else ['']

    fig, axes = plt.subplots(n_y, 1, figsize=(12, 4 * n_y), squeeze=False)
    for i, ax in enumerate(axes[:, 0]):
        ax.plot(t, acc_true[:, i], 'r-', linewidth=1, label='True signal')
        ax.plot(t, ys[:, i], 'k.', markersize=2, label='Measurements')
        ax.set_xlabel('Time [s]')
        ax.set_ylabel(f'Acceleration [m/s$^2$] {channel_labels[i]}'.strip())
        ax.legend(loc='lower right')
        ax.grid(True, alpha=0.3)

        if zoom is not None:
            window = (t >= zoom[0]) & (t <= zoom[1])
            inset = ax.inset_axes([0.68, 0.65, 0.3, 0.3])
            inset.plot(t[window], acc_true[window, i], 'r-')
            inset.plot(t[window], ys[window, i], 'k.', markersize=3)

    _finish(fig, save_path)


def plot_state_estimates(t, xs_true, means, stds, state_idx, labels, filter_name='UKF',
                         save_path=None):
    """
    Plot filtered states with +/-1 standard deviation bands.

    Parameters
    ----------
    t : ndarray [T]
    xs_true : ndarray [T, n_state]
        True states
    means : ndarray [T, n_x]
        Filtered augmented-state means
    stds : ndarray [T, n_x]
        Standard deviations (e.g. from standard_deviations)
    state_idx : sequence of int
        Columns to plot
    labels : sequence of str
        Y-axis label for each plotted column
    filter_name : str
    save_path : str, optional
    """
    fig, axes = plt.subplots(len(state_idx), 1, figsize=(12, 3.5 * len(state_idx)), squeeze=False)
    for ax, i, label in zip(axes[:, 0], state_idx, labels):
        ax.fill_between(t, means[:, i] - stds[:, i], means[:, i] + stds[:, i],
                        color=(0.8, 0.8, 1.0), label='+/- 1 S.D.')
        ax.plot(t, means[:, i], 'b-', linewidth=1, label=filter_name)
        ax.plot(t, xs_true[:, i], 'r--', linewidth=1, label='True signal')
        ax.set_xlabel('Time [s]')
        ax.set_ylabel(label)
        ax.grid(True, alpha=0.3)
    axes[0, 0].legend(loc='lower right', ncol=3)
    _finish(fig, save_path)


def plot_parameter_estimates(t, means, param_idx, true_values, labels, lower=None, upper=None,
                             filter_name='UKF', save_path=None):
    """
    Plot parameter tracks against their true values.

    Parameters
    ----------
    t : ndarray [T]
    means : ndarray [T, n_x]
    param_idx : sequence of int
        Columns holding the parameters
    true_values : sequence of float
    labels : sequence of str
    lower, upper : ndarray [T, n_x], optional
        Band limits (mean -/+ S.D. for the UKF, percentiles for the PF)
    filter_name : str
    save_path : str, optional
    """
    fig, axes = plt.subplots(len(param_idx), 1, figsize=(12, 3.5 * len(param_idx)), squeeze=False)
    for ax, i, true, label in zip(axes[:, 0], param_idx, true_values, labels):
        if lower is not None and upper is not None:
            ax.fill_between(t, lower[:, i], upper[:, i], color=(0.8, 0.8, 1.0), label='Band')
        ax.plot(t, means[:, i], 'b-', linewidth=1, label=filter_name)
        ax.axhline(true, color='r', linestyle='--', linewidth=1, label='True parameter')
        ax.set_xlabel('Time [s]')
        ax.set_ylabel(label)
        ax.grid(True, alpha=0.3)
    axes[0, 0].legend(loc='lower right', ncol=3)
    _finish(fig, save_path)


def plot_error_histograms(errors, labels, save_path=None, title=None):
    """
    Relative error histograms of several filters on a shared bin width.

    Parameters
    ----------
    errors : dict
        Filter name -> relative error array [T]
    labels : str
        Y-axis label
    save_path : str, optional
    title : str, optional
    """
    finite = [e[np.isfinite(e)] for e in errors.values()]
    lo = min(e.min() for e in finite)
    hi = max(e.max() for e in finite)
    n = max(len(e) for e in finite)
    bin_width = (hi - lo) / (3 * np.ceil(np.sqrt(n))) if hi > lo else 1.0
    bins = np.arange(lo, hi + bin_width, bin_width)

    fig, ax = plt.subplots(figsize=(10, 4))
    for name, e in zip(errors, finite):
        ax.hist(e, bins=bins, weights=np.full(len(e), 1.0 / len(e)), alpha=0.6, label=name)
    ax.set_ylabel(labels)
    if title:
        ax.set_title(title)
    ax.legend(loc='upper left', ncol=len(errors))
    _finish(fig, save_path)

"""SDOF stiffness and damping identification with UKF and PF."""
import logging
import os
import sys
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from vibration_id.filters import (
    run_ukf, run_particle_filter, sample_initial_particles, percentile_bands,
)
from vibration_id.ssm import (
    SDOFOscillator, load_excitation, harmonic_excitation, simulate_response,
    add_measurement_noise, soft_discretize, measurement_covariance, augmented_prior,
)
from vibration_id.utils import (
    ExperimentLogger, SDOFExperimentConfig, standard_deviations, relative_error_stats,
    parameter_estimate, parameter_relative_errors, compute_mse, compute_rmse, compute_nees,
    stability_summary, compute_symmetry_error, compute_min_eigenvalues,
)
from vibration_id.utils.visualization import (
    plot_measurements, plot_state_estimates, plot_parameter_estimates,
    plot_percentile_estimates, plot_error_histograms, plot_ess,
    save_metrics_table, error_statistics_rows, format_runtime,
)

logger = logging.getLogger(__name__)

DIAGNOSTIC_COLUMNS = [
    'state_rmse', 'nees_mean', 'nees_std', 'mean_cond', 'max_cond',
    'max_asymmetry', 'min_eigenvalue', 'ess_mean', 'ess_min',
]


@dataclass
class FilterRun:
    """Container for one filter's trajectory and evaluation metrics."""
    name: str
    status: str
    means: np.ndarray = field(repr=False)
    lower: np.ndarray = field(repr=False)
    upper: np.ndarray = field(repr=False)
    theta_hat: np.ndarray
    theta_errors: np.ndarray
    error_stats: Dict[str, Dict[str, float]]
    diagnostics: Dict[str, float]
    runtime_s: float
    ess: Optional[np.ndarray] = field(default=None, repr=False)


def build_excitation(cfg):
    """Ground acceleration from file, or a ramped multi-sine when no file is set."""
    if cfg.excitation_file:
        t, x_g = load_excitation(cfg.excitation_file)
        return t[:cfg.n_steps], x_g[:cfg.n_steps], t[1] - t[0]
    t, x_g = harmonic_excitation(cfg.n_steps, cfg.dt, ramp_time=2.0)
    return t, x_g, cfg.dt


def simulate(model, us, dt, noise_ratio, rng):
    """True response from rest and the noisy acceleration record."""
    xs = simulate_response(model.rhs, np.zeros(model.n_state), us, dt)[1:]
    acc = model.acceleration(xs)
    ys = add_measurement_noise(acc, noise_ratio, rng)
    return xs, acc, ys


def diagnostics(means, covariances, xs, n_state, ess=None):
    """Consistency and covariance health of the state block of a filter run."""
    T = len(means)
    m, P = means[:, :n_state], covariances[:, :n_state, :n_state]
    nees = compute_nees(m, P, xs[:T])
    summary = stability_summary(np.linalg.cond(covariances), mse=compute_mse(m, xs[:T]))
    return {
        'state_rmse': compute_rmse(m, xs[:T]),
        'nees_mean': np.mean(nees),
        'nees_std': np.std(nees),
        'mean_cond': summary['mean_cond'],
        'max_cond': summary['max_cond'],
        'max_asymmetry': np.max(compute_symmetry_error(covariances)),
        'min_eigenvalue': np.min(compute_min_eigenvalues(covariances)),
        'ess_mean': np.mean(ess) if ess is not None else None,
        'ess_min': np.min(ess) if ess is not None else None,
    }


def _summarize(name, model, cfg, status, data, xs, acc):
    n = model.n_state
    means = data['means']
    ess = data.get('ess')
    runtime_s = float(data['runtime'])

    if len(means) == 0:
        logger.warning("%s stopped before the first step; no estimates to report", name)
        nan = np.full(model.n_param, np.nan)
        return FilterRun(
            name=name, status=status, means=means, lower=data['lower'], upper=data['upper'],
            theta_hat=nan, theta_errors=nan.copy(), error_stats={},
            diagnostics=dict.fromkeys(DIAGNOSTIC_COLUMNS, np.nan),
            runtime_s=runtime_s, ess=ess,
        )

    param_idx = list(range(n, n + model.n_param))
    start = min(cfg.estimate_from, len(means) - 1)
    if start < cfg.estimate_from:
        logger.warning("%s stopped at step %d; averaging parameters from step %d",
                       name, len(means), start)
    theta_hat = parameter_estimate(means, param_idx, start=start)

    acc_hat = model.augmented_acceleration(means).reshape(len(means), -1)
    acc = acc[:len(means)].reshape(len(means), -1)
    stats = {}
    for i in range(n):
        stats[f'x{i+1}'] = relative_error_stats(means[:, i], xs[:len(means), i])
    for i in range(acc.shape[1]):
        stats[f'a{i+1}'] = relative_error_stats(acc_hat[:, i], acc[:, i])

    return FilterRun(
        name=name, status=status, means=means, lower=data['lower'], upper=data['upper'],
        theta_hat=theta_hat,
        theta_errors=parameter_relative_errors(theta_hat, model.true_parameters),
        error_stats=stats,
        diagnostics=diagnostics(means, data['covariances'], xs, n, ess),
        runtime_s=runtime_s, ess=ess,
    )


def _ukf(model, m0, P0, ys, us, Q, R, dt, cfg, rng):
    res = run_ukf(model.augmented_rhs, model.augmented_acceleration, m0, P0, ys, us, Q, R, dt)
    std = standard_deviations(res.covariances)
    return res, {'means': res.means, 'covariances': res.covariances,
                 'lower': res.means - std, 'upper': res.means + std}


def _pf(model, m0, P0, ys, us, Q, R, dt, cfg, rng):
    particles0, weights0 = sample_initial_particles(m0, P0, cfg.N_particles, rng)
    res = run_particle_filter(model.augmented_rhs, model.augmented_acceleration,
                              particles0, weights0, ys, us, Q, R, dt,
                              rng=rng, vectorized=True)
    bands = percentile_bands(res)
    return res, {'means': res.means, 'covariances': res.covariances,
                 'lower': bands[:, 0], 'upper': bands[:, 1], 'ess': res.ess}


FILTERS = {'UKF': _ukf, 'PF': _pf}


def run_filters(model, cfg, us, ys, xs, acc, dt, rng, exp_log=None) -> Dict[str, FilterRun]:
    """Run UKF and PF on the augmented model, using cached results when available."""
    Q = soft_discretize(cfg.noise.state_var, cfg.noise.param_var,
                        model.n_state, model.n_param, dt)
    R = measurement_covariance(cfg.noise.meas_var, model.n_obs, dt)
    m0, P0 = augmented_prior(np.zeros(model.n_state), cfg.theta0,
                             cfg.state_prior_var, cfg.param_prior_var)
    config = cfg.to_dict()
    results = {}

    for name, run in FILTERS.items():
        cached = exp_log is not None and exp_log.result_exists(name, config)
        if cached:
            data = exp_log.load_filter_result(name, config)
        else:
            start = time.perf_counter()
            res, data = run(model, m0, P0, ys, us, Q, R, dt, cfg, rng)
            data['status'] = np.array(res.status.value)
            data['message'] = np.array(res.message)
            data['runtime'] = np.array(time.perf_counter() - start)

        r = _summarize(name, model, cfg, str(data['status']), data, xs, acc)
        if exp_log and not cached:
            exp_log.save_filter_result(
                name, config, data, status=r.status,
                parameter_errors=list(r.theta_errors), runtime_sec=r.runtime_s,
                notes=str(data['message']),
            )
        results[name] = r
    return results


def write_tables(results: Dict[str, FilterRun], model, metrics_dir):
    """Parameter error, relative error statistics and filter diagnostics tables."""
    columns = [f'{p}_hat' for p in model.parameter_names]
    columns += [f'{p}_error' for p in model.parameter_names] + ['status', 'runtime']
    rows = {}
    for name, r in results.items():
        row = {'status': r.status, 'runtime': format_runtime(r.runtime_s)}
        for p, est, err in zip(model.parameter_names, r.theta_hat, r.theta_errors):
            row[f'{p}_hat'] = float(est)
            row[f'{p}_error'] = float(err)
        rows[name] = row
    save_metrics_table(rows, os.path.join(metrics_dir, 'parameters.txt'), columns,
                       title='Time-averaged parameter estimates')

    stats = error_statistics_rows({name: r.error_stats for name, r in results.items()})
    save_metrics_table(stats, os.path.join(metrics_dir, 'relative_errors.txt'),
                       ['mean', 'var', 'mean_square'], title='Relative error statistics',
                       column_widths={'Filter': 10}, float_format='.3e')

    save_metrics_table({name: r.diagnostics for name, r in results.items()},
                       os.path.join(metrics_dir, 'diagnostics.txt'), DIAGNOSTIC_COLUMNS,
                       title='Filter diagnostics (state block)', float_format='.3e')


def plot_results(t, xs, acc, ys, results, model, cfg, figs_dir, state_labels):
    """Measurement, state, parameter, error and ESS figures."""
    n = model.n_state
    param_idx = list(range(n, n + model.n_param))
    plot_measurements(t, acc, ys, save_path=os.path.join(figs_dir, '1_measurements.png'),
                      zoom=(t[len(t) // 2], t[len(t) // 2] + 2.0))

    ukf, pf = results['UKF'], results['PF']
    tu, tp = t[:len(ukf.means)], t[:len(pf.means)]
    plot_state_estimates(tu, xs[:len(tu)], ukf.means, ukf.upper - ukf.means, range(n), state_labels,
                         save_path=os.path.join(figs_dir, '2_ukf_states.png'))
    plot_parameter_estimates(tu, ukf.means, param_idx, model.true_parameters,
                             model.parameter_names, lower=ukf.lower, upper=ukf.upper,
                             save_path=os.path.join(figs_dir, '3_ukf_parameters.png'))
    bands = np.stack([pf.lower, pf.upper], axis=1)
    plot_percentile_estimates(tp, xs[:len(tp)], pf.means, bands, range(n), state_labels, cfg.N_particles,
                              save_path=os.path.join(figs_dir, '4_pf_states.png'))
    plot_parameter_estimates(tp, pf.means, param_idx, model.true_parameters,
                             model.parameter_names, lower=pf.lower, upper=pf.upper,
                             filter_name=f'PF N = {cfg.N_particles}',
                             save_path=os.path.join(figs_dir, '5_pf_parameters.png'))

    for i in range(n):
        errors = {}
        for name, r in results.items():
            true = xs[:len(r.means), i]
            mask = true != 0
            errors[name] = (r.means[mask, i] - true[mask]) / true[mask]
        plot_error_histograms(errors, 'Relative frequency', title=state_labels[i],
                              save_path=os.path.join(figs_dir, f'6_errors_x{i+1}.png'))

    plot_ess(tp, {'PF': pf.ess}, cfg.N_particles, save_path=os.path.join(figs_dir, '7_ess.png'))


def prepare_run(experiment_name, results_root, use_cache, clear_cache):
    """Experiment logger, run directories and the cache to use."""
    exp_log = ExperimentLogger(experiment_name, results_root=results_root)
    if clear_cache:
        exp_log.clear_cache()
    run_dir = exp_log.create_timestamped_run_dir()
    figs_dir = exp_log.get_figures_dir()
    metrics_dir = os.path.join(run_dir, 'metrics')
    os.makedirs(metrics_dir, exist_ok=True)
    return (exp_log if use_cache else None), figs_dir, metrics_dir


def run_experiment(cfg: SDOFExperimentConfig, results_root='results', use_cache=True,
                   clear_cache=False):
    """Run the SDOF identification study."""
    cfg.validate()
    rng = np.random.default_rng(cfg.seed)
    exp_log, figs_dir, metrics_dir = prepare_run(
        'sdof_parameter_estimation', results_root, use_cache, clear_cache)

    model = SDOFOscillator(cfg.mass, cfg.damping, cfg.stiffness)
    t, us, dt = build_excitation(cfg)
    xs, acc, ys = simulate(model, us, dt, cfg.noise.noise_ratio, rng)

    results = run_filters(model, cfg, us, ys, xs, acc, dt, rng, exp_log)
    for name, r in results.items():
        logger.info("%s (%s): k = %.4f, c = %.4f, errors = %s", name, r.status,
                    r.theta_hat[0], r.theta_hat[1], np.round(r.theta_errors, 4))

    write_tables(results, model, metrics_dir)
    plot_results(t, xs, acc, ys, results, model, cfg, figs_dir,
                 ['Displacement [m]', 'Velocity [m/s]'])
    return results


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    start_time = time.time()
    cfg = SDOFExperimentConfig()
    run_experiment(cfg, clear_cache='--clear-cache' in sys.argv)
    ExperimentLogger('sdof_parameter_estimation').log_experiment(
        cfg.to_dict(), duration_sec=time.time() - start_time)

"""
Experiment Logger - Track experiment configurations and filter results.

Each filter run is cached as a compressed .npz file keyed by the filter name
and the configuration values that determine its output, and recorded as one
row of a CSV run log.
"""
import csv
import hashlib
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np

logger = logging.getLogger(__name__)


class ExperimentLogger:
    """
    Logger for tracking experiment configurations and per-filter results.

    Usage:
        exp_log = ExperimentLogger('sdof', results_root='results')
        config = cfg.to_dict()

        data = exp_log.load_filter_result('UKF', config)
        if data is None:
            result = run_ukf(...)
            exp_log.save_filter_result('UKF', config, {'means': result.means, ...})

        run_dir = exp_log.create_timestamped_run_dir()
    """

    LOG_COLUMNS = [
        'timestamp', 'experiment_name', 'filter', 'config_hash',
        'n_steps', 'N_particles', 'seed', 'status',
        'parameter_errors', 'runtime_sec', 'cache_file', 'notes',
    ]

    def __init__(self, experiment_name: str, results_root: str = 'results'):
        """
        Parameters
        ----------
        experiment_name : str
            Logs are stored in {results_root}/{experiment_name}/
        results_root : str
            Root directory for results
        """
        self.experiment_name = experiment_name
        self.log_dir = os.path.join(results_root, experiment_name)
        self.log_file = os.path.join(self.log_dir, 'filter_log.csv')
        self.cache_dir = os.path.join(self.log_dir, 'cache')

        os.makedirs(self.cache_dir, exist_ok=True)
        if not os.path.exists(self.log_file):
            with open(self.log_file, 'w', newline='') as f:
                csv.DictWriter(f, fieldnames=self.LOG_COLUMNS).writeheader()

        self._current_run_dir: Optional[str] = None

    @staticmethod
    def config_hash(name: str, config: Dict[str, Any]) -> str:
        """Short stable hash of a filter name and its configuration."""
        key = json.dumps({'filter': name, 'config': config}, sort_keys=True, default=str)
        return hashlib.md5(key.encode()).hexdigest()[:12]

    def get_cache_path(self, name: str, config: Dict[str, Any]) -> str:
        """Full path of the cache file for a filter + config."""
        safe_name = name.replace('(', '_').replace(')', '').replace(' ', '_')
        return os.path.join(self.cache_dir, f"{safe_name}_{self.config_hash(name, config)}.npz")

    def result_exists(self, name: str, config: Dict[str, Any]) -> bool:
        return os.path.exists(self.get_cache_path(name, config))

    def save_filter_result(
        self,
        name: str,
        config: Dict[str, Any],
        data: Dict[str, Any],
        status: str = 'completed',
        parameter_errors: Optional[List[float]] = None,
        runtime_sec: float = 0.0,
        notes: str = ''
    ) -> str:
        """
        Cache a filter result and append a row to the run log.

        Parameters
        ----------
        name : str
            Filter name, e.g. 'UKF' or 'PF'
        config : dict
            Experiment configuration
        data : dict
            Arrays to cache, e.g. {'means': ..., 'covariances': ...}
        status : str
            Filter termination status
        parameter_errors : list of float, optional
            Relative parameter errors
        runtime_sec : float
        notes : str

        Returns
        -------
        str
            Path to the cache file
        """
        cache_path = self.get_cache_path(name, config)
        np.savez_compressed(cache_path, **data)

        errors = ''
        if parameter_errors is not None:
            errors = ' '.join(f"{e:.4f}" for e in parameter_errors)
        row = {
            'timestamp': datetime.now().strftime('%Y-%m-%d_%H-%M-%S'),
            'experiment_name': self.experiment_name,
            'filter': name,
            'config_hash': self.config_hash(name, config),
            'n_steps': config.get('n_steps', ''),
            'N_particles': config.get('N_particles', ''),
            'seed': config.get('seed', ''),
            'status': status,
            'parameter_errors': errors,
            'runtime_sec': f"{runtime_sec:.2f}",
            'cache_file': os.path.basename(cache_path),
            'notes': notes,
        }
        with open(self.log_file, 'a', newline='') as f:
            csv.DictWriter(f, fieldnames=self.LOG_COLUMNS).writerow(row)

        logger.info("Cached %s: %s", name, os.path.basename(cache_path))
        return cache_path

    def load_filter_result(self, name: str, config: Dict[str, Any]) -> Optional[Dict[str, np.ndarray]]:
        """Load a cached filter result, or None if there is none."""
        cache_path = self.get_cache_path(name, config)
        if not os.path.exists(cache_path):
            return None

        with np.load(cache_path) as npz:
            data = {key: npz[key] for key in npz.files}
        logger.info("Loaded cached %s: %s", name, os.path.basename(cache_path))
        return data

    def clear_cache(self) -> int:
        """Remove all cached results of this experiment; returns the count."""
        count = 0
        for f in os.listdir(self.cache_dir):
            if f.endswith('.npz'):
                os.remove(os.path.join(self.cache_dir, f))
                count += 1
        logger.info("Removed %d cache files", count)
        return count

    def create_timestamped_run_dir(self, timestamp: Optional[str] = None) -> str:
        """Create {log_dir}/{timestamp}/ for figures and reports."""
        if timestamp is None:
            timestamp = datetime.now().strftime('%Y-%m-%d_%H-%M-%S')
        self._current_run_dir = os.path.join(self.log_dir, timestamp)
        os.makedirs(self._current_run_dir, exist_ok=True)
        return self._current_run_dir

    def get_figures_dir(self) -> str:
        """Figures directory of the current run."""
        if self._current_run_dir is None:
            raise RuntimeError("Call create_timestamped_run_dir() first")
        figs_dir = os.path.join(self._current_run_dir, 'figures')
        os.makedirs(figs_dir, exist_ok=True)
        return figs_dir

    def log_experiment(self, config: Dict[str, Any], duration_sec: float = 0.0,
                       notes: str = '') -> None:
        """Append the configuration and duration of a finished experiment."""
        with open(os.path.join(self.log_dir, 'experiment_log.txt'), 'a') as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"Timestamp: {datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}\n")
            f.write(f"Duration: {duration_sec:.1f}s\n")
            for key, val in config.items():
                f.write(f"  {key}: {val}\n")
            if notes:
                f.write(f"Notes: {notes}\n")

        logger.info("Experiment completed in %.1fs", duration_sec)

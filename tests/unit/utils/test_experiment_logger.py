"""Unit tests for the experiment logger and result cache."""

import csv

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from vibration_id.utils.experiment_logger import ExperimentLogger


@pytest.fixture
def exp_log(tmp_path):
    return ExperimentLogger('sdof', results_root=str(tmp_path))


class TestExperimentLogger:

    def test_creates_log_with_header(self, exp_log):
        with open(exp_log.log_file) as f:
            header = next(csv.reader(f))
        assert header == ExperimentLogger.LOG_COLUMNS

    def test_config_hash_is_stable_and_order_free(self):
        a = ExperimentLogger.config_hash('UKF', {'dt': 0.02, 'seed': 0})
        b = ExperimentLogger.config_hash('UKF', {'seed': 0, 'dt': 0.02})
        assert a == b
        assert a != ExperimentLogger.config_hash('PF', {'dt': 0.02, 'seed': 0})
        assert a != ExperimentLogger.config_hash('UKF', {'dt': 0.01, 'seed': 0})

    def test_save_and_load_round_trip(self, exp_log):
        config = {'n_steps': 10, 'N_particles': 50, 'seed': 1}
        means = np.arange(20.0).reshape(10, 2)

        assert exp_log.load_filter_result('PF', config) is None
        exp_log.save_filter_result('PF', config, {'means': means, 'status': np.array('completed')},
                                   parameter_errors=[0.01, 0.2], runtime_sec=1.5)

        assert exp_log.result_exists('PF', config)
        data = exp_log.load_filter_result('PF', config)
        np.testing.assert_array_equal(data['means'], means)
        assert str(data['status']) == 'completed'

        with open(exp_log.log_file) as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1
        assert rows[0]['filter'] == 'PF'
        assert rows[0]['parameter_errors'] == '0.0100 0.2000'
        assert rows[0]['N_particles'] == '50'

    def test_clear_cache(self, exp_log):
        exp_log.save_filter_result('UKF', {'a': 1}, {'means': np.zeros(3)})
        exp_log.save_filter_result('UKF', {'a': 2}, {'means': np.zeros(3)})

        assert exp_log.clear_cache() == 2
        assert not exp_log.result_exists('UKF', {'a': 1})

    def test_figures_dir_requires_run_dir(self, exp_log):
        with pytest.raises(RuntimeError):
            exp_log.get_figures_dir()

        run_dir = exp_log.create_timestamped_run_dir('run1')
        assert os.path.isdir(exp_log.get_figures_dir())
        assert exp_log.get_figures_dir().startswith(run_dir)

    def test_log_experiment(self, exp_log):
        exp_log.log_experiment({'dt': 0.02}, duration_sec=3.0, notes='smoke')
        with open(os.path.join(exp_log.log_dir, 'experiment_log.txt')) as f:
            text = f.read()
        assert 'dt: 0.02' in text
        assert 'Notes: smoke' in text

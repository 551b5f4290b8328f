"""Unit tests for experiment configurations."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from vibration_id.filters.common import ConfigurationError
from vibration_id.utils.config import NoiseConfig, SDOFExperimentConfig, TDOFExperimentConfig


class TestExperimentConfigs:

    def test_defaults_validate(self):
        SDOFExperimentConfig().validate()
        TDOFExperimentConfig().validate()

    def test_tdof_noise_defaults(self):
        noise = TDOFExperimentConfig().noise
        assert (noise.state_var, noise.param_var, noise.meas_var) == (0.001, 0.01, 0.01)
        assert noise.noise_ratio == 0.05

    @pytest.mark.parametrize("config", [SDOFExperimentConfig, TDOFExperimentConfig])
    def test_estimate_starts_at_thousandth_sample(self, config):
        # 0-based index of sample 1000
        assert config().estimate_from == 999

    def test_to_dict_nests_noise(self):
        d = SDOFExperimentConfig(seed=3).to_dict()
        assert d['seed'] == 3
        assert d['noise'] == {'state_var': 0.01, 'param_var': 0.1, 'meas_var': 0.001,
                              'noise_ratio': 0.05}

    @pytest.mark.parametrize("kwargs", [
        {'dt': 0.0},
        {'n_steps': 0},
        {'N_particles': 0},
        {'estimate_from': 2000},
        {'param_prior_var': -1.0},
        {'noise': NoiseConfig(meas_var=-1e-3)},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            SDOFExperimentConfig(**kwargs).validate()

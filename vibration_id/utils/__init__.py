"""
Utility Functions.

This module contains utility functions for:
- Metrics and relative error statistics
- Experiment configuration and logging
- Visualization (organized in visualization/ subfolder)
"""
from .metrics import (
    compute_mse,
    compute_rmse,
    compute_nees,
    stability_summary,
    compute_symmetry_error,
    compute_min_eigenvalues,
    standard_deviations,
    relative_error_stats,
    parameter_estimate,
    parameter_relative_errors,
)
from .config import NoiseConfig, SDOFExperimentConfig, TDOFExperimentConfig
from .experiment_logger import ExperimentLogger

__all__ = [
    # metrics
    'compute_mse',
    'compute_rmse',
    'compute_nees',
    'stability_summary',
    'compute_symmetry_error',
    'compute_min_eigenvalues',
    'standard_deviations',
    'relative_error_stats',
    'parameter_estimate',
    'parameter_relative_errors',
    # config
    'NoiseConfig',
    'SDOFExperimentConfig',
    'TDOFExperimentConfig',
    # experiment logger
    'ExperimentLogger',
]

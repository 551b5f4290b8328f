"""Filtering algorithm implementations."""
from .common import (
    ConfigurationError, FilterStatus, joseph_update, standard_update,
    symmetrize, nearest_psd, psd_sqrt, wall_clock_budget,
)
from .propagator import rk4_step, make_discrete
from .kf import kalman_filter
from .ukf import UKFConfig, UKFResult, run_ukf, ukf_predict, ukf_update, unscented_transform
from .pf import (
    ResamplePolicy, ParticleFilterResult, run_particle_filter, sample_initial_particles,
    resample, systematic_resample, stratified_resample, multinomial_resample,
    effective_sample_size, particle_percentiles, percentile_bands,
)

__all__ = [
    # Main filters
    'kalman_filter',
    'run_ukf',
    'run_particle_filter',
    # Propagator
    'rk4_step',
    'make_discrete',
    # UKF components
    'UKFConfig',
    'UKFResult',
    'ukf_predict',
    'ukf_update',
    'unscented_transform',
    # PF components
    'ResamplePolicy',
    'ParticleFilterResult',
    'sample_initial_particles',
    'resample',
    'systematic_resample',
    'stratified_resample',
    'multinomial_resample',
    'effective_sample_size',
    'particle_percentiles',
    'percentile_bands',
    # Utilities
    'ConfigurationError',
    'FilterStatus',
    'joseph_update',
    'standard_update',
    'symmetrize',
    'nearest_psd',
    'psd_sqrt',
    'wall_clock_budget',
]

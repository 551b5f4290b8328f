"""
Visualization utilities for parameter identification results.

This module provides plotting functions organized by domain:
- filters: measurements, UKF state/parameter estimates, error histograms
- particles: PF percentile bands and effective sample size
- tables: metrics tables and summaries
"""
from .filters import (
    plot_measurements,
    plot_state_estimates,
    plot_parameter_estimates,
    plot_error_histograms,
)

from .particles import (
    plot_percentile_estimates,
    plot_ess,
    DEFAULT_COLORS,
)

from .tables import (
    save_metrics_table,
    error_statistics_rows,
    format_runtime,
)

__all__ = [
    # filters
    'plot_measurements',
    'plot_state_estimates',
    'plot_parameter_estimates',
    'plot_error_histograms',
    # particles
    'plot_percentile_estimates',
    'plot_ess',
    'DEFAULT_COLORS',
    # tables
    'save_metrics_table',
    'error_statistics_rows',
    'format_runtime',
]

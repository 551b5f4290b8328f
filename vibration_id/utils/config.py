"""Experiment configurations for the SDOF and TDOF identification studies."""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional, Tuple

from ..filters.common import ConfigurationError


@dataclass
class NoiseConfig:
    """
    Noise intensities before soft discretization.

    Q = blkdiag(state_var I, param_var I) * dt and R = meas_var I / dt.
    noise_ratio scales the synthetic measurement noise to the signal RMS.
    """
    state_var: float = 0.01
    param_var: float = 0.1
    meas_var: float = 0.001
    noise_ratio: float = 0.05


@dataclass
class SDOFExperimentConfig:
    """Single degree of freedom study (m = 1, c = 0.3, k = 9)."""
    mass: float = 1.0
    damping: float = 0.3
    stiffness: float = 9.0
    theta0: Tuple[float, ...] = (5.0, 0.2)
    state_prior_var: float = 1e-4
    param_prior_var: float = 10.0
    noise: NoiseConfig = field(default_factory=NoiseConfig)
    dt: float = 0.02
    n_steps: int = 2000
    N_particles: int = 1000
    estimate_from: int = 999
    excitation_file: Optional[str] = None
    seed: int = 0

    def validate(self):
        _validate_common(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TDOFExperimentConfig:
    """Two degree of freedom study (k1 = 12, k2 = 10, c1 = 0.6, c2 = 0.5)."""
    m1: float = 1.0
    m2: float = 1.0
    c1: float = 0.6
    c2: float = 0.5
    k1: float = 12.0
    k2: float = 10.0
    theta0: Tuple[float, ...] = (2.0, 2.0, 0.2, 0.2)
    state_prior_var: float = 1e-5
    param_prior_var: float = 100.0
    noise: NoiseConfig = field(default_factory=lambda: NoiseConfig(
        state_var=0.001, param_var=0.01, meas_var=0.01))
    dt: float = 0.02
    n_steps: int = 2000
    N_particles: int = 1000
    estimate_from: int = 999
    excitation_file: Optional[str] = None
    seed: int = 0

    def validate(self):
        _validate_common(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _validate_common(cfg):
    if not cfg.dt > 0:
        raise ConfigurationError(f"dt must be positive, got {cfg.dt}")
    if cfg.n_steps <= 0:
        raise ConfigurationError(f"n_steps must be positive, got {cfg.n_steps}")
    if cfg.N_particles <= 0:
        raise ConfigurationError(f"N_particles must be positive, got {cfg.N_particles}")
    if not 0 <= cfg.estimate_from < cfg.n_steps:
        raise ConfigurationError("estimate_from must lie inside the simulated record")
    variances = {
        'state_prior_var': cfg.state_prior_var,
        'param_prior_var': cfg.param_prior_var,
        'noise.state_var': cfg.noise.state_var,
        'noise.param_var': cfg.noise.param_var,
        'noise.meas_var': cfg.noise.meas_var,
        'noise.noise_ratio': cfg.noise.noise_ratio,
    }
    for name, value in variances.items():
        if value < 0:
            raise ConfigurationError(f"{name} must be non-negative, got {value}")

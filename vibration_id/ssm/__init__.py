"""Structural models, excitation and response simulation."""
from .oscillators import SDOFOscillator, TDOFOscillator
from .excitation import load_excitation, harmonic_excitation, white_noise_excitation
from .simulation import (
    simulate_response,
    add_measurement_noise,
    soft_discretize,
    measurement_covariance,
    augmented_prior,
)

__all__ = [
    'SDOFOscillator',
    'TDOFOscillator',
    'load_excitation',
    'harmonic_excitation',
    'white_noise_excitation',
    'simulate_response',
    'add_measurement_noise',
    'soft_discretize',
    'measurement_covariance',
    'augmented_prior',
]
